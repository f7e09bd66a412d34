"""
PIN API tests.

Tests cover PIN status, setup, change, reset by code, the requirement
toggle and the verify/cancel endpoints that resume or discard a pending
protected action.
"""
from datetime import timedelta
from fastapi import status

from timekeeper.common.datetime_utils import utcnow
from timekeeper.database.models import PinResetCode

from .test_base import API, BaseAPITest, TestDataFactory


class TestPinSetupAndChange(BaseAPITest):
    """Test cases for PIN setup and change endpoints."""

    def test_status_for_new_user(self, client, auth_headers):
        result = client.get(f"{API}/pin/status", headers=auth_headers)

        self.assert_success_response(result)
        assert result.json() == {"has_pin": False, "require_pin": True, "pending_action": None}

    def test_setup_pin(self, client, auth_headers):
        result = client.post(f"{API}/pin/setup", json={"pin": "1234", "confirm_pin": "1234"},
                             headers=auth_headers)

        self.assert_success_response(result, status.HTTP_201_CREATED)
        assert client.get(f"{API}/pin/status", headers=auth_headers).json()["has_pin"] is True
        assert client.get(f"{API}/auth/me", headers=auth_headers).json()["has_pin"] is True

    def test_setup_rejects_malformed_pin(self, client, auth_headers):
        result = client.post(f"{API}/pin/setup", json={"pin": "12", "confirm_pin": "12"},
                             headers=auth_headers)

        self.assert_error_response(result, status.HTTP_422_UNPROCESSABLE_ENTITY, "PIN must be exactly 4 digits")

    def test_setup_rejects_mismatch(self, client, auth_headers):
        result = client.post(f"{API}/pin/setup", json={"pin": "1234", "confirm_pin": "4321"},
                             headers=auth_headers)

        self.assert_error_response(result, status.HTTP_422_UNPROCESSABLE_ENTITY, "PINs do not match")

    def test_setup_twice_forbidden(self, client, pin_headers):
        result = client.post(f"{API}/pin/setup", json={"pin": "5555", "confirm_pin": "5555"},
                             headers=pin_headers)

        self.assert_forbidden(result)

    def test_change_pin(self, client, pin_headers):
        result = client.post(f"{API}/pin/change", json={
            "current_pin": "1234", "new_pin": "5555", "confirm_new_pin": "5555"
        }, headers=pin_headers)

        self.assert_success_response(result)
        self.assert_forbidden(client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers))
        assert client.post(f"{API}/pin/verify", json={"pin": "5555"}, headers=pin_headers).json()["status"] == "verified"

    def test_change_with_wrong_current_pin(self, client, pin_headers):
        result = client.post(f"{API}/pin/change", json={
            "current_pin": "0000", "new_pin": "5555", "confirm_new_pin": "5555"
        }, headers=pin_headers)

        self.assert_forbidden(result, "Current PIN is incorrect")
        assert client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers).status_code == 200

    def test_change_without_pin(self, client, auth_headers):
        result = client.post(f"{API}/pin/change", json={
            "current_pin": "1234", "new_pin": "5555", "confirm_new_pin": "5555"
        }, headers=auth_headers)

        self.assert_error_response(result, status.HTTP_422_UNPROCESSABLE_ENTITY, "No PIN has been set yet")

    def test_pin_endpoints_require_authentication(self, client):
        self.assert_unauthorized(client.get(f"{API}/pin/status"))
        self.assert_unauthorized(client.post(f"{API}/pin/setup", json={"pin": "1234", "confirm_pin": "1234"}))
        self.assert_unauthorized(client.post(f"{API}/pin/verify", json={"pin": "1234"}))
        self.assert_unauthorized(client.post(f"{API}/pin/reset/request"))


class TestPinReset(BaseAPITest):
    """Test cases for PIN reset by emailed code."""

    def test_reset_round_trip(self, client, pin_headers, delivery, sample_user_data):
        result = client.post(f"{API}/pin/reset/request", headers=pin_headers)

        self.assert_success_response(result)
        assert "code" not in result.json()
        assert delivery.sent[-1][0] == sample_user_data["email"]

        result = client.post(f"{API}/pin/reset/confirm", json={
            "code": delivery.last_code, "new_pin": "7777", "confirm_new_pin": "7777"
        }, headers=pin_headers)

        self.assert_success_response(result)
        assert client.post(f"{API}/pin/verify", json={"pin": "7777"}, headers=pin_headers).status_code == 200

    def test_reused_code_rejected(self, client, pin_headers, delivery):
        client.post(f"{API}/pin/reset/request", headers=pin_headers)
        payload = {"code": delivery.last_code, "new_pin": "7777", "confirm_new_pin": "7777"}
        client.post(f"{API}/pin/reset/confirm", json=payload, headers=pin_headers)

        result = client.post(f"{API}/pin/reset/confirm", json=payload, headers=pin_headers)

        self.assert_error_response(result, status.HTTP_400_BAD_REQUEST, "Invalid or expired reset code")

    def test_expired_code_rejected(self, client, pin_headers, delivery, db_session):
        client.post(f"{API}/pin/reset/request", headers=pin_headers)
        reset_code = db_session.query(PinResetCode).filter(PinResetCode.code == delivery.last_code).one()
        reset_code.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        result = client.post(f"{API}/pin/reset/confirm", json={
            "code": delivery.last_code, "new_pin": "7777", "confirm_new_pin": "7777"
        }, headers=pin_headers)

        self.assert_error_response(result, status.HTTP_400_BAD_REQUEST)

    def test_reset_can_set_first_pin(self, client, auth_headers, delivery):
        client.post(f"{API}/pin/reset/request", headers=auth_headers)
        result = client.post(f"{API}/pin/reset/confirm", json={
            "code": delivery.last_code, "new_pin": "2468", "confirm_new_pin": "2468"
        }, headers=auth_headers)

        self.assert_success_response(result)
        assert client.get(f"{API}/pin/status", headers=auth_headers).json()["has_pin"] is True


class TestPinGate(BaseAPITest):
    """Test cases for verify and cancel of pending protected actions."""

    def test_verify_without_pending_action(self, client, pin_headers):
        result = client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers)

        self.assert_success_response(result)
        assert result.json() == {"status": "verified", "action": None, "result": None}

    def test_verify_strips_non_digits(self, client, pin_headers):
        result = client.post(f"{API}/pin/verify", json={"pin": "12-34"}, headers=pin_headers)

        assert result.json()["status"] == "verified"

    def test_verify_short_pin(self, client, pin_headers):
        result = client.post(f"{API}/pin/verify", json={"pin": "123"}, headers=pin_headers)

        self.assert_error_response(result, status.HTTP_422_UNPROCESSABLE_ENTITY, "PIN must be 4 digits")

    def test_verify_without_stored_pin(self, client, auth_headers):
        result = client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=auth_headers)

        self.assert_forbidden(result, "Incorrect PIN")

    def test_pending_action_resumed_after_verify(self, client, pin_headers):
        created = client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=pin_headers)
        self.assert_pin_required(created, "add_profile")
        assert client.get(f"{API}/pin/status", headers=pin_headers).json()["pending_action"] == "add_profile"
        assert client.get(f"{API}/profiles/", headers=pin_headers).json() == []

        wrong = client.post(f"{API}/pin/verify", json={"pin": "9999"}, headers=pin_headers)
        self.assert_forbidden(wrong, "Incorrect PIN")
        assert client.get(f"{API}/profiles/", headers=pin_headers).json() == []

        result = client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers)
        profile = self.assert_completed(result, "add_profile")
        assert profile["name"] == "Acme Consulting"

        profiles = client.get(f"{API}/profiles/", headers=pin_headers).json()
        assert [p["id"] for p in profiles] == [profile["id"]]
        assert client.get(f"{API}/pin/status", headers=pin_headers).json()["pending_action"] is None

    def test_cancel_discards_pending_action(self, client, pin_headers):
        client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=pin_headers)

        result = client.post(f"{API}/pin/cancel", headers=pin_headers)
        self.assert_success_response(result)
        assert result.json()["status"] == "cancelled"
        assert result.json()["action"] == "add_profile"

        # Verifying later has nothing to replay
        verified = client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers)
        assert verified.json()["status"] == "verified"
        assert client.get(f"{API}/profiles/", headers=pin_headers).json() == []

    def test_second_protected_action_while_pending(self, client, pin_headers):
        client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=pin_headers)

        result = client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(name="Other"),
                             headers=pin_headers)

        self.assert_conflict(result)

    def test_pending_actions_are_per_user(self, client, pin_headers, other_auth_headers):
        client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=pin_headers)

        status_response = client.get(f"{API}/pin/status", headers=other_auth_headers)
        assert status_response.json()["pending_action"] is None
        cancelled = client.post(f"{API}/pin/cancel", headers=other_auth_headers)
        assert cancelled.json()["action"] is None
        assert client.get(f"{API}/pin/status", headers=pin_headers).json()["pending_action"] == "add_profile"


class TestPinRequirement(BaseAPITest):
    """Test cases for turning the PIN requirement on and off."""

    def test_disable_requires_verification(self, client, pin_headers):
        result = client.put(f"{API}/pin/requirement", json={"require_pin": False}, headers=pin_headers)
        self.assert_pin_required(result, "disable_pin")
        assert client.get(f"{API}/pin/status", headers=pin_headers).json()["require_pin"] is True

        verified = client.post(f"{API}/pin/verify", json={"pin": "1234"}, headers=pin_headers)

        assert self.assert_completed(verified, "disable_pin") == {"require_pin": False}
        assert client.get(f"{API}/pin/status", headers=pin_headers).json()["require_pin"] is False

    def test_protected_actions_run_directly_when_disabled(self, client, open_headers):
        result = client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=open_headers)

        profile = self.assert_completed(result, "add_profile", status.HTTP_201_CREATED)
        assert profile["name"] == "Acme Consulting"

    def test_enable_needs_no_verification(self, client, open_headers):
        result = client.put(f"{API}/pin/requirement", json={"require_pin": True}, headers=open_headers)

        self.assert_success_response(result)
        assert result.json()["result"] == {"require_pin": True}
        created = client.post(f"{API}/profiles/", json=TestDataFactory.create_profile(), headers=open_headers)
        self.assert_pin_required(created, "add_profile")
