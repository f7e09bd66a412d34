"""
Credential store tests.
"""
from datetime import timedelta
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from timekeeper.auth.credential_store import CredentialStore, require_identity
from timekeeper.auth.dependencies import CurrentUser
from timekeeper.auth.errors import NotAuthenticated, StoreUnavailable
from timekeeper.common.datetime_utils import utcnow
from timekeeper.database.models import PinCredential, User


class TestCredentialStore:
    """Test cases for credential and reset code persistence."""

    def test_defaults(self, store, identity):
        assert store.get_pin_hash(identity) is None
        assert store.is_pin_required(identity) is True

    def test_creates_missing_record_on_first_read(self, db_session, store):
        user = User(email="jo@timekeeper.io", password_hash="x")
        db_session.add(user)
        db_session.commit()
        identity = CurrentUser(user_id=user.id, email=user.email)

        credential = store.get_credential(identity)

        assert credential.user_id == user.id
        assert credential.pin_hash is None
        assert credential.require_pin is True
        assert db_session.query(PinCredential).filter(PinCredential.user_id == user.id).count() == 1

    def test_set_pin_hash_and_flag(self, store, identity):
        store.set_pin_hash(identity, "a" * 64)
        store.set_require_pin(identity, False)

        assert store.get_pin_hash(identity) == "a" * 64
        assert store.is_pin_required(identity) is False

    def test_find_valid_reset_code_prefers_newest(self, store, identity):
        now = utcnow()
        store.add_reset_code(identity, "111111", now + timedelta(minutes=15))
        newest = store.add_reset_code(identity, "111111", now + timedelta(minutes=15))

        found = store.find_valid_reset_code(identity, "111111", now)

        assert found.id == newest.id

    def test_expired_and_used_codes_not_found(self, store, identity):
        now = utcnow()
        store.add_reset_code(identity, "222222", now - timedelta(minutes=1))
        used = store.add_reset_code(identity, "333333", now + timedelta(minutes=15))
        store.redeem_reset_code(identity, used, "b" * 64)

        assert store.find_valid_reset_code(identity, "222222", now) is None
        assert store.find_valid_reset_code(identity, "333333", now) is None
        assert store.get_pin_hash(identity) == "b" * 64

    def test_codes_are_scoped_to_identity(self, db_session, store, identity):
        other = User(email="kim@timekeeper.io", password_hash="x")
        db_session.add(other)
        db_session.commit()
        other_identity = CurrentUser(user_id=other.id, email=other.email)
        store.add_reset_code(identity, "444444", utcnow() + timedelta(minutes=15))

        assert store.find_valid_reset_code(other_identity, "444444", utcnow()) is None

    def test_missing_identity_fails_fast(self, store):
        with pytest.raises(NotAuthenticated):
            store.get_pin_hash(None)
        with pytest.raises(NotAuthenticated):
            require_identity(CurrentUser(user_id=None, email=None))

    def test_database_failure_is_store_unavailable(self, identity):
        db = Mock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        store = CredentialStore(db)

        with pytest.raises(StoreUnavailable):
            store.get_pin_hash(identity)
        db.rollback.assert_called_once()
