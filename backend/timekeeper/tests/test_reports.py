"""
Earnings report tests.
"""
from decimal import Decimal
from fastapi import status

from .test_base import API, BaseAPITest
from .test_profiles import create_profile
from .test_time_entries import add_entry


class TestEarningsReport(BaseAPITest):
    """Test cases for the earnings report."""

    base_url = f"{API}/reports/earnings"

    def seed(self, client, headers):
        design = create_profile(client, headers, name="Design", hourly_rate="50.00")
        backend = create_profile(client, headers, name="Backend", hourly_rate="90.00")
        add_entry(client, headers, design["id"],
                  clock_in="2024-03-01T09:00:00Z", clock_out="2024-03-01T11:30:00Z")
        add_entry(client, headers, backend["id"],
                  clock_in="2024-03-02T13:00:00Z", clock_out="2024-03-02T14:20:00Z")
        add_entry(client, headers, backend["id"],
                  clock_in="2024-03-03T23:30:00Z", clock_out="2024-03-04T00:30:00Z")
        # Outside the period
        add_entry(client, headers, design["id"],
                  clock_in="2024-03-05T09:00:00Z", clock_out="2024-03-05T10:00:00Z")
        return design, backend

    def test_report_totals_and_breakdown(self, client, open_headers):
        design, backend = self.seed(client, open_headers)

        result = client.get(self.base_url, params={"start_date": "2024-03-01", "end_date": "2024-03-03"},
                            headers=open_headers)

        self.assert_success_response(result)
        report = result.json()
        assert report["entry_count"] == 3
        # 2.5h + 1h20m + 1h
        assert report["total_hours"] == 4.83
        # 125.00 + 120.00 + 90.00
        assert Decimal(report["total_earnings"]) == Decimal("335.00")

        assert [line["name"] for line in report["profiles"]] == ["Backend", "Design"]
        backend_line, design_line = report["profiles"]
        assert backend_line["profile_id"] == backend["id"]
        assert backend_line["entry_count"] == 2
        assert backend_line["hours"] == 2.33
        assert Decimal(backend_line["earnings"]) == Decimal("210.00")
        assert design_line["hours"] == 2.5
        assert Decimal(design_line["earnings"]) == Decimal("125.00")

    def test_entry_counts_toward_clock_in_day(self, client, open_headers):
        self.seed(client, open_headers)

        result = client.get(self.base_url, params={"start_date": "2024-03-04", "end_date": "2024-03-04"},
                            headers=open_headers)

        assert result.json()["entry_count"] == 0

    def test_report_filtered_by_profile(self, client, open_headers):
        design, _ = self.seed(client, open_headers)

        result = client.get(self.base_url, params={
            "start_date": "2024-03-01", "end_date": "2024-03-31", "profile_ids": [design["id"]]
        }, headers=open_headers)

        report = result.json()
        assert report["entry_count"] == 2
        assert [line["name"] for line in report["profiles"]] == ["Design"]
        assert Decimal(report["total_earnings"]) == Decimal("175.00")

    def test_running_entries_left_out(self, client, open_headers):
        profile = create_profile(client, open_headers)
        client.post(f"{API}/clock/in", json={"profile_id": profile["id"]}, headers=open_headers)

        result = client.get(self.base_url, params={"start_date": "2000-01-01", "end_date": "2099-12-31"},
                            headers=open_headers)

        assert result.json()["entry_count"] == 0
        assert Decimal(result.json()["total_earnings"]) == Decimal("0")

    def test_inverted_period_rejected(self, client, open_headers):
        result = client.get(self.base_url, params={"start_date": "2024-03-05", "end_date": "2024-03-01"},
                            headers=open_headers)

        self.assert_error_response(result, status.HTTP_422_UNPROCESSABLE_ENTITY, "end_date must not be before start_date")

    def test_report_is_per_user(self, client, open_headers, other_auth_headers):
        self.seed(client, open_headers)

        result = client.get(self.base_url, params={"start_date": "2024-03-01", "end_date": "2024-03-31"},
                            headers=other_auth_headers)

        assert result.json()["entry_count"] == 0
        assert result.json()["profiles"] == []
