"""Tests for expiration reminder thresholds."""

import pytest
from conftest import TODAY, fake_license

from renovahub.domain.notifications.thresholds import (
    CRITICAL,
    EXPIRED,
    INFO,
    URGENT,
    WARNING,
    decide,
    severity_for,
)


class TestSeverityFor:
    @pytest.mark.parametrize(
        "days,expected",
        [(30, INFO), (15, WARNING), (7, URGENT), (1, CRITICAL), (0, EXPIRED), (-5, EXPIRED)],
    )
    def test_threshold_days(self, days, expected):
        assert severity_for(days) == expected

    @pytest.mark.parametrize("days", [31, 29, 16, 14, 8, 6, 2, 45])
    def test_days_between_thresholds_do_not_fire(self, days):
        """Thresholds are exact day counts, not windows."""
        assert severity_for(days) is None


class TestDecide:
    def test_thirty_days_out_is_info(self):
        decision = decide(fake_license(days=30), TODAY)
        assert decision is not None
        assert decision.urgency_level == INFO
        assert decision.days_until_renewal == 30
        assert decision.title == "📅 Licencia por Vencer en 30 días"
        assert "Slack" in decision.body
        assert "09/04/2025" in decision.body

    def test_five_days_past_is_expired(self):
        decision = decide(fake_license(days=-5), TODAY)
        assert decision.urgency_level == EXPIRED
        assert decision.days_until_renewal == -5
        assert "VENCIDO" in decision.body

    def test_inactive_license_never_fires(self):
        assert decide(fake_license(days=1, status="inactive"), TODAY) is None

    def test_no_threshold_returns_none(self):
        assert decide(fake_license(days=20), TODAY) is None

    def test_payload_values_are_strings(self):
        """FCM data payloads only accept string values."""
        decision = decide(fake_license(days=1, renewal_url="https://slack.com/billing"), TODAY)
        assert decision.urgency_level == CRITICAL
        assert decision.data["type"] == "license_expiring"
        assert decision.data["licenseId"] == "lic-1"
        assert decision.data["renewal_url"] == "https://slack.com/billing"
        assert all(isinstance(v, str) for v in decision.data.values())

    def test_fires_iff_exact_threshold_or_past_due(self):
        """Across a range of day counts, only the tier days and <= 0 produce a decision."""
        for days in range(-10, 61):
            fired = decide(fake_license(days=days), TODAY) is not None
            assert fired == (days in (30, 15, 7, 1) or days <= 0), days
