"""Tests for license urgency classification."""

from datetime import date, datetime, timedelta

import pytest

from renovahub.domain.licenses.urgency import (
    EXPIRED,
    GREEN,
    RED,
    YELLOW,
    classify,
    days_until_renewal,
    urgency_colors,
    urgency_label,
)

TODAY = date(2025, 3, 10)


class TestDaysUntilRenewal:
    def test_signed_day_difference(self):
        """Future dates are positive, past dates negative."""
        assert days_until_renewal(TODAY + timedelta(days=12), TODAY) == 12
        assert days_until_renewal(TODAY - timedelta(days=3), TODAY) == -3

    def test_time_of_day_is_ignored(self):
        """A renewal tomorrow morning is one day away even late at night."""
        renewal = datetime(2025, 3, 11, 9, 0)
        now = datetime(2025, 3, 10, 23, 59)
        assert days_until_renewal(renewal, now) == 1


class TestClassify:
    def test_same_day_is_red_not_expired(self):
        """Due today counts as urgent, not expired."""
        assert classify(TODAY, TODAY) == RED

    def test_yesterday_is_expired(self):
        assert classify(TODAY - timedelta(days=1), TODAY) == EXPIRED

    def test_same_day_with_earlier_time_is_not_expired(self):
        """Comparison is by calendar date, not instant."""
        assert classify(datetime(2025, 3, 10, 0, 1), datetime(2025, 3, 10, 18, 0)) == RED

    @pytest.mark.parametrize("days", [1, 4, 7])
    def test_within_a_week_is_red(self, days):
        assert classify(TODAY + timedelta(days=days), TODAY) == RED

    @pytest.mark.parametrize("days", [8, 20, 30])
    def test_within_thirty_days_is_yellow(self, days):
        assert classify(TODAY + timedelta(days=days), TODAY) == YELLOW

    @pytest.mark.parametrize("days", [31, 90, 365])
    def test_beyond_thirty_days_is_green(self, days):
        assert classify(TODAY + timedelta(days=days), TODAY) == GREEN

    def test_long_past_is_expired(self):
        assert classify(TODAY - timedelta(days=400), TODAY) == EXPIRED


class TestLabels:
    def test_labels_are_spanish(self):
        assert urgency_label(EXPIRED) == "Vencida"
        assert urgency_label(RED) == "Urgente"
        assert urgency_label(YELLOW) == "Próxima"
        assert urgency_label(GREEN) == "Activa"

    def test_unknown_status_falls_back(self):
        assert urgency_label("purple") == "Desconocido"
        assert urgency_colors("purple")["bgColor"] == "#f3f4f6"
