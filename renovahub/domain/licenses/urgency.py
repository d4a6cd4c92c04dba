"""License urgency classification - derived on every read, never stored"""

from datetime import date, datetime
from typing import Union

EXPIRED = "expired"
RED = "red"
YELLOW = "yellow"
GREEN = "green"

URGENCY_STATUSES = (EXPIRED, RED, YELLOW, GREEN)

RED_WINDOW_DAYS = 7
YELLOW_WINDOW_DAYS = 30

URGENCY_LABELS = {
    EXPIRED: "Vencida",
    RED: "Urgente",
    YELLOW: "Próxima",
    GREEN: "Activa",
}

URGENCY_COLORS = {
    EXPIRED: {"bgColor": "#fee2e2", "textColor": "#991b1b", "borderColor": "#ef4444"},
    RED: {"bgColor": "#fee2e2", "textColor": "#991b1b", "borderColor": "#ef4444"},
    YELLOW: {"bgColor": "#fef9c3", "textColor": "#854d0e", "borderColor": "#eab308"},
    GREEN: {"bgColor": "#dcfce7", "textColor": "#166534", "borderColor": "#22c55e"},
}


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until_renewal(renewal_date: Union[date, datetime], today: Union[date, datetime]) -> int:
    """
    Signed whole calendar days from today to the renewal date.

    Time of day is discarded on both sides, so a renewal at 09:00 tomorrow
    is always 1 day away regardless of when the check runs.
    """
    return (_as_date(renewal_date) - _as_date(today)).days


def classify(renewal_date: Union[date, datetime], today: Union[date, datetime]) -> str:
    """Map a renewal date to one of: expired, red, yellow, green"""
    days = days_until_renewal(renewal_date, today)

    # Same calendar day is "due today", not expired
    if days < 0:
        return EXPIRED
    if days <= RED_WINDOW_DAYS:
        return RED
    if days <= YELLOW_WINDOW_DAYS:
        return YELLOW
    return GREEN


def urgency_label(status: str) -> str:
    return URGENCY_LABELS.get(status, "Desconocido")


def urgency_colors(status: str) -> dict:
    return URGENCY_COLORS.get(
        status, {"bgColor": "#f3f4f6", "textColor": "#1f2937", "borderColor": "#d1d5db"}
    )
