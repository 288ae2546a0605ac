"""Due-date arithmetic for recurring templates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict

from .exceptions import ValidationError
from .models import FREQUENCIES, MONTHLY, WEEKLY, YEARLY

__all__ = [
    "DueStatus",
    "add_months",
    "add_years",
    "compute_next_due_date",
    "describe_frequency",
    "due_status",
]


def add_months(start: date, months: int) -> date:
    """Advance ``start`` by ``months`` calendar months.

    Days past the end of the target month roll over into the following
    month instead of being clamped: Jan 31 plus one month is Mar 2 in a
    leap year and Mar 3 otherwise.
    """
    index = start.month - 1 + months
    year = start.year + index // 12
    month = index % 12 + 1
    return date(year, month, 1) + timedelta(days=start.day - 1)


def add_years(start: date, years: int) -> date:
    """Advance ``start`` by ``years``; Feb 29 rolls to Mar 1 on non-leap targets."""
    return add_months(start, years * 12)


def compute_next_due_date(start_date: date, frequency: str, interval: int) -> date:
    """Return the date a recurring template next falls due after ``start_date``."""
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise ValidationError("interval must be an integer of at least 1")

    if frequency not in FREQUENCIES:
        raise ValidationError(
            f"frequency must be one of: {', '.join(FREQUENCIES)} (got {frequency!r})"
        )

    try:
        if frequency == WEEKLY:
            return start_date + timedelta(days=7 * interval)
        if frequency == MONTHLY:
            return add_months(start_date, interval)
        return add_years(start_date, interval)
    except (ValueError, OverflowError) as exc:
        raise ValidationError("next due date falls outside the supported calendar range") from exc


@dataclass(frozen=True)
class DueStatus:
    days: int
    overdue: bool
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"days": self.days, "overdue": self.overdue, "label": self.label}


def due_status(next_due_date: date, today: date) -> DueStatus:
    """Compare a stored due date against ``today`` for display."""
    days = (next_due_date - today).days
    if days < 0:
        overdue_days = abs(days)
        unit = "day" if overdue_days == 1 else "days"
        return DueStatus(days, True, f"{overdue_days} {unit} overdue")
    if days == 0:
        return DueStatus(days, False, "Due today")
    if days == 1:
        return DueStatus(days, False, "Due tomorrow")
    return DueStatus(days, False, f"Due in {days} days")


_FREQUENCY_LABELS = {
    WEEKLY: ("Weekly", "weeks"),
    MONTHLY: ("Monthly", "months"),
    YEARLY: ("Yearly", "years"),
}


def describe_frequency(frequency: str, interval: int) -> str:
    try:
        single, plural = _FREQUENCY_LABELS[frequency]
    except KeyError:
        return frequency
    if interval == 1:
        return single
    return f"Every {interval} {plural}"
