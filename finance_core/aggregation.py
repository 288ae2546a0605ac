"""Period-scoped totals, ordering and chart data over expenses and incomes."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .exceptions import RecordNotFoundError, ValidationError
from .models import Category, Expense, Income, Transaction

__all__ = [
    "ALL_TIME",
    "CategoryShare",
    "Navigation",
    "Period",
    "PeriodSummary",
    "aggregate_period",
    "category_breakdown",
    "combine_transactions",
    "days_in_month",
    "filter_by_period",
    "format_signed",
    "navigate",
    "net_amount",
    "parse_period",
    "sort_by_date_desc",
]

ALL_TIME = "all"
ZERO = Decimal("0.00")

T = TypeVar("T")


def _quantize(amount: Decimal, places: str = "0.01") -> Decimal:
    return amount.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class Period:
    """Either a single calendar month or the whole recorded history."""

    year: Optional[int] = None
    month: Optional[int] = None

    @classmethod
    def month_of(cls, year: int, month: int) -> "Period":
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        if not MINYEAR <= year <= MAXYEAR:
            raise ValidationError(f"year must be between {MINYEAR} and {MAXYEAR}")
        return cls(year=year, month=month)

    @classmethod
    def all_time(cls) -> "Period":
        return cls()

    @property
    def is_all_time(self) -> bool:
        return self.month is None

    def bounds(self) -> Tuple[date, date]:
        """Inclusive first and last day of the selected month."""
        if self.is_all_time:
            raise ValueError("an all-time period has no bounds")
        last_day = days_in_month(self.year, self.month)
        return date(self.year, self.month, 1), date(self.year, self.month, last_day)

    def contains(self, day: date) -> bool:
        if self.is_all_time:
            return True
        start, end = self.bounds()
        return start <= day <= end

    def to_dict(self) -> Dict[str, Any]:
        if self.is_all_time:
            return {"month": ALL_TIME, "year": ALL_TIME}
        return {"month": self.month, "year": self.year}


def parse_period(
    month: Optional[str], year: Optional[str], today: Optional[date] = None
) -> Period:
    """Build a period from raw query values; either value set to ``all`` selects all time."""
    if month == ALL_TIME or year == ALL_TIME:
        return Period.all_time()
    today = today or date.today()
    try:
        month_number = int(month) if month not in (None, "") else today.month
        year_number = int(year) if year not in (None, "") else today.year
    except (TypeError, ValueError) as exc:
        raise ValidationError("month and year must be integers or 'all'") from exc
    return Period.month_of(year_number, month_number)


@dataclass(frozen=True)
class PeriodSummary:
    total_amount: Decimal
    transaction_count: int
    distinct_category_count: int
    average_per_day: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_amount": f"{self.total_amount:.2f}",
            "transaction_count": self.transaction_count,
            "distinct_category_count": self.distinct_category_count,
            "average_per_day": f"{self.average_per_day:.2f}",
        }


def filter_by_period(records: Iterable[T], period: Period) -> List[T]:
    return [record for record in records if period.contains(record.date)]


def aggregate_period(records: Iterable[Any], period: Period) -> PeriodSummary:
    """Sum, count and average the records that fall inside ``period``."""
    included = filter_by_period(records, period)
    if not included:
        return PeriodSummary(ZERO, 0, 0, ZERO)

    total = sum((record.amount for record in included), start=ZERO)
    categories = {
        getattr(record, "category_id", None) for record in included
    }
    categories.discard(None)

    if period.is_all_time:
        dates = [record.date for record in included]
        day_count = (max(dates) - min(dates)).days + 1
    else:
        # Full calendar length of the month, even while it is still in progress.
        day_count = days_in_month(period.year, period.month)

    average = _quantize(total / day_count) if day_count > 0 else ZERO
    return PeriodSummary(
        total_amount=total,
        transaction_count=len(included),
        distinct_category_count=len(categories),
        average_per_day=average,
    )


def sort_by_date_desc(records: Iterable[T]) -> List[T]:
    """Most recent first; records sharing a date keep their incoming order."""
    return sorted(records, key=lambda record: record.date, reverse=True)


@dataclass(frozen=True)
class Navigation:
    index: int
    total: int
    previous: Optional[Any]
    next: Optional[Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.index + 1,
            "total": self.total,
            "previous": self.previous.to_dict() if self.previous else None,
            "next": self.next.to_dict() if self.next else None,
        }


def navigate(
    records: Sequence[T], record_id: int, record_type: Optional[str] = None
) -> Navigation:
    """Locate ``record_id`` in date-descending order and return its neighbours.

    Expense and income ids overlap, so over a ``combine_transactions`` listing
    pass ``record_type`` ("expense" or "income") to match on both.
    """
    ordered = sort_by_date_desc(records)
    for index, record in enumerate(ordered):
        if record.id != record_id:
            continue
        if record_type is not None and getattr(record, "type", None) != record_type:
            continue
        previous = ordered[index - 1] if index > 0 else None
        following = ordered[index + 1] if index < len(ordered) - 1 else None
        return Navigation(index, len(ordered), previous, following)
    label = f"{record_type} {record_id}" if record_type else f"Record {record_id}"
    raise RecordNotFoundError(f"{label} is not part of the listing")


def net_amount(total_income: Decimal, total_expenses: Decimal) -> Decimal:
    return total_income - total_expenses


def format_signed(amount: Decimal) -> str:
    if amount >= 0:
        return f"+{amount:.2f}"
    return f"{amount:.2f}"


def combine_transactions(
    expenses: Iterable[Expense], incomes: Iterable[Income]
) -> List[Transaction]:
    tagged = [Transaction("expense", expense) for expense in expenses]
    tagged.extend(Transaction("income", income) for income in incomes)
    return sort_by_date_desc(tagged)


@dataclass(frozen=True)
class CategoryShare:
    category_id: int
    name: str
    color: Optional[str]
    total: Decimal
    percentage: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "color": self.color,
            "total": f"{self.total:.2f}",
            "percentage": f"{self.percentage:.1f}",
        }


def category_breakdown(
    expenses: Iterable[Expense], categories: Iterable[Category]
) -> List[CategoryShare]:
    """Group expense totals by category for the spending chart, largest first."""
    lookup = {category.id: category for category in categories}
    totals: Dict[int, Decimal] = {}
    for expense in expenses:
        totals[expense.category_id] = totals.get(expense.category_id, ZERO) + expense.amount

    grand_total = sum(totals.values(), start=ZERO)
    shares = []
    for category_id, total in totals.items():
        category = lookup.get(category_id)
        percentage = (
            _quantize(total * 100 / grand_total, "0.1") if grand_total > 0 else Decimal("0.0")
        )
        shares.append(
            CategoryShare(
                category_id=category_id,
                name=category.name if category else f"Category {category_id}",
                color=category.color if category else None,
                total=total,
                percentage=percentage,
            )
        )
    return sorted(shares, key=lambda share: share.total, reverse=True)
