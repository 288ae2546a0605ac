"""Data models for the finance tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Union

__all__ = [
    "Category",
    "Expense",
    "Income",
    "RecurringTemplate",
    "Transaction",
    "EXPENSE",
    "INCOME",
    "WEEKLY",
    "MONTHLY",
    "YEARLY",
    "FREQUENCIES",
    "RECURRING_TYPES",
    "isoformat_utc",
    "parse_datetime",
    "parse_date",
]

EXPENSE = "EXPENSE"
INCOME = "INCOME"
RECURRING_TYPES = (EXPENSE, INCOME)

WEEKLY = "WEEKLY"
MONTHLY = "MONTHLY"
YEARLY = "YEARLY"
FREQUENCIES = (WEEKLY, MONTHLY, YEARLY)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="seconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: str) -> date:
    """Parse a calendar date, accepting a full ISO timestamp and keeping its date part."""
    value = value.strip()
    if "T" in value:
        value = value.split("T", 1)[0]
    return date.fromisoformat(value)


def _optional_date(value: Optional[str]) -> Optional[date]:
    return parse_date(value) if value else None


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(id=int(data["id"]), name=data["name"], color=data.get("color"))


@dataclass(frozen=True)
class Expense:
    id: int
    date: date
    amount: Decimal
    category_id: int
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": f"{self.amount:.2f}",
            "category_id": self.category_id,
            "description": self.description,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data."""
        return cls(
            id=int(data["id"]),
            date=parse_date(data["date"]),
            amount=Decimal(str(data["amount"])),
            category_id=int(data["category_id"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Income:
    id: int
    date: date
    amount: Decimal
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the income to JSON-friendly natives."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": f"{self.amount:.2f}",
            "description": self.description,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Income":
        """Hydrate an Income from JSON-native data."""
        return cls(
            id=int(data["id"]),
            date=parse_date(data["date"]),
            amount=Decimal(str(data["amount"])),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class RecurringTemplate:
    id: int
    type: str
    amount: Decimal
    frequency: str
    interval: int
    start_date: date
    next_due_date: date
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    category_id: Optional[int] = None
    end_date: Optional[date] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "amount": f"{self.amount:.2f}",
            "description": self.description,
            "category_id": self.category_id,
            "frequency": self.frequency,
            "interval": self.interval,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "next_due_date": self.next_due_date.isoformat(),
            "is_active": self.is_active,
            "created_at": isoformat_utc(self.created_at),
            "updated_at": isoformat_utc(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecurringTemplate":
        category_id = data.get("category_id")
        return cls(
            id=int(data["id"]),
            type=data["type"],
            amount=Decimal(str(data["amount"])),
            frequency=data["frequency"],
            interval=int(data["interval"]),
            start_date=parse_date(data["start_date"]),
            next_due_date=parse_date(data["next_due_date"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            description=data.get("description"),
            category_id=int(category_id) if category_id is not None else None,
            end_date=_optional_date(data.get("end_date")),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass(frozen=True)
class Transaction:
    """Display-time union of an expense or an income, tagged by ``type``."""

    type: str
    record: Union[Expense, Income]

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def date(self) -> date:
        return self.record.date

    @property
    def amount(self) -> Decimal:
        return self.record.amount

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.record.to_dict()}
