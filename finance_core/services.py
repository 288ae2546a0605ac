"""Framework-agnostic business services for the finance tracker."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from .aggregation import (
    ZERO,
    CategoryShare,
    Navigation,
    Period,
    PeriodSummary,
    aggregate_period,
    category_breakdown,
    combine_transactions,
    filter_by_period,
    navigate,
    net_amount,
    sort_by_date_desc,
)
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .models import (
    EXPENSE,
    FREQUENCIES,
    RECURRING_TYPES,
    Category,
    Expense,
    Income,
    RecurringTemplate,
    Transaction,
)
from .schedule import compute_next_due_date
from .storage import JSONStorage
from .updates import EXPENSE_FIELDS, INCOME_FIELDS, CategoryUpdate, FieldUpdate
from .validators import (
    CATEGORY_NAME_MAX,
    DESCRIPTION_MAX,
    ensure_after,
    parse_amount,
    validate_bool,
    validate_color,
    validate_date,
    validate_enum,
    validate_id,
    validate_interval,
    validate_optional_date,
    validate_optional_id,
    validate_optional_str,
    validate_required_str,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_CATEGORIES = (
    ("Food", "#FF6B6B"),
    ("Transport", "#4ECDC4"),
    ("Health", "#45B7D1"),
    ("Shopping", "#96CEB4"),
    ("Entertainment", "#FFEAA7"),
    ("Bills & Utilities", "#DDA0DD"),
    ("Other", "#95A5A6"),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _next_id(records: Dict[int, object]) -> int:
    return max(records, default=0) + 1


class CategoryService:
    """Manages expense categories and persistence."""

    def __init__(self, storage: JSONStorage, resource: str = "categories.json") -> None:
        self._storage = storage
        self._resource = resource
        self._categories: Dict[int, Category] = {}
        self.load()

    def add(self, payload: Dict[str, object]) -> Category:
        data = self._validate_payload(payload)
        category = Category(**data)
        self._categories[category.id] = category
        self._persist()
        logger.info("Created category %s (%s)", category.id, category.name)
        return category

    def update(self, category_id: int, changes: Dict[str, object]) -> Category:
        existing = self._get_or_raise(category_id)
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload, current=existing)
        updated = Category(**data)
        self._categories[category_id] = updated
        self._persist()
        logger.info("Updated category %s", category_id)
        return updated

    def delete(self, category_id: int) -> None:
        self._get_or_raise(category_id)
        del self._categories[category_id]
        self._persist()
        logger.info("Deleted category %s", category_id)

    def get(self, category_id: int) -> Category:
        return self._get_or_raise(category_id)

    def exists(self, category_id: int) -> bool:
        return category_id in self._categories

    def list(self) -> List[Category]:
        return sorted(self._categories.values(), key=lambda cat: cat.name.lower())

    def seed_defaults(self) -> List[Category]:
        """Create the default categories that are missing, matching names case-insensitively."""
        known = {category.name.lower() for category in self._categories.values()}
        created = []
        for name, color in DEFAULT_CATEGORIES:
            if name.lower() in known:
                continue
            created.append(self.add({"name": name, "color": color}))
        return created

    def load(self) -> None:
        raw_records = self._storage.load(self._resource)
        self._categories = {
            int(payload["id"]): Category.from_dict(payload) for payload in raw_records
        }

    def _persist(self) -> None:
        try:
            self._storage.save(
                self._resource, [category.to_dict() for category in self._categories.values()]
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving categories") from exc

    def _get_or_raise(self, category_id: int) -> Category:
        try:
            return self._categories[category_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Category {category_id} not found") from exc

    def _validate_payload(
        self, payload: Dict[str, object], *, current: Optional[Category] = None
    ) -> Dict[str, object]:
        name = validate_required_str(payload.get("name"), "name", CATEGORY_NAME_MAX)
        canonical = name.lower()

        for category in self._categories.values():
            if current and category.id == current.id:
                continue
            if category.name.lower() == canonical:
                raise ValidationError("Category name must be unique")

        return {
            "id": current.id if current else _next_id(self._categories),
            "name": name,
            "color": validate_color(payload.get("color")),
        }


class ExpenseService:
    """Manages expense records and mediates persistence."""

    def __init__(
        self,
        storage: JSONStorage,
        categories: CategoryService,
        resource: str = "expenses.json",
        clock: Clock = _utc_now,
    ) -> None:
        self._storage = storage
        self._categories = categories
        self._resource = resource
        self._clock = clock
        self._expenses: Dict[int, Expense] = {}
        self.load()  # Hydrate in-memory cache from persistence on construction.

    # Public API -----------------------------------------------------------
    def add(self, payload: Dict[str, object]) -> Expense:
        data = self._validate_payload(payload)
        now = self._clock()
        expense = Expense(**data, created_at=now, updated_at=now)
        self._expenses[expense.id] = expense
        self._persist()
        logger.info("Created expense %s for %s", expense.id, expense.amount)
        return expense

    def update(self, expense_id: int, changes: Dict[str, object]) -> Expense:
        existing = self._get_or_raise(expense_id)
        # Merge existing serialised data with incoming changes to support partial updates.
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload, current=existing)
        updated = Expense(**data, created_at=existing.created_at, updated_at=self._clock())
        self._expenses[expense_id] = updated
        self._persist()
        logger.info("Updated expense %s", expense_id)
        return updated

    def apply_update(self, expense_id: int, update: FieldUpdate) -> Expense:
        """Apply a single validated field change."""
        existing = self._get_or_raise(expense_id)
        if isinstance(update, CategoryUpdate):
            self._ensure_category(update.value)
        changes = update.changes()
        if not set(changes) <= EXPENSE_FIELDS:
            raise ValidationError(f"Unsupported expense update: {', '.join(changes)}")
        updated = replace(existing, **changes, updated_at=self._clock())
        self._expenses[expense_id] = updated
        self._persist()
        logger.info("Updated %s of expense %s", ", ".join(changes), expense_id)
        return updated

    def delete(self, expense_id: int) -> None:
        self._get_or_raise(expense_id)
        del self._expenses[expense_id]
        self._persist()
        logger.info("Deleted expense %s", expense_id)

    def get(self, expense_id: int) -> Expense:
        """Return an expense or raise if it does not exist."""
        return self._get_or_raise(expense_id)

    def list(
        self, period: Optional[Period] = None, category_id: Optional[int] = None
    ) -> List[Expense]:
        records: Iterable[Expense] = self._expenses.values()
        if category_id is not None:
            records = [expense for expense in records if expense.category_id == category_id]
        if period is not None:
            records = filter_by_period(records, period)
        return sort_by_date_desc(records)

    def total(self, period: Optional[Period] = None, category_id: Optional[int] = None) -> Decimal:
        expenses = self.list(period, category_id)
        return sum((expense.amount for expense in expenses), start=ZERO)

    def summary(self, period: Period, category_id: Optional[int] = None) -> PeriodSummary:
        return aggregate_period(self.list(category_id=category_id), period)

    def breakdown(self, period: Period) -> List[CategoryShare]:
        return category_breakdown(self.list(period), self._categories.list())

    def navigation(
        self, expense_id: int, period: Optional[Period] = None, category_id: Optional[int] = None
    ) -> Navigation:
        self._get_or_raise(expense_id)
        return navigate(self.list(period, category_id), expense_id)

    def count_by_category(self) -> Dict[int, int]:
        counts: Dict[int, int] = {}
        for expense in self._expenses.values():
            counts[expense.category_id] = counts.get(expense.category_id, 0) + 1
        return counts

    def is_category_in_use(self, category_id: int) -> bool:
        return any(expense.category_id == category_id for expense in self._expenses.values())

    def load(self) -> None:
        """Load existing expenses from persistence."""
        raw_records = self._storage.load(self._resource)
        self._expenses = {
            int(payload["id"]): Expense.from_dict(payload) for payload in raw_records
        }

    # Internal helpers -----------------------------------------------------
    def _persist(self) -> None:
        try:
            self._storage.save(
                self._resource, [expense.to_dict() for expense in self._expenses.values()]
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving expenses") from exc

    def _get_or_raise(self, expense_id: int) -> Expense:
        try:
            return self._expenses[expense_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Expense {expense_id} not found") from exc

    def _ensure_category(self, category_id: int) -> None:
        if not self._categories.exists(category_id):
            raise ValidationError(f"category_id {category_id} does not reference a category")

    def _validate_payload(
        self, payload: Dict[str, object], *, current: Optional[Expense] = None
    ) -> Dict[str, object]:
        category_id = validate_id(payload.get("category_id"), "category_id")
        self._ensure_category(category_id)
        return {
            "id": current.id if current else _next_id(self._expenses),
            "date": validate_date(payload.get("date"), "date"),
            "amount": parse_amount(payload.get("amount"), "amount"),
            "category_id": category_id,
            "description": validate_optional_str(
                payload.get("description"), "description", DESCRIPTION_MAX
            ),
        }


class IncomeService:
    """Manages income records and mediates persistence."""

    def __init__(
        self,
        storage: JSONStorage,
        resource: str = "incomes.json",
        clock: Clock = _utc_now,
    ) -> None:
        self._storage = storage
        self._resource = resource
        self._clock = clock
        self._incomes: Dict[int, Income] = {}
        self.load()  # Hydrate in-memory cache from persistence on construction.

    def add(self, payload: Dict[str, object]) -> Income:
        data = self._validate_payload(payload)
        now = self._clock()
        income = Income(**data, created_at=now, updated_at=now)
        self._incomes[income.id] = income
        self._persist()
        logger.info("Created income %s for %s", income.id, income.amount)
        return income

    def update(self, income_id: int, changes: Dict[str, object]) -> Income:
        existing = self._get_or_raise(income_id)
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload, current=existing)
        updated = Income(**data, created_at=existing.created_at, updated_at=self._clock())
        self._incomes[income_id] = updated
        self._persist()
        logger.info("Updated income %s", income_id)
        return updated

    def apply_update(self, income_id: int, update: FieldUpdate) -> Income:
        existing = self._get_or_raise(income_id)
        changes = update.changes()
        if not set(changes) <= INCOME_FIELDS:
            raise ValidationError(f"Unsupported income update: {', '.join(changes)}")
        updated = replace(existing, **changes, updated_at=self._clock())
        self._incomes[income_id] = updated
        self._persist()
        logger.info("Updated %s of income %s", ", ".join(changes), income_id)
        return updated

    def delete(self, income_id: int) -> None:
        self._get_or_raise(income_id)
        del self._incomes[income_id]
        self._persist()
        logger.info("Deleted income %s", income_id)

    def get(self, income_id: int) -> Income:
        """Return an income or raise if it does not exist."""
        return self._get_or_raise(income_id)

    def list(self, period: Optional[Period] = None) -> List[Income]:
        records: Iterable[Income] = self._incomes.values()
        if period is not None:
            records = filter_by_period(records, period)
        return sort_by_date_desc(records)

    def total(self, period: Optional[Period] = None) -> Decimal:
        incomes = self.list(period)
        return sum((income.amount for income in incomes), start=ZERO)

    def summary(self, period: Period) -> PeriodSummary:
        return aggregate_period(self.list(), period)

    def navigation(self, income_id: int, period: Optional[Period] = None) -> Navigation:
        self._get_or_raise(income_id)
        return navigate(self.list(period), income_id)

    def load(self) -> None:
        raw_records = self._storage.load(self._resource)
        self._incomes = {
            int(payload["id"]): Income.from_dict(payload) for payload in raw_records
        }

    def _persist(self) -> None:
        try:
            self._storage.save(
                self._resource, [income.to_dict() for income in self._incomes.values()]
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving incomes") from exc

    def _get_or_raise(self, income_id: int) -> Income:
        try:
            return self._incomes[income_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Income {income_id} not found") from exc

    def _validate_payload(
        self, payload: Dict[str, object], *, current: Optional[Income] = None
    ) -> Dict[str, object]:
        return {
            "id": current.id if current else _next_id(self._incomes),
            "date": validate_date(payload.get("date"), "date"),
            "amount": parse_amount(payload.get("amount"), "amount"),
            "description": validate_optional_str(
                payload.get("description"), "description", DESCRIPTION_MAX
            ),
        }


class RecurringTemplateService:
    """Manages recurring templates; ``next_due_date`` is always derived, never accepted."""

    def __init__(
        self,
        storage: JSONStorage,
        categories: CategoryService,
        resource: str = "recurring_templates.json",
        clock: Clock = _utc_now,
    ) -> None:
        self._storage = storage
        self._categories = categories
        self._resource = resource
        self._clock = clock
        self._templates: Dict[int, RecurringTemplate] = {}
        self.load()

    def add(self, payload: Dict[str, object]) -> RecurringTemplate:
        data = self._validate_payload(payload)
        now = self._clock()
        template = RecurringTemplate(**data, created_at=now, updated_at=now)
        self._templates[template.id] = template
        self._persist()
        logger.info(
            "Created recurring template %s, next due %s", template.id, template.next_due_date
        )
        return template

    def update(self, template_id: int, changes: Dict[str, object]) -> RecurringTemplate:
        existing = self._get_or_raise(template_id)
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload, current=existing)
        updated = RecurringTemplate(
            **data, created_at=existing.created_at, updated_at=self._clock()
        )
        self._templates[template_id] = updated
        self._persist()
        if updated.next_due_date != existing.next_due_date:
            logger.info(
                "Recurring template %s rescheduled from %s to %s",
                template_id,
                existing.next_due_date,
                updated.next_due_date,
            )
        return updated

    def toggle(self, template_id: int) -> RecurringTemplate:
        existing = self._get_or_raise(template_id)
        updated = replace(existing, is_active=not existing.is_active, updated_at=self._clock())
        self._templates[template_id] = updated
        self._persist()
        logger.info("Recurring template %s active=%s", template_id, updated.is_active)
        return updated

    def delete(self, template_id: int) -> None:
        self._get_or_raise(template_id)
        del self._templates[template_id]
        self._persist()
        logger.info("Deleted recurring template %s", template_id)

    def get(self, template_id: int) -> RecurringTemplate:
        return self._get_or_raise(template_id)

    def list(self, active_only: bool = False) -> List[RecurringTemplate]:
        templates = [
            template
            for template in self._templates.values()
            if template.is_active or not active_only
        ]
        # Newest first.
        return sorted(templates, key=lambda template: template.created_at, reverse=True)

    def due_on_or_before(self, day: date) -> List[RecurringTemplate]:
        """Active templates whose stored due date has been reached by ``day``."""
        return sorted(
            (
                template
                for template in self._templates.values()
                if template.is_active and template.next_due_date <= day
            ),
            key=lambda template: template.next_due_date,
        )

    def is_category_in_use(self, category_id: int) -> bool:
        return any(
            template.category_id == category_id for template in self._templates.values()
        )

    def load(self) -> None:
        raw_records = self._storage.load(self._resource)
        self._templates = {
            int(payload["id"]): RecurringTemplate.from_dict(payload) for payload in raw_records
        }

    def _persist(self) -> None:
        try:
            self._storage.save(
                self._resource, [template.to_dict() for template in self._templates.values()]
            )
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError("Unexpected error while saving recurring templates") from exc

    def _get_or_raise(self, template_id: int) -> RecurringTemplate:
        try:
            return self._templates[template_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Recurring template {template_id} not found") from exc

    def _validate_payload(
        self, payload: Dict[str, object], *, current: Optional[RecurringTemplate] = None
    ) -> Dict[str, object]:
        template_type = validate_enum(payload.get("type"), "type", RECURRING_TYPES)
        frequency = validate_enum(payload.get("frequency"), "frequency", FREQUENCIES)
        interval = validate_interval(payload.get("interval"))
        start_date = validate_date(payload.get("start_date"), "start_date")
        end_date = validate_optional_date(payload.get("end_date"), "end_date")
        ensure_after(start_date, end_date, "start_date", "end_date")

        category_id = validate_optional_id(payload.get("category_id"), "category_id")
        if template_type == EXPENSE:
            if category_id is None:
                raise ValidationError("category_id is required for expense templates")
            if not self._categories.exists(category_id):
                raise ValidationError(
                    f"category_id {category_id} does not reference a category"
                )
        else:
            category_id = None

        is_active = payload.get("is_active")
        return {
            "id": current.id if current else _next_id(self._templates),
            "type": template_type,
            "amount": parse_amount(payload.get("amount"), "amount"),
            "description": validate_optional_str(
                payload.get("description"), "description", DESCRIPTION_MAX
            ),
            "category_id": category_id,
            "frequency": frequency,
            "interval": interval,
            "start_date": start_date,
            "end_date": end_date,
            "next_due_date": compute_next_due_date(start_date, frequency, interval),
            "is_active": True if is_active is None else validate_bool(is_active, "is_active"),
        }


class LedgerService:
    """Combines expenses and incomes into transactions and balances."""

    def __init__(self, expense_service: ExpenseService, income_service: IncomeService) -> None:
        self._expenses = expense_service
        self._incomes = income_service

    def transactions(self, period: Optional[Period] = None) -> List[Transaction]:
        return combine_transactions(self._expenses.list(period), self._incomes.list(period))

    def balance(self, period: Optional[Period] = None) -> Decimal:
        """Compute income minus expenses for the period."""
        return net_amount(self._incomes.total(period), self._expenses.total(period))

    def refresh(self) -> None:
        """Reload data from persistence for both services."""
        self._expenses.load()
        self._incomes.load()
