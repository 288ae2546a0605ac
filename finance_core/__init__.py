"""Core business logic package for the finance tracker."""

from .aggregation import Period, PeriodSummary, aggregate_period, parse_period
from .models import Category, Expense, Income, RecurringTemplate, Transaction
from .schedule import compute_next_due_date, due_status
from .services import (
    CategoryService,
    ExpenseService,
    IncomeService,
    LedgerService,
    RecurringTemplateService,
)
from .storage import JSONStorage
from .exceptions import PersistenceError, ValidationError, RecordNotFoundError

__all__ = [
    "Category",
    "Expense",
    "Income",
    "RecurringTemplate",
    "Transaction",
    "Period",
    "PeriodSummary",
    "aggregate_period",
    "parse_period",
    "compute_next_due_date",
    "due_status",
    "CategoryService",
    "ExpenseService",
    "IncomeService",
    "LedgerService",
    "RecurringTemplateService",
    "JSONStorage",
    "PersistenceError",
    "ValidationError",
    "RecordNotFoundError",
]
