"""Console interface for the finance tracker."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from finance_core.aggregation import Period, format_signed, parse_period
from finance_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from finance_core.models import FREQUENCIES, RECURRING_TYPES
from finance_core.schedule import describe_frequency, due_status
from finance_core.services import (
    CategoryService,
    ExpenseService,
    IncomeService,
    LedgerService,
    RecurringTemplateService,
)
from finance_core.storage import JSONStorage

DATE_FORMAT = "YYYY-MM-DD"


def _parse_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format {DATE_FORMAT}."
        ) from exc
    return value


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except Exception as exc:  # pragma: no cover - delegated to service
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


@dataclass
class Services:
    categories: CategoryService
    expenses: ExpenseService
    incomes: IncomeService
    recurring: RecurringTemplateService
    ledger: LedgerService


def _load_services(data_dir: Path) -> Services:
    storage = JSONStorage(data_dir)
    categories = CategoryService(storage)
    expenses = ExpenseService(storage, categories)
    incomes = IncomeService(storage)
    return Services(
        categories=categories,
        expenses=expenses,
        incomes=incomes,
        recurring=RecurringTemplateService(storage, categories),
        ledger=LedgerService(expenses, incomes),
    )


def _period_from_args(args: argparse.Namespace) -> Period:
    if getattr(args, "all", False):
        return Period.all_time()
    month = str(args.month) if args.month is not None else None
    year = str(args.year) if args.year is not None else None
    return parse_period(month, year)


def _format_expense(expense: Dict[str, Any], category_name: str) -> str:
    return (
        f"[{expense['id']}] {expense['date']} {expense['amount']} ({category_name})\n"
        f"  Description: {expense.get('description') or '-'}\n"
    )


def _format_income(income: Dict[str, Any]) -> str:
    return (
        f"[{income['id']}] {income['date']} {income['amount']}\n"
        f"  Description: {income.get('description') or '-'}\n"
    )


def _format_template(template: Dict[str, Any], status: str, label: str) -> str:
    state = "active" if template["is_active"] else "inactive"
    category = template.get("category_id") or "-"
    return (
        f"[{template['id']}] {template['type']} {template['amount']} {label} ({state})\n"
        f"  Starts: {template['start_date']} | Ends: {template.get('end_date') or '-'}"
        f" | Category: {category}\n"
        f"  Next due: {template['next_due_date']} ({status})\n"
    )


def handle_category(args: argparse.Namespace, services: Services) -> None:
    if args.command == "add":
        category = services.categories.add({"name": args.name, "color": args.color})
        print(f"Category added: [{category.id}] {category.name}")
    elif args.command == "list":
        counts = services.expenses.count_by_category()
        categories = services.categories.list()
        if not categories:
            print("No categories found.")
            return
        for category in categories:
            print(
                f"[{category.id}] {category.name} {category.color or ''} "
                f"({counts.get(category.id, 0)} expenses)"
            )


def handle_expense(args: argparse.Namespace, services: Services) -> None:
    service = services.expenses
    if args.command == "add":
        payload = {
            "amount": args.amount,
            "category_id": args.category_id,
            "date": args.date,
            "description": args.description,
        }
        expense = service.add(payload)
        name = services.categories.get(expense.category_id).name
        print("Expense added:\n" + _format_expense(expense.to_dict(), name))
    elif args.command == "list":
        period = _period_from_args(args)
        expenses = service.list(period, args.category_id)
        if not expenses:
            print("No expenses found.")
            return
        summary = service.summary(period, args.category_id)
        names = {category.id: category.name for category in services.categories.list()}
        print(
            f"Found {summary.transaction_count} expenses (total {summary.total_amount:.2f}, "
            f"{summary.average_per_day:.2f} per day):"
        )
        for expense in expenses:
            print(_format_expense(expense.to_dict(), names.get(expense.category_id, "?")))
    elif args.command == "delete":
        service.delete(args.id)
        print(f"Expense {args.id} deleted.")


def handle_income(args: argparse.Namespace, services: Services) -> None:
    service = services.incomes
    if args.command == "add":
        payload = {
            "amount": args.amount,
            "date": args.date,
            "description": args.description,
        }
        income = service.add(payload)
        print("Income added:\n" + _format_income(income.to_dict()))
    elif args.command == "list":
        period = _period_from_args(args)
        incomes = service.list(period)
        if not incomes:
            print("No incomes found.")
            return
        total = service.total(period)
        print(f"Found {len(incomes)} incomes (total {total:.2f}):")
        for income in incomes:
            print(_format_income(income.to_dict()))
    elif args.command == "delete":
        service.delete(args.id)
        print(f"Income {args.id} deleted.")


def handle_recurring(args: argparse.Namespace, services: Services) -> None:
    service = services.recurring
    if args.command == "add":
        payload = {
            "type": args.type,
            "amount": args.amount,
            "frequency": args.frequency,
            "interval": args.interval,
            "start_date": args.start_date,
            "end_date": args.end_date,
            "category_id": args.category_id,
            "description": args.description,
        }
        template = service.add(payload)
        print(f"Recurring template {template.id} added, next due {template.next_due_date}.")
    elif args.command == "list":
        templates = service.list(active_only=args.active)
        if not templates:
            print("No recurring templates found.")
            return
        today = date.today()
        for template in templates:
            status = due_status(template.next_due_date, today).label
            label = describe_frequency(template.frequency, template.interval)
            print(_format_template(template.to_dict(), status, label))
    elif args.command == "toggle":
        template = service.toggle(args.id)
        state = "active" if template.is_active else "inactive"
        print(f"Recurring template {template.id} is now {state}.")


def handle_summary(args: argparse.Namespace, services: Services) -> None:
    period = _period_from_args(args)
    expenses = services.expenses.summary(period)
    incomes = services.incomes.summary(period)
    balance = services.ledger.balance(period)
    label = "all time" if period.is_all_time else f"{period.year}-{period.month:02d}"
    print(f"Summary for {label}")
    print(
        f"  Expenses: {expenses.total_amount:.2f} across {expenses.transaction_count} records "
        f"in {expenses.distinct_category_count} categories ({expenses.average_per_day:.2f} per day)"
    )
    print(f"  Incomes: {incomes.total_amount:.2f} across {incomes.transaction_count} records")
    print(f"  Net: {format_signed(balance)}")
    for share in services.expenses.breakdown(period):
        print(f"    {share.name}: {share.total:.2f} ({share.percentage:.1f}%)")


def handle_seed(args: argparse.Namespace, services: Services) -> None:
    created = services.categories.seed_defaults()
    print(f"Seeded {len(created)} categories.")


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--month", type=int, help="Month number (default: current month)")
    parser.add_argument("--year", type=int, help="Year (default: current year)")
    parser.add_argument("--all", action="store_true", help="Include all recorded history")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Finance Tracker CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )

    subparsers = parser.add_subparsers(dest="entity", required=True)

    category_parser = subparsers.add_parser("category", help="Manage categories")
    category_sub = category_parser.add_subparsers(dest="command", required=True)
    category_add = category_sub.add_parser("add", help="Add a new category")
    category_add.add_argument("name")
    category_add.add_argument("--color")
    category_sub.add_parser("list", help="List categories")

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("category_id", type=int)
    expense_add.add_argument("date", type=_parse_date)
    expense_add.add_argument("--description")

    expense_list = expense_sub.add_parser("list", help="List expenses")
    _add_period_arguments(expense_list)
    expense_list.add_argument("--category-id", dest="category_id", type=int)

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id", type=int)

    income_parser = subparsers.add_parser("income", help="Manage incomes")
    income_sub = income_parser.add_subparsers(dest="command", required=True)

    income_add = income_sub.add_parser("add", help="Add a new income")
    income_add.add_argument("amount", type=_parse_amount)
    income_add.add_argument("date", type=_parse_date)
    income_add.add_argument("--description")

    income_list = income_sub.add_parser("list", help="List incomes")
    _add_period_arguments(income_list)

    income_delete = income_sub.add_parser("delete", help="Delete an income")
    income_delete.add_argument("id", type=int)

    recurring_parser = subparsers.add_parser("recurring", help="Manage recurring templates")
    recurring_sub = recurring_parser.add_subparsers(dest="command", required=True)

    recurring_add = recurring_sub.add_parser("add", help="Add a recurring template")
    recurring_add.add_argument("type", type=str.upper, choices=RECURRING_TYPES)
    recurring_add.add_argument("amount", type=_parse_amount)
    recurring_add.add_argument("frequency", type=str.upper, choices=FREQUENCIES)
    recurring_add.add_argument("start_date", type=_parse_date)
    recurring_add.add_argument("--interval", type=int, default=1)
    recurring_add.add_argument("--end-date", dest="end_date", type=_parse_date)
    recurring_add.add_argument("--category-id", dest="category_id", type=int)
    recurring_add.add_argument("--description")

    recurring_list = recurring_sub.add_parser("list", help="List recurring templates")
    recurring_list.add_argument("--active", action="store_true", help="Only active templates")

    recurring_toggle = recurring_sub.add_parser("toggle", help="Activate or pause a template")
    recurring_toggle.add_argument("id", type=int)

    summary_parser = subparsers.add_parser("summary", help="Show period totals")
    _add_period_arguments(summary_parser)

    subparsers.add_parser("seed", help="Create the default categories")

    return parser


HANDLERS = {
    "category": handle_category,
    "expense": handle_expense,
    "income": handle_income,
    "recurring": handle_recurring,
    "summary": handle_summary,
    "seed": handle_seed,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        services = _load_services(args.data_dir)
        HANDLERS[args.entity](args, services)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
