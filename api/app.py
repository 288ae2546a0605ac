"""Flask REST API exposing the finance tracker services."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from finance_core.aggregation import Period, format_signed, net_amount, parse_period
from finance_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from finance_core.models import RecurringTemplate
from finance_core.schedule import describe_frequency, due_status
from finance_core.services import (
    CategoryService,
    ExpenseService,
    IncomeService,
    LedgerService,
    RecurringTemplateService,
)
from finance_core.storage import JSONStorage
from finance_core.updates import EXPENSE_FIELDS, INCOME_FIELDS, parse_field_update
from finance_core.validators import validate_optional_id

from .config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[JSONStorage] = None,
    today: Callable[[], date] = date.today,
) -> Flask:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = Flask(__name__)

    if settings.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": settings.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    storage = storage or JSONStorage(settings.data_dir)
    category_service = CategoryService(storage)
    expense_service = ExpenseService(storage, category_service)
    income_service = IncomeService(storage)
    recurring_service = RecurringTemplateService(storage, category_service)
    ledger = LedgerService(expense_service, income_service)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    @app.after_request
    def log_response(response):
        app.logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _period() -> Period:
        return parse_period(request.args.get("month"), request.args.get("year"), today())

    def _category_filter() -> Optional[int]:
        return validate_optional_id(request.args.get("category_id"), "category_id")

    def _template_dict(template: RecurringTemplate) -> Dict[str, Any]:
        return {
            **template.to_dict(),
            "frequency_label": describe_frequency(template.frequency, template.interval),
            "due_status": due_status(template.next_due_date, today()).to_dict(),
        }

    @app.get("/health")
    def health():
        return _success({"status": "ok"})

    # Categories -----------------------------------------------------------
    @app.get("/categories")
    def list_categories():
        counts = expense_service.count_by_category()
        return _success({
            "items": [
                {**category.to_dict(), "expense_count": counts.get(category.id, 0)}
                for category in category_service.list()
            ]
        })

    @app.post("/categories")
    def create_category():
        category = category_service.add(_json_body())
        return _success(category.to_dict(), 201)

    @app.put("/categories/<int:category_id>")
    def update_category(category_id: int):
        category = category_service.update(category_id, _json_body())
        return _success(category.to_dict())

    @app.delete("/categories/<int:category_id>")
    def delete_category(category_id: int):
        category_service.get(category_id)
        if expense_service.is_category_in_use(category_id):
            raise ValidationError("Cannot delete a category that is in use by expenses")
        if recurring_service.is_category_in_use(category_id):
            raise ValidationError("Cannot delete a category that is in use by recurring templates")
        category_service.delete(category_id)
        return _success({}, 204)

    # Expenses -------------------------------------------------------------
    @app.get("/expenses")
    def list_expenses():
        period = _period()
        category_id = _category_filter()
        expenses = expense_service.list(period, category_id)
        summary = expense_service.summary(period, category_id)
        return _success({
            "period": period.to_dict(),
            "items": [expense.to_dict() for expense in expenses],
            "total": f"{summary.total_amount:.2f}",
            "summary": summary.to_dict(),
        })

    @app.post("/expenses")
    def create_expense():
        expense = expense_service.add(_json_body())
        return _success(expense.to_dict(), 201)

    @app.get("/expenses/<int:expense_id>")
    def get_expense(expense_id: int):
        return _success(expense_service.get(expense_id).to_dict())

    @app.put("/expenses/<int:expense_id>")
    def update_expense(expense_id: int):
        expense = expense_service.update(expense_id, _json_body())
        return _success(expense.to_dict())

    @app.patch("/expenses/<int:expense_id>")
    def patch_expense(expense_id: int):
        update = parse_field_update(_json_body(), EXPENSE_FIELDS)
        expense = expense_service.apply_update(expense_id, update)
        return _success(expense.to_dict())

    @app.delete("/expenses/<int:expense_id>")
    def delete_expense(expense_id: int):
        expense_service.delete(expense_id)
        return _success({}, 204)

    @app.get("/expenses/<int:expense_id>/navigation")
    def navigate_expense(expense_id: int):
        navigation = expense_service.navigation(expense_id, _period(), _category_filter())
        return _success(navigation.to_dict())

    # Incomes --------------------------------------------------------------
    @app.get("/incomes")
    def list_incomes():
        period = _period()
        incomes = income_service.list(period)
        summary = income_service.summary(period)
        return _success({
            "period": period.to_dict(),
            "items": [income.to_dict() for income in incomes],
            "total": f"{summary.total_amount:.2f}",
            "summary": summary.to_dict(),
        })

    @app.post("/incomes")
    def create_income():
        income = income_service.add(_json_body())
        return _success(income.to_dict(), 201)

    @app.get("/incomes/<int:income_id>")
    def get_income(income_id: int):
        return _success(income_service.get(income_id).to_dict())

    @app.put("/incomes/<int:income_id>")
    def update_income(income_id: int):
        income = income_service.update(income_id, _json_body())
        return _success(income.to_dict())

    @app.patch("/incomes/<int:income_id>")
    def patch_income(income_id: int):
        update = parse_field_update(_json_body(), INCOME_FIELDS)
        income = income_service.apply_update(income_id, update)
        return _success(income.to_dict())

    @app.delete("/incomes/<int:income_id>")
    def delete_income(income_id: int):
        income_service.delete(income_id)
        return _success({}, 204)

    @app.get("/incomes/<int:income_id>/navigation")
    def navigate_income(income_id: int):
        return _success(income_service.navigation(income_id, _period()).to_dict())

    # Combined views -------------------------------------------------------
    @app.get("/transactions")
    def list_transactions():
        period = _period()
        transactions = ledger.transactions(period)
        total_income = income_service.total(period)
        total_expenses = expense_service.total(period)
        net = net_amount(total_income, total_expenses)
        return _success({
            "period": period.to_dict(),
            "items": [transaction.to_dict() for transaction in transactions],
            "total_income": f"{total_income:.2f}",
            "total_expenses": f"{total_expenses:.2f}",
            "net": f"{net:.2f}",
            "net_display": format_signed(net),
        })

    @app.get("/summary")
    def summary():
        period = _period()
        balance = ledger.balance(period)
        return _success({
            "period": period.to_dict(),
            "expenses": expense_service.summary(period).to_dict(),
            "incomes": income_service.summary(period).to_dict(),
            "balance": f"{balance:.2f}",
            "balance_display": format_signed(balance),
            "categories": [share.to_dict() for share in expense_service.breakdown(period)],
        })

    # Recurring templates --------------------------------------------------
    @app.get("/recurring-templates")
    def list_recurring_templates():
        active_only = request.args.get("active") == "true"
        templates = recurring_service.list(active_only=active_only)
        return _success({"items": [_template_dict(template) for template in templates]})

    @app.get("/recurring-templates/due")
    def list_due_recurring_templates():
        templates = recurring_service.due_on_or_before(today())
        return _success({"items": [_template_dict(template) for template in templates]})

    @app.post("/recurring-templates")
    def create_recurring_template():
        template = recurring_service.add(_json_body())
        return _success(_template_dict(template), 201)

    @app.get("/recurring-templates/<int:template_id>")
    def get_recurring_template(template_id: int):
        return _success(_template_dict(recurring_service.get(template_id)))

    @app.put("/recurring-templates/<int:template_id>")
    def update_recurring_template(template_id: int):
        template = recurring_service.update(template_id, _json_body())
        return _success(_template_dict(template))

    @app.post("/recurring-templates/<int:template_id>/toggle")
    def toggle_recurring_template(template_id: int):
        template = recurring_service.toggle(template_id)
        return _success(_template_dict(template))

    @app.delete("/recurring-templates/<int:template_id>")
    def delete_recurring_template(template_id: int):
        recurring_service.delete(template_id)
        return _success({}, 204)

    return app
