import unittest
from datetime import date, datetime
from decimal import Decimal

from finance_core.exceptions import ValidationError
from finance_core.updates import (
    EXPENSE_FIELDS,
    INCOME_FIELDS,
    AmountUpdate,
    CategoryUpdate,
    DateUpdate,
    DescriptionUpdate,
    parse_field_update,
)
from finance_core.validators import (
    ensure_after,
    parse_amount,
    validate_color,
    validate_date,
    validate_enum,
    validate_id,
    validate_interval,
    validate_optional_str,
)


class TestValidators(unittest.TestCase):
    def test_parse_amount_quantizes(self):
        self.assertEqual(parse_amount("12.345", "amount"), Decimal("12.35"))
        self.assertEqual(parse_amount(7, "amount"), Decimal("7.00"))

    def test_parse_amount_rejects_bad_values(self):
        for raw in (None, "", "abc", "0", "-3", "NaN", "Infinity", True):
            with self.assertRaises(ValidationError, msg=repr(raw)):
                parse_amount(raw, "amount")

    def test_validate_date(self):
        self.assertEqual(validate_date("2024-03-05", "date"), date(2024, 3, 5))
        self.assertEqual(validate_date("2024-03-05T10:00:00.000Z", "date"), date(2024, 3, 5))
        self.assertEqual(validate_date(datetime(2024, 3, 5, 8), "date"), date(2024, 3, 5))
        with self.assertRaises(ValidationError):
            validate_date("05/03/2024", "date")
        with self.assertRaises(ValidationError):
            validate_date(None, "date")

    def test_validate_id_accepts_numeric_strings(self):
        self.assertEqual(validate_id("4", "category_id"), 4)
        self.assertEqual(validate_id(4, "category_id"), 4)
        for raw in ("x", 0, None, True):
            with self.assertRaises(ValidationError):
                validate_id(raw, "category_id")

    def test_validate_interval(self):
        self.assertEqual(validate_interval(None), 1)
        self.assertEqual(validate_interval("3"), 3)
        for raw in (0, -2, 1.5, "two", False):
            with self.assertRaises(ValidationError):
                validate_interval(raw)

    def test_validate_enum_normalises_case(self):
        self.assertEqual(validate_enum("monthly", "frequency", {"MONTHLY"}), "MONTHLY")
        with self.assertRaises(ValidationError):
            validate_enum("DAILY", "frequency", {"MONTHLY"})

    def test_validate_color(self):
        self.assertEqual(validate_color("#4ecdc4"), "#4ECDC4")
        self.assertIsNone(validate_color(""))
        with self.assertRaises(ValidationError):
            validate_color("teal")

    def test_blank_optional_string_is_none(self):
        self.assertIsNone(validate_optional_str("   ", "description", 10))
        with self.assertRaises(ValidationError):
            validate_optional_str("x" * 11, "description", 10)

    def test_ensure_after(self):
        ensure_after(date(2024, 1, 1), None, "start_date", "end_date")
        ensure_after(date(2024, 1, 1), date(2024, 1, 2), "start_date", "end_date")
        with self.assertRaises(ValidationError):
            ensure_after(date(2024, 1, 1), date(2024, 1, 1), "start_date", "end_date")


class TestFieldUpdates(unittest.TestCase):
    def test_each_variant(self):
        self.assertEqual(
            parse_field_update({"field": "date", "value": "2024-04-01"}, EXPENSE_FIELDS),
            DateUpdate(date(2024, 4, 1)),
        )
        self.assertEqual(
            parse_field_update({"field": "description", "value": ""}, EXPENSE_FIELDS),
            DescriptionUpdate(None),
        )
        self.assertEqual(
            parse_field_update({"field": "amount", "value": "9.5"}, EXPENSE_FIELDS),
            AmountUpdate(Decimal("9.50")),
        )
        self.assertEqual(
            parse_field_update({"field": "category_id", "value": "2"}, EXPENSE_FIELDS),
            CategoryUpdate(2),
        )

    def test_changes_map_to_record_fields(self):
        self.assertEqual(CategoryUpdate(3).changes(), {"category_id": 3})
        self.assertEqual(AmountUpdate(Decimal("1.00")).changes(), {"amount": Decimal("1.00")})

    def test_rejects_unknown_or_disallowed_fields(self):
        with self.assertRaises(ValidationError):
            parse_field_update({"field": "category_id", "value": 1}, INCOME_FIELDS)
        with self.assertRaises(ValidationError):
            parse_field_update({"field": "created_at", "value": "x"}, EXPENSE_FIELDS)
        with self.assertRaises(ValidationError):
            parse_field_update({"field": "amount"}, EXPENSE_FIELDS)

    def test_validates_value(self):
        with self.assertRaises(ValidationError):
            parse_field_update({"field": "amount", "value": "-1"}, EXPENSE_FIELDS)


if __name__ == "__main__":
    unittest.main()
