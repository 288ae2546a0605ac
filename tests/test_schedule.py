import unittest
from datetime import date

from finance_core.exceptions import ValidationError
from finance_core.schedule import (
    add_months,
    add_years,
    compute_next_due_date,
    describe_frequency,
    due_status,
)


class TestComputeNextDueDate(unittest.TestCase):
    def test_weekly_adds_seven_days_per_interval(self):
        start = date(2024, 1, 15)
        for interval in range(1, 10):
            result = compute_next_due_date(start, "WEEKLY", interval)
            self.assertEqual((result - start).days, 7 * interval)

    def test_monthly_same_day(self):
        self.assertEqual(compute_next_due_date(date(2024, 1, 15), "MONTHLY", 1), date(2024, 2, 15))

    def test_monthly_rolls_over_short_month(self):
        """Jan 31 moves past February instead of clamping to its last day."""
        self.assertEqual(compute_next_due_date(date(2024, 1, 31), "MONTHLY", 1), date(2024, 3, 2))
        self.assertEqual(compute_next_due_date(date(2023, 1, 31), "MONTHLY", 1), date(2023, 3, 3))

    def test_monthly_carries_into_next_year(self):
        self.assertEqual(compute_next_due_date(date(2024, 11, 10), "MONTHLY", 3), date(2025, 2, 10))
        self.assertEqual(compute_next_due_date(date(2024, 11, 30), "MONTHLY", 3), date(2025, 3, 2))

    def test_monthly_month_index_arithmetic(self):
        start = date(2023, 5, 10)
        for interval in range(1, 30):
            result = compute_next_due_date(start, "MONTHLY", interval)
            index = start.month - 1 + interval
            self.assertEqual(result.month, index % 12 + 1)
            self.assertEqual(result.year, start.year + index // 12)
            self.assertEqual(result.day, start.day)

    def test_yearly(self):
        self.assertEqual(compute_next_due_date(date(2024, 6, 15), "YEARLY", 2), date(2026, 6, 15))

    def test_yearly_leap_day_rolls_to_march(self):
        self.assertEqual(compute_next_due_date(date(2024, 2, 29), "YEARLY", 1), date(2025, 3, 1))
        self.assertEqual(compute_next_due_date(date(2024, 2, 29), "YEARLY", 4), date(2028, 2, 29))

    def test_unknown_frequency_is_rejected(self):
        with self.assertRaises(ValidationError):
            compute_next_due_date(date(2024, 1, 1), "DAILY", 1)
        with self.assertRaises(ValidationError):
            compute_next_due_date(date(2024, 1, 1), "monthly", 1)

    def test_interval_must_be_positive_integer(self):
        for interval in (0, -1, True, 1.5, "2"):
            with self.assertRaises(ValidationError):
                compute_next_due_date(date(2024, 1, 1), "WEEKLY", interval)

    def test_result_beyond_calendar_range_is_rejected(self):
        start = date(2024, 1, 1)
        for frequency, interval in (("YEARLY", 10000), ("MONTHLY", 120000), ("WEEKLY", 10**9)):
            with self.assertRaises(ValidationError, msg=frequency):
                compute_next_due_date(start, frequency, interval)
        self.assertEqual(compute_next_due_date(start, "YEARLY", 7975), date(9999, 1, 1))

    def test_helpers_match_calculator(self):
        self.assertEqual(add_months(date(2024, 8, 31), 1), date(2024, 10, 1))
        self.assertEqual(add_months(date(2024, 3, 15), -3), date(2023, 12, 15))
        self.assertEqual(add_years(date(2023, 12, 31), 1), date(2024, 12, 31))


class TestDueStatus(unittest.TestCase):
    today = date(2024, 3, 10)

    def test_overdue(self):
        status = due_status(date(2024, 3, 7), self.today)
        self.assertEqual(status.days, -3)
        self.assertTrue(status.overdue)
        self.assertEqual(status.label, "3 days overdue")
        self.assertEqual(due_status(date(2024, 3, 9), self.today).label, "1 day overdue")

    def test_today_and_tomorrow(self):
        self.assertEqual(due_status(self.today, self.today).label, "Due today")
        self.assertFalse(due_status(self.today, self.today).overdue)
        self.assertEqual(due_status(date(2024, 3, 11), self.today).label, "Due tomorrow")

    def test_upcoming(self):
        status = due_status(date(2024, 4, 1), self.today)
        self.assertEqual(status.days, 22)
        self.assertEqual(status.to_dict(), {"days": 22, "overdue": False, "label": "Due in 22 days"})


class TestDescribeFrequency(unittest.TestCase):
    def test_labels(self):
        self.assertEqual(describe_frequency("WEEKLY", 1), "Weekly")
        self.assertEqual(describe_frequency("WEEKLY", 2), "Every 2 weeks")
        self.assertEqual(describe_frequency("MONTHLY", 3), "Every 3 months")
        self.assertEqual(describe_frequency("YEARLY", 1), "Yearly")
        self.assertEqual(describe_frequency("HOURLY", 1), "HOURLY")


if __name__ == "__main__":
    unittest.main()
