import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from finance_tracker.cli import main


class TestCLI(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(["--data-dir", self.data_dir, *argv])
        return code, out.getvalue(), err.getvalue()

    def test_seed_and_list_categories(self):
        code, out, _ = self.run_cli("seed")
        self.assertEqual(code, 0)
        self.assertIn("Seeded 7 categories.", out)
        _, out, _ = self.run_cli("category", "list")
        self.assertIn("[1] Food #FF6B6B (0 expenses)", out)

    def test_expense_flow_and_summary(self):
        self.run_cli("category", "add", "Food")
        self.run_cli("category", "add", "Transport")
        self.assertEqual(self.run_cli("expense", "add", "100.00", "1", "2024-03-05")[0], 0)
        self.assertEqual(self.run_cli("expense", "add", "50.00", "2", "2024-03-20")[0], 0)
        self.run_cli("income", "add", "200", "2024-03-01", "--description", "Salary")

        code, out, _ = self.run_cli("expense", "list", "--month", "3", "--year", "2024")
        self.assertEqual(code, 0)
        self.assertIn("Found 2 expenses (total 150.00, 4.84 per day):", out)

        _, out, _ = self.run_cli("summary", "--all")
        self.assertIn("Summary for all time", out)
        self.assertIn("9.38 per day", out)
        self.assertIn("Net: +50.00", out)
        self.assertIn("Food: 100.00 (66.7%)", out)

    def test_recurring_flow(self):
        self.run_cli("category", "add", "Bills")
        code, out, _ = self.run_cli(
            "recurring", "add", "expense", "80", "monthly", "2024-01-31", "--category-id", "1"
        )
        self.assertEqual(code, 0)
        self.assertIn("next due 2024-03-02", out)
        _, out, _ = self.run_cli("recurring", "list")
        self.assertIn("EXPENSE 80.00 Monthly (active)", out)
        _, out, _ = self.run_cli("recurring", "toggle", "1")
        self.assertIn("is now inactive", out)

    def test_validation_errors_exit_non_zero(self):
        code, _, err = self.run_cli(
            "recurring", "add", "expense", "80", "monthly", "2024-01-31"
        )
        self.assertEqual(code, 1)
        self.assertIn("category_id is required", err)
        code, _, err = self.run_cli("expense", "delete", "5")
        self.assertEqual(code, 1)
        self.assertIn("Expense 5 not found", err)

    def test_empty_listing(self):
        _, out, _ = self.run_cli("income", "list", "--all")
        self.assertIn("No incomes found.", out)


if __name__ == "__main__":
    unittest.main()
