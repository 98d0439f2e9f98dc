"""
Tests for caller-side record validation.
"""

from sheetledger.application.reconcile import reconcile
from sheetledger.application.seed import build_default_dataset
from sheetledger.domain.validation import (
    is_valid_abn,
    is_valid_email,
    is_valid_phone,
    validate_budget,
    validate_dataset,
    validate_expense,
    validate_journal,
    validate_supplier,
    validate_user,
)


def _journal(lines):
    return {"description": "Transfer", "date": "2024-01-01", "reference": "JE-1", "lines": lines}


class TestFormats:

    def test_formats(self):
        assert is_valid_email("a@b.co")
        assert not is_valid_email("not-an-email")
        assert is_valid_phone("(03) 9555-1234")
        assert not is_valid_phone("12")
        assert is_valid_abn("12 345 678 901")
        assert not is_valid_abn("123")


class TestJournal:

    def test_balanced_journal(self):
        result = validate_journal(_journal([
            {"type": "debit", "amount": 100, "paymentCenter": "1"},
            {"type": "credit", "amount": "100.00", "paymentCenter": "2"},
        ]))
        assert result.is_valid

    def test_unbalanced_journal(self):
        result = validate_journal(_journal([
            {"type": "debit", "amount": 100, "paymentCenter": "1"},
            {"type": "credit", "amount": 99.5, "paymentCenter": "2"},
        ]))
        assert not result
        assert any("not balanced" in e for e in result.errors)

    def test_needs_two_lines_and_both_sides(self):
        result = validate_journal(_journal([{"type": "debit", "amount": 5, "paymentCenter": "1"}]))
        assert "At least two journal lines are required" in result.errors
        assert "Journal needs at least one debit and one credit line" in result.errors

    def test_line_fields(self):
        result = validate_journal(_journal([
            {"type": "sideways", "amount": 0},
            {"type": "credit", "amount": -1, "paymentCenter": "2"},
        ]))
        assert "Line 1: type must be debit or credit" in result.errors
        assert "Line 1: payment center is required" in result.errors
        assert "Line 2: amount must be a positive number" in result.errors


class TestEntities:

    def test_supplier_requires_fields(self):
        result = validate_supplier({"name": "Acme", "email": "bad"})
        assert "Supplier code is required" in result.errors
        assert "Invalid email format" in result.errors

    def test_paid_expense_needs_payment_date(self):
        expense = {
            "description": "Laptops", "date": "2024-01-10", "supplier": "SUP1", "amount": "10",
            "paymentType": "1", "paymentCenter": "1", "status": "Paid",
        }
        assert "Payment date is required for paid expenses" in validate_expense(expense).errors

    def test_expense_dates_cannot_run_backwards(self):
        expense = {
            "description": "Laptops", "date": "2024-01-10", "supplier": "SUP1", "amount": "10",
            "paymentType": "1", "paymentCenter": "1", "status": "Invoiced",
            "invoiceDate": "2024-01-05",
        }
        assert "Invoice date cannot be earlier than expense date" in validate_expense(expense).errors

    def test_user_needs_permissions(self):
        result = validate_user({"username": "u", "name": "U", "role": "user", "email": "u@x.io"})
        assert result.errors == ["At least one permission is required"]

    def test_budget_unique_per_center_and_year(self):
        existing = [{"id": "B1", "paymentCenterId": 1, "year": 2024, "budget": 10}]
        duplicate = {"id": "B2", "paymentCenterId": "1", "year": "2024", "budget": "5"}
        assert not validate_budget(duplicate, existing)
        assert validate_budget(dict(existing[0], budget=20), existing)


class TestDataset:

    def test_sample_dataset_is_valid(self):
        assert validate_dataset(reconcile(build_default_dataset(include_samples=True))) == {}

    def test_reports_invalid_records(self):
        problems = validate_dataset({"Suppliers": [{"id": "S1"}]})
        assert list(problems) == ["Suppliers/S1"]
