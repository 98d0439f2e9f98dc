"""
Record validation for callers of the collection store.

The store accepts whatever it is given; forms and scripts run these
checks first. Each validator returns a ValidationResult instead of
raising so the caller can show every problem at once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from sheetledger.domain.records import (
    BALANCE_EPSILON,
    LineType,
    Record,
    credit_total,
    debit_total,
    parse_amount,
    parse_permissions,
    same_value,
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\+?\(?[0-9]{2,4}\)?[-.]?[0-9]{3,4}[-.]?[0-9]{3,6}$")


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def require(self, record: Record, key: str, message: str) -> None:
        """Add message when the field is missing or blank."""
        if not _text(record.get(key)):
            self.errors.append(message)

    def __bool__(self) -> bool:
        return self.is_valid


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _parse_date(value: Any) -> date | None:
    text = _text(value)[:10]
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    """Loose phone check; spaces are ignored."""
    return bool(_PHONE_RE.match(re.sub(r"\s+", "", phone)))


def is_valid_abn(abn: str) -> bool:
    """Australian Business Number: 11 digits once punctuation is removed."""
    return len(re.sub(r"[^0-9]", "", abn)) == 11


# ============================================================================
# Entity validators
# ============================================================================


def validate_supplier(supplier: Record) -> ValidationResult:
    """Check required supplier fields and contact formats."""
    result = ValidationResult()
    result.require(supplier, "name", "Supplier name is required")
    result.require(supplier, "code", "Supplier code is required")
    result.require(supplier, "category", "Category is required")

    email = _text(supplier.get("email"))
    if email and not is_valid_email(email):
        result.errors.append("Invalid email format")
    phone = _text(supplier.get("phone"))
    if phone and not is_valid_phone(phone):
        result.errors.append("Invalid phone number format")
    abn = _text(supplier.get("abn"))
    if abn and not is_valid_abn(abn):
        result.errors.append("Invalid ABN format")
    return result


def validate_expense(expense: Record) -> ValidationResult:
    """
    Check an expense before it is saved.

    Besides required fields, the status drives which dates must be
    present, and dates must not run backwards
    (date <= invoiceDate <= paymentDate).
    """
    result = ValidationResult()
    result.require(expense, "description", "Description is required")
    result.require(expense, "date", "Date is required")
    result.require(expense, "supplier", "Supplier is required")

    if not _text(expense.get("amount")):
        result.errors.append("Amount is required")
    elif parse_amount(expense.get("amount")) <= 0:
        result.errors.append("Amount must be a positive number")

    result.require(expense, "paymentType", "Payment type is required")
    result.require(expense, "paymentCenter", "Payment center is required")

    status = _text(expense.get("status"))
    if status == "Invoiced" and not _text(expense.get("invoiceDate")):
        result.errors.append("Invoice date is required for invoiced expenses")
    if status == "Paid" and not _text(expense.get("paymentDate")):
        result.errors.append("Payment date is required for paid expenses")

    spent = _parse_date(expense.get("date"))
    invoiced = _parse_date(expense.get("invoiceDate"))
    paid = _parse_date(expense.get("paymentDate"))
    if spent and invoiced and invoiced < spent:
        result.errors.append("Invoice date cannot be earlier than expense date")
    if invoiced and paid and paid < invoiced:
        result.errors.append("Payment date cannot be earlier than invoice date")
    return result


def validate_journal(journal: Record) -> ValidationResult:
    """
    Check a journal entry and its lines.

    The balance rule lives here, not in the store: debits must equal
    credits within BALANCE_EPSILON before create/update is called.
    """
    result = ValidationResult()
    result.require(journal, "description", "Description is required")
    result.require(journal, "date", "Date is required")
    result.require(journal, "reference", "Reference is required")

    lines = list(journal.get("lines") or [])
    if len(lines) < 2:
        result.errors.append("At least two journal lines are required")

    sides = set()
    for n, line in enumerate(lines, start=1):
        side = LineType.from_string(line.get("type"))
        if side is None:
            result.errors.append(f"Line {n}: type must be debit or credit")
        else:
            sides.add(side)
        if parse_amount(line.get("amount")) <= 0:
            result.errors.append(f"Line {n}: amount must be a positive number")
        if not _text(line.get("paymentCenter")):
            result.errors.append(f"Line {n}: payment center is required")

    if lines and sides != {LineType.DEBIT, LineType.CREDIT}:
        result.errors.append("Journal needs at least one debit and one credit line")

    debits, credits = debit_total(lines), credit_total(lines)
    if abs(debits - credits) >= BALANCE_EPSILON:
        result.errors.append(
            f"Journal is not balanced: debits {debits:.2f} != credits {credits:.2f}"
        )
    return result


def validate_user(user: Record) -> ValidationResult:
    result = ValidationResult()
    result.require(user, "username", "Username is required")
    result.require(user, "name", "Name is required")
    result.require(user, "role", "Role is required")
    if not is_valid_email(_text(user.get("email"))):
        result.errors.append("Valid email is required")
    if not parse_permissions(user.get("permissions")):
        result.errors.append("At least one permission is required")
    return result


def validate_budget(budget: Record, existing: Iterable[Record] = ()) -> ValidationResult:
    """
    Check a payment center budget.

    ``existing`` is the current PaymentCenterBudgets collection; a second
    budget for the same (paymentCenterId, year) is rejected so lookups by
    that pair stay unambiguous.
    """
    result = ValidationResult()
    result.require(budget, "paymentCenterId", "Payment center is required")
    result.require(budget, "year", "Year is required")
    if parse_amount(budget.get("budget")) < 0:
        result.errors.append("Budget cannot be negative")

    for other in existing:
        if same_value(other.get("id"), budget.get("id")):
            continue
        if same_value(other.get("paymentCenterId"), budget.get("paymentCenterId")) and same_value(
            other.get("year"), budget.get("year")
        ):
            result.errors.append(
                f"A budget for payment center {_text(budget.get('paymentCenterId'))} "
                f"in {_text(budget.get('year'))} already exists"
            )
            break
    return result


_VALIDATORS = {
    "Suppliers": validate_supplier,
    "Expenses": validate_expense,
    "JournalEntries": validate_journal,
    "Users": validate_user,
}


def validate_dataset(collections: dict[str, list[Record]]) -> dict[str, list[str]]:
    """
    Run every record validator over reconciled collections.

    Returns:
        {"Collection/id": [errors]} for invalid records only
    """
    problems: dict[str, list[str]] = {}
    for name, validator in _VALIDATORS.items():
        for record in collections.get(name, []):
            result = validator(record)
            if not result:
                problems[f"{name}/{record.get('id', '')}"] = result.errors

    budgets = collections.get("PaymentCenterBudgets", [])
    for budget in budgets:
        result = validate_budget(budget, budgets)
        if not result:
            problems[f"PaymentCenterBudgets/{budget.get('id', '')}"] = result.errors
    return problems
