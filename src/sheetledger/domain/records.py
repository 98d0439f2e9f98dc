"""
Record helpers and typed views.

Records stay plain ``dict[str, scalar]`` mappings so arbitrary sheets
round-trip untouched. The shapes that carry rules (journal lines, user
permissions, audit actions) get small typed helpers here.

These helpers are pure: no I/O, no store access.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

Record = dict[str, Any]
Collections = dict[str, list[Record]]

ID_FIELD = "id"
BALANCE_EPSILON = 0.01


# ============================================================================
# Enumerations
# ============================================================================


class AuditAction(str, Enum):
    """Action recorded in the AuditLog collection."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class LineType(str, Enum):
    """Side of a journal line."""

    DEBIT = "debit"
    CREDIT = "credit"

    @classmethod
    def from_string(cls, value: Any) -> LineType | None:
        """Parse 'Debit', 'DR', 'credit' ...; None when unrecognised."""
        text = str(value or "").strip().lower()
        if text in ("debit", "dr", "d"):
            return cls.DEBIT
        if text in ("credit", "cr", "c"):
            return cls.CREDIT
        return None


# Status values that turn an update into an approval / rejection
STATUS_ACTIONS = {
    "Approved": AuditAction.APPROVE,
    "Rejected": AuditAction.REJECT,
}


# ============================================================================
# Identifiers
# ============================================================================


def normalize_id(value: Any) -> str:
    """
    Canonical string form of an identifier.

    Spreadsheet decoding yields numbers (1, 1.0) where the UI produces
    strings ("1"); all of them map to "1".

    Examples:
        >>> normalize_id(1.0)
        '1'
        >>> normalize_id(" SUP001 ")
        'SUP001'
        >>> normalize_id(None)
        ''
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def same_value(left: Any, right: Any) -> bool:
    """Compare two scalars by canonical string form."""
    return normalize_id(left) == normalize_id(right)


def generate_id() -> str:
    """Fresh UUID4 identifier for records created without one."""
    return str(uuid.uuid4())


def line_id(journal_id: str, line_number: int) -> str:
    """Synthesized id of a journal line: ``{journalId}-L{n}``."""
    return f"{journal_id}-L{line_number}"


# ============================================================================
# Amounts
# ============================================================================

_AMOUNT_JUNK = re.compile(r"[,$\s]")


def parse_amount(value: Any) -> float:
    """
    Parse a money amount from a cell or form value.

    Blank and unparseable values count as 0.0 so a half-filled line
    never breaks a total.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(_AMOUNT_JUNK.sub("", str(value)))
    except ValueError:
        return 0.0


def parse_line_number(value: Any, default: int = 0) -> int:
    """Parse a lineNumber cell ("2", 2.0, 2) into an int."""
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


# ============================================================================
# Journal lines
# ============================================================================


@dataclass(slots=True)
class JournalLine:
    """
    One side of a journal entry, as stored in the JournalLines sheet.

    ``type`` keeps the raw text when it is not a recognised side, so the
    store never drops what the caller handed in.
    """

    journal_id: str
    line_number: int
    type: str
    amount: float
    program: Any = ""
    payment_center: Any = ""
    id: str = ""

    @classmethod
    def from_input(cls, journal_id: str, line_number: int, data: Record) -> JournalLine:
        """Build a numbered line from caller-supplied line data."""
        parsed = LineType.from_string(data.get("type"))
        return cls(
            journal_id=journal_id,
            line_number=line_number,
            type=parsed.value if parsed else str(data.get("type", "")),
            amount=parse_amount(data.get("amount")),
            program=data.get("program", ""),
            payment_center=data.get("paymentCenter", ""),
            id=line_id(journal_id, line_number),
        )

    def to_record(self) -> Record:
        """Flat JournalLines row."""
        return {
            "id": self.id,
            "journalId": self.journal_id,
            "lineNumber": self.line_number,
            "type": self.type,
            "program": self.program,
            "paymentCenter": self.payment_center,
            "amount": self.amount,
        }


def build_lines(journal_id: str, lines: Iterable[Record]) -> list[Record]:
    """Number caller lines 1..N in input order and return JournalLines rows."""
    return [
        JournalLine.from_input(journal_id, n, dict(line)).to_record()
        for n, line in enumerate(lines, start=1)
    ]


def side_total(lines: Iterable[Record], side: LineType) -> float:
    """Sum of line amounts on one side."""
    return round(
        sum(
            parse_amount(line.get("amount"))
            for line in lines
            if LineType.from_string(line.get("type")) is side
        ),
        2,
    )


def debit_total(lines: Iterable[Record]) -> float:
    """totalAmount of a journal entry: the debit side."""
    return side_total(lines, LineType.DEBIT)


def credit_total(lines: Iterable[Record]) -> float:
    return side_total(lines, LineType.CREDIT)


def is_balanced(lines: Iterable[Record], epsilon: float = BALANCE_EPSILON) -> bool:
    """Debits equal credits within epsilon."""
    lines = list(lines)
    return abs(debit_total(lines) - credit_total(lines)) < epsilon


# ============================================================================
# User permissions
# ============================================================================


def parse_permissions(value: Any) -> list[str]:
    """
    Materialize a permissions field into trimmed tokens.

    Accepts the at-rest comma string or an already materialized list.
    Blank tokens are dropped.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        tokens = [str(v) for v in value]
    else:
        tokens = str(value).split(",")
    return [t.strip() for t in tokens if t and t.strip()]


def format_permissions(value: Any) -> str:
    """Inverse of parse_permissions for writing back to the workbook."""
    return ",".join(parse_permissions(value))
