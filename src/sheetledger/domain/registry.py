"""
Centralized Collection Registry.

SINGLE SOURCE OF TRUTH for the collections (workbook sheets) the
application knows about. Every registered collection counts as declared
in the store, so a sheet that was omitted from the workbook because it
was empty can still be written to after a load.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CollectionSpec:
    """
    Specification for one collection / sheet.

    Attributes:
        name: Sheet tab name and collection key
        label: Singular, human readable name used in audit descriptions
        columns: Default header row, used for templates and empty sheets
        required: Reconciliation guarantees the collection exists after load
        append_only: Store refuses update/delete (and direct create)
    """

    name: str
    label: str
    columns: tuple[str, ...] = ()
    required: bool = False
    append_only: bool = False


# ═══════════════════════════════════════════════════════════════════════════
# COLLECTION REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

COLLECTION_REGISTRY: dict[str, CollectionSpec] = {}


def _register(spec: CollectionSpec) -> CollectionSpec:
    """Register a collection spec and return it."""
    COLLECTION_REGISTRY[spec.name] = spec
    return spec


# ─────────────────────────────────────────────────────────────────────────────
# Reference tables
# ─────────────────────────────────────────────────────────────────────────────

PAYMENT_CENTERS = _register(
    CollectionSpec(
        name="PaymentCenters",
        label="payment center",
        columns=("id", "name", "description"),
    )
)

PAYMENT_TYPES = _register(
    CollectionSpec(
        name="PaymentTypes",
        label="payment type",
        columns=("id", "name", "description"),
    )
)

EXPENSE_STATUS = _register(
    CollectionSpec(
        name="ExpenseStatus",
        label="expense status",
        columns=("id", "name", "description"),
    )
)

PROGRAMS = _register(
    CollectionSpec(
        name="Programs",
        label="program",
        columns=("id", "name", "description", "budget"),
    )
)

# ─────────────────────────────────────────────────────────────────────────────
# Business tables
# ─────────────────────────────────────────────────────────────────────────────

USERS = _register(
    CollectionSpec(
        name="Users",
        label="user",
        columns=(
            "id", "username", "name", "email", "role", "permissions",
            "status", "lastLogin", "createdAt",
        ),
    )
)

SUPPLIERS = _register(
    CollectionSpec(
        name="Suppliers",
        label="supplier",
        columns=(
            "id", "code", "name", "category", "status", "contactName", "email",
            "phone", "address", "abn", "paymentTerms", "notes", "createdAt",
        ),
    )
)

EXPENSES = _register(
    CollectionSpec(
        name="Expenses",
        label="expense",
        columns=(
            "id", "date", "description", "supplier", "amount", "paymentType",
            "paymentCenter", "program", "status", "notes", "invoiceDate",
            "paymentDate", "createdBy", "createdAt",
        ),
    )
)

PAYMENT_CENTER_BUDGETS = _register(
    CollectionSpec(
        name="PaymentCenterBudgets",
        label="payment center budget",
        columns=(
            "id", "paymentCenterId", "year", "budget", "description", "notes",
            "createdAt",
        ),
        required=True,
    )
)

# ─────────────────────────────────────────────────────────────────────────────
# Journals and audit trail
# ─────────────────────────────────────────────────────────────────────────────

JOURNAL_ENTRIES = _register(
    CollectionSpec(
        name="JournalEntries",
        label="journal entry",
        columns=(
            "id", "date", "description", "reference", "totalAmount", "status",
            "notes", "createdBy", "createdAt", "approvedBy", "approvedAt",
            "rejectedBy", "rejectedAt", "reason",
        ),
        required=True,
    )
)

JOURNAL_LINES = _register(
    CollectionSpec(
        name="JournalLines",
        label="journal line",
        columns=(
            "id", "journalId", "lineNumber", "type", "program", "paymentCenter",
            "amount",
        ),
        required=True,
    )
)

AUDIT_LOG = _register(
    CollectionSpec(
        name="AuditLog",
        label="audit entry",
        columns=(
            "id", "entityType", "entityId", "action", "userId", "username",
            "timestamp", "changes", "description",
        ),
        required=True,
        append_only=True,
    )
)


# ============================================================================
# Lookup helpers
# ============================================================================


MAX_SHEET_TITLE = 31
INVALID_TITLE_CHARS = frozenset("/\\?*[]:")


def is_valid_sheet_title(name: str) -> bool:
    """Excel sheet title rules: 1-31 characters, none of / \\ ? * [ ] :"""
    return 0 < len(name) <= MAX_SHEET_TITLE and not INVALID_TITLE_CHARS.intersection(name)


def get_spec(name: str) -> CollectionSpec | None:
    """Get the spec for a collection, or None for an unregistered sheet."""
    return COLLECTION_REGISTRY.get(name)


def registered_names() -> list[str]:
    """All registered collection names, in registration order."""
    return list(COLLECTION_REGISTRY)


def required_names() -> list[str]:
    """Collections reconciliation must guarantee after every load."""
    return [spec.name for spec in COLLECTION_REGISTRY.values() if spec.required]


def default_headers() -> dict[str, list[str]]:
    """Header rows for every registered collection."""
    return {name: list(spec.columns) for name, spec in COLLECTION_REGISTRY.items()}


def label_for(name: str) -> str:
    """Display label for audit descriptions; falls back to the sheet name."""
    spec = COLLECTION_REGISTRY.get(name)
    return spec.label if spec else name
