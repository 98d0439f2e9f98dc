"""
Collection Store - the authoritative in-memory CRUD surface.

Holds one ordered list of records per collection and enforces the
rules a database would otherwise enforce:

    - ``id`` is unique per collection (idempotent create on collision)
    - ids are compared by canonical string form everywhere
    - JournalEntries own their JournalLines (numbered on write,
      replaced wholesale on update, cascaded on delete)
    - every successful mutation appends exactly one AuditLog record
    - AuditLog itself is append-only

Failures are return values (None / False) so callers can branch
without try/except. The one exception is UnknownCollectionError,
which signals a programming error.

Usage:
    store = CollectionStore()
    store.populate(reconciled)
    expense = store.create("Expenses", {"amount": 120})
    store.update("Expenses", expense["id"], {"status": "Paid"})
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Mapping

from sheetledger.application.audit import SYSTEM, Actor, AuditLogger, diff_fields
from sheetledger.application.reconcile import LINES_FIELD, group_lines, normalize_line
from sheetledger.domain.errors import (
    AuditError,
    UnknownCollectionError,
    duplicate_record,
    record_not_found,
)
from sheetledger.domain.records import (
    STATUS_ACTIONS,
    AuditAction,
    Collections,
    Record,
    build_lines,
    debit_total,
    generate_id,
    normalize_id,
    parse_permissions,
    same_value,
)
from sheetledger.domain.registry import (
    AUDIT_LOG,
    JOURNAL_ENTRIES,
    JOURNAL_LINES,
    MAX_SHEET_TITLE,
    PAYMENT_CENTER_BUDGETS,
    USERS,
    get_spec,
    is_valid_sheet_title,
    registered_names,
)

logger = logging.getLogger(__name__)

MutationListener = Callable[[str, AuditAction], None]


class CollectionStore:
    """
    In-memory collections with relational-style guarantees.

    Args:
        audit: Audit entry builder; a default AuditLogger when omitted
        actor: User recorded on audit entries until set_actor is called
    """

    def __init__(self, audit: AuditLogger | None = None, actor: Actor = SYSTEM) -> None:
        self.audit = audit or AuditLogger()
        self.actor = actor
        self.revision = 0
        self._collections: Collections = {}
        self._declared: set[str] = set(registered_names())
        self._listeners: list[MutationListener] = []

    # ========================================================================
    # Declaration / lifecycle
    # ========================================================================

    def declare(self, name: str) -> None:
        """
        Make a collection name valid for mutation (created lazily).

        Raises:
            ValueError: name cannot be a workbook sheet title, so the
                collection could never be saved
        """
        if not is_valid_sheet_title(name):
            raise ValueError(
                f"Invalid collection name '{name}': sheet titles are 1-{MAX_SHEET_TITLE} "
                f"characters without any of / \\ ? * [ ] :"
            )
        self._declared.add(name)

    def is_declared(self, name: str) -> bool:
        return name in self._declared

    def collection_names(self) -> list[str]:
        """Collections currently holding a list (declared-and-touched or loaded)."""
        return list(self._collections)

    def set_actor(self, user_id: Any, username: str) -> None:
        """Attribute subsequent audit entries to this user."""
        self.actor = Actor(user_id=normalize_id(user_id), username=username)

    def add_listener(self, listener: MutationListener) -> None:
        """Call ``listener(collection, action)`` after every successful mutation."""
        self._listeners.append(listener)

    def populate(self, collections: Mapping[str, list[Record]]) -> None:
        """
        Replace the whole state with reconciled collections.

        Only the session synchronizer calls this. Every collection in the
        input becomes declared; JournalEntries headers are re-linked to
        JournalLines so ``lines`` is always present.
        """
        self._collections = {}
        for name, records in collections.items():
            self._declared.add(name)
            rows = []
            for record in records:
                row = copy.deepcopy(dict(record))
                row["id"] = normalize_id(row.get("id"))
                rows.append(row)
            self._collections[name] = rows

        for line in self._collections.get(JOURNAL_LINES.name, []):
            normalize_line(line)
        self._relink_all()
        logger.info(
            "Store populated: %d collections, %d records",
            len(self._collections),
            sum(len(rows) for rows in self._collections.values()),
        )

    def snapshot(self) -> Collections:
        """Deep copy of the full state, decoupled from later mutations."""
        return copy.deepcopy(self._collections)

    # ========================================================================
    # Reads - never fail
    # ========================================================================

    def get(self, collection: str, record_id: Any) -> Record | None:
        """Copy of a record, or None for an unknown collection / id."""
        rows = self._collections.get(collection)
        if rows is None:
            return None
        idx = self._index(rows, record_id)
        return copy.deepcopy(rows[idx]) if idx >= 0 else None

    def list(self, collection: str) -> list[Record]:
        """Copies of every record, in insertion order."""
        return copy.deepcopy(self._collections.get(collection, []))

    def filter(self, collection: str, field: str, value: Any) -> list[Record]:
        """
        Records whose ``field`` equals ``value`` by canonical string form.

        For list-valued fields (user permissions) a record matches when
        the value is one of the items.
        """
        matches = []
        for row in self._collections.get(collection, []):
            current = row.get(field)
            if isinstance(current, list):
                hit = any(same_value(item, value) for item in current)
            else:
                hit = current is not None and same_value(current, value)
            if hit:
                matches.append(copy.deepcopy(row))
        return matches

    def find_budget(self, payment_center_id: Any, year: Any) -> Record | None:
        """
        The budget of a payment center for a year.

        At most one record is returned; if the data holds several, the
        last one wins (matching last-write-wins on load) and a warning is
        logged.
        """
        matches = [
            row
            for row in self._collections.get(PAYMENT_CENTER_BUDGETS.name, [])
            if same_value(row.get("paymentCenterId"), payment_center_id)
            and same_value(row.get("year"), year)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "%d budgets for payment center %s in %s; using the last",
                len(matches),
                payment_center_id,
                year,
            )
        return copy.deepcopy(matches[-1])

    # ========================================================================
    # Mutations
    # ========================================================================

    def create(self, collection: str, record: Mapping[str, Any]) -> Record | None:
        """
        Insert a record.

        Returns:
            Copy of the stored record; the existing record when the id is
            already taken; None when the insert was refused or could not
            be audited

        Raises:
            UnknownCollectionError: collection was never declared
        """
        rows = self._rows(collection)
        if self._refuse_write(collection, "create"):
            return None

        new = dict(record)
        rid = normalize_id(new.get("id")) or generate_id()
        new["id"] = rid

        idx = self._index(rows, rid)
        if idx >= 0:
            logger.warning(duplicate_record(collection, rid))
            return copy.deepcopy(rows[idx])

        child_lines: list[Record] = []
        if collection == JOURNAL_ENTRIES.name:
            if LINES_FIELD in new:
                child_lines = build_lines(rid, new.pop(LINES_FIELD) or [])
                new["totalAmount"] = debit_total(child_lines)
            new[LINES_FIELD] = [dict(line) for line in child_lines]
        elif collection == JOURNAL_LINES.name:
            normalize_line(new)
        self._normalize(collection, new)

        if not self._record_audit(AuditAction.CREATE, collection, rid, new, new):
            return None

        rows.append(new)
        if child_lines:
            self._rows(JOURNAL_LINES.name).extend(child_lines)
        if collection == JOURNAL_LINES.name:
            self._relink(new["journalId"])

        self._changed(collection, AuditAction.CREATE)
        logger.debug("Created %s/%s", collection, rid)
        return copy.deepcopy(new)

    def update(self, collection: str, record_id: Any, patch: Mapping[str, Any]) -> bool:
        """
        Shallow-merge ``patch`` onto a record.

        A JournalEntries patch carrying ``lines`` replaces every line of
        that journal and recomputes ``totalAmount``. A ``status`` change
        to Approved / Rejected is audited as APPROVE / REJECT.

        Returns:
            False when the record does not exist or the change could not
            be audited

        Raises:
            UnknownCollectionError: collection was never declared
        """
        rows = self._rows(collection)
        if self._refuse_write(collection, "update"):
            return False

        idx = self._index(rows, record_id)
        if idx < 0:
            logger.info(record_not_found(collection, normalize_id(record_id)))
            return False

        current = rows[idx]
        rid = current["id"]
        patch = dict(patch)
        patch.pop("id", None)  # ids are immutable
        new = {**current, **patch}

        new_lines: list[Record] | None = None
        if collection == JOURNAL_ENTRIES.name and LINES_FIELD in patch:
            new_lines = build_lines(rid, patch[LINES_FIELD] or [])
            new["totalAmount"] = debit_total(new_lines)
            new[LINES_FIELD] = [dict(line) for line in new_lines]
        elif collection == JOURNAL_LINES.name:
            normalize_line(new)
        self._normalize(collection, new)

        action = AuditAction.UPDATE
        if "status" in patch and not same_value(current.get("status"), patch["status"]):
            action = STATUS_ACTIONS.get(str(patch["status"]).strip(), AuditAction.UPDATE)

        if not self._record_audit(action, collection, rid, diff_fields(current, new), new):
            return False

        rows[idx] = new
        if new_lines is not None:
            self._remove_lines(rid)
            self._rows(JOURNAL_LINES.name).extend(new_lines)
        if collection == JOURNAL_LINES.name:
            self._relink(current.get("journalId"))
            self._relink(new.get("journalId"))

        self._changed(collection, action)
        logger.debug("Updated %s/%s (%s)", collection, rid, action.value)
        return True

    def delete(self, collection: str, record_id: Any) -> bool:
        """
        Remove a record; JournalEntries cascade to their JournalLines.

        The audit entry carries the full prior record as ``changes``.

        Returns:
            False when the record does not exist or the delete could not
            be audited

        Raises:
            UnknownCollectionError: collection was never declared
        """
        rows = self._rows(collection)
        if self._refuse_write(collection, "delete"):
            return False

        idx = self._index(rows, record_id)
        if idx < 0:
            logger.info(record_not_found(collection, normalize_id(record_id)))
            return False

        prior = rows[idx]
        rid = prior["id"]
        if not self._record_audit(AuditAction.DELETE, collection, rid, prior, prior):
            return False

        del rows[idx]
        if collection == JOURNAL_ENTRIES.name:
            removed = self._remove_lines(rid)
            logger.debug("Cascade removed %d lines of journal %s", removed, rid)
        elif collection == JOURNAL_LINES.name:
            self._relink(prior.get("journalId"))

        self._changed(collection, AuditAction.DELETE)
        logger.debug("Deleted %s/%s", collection, rid)
        return True

    # ========================================================================
    # Internals
    # ========================================================================

    def _rows(self, collection: str) -> list[Record]:
        """Mutable list for a declared collection, created lazily."""
        if collection not in self._declared:
            raise UnknownCollectionError(collection)
        return self._collections.setdefault(collection, [])

    @staticmethod
    def _index(rows: list[Record], record_id: Any) -> int:
        wanted = normalize_id(record_id)
        if not wanted:
            return -1
        for idx, row in enumerate(rows):
            if normalize_id(row.get("id")) == wanted:
                return idx
        return -1

    @staticmethod
    def _refuse_write(collection: str, operation: str) -> bool:
        spec = get_spec(collection)
        if spec is not None and spec.append_only:
            logger.error("Refusing %s on append-only collection %s", operation, collection)
            return True
        return False

    @staticmethod
    def _normalize(collection: str, record: Record) -> None:
        if collection == USERS.name and "permissions" in record:
            record["permissions"] = parse_permissions(record["permissions"])

    def _record_audit(
        self,
        action: AuditAction,
        collection: str,
        record_id: str,
        changes: Any,
        record: Record,
    ) -> bool:
        """Build and append the audit entry; False means the mutation must not happen."""
        try:
            entry = self.audit.entry(action, collection, record_id, changes, record, self.actor)
            self._write_audit(entry)
        except AuditError as e:
            logger.error("Audit failed, %s of %s/%s not applied: %s", action.value, collection, record_id, e)
            return False
        return True

    def _write_audit(self, entry: Record) -> None:
        self._rows(AUDIT_LOG.name).append(entry)

    def _remove_lines(self, journal_id: str) -> int:
        lines = self._rows(JOURNAL_LINES.name)
        kept = [line for line in lines if not same_value(line.get("journalId"), journal_id)]
        removed = len(lines) - len(kept)
        lines[:] = kept
        return removed

    def _relink(self, journal_id: Any) -> None:
        """Refresh one header's ``lines`` from JournalLines."""
        jid = normalize_id(journal_id)
        if not jid:
            return
        headers = self._collections.get(JOURNAL_ENTRIES.name, [])
        idx = self._index(headers, jid)
        if idx < 0:
            return
        children = group_lines(
            line for line in self._collections.get(JOURNAL_LINES.name, [])
            if same_value(line.get("journalId"), jid)
        ).get(jid, [])
        headers[idx][LINES_FIELD] = [dict(line) for line in children]

    def _relink_all(self) -> None:
        groups = group_lines(self._collections.get(JOURNAL_LINES.name, []))
        for header in self._collections.get(JOURNAL_ENTRIES.name, []):
            header[LINES_FIELD] = [dict(line) for line in groups.get(header["id"], [])]

    def _changed(self, collection: str, action: AuditAction) -> None:
        self.revision += 1
        for listener in self._listeners:
            listener(collection, action)
