"""
Audit Logger.

Builds one immutable AuditLog record per store mutation. The store
appends the record itself; if building or appending fails the mutation
is not committed, because an unaudited change is a failed change.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from sheetledger.domain.errors import AuditError
from sheetledger.domain.records import AuditAction, Record, same_value
from sheetledger.domain.registry import label_for

logger = logging.getLogger(__name__)

_VERBS = {
    AuditAction.CREATE: "Created",
    AuditAction.UPDATE: "Updated",
    AuditAction.DELETE: "Deleted",
    AuditAction.APPROVE: "Approved",
    AuditAction.REJECT: "Rejected",
}

# Fields tried, in order, to give a record a readable name in descriptions
_DISPLAY_FIELDS = ("reference", "name", "username", "code", "description")


@dataclass(frozen=True, slots=True)
class Actor:
    """Who performed a mutation."""

    user_id: str = "system"
    username: str = "system"


SYSTEM = Actor()


def audit_id() -> str:
    """Time-based unique id (UUID1 embeds the timestamp)."""
    return f"AUDIT-{uuid.uuid1().hex}"


def diff_fields(before: Record, after: Record) -> dict[str, dict[str, Any]]:
    """
    Field-level changes between two versions of a record.

    Returns:
        {field: {"from": old, "to": new}} for every field whose canonical
        value changed; ``lines`` is summarised by count.
    """
    changes: dict[str, dict[str, Any]] = {}
    for key in list(before) + [k for k in after if k not in before]:
        old, new = before.get(key, ""), after.get(key, "")
        if key == "lines":
            if len(old or []) != len(new or []) or old != new:
                changes[key] = {"from": len(old or []), "to": len(new or [])}
            continue
        if isinstance(old, list) or isinstance(new, list):
            if old != new:
                changes[key] = {"from": old, "to": new}
        elif not same_value(old, new):
            changes[key] = {"from": old, "to": new}
    return changes


def display_name(record: Record) -> str:
    for key in _DISPLAY_FIELDS:
        value = record.get(key)
        if value not in (None, ""):
            return str(value)
    return str(record.get("id", ""))


class AuditLogger:
    """
    Produces AuditLog records.

    Args:
        clock: Returns the current time; UTC now by default
        id_factory: Returns a fresh audit id; UUID1-based by default
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory or audit_id

    def entry(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        changes: Any,
        record: Record | None = None,
        actor: Actor = SYSTEM,
    ) -> Record:
        """
        Build an AuditLog record.

        Args:
            action: What happened
            entity_type: Collection name
            entity_id: Id of the mutated record
            changes: Diff / snapshot; serialized to JSON text
            record: Record used for the human-readable description
            actor: Who did it

        Raises:
            AuditError: the entry could not be built
        """
        try:
            payload = changes if isinstance(changes, str) else json.dumps(
                changes, default=str, ensure_ascii=False
            )
            return {
                "id": self.id_factory(),
                "entityType": entity_type,
                "entityId": entity_id,
                "action": AuditAction(action).value,
                "userId": actor.user_id,
                "username": actor.username,
                "timestamp": self.clock().isoformat(),
                "changes": payload,
                "description": self.describe(action, entity_type, record or {"id": entity_id}),
            }
        except (TypeError, ValueError) as e:
            raise AuditError(f"Could not build audit entry for {entity_type}/{entity_id}: {e}") from e

    @staticmethod
    def describe(action: AuditAction, entity_type: str, record: Record) -> str:
        """E.g. 'Approved journal entry JE-20230315-001'."""
        return f"{_VERBS[AuditAction(action)]} {label_for(entity_type)} {display_name(record)}"
