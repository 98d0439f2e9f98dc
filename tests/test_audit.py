"""
Tests for audit entry construction.
"""

import json
from datetime import datetime, timezone

import pytest

from sheetledger.application.audit import Actor, AuditLogger, audit_id, diff_fields
from sheetledger.domain.errors import AuditError
from sheetledger.domain.records import AuditAction


class TestAuditLogger:

    def setup_method(self):
        self.logger = AuditLogger(
            clock=lambda: datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            id_factory=lambda: "AUDIT-1",
        )

    def test_entry_fields(self):
        entry = self.logger.entry(
            AuditAction.APPROVE,
            "JournalEntries",
            "JE1",
            {"status": {"from": "Draft", "to": "Approved"}},
            record={"id": "JE1", "reference": "JE-20240102-001"},
            actor=Actor("2", "manager"),
        )
        assert entry == {
            "id": "AUDIT-1",
            "entityType": "JournalEntries",
            "entityId": "JE1",
            "action": "APPROVE",
            "userId": "2",
            "username": "manager",
            "timestamp": "2024-01-02T03:04:05+00:00",
            "changes": '{"status": {"from": "Draft", "to": "Approved"}}',
            "description": "Approved journal entry JE-20240102-001",
        }

    def test_defaults_to_system_actor_and_id_description(self):
        entry = self.logger.entry(AuditAction.DELETE, "Notes", "n1", {})
        assert entry["userId"] == "system"
        assert entry["description"] == "Deleted Notes n1"

    def test_unserializable_changes_raise(self):
        changes = {}
        changes["self"] = changes
        with pytest.raises(AuditError):
            self.logger.entry(AuditAction.UPDATE, "Programs", "1", changes)

    def test_changes_are_json(self):
        entry = self.logger.entry(AuditAction.CREATE, "Programs", "1", {"when": datetime(2024, 1, 1)})
        assert json.loads(entry["changes"]) == {"when": "2024-01-01 00:00:00"}


class TestHelpers:

    def test_audit_ids_are_unique(self):
        ids = {audit_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("AUDIT-") for i in ids)

    def test_diff_fields(self):
        before = {"id": "1", "name": "a", "amount": 1, "lines": [{}, {}]}
        after = {"id": 1, "name": "b", "amount": 1.0, "lines": [{}], "notes": "new"}
        assert diff_fields(before, after) == {
            "name": {"from": "a", "to": "b"},
            "lines": {"from": 2, "to": 1},
            "notes": {"from": "", "to": "new"},
        }
