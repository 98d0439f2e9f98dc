"""
Tests for the collection store.

Covers id rules, idempotent create, journal line ownership, the audit
trail written by every mutation, and the append-only AuditLog.
"""

import json

import pytest

from sheetledger.domain.errors import AuditError, UnknownCollectionError


def _audit(store):
    return store.list("AuditLog")


def _journal(**overrides):
    journal = {
        "id": "JE100",
        "date": "2024-05-01",
        "description": "Transfer",
        "reference": "JE-20240501-001",
        "status": "Draft",
        "lines": [
            {"type": "debit", "program": "1", "paymentCenter": "1", "amount": 250},
            {"type": "credit", "program": "2", "paymentCenter": "2", "amount": "250.00"},
        ],
    }
    journal.update(overrides)
    return journal


class TestCreate:
    """Inserts, ids and idempotency."""

    def test_create_generates_id(self, store):
        created = store.create("Suppliers", {"name": "Acme"})
        assert created["id"]
        assert store.get("Suppliers", created["id"])["name"] == "Acme"

    def test_numeric_and_string_ids_are_the_same_record(self, store):
        store.create("Programs", {"id": 7.0, "name": "Seven"})
        assert store.get("Programs", "7")["name"] == "Seven"
        assert store.get("Programs", 7)["id"] == "7"

    def test_duplicate_create_returns_existing(self, store):
        store.create("Programs", {"id": "1", "name": "Original"})
        again = store.create("Programs", {"id": 1, "name": "Imposter"})

        assert again["name"] == "Original"
        assert len(store.list("Programs")) == 1
        assert len(_audit(store)) == 1

    def test_reads_return_copies(self, store):
        store.create("Programs", {"id": "1", "name": "Original"})
        copy = store.get("Programs", "1")
        copy["name"] = "Changed"
        store.list("Programs")[0]["name"] = "Changed too"

        assert store.get("Programs", "1")["name"] == "Original"

    def test_user_permissions_materialized(self, store):
        user = store.create("Users", {"username": "ann", "permissions": "read, write"})
        assert user["permissions"] == ["read", "write"]

    def test_unknown_collection_raises(self, store):
        store.create("Programs", {"id": "1", "name": "Ops"})
        before = store.snapshot()
        revision = store.revision

        with pytest.raises(UnknownCollectionError):
            store.create("Nope", {"id": "1"})
        with pytest.raises(UnknownCollectionError):
            store.update("Nope", "1", {})
        with pytest.raises(UnknownCollectionError):
            store.delete("Nope", "1")

        assert store.snapshot() == before
        assert store.revision == revision
        assert len(_audit(store)) == 1

    def test_unknown_collection_reads_are_empty(self, store):
        assert store.get("Nope", "1") is None
        assert store.list("Nope") == []
        assert store.filter("Nope", "name", "x") == []

    def test_declare_allows_new_collection(self, store):
        store.declare("Notes")
        created = store.create("Notes", {"text": "hello"})
        assert store.list("Notes") == [created]
        assert "Notes" in store.collection_names()

    @pytest.mark.parametrize("name", ["Q1/Q2 Notes", "a:b", "[x]", "", "x" * 32])
    def test_declare_rejects_unsavable_names(self, store, name):
        with pytest.raises(ValueError):
            store.declare(name)
        assert not store.is_declared(name)

    def test_registered_collection_created_lazily(self, store):
        assert "Expenses" not in store.collection_names()
        store.create("Expenses", {"amount": 10})
        assert "Expenses" in store.collection_names()


class TestUpdateDelete:
    """Shallow merge, missing records, deletes."""

    def test_update_merges_and_keeps_id(self, store):
        store.create("Suppliers", {"id": "S1", "name": "Acme", "phone": "1"})
        assert store.update("Suppliers", "S1", {"id": "OTHER", "name": "Acme Ltd"})

        record = store.get("Suppliers", "S1")
        assert record == {"id": "S1", "name": "Acme Ltd", "phone": "1"}
        assert store.get("Suppliers", "OTHER") is None

    def test_update_missing_returns_false(self, store):
        assert store.update("Suppliers", "missing", {"name": "x"}) is False
        assert _audit(store) == []

    def test_delete(self, store):
        store.create("Suppliers", {"id": "S1", "name": "Acme"})
        assert store.delete("Suppliers", 1) is False
        assert store.delete("Suppliers", "S1") is True
        assert store.get("Suppliers", "S1") is None

    def test_delete_missing_returns_false(self, store):
        assert store.delete("Suppliers", "missing") is False


class TestAuditTrail:
    """Every successful mutation appends exactly one AuditLog record."""

    def test_create_update_delete_are_audited(self, store):
        store.create("Suppliers", {"id": "S1", "name": "Acme"})
        store.update("Suppliers", "S1", {"name": "Acme Ltd"})
        store.delete("Suppliers", "S1")

        entries = _audit(store)
        assert [e["action"] for e in entries] == ["CREATE", "UPDATE", "DELETE"]
        assert [e["id"] for e in entries] == ["AUDIT-0001", "AUDIT-0002", "AUDIT-0003"]
        assert all(e["entityType"] == "Suppliers" and e["entityId"] == "S1" for e in entries)

    def test_update_changes_are_a_diff(self, store):
        store.create("Suppliers", {"id": "S1", "name": "Acme", "phone": "1"})
        store.update("Suppliers", "S1", {"name": "Acme Ltd", "phone": 1})

        changes = json.loads(_audit(store)[-1]["changes"])
        assert changes == {"name": {"from": "Acme", "to": "Acme Ltd"}}

    def test_delete_records_prior_state(self, store):
        store.create("Suppliers", {"id": "S1", "name": "Acme"})
        store.delete("Suppliers", "S1")

        entry = _audit(store)[-1]
        assert json.loads(entry["changes"]) == {"id": "S1", "name": "Acme"}
        assert entry["description"] == "Deleted supplier Acme"

    def test_status_change_to_approved_is_approve(self, store):
        store.create("JournalEntries", _journal())
        store.update("JournalEntries", "JE100", {"status": "Approved"})
        assert _audit(store)[-1]["action"] == "APPROVE"

    def test_status_change_to_rejected_is_reject(self, store):
        store.create("Expenses", {"id": "E1", "status": "Committed"})
        store.update("Expenses", "E1", {"status": "Rejected", "reason": "dup"})
        assert _audit(store)[-1]["action"] == "REJECT"

    def test_unchanged_status_is_plain_update(self, store):
        store.create("JournalEntries", _journal(status="Approved"))
        store.update("JournalEntries", "JE100", {"status": "Approved", "notes": "x"})
        assert _audit(store)[-1]["action"] == "UPDATE"

    def test_actor_recorded(self, store):
        store.set_actor(2.0, "manager")
        store.create("Programs", {"name": "P"})
        entry = _audit(store)[-1]
        assert (entry["userId"], entry["username"]) == ("2", "manager")

    def test_audit_failure_aborts_mutation(self, store, monkeypatch):
        store.create("Suppliers", {"id": "S1", "name": "Acme"})
        revision = store.revision

        def boom(*args, **kwargs):
            raise AuditError("audit sink unavailable")

        monkeypatch.setattr(store.audit, "entry", boom)

        assert store.create("Suppliers", {"id": "S2"}) is None
        assert store.update("Suppliers", "S1", {"name": "Changed"}) is False
        assert store.delete("Suppliers", "S1") is False

        assert store.get("Suppliers", "S2") is None
        assert store.get("Suppliers", "S1")["name"] == "Acme"
        assert store.revision == revision
        assert len(_audit(store)) == 1

    def test_audit_log_is_append_only(self, store):
        store.create("Programs", {"id": "1"})
        entry_id = _audit(store)[0]["id"]

        assert store.create("AuditLog", {"id": "forged"}) is None
        assert store.update("AuditLog", entry_id, {"action": "DELETE"}) is False
        assert store.delete("AuditLog", entry_id) is False
        assert len(_audit(store)) == 1
        assert _audit(store)[0]["action"] == "CREATE"


class TestJournals:
    """JournalEntries own their JournalLines."""

    def test_create_numbers_lines(self, store):
        header = store.create("JournalEntries", _journal())

        lines = store.filter("JournalLines", "journalId", "JE100")
        assert [l["lineNumber"] for l in lines] == [1, 2]
        assert [l["id"] for l in lines] == ["JE100-L1", "JE100-L2"]
        assert [l["amount"] for l in lines] == [250.0, 250.0]
        assert header["totalAmount"] == 250.0
        assert header["lines"] == lines

    def test_unbalanced_lines_are_preserved(self, store):
        store.create("JournalEntries", _journal(lines=[
            {"type": "debit", "paymentCenter": "1", "amount": 100},
            {"type": "credit", "paymentCenter": "2", "amount": 40},
        ]))
        header = store.get("JournalEntries", "JE100")
        assert header["totalAmount"] == 100.0
        assert [l["amount"] for l in header["lines"]] == [100.0, 40.0]

    def test_header_without_lines(self, store):
        header = store.create("JournalEntries", {"id": "JE1", "description": "empty"})
        assert header["lines"] == []

    def test_update_replaces_all_lines(self, store):
        store.create("JournalEntries", _journal())
        store.update("JournalEntries", "JE100", {"lines": [
            {"type": "debit", "paymentCenter": "1", "amount": 10},
            {"type": "debit", "paymentCenter": "1", "amount": 5},
            {"type": "credit", "paymentCenter": "2", "amount": 15},
        ]})

        lines = store.filter("JournalLines", "journalId", "JE100")
        assert [(l["lineNumber"], l["amount"]) for l in lines] == [(1, 10.0), (2, 5.0), (3, 15.0)]
        header = store.get("JournalEntries", "JE100")
        assert header["totalAmount"] == 15.0
        assert len(header["lines"]) == 3
        assert json.loads(_audit(store)[-1]["changes"])["lines"] == {"from": 2, "to": 3}

    def test_update_without_lines_keeps_them(self, store):
        store.create("JournalEntries", _journal())
        store.update("JournalEntries", "JE100", {"notes": "checked"})
        assert len(store.get("JournalEntries", "JE100")["lines"]) == 2
        assert len(store.list("JournalLines")) == 2

    def test_delete_cascades(self, store):
        store.create("JournalEntries", _journal())
        store.create("JournalEntries", _journal(id="JE200"))

        assert store.delete("JournalEntries", "JE100")
        assert store.filter("JournalLines", "journalId", "JE100") == []
        assert len(store.filter("JournalLines", "journalId", "JE200")) == 2

    def test_direct_line_create_relinks_header(self, store):
        store.create("JournalEntries", _journal())
        store.create("JournalLines", {
            "journalId": "JE100", "lineNumber": 3, "type": "debit", "amount": 1,
        })
        header = store.get("JournalEntries", "JE100")
        assert [l["lineNumber"] for l in header["lines"]] == [1, 2, 3]

    def test_direct_line_delete_relinks_header(self, store):
        store.create("JournalEntries", _journal())
        store.delete("JournalLines", "JE100-L2")
        header = store.get("JournalEntries", "JE100")
        assert [l["id"] for l in header["lines"]] == ["JE100-L1"]


class TestQueries:
    """filter / find_budget / snapshot / populate."""

    def test_filter_compares_canonical_strings(self, sample_store):
        expenses = sample_store.filter("Expenses", "paymentCenter", 1)
        assert {e["id"] for e in expenses} == {"EXP001", "EXP002"}

    def test_filter_list_field_by_membership(self, sample_store):
        approvers = sample_store.filter("Users", "permissions", "approve")
        assert {u["username"] for u in approvers} == {"admin", "manager"}

    def test_find_budget(self, sample_store):
        budget = sample_store.find_budget(3, 2024)
        assert budget["id"] == "PCB003"
        assert sample_store.find_budget(3, 1999) is None

    def test_populate_links_lines(self, sample_store):
        header = sample_store.get("JournalEntries", "JE001")
        assert [l["type"] for l in header["lines"]] == ["debit", "credit"]

    def test_snapshot_is_independent(self, sample_store):
        snapshot = sample_store.snapshot()
        sample_store.create("Programs", {"id": "99", "name": "Later"})
        assert all(p["id"] != "99" for p in snapshot["Programs"])

    def test_listeners_and_revision(self, store):
        seen = []
        store.add_listener(lambda name, action: seen.append((name, action.value)))

        store.create("Programs", {"id": "1"})
        store.update("Programs", "1", {"name": "x"})
        store.update("Programs", "missing", {"name": "x"})

        assert seen == [("Programs", "CREATE"), ("Programs", "UPDATE")]
        assert store.revision == 2
