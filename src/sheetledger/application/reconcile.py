"""
Reconciliation Engine.

Runs once per load and turns decoded sheets into the in-memory shape
the collection store expects:

    1. Canonical string ids; rows without an id get one
    2. Dedupe every collection by id (last occurrence wins)
    3. Dedupe JournalLines by (journalId, lineNumber) and attach each
       group, sorted by lineNumber, as ``lines`` on its JournalEntries
       header; orphan lines stay in JournalLines
    4. Guarantee the required collections exist
    5. Users ``permissions``: comma string -> token list

``flatten`` is the inverse used on save.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping

from sheetledger.domain.records import (
    Collections,
    Record,
    format_permissions,
    generate_id,
    line_id,
    normalize_id,
    parse_line_number,
    parse_permissions,
)
from sheetledger.domain.registry import (
    AUDIT_LOG,
    JOURNAL_ENTRIES,
    JOURNAL_LINES,
    USERS,
    required_names,
)

logger = logging.getLogger(__name__)

LINES_FIELD = "lines"


def reconcile(sheets: Mapping[str, Iterable[Record]]) -> Collections:
    """
    Reconcile decoded sheets.

    Args:
        sheets: Output of the workbook codec (or the seed dataset)

    Returns:
        New collections dict; the input is not modified
    """
    result: Collections = {}

    for name, records in sheets.items():
        rows = [dict(r) for r in records]
        if name == JOURNAL_LINES.name:
            rows = [normalize_line(r) for r in rows]
        assign_ids(name, rows)
        result[name] = dedupe_by_id(name, rows)

    for name in required_names():
        if name not in result:
            logger.debug("Sheet %s missing from workbook; starting empty", name)
            result[name] = []

    result[JOURNAL_LINES.name] = dedupe_lines(result[JOURNAL_LINES.name])
    result[JOURNAL_ENTRIES.name] = attach_lines(
        result[JOURNAL_ENTRIES.name], result[JOURNAL_LINES.name]
    )

    if USERS.name in result:
        for user in result[USERS.name]:
            user["permissions"] = parse_permissions(user.get("permissions"))

    logger.info(
        "Reconciled %d collections (%d records)",
        len(result),
        sum(len(rows) for rows in result.values()),
    )
    return result


def normalize_line(line: Record) -> Record:
    """Canonical journalId (str) and lineNumber (int) on a JournalLines row."""
    line["journalId"] = normalize_id(line.get("journalId"))
    line["lineNumber"] = parse_line_number(line.get("lineNumber"))
    return line


def assign_ids(collection: str, rows: list[Record]) -> None:
    """Canonicalize ids in place; generate missing ones."""
    generated = 0
    for row in rows:
        rid = normalize_id(row.get("id"))
        if not rid:
            if collection == JOURNAL_LINES.name and row.get("journalId"):
                rid = line_id(row["journalId"], row["lineNumber"])
            elif collection == AUDIT_LOG.name:
                rid = f"AUDIT-{generate_id()}"
            else:
                rid = generate_id()
            generated += 1
        row["id"] = rid
    if generated:
        logger.warning("%s: generated ids for %d rows without one", collection, generated)


def dedupe_by_id(collection: str, rows: list[Record]) -> list[Record]:
    """
    Drop duplicate ids, keeping the values of the last occurrence.

    The surviving record keeps the position of the first occurrence.
    """
    by_id: dict[str, Record] = {}
    for row in rows:
        by_id[row["id"]] = row
    dropped = len(rows) - len(by_id)
    if dropped:
        logger.warning("%s: dropped %d duplicate rows", collection, dropped)
    return list(by_id.values())


def dedupe_lines(lines: list[Record]) -> list[Record]:
    """Last occurrence wins per (journalId, lineNumber)."""
    by_key: dict[tuple[str, int] | str, Record] = {}
    for line in lines:
        jid = line.get("journalId", "")
        # Lines without a parent cannot collide; key them by their own id
        key = (jid, line.get("lineNumber", 0)) if jid else line["id"]
        by_key[key] = line
    dropped = len(lines) - len(by_key)
    if dropped:
        logger.warning("JournalLines: dropped %d duplicate line numbers", dropped)
    return list(by_key.values())


def group_lines(lines: Iterable[Record]) -> dict[str, list[Record]]:
    """Group lines by journalId, each group sorted by lineNumber."""
    groups: dict[str, list[Record]] = defaultdict(list)
    for line in lines:
        groups[normalize_id(line.get("journalId"))].append(line)
    for group in groups.values():
        group.sort(key=lambda l: parse_line_number(l.get("lineNumber")))
    return groups


def attach_lines(entries: list[Record], lines: list[Record]) -> list[Record]:
    """Give every header a ``lines`` list of copies of its child lines."""
    groups = group_lines(lines)
    linked: set[str] = set()
    for entry in entries:
        children = groups.get(entry["id"], [])
        entry[LINES_FIELD] = [dict(line) for line in children]
        if children:
            linked.add(entry["id"])

    orphans = sum(len(g) for jid, g in groups.items() if jid not in linked)
    if orphans:
        logger.warning("JournalLines: %d lines have no matching journal entry", orphans)
    return entries


def flatten(collections: Mapping[str, Iterable[Record]]) -> Collections:
    """
    Inverse of reconcile for saving.

    Headers lose ``lines`` (they live in JournalLines) and permissions
    are joined back into a comma string. Returns copies.
    """
    result: Collections = {}
    for name, records in collections.items():
        rows = []
        for record in records:
            row = dict(record)
            if name == JOURNAL_ENTRIES.name:
                row.pop(LINES_FIELD, None)
            elif name == USERS.name and "permissions" in row:
                row["permissions"] = format_permissions(row["permissions"])
            rows.append(row)
        result[name] = rows
    return result
