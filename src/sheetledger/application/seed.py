"""
Data Initializer - default dataset.

Used when no remote workbook can be loaded, and (with samples) to
build the template workbook. Returns the flat at-rest shape: user
permissions as comma strings and journal lines in their own
collection, so it goes through the same reconciliation as a workbook.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sheetledger.domain.records import Collections, Record, build_lines, debit_total
from sheetledger.domain.registry import registered_names

ADMIN_PERMISSIONS = "read,write,delete,admin,approve"


def build_default_dataset(
    include_samples: bool = False,
    now: datetime | None = None,
) -> Collections:
    """
    Build the default dataset.

    Args:
        include_samples: Add sample users, suppliers, expenses, budgets
            and journal entries on top of the reference tables
        now: Clock override for createdAt / budget year

    Returns:
        Every registered collection, reference tables seeded
    """
    now = now or datetime.now(timezone.utc)
    created_at = now.isoformat()

    data: Collections = {name: [] for name in registered_names()}
    data["PaymentCenters"] = _payment_centers()
    data["PaymentTypes"] = _payment_types()
    data["ExpenseStatus"] = _expense_statuses()
    data["Programs"] = _programs()
    data["Users"] = [
        {
            "id": "1",
            "username": "admin",
            "name": "Administrator",
            "email": "admin@example.com",
            "role": "admin",
            "permissions": ADMIN_PERMISSIONS,
            "status": "active",
            "lastLogin": "",
            "createdAt": created_at,
        }
    ]

    if include_samples:
        data["Users"].extend(_sample_users(created_at))
        data["Suppliers"] = _sample_suppliers()
        data["Expenses"] = _sample_expenses()
        data["PaymentCenterBudgets"] = _sample_budgets(now.year)
        entries, lines = _sample_journals()
        data["JournalEntries"] = entries
        data["JournalLines"] = lines

    return data


# ============================================================================
# Reference tables
# ============================================================================


def _payment_centers() -> list[Record]:
    return [
        {"id": "1", "name": "GDC", "description": "GDC Payment Center"},
        {"id": "2", "name": "VCES", "description": "VCES Payment Center"},
        {"id": "3", "name": "Commercial", "description": "Commercial Payment Center"},
        {"id": "4", "name": "Operation", "description": "Operation Payment Center"},
    ]


def _payment_types() -> list[Record]:
    return [
        {"id": "1", "name": "PO", "description": "Purchase Order"},
        {"id": "2", "name": "Credit Card", "description": "Credit Card Payment"},
        {"id": "3", "name": "Activiti", "description": "Activiti Invoice"},
    ]


def _expense_statuses() -> list[Record]:
    return [
        {"id": "1", "name": "Committed", "description": "Expense is committed but not paid"},
        {"id": "2", "name": "Invoiced", "description": "Invoice received but not paid"},
        {"id": "3", "name": "Paid", "description": "Expense is paid"},
    ]


def _programs() -> list[Record]:
    return [
        {"id": "1", "name": "General Operations", "description": "Day-to-day operational expenses", "budget": "250000"},
        {"id": "2", "name": "Outreach Program", "description": "Community outreach and education", "budget": "75000"},
        {"id": "3", "name": "Research Initiative", "description": "Research and development projects", "budget": "120000"},
        {"id": "4", "name": "Infrastructure", "description": "Infrastructure maintenance and upgrades", "budget": "180000"},
        {"id": "5", "name": "Staff Development", "description": "Training and professional development", "budget": "50000"},
    ]


# ============================================================================
# Samples
# ============================================================================


def _sample_users(created_at: str) -> list[Record]:
    rows = [
        ("2", "manager", "John Manager", "john@example.com", "manager", "read,write,approve"),
        ("3", "user", "Jane User", "jane@example.com", "user", "read,write"),
        ("4", "viewer", "View Only", "viewer@example.com", "viewer", "read"),
    ]
    return [
        {
            "id": uid,
            "username": username,
            "name": name,
            "email": email,
            "role": role,
            "permissions": permissions,
            "status": "active",
            "lastLogin": "",
            "createdAt": created_at,
        }
        for uid, username, name, email, role, permissions in rows
    ]


def _sample_suppliers() -> list[Record]:
    return [
        {
            "id": "SUP001", "code": "SUP001", "name": "Tech Solutions Inc", "category": "1",
            "status": "Active", "contactName": "John Smith", "email": "john@techsolutions.com",
            "phone": "(03) 9555-1234", "address": "123 Tech Lane Melbourne VIC 3000",
            "abn": "12 345 678 901", "paymentTerms": "30",
            "notes": "Preferred IT hardware supplier", "createdAt": "2023-01-15T00:00:00+00:00",
        },
        {
            "id": "SUP002", "code": "SUP002", "name": "Office Supplies Co", "category": "2",
            "status": "Active", "contactName": "Sarah Johnson", "email": "sarah@officesupplies.com",
            "phone": "(03) 9555-5678", "address": "456 Supply Street Melbourne VIC 3000",
            "abn": "23 456 789 012", "paymentTerms": "14",
            "notes": "Regular office supply vendor", "createdAt": "2023-02-10T00:00:00+00:00",
        },
        {
            "id": "SUP003", "code": "SUP003", "name": "Education Resources Ltd", "category": "5",
            "status": "Active", "contactName": "Michael Chen", "email": "michael@eduresources.com",
            "phone": "(03) 9555-9012", "address": "789 Learning Road Melbourne VIC 3000",
            "abn": "34 567 890 123", "paymentTerms": "30",
            "notes": "Educational materials and resources", "createdAt": "2023-03-05T00:00:00+00:00",
        },
    ]


def _sample_expenses() -> list[Record]:
    rows = [
        ("EXP001", "2023-01-20", "Computer Equipment Purchase", "SUP001", "5699.99", "1", "1", "1",
         "Paid", "New laptops for staff", "2023-01-25", "2023-02-10", "admin"),
        ("EXP002", "2023-02-05", "Office Supplies", "SUP002", "824.50", "2", "1", "1",
         "Paid", "Monthly office supplies", "2023-02-05", "2023-02-05", "admin"),
        ("EXP003", "2023-02-15", "Educational Materials", "SUP003", "3450.00", "1", "2", "2",
         "Invoiced", "Materials for outreach program", "2023-02-20", "", "user"),
    ]
    return [
        {
            "id": eid, "date": spent, "description": desc, "supplier": supplier,
            "amount": amount, "paymentType": ptype, "paymentCenter": center,
            "program": program, "status": status, "notes": notes,
            "invoiceDate": invoiced, "paymentDate": paid, "createdBy": by,
            "createdAt": f"{spent}T09:00:00+00:00",
        }
        for (eid, spent, desc, supplier, amount, ptype, center, program,
             status, notes, invoiced, paid, by) in rows
    ]


def _sample_budgets(year: int) -> list[Record]:
    rows = [
        ("PCB001", "1", "500000", "GDC annual budget"),
        ("PCB002", "2", "300000", "VCES annual budget"),
        ("PCB003", "3", "750000", "Commercial activities budget"),
        ("PCB004", "4", "450000", "Operations budget"),
    ]
    return [
        {
            "id": bid, "paymentCenterId": center, "year": str(year), "budget": budget,
            "description": desc, "notes": "", "createdAt": f"{year}-01-01T00:00:00+00:00",
        }
        for bid, center, budget, desc in rows
    ]


def _sample_journals() -> tuple[list[Record], list[Record]]:
    """Two approved transfers between payment centers, with balanced lines."""
    specs = [
        ("JE001", "2023-03-15", "Budget Reallocation - Q1 Adjustment", "JE-20230315-001",
         ("2", "2"), ("1", "1"), 5000.0, "admin"),
        ("JE002", "2023-04-05", "Fund Transfer - Equipment Purchase", "JE-20230405-001",
         ("3", "4"), ("4", "3"), 7500.0, "user"),
    ]
    entries: list[Record] = []
    all_lines: list[Record] = []
    for jid, day, desc, ref, (dr_program, dr_center), (cr_program, cr_center), amount, by in specs:
        lines = build_lines(jid, [
            {"type": "debit", "program": dr_program, "paymentCenter": dr_center, "amount": amount},
            {"type": "credit", "program": cr_program, "paymentCenter": cr_center, "amount": amount},
        ])
        entries.append({
            "id": jid, "date": day, "description": desc, "reference": ref,
            "totalAmount": debit_total(lines), "status": "Approved", "notes": "",
            "createdBy": by, "createdAt": f"{day}T10:30:00+00:00",
            "approvedBy": "admin", "approvedAt": f"{day}T15:00:00+00:00",
            "rejectedBy": "", "rejectedAt": "", "reason": "",
        })
        all_lines.extend(lines)
    return entries, all_lines
