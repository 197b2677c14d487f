"""
Tabular views of the fund

DESIGN DECISION: Export and import speak plain rows.
A table is a header list plus rows of strings keyed by header. The same
rows go to CSV and XLSX, and both readers hand back the same shape, so
what one format exports the other can import.

Dates and timestamps are written in ISO format and amounts as plain
decimal strings, so reading a table back gives exactly the exported values.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from savings_fund.models.fund import SavingsEntry, User


# =============================================================================
# COLUMNS
# =============================================================================

MEMBER_COLUMNS = [
    "User ID",
    "Name",
    "Email",
    "Status",
    "Total Savings",
    "Deposit Count",
    "Last Deposit",
    "Last Amount",
    "Registered",
]

ENTRY_COLUMNS = [
    "ID",
    "User ID",
    "User",
    "User Email",
    "Amount",
    "Date",
    "Description",
    "Recorded By",
    "Created At",
]

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"


class TableFormatError(ValueError):
    """A cell could not be read as the value its column holds."""
    pass


# =============================================================================
# CELL PARSING
# =============================================================================

def parse_amount(value: Optional[str], column: str) -> Decimal:
    text = (value or "").strip()
    if not text:
        return Decimal("0")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise TableFormatError(f"{column}: '{text}' is not a number")
    if not amount.is_finite():
        raise TableFormatError(f"{column}: '{text}' is not a finite number")
    return amount


def parse_date(value: Optional[str], column: str) -> date:
    text = (value or "").strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise TableFormatError(f"{column}: '{text}' is not a date (YYYY-MM-DD)")


def parse_timestamp(value: Optional[str], column: str) -> datetime:
    text = (value or "").strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise TableFormatError(f"{column}: '{text}' is not a timestamp")


def is_active_status(value: Optional[str]) -> bool:
    """Anything other than an explicit 'Inactive' counts as active."""
    return (value or "").strip().lower() != STATUS_INACTIVE.lower()


# =============================================================================
# ROW BUILDERS
# =============================================================================

def member_rows(members: list[User], entries: list[SavingsEntry]) -> list[dict[str, str]]:
    """
    One row per member with their ledger total and latest deposit.

    The latest deposit is the last one recorded for the member.
    """
    rows = []
    for member in members:
        own = [e for e in entries if e.user_id == member.id]
        last = own[-1] if own else None
        rows.append({
            "User ID": member.id,
            "Name": member.name,
            "Email": member.email,
            "Status": STATUS_ACTIVE if member.is_active else STATUS_INACTIVE,
            "Total Savings": str(sum((e.amount for e in own), Decimal("0"))),
            "Deposit Count": str(len(own)),
            "Last Deposit": last.entry_date.isoformat() if last else "",
            "Last Amount": str(last.amount) if last else "0",
            "Registered": member.created_at.date().isoformat(),
        })
    return rows


def entry_rows(entries: list[SavingsEntry], users: list[User]) -> list[dict[str, str]]:
    """One row per ledger entry, with the owner's name and email alongside."""
    by_id = {u.id: u for u in users}
    rows = []
    for entry in entries:
        owner = by_id.get(entry.user_id)
        rows.append({
            "ID": entry.id,
            "User ID": entry.user_id,
            "User": owner.name if owner else "",
            "User Email": owner.email if owner else "",
            "Amount": str(entry.amount),
            "Date": entry.entry_date.isoformat(),
            "Description": entry.description,
            "Recorded By": entry.created_by,
            "Created At": entry.created_at.isoformat(),
        })
    return rows
