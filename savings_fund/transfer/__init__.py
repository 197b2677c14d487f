"""Spreadsheet export and import (CSV and XLSX)."""

from savings_fund.transfer.formats import (
    TableFormat,
    TransferError,
    detect_format,
    read_csv,
    read_table,
    read_xlsx,
    write_csv,
    write_table,
    write_xlsx,
)
from savings_fund.transfer.service import TransferService
from savings_fund.transfer.tables import (
    ENTRY_COLUMNS,
    MEMBER_COLUMNS,
    TableFormatError,
    entry_rows,
    member_rows,
)

__all__ = [
    "TableFormat",
    "TransferError",
    "detect_format",
    "read_csv",
    "read_table",
    "read_xlsx",
    "write_csv",
    "write_table",
    "write_xlsx",
    "TransferService",
    "ENTRY_COLUMNS",
    "MEMBER_COLUMNS",
    "TableFormatError",
    "entry_rows",
    "member_rows",
]
