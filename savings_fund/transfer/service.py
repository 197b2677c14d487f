"""
Export and Import

Exports write members or ledger entries to CSV or XLSX. Imports read the
same tables back:

- import_members creates one member per row that has a name and an email,
  with the configured default password, plus a single ledger entry for
  the row's total savings when it is positive.
- import_entries restores ledger rows as they were exported, matched to
  users by id and then by email.

Imports are best-effort per row: a bad row is recorded in the result's
error list and the remaining rows are still processed. Every row goes
through the same admin-only services as a manual change, so the ledger
invariant and audit trail hold for imported data too.
"""

from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from savings_fund.audit import AuditLogger
from savings_fund.config import FundSettings, get_settings
from savings_fund.core import (
    AuthorizationGate,
    MembershipService,
    SavingsLedger,
    ValidationFailedError,
    admin_only,
    describe_validation_error,
)
from savings_fund.models.fund import ImportResult, OperationResult, SavingsEntry, UserRole, UserUpdate
from savings_fund.services.storage import FundRepository
from savings_fund.transfer.formats import PathLike, TransferError, read_table, write_table
from savings_fund.transfer.tables import (
    ENTRY_COLUMNS,
    MEMBER_COLUMNS,
    TableFormatError,
    entry_rows,
    is_active_status,
    member_rows,
    parse_amount,
    parse_date,
    parse_timestamp,
)


class TransferService:
    """Moves members and ledger entries in and out of spreadsheet files."""

    def __init__(
        self,
        repository: FundRepository,
        membership: MembershipService,
        ledger: SavingsLedger,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[FundSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._membership = membership
        self._ledger = ledger
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._settings = settings or get_settings().fund
        self._clock = clock or datetime.now

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def members_table(self) -> list[dict[str, str]]:
        return member_rows(self._membership.list_members(), self._ledger.all_entries())

    def entries_table(self) -> list[dict[str, str]]:
        return entry_rows(self._ledger.all_entries(), self._membership.list_users())

    @admin_only
    def export_members(self, path: PathLike, *, acting_admin_id: str) -> OperationResult:
        """Write the members table to a .csv or .xlsx file. The value is the row count."""
        count = self._write(path, MEMBER_COLUMNS, self.members_table(), "Members")
        self._audit.log_export(str(path), count, acting_admin_id)
        return OperationResult.ok(count)

    @admin_only
    def export_entries(self, path: PathLike, *, acting_admin_id: str) -> OperationResult:
        """Write every ledger entry to a .csv or .xlsx file. The value is the row count."""
        count = self._write(path, ENTRY_COLUMNS, self.entries_table(), "Entries")
        self._audit.log_export(str(path), count, acting_admin_id)
        return OperationResult.ok(count)

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    @admin_only
    def import_members_file(self, path: PathLike, *, acting_admin_id: str) -> OperationResult:
        result = self.import_members(self._read(path), acting_admin_id=acting_admin_id)
        self._audit.log_import(str(path), result.imported, result.errors, acting_admin_id)
        return OperationResult.ok(result)

    @admin_only
    def import_entries_file(self, path: PathLike, *, acting_admin_id: str) -> OperationResult:
        result = self.import_entries(self._read(path), acting_admin_id=acting_admin_id)
        self._audit.log_import(str(path), result.imported, result.errors, acting_admin_id)
        return OperationResult.ok(result)

    def import_members(self, rows: list[dict[str, str]], *, acting_admin_id: str) -> ImportResult:
        """
        Create a member for each row with a name and an email.

        Rows missing either are skipped. Rows whose user cannot be created
        (duplicate email, bad format, refused permission) are errors.
        """
        result = ImportResult()

        for line, row in enumerate(rows, 2):
            name = (row.get("Name") or "").strip()
            email = (row.get("Email") or "").strip()
            if not name or not email:
                result.skipped += 1
                continue

            try:
                total = parse_amount(row.get("Total Savings"), "Total Savings")
            except TableFormatError as e:
                result.errors.append(f"Row {line} ({name}): {e}")
                continue

            created = self._membership.create_user(
                name, email, role=UserRole.MEMBER, acting_admin_id=acting_admin_id
            )
            if not created.success:
                result.errors.append(f"Row {line} ({name}): {created.error}")
                continue
            result.imported += 1
            user_id = created.value.id

            if not is_active_status(row.get("Status")):
                updated = self._membership.update_user(
                    user_id, UserUpdate(is_active=False), acting_admin_id=acting_admin_id
                )
                if not updated.success:
                    result.errors.append(f"Row {line} ({name}): {updated.error}")

            if total > 0:
                added = self._ledger.add_entry(
                    user_id,
                    total,
                    self._settings.import_entry_description,
                    acting_admin_id=acting_admin_id,
                )
                if not added.success:
                    result.errors.append(f"Row {line} ({name}): {added.error}")

        return result

    def import_entries(self, rows: list[dict[str, str]], *, acting_admin_id: str) -> ImportResult:
        """
        Restore exported ledger rows.

        Entries already in the ledger (same id) are skipped, so importing
        the same export twice changes nothing.
        """
        result = ImportResult()
        users = self._membership.list_users()
        by_id = {u.id: u for u in users}
        by_email = {u.email: u for u in users}

        existing = {e.id for e in self._ledger.all_entries()}
        pending: list[SavingsEntry] = []

        for line, row in enumerate(rows, 2):
            owner = by_id.get((row.get("User ID") or "").strip())
            if owner is None:
                owner = by_email.get((row.get("User Email") or "").strip())
            if owner is None:
                result.errors.append(f"Row {line}: no user matches this entry")
                continue

            entry_id = (row.get("ID") or "").strip()
            if entry_id and entry_id in existing:
                result.skipped += 1
                continue

            try:
                fields = {
                    "user_id": owner.id,
                    "amount": parse_amount(row.get("Amount"), "Amount"),
                    "entry_date": parse_date(row.get("Date"), "Date"),
                    "description": row.get("Description") or "",
                    "created_by": (row.get("Recorded By") or "").strip() or acting_admin_id,
                }
                created_at = (row.get("Created At") or "").strip()
                fields["created_at"] = (
                    parse_timestamp(created_at, "Created At") if created_at else self._clock()
                )
                if entry_id:
                    fields["id"] = entry_id
                entry = SavingsEntry(**fields)
            except TableFormatError as e:
                result.errors.append(f"Row {line}: {e}")
                continue
            except ValidationError as e:
                result.errors.append(f"Row {line}: {describe_validation_error(e)}")
                continue

            if entry_id:
                existing.add(entry_id)
            pending.append(entry)

        if pending:
            restored = self._ledger.restore_entries(pending, acting_admin_id=acting_admin_id)
            if restored.success:
                result.imported = len(restored.value)
            else:
                result.errors.append(restored.error)

        return result

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _write(self, path: PathLike, headers: list[str], rows: list[dict[str, str]], title: str) -> int:
        try:
            return write_table(path, headers, rows, sheet_title=title)
        except TransferError as e:
            self._audit.log_error("export_failed", str(e), {"path": str(path)})
            raise ValidationFailedError(str(e))

    def _read(self, path: PathLike) -> list[dict[str, str]]:
        try:
            return read_table(path)
        except TransferError as e:
            self._audit.log_error("import_failed", str(e), {"path": str(path)})
            raise ValidationFailedError(str(e))
