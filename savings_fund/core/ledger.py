"""
Savings Ledger

The ledger is the append-only list of deposits into the fund. It is the
ground truth for every member's savings: `totals_by_user` sums it directly.

INVARIANT: after every add or delete, the stored User.total_savings of the
affected user equals totals_by_user(user_id). The ledger refreshes that
stored copy itself, inside the same operation, so no write path can skip it.
Readers going through MembershipService get totals recomputed from the
ledger anyway.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_fund.audit import AuditLogger
from savings_fund.core.authorization import AuthorizationGate, admin_only
from savings_fund.core.errors import EntityNotFoundError
from savings_fund.models.fund import OperationResult, SavingsEntry
from savings_fund.services.storage import FundRepository


def ledger_totals(entries: list[SavingsEntry]) -> dict[str, Decimal]:
    """Sum entry amounts per user id."""
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for entry in entries:
        totals[entry.user_id] += entry.amount
    return dict(totals)


class SavingsLedger:
    """
    Records and removes deposits.

    Mutations are admin-only and go through the authorization gate.
    """

    def __init__(
        self,
        repository: FundRepository,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._clock = clock or datetime.now

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all_entries(self) -> list[SavingsEntry]:
        return self._repository.load_entries()

    def entries_for_user(self, user_id: str) -> list[SavingsEntry]:
        return [e for e in self._repository.load_entries() if e.user_id == user_id]

    def totals_by_user(self, user_id: str) -> Decimal:
        """Sum of every entry recorded for a user."""
        return sum(
            (e.amount for e in self._repository.load_entries() if e.user_id == user_id),
            Decimal("0"),
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @admin_only
    def add_entry(
        self,
        user_id: str,
        amount: Decimal,
        description: str,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """
        Record a deposit for a user, dated today.

        Returns:
            OperationResult whose value is the new SavingsEntry
        """
        users = self._repository.load_users()
        if not any(u.id == user_id for u in users):
            raise EntityNotFoundError(f"User not found: {user_id}")

        now = self._clock()
        entry = SavingsEntry(
            user_id=user_id,
            amount=Decimal(str(amount)),
            entry_date=now.date(),
            description=description or "",
            created_at=now,
            created_by=acting_admin_id,
        )

        entries = self._repository.load_entries()
        entries.append(entry)
        self._repository.save_entries(entries)
        self._refresh_user_total(user_id, entries)

        self._audit.log_entry_added(entry.id, user_id, str(entry.amount), acting_admin_id)
        return OperationResult.ok(entry)

    @admin_only
    def delete_entry(self, entry_id: str, *, acting_admin_id: str) -> OperationResult:
        """Remove a deposit and refresh the owner's total."""
        entries = self._repository.load_entries()
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            raise EntityNotFoundError(f"Savings entry not found: {entry_id}")

        remaining = [e for e in entries if e.id != entry_id]
        self._repository.save_entries(remaining)
        self._refresh_user_total(entry.user_id, remaining)

        self._audit.log_entry_deleted(entry.id, entry.user_id, str(entry.amount), acting_admin_id)
        return OperationResult.ok(entry)

    @admin_only
    def restore_entries(
        self,
        entries: list[SavingsEntry],
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """
        Append previously exported entries as they are, keeping their ids,
        dates and authors. Entries whose id is already in the ledger are left
        out.

        Returns:
            OperationResult whose value is the list of entries appended
        """
        user_ids = {u.id for u in self._repository.load_users()}
        missing = sorted({e.user_id for e in entries} - user_ids)
        if missing:
            raise EntityNotFoundError(f"User not found: {', '.join(missing)}")

        current = self._repository.load_entries()
        seen = {e.id for e in current}
        added = []
        for entry in entries:
            if entry.id not in seen:
                seen.add(entry.id)
                added.append(entry)

        if added:
            current.extend(added)
            self._repository.save_entries(current)
            self._refresh_user_totals({e.user_id for e in added}, current)
            for entry in added:
                self._audit.log_entry_added(entry.id, entry.user_id, str(entry.amount), acting_admin_id)
        return OperationResult.ok(added)

    def _refresh_user_total(self, user_id: str, entries: list[SavingsEntry]) -> None:
        self._refresh_user_totals({user_id}, entries)

    def _refresh_user_totals(self, user_ids: set[str], entries: list[SavingsEntry]) -> None:
        totals = ledger_totals(entries)
        users = self._repository.load_users()
        changed = False
        for index, user in enumerate(users):
            if user.id not in user_ids:
                continue
            total = totals.get(user.id, Decimal("0"))
            if user.total_savings != total:
                users[index] = user.model_copy(update={"total_savings": total})
                changed = True
        if changed:
            self._repository.save_users(users)
