"""
Personal Debts

Debts a user owes outside the fund. Each user's debts live in their own
collection and only that user can touch them.

Payoff time uses the standard amortization formula with a monthly rate of
interest_rate / 100 / 12:

    months = ceil(-ln(1 - balance * r / payment) / ln(1 + r))

A payment that does not exceed the monthly interest never pays the debt
off, and payoff_months returns None.
"""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_fund.audit import AuditLogger
from savings_fund.core.authorization import AuthorizationGate, authenticated
from savings_fund.core.errors import EntityNotFoundError, ValidationFailedError
from savings_fund.models.fund import (
    Debt,
    DebtStatus,
    DebtUpdate,
    OperationResult,
    apply_update,
)
from savings_fund.services.storage import FundRepository
from savings_fund.validation import LoanValidator, has_errors, summarize


ZERO = Decimal("0")


def debt_progress(debt: Debt) -> Decimal:
    """Percentage of the original amount already repaid."""
    return (debt.total_amount - debt.current_balance) / debt.total_amount * 100


def debt_status(debt: Debt) -> DebtStatus:
    progress = debt_progress(debt)
    if progress >= 100:
        return DebtStatus.PAID
    if progress >= 75:
        return DebtStatus.GOOD
    if progress >= 50:
        return DebtStatus.MEDIUM
    return DebtStatus.HIGH


def payoff_months(debt: Debt) -> Optional[int]:
    """
    Months until the debt is paid off at its current monthly payment.

    Returns:
        0 for a cleared balance, None when there is no payment or it never
        outpaces the interest
    """
    balance = float(debt.current_balance)
    payment = float(debt.monthly_payment)
    if balance <= 0:
        return 0
    if payment <= 0:
        return None

    rate = float(debt.interest_rate) / 100 / 12
    if rate == 0:
        return math.ceil(balance / payment)
    if payment <= balance * rate:
        return None

    return math.ceil(-math.log(1 - balance * rate / payment) / math.log(1 + rate))


class DebtService:
    """Add, update, repay and delete a user's own debts."""

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

    def list_debts(self, user_id: str) -> list[Debt]:
        return self._repository.load_debts(user_id)

    def total_balance(self, user_id: str) -> Decimal:
        return sum((d.current_balance for d in self.list_debts(user_id)), ZERO)

    @authenticated
    def add_debt(
        self,
        creditor: str,
        total_amount: Decimal,
        current_balance: Optional[Decimal] = None,
        interest_rate: Decimal = ZERO,
        monthly_payment: Decimal = ZERO,
        start_date: Optional[date] = None,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        """Record a new debt. The balance defaults to the full amount."""
        now = self._clock()
        debt = Debt(
            creditor=creditor,
            total_amount=total_amount,
            current_balance=total_amount if current_balance is None else current_balance,
            interest_rate=interest_rate,
            monthly_payment=monthly_payment,
            start_date=start_date or now.date(),
            created_at=now,
        )

        debts = self._repository.load_debts(acting_user_id)
        debts.append(debt)
        self._repository.save_debts(acting_user_id, debts)

        self._audit.log_debt_changed(debt.id, "added", acting_user_id)
        return OperationResult.ok(debt)

    @authenticated
    def update_debt(
        self,
        debt_id: str,
        update: DebtUpdate,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        debts = self._repository.load_debts(acting_user_id)
        index = self._index_of(debts, debt_id)
        debts[index] = apply_update(debts[index], update)
        self._repository.save_debts(acting_user_id, debts)

        self._audit.log_debt_changed(debt_id, "updated", acting_user_id)
        return OperationResult.ok(debts[index])

    @authenticated
    def record_payment(
        self,
        debt_id: str,
        amount: Decimal,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        """Reduce the balance by a payment, never below zero."""
        amount = Decimal(str(amount))
        issues = LoanValidator().validate_payment(amount)
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        debts = self._repository.load_debts(acting_user_id)
        index = self._index_of(debts, debt_id)
        debt = debts[index]
        debts[index] = debt.model_copy(update={
            "current_balance": max(ZERO, debt.current_balance - amount),
        })
        self._repository.save_debts(acting_user_id, debts)

        self._audit.log_debt_changed(debt_id, "payment", acting_user_id)
        return OperationResult.ok(debts[index])

    @authenticated
    def delete_debt(self, debt_id: str, *, acting_user_id: str) -> OperationResult:
        debts = self._repository.load_debts(acting_user_id)
        index = self._index_of(debts, debt_id)
        removed = debts.pop(index)
        self._repository.save_debts(acting_user_id, debts)

        self._audit.log_debt_changed(debt_id, "deleted", acting_user_id)
        return OperationResult.ok(removed)

    @staticmethod
    def _index_of(debts: list[Debt], debt_id: str) -> int:
        index = next((i for i, d in enumerate(debts) if d.id == debt_id), None)
        if index is None:
            raise EntityNotFoundError(f"Debt not found: {debt_id}")
        return index
