"""
Loan Engine

Loans are priced with a FLAT-RATE formula:

    principal_payment    = amount / term_months
    interest_per_payment = amount * (interest_rate / 100)
    monthly_payment      = principal_payment + interest_per_payment
    total_payment        = monthly_payment * term_months
    total_interest       = total_payment - amount

The rate is charged in full on the original principal with every
instalment. It is not annualized and does not shrink as the balance is
repaid. The same formula prices loan analysis and loan creation, so the
figure shown before issuing a loan is the figure stored on it.

Intermediate values are kept at full Decimal precision and each output is
rounded half-up to cents, so 1,000,000 at 15% over 12 months gives
83,333.33 + 150,000.00 = 233,333.33 per month and 2,800,000.00 in total.

Repayments only move the running balance; individual payments are not kept.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_fund.audit import AuditLogger
from savings_fund.config import FundSettings, get_settings
from savings_fund.core.authorization import AuthorizationGate, admin_only, fund_operation
from savings_fund.core.errors import EntityNotFoundError, ValidationFailedError
from savings_fund.core.ledger import SavingsLedger
from savings_fund.models.fund import (
    Loan,
    LoanAnalysis,
    LoanQuote,
    LoanStatistics,
    LoanStatus,
    LoanUpdate,
    OperationResult,
    apply_update,
    to_money,
)
from savings_fund.services.storage import FundRepository
from savings_fund.validation import LoanValidator, has_errors, summarize


ZERO = Decimal("0")


def flat_rate_quote(amount: Decimal, interest_rate: Decimal, term_months: int) -> LoanQuote:
    """
    Price a loan with the flat-rate formula.

    Raises:
        ValidationFailedError: For a non-positive term, negative rate or
            non-positive amount
    """
    amount = Decimal(str(amount))
    interest_rate = Decimal(str(interest_rate))

    issues = LoanValidator().validate_terms(amount, interest_rate, term_months)
    if has_errors(issues):
        raise ValidationFailedError(summarize(issues), issues)

    principal_payment = amount / term_months
    interest_per_payment = amount * (interest_rate / 100)
    monthly_payment = principal_payment + interest_per_payment
    total_payment = monthly_payment * term_months

    total_payment = to_money(total_payment)
    return LoanQuote(
        amount=amount,
        interest_rate=interest_rate,
        term_months=term_months,
        principal_payment=to_money(principal_payment),
        interest_per_payment=to_money(interest_per_payment),
        monthly_payment=to_money(monthly_payment),
        total_payment=total_payment,
        total_interest=total_payment - to_money(amount),
    )


class LoanService:
    """
    Issues loans, records repayments and reports loan statistics.

    Every mutation is admin-only.
    """

    def __init__(
        self,
        repository: FundRepository,
        ledger: Optional[SavingsLedger] = None,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[FundSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._ledger = ledger or SavingsLedger(repository, self._gate, self._audit)
        self._settings = settings or get_settings().fund
        self._clock = clock or datetime.now
        self._validator = LoanValidator()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all_loans(self) -> list[Loan]:
        return self._repository.load_loans()

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        return next((loan for loan in self._repository.load_loans() if loan.id == loan_id), None)

    def loans_for_user(self, user_id: str) -> list[Loan]:
        return [loan for loan in self._repository.load_loans() if loan.user_id == user_id]

    def statistics(self) -> LoanStatistics:
        """
        Portfolio figures.

        total_outstanding only counts ACTIVE loans, so a defaulted loan's
        balance shows up in total_paid.
        """
        loans = self._repository.load_loans()
        active = [loan for loan in loans if loan.status == LoanStatus.ACTIVE]
        total_lent = sum((loan.amount for loan in loans), ZERO)
        total_outstanding = sum((loan.remaining_balance for loan in active), ZERO)

        return LoanStatistics(
            total_loans=len(loans),
            active_loans=len(active),
            total_lent=total_lent,
            total_outstanding=total_outstanding,
            total_paid=total_lent - total_outstanding,
            average_loan_amount=to_money(total_lent / len(loans)) if loans else ZERO,
        )

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    @fund_operation
    def analyze_member(
        self,
        user_id: str,
        interest_rate: Decimal,
        term_months: Optional[int] = None,
        loan_percentage: Optional[Decimal] = None,
    ) -> OperationResult:
        """
        How much a member may borrow and what it would cost.

        The ceiling is loan_percentage percent of the member's ledger total.
        """
        if not any(u.id == user_id for u in self._repository.load_users()):
            raise EntityNotFoundError(f"User not found: {user_id}")

        percentage = Decimal(str(
            loan_percentage if loan_percentage is not None
            else self._settings.default_loan_percentage
        ))
        issues = self._validator.validate_percentage(percentage)
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        total_savings = self._ledger.totals_by_user(user_id)
        max_amount = to_money(total_savings * percentage / 100)
        quote = flat_rate_quote(
            max_amount,
            interest_rate,
            term_months or self._settings.default_term_months,
        )

        return OperationResult.ok(LoanAnalysis(
            user_id=user_id,
            total_savings=total_savings,
            loan_percentage=percentage,
            max_loan_amount=max_amount,
            quote=quote,
        ))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @admin_only
    def create_loan(
        self,
        user_id: str,
        amount: Decimal,
        interest_rate: Decimal,
        term_months: int,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """
        Issue a loan.

        monthly_payment is fixed here and never recomputed.
        """
        if not any(u.id == user_id for u in self._repository.load_users()):
            raise EntityNotFoundError(f"User not found: {user_id}")

        quote = flat_rate_quote(amount, interest_rate, term_months)
        now = self._clock()
        loan = Loan(
            user_id=user_id,
            amount=quote.amount,
            interest_rate=quote.interest_rate,
            term_months=quote.term_months,
            monthly_payment=quote.monthly_payment,
            remaining_balance=quote.amount,
            status=LoanStatus.ACTIVE,
            start_date=now.date(),
            created_at=now,
            created_by=acting_admin_id,
        )

        loans = self._repository.load_loans()
        loans.append(loan)
        self._repository.save_loans(loans)

        self._audit.log_loan_created(
            loan.id, user_id, str(loan.amount), str(loan.monthly_payment), acting_admin_id
        )
        return OperationResult.ok(loan)

    def create_loan_from_analysis(
        self,
        analysis: LoanAnalysis,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """Issue the loan an analysis proposed."""
        return self.create_loan(
            analysis.user_id,
            analysis.max_loan_amount,
            analysis.quote.interest_rate,
            analysis.quote.term_months,
            acting_admin_id=acting_admin_id,
        )

    @admin_only
    def make_payment(
        self,
        loan_id: str,
        amount: Decimal,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """
        Apply a repayment.

        The balance never drops below zero; a balance of exactly zero
        marks the loan PAID.
        """
        amount = Decimal(str(amount))
        issues = self._validator.validate_payment(amount)
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        loans = self._repository.load_loans()
        index = next((i for i, loan in enumerate(loans) if loan.id == loan_id), None)
        if index is None:
            raise EntityNotFoundError(f"Loan not found: {loan_id}")

        loan = loans[index]
        new_balance = max(ZERO, loan.remaining_balance - amount)
        status = LoanStatus.PAID if new_balance == ZERO else loan.status
        loans[index] = loan.model_copy(update={
            "remaining_balance": new_balance,
            "status": status,
        })
        self._repository.save_loans(loans)

        self._audit.log_loan_payment(
            loan_id, str(amount), str(new_balance), status.value, acting_admin_id
        )
        return OperationResult.ok(loans[index])

    @admin_only
    def update_loan(
        self,
        loan_id: str,
        update: LoanUpdate,
        *,
        acting_admin_id: str,
    ) -> OperationResult:
        """Apply a partial update, e.g. marking a loan DEFAULTED."""
        loans = self._repository.load_loans()
        index = next((i for i, loan in enumerate(loans) if loan.id == loan_id), None)
        if index is None:
            raise EntityNotFoundError(f"Loan not found: {loan_id}")

        loans[index] = apply_update(loans[index], update)
        self._repository.save_loans(loans)

        fields = sorted(update.model_dump(exclude_unset=True))
        self._audit.log_loan_updated(loan_id, fields, acting_admin_id)
        return OperationResult.ok(loans[index])

    @admin_only
    def delete_loan(self, loan_id: str, *, acting_admin_id: str) -> OperationResult:
        loans = self._repository.load_loans()
        loan = next((loan for loan in loans if loan.id == loan_id), None)
        if loan is None:
            raise EntityNotFoundError(f"Loan not found: {loan_id}")

        self._repository.save_loans([loan for loan in loans if loan.id != loan_id])
        self._audit.log_loan_deleted(loan_id, acting_admin_id)
        return OperationResult.ok(loan)
