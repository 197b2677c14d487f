"""Fund domain services: membership, ledger, loans and personal finance records."""

from savings_fund.core.authorization import (
    AuthorizationGate,
    admin_only,
    authenticated,
    describe_validation_error,
    fund_operation,
)
from savings_fund.core.debts import DebtService, debt_progress, debt_status, payoff_months
from savings_fund.core.errors import (
    AuthenticationFailedError,
    EntityNotFoundError,
    FundError,
    InactiveUserError,
    PermissionDeniedError,
    ValidationFailedError,
)
from savings_fund.core.goals import SavingsGoalService, goal_progress
from savings_fund.core.ledger import SavingsLedger, ledger_totals
from savings_fund.core.loans import LoanService, flat_rate_quote
from savings_fund.core.membership import MembershipService, simple_hash
from savings_fund.core.preferences import PreferencesService

__all__ = [
    "AuthorizationGate",
    "admin_only",
    "authenticated",
    "describe_validation_error",
    "fund_operation",
    "DebtService",
    "debt_progress",
    "debt_status",
    "payoff_months",
    "AuthenticationFailedError",
    "EntityNotFoundError",
    "FundError",
    "InactiveUserError",
    "PermissionDeniedError",
    "ValidationFailedError",
    "SavingsGoalService",
    "goal_progress",
    "SavingsLedger",
    "ledger_totals",
    "LoanService",
    "flat_rate_quote",
    "MembershipService",
    "simple_hash",
    "PreferencesService",
]
