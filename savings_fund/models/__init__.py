"""
Data Models Package

This package contains all Pydantic models used by the savings fund.
Everything persisted or reported must conform to these schemas.
"""

from savings_fund.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from savings_fund.models.fund import (
    Debt,
    DebtStatus,
    DebtUpdate,
    FailureReason,
    FundSummary,
    ImportResult,
    Loan,
    LoanAnalysis,
    LoanQuote,
    LoanStatistics,
    LoanStatus,
    LoanUpdate,
    MemberReport,
    MonthlyTrendPoint,
    OperationResult,
    Preferences,
    PreferencesUpdate,
    ReportPeriod,
    SavingsEntry,
    SavingsGoal,
    SavingsGoalUpdate,
    SessionPointer,
    StoredUser,
    User,
    UserRole,
    UserUpdate,
    ValidationIssue,
    apply_update,
    to_money,
)

__all__ = [
    # Fund models
    "Debt",
    "DebtStatus",
    "DebtUpdate",
    "FailureReason",
    "FundSummary",
    "ImportResult",
    "Loan",
    "LoanAnalysis",
    "LoanQuote",
    "LoanStatistics",
    "LoanStatus",
    "LoanUpdate",
    "MemberReport",
    "MonthlyTrendPoint",
    "OperationResult",
    "Preferences",
    "PreferencesUpdate",
    "ReportPeriod",
    "SavingsEntry",
    "SavingsGoal",
    "SavingsGoalUpdate",
    "SessionPointer",
    "StoredUser",
    "User",
    "UserRole",
    "UserUpdate",
    "ValidationIssue",
    "apply_update",
    "to_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
