"""Input validation package."""

from savings_fund.validation.validator import (
    EMAIL_PATTERN,
    LoanValidator,
    MembershipValidator,
    has_errors,
    summarize,
)

__all__ = [
    "EMAIL_PATTERN",
    "LoanValidator",
    "MembershipValidator",
    "has_errors",
    "summarize",
]
