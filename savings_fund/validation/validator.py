"""
Input Validation

Validation runs before any collection is written. It never fixes input;
it reports every problem it finds as a ValidationIssue so the caller can
show all of them at once.

Checks live here rather than in the models because most of them need
context the models do not have (existing users, configured limits).

NOTE: Savings ledger amounts are deliberately not validated. The fund has
always accepted whatever amount an admin records.
"""

import re
from decimal import Decimal
from typing import Optional

from savings_fund.config import FundSettings, get_settings
from savings_fund.models.fund import StoredUser, ValidationIssue


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def summarize(issues: list[ValidationIssue]) -> str:
    """Join error messages into one line for an OperationResult."""
    return "; ".join(issue.message for issue in issues if issue.severity == "error")


class MembershipValidator:
    """Validates user data on registration, creation and update."""

    def __init__(self, settings: Optional[FundSettings] = None):
        self._settings = settings or get_settings().fund

    def validate_email(
        self,
        email: str,
        existing_users: list[StoredUser],
        exclude_user_id: Optional[str] = None,
    ) -> list[ValidationIssue]:
        issues = []
        email = (email or "").strip()

        if any(u.email == email and u.id != exclude_user_id for u in existing_users):
            issues.append(ValidationIssue(
                field="email",
                issue_type="duplicate",
                message="Email is already registered",
            ))

        if not EMAIL_PATTERN.match(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message="Invalid email format",
            ))

        return issues

    def validate_password(self, password: str) -> list[ValidationIssue]:
        minimum = self._settings.min_password_length
        if len(password or "") < minimum:
            return [ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {minimum} characters",
            )]
        return []

    def validate_name(self, name: str) -> list[ValidationIssue]:
        if not (name or "").strip():
            return [ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
            )]
        return []

    def validate_new_user(
        self,
        name: str,
        email: str,
        password: Optional[str],
        existing_users: list[StoredUser],
        check_password: bool = True,
    ) -> list[ValidationIssue]:
        """
        Validate a user about to be created.

        Admin-created and imported users get the default password, so the
        length rule only applies to self-registration (check_password=True).
        """
        issues = self.validate_email(email, existing_users)
        issues.extend(self.validate_name(name))
        if check_password:
            issues.extend(self.validate_password(password or ""))
        return issues


class LoanValidator:
    """Validates loan and debt terms before any arithmetic runs."""

    def validate_terms(
        self,
        amount: Decimal,
        interest_rate: Decimal,
        term_months: int,
    ) -> list[ValidationIssue]:
        issues = []

        if amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Loan amount must be greater than zero",
            ))

        if interest_rate < 0:
            issues.append(ValidationIssue(
                field="interest_rate",
                issue_type="invalid_value",
                message="Interest rate cannot be negative",
            ))

        if term_months <= 0:
            issues.append(ValidationIssue(
                field="term_months",
                issue_type="invalid_value",
                message="Term must be at least one month",
            ))

        return issues

    def validate_payment(self, amount: Decimal) -> list[ValidationIssue]:
        if amount <= 0:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Payment amount must be greater than zero",
            )]
        return []

    def validate_percentage(self, percentage: Decimal) -> list[ValidationIssue]:
        if percentage <= 0 or percentage > 100:
            return [ValidationIssue(
                field="loan_percentage",
                issue_type="out_of_range",
                message="Loan percentage must be between 0 and 100",
            )]
        return []
