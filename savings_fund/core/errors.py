"""
Domain Errors

Services raise these internally; the authorization gate turns them into
OperationResult failures at the public boundary, so callers only ever see
a result with a named FailureReason. Storage errors are not domain errors
and propagate unchanged.
"""

from typing import Optional

from savings_fund.models.fund import FailureReason, OperationResult, ValidationIssue


class FundError(Exception):
    """Base exception for fund operations."""

    reason: FailureReason = FailureReason.VALIDATION_FAILED

    def to_result(self) -> OperationResult:
        return OperationResult.fail(self.reason, str(self))


class PermissionDeniedError(FundError):
    """The acting user may not perform this operation."""

    reason = FailureReason.PERMISSION_DENIED


class EntityNotFoundError(FundError):
    """A referenced user, entry, loan or record does not exist."""

    reason = FailureReason.NOT_FOUND


class ValidationFailedError(FundError):
    """Input was rejected. Carries the individual issues."""

    reason = FailureReason.VALIDATION_FAILED

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        self.issues = issues or []
        super().__init__(message)


class AuthenticationFailedError(FundError):
    """Unknown email or wrong password."""

    reason = FailureReason.AUTHENTICATION_FAILED


class InactiveUserError(FundError):
    """The user exists but has been deactivated."""

    reason = FailureReason.INACTIVE_USER
