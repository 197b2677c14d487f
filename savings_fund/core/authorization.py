"""
Authorization Gate

DESIGN DECISION: Every mutating entry point passes through one gate instead
of re-checking roles inline. Service methods are decorated:

    @admin_only          -> keyword argument acting_admin_id must be an active admin
    @authenticated       -> keyword argument acting_user_id must be an active user
    @fund_operation      -> no identity check, only error translation

All three convert FundError subclasses and pydantic validation errors into
OperationResult failures, so a decorated method either returns its own
result or a failure result.
The decorated service must expose `_gate` (an AuthorizationGate).
"""

from functools import wraps
from typing import Optional

from pydantic import ValidationError

from savings_fund.audit import AuditLogger
from savings_fund.core.errors import FundError, PermissionDeniedError
from savings_fund.models.fund import FailureReason, OperationResult, StoredUser
from savings_fund.services.storage import FundRepository


class AuthorizationGate:
    """Resolves acting users and checks their capabilities."""

    def __init__(
        self,
        repository: FundRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit = audit_logger

    def _find(self, user_id: Optional[str]) -> Optional[StoredUser]:
        if not user_id:
            return None
        return next((u for u in self._repository.load_users() if u.id == user_id), None)

    def _deny(self, operation: str, user_id: Optional[str], message: str) -> PermissionDeniedError:
        if self._audit:
            self._audit.log_permission_denied(operation, user_id)
        return PermissionDeniedError(message)

    def require_user(self, user_id: Optional[str], operation: str) -> StoredUser:
        user = self._find(user_id)
        if user is None or not user.is_active:
            raise self._deny(operation, user_id, "An active signed-in user is required")
        return user

    def require_admin(self, user_id: Optional[str], operation: str) -> StoredUser:
        user = self._find(user_id)
        if user is None or not user.is_active or not user.is_admin:
            raise self._deny(operation, user_id, "Only administrators can perform this operation")
        return user

    def is_admin(self, user_id: Optional[str]) -> bool:
        user = self._find(user_id)
        return user is not None and user.is_active and user.is_admin


def describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
        for err in error.errors()
    )


def _guarded(call) -> OperationResult:
    try:
        return call()
    except FundError as e:
        return e.to_result()
    except ValidationError as e:
        return OperationResult.fail(FailureReason.VALIDATION_FAILED, describe_validation_error(e))


def fund_operation(func):
    """Translate FundError and model validation errors into a failure OperationResult."""

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        return _guarded(lambda: func(self, *args, **kwargs))

    return wrapper


def admin_only(func):
    """Require `acting_admin_id` to be an active admin."""

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        def call():
            self._gate.require_admin(kwargs.get("acting_admin_id"), func.__name__)
            return func(self, *args, **kwargs)
        return _guarded(call)

    return wrapper


def authenticated(func):
    """Require `acting_user_id` to be an active user."""

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        def call():
            self._gate.require_user(kwargs.get("acting_user_id"), func.__name__)
            return func(self, *args, **kwargs)
        return _guarded(call)

    return wrapper
