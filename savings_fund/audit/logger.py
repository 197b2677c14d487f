"""
Audit Logger

DESIGN DECISION: Every change to the fund is logged.
This provides:
1. Complete traceability of deposits, loans and payments
2. Debugging capability when a cached total drifts
3. A record of refused operations

The audit logger:
- Always writes a structured local log line
- Persists to the repository's audit collection when one is configured
- Never raises: an audit failure must not undo or block a fund operation
"""

from typing import Optional

import structlog

from savings_fund.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from savings_fund.services.storage import FundRepository, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The fund repository's audit collection (for persistence)
    """

    def __init__(
        self,
        repository: Optional[FundRepository] = None,
    ):
        """
        Initialize audit logger.

        Args:
            repository: Repository for persistence.
                        If None, only logs locally.
        """
        self._repository = repository
        self._logger = structlog.get_logger("savings_fund.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the repository if available.

        Returns True if the repository write succeeded (or none is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._repository:
            try:
                self._repository.append_audit_event(event)
                return True
            except StorageError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_user_created(self, user_id: str, email: str, role: str, actor_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.user_created(user_id, email, role, actor_id))

    def log_user_updated(self, user_id: str, fields: list[str], actor_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.user_updated(user_id, fields, actor_id))

    def log_user_deleted(self, user_id: str, removed_entries: int, actor_id: str) -> None:
        self.log(AuditEventBuilder.user_deleted(user_id, removed_entries, actor_id))

    def log_login(self, user_id: str) -> None:
        self.log(AuditEventBuilder.login_succeeded(user_id))

    def log_login_failed(self, email: str, reason: str) -> None:
        self.log(AuditEventBuilder.login_failed(email, reason))

    def log_logout(self, user_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.logout(user_id))

    def log_entry_added(self, entry_id: str, user_id: str, amount: str, actor_id: str) -> None:
        self.log(AuditEventBuilder.savings_entry_added(entry_id, user_id, amount, actor_id))

    def log_entry_deleted(self, entry_id: str, user_id: str, amount: str, actor_id: str) -> None:
        self.log(AuditEventBuilder.savings_entry_deleted(entry_id, user_id, amount, actor_id))

    def log_loan_created(
        self,
        loan_id: str,
        user_id: str,
        amount: str,
        monthly_payment: str,
        actor_id: str,
    ) -> None:
        self.log(AuditEventBuilder.loan_created(loan_id, user_id, amount, monthly_payment, actor_id))

    def log_loan_payment(
        self,
        loan_id: str,
        amount: str,
        remaining_balance: str,
        status: str,
        actor_id: str,
    ) -> None:
        self.log(AuditEventBuilder.loan_payment_recorded(
            loan_id, amount, remaining_balance, status, actor_id
        ))

    def log_loan_updated(self, loan_id: str, fields: list[str], actor_id: str) -> None:
        self.log(AuditEventBuilder.loan_updated(loan_id, fields, actor_id))

    def log_loan_deleted(self, loan_id: str, actor_id: str) -> None:
        self.log(AuditEventBuilder.loan_deleted(loan_id, actor_id))

    def log_debt_changed(self, debt_id: str, action: str, actor_id: str) -> None:
        self.log(AuditEventBuilder.record_changed(
            AuditEventType.DEBT_CHANGED, "debt", debt_id, action, actor_id
        ))

    def log_goal_changed(self, goal_id: str, action: str, actor_id: str) -> None:
        self.log(AuditEventBuilder.record_changed(
            AuditEventType.GOAL_CHANGED, "savings_goal", goal_id, action, actor_id
        ))

    def log_preferences_updated(self, user_id: str) -> None:
        self.log(AuditEventBuilder.record_changed(
            AuditEventType.PREFERENCES_UPDATED, "preferences", user_id, "updated", user_id
        ))

    def log_import(self, source: str, imported: int, errors: list[str], actor_id: str) -> None:
        self.log(AuditEventBuilder.import_completed(source, imported, errors, actor_id))

    def log_export(self, target: str, rows: int, actor_id: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.export_completed(target, rows, actor_id))

    def log_permission_denied(self, operation: str, actor_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.permission_denied(operation, actor_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
