"""
Audit Models for the Savings Fund

Every change to the fund's money or membership is logged for audit purposes.
This provides:
1. Traceability of who recorded which deposit, loan or payment
2. Debugging information when totals look wrong
3. A record of refused operations (permission denied, failed logins)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Identity & membership
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"

    # Savings ledger
    SAVINGS_ENTRY_ADDED = "savings_entry_added"
    SAVINGS_ENTRY_DELETED = "savings_entry_deleted"

    # Loans
    LOAN_CREATED = "loan_created"
    LOAN_PAYMENT_RECORDED = "loan_payment_recorded"
    LOAN_UPDATED = "loan_updated"
    LOAN_DELETED = "loan_deleted"

    # Personal records
    DEBT_CHANGED = "debt_changed"
    GOAL_CHANGED = "goal_changed"
    PREFERENCES_UPDATED = "preferences_updated"

    # Bulk transfer
    IMPORT_COMPLETED = "import_completed"
    EXPORT_COMPLETED = "export_completed"

    # Authorization and system
    PERMISSION_DENIED = "permission_denied"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'savings_entry', 'loan')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it
    actor_id: Optional[str] = Field(
        default=None,
        description="ID of the user who performed the action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging and storage.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    @classmethod
    def from_log_dict(cls, data: dict) -> "AuditEvent":
        """Rebuild an event from to_log_dict() output."""
        return cls(
            event_id=UUID(data["event_id"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            event_type=AuditEventType(data["event_type"]),
            severity=AuditSeverity(data["severity"]),
            entity_type=data.get("entity_type"),
            entity_id=data.get("entity_id"),
            actor_id=data.get("actor_id"),
            description=data["description"],
            details=data.get("details") or {},
            error_message=data.get("error_message"),
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.savings_entry_added(entry_id, user_id, amount, admin_id)
        event = AuditEventBuilder.loan_created(loan_id, user_id, amount, admin_id)
    """

    @staticmethod
    def user_created(user_id: str, email: str, role: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User created: {email}",
            details={"email": email, "role": role},
        )

    @staticmethod
    def user_updated(user_id: str, fields: list[str], actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def user_deleted(user_id: str, removed_entries: int, actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User deleted with {removed_entries} savings entries",
            details={"removed_entries": removed_entries},
        )

    @staticmethod
    def login_succeeded(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description="User logged in",
        )

    @staticmethod
    def login_failed(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Login failed for {email}",
            details={"email": email, "reason": reason},
        )

    @staticmethod
    def logout(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGOUT,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description="User logged out",
        )

    @staticmethod
    def savings_entry_added(entry_id: str, user_id: str, amount: str, actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_ENTRY_ADDED,
            entity_type="savings_entry",
            entity_id=entry_id,
            actor_id=actor_id,
            description=f"Deposit of {amount} recorded",
            details={"user_id": user_id, "amount": amount},
        )

    @staticmethod
    def savings_entry_deleted(entry_id: str, user_id: str, amount: str, actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_ENTRY_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="savings_entry",
            entity_id=entry_id,
            actor_id=actor_id,
            description=f"Deposit of {amount} deleted",
            details={"user_id": user_id, "amount": amount},
        )

    @staticmethod
    def loan_created(
        loan_id: str,
        user_id: str,
        amount: str,
        monthly_payment: str,
        actor_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_CREATED,
            entity_type="loan",
            entity_id=loan_id,
            actor_id=actor_id,
            description=f"Loan of {amount} issued",
            details={
                "user_id": user_id,
                "amount": amount,
                "monthly_payment": monthly_payment,
            },
        )

    @staticmethod
    def loan_payment_recorded(
        loan_id: str,
        amount: str,
        remaining_balance: str,
        status: str,
        actor_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_PAYMENT_RECORDED,
            entity_type="loan",
            entity_id=loan_id,
            actor_id=actor_id,
            description=f"Payment of {amount} recorded, balance {remaining_balance}",
            details={
                "amount": amount,
                "remaining_balance": remaining_balance,
                "status": status,
            },
        )

    @staticmethod
    def loan_updated(loan_id: str, fields: list[str], actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_UPDATED,
            entity_type="loan",
            entity_id=loan_id,
            actor_id=actor_id,
            description=f"Loan updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def loan_deleted(loan_id: str, actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="loan",
            entity_id=loan_id,
            actor_id=actor_id,
            description="Loan deleted",
        )

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        action: str,
        actor_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {action}",
            details={"action": action},
        )

    @staticmethod
    def import_completed(
        source: str,
        imported: int,
        errors: list[str],
        actor_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            severity=AuditSeverity.WARNING if errors else AuditSeverity.INFO,
            entity_type="import",
            actor_id=actor_id,
            description=f"Imported {imported} rows from {source} ({len(errors)} errors)",
            details={"source": source, "imported": imported, "errors": errors[:20]},
        )

    @staticmethod
    def export_completed(target: str, rows: int, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_COMPLETED,
            entity_type="export",
            actor_id=actor_id,
            description=f"Exported {rows} rows to {target}",
            details={"target": target, "rows": rows},
        )

    @staticmethod
    def permission_denied(operation: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            actor_id=actor_id,
            description=f"Permission denied: {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
