"""
Tests for the savings fund models.

Test strategy:
1. Unit tests for individual components (models, validators, formulas)
2. Service tests against an in-memory store
3. No files touched outside pytest's tmp_path
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from savings_fund.models.fund import (
    Loan,
    LoanStatus,
    LoanUpdate,
    OperationResult,
    FailureReason,
    Preferences,
    SavingsEntry,
    SavingsGoal,
    StoredUser,
    UserRole,
    ValidationIssue,
    apply_update,
    to_money,
)
from savings_fund.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestFundModels:
    """Tests for the stored Pydantic models."""

    def test_user_defaults(self):
        """A new user is an active member with nothing saved."""
        user = StoredUser(email="a@b.co", name="Ana")
        assert user.role == UserRole.MEMBER
        assert user.is_active
        assert user.total_savings == Decimal("0")
        assert not user.is_admin

    def test_user_strips_whitespace(self):
        user = StoredUser(email="  a@b.co ", name="  Ana  ")
        assert user.email == "a@b.co"
        assert user.name == "Ana"

    def test_public_user_has_no_password_hash(self):
        user = StoredUser(email="a@b.co", name="Ana", password_hash="123")
        public = user.public()
        assert "password_hash" not in public.model_dump()
        assert public.id == user.id

    def test_records_use_camel_case_names(self):
        """Stored collections keep their camelCase field names."""
        entry = SavingsEntry(
            user_id="u1",
            amount=Decimal("50"),
            entry_date=date(2024, 3, 1),
            created_by="admin",
        )
        record = entry.to_record()
        assert record["userId"] == "u1"
        assert record["date"] == "2024-03-01"
        assert record["createdBy"] == "admin"
        assert SavingsEntry.model_validate(record) == entry

    def test_savings_entry_is_immutable(self):
        entry = SavingsEntry(
            user_id="u1",
            amount=Decimal("50"),
            entry_date=date(2024, 3, 1),
            created_by="admin",
        )
        with pytest.raises(ValueError):
            entry.amount = Decimal("60")

    def test_utc_timestamps_are_stored_naive(self):
        entry = SavingsEntry.model_validate({
            "userId": "u1",
            "amount": "50",
            "date": "2024-03-15",
            "createdAt": "2024-03-15T08:00:00.000Z",
            "createdBy": "admin",
        })
        assert entry.created_at == datetime(2024, 3, 15, 8, 0)

        offset = StoredUser(email="a@b.co", name="Ana", created_at="2024-03-15T10:00:00+02:00")
        assert offset.created_at == datetime(2024, 3, 15, 8, 0)

    def test_loan_rejects_negative_balance(self):
        """Test that negative balances are rejected."""
        with pytest.raises(ValueError):
            Loan(
                user_id="u1",
                amount=Decimal("100"),
                interest_rate=Decimal("5"),
                term_months=2,
                monthly_payment=Decimal("55"),
                remaining_balance=Decimal("-1"),
                start_date=date(2024, 1, 1),
                created_by="admin",
            )

    def test_goal_requires_positive_target(self):
        with pytest.raises(ValueError):
            SavingsGoal(name="Bike", target_amount=Decimal("0"))

    def test_preferences_defaults(self):
        prefs = Preferences()
        assert prefs.currency == "USD"
        assert prefs.language == "es"
        assert prefs.notifications
        assert not prefs.dark_mode


class TestHelpers:
    """Tests for money rounding, updates and operation results."""

    def test_to_money_rounds_half_up(self):
        assert to_money(Decimal("0.005")) == Decimal("0.01")
        assert to_money(Decimal("83333.3333")) == Decimal("83333.33")

    def test_apply_update_only_touches_set_fields(self):
        loan = Loan(
            user_id="u1",
            amount=Decimal("100"),
            interest_rate=Decimal("5"),
            term_months=2,
            monthly_payment=Decimal("55"),
            remaining_balance=Decimal("100"),
            start_date=date(2024, 1, 1),
            created_by="admin",
        )
        updated = apply_update(loan, LoanUpdate(status=LoanStatus.DEFAULTED))
        assert updated.status == LoanStatus.DEFAULTED
        assert updated.remaining_balance == Decimal("100")
        assert updated.id == loan.id

    def test_operation_result_ok_and_fail(self):
        ok = OperationResult.ok(3)
        assert ok.success and ok.value == 3 and ok.reason is None

        failed = OperationResult.fail(FailureReason.NOT_FOUND, "missing")
        assert not failed.success
        assert failed.reason == FailureReason.NOT_FOUND
        assert failed.error == "missing"

    def test_validation_issue_severity_pattern(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="missing", message="m", severity="fatal")


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.SAVINGS_ENTRY_ADDED,
            description="Deposit recorded",
        )
        assert event.event_type == AuditEventType.SAVINGS_ENTRY_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_log_dict_round_trip(self):
        event = AuditEventBuilder.loan_created("l1", "u1", "1000", "250", "admin")
        data = event.to_log_dict()
        assert data["event_type"] == "loan_created"
        assert data["entity_id"] == "l1"

        restored = AuditEvent.from_log_dict(data)
        assert restored.event_id == event.event_id
        assert restored.details == event.details

    def test_audit_event_builder_user_deleted_is_warning(self):
        event = AuditEventBuilder.user_deleted("u1", 3, "admin")
        assert event.severity == AuditSeverity.WARNING
        assert event.details["removed_entries"] == 3

    def test_audit_event_builder_permission_denied(self):
        event = AuditEventBuilder.permission_denied("add_entry", "u2")
        assert event.event_type == AuditEventType.PERMISSION_DENIED
        assert event.actor_id == "u2"
