"""Tests for the audit trail and application wiring."""

from decimal import Decimal

from savings_fund.audit import AuditLogger
from savings_fund.config import get_settings
from savings_fund.models.audit import AuditEventBuilder, AuditEventType
from savings_fund.orchestrator import FundApp, create_app_components
from savings_fund.services.storage import FundRepository, MemoryStore, StorageError


class FailingStore(MemoryStore):
    def set_item(self, key: str, value: str) -> None:
        raise StorageError("disk full")


class TestAuditTrail:
    """Every mutation leaves an audit event behind."""

    def test_mutations_are_recorded(self, app, repository, admin, member):
        app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=admin.id)
        loan = app.loans.create_loan(
            member.id, Decimal("100"), Decimal("1"), 2, acting_admin_id=admin.id
        ).value
        app.loans.make_payment(loan.id, Decimal("10"), acting_admin_id=admin.id)

        types = [e.event_type for e in repository.load_audit_events()]

        assert types[0] == AuditEventType.USER_CREATED
        assert AuditEventType.SAVINGS_ENTRY_ADDED in types
        assert AuditEventType.LOAN_CREATED in types
        assert AuditEventType.LOAN_PAYMENT_RECORDED in types

    def test_refusals_are_recorded(self, app, repository, member):
        app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=member.id)

        denied = [
            e for e in repository.load_audit_events()
            if e.event_type == AuditEventType.PERMISSION_DENIED
        ]
        assert denied[-1].actor_id == member.id
        assert denied[-1].details["operation"] == "add_entry"

    def test_failed_login_is_recorded(self, app, repository, admin):
        app.membership.login("admin@fund.test", "nope-nope")
        last = repository.load_audit_events()[-1]
        assert last.event_type == AuditEventType.LOGIN_FAILED
        assert last.details["reason"] == "wrong_password"

    def test_audit_failure_does_not_raise(self):
        logger = AuditLogger(FundRepository(FailingStore()))
        assert logger.log(AuditEventBuilder.logout("u1")) is False

    def test_local_only_logger(self):
        assert AuditLogger().log(AuditEventBuilder.logout("u1")) is True


class TestWiring:
    def test_services_share_one_repository(self, repository):
        app = FundApp(repository)
        admin = app.membership.register("Ana", "ana@fund.test", "secret1").value
        member = app.membership.create_user("Bo", "bo@fund.test", acting_admin_id=admin.id).value

        app.ledger.add_entry(member.id, Decimal("5"), "", acting_admin_id=admin.id)

        assert app.reports.fund_summary().total_savings == Decimal("5")
        assert app.loans.analyze_member(member.id, Decimal("1")).value.total_savings == Decimal("5")

    def test_create_app_components_in_memory(self, monkeypatch):
        monkeypatch.delenv("FUND_BOOTSTRAP_ADMIN_EMAIL", raising=False)
        get_settings.cache_clear()
        try:
            app = create_app_components(use_storage=False)
            assert isinstance(app.repository.store, MemoryStore)
            assert app.membership.list_users() == []
        finally:
            get_settings.cache_clear()

    def test_create_app_components_with_json_store(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FUND_STORAGE_BACKEND", "json")
        monkeypatch.setenv("FUND_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("FUND_BOOTSTRAP_ADMIN_EMAIL", "root@fund.test")
        monkeypatch.setenv("FUND_BOOTSTRAP_ADMIN_PASSWORD", "rootpass")
        get_settings.cache_clear()
        try:
            app = create_app_components()
            assert app.membership.find_by_email("root@fund.test").is_admin
            assert (tmp_path / "savings-fund-users.json").exists()

            again = create_app_components()
            assert len(again.membership.list_users()) == 1
        finally:
            get_settings.cache_clear()
