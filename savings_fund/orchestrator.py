"""
Application Wiring for the Savings Fund

This module builds every service of the fund on top of one repository and
one audit logger, so all of them see the same collections and write to
the same audit trail.

DESIGN DECISION: Services never reach for global state.
Each one receives the repository, the authorization gate and the audit
logger explicitly. create_app_components() is the single place that
decides which store backs them.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from savings_fund.audit import AuditLogger
from savings_fund.config import Settings, get_settings
from savings_fund.core import (
    AuthorizationGate,
    DebtService,
    LoanService,
    MembershipService,
    PreferencesService,
    SavingsGoalService,
    SavingsLedger,
)
from savings_fund.queries import FundReporter
from savings_fund.services.storage import (
    FundRepository,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    StorageError,
)
from savings_fund.transfer import TransferService


logger = structlog.get_logger("savings_fund.orchestrator")


class FundApp:
    """All fund services, sharing one repository, gate and audit logger."""

    def __init__(
        self,
        repository: FundRepository,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = settings or get_settings()
        fund_settings = settings.fund

        self.repository = repository
        self.audit = audit_logger or AuditLogger(repository)
        self.gate = AuthorizationGate(repository, self.audit)

        self.membership = MembershipService(
            repository, self.gate, self.audit, settings=fund_settings, clock=clock
        )
        self.ledger = SavingsLedger(repository, self.gate, self.audit, clock=clock)
        self.loans = LoanService(
            repository, self.ledger, self.gate, self.audit, settings=fund_settings, clock=clock
        )
        self.debts = DebtService(repository, self.gate, self.audit, clock=clock)
        self.goals = SavingsGoalService(repository, self.gate, self.audit, clock=clock)
        self.preferences = PreferencesService(
            repository, self.gate, self.audit, settings=fund_settings
        )
        self.reports = FundReporter(
            repository, clock=clock, trend_months=fund_settings.trend_months
        )
        self.transfer = TransferService(
            repository,
            self.membership,
            self.ledger,
            self.gate,
            self.audit,
            settings=fund_settings,
            clock=clock,
        )


def _build_store(settings: Settings, use_storage: bool) -> KeyValueStore:
    storage = settings.storage
    if not use_storage or storage.backend == "memory":
        return MemoryStore()

    try:
        return JsonFileStore(storage.data_dir)
    except StorageError as e:
        # Storage not available - continue in memory
        logger.warning("storage_unavailable", data_dir=storage.data_dir, error=str(e))
        return MemoryStore()


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FundApp:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                     Set to False for an in-memory fund (testing).
        settings: Settings to use instead of get_settings()
        clock: Replacement for datetime.now

    Returns:
        A FundApp with the bootstrap admin created when configured
    """
    settings = settings or get_settings()
    repository = FundRepository(_build_store(settings, use_storage))

    audit_logger = AuditLogger(repository if settings.storage.audit_enabled else None)
    app = FundApp(repository, audit_logger, settings=settings, clock=clock)
    app.membership.ensure_bootstrap_admin()
    return app
