"""Per-user display preferences."""

from typing import Optional

from savings_fund.audit import AuditLogger
from savings_fund.config import FundSettings, get_settings
from savings_fund.core.authorization import AuthorizationGate, authenticated
from savings_fund.models.fund import OperationResult, Preferences, PreferencesUpdate, apply_update
from savings_fund.services.storage import FundRepository


class PreferencesService:
    def __init__(
        self,
        repository: FundRepository,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[FundSettings] = None,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._settings = settings or get_settings().fund

    def defaults(self) -> Preferences:
        return Preferences(currency=self._settings.currency, language=self._settings.language)

    def get_preferences(self, user_id: str) -> Preferences:
        """
        A user's preferences.

        The first read of a user without stored preferences writes the
        configured defaults, so later reads see the same values.
        """
        preferences = self._repository.load_preferences(user_id)
        if preferences is None:
            preferences = self.defaults()
            self._repository.save_preferences(user_id, preferences)
        return preferences

    @authenticated
    def update_preferences(
        self,
        update: PreferencesUpdate,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        preferences = apply_update(self.get_preferences(acting_user_id), update)
        self._repository.save_preferences(acting_user_id, preferences)
        self._audit.log_preferences_updated(acting_user_id)
        return OperationResult.ok(preferences)
