"""
Fund Repository

Typed access to the fund's collections on top of any KeyValueStore.

DESIGN DECISION: Every collection is read and written as a whole.
Services follow one discipline for every mutation:
    read entire collection -> mutate in memory -> write entire collection
There are no field-level or row-level writes. This keeps the stored JSON
identical in shape to what the fund has always kept, at the price of
last-write-wins when two writers share a store.

Key names match the existing stored data so old data directories load as-is.
"""

import json
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from savings_fund.models.audit import AuditEvent
from savings_fund.models.fund import (
    Debt,
    Loan,
    Preferences,
    SavingsEntry,
    SavingsGoal,
    SessionPointer,
    StoredUser,
)
from savings_fund.services.storage.interface import CorruptDataError, KeyValueStore


USERS_KEY = "savings-fund-users"
ENTRIES_KEY = "savings-fund-entries"
LOANS_KEY = "savings-fund-loans"
AUTH_KEY = "savings-fund-auth"
AUDIT_KEY = "savings-fund-audit"

# Per-user collections are stored under "<base>-<user_id>"
DEBTS_BASE_KEY = "finance-debts"
GOALS_BASE_KEY = "finance-savings-goals"
SETTINGS_BASE_KEY = "finance-settings"


M = TypeVar("M", bound=BaseModel)


def user_key(base_key: str, user_id: str) -> str:
    """Storage key for a collection owned by one user."""
    return f"{base_key}-{user_id}"


class FundRepository:
    """
    Reads and writes the fund's collections.

    One instance is created per application and passed to every service.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # -------------------------------------------------------------------------
    # Generic collection helpers
    # -------------------------------------------------------------------------

    def _read_json(self, key: str):
        raw = self._store.get_item(key)
        if raw is None or raw == "":
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Collection {key} is not valid JSON: {e}")

    def _read_collection(self, key: str, model: type[M]) -> list[M]:
        data = self._read_json(key)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CorruptDataError(f"Collection {key} is not a JSON array")
        try:
            return [model.model_validate(row) for row in data]
        except ValidationError as e:
            raise CorruptDataError(f"Collection {key} has a malformed record: {e}")

    def _write_collection(self, key: str, items: list) -> None:
        rows = [item.to_record() for item in items]
        self._store.set_item(key, json.dumps(rows, ensure_ascii=False))

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def load_users(self) -> list[StoredUser]:
        return self._read_collection(USERS_KEY, StoredUser)

    def save_users(self, users: list[StoredUser]) -> None:
        self._write_collection(USERS_KEY, users)

    # -------------------------------------------------------------------------
    # Savings ledger
    # -------------------------------------------------------------------------

    def load_entries(self) -> list[SavingsEntry]:
        return self._read_collection(ENTRIES_KEY, SavingsEntry)

    def save_entries(self, entries: list[SavingsEntry]) -> None:
        self._write_collection(ENTRIES_KEY, entries)

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def load_loans(self) -> list[Loan]:
        return self._read_collection(LOANS_KEY, Loan)

    def save_loans(self, loans: list[Loan]) -> None:
        self._write_collection(LOANS_KEY, loans)

    # -------------------------------------------------------------------------
    # Per-user collections
    # -------------------------------------------------------------------------

    def load_debts(self, user_id: str) -> list[Debt]:
        return self._read_collection(user_key(DEBTS_BASE_KEY, user_id), Debt)

    def save_debts(self, user_id: str, debts: list[Debt]) -> None:
        self._write_collection(user_key(DEBTS_BASE_KEY, user_id), debts)

    def load_goals(self, user_id: str) -> list[SavingsGoal]:
        return self._read_collection(user_key(GOALS_BASE_KEY, user_id), SavingsGoal)

    def save_goals(self, user_id: str, goals: list[SavingsGoal]) -> None:
        self._write_collection(user_key(GOALS_BASE_KEY, user_id), goals)

    def load_preferences(self, user_id: str) -> Optional[Preferences]:
        data = self._read_json(user_key(SETTINGS_BASE_KEY, user_id))
        if data is None:
            return None
        try:
            return Preferences.model_validate(data)
        except ValidationError as e:
            raise CorruptDataError(f"Preferences for {user_id} are malformed: {e}")

    def save_preferences(self, user_id: str, preferences: Preferences) -> None:
        self._store.set_item(
            user_key(SETTINGS_BASE_KEY, user_id),
            json.dumps(preferences.to_record()),
        )

    def remove_user_collections(self, user_id: str) -> None:
        """Drop every per-user collection for a user."""
        for base in (DEBTS_BASE_KEY, GOALS_BASE_KEY, SETTINGS_BASE_KEY):
            self._store.remove_item(user_key(base, user_id))

    # -------------------------------------------------------------------------
    # Session pointer
    # -------------------------------------------------------------------------

    def get_session(self) -> Optional[SessionPointer]:
        try:
            data = self._read_json(AUTH_KEY)
        except CorruptDataError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return SessionPointer.model_validate(data)
        except ValidationError:
            return None

    def set_session(self, user_id: str) -> None:
        pointer = SessionPointer(user_id=user_id)
        self._store.set_item(AUTH_KEY, json.dumps(pointer.to_record()))

    def clear_session(self) -> None:
        self._store.remove_item(AUTH_KEY)

    # -------------------------------------------------------------------------
    # Audit log (append-only)
    # -------------------------------------------------------------------------

    def append_audit_event(self, event: AuditEvent) -> None:
        data = self._read_json(AUDIT_KEY) or []
        data.append(event.to_log_dict())
        self._store.set_item(AUDIT_KEY, json.dumps(data, ensure_ascii=False))

    def load_audit_events(self) -> list[AuditEvent]:
        data = self._read_json(AUDIT_KEY) or []
        events = []
        for row in data:
            try:
                events.append(AuditEvent.from_log_dict(row))
            except (ValidationError, KeyError, ValueError):
                continue  # Skip malformed rows
        return events
