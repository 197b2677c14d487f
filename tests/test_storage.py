"""Tests for the key/value stores and the fund repository."""

import json
import pytest
from datetime import date
from decimal import Decimal

from savings_fund.models.fund import Preferences, SavingsEntry, StoredUser
from savings_fund.services.storage import (
    CorruptDataError,
    FundRepository,
    JsonFileStore,
    MemoryStore,
    StorageError,
)
from savings_fund.services.storage.repository import ENTRIES_KEY, USERS_KEY, user_key


class TestMemoryStore:
    def test_set_get_remove(self):
        store = MemoryStore()
        assert store.get_item("k") is None
        store.set_item("k", "v")
        assert store.get_item("k") == "v"
        assert store.keys() == ["k"]
        store.remove_item("k")
        assert store.get_item("k") is None

    def test_remove_missing_key_is_noop(self):
        MemoryStore().remove_item("missing")


class TestJsonFileStore:
    """Tests for the directory-backed store."""

    def test_values_persist_across_instances(self, tmp_path):
        JsonFileStore(tmp_path).set_item("savings-fund-users", "[]")
        assert JsonFileStore(tmp_path).get_item("savings-fund-users") == "[]"
        assert (tmp_path / "savings-fund-users.json").exists()

    def test_rejects_unsafe_keys(self, tmp_path):
        store = JsonFileStore(tmp_path)
        with pytest.raises(StorageError):
            store.set_item("../escape", "x")

    def test_keys_and_remove(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set_item("a", "1")
        store.set_item("b", "2")
        store.remove_item("a")
        store.remove_item("a")
        assert store.keys() == ["b"]

    def test_failed_write_leaves_no_temp_file(self, tmp_path, monkeypatch):
        store = JsonFileStore(tmp_path)

        def refuse(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr("savings_fund.services.storage.local.os.replace", refuse)
        with pytest.raises(StorageError):
            store.set_item("a", "1")

        assert list(tmp_path.iterdir()) == []


class TestFundRepository:
    """Tests for typed collection access."""

    def test_empty_collections(self):
        repo = FundRepository(MemoryStore())
        assert repo.load_users() == []
        assert repo.load_entries() == []
        assert repo.load_loans() == []
        assert repo.load_preferences("u1") is None

    def test_users_round_trip_in_camel_case(self):
        store = MemoryStore()
        repo = FundRepository(store)
        user = StoredUser(email="a@b.co", name="Ana", password_hash="97")
        repo.save_users([user])

        raw = json.loads(store.get_item(USERS_KEY))
        assert raw[0]["isActive"] is True
        assert raw[0]["passwordHash"] == "97"
        assert repo.load_users() == [user]

    def test_entries_round_trip(self):
        repo = FundRepository(MemoryStore())
        entry = SavingsEntry(
            user_id="u1",
            amount=Decimal("10.50"),
            entry_date=date(2024, 2, 29),
            created_by="admin",
        )
        repo.save_entries([entry])
        assert repo.load_entries() == [entry]

    def test_invalid_json_is_corrupt(self):
        store = MemoryStore({ENTRIES_KEY: "{not json"})
        with pytest.raises(CorruptDataError):
            FundRepository(store).load_entries()

    def test_non_array_collection_is_corrupt(self):
        store = MemoryStore({ENTRIES_KEY: json.dumps({"a": 1})})
        with pytest.raises(CorruptDataError):
            FundRepository(store).load_entries()

    def test_malformed_record_is_corrupt(self):
        store = MemoryStore({USERS_KEY: json.dumps([{"name": "no email"}])})
        with pytest.raises(CorruptDataError):
            FundRepository(store).load_users()

    def test_session_pointer(self):
        repo = FundRepository(MemoryStore())
        assert repo.get_session() is None
        repo.set_session("u1")
        assert repo.get_session().user_id == "u1"
        repo.clear_session()
        assert repo.get_session() is None

    def test_corrupt_session_reads_as_signed_out(self):
        repo = FundRepository(MemoryStore({"savings-fund-auth": "garbage"}))
        assert repo.get_session() is None

    def test_per_user_collections_are_keyed_by_user(self):
        store = MemoryStore()
        repo = FundRepository(store)
        repo.save_preferences("u1", Preferences(currency="EUR"))

        assert user_key("finance-settings", "u1") in store.keys()
        assert repo.load_preferences("u1").currency == "EUR"
        assert repo.load_preferences("u2") is None

        repo.remove_user_collections("u1")
        assert repo.load_preferences("u1") is None
