"""Tests for the savings ledger and the total-savings invariant."""

from datetime import date
from decimal import Decimal

from savings_fund.models.fund import FailureReason


def stored_total(repository, user_id):
    return next(u for u in repository.load_users() if u.id == user_id).total_savings


class TestAddEntry:
    def test_add_entry_dated_today(self, app, admin, member):
        result = app.ledger.add_entry(member.id, Decimal("100.50"), "March", acting_admin_id=admin.id)

        assert result.success
        entry = result.value
        assert entry.entry_date == date(2024, 3, 15)
        assert entry.created_by == admin.id
        assert entry.description == "March"
        assert app.ledger.entries_for_user(member.id) == [entry]

    def test_stored_total_follows_ledger(self, app, repository, admin, member):
        """After every add, the cached total equals the ledger sum."""
        for amount in ("100", "250.25", "49.75"):
            app.ledger.add_entry(member.id, Decimal(amount), "", acting_admin_id=admin.id)
            assert stored_total(repository, member.id) == app.ledger.totals_by_user(member.id)

        assert app.ledger.totals_by_user(member.id) == Decimal("400.00")
        assert app.membership.get_user(member.id).total_savings == Decimal("400.00")

    def test_amounts_are_not_validated(self, app, admin, member):
        result = app.ledger.add_entry(member.id, Decimal("-20"), "correction", acting_admin_id=admin.id)
        assert result.success
        assert app.ledger.totals_by_user(member.id) == Decimal("-20")

    def test_member_cannot_add_entries(self, app, member):
        result = app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=member.id)
        assert result.reason == FailureReason.PERMISSION_DENIED
        assert app.ledger.all_entries() == []

    def test_unknown_user(self, app, admin):
        result = app.ledger.add_entry("ghost", Decimal("10"), "", acting_admin_id=admin.id)
        assert result.reason == FailureReason.NOT_FOUND
        assert app.ledger.all_entries() == []


class TestDeleteEntry:
    def test_delete_refreshes_total(self, app, repository, admin, member):
        first = app.ledger.add_entry(member.id, Decimal("100"), "", acting_admin_id=admin.id).value
        app.ledger.add_entry(member.id, Decimal("30"), "", acting_admin_id=admin.id)

        result = app.ledger.delete_entry(first.id, acting_admin_id=admin.id)

        assert result.success
        assert app.ledger.totals_by_user(member.id) == Decimal("30")
        assert stored_total(repository, member.id) == Decimal("30")

    def test_delete_unknown_entry(self, app, admin):
        result = app.ledger.delete_entry("missing", acting_admin_id=admin.id)
        assert result.reason == FailureReason.NOT_FOUND

    def test_member_cannot_delete(self, app, admin, member):
        entry = app.ledger.add_entry(member.id, Decimal("100"), "", acting_admin_id=admin.id).value
        result = app.ledger.delete_entry(entry.id, acting_admin_id=member.id)
        assert result.reason == FailureReason.PERMISSION_DENIED
        assert len(app.ledger.all_entries()) == 1


class TestTotals:
    def test_totals_are_per_user(self, app, admin, member, other_member):
        app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=admin.id)
        app.ledger.add_entry(other_member.id, Decimal("25"), "", acting_admin_id=admin.id)
        app.ledger.add_entry(member.id, Decimal("5"), "", acting_admin_id=admin.id)

        assert app.ledger.totals_by_user(member.id) == Decimal("15")
        assert app.ledger.totals_by_user(other_member.id) == Decimal("25")
        assert app.ledger.totals_by_user("nobody") == Decimal("0")

    def test_drifted_cache_is_ignored_on_read(self, app, repository, admin, member):
        app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=admin.id)
        users = repository.load_users()
        users = [
            u.model_copy(update={"total_savings": Decimal("999")}) if u.id == member.id else u
            for u in users
        ]
        repository.save_users(users)

        assert app.membership.get_user(member.id).total_savings == Decimal("10")


class TestRestoreEntries:
    def test_restore_keeps_ids_and_skips_duplicates(self, app, admin, member):
        entry = app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=admin.id).value
        copy = entry.model_copy(update={"id": "restored-1"})

        result = app.ledger.restore_entries([entry, copy], acting_admin_id=admin.id)

        assert result.success
        assert [e.id for e in result.value] == ["restored-1"]
        assert app.ledger.totals_by_user(member.id) == Decimal("20")

    def test_restore_for_unknown_user(self, app, admin, member):
        entry = app.ledger.add_entry(member.id, Decimal("10"), "", acting_admin_id=admin.id).value
        orphan = entry.model_copy(update={"id": "x", "user_id": "ghost"})
        result = app.ledger.restore_entries([orphan], acting_admin_id=admin.id)
        assert result.reason == FailureReason.NOT_FOUND
