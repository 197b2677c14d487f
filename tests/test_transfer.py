"""Tests for CSV and XLSX export and import."""

import pytest
from datetime import date
from decimal import Decimal

from savings_fund.models.audit import AuditEventType
from savings_fund.models.fund import FailureReason, UserUpdate
from savings_fund.orchestrator import FundApp
from savings_fund.services.storage import FundRepository, MemoryStore
from savings_fund.transfer import (
    ENTRY_COLUMNS,
    MEMBER_COLUMNS,
    TransferError,
    read_csv,
    read_table,
    write_csv,
    write_xlsx,
)


@pytest.fixture
def populated(app, admin, member, other_member):
    app.ledger.add_entry(member.id, Decimal("100.50"), "January, first", acting_admin_id=admin.id)
    app.ledger.add_entry(member.id, Decimal("20"), "February", acting_admin_id=admin.id)
    app.membership.update_user(
        other_member.id, UserUpdate(is_active=False), acting_admin_id=admin.id
    )
    return app


@pytest.fixture
def fresh_app(clock):
    """A second, empty fund to import into."""
    app = FundApp(FundRepository(MemoryStore()), clock=clock)
    admin = app.membership.register("Root", "root@fund.test", "secret1").value
    return app, admin


class TestFormats:
    def test_csv_round_trip_with_commas_and_quotes(self, tmp_path):
        path = tmp_path / "t.csv"
        rows = [{"A": 'say "hi", friend', "B": "1"}, {"A": "", "B": "2"}]
        assert write_csv(path, ["A", "B"], rows) == 2
        assert read_csv(path) == rows

    def test_xlsx_round_trip(self, tmp_path):
        path = tmp_path / "t.xlsx"
        rows = [{"A": "x", "B": "1.50"}, {"A": "y", "B": ""}]
        write_xlsx(path, ["A", "B"], rows)
        assert read_table(path) == rows

    def test_blank_rows_are_dropped(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("A,B\n1,2\n,\n\n3,4\n", encoding="utf-8")
        assert read_csv(path) == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]

    def test_bom_is_ignored(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_bytes("\ufeffName,Email\nAna,a@b.co\n".encode("utf-8"))
        assert read_csv(path) == [{"Name": "Ana", "Email": "a@b.co"}]

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(TransferError):
            read_table(tmp_path / "t.ods")

    def test_broken_workbook(self, tmp_path):
        path = tmp_path / "t.xlsx"
        path.write_text("not a workbook", encoding="utf-8")
        with pytest.raises(TransferError):
            read_table(path)


class TestExport:
    def test_members_table(self, populated, member, other_member):
        rows = populated.transfer.members_table()

        assert [r["User ID"] for r in rows] == [member.id, other_member.id]
        assert list(rows[0]) == MEMBER_COLUMNS
        assert rows[0]["Total Savings"] == "120.50"
        assert rows[0]["Deposit Count"] == "2"
        assert rows[0]["Last Amount"] == "20"
        assert rows[0]["Last Deposit"] == "2024-03-15"
        assert rows[1]["Status"] == "Inactive"

    def test_entries_table(self, populated, admin, member):
        rows = populated.transfer.entries_table()

        assert list(rows[0]) == ENTRY_COLUMNS
        assert rows[0]["User Email"] == "bruno@fund.test"
        assert rows[0]["Amount"] == "100.50"
        assert rows[0]["Recorded By"] == admin.id

    def test_export_requires_admin(self, populated, member, tmp_path):
        result = populated.transfer.export_members(tmp_path / "m.csv", acting_admin_id=member.id)
        assert result.reason == FailureReason.PERMISSION_DENIED
        assert not (tmp_path / "m.csv").exists()


class TestImport:
    @pytest.mark.parametrize("suffix", ["csv", "xlsx"])
    def test_members_round_trip(self, populated, admin, fresh_app, tmp_path, suffix):
        path = tmp_path / f"members.{suffix}"
        assert populated.transfer.export_members(path, acting_admin_id=admin.id).value == 2

        target, target_admin = fresh_app
        result = target.transfer.import_members_file(path, acting_admin_id=target_admin.id).value

        assert result.imported == 2
        assert result.errors == []
        bruno = target.membership.find_by_email("bruno@fund.test")
        carla = target.membership.find_by_email("carla@fund.test")
        assert bruno.name == "Bruno Diaz"
        assert bruno.total_savings == Decimal("120.50")
        assert bruno.is_active
        assert not carla.is_active
        assert carla.total_savings == Decimal("0")
        assert len(target.ledger.entries_for_user(bruno.id)) == 1
        assert target.ledger.entries_for_user(carla.id) == []

    @pytest.mark.parametrize("suffix", ["csv", "xlsx"])
    def test_entries_round_trip(self, populated, admin, member, tmp_path, suffix):
        path = tmp_path / f"entries.{suffix}"
        populated.transfer.export_entries(path, acting_admin_id=admin.id)
        original = populated.ledger.all_entries()

        # Rebuild the same members, then restore the ledger from the export
        target = FundApp(FundRepository(MemoryStore()))
        target.repository.save_users(populated.repository.load_users())
        result = target.transfer.import_entries_file(path, acting_admin_id=admin.id).value

        assert result.imported == 2
        assert target.ledger.all_entries() == original
        assert target.ledger.totals_by_user(member.id) == Decimal("120.50")

    def test_reimporting_entries_changes_nothing(self, populated, admin, tmp_path):
        path = tmp_path / "entries.csv"
        populated.transfer.export_entries(path, acting_admin_id=admin.id)

        result = populated.transfer.import_entries_file(path, acting_admin_id=admin.id).value

        assert result.imported == 0
        assert result.skipped == 2
        assert len(populated.ledger.all_entries()) == 2

    def test_bad_rows_are_counted(self, fresh_app):
        target, target_admin = fresh_app
        rows = [
            {"Name": "Ok", "Email": "ok@fund.test", "Total Savings": "10"},
            {"Name": "Dup", "Email": "ok@fund.test", "Total Savings": "0"},
            {"Name": "Bad mail", "Email": "nope", "Total Savings": "0"},
            {"Name": "Bad amount", "Email": "amt@fund.test", "Total Savings": "ten"},
            {"Name": "", "Email": "noname@fund.test"},
        ]

        result = target.transfer.import_members(rows, acting_admin_id=target_admin.id)

        assert result.imported == 1
        assert result.error_count == 3
        assert result.skipped == 1
        assert target.membership.find_by_email("amt@fund.test") is None

    @pytest.mark.parametrize("bad", ["NaN", "Infinity", "-inf", "sNaN"])
    def test_non_finite_total_is_a_row_error(self, fresh_app, bad):
        target, target_admin = fresh_app
        rows = [
            {"Name": "First", "Email": "first@fund.test", "Total Savings": "100"},
            {"Name": "Broken", "Email": "broken@fund.test", "Total Savings": bad},
            {"Name": "Last", "Email": "last@fund.test", "Total Savings": "200"},
        ]

        result = target.transfer.import_members(rows, acting_admin_id=target_admin.id)

        assert result.imported == 2
        assert result.error_count == 1
        assert target.membership.find_by_email("broken@fund.test") is None
        assert target.membership.find_by_email("last@fund.test").total_savings == Decimal("200")

    def test_non_finite_entry_amount_is_a_row_error(self, populated, admin, member):
        def row(entry_id, amount):
            return {"ID": entry_id, "User ID": member.id, "Amount": amount, "Date": "2024-03-01"}

        result = populated.transfer.import_entries(
            [row("n-1", "50"), row("n-2", "NaN"), row("n-3", "70")], acting_admin_id=admin.id
        )

        assert result.imported == 2
        assert result.error_count == 1
        assert populated.ledger.totals_by_user(member.id) == Decimal("240.50")

    def test_imported_members_get_default_password(self, fresh_app):
        target, target_admin = fresh_app
        target.transfer.import_members(
            [{"Name": "Eva", "Email": "eva@fund.test"}], acting_admin_id=target_admin.id
        )
        assert target.membership.login("eva@fund.test", "123456").success

    def test_import_by_non_admin_fails_every_row(self, populated, member):
        result = populated.transfer.import_members(
            [{"Name": "Eva", "Email": "eva@fund.test"}], acting_admin_id=member.id
        )
        assert result.imported == 0
        assert result.error_count == 1

    def test_entry_for_unknown_user_is_an_error(self, populated, admin):
        rows = [{
            "ID": "e-1",
            "User ID": "ghost",
            "User Email": "ghost@fund.test",
            "Amount": "5",
            "Date": date(2024, 1, 1).isoformat(),
        }]
        result = populated.transfer.import_entries(rows, acting_admin_id=admin.id)
        assert result.imported == 0
        assert result.error_count == 1

    def test_unreadable_file_is_logged_and_refused(self, populated, admin, repository, tmp_path):
        result = populated.transfer.import_members_file(
            tmp_path / "missing.csv", acting_admin_id=admin.id
        )

        assert result.reason == FailureReason.VALIDATION_FAILED

        last = repository.load_audit_events()[-1]
        assert last.event_type == AuditEventType.SYSTEM_ERROR
        assert last.details["path"].endswith("missing.csv")
