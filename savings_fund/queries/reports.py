"""
Fund Aggregation and Reporting

DESIGN DECISION: Reports are DERIVED, never stored.
Every figure here is computed from the users and ledger collections at
request time. Member totals come from summing the ledger, not from the
cached User.total_savings, so a report can never show a drifted total.

The reporter only reads. It has no authorization gate because nothing it
returns changes fund state.
"""

from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from savings_fund.core.ledger import ledger_totals
from savings_fund.models.fund import (
    FundSummary,
    MemberReport,
    MonthlyTrendPoint,
    ReportPeriod,
    SavingsEntry,
    User,
    UserRole,
    to_money,
)
from savings_fund.services.storage import FundRepository


ZERO = Decimal("0")

PERIOD_MONTHS = {
    ReportPeriod.MONTH: 1,
    ReportPeriod.QUARTER: 3,
    ReportPeriod.YEAR: 12,
}


class ReportError(Exception):
    """Error building a report."""
    pass


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar month containing `day`."""
    last = monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def top_saver(members: list[User]) -> Optional[User]:
    """
    The member with the highest total.

    Only a strictly greater total replaces the current leader, so ties go to
    the first member encountered and a member with nothing saved is never
    the top saver.
    """
    top = None
    for member in members:
        if member.total_savings > (top.total_savings if top else ZERO):
            top = member
    return top


class FundReporter:
    """
    Builds fund-wide and per-member reports.

    GUARANTEES:
    - Only reports data present in storage
    - Members are users with the member role; admins are never counted
    - Empty inputs give zero figures, never an error
    """

    def __init__(
        self,
        repository: FundRepository,
        clock: Optional[Callable[[], datetime]] = None,
        trend_months: int = 6,
    ):
        self._repository = repository
        self._clock = clock or datetime.now
        self._trend_months = trend_months

    def _today(self) -> date:
        return self._clock().date()

    def _users_with_totals(self) -> list[User]:
        totals = ledger_totals(self._repository.load_entries())
        return [
            user.public().model_copy(update={"total_savings": totals.get(user.id, ZERO)})
            for user in self._repository.load_users()
        ]

    def members(self) -> list[User]:
        return [u for u in self._users_with_totals() if u.role == UserRole.MEMBER]

    # -------------------------------------------------------------------------
    # Fund-wide
    # -------------------------------------------------------------------------

    def fund_summary(self) -> FundSummary:
        """
        Member counts, total savings, this month's deposits and the top saver.

        monthly_average is the sum of entries dated in the current calendar
        month.
        """
        members = self.members()
        month_start, month_end = month_bounds(self._today())
        this_month = [
            e for e in self._repository.load_entries()
            if month_start <= e.entry_date <= month_end
        ]

        return FundSummary(
            total_members=len(members),
            active_members=sum(1 for m in members if m.is_active),
            total_savings=sum((m.total_savings for m in members), ZERO),
            monthly_average=sum((e.amount for e in this_month), ZERO),
            top_saver=top_saver(members),
        )

    def monthly_trend(
        self,
        months: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> list[MonthlyTrendPoint]:
        """
        Deposit totals for the trailing calendar months, oldest first.

        The current month is always the last point. Pass user_id to restrict
        the series to one member's entries.

        Raises:
            ReportError: If months is not positive
        """
        months = months if months is not None else self._trend_months
        if months <= 0:
            raise ReportError(f"Trend needs at least one month, got {months}")

        entries = self._repository.load_entries()
        if user_id is not None:
            entries = [e for e in entries if e.user_id == user_id]

        today = self._today()
        points = []
        for offset in range(months - 1, -1, -1):
            month_start, month_end = month_bounds(today - relativedelta(months=offset))
            bucket = [e for e in entries if month_start <= e.entry_date <= month_end]
            points.append(MonthlyTrendPoint(
                label=month_start.strftime("%b %Y"),
                month_start=month_start,
                month_end=month_end,
                total=sum((e.amount for e in bucket), ZERO),
                count=len(bucket),
            ))
        return points

    def filter_entries(self, period: ReportPeriod = ReportPeriod.ALL) -> list[SavingsEntry]:
        """
        Entries dated on or after the start of a trailing period.

        MONTH, QUARTER and YEAR reach back 1, 3 and 12 months from today.
        """
        entries = self._repository.load_entries()
        period = ReportPeriod(period)
        if period == ReportPeriod.ALL:
            return entries

        since = self._today() - relativedelta(months=PERIOD_MONTHS[period])
        return [e for e in entries if e.entry_date >= since]

    # -------------------------------------------------------------------------
    # Per-member
    # -------------------------------------------------------------------------

    def member_report(self, user_id: str) -> Optional[MemberReport]:
        """Totals and latest deposit for one user; None for an unknown user."""
        user = next((u for u in self._users_with_totals() if u.id == user_id), None)
        if user is None:
            return None

        entries = [e for e in self._repository.load_entries() if e.user_id == user_id]
        return self._report_for(user, entries)

    def member_reports(self) -> list[MemberReport]:
        """One report per member, in insertion order."""
        entries = self._repository.load_entries()
        return [
            self._report_for(member, [e for e in entries if e.user_id == member.id])
            for member in self.members()
        ]

    @staticmethod
    def _report_for(user: User, entries: list[SavingsEntry]) -> MemberReport:
        # Latest by date; among same-day entries, the one recorded last
        latest = max(entries, key=lambda e: (e.entry_date, e.created_at), default=None)
        total = sum((e.amount for e in entries), ZERO)

        return MemberReport(
            user=user,
            total_savings=total,
            deposit_count=len(entries),
            last_deposit_date=latest.entry_date if latest else None,
            last_deposit_amount=latest.amount if latest else ZERO,
            average_deposit=to_money(total / len(entries)) if entries else ZERO,
        )
