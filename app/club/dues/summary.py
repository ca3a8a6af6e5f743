"""
FinancialSummaryAggregator - 연간 수입/지출/잔액 및 미납 건수 집계
"""

from datetime import datetime
from typing import Optional

from database.stores import LedgerStore, PlayerStore
from ..models import EntryKind, FinancialSummary, FinancialSummaryChanged
from .record import DuesCalendar


class FinancialSummaryAggregator:
    """재무 요약 집계 (읽기 전용)"""

    def __init__(
        self,
        ledger_store: LedgerStore,
        player_store: PlayerStore,
        calendar: DuesCalendar
    ):
        self.ledger_store = ledger_store
        self.player_store = player_store
        self.calendar = calendar

    def _year_window(self, year: int):
        start = datetime(year, 1, 1, tzinfo=self.calendar.tz)
        end = datetime(year + 1, 1, 1, tzinfo=self.calendar.tz)
        return start, end

    async def totals(self, year: int) -> FinancialSummaryChanged:
        """
        수입/지출 합계

        - 면제 거래는 수입에서 제외 (면제된 회비는 수입이 아님)
        """
        start, end = self._year_window(year)
        entries = await self.ledger_store.list_entries(start=start, end=end)

        total_revenue = 0.0
        total_expense = 0.0
        for entry in entries:
            if entry.kind == EntryKind.revenue and not entry.exempt:
                total_revenue += entry.amount
            elif entry.kind == EntryKind.expense:
                total_expense += entry.amount

        return FinancialSummaryChanged(
            total_revenue=total_revenue,
            total_expense=total_expense,
            balance=total_revenue - total_expense,
        )

    async def pending_dues_count(self, reference_date: Optional[datetime] = None) -> int:
        """전체 선수의 기준 월까지 미납(납부도 면제도 아님) 월 수"""
        reference_date = reference_date or self.calendar.now()
        pending = 0
        for raw in await self.player_store.list_all():
            record = self.calendar.ensure_normalized(raw)
            pending += len(self.calendar.pending_months(record, reference_date))
        return pending

    async def summarize(
        self,
        year: int,
        reference_date: Optional[datetime] = None
    ) -> FinancialSummary:
        totals = await self.totals(year)
        return FinancialSummary(
            year=year,
            total_revenue=totals.total_revenue,
            total_expense=totals.total_expense,
            balance=totals.balance,
            pending_dues_count=await self.pending_dues_count(reference_date),
        )
