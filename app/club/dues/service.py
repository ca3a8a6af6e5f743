"""
Dues Service

월회비 흐름 조율:
달력 변경 → 재무 상태 재계산 → 달력 저장 → 장부 동기화 → 알림 발행

- 선수별 asyncio.Lock으로 같은 선수의 변경을 직렬화 (다른 선수는 병렬)
- 달력이 기준 데이터. 장부 동기화 실패는 달력을 되돌리지 않고
  결과에 ledger_error로 담아 반환 (retry_reconcile로 복구)
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional

from loguru import logger

from database.stores import LedgerStore, PlayerStore, StoreUnavailable
from ..config import DuesSettings, get_dues_settings
from ..events import EventPublisher
from ..models import (
    CalendarSlot,
    FinancialSummary,
    PlayerDuesRecord,
    PlayerDuesView,
    ReconcileRequest,
)
from .errors import LedgerSyncFailed, PlayerAlreadyExists, PlayerNotFound
from .reconciler import LedgerReconciler, ReconcileResult
from .record import DuesCalendar, validate_month_index
from .resolver import StatusResolver, get_policy
from .summary import FinancialSummaryAggregator


@dataclass
class SlotUpdateResult:
    """월 납부/면제 변경 결과 (장부 실패 시 부분 성공)"""
    record: PlayerDuesView
    month_index: int
    slot: CalendarSlot
    ledger: Optional[ReconcileResult] = None
    ledger_error: Optional[LedgerSyncFailed] = None

    @property
    def ledger_synced(self) -> bool:
        return self.ledger_error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": self.record.model_dump(mode="json"),
            "month_index": self.month_index,
            "slot": self.slot.model_dump(mode="json"),
            "ledger_synced": self.ledger_synced,
            "ledger": self.ledger.to_dict() if self.ledger else None,
            "ledger_error": self.ledger_error.to_dict() if self.ledger_error else None,
        }


class DuesService:
    """월회비 서비스"""

    def __init__(
        self,
        player_store: PlayerStore,
        ledger_store: LedgerStore,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[DuesSettings] = None,
        calendar: Optional[DuesCalendar] = None
    ):
        self.settings = settings or get_dues_settings()
        self.player_store = player_store
        self.ledger_store = ledger_store
        self.calendar = calendar or DuesCalendar(
            resolver=StatusResolver(get_policy(self.settings.DELINQUENCY_POLICY)),
            due_day=self.settings.DUE_DAY,
            timezone=self.settings.CLUB_TIMEZONE,
        )
        self.reconciler = LedgerReconciler(ledger_store, self.calendar.now)
        self.aggregator = FinancialSummaryAggregator(
            ledger_store, player_store, self.calendar
        )
        self.publisher = publisher or EventPublisher(clock=self.calendar.now)
        # 대기자가 없으면 제거 (알 수 없는 player_id로 늘어나지 않음)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # =============================================
    # 내부 헬퍼
    # =============================================

    def _dues_amount(self, dues_amount: Optional[float]) -> float:
        return self.settings.MONTHLY_FEE if dues_amount is None else dues_amount

    @staticmethod
    def _serialize(record: PlayerDuesRecord) -> Dict[str, Any]:
        return record.model_dump(mode="json")

    @asynccontextmanager
    async def _player_lock(self, player_id: str) -> AsyncIterator[None]:
        """선수별 직렬화 잠금"""
        lock = self._locks.get(player_id)
        if lock is None:
            lock = self._locks[player_id] = asyncio.Lock()
        self._lock_users[player_id] = self._lock_users.get(player_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[player_id] -= 1
            if not self._lock_users[player_id]:
                del self._lock_users[player_id]
                del self._locks[player_id]

    async def _load(self, player_id: str) -> PlayerDuesRecord:
        raw = await self.player_store.get(player_id)
        if raw is None:
            raise PlayerNotFound(player_id)
        return self.calendar.ensure_normalized(raw)

    # =============================================
    # 선수 달력
    # =============================================

    async def create_record(
        self,
        player_id: str,
        player_name: str,
        year: Optional[int] = None
    ) -> PlayerDuesView:
        """선수 등록 시 12개월 기본 달력 생성"""
        async with self._player_lock(player_id):
            if await self.player_store.get(player_id) is not None:
                raise PlayerAlreadyExists(player_id)

            record = self.calendar.new_record(player_id, player_name, year)
            try:
                await self.player_store.insert(self._serialize(record))
            except (ValueError, StoreUnavailable):
                # 다른 프로세스가 먼저 등록한 경우
                if await self.player_store.get(player_id) is not None:
                    raise PlayerAlreadyExists(player_id)
                raise
        logger.info(f"🆕 회비 달력 생성: {player_name} ({player_id}) {record.year}년")
        return self.calendar.to_view(record)

    async def get_record(self, player_id: str) -> PlayerDuesRecord:
        return await self._load(player_id)

    async def get_view(self, player_id: str) -> PlayerDuesView:
        return self.calendar.to_view(await self._load(player_id))

    async def delete_record(self, player_id: str) -> None:
        """선수 삭제 시 달력 전체 삭제 (부분 삭제 없음)"""
        async with self._player_lock(player_id):
            if not await self.player_store.delete(player_id):
                raise PlayerNotFound(player_id)
        logger.info(f"🗑️ 회비 달력 삭제: {player_id}")

    async def set_slot(
        self,
        player_id: str,
        month_index: int,
        paid: Optional[bool] = None,
        exempt: Optional[bool] = None,
        dues_amount: Optional[float] = None
    ) -> SlotUpdateResult:
        """
        월 납부/면제 변경

        Raises:
            InvalidMonth: 월 인덱스 오류 (변경 없음)
            PlayerNotFound: 선수 없음 (변경 없음)
        """
        validate_month_index(month_index)
        amount = self._dues_amount(dues_amount)

        async with self._player_lock(player_id):
            record = await self._load(player_id)
            request = self.calendar.set_slot(record, month_index, paid=paid, exempt=exempt)
            await self.player_store.replace(player_id, self._serialize(record))

            ledger_result = None
            ledger_error = None
            try:
                ledger_result = await self.reconciler.reconcile(
                    request.player_id,
                    request.player_name,
                    request.month_index,
                    request.slot,
                    amount,
                )
            except LedgerSyncFailed as e:
                ledger_error = e
                logger.warning(
                    f"⚠️ 장부 동기화 실패 (재시도 필요): player={e.player_id} "
                    f"month={e.month_index} operation={e.operation} cause={e.cause}"
                )

        await self._notify(record, request, ledger_error)

        return SlotUpdateResult(
            record=self.calendar.to_view(record),
            month_index=month_index,
            slot=request.slot,
            ledger=ledger_result,
            ledger_error=ledger_error,
        )

    # =============================================
    # 장부 동기화
    # =============================================

    async def retry_reconcile(
        self,
        player_id: str,
        month_index: int,
        dues_amount: Optional[float] = None
    ) -> ReconcileResult:
        """
        저장된 달력 상태로 장부 재동기화

        실패하면 LedgerSyncFailed를 그대로 올림 (호출자가 재시도 결정)
        """
        validate_month_index(month_index)
        async with self._player_lock(player_id):
            record = await self._load(player_id)
            return await self.reconciler.reconcile(
                record.player_id,
                record.player_name,
                month_index,
                record.slots[month_index],
                self._dues_amount(dues_amount),
            )

    async def rebuild_ledger(self, dues_amount: Optional[float] = None) -> Dict[str, int]:
        """
        전체 선수 달력에서 월회비 거래 재생성

        목록은 선수 id만 사용. 선수마다 잠금을 잡고 저장된 달력을 다시 읽어
        그 사이 커밋된 변경을 덮어쓰지 않음
        """
        amount = self._dues_amount(dues_amount)
        counts = self.reconciler.empty_counts()
        player_ids = [
            str(raw.get("player_id") or raw.get("id"))
            for raw in await self.player_store.list_all()
        ]

        for player_id in player_ids:
            async with self._player_lock(player_id):
                try:
                    record = await self._load(player_id)
                except PlayerNotFound:
                    continue
                await self.reconciler.reconcile_record(record, amount, counts)

        logger.info(f"🔄 장부 재생성 완료: {counts}")
        return counts

    # =============================================
    # 재무 요약
    # =============================================

    async def summarize(
        self,
        year: Optional[int] = None,
        reference_date: Optional[datetime] = None
    ) -> FinancialSummary:
        year = year or self.calendar.now().year
        return await self.aggregator.summarize(year, reference_date)

    async def _notify(
        self,
        record: PlayerDuesRecord,
        request: ReconcileRequest,
        ledger_error: Optional[LedgerSyncFailed]
    ) -> None:
        """알림 발행 (best-effort)"""
        await self.publisher.publish_payment_status_changed(
            player_id=record.player_id,
            month_index=request.month_index,
            paid=request.slot.paid,
            exempt=request.slot.exempt,
            aggregate_status=record.aggregate_status,
        )

        if ledger_error is not None:
            await self.publisher.publish_ledger_sync_failed(ledger_error.to_dict())
            return

        try:
            totals = await self.aggregator.totals(self.calendar.now().year)
        except StoreUnavailable as e:
            logger.warning(f"재무 요약 계산 실패, 알림 생략: {e}")
            return
        await self.publisher.publish_financial_summary_changed(totals)
