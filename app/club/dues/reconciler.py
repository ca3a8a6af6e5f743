"""
LedgerReconciler - 달력 슬롯 상태를 거래 장부에 반영

슬롯의 "최종 상태"만 보고 장부를 맞춘다 (변경 전/후 비교 없음).
같은 상태로 여러 번 호출해도 결과가 같으므로 실패 시 그대로 재시도하면 된다.

정책 (위에서부터 첫 번째로 맞는 규칙 적용):
1. paid   → 수입 거래 찾거나 생성, exempt=False, 신규면 amount=월회비
2. exempt → 수입 거래 찾거나 생성, amount=0, exempt=True
3. 둘 다 아님 → 해당 거래 삭제 (없으면 무시)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from loguru import logger

from database.stores import LedgerStore, StoreUnavailable, dues_filters
from ..models import (
    CalendarSlot,
    EntryKind,
    LedgerEntry,
    PlayerDuesRecord,
    ReconcileOutcome,
)
from .errors import LedgerSyncFailed
from .ledger import DUES_CATEGORY, apply_entry_status, dues_description
from .record import validate_month_index

T = TypeVar("T")


@dataclass
class ReconcileResult:
    """장부 동기화 결과"""
    outcome: ReconcileOutcome
    player_id: str
    month_index: int
    description: str
    entry: Optional[LedgerEntry] = None

    def to_dict(self) -> Dict:
        return {
            "outcome": self.outcome.value,
            "player_id": self.player_id,
            "month_index": self.month_index,
            "description": self.description,
            "entry": self.entry.model_dump(mode="json") if self.entry else None,
        }


class LedgerReconciler:
    """월회비 거래 동기화"""

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime],
        category: str = DUES_CATEGORY
    ):
        self.store = store
        self.now = clock
        self.category = category

    async def _call(
        self,
        player_id: str,
        month_index: int,
        operation: str,
        action: Callable[[], Awaitable[T]]
    ) -> T:
        """저장소 호출 - 실패는 LedgerSyncFailed로 변환"""
        try:
            return await action()
        except StoreUnavailable as e:
            raise LedgerSyncFailed(player_id, month_index, operation, cause=e) from e

    async def reconcile(
        self,
        player_id: str,
        player_name: str,
        month_index: int,
        slot: CalendarSlot,
        dues_amount: float
    ) -> ReconcileResult:
        validate_month_index(month_index)
        description = dues_description(month_index, player_name)
        filters = dues_filters(player_id, description)

        if not slot.paid and not slot.exempt:
            deleted = await self._call(
                player_id, month_index, "delete",
                lambda: self.store.delete_one(filters)
            )
            outcome = ReconcileOutcome.deleted if deleted else ReconcileOutcome.noop
            if deleted:
                logger.info(f"🗑️ 월회비 거래 삭제: {description}")
            return ReconcileResult(outcome, player_id, month_index, description)

        existing = await self._call(
            player_id, month_index, "find",
            lambda: self.store.find_one(filters)
        )
        now = self.now()

        if existing is None:
            entry = LedgerEntry(
                description=description,
                amount=0 if slot.exempt else dues_amount,
                kind=EntryKind.revenue,
                category=self.category,
                transaction_date=now,
                due_date=slot.due_date,
                player_id=player_id,
                player_name=player_name,
                exempt=slot.exempt,
                created_at=now,
            )
            apply_entry_status(entry, now)
            created = await self._call(
                player_id, month_index, "insert",
                lambda: self.store.insert(entry)
            )
            logger.info(f"➕ 월회비 거래 생성: {description} ({created.status.value})")
            return ReconcileResult(
                ReconcileOutcome.created, player_id, month_index, description, created
            )

        updated = existing.model_copy()
        if slot.paid:
            updated.exempt = False
            # 면제였던 거래(금액 0)는 월회비로 복원
            if not updated.amount:
                updated.amount = dues_amount
        else:
            updated.amount = 0
            updated.exempt = True
        if updated.due_date is None:
            updated.due_date = slot.due_date
        apply_entry_status(updated, now)

        if updated == existing:
            return ReconcileResult(
                ReconcileOutcome.noop, player_id, month_index, description, existing
            )

        saved = await self._call(
            player_id, month_index, "update",
            lambda: self.store.update(updated)
        )
        if saved is None:
            # 조회 후 거래가 삭제됨 (수동 삭제 등) - 새로 생성
            updated.id = None
            updated.created_at = now
            created = await self._call(
                player_id, month_index, "insert",
                lambda: self.store.insert(updated)
            )
            logger.info(f"➕ 월회비 거래 재생성: {description} ({created.status.value})")
            return ReconcileResult(
                ReconcileOutcome.created, player_id, month_index, description, created
            )

        logger.info(f"✏️ 월회비 거래 수정: {description} ({saved.status.value})")
        return ReconcileResult(
            ReconcileOutcome.updated, player_id, month_index, description, saved
        )

    @staticmethod
    def empty_counts() -> Dict[str, int]:
        counts = {outcome.value: 0 for outcome in ReconcileOutcome}
        counts["failed"] = 0
        return counts

    async def reconcile_record(
        self,
        record: PlayerDuesRecord,
        dues_amount: float,
        counts: Optional[Dict[str, int]] = None
    ) -> Dict[str, int]:
        """
        선수 달력 12개월 전체 동기화

        개별 실패는 건너뛰고 집계 (failed). 잠금은 호출자 책임
        """
        counts = counts if counts is not None else self.empty_counts()
        for month_index, slot in enumerate(record.slots):
            try:
                result = await self.reconcile(
                    record.player_id,
                    record.player_name,
                    month_index,
                    slot,
                    dues_amount,
                )
                counts[result.outcome.value] += 1
            except LedgerSyncFailed as e:
                logger.warning(f"⚠️ 장부 재생성 실패: {e}")
                counts["failed"] += 1
        return counts
