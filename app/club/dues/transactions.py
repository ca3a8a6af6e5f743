"""
Transaction Service

수동 거래 등록/조회/삭제 및 날짜 보정
"""

import math
from datetime import datetime
from typing import Any, List, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from database.stores import LedgerStore, PlayerStore
from ..models import EntryKind, LedgerEntry, TransactionCreate
from .errors import InvalidTransaction, PlayerNotFound, TransactionNotFound
from .ledger import DUES_CATEGORY, EXPENSE_DEFAULT_CATEGORY, apply_entry_status
from .record import DuesCalendar

_DATETIME = TypeAdapter(datetime)


def _is_valid_datetime(value: Any) -> bool:
    if value is None or value == "":
        return False
    try:
        _DATETIME.validate_python(value)
    except ValidationError:
        return False
    return True


class TransactionService:
    """거래 장부 서비스"""

    def __init__(
        self,
        ledger_store: LedgerStore,
        player_store: PlayerStore,
        calendar: DuesCalendar
    ):
        self.ledger_store = ledger_store
        self.player_store = player_store
        self.calendar = calendar

    async def create_transaction(self, data: TransactionCreate) -> LedgerEntry:
        """
        거래 등록

        - 설명 필수, 금액은 0 이상 유한값, 거래일 필수
        - 수입 + player_id면 선수 존재 확인 (없으면 PlayerNotFound)
        - 카테고리 기본값: 수입 dues, 지출 other
        - created_at은 서버 시각 (클라이언트 값 무시)
        """
        description = (data.description or "").strip()
        if not description:
            raise InvalidTransaction("설명은 필수입니다")
        if not math.isfinite(data.amount) or data.amount < 0:
            raise InvalidTransaction("금액이 올바르지 않습니다")
        if data.transaction_date is None:
            raise InvalidTransaction("거래일이 올바르지 않습니다")

        player_id = None
        player_name = None
        if data.kind == EntryKind.revenue and data.player_id:
            raw = await self.player_store.get(data.player_id)
            if raw is None:
                raise PlayerNotFound(data.player_id)
            player_id = data.player_id
            player_name = data.player_name or raw.get("player_name")

        category = data.category or (
            DUES_CATEGORY if data.kind == EntryKind.revenue else EXPENSE_DEFAULT_CATEGORY
        )
        now = self.calendar.now()
        entry = LedgerEntry(
            description=description,
            amount=data.amount,
            kind=data.kind,
            category=category,
            transaction_date=data.transaction_date,
            due_date=data.due_date,
            player_id=player_id,
            player_name=player_name,
            exempt=data.exempt,
            created_at=now,
        )
        apply_entry_status(entry, now)

        saved = await self.ledger_store.insert(entry)
        logger.info(f"💰 거래 등록: {saved.kind.value} {saved.amount} - {saved.description}")
        return saved

    def _month_window(self, month: str):
        try:
            year_str, month_str = month.split("-")
            year, month_number = int(year_str), int(month_str)
            start = datetime(year, month_number, 1, tzinfo=self.calendar.tz)
        except ValueError:
            raise InvalidTransaction(f"월 형식 오류 (YYYY-MM): {month}")
        if month_number == 12:
            end = datetime(year + 1, 1, 1, tzinfo=self.calendar.tz)
        else:
            end = datetime(year, month_number + 1, 1, tzinfo=self.calendar.tz)
        return start, end

    async def list_transactions(
        self,
        month: Optional[str] = None,
        kind: Optional[EntryKind] = None,
        category: Optional[str] = None,
        player_id: Optional[str] = None
    ) -> List[LedgerEntry]:
        """거래 목록 (최신순)"""
        start = end = None
        if month:
            start, end = self._month_window(month)
        return await self.ledger_store.list_entries(
            start=start, end=end, kind=kind, category=category, player_id=player_id
        )

    async def delete_transaction(self, entry_id: str) -> None:
        if not await self.ledger_store.delete(entry_id):
            raise TransactionNotFound(entry_id)
        logger.info(f"🗑️ 거래 삭제: {entry_id}")

    async def repair_dates(self) -> int:
        """거래일/생성일이 비었거나 잘못된 행을 현재 시각으로 보정"""
        now_iso = self.calendar.now().isoformat()
        fixed = 0

        for row in await self.ledger_store.list_raw():
            updates = {}
            if not _is_valid_datetime(row.get("transaction_date")):
                updates["transaction_date"] = now_iso
            if not _is_valid_datetime(row.get("created_at")):
                updates["created_at"] = now_iso
            if updates:
                await self.ledger_store.patch(row["id"], updates)
                fixed += 1

        if fixed:
            logger.warning(f"날짜 보정된 거래: {fixed}건")
        return fixed
