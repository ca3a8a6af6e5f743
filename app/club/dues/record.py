"""
PlayerDuesRecord 관리

- 12개월 기본 달력 생성 (납부 기한: 매월 DUE_DAY일)
- 구버전 데이터 정규화 (bool 배열, pago/isento 필드, 12개 미만)
- 월 납부/면제 변경 및 재무 상태 재계산
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

from loguru import logger
from pydantic import ValidationError

from ..models import (
    CalendarSlot,
    PlayerDuesRecord,
    PlayerDuesView,
    ReconcileRequest,
)
from .errors import InvalidMonth
from .resolver import StatusResolver

MONTHS_PER_YEAR = 12


def club_clock(timezone: str) -> Callable[[], datetime]:
    """클럽 시간대 기준 현재 시각 함수"""
    tz = ZoneInfo(timezone)

    def _now() -> datetime:
        return datetime.now(tz)

    return _now


def validate_month_index(month_index: Any) -> int:
    """월 인덱스 검증 (0 = 1월, 11 = 12월)"""
    if isinstance(month_index, bool) or not isinstance(month_index, int):
        raise InvalidMonth(month_index)
    if month_index < 0 or month_index >= MONTHS_PER_YEAR:
        raise InvalidMonth(month_index)
    return month_index


class DuesCalendar:
    """선수 회비 달력 규칙"""

    def __init__(
        self,
        resolver: Optional[StatusResolver] = None,
        due_day: int = 20,
        timezone: str = "America/Sao_Paulo",
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.resolver = resolver or StatusResolver()
        self.due_day = due_day
        self.tz = ZoneInfo(timezone)
        self.now = clock or club_clock(timezone)

    # =============================================
    # 생성
    # =============================================

    def default_due_date(self, year: int, month_index: int) -> datetime:
        """해당 월 납부 기한 (DUE_DAY일 23:59:59, 클럽 시간대)"""
        return datetime(year, month_index + 1, self.due_day, 23, 59, 59, tzinfo=self.tz)

    def default_slot(self, year: int, month_index: int) -> CalendarSlot:
        return CalendarSlot(due_date=self.default_due_date(year, month_index))

    def new_record(
        self,
        player_id: str,
        player_name: str,
        year: Optional[int] = None
    ) -> PlayerDuesRecord:
        """신규 선수 달력 (12개월 모두 미납)"""
        now = self.now()
        year = year or now.year
        record = PlayerDuesRecord(
            player_id=player_id,
            player_name=player_name,
            year=year,
            slots=[self.default_slot(year, i) for i in range(MONTHS_PER_YEAR)],
            created_at=now,
            updated_at=now,
        )
        record.aggregate_status = self.resolver.resolve(record.slots, now)
        return record

    # =============================================
    # 정규화
    # =============================================

    def ensure_normalized(
        self,
        data: Union[PlayerDuesRecord, Dict[str, Any]]
    ) -> PlayerDuesRecord:
        """
        읽기/쓰기 전 달력 정규화

        - 12개가 아니면 기존 인덱스는 유지하고 나머지를 기본값으로 채움
        - bool 항목은 paid 플래그로 승격
        - 재무 상태는 저장값을 무시하고 항상 재계산
        """
        if isinstance(data, PlayerDuesRecord):
            raw = data.model_dump()
        else:
            raw = dict(data)

        now = self.now()
        year = raw.get("year") or now.year
        raw_slots = raw.get("slots")
        if raw_slots is None:
            raw_slots = raw.get("pagamentos") or []

        if len(raw_slots) != MONTHS_PER_YEAR:
            logger.info(
                f"🔧 달력 보정: player={raw.get('player_id')} "
                f"slots {len(raw_slots)} → {MONTHS_PER_YEAR}"
            )

        slots = []
        for index in range(MONTHS_PER_YEAR):
            item = raw_slots[index] if index < len(raw_slots) else None
            slots.append(self._upgrade_slot(item, year, index, now))

        record = PlayerDuesRecord(
            player_id=str(raw.get("player_id") or raw.get("id") or ""),
            player_name=raw.get("player_name") or raw.get("nome") or "",
            year=year,
            slots=slots,
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
        )
        record.aggregate_status = self.resolver.resolve(record.slots, now)
        return record

    def _upgrade_slot(
        self,
        item: Any,
        year: int,
        index: int,
        now: datetime
    ) -> CalendarSlot:
        """구버전 항목을 CalendarSlot으로 변환"""
        default_due = self.default_due_date(year, index)

        if item is None:
            return CalendarSlot(due_date=default_due)

        if isinstance(item, bool):
            return CalendarSlot(
                paid=item,
                payment_date=now if item else None,
                due_date=default_due,
            )

        if isinstance(item, CalendarSlot):
            item = item.model_dump()

        if not isinstance(item, dict):
            logger.warning(f"알 수 없는 달력 항목 형식 (month={index}): {item!r}")
            return CalendarSlot(due_date=default_due)

        paid = bool(item.get("paid", item.get("pago", False)))
        exempt = bool(item.get("exempt", item.get("isento", False)))
        if paid and exempt:
            paid = False

        try:
            slot = CalendarSlot(
                paid=paid,
                exempt=exempt,
                payment_date=item.get("payment_date") or item.get("dataPagamento"),
                due_date=item.get("due_date") or default_due,
            )
        except ValidationError:
            logger.warning(f"달력 날짜 형식 오류 (month={index}), 기본값 사용")
            slot = CalendarSlot(paid=paid, exempt=exempt, due_date=default_due)

        # 납부일은 paid일 때만 존재
        if slot.paid and slot.payment_date is None:
            slot.payment_date = now
        elif not slot.paid:
            slot.payment_date = None
        return slot

    # =============================================
    # 변경
    # =============================================

    def set_slot(
        self,
        record: PlayerDuesRecord,
        month_index: int,
        paid: Optional[bool] = None,
        exempt: Optional[bool] = None
    ) -> ReconcileRequest:
        """
        월 납부/면제 변경

        - 면제 설정 시 납부 해제, 납부 설정 시 면제 해제 (둘 다 오면 면제 우선)
        - 납부로 전환되면 납부일 기록, 미납이면 납부일 삭제
        - 재무 상태 재계산 후 장부 동기화 요청 반환
        """
        validate_month_index(month_index)
        if len(record.slots) != MONTHS_PER_YEAR:
            record.slots = self.ensure_normalized(record).slots

        now = self.now()
        current = record.slots[month_index]

        new_paid = current.paid if paid is None else paid
        new_exempt = current.exempt if exempt is None else exempt
        if exempt:
            new_paid = False
        elif paid:
            new_exempt = False

        if new_paid:
            payment_date = current.payment_date if current.paid and current.payment_date else now
        else:
            payment_date = None

        slot = CalendarSlot(
            paid=new_paid,
            exempt=new_exempt,
            payment_date=payment_date,
            due_date=current.due_date,
        )
        record.slots[month_index] = slot
        record.aggregate_status = self.resolver.resolve(record.slots, now)
        record.updated_at = now

        return ReconcileRequest(
            player_id=record.player_id,
            player_name=record.player_name,
            month_index=month_index,
            slot=slot.model_copy(),
        )

    @staticmethod
    def to_view(record: PlayerDuesRecord) -> PlayerDuesView:
        """읽기 전용 투영"""
        return PlayerDuesView(
            player_id=record.player_id,
            player_name=record.player_name,
            year=record.year,
            slots=[slot.model_copy() for slot in record.slots],
            aggregate_status=record.aggregate_status,
        )

    @staticmethod
    def pending_months(
        record: PlayerDuesRecord,
        reference_date: datetime
    ) -> List[int]:
        """기준 월까지 납부도 면제도 안 된 달"""
        current_month_index = reference_date.month - 1
        return [
            index for index, slot in enumerate(record.slots)
            if index <= current_month_index and not slot.paid and not slot.exempt
        ]
