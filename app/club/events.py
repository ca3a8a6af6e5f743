"""
이벤트 발행/구독 시스템

회비 납부 상태나 재무 요약이 바뀌면 구독자(실시간 화면 등)에게 알림
전달 보장 없음 (best-effort, 최대 1회) - 구독자 실패는 로그만 남김
"""

from typing import Dict, Any, List, Callable, Optional
from datetime import datetime
from zoneinfo import ZoneInfo
from enum import Enum
from dataclasses import dataclass, field
from loguru import logger
import json
import asyncio
from collections import defaultdict

from .config import get_dues_settings
from .models import (
    AggregateStatus,
    FinancialSummaryChanged,
    PaymentStatusChanged,
)


def club_now() -> datetime:
    """클럽 시간대 현재 시각"""
    return datetime.now(ZoneInfo(get_dues_settings().CLUB_TIMEZONE))


class EventType(str, Enum):
    """이벤트 유형"""
    PAYMENT_STATUS_CHANGED = "payment.status_changed"
    FINANCIAL_SUMMARY_CHANGED = "finance.summary_changed"
    LEDGER_SYNC_FAILED = "ledger.sync_failed"


@dataclass
class ClubEvent:
    """클럽 데이터 변경 이벤트"""
    event_type: EventType
    entity_type: str                    # "player", "ledger"
    entity_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=club_now)
    source: str = "dues"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


class EventPublisher:
    """이벤트 발행자"""

    def __init__(
        self,
        db_client=None,
        table: str = "club_events",
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.db = db_client
        self.table = table
        self.now = clock or club_now
        self.local_subscribers: Dict[EventType, List[Callable]] = defaultdict(list)
        self._event_log: List[ClubEvent] = []
        self._max_log_size = 1000

    def _remember(self, event: ClubEvent) -> None:
        self._event_log.append(event)
        if len(self._event_log) > self._max_log_size:
            self._event_log = self._event_log[-self._max_log_size:]

    def _persist(self, event: ClubEvent) -> None:
        """DB에 이벤트 저장 (선택적)"""
        if not self.db:
            return
        try:
            self.db.table(self.table).insert({
                "event_type": event.event_type.value,
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
                "data": event.data,
                "source": event.source,
                "created_at": event.timestamp.isoformat()
            }).execute()
        except Exception as e:
            logger.warning(f"이벤트 DB 저장 실패: {e}")

    def publish(self, event: ClubEvent) -> None:
        """이벤트 발행 (동기 구독자만 호출)"""
        logger.info(f"📢 Event published: {event.event_type.value} - {event.entity_type}:{event.entity_id}")

        self._remember(event)
        self._persist(event)

        for subscriber in self.local_subscribers.get(event.event_type, []):
            if asyncio.iscoroutinefunction(subscriber):
                logger.debug(f"비동기 구독자는 publish_async에서만 호출: {subscriber}")
                continue
            try:
                subscriber(event)
            except Exception as e:
                logger.error(f"구독자 호출 실패: {e}")

    async def publish_async(self, event: ClubEvent) -> None:
        """비동기 이벤트 발행"""
        logger.info(f"📢 Event published (async): {event.event_type.value} - {event.entity_type}:{event.entity_id}")

        self._remember(event)
        self._persist(event)

        tasks = []
        for subscriber in self.local_subscribers.get(event.event_type, []):
            if asyncio.iscoroutinefunction(subscriber):
                tasks.append(subscriber(event))
                continue
            try:
                subscriber(event)
            except Exception as e:
                logger.error(f"구독자 호출 실패: {e}")

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"비동기 구독자 호출 실패: {result}")

    def subscribe(self, event_type: EventType, callback: Callable) -> None:
        """이벤트 구독"""
        self.local_subscribers[event_type].append(callback)
        logger.debug(f"✅ Subscribed to {event_type.value}")

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        """이벤트 구독 해제"""
        if callback in self.local_subscribers[event_type]:
            self.local_subscribers[event_type].remove(callback)
            logger.debug(f"❌ Unsubscribed from {event_type.value}")

    def get_recent_events(self, limit: int = 100) -> List[ClubEvent]:
        """최근 이벤트 조회"""
        return self._event_log[-limit:]

    # 편의 메서드들
    async def publish_payment_status_changed(
        self,
        player_id: str,
        month_index: int,
        paid: bool,
        exempt: bool,
        aggregate_status: AggregateStatus
    ) -> None:
        payload = PaymentStatusChanged(
            player_id=player_id,
            month_index=month_index,
            paid=paid,
            exempt=exempt,
            aggregate_status=aggregate_status,
        )
        await self.publish_async(ClubEvent(
            event_type=EventType.PAYMENT_STATUS_CHANGED,
            entity_type="player",
            entity_id=player_id,
            data=payload.model_dump(mode="json"),
            timestamp=self.now()
        ))

    async def publish_financial_summary_changed(
        self,
        summary: FinancialSummaryChanged
    ) -> None:
        await self.publish_async(ClubEvent(
            event_type=EventType.FINANCIAL_SUMMARY_CHANGED,
            entity_type="ledger",
            data=summary.model_dump(mode="json"),
            timestamp=self.now()
        ))

    async def publish_ledger_sync_failed(self, details: Dict[str, Any]) -> None:
        await self.publish_async(ClubEvent(
            event_type=EventType.LEDGER_SYNC_FAILED,
            entity_type="ledger",
            entity_id=details.get("player_id"),
            data=details,
            timestamp=self.now()
        ))
