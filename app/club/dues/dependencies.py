"""
Dues Dependencies

설정에 따른 저장소/서비스 싱글톤
"""

from functools import lru_cache
from typing import Tuple

from loguru import logger

from database.memory_store import InMemoryLedgerStore, InMemoryPlayerStore
from database.stores import LedgerStore, PlayerStore
from ..config import get_dues_settings
from ..events import EventPublisher
from .record import club_clock
from .service import DuesService
from .transactions import TransactionService


@lru_cache()
def get_stores() -> Tuple[PlayerStore, LedgerStore]:
    """STORAGE_BACKEND 설정에 맞는 저장소"""
    settings = get_dues_settings()
    if settings.STORAGE_BACKEND == "supabase":
        from database.supabase_client import SupabaseLedgerStore, SupabasePlayerStore

        logger.info("저장소: Supabase")
        return SupabasePlayerStore(), SupabaseLedgerStore()

    logger.info("저장소: 메모리 (재시작 시 초기화)")
    return InMemoryPlayerStore(), InMemoryLedgerStore()


@lru_cache()
def get_event_publisher() -> EventPublisher:
    settings = get_dues_settings()
    db_client = None
    if settings.STORAGE_BACKEND == "supabase":
        from database.supabase_client import get_supabase_client

        db_client = get_supabase_client()
    return EventPublisher(
        db_client=db_client,
        table=settings.EVENTS_TABLE,
        clock=club_clock(settings.CLUB_TIMEZONE),
    )


@lru_cache()
def get_dues_service() -> DuesService:
    player_store, ledger_store = get_stores()
    return DuesService(player_store, ledger_store, publisher=get_event_publisher())


@lru_cache()
def get_transaction_service() -> TransactionService:
    dues_service = get_dues_service()
    return TransactionService(
        dues_service.ledger_store,
        dues_service.player_store,
        dues_service.calendar,
    )
