"""
Pytest configuration and fixtures for Club Dues tests
"""

import pytest
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.club.config import DuesSettings
from app.club.dues.record import DuesCalendar
from app.club.dues.resolver import StatusResolver, StrictMonthlyPolicy
from app.club.dues.service import DuesService
from app.club.events import EventPublisher
from database.memory_store import InMemoryLedgerStore, InMemoryPlayerStore
from database.stores import StoreUnavailable

TZ = ZoneInfo("America/Sao_Paulo")


class FrozenClock:
    """고정 시각 (테스트에서 moment 변경 가능)"""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FlakyLedgerStore(InMemoryLedgerStore):
    """failing=True 동안 모든 호출이 StoreUnavailable"""

    def __init__(self):
        super().__init__()
        self.failing = False

    def _check(self):
        if self.failing:
            raise StoreUnavailable("ledger store offline")

    async def find_one(self, filters):
        self._check()
        return await super().find_one(filters)

    async def insert(self, entry):
        self._check()
        return await super().insert(entry)

    async def update(self, entry):
        self._check()
        return await super().update(entry)

    async def delete_one(self, filters):
        self._check()
        return await super().delete_one(filters)

    async def list_entries(self, **kwargs):
        self._check()
        return await super().list_entries(**kwargs)


@pytest.fixture
def clock():
    """2025-07-01 10:00 (상파울루) - 현재 월 인덱스 6"""
    return FrozenClock(datetime(2025, 7, 1, 10, 0, tzinfo=TZ))


@pytest.fixture
def settings():
    return DuesSettings(
        MONTHLY_FEE=50.0,
        DUE_DAY=20,
        CLUB_TIMEZONE="America/Sao_Paulo",
        DELINQUENCY_POLICY="strict",
        STORAGE_BACKEND="memory",
    )


@pytest.fixture
def calendar(clock):
    return DuesCalendar(
        resolver=StatusResolver(StrictMonthlyPolicy()),
        due_day=20,
        timezone="America/Sao_Paulo",
        clock=clock,
    )


@pytest.fixture
def player_store():
    return InMemoryPlayerStore()


@pytest.fixture
def ledger_store():
    return InMemoryLedgerStore()


@pytest.fixture
def flaky_ledger_store():
    return FlakyLedgerStore()


@pytest.fixture
def publisher(clock):
    return EventPublisher(clock=clock)


@pytest.fixture
def service(player_store, ledger_store, publisher, settings, calendar):
    return DuesService(
        player_store,
        ledger_store,
        publisher=publisher,
        settings=settings,
        calendar=calendar,
    )


@pytest.fixture
def flaky_service(player_store, flaky_ledger_store, publisher, settings, calendar):
    return DuesService(
        player_store,
        flaky_ledger_store,
        publisher=publisher,
        settings=settings,
        calendar=calendar,
    )
