"""
TransactionService 테스트
- 수동 거래 등록 검증
- 목록 필터
- 날짜 보정
"""
import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

from app.club.models import EntryKind, EntryStatus, TransactionCreate
from app.club.dues.errors import InvalidTransaction, PlayerNotFound, TransactionNotFound
from app.club.dues.transactions import TransactionService
from database.memory_store import InMemoryLedgerStore

TZ = ZoneInfo("America/Sao_Paulo")


@pytest.fixture
def transactions(ledger_store, player_store, calendar):
    return TransactionService(ledger_store, player_store, calendar)


def create_request(**overrides):
    data = dict(
        description="Patrocínio",
        amount=200.0,
        kind=EntryKind.revenue,
        transaction_date=datetime(2025, 3, 10, tzinfo=TZ),
    )
    data.update(overrides)
    return TransactionCreate(**data)


@pytest.mark.asyncio
class TestCreateTransaction:
    """거래 등록"""

    async def test_revenue_defaults(self, transactions, clock):
        entry = await transactions.create_transaction(create_request())
        assert entry.id is not None
        assert entry.category == "dues"
        assert entry.created_at == clock()
        assert entry.status == EntryStatus.paid

    async def test_expense_default_category(self, transactions):
        entry = await transactions.create_transaction(
            create_request(kind=EntryKind.expense, description="Aluguel")
        )
        assert entry.category == "other"
        assert entry.status == EntryStatus.pending

    async def test_description_trimmed(self, transactions):
        entry = await transactions.create_transaction(create_request(description="  Rifa  "))
        assert entry.description == "Rifa"

    @pytest.mark.parametrize("description", ["", "   "])
    async def test_empty_description(self, transactions, description):
        with pytest.raises(InvalidTransaction):
            await transactions.create_transaction(create_request(description=description))

    @pytest.mark.parametrize("amount", [-1.0, float("nan"), float("inf")])
    async def test_invalid_amount(self, transactions, amount):
        with pytest.raises(InvalidTransaction):
            await transactions.create_transaction(create_request(amount=amount))

    async def test_missing_date(self, transactions):
        with pytest.raises(InvalidTransaction):
            await transactions.create_transaction(create_request(transaction_date=None))

    async def test_unknown_player(self, transactions):
        with pytest.raises(PlayerNotFound):
            await transactions.create_transaction(create_request(player_id="nobody"))

    async def test_player_name_from_record(self, transactions, player_store, calendar):
        await player_store.insert(
            calendar.new_record("p1", "João", year=2025).model_dump(mode="json")
        )
        entry = await transactions.create_transaction(create_request(player_id="p1"))
        assert entry.player_id == "p1"
        assert entry.player_name == "João"

    async def test_nothing_saved_on_error(self, transactions, ledger_store):
        with pytest.raises(InvalidTransaction):
            await transactions.create_transaction(create_request(amount=-5.0))
        assert await ledger_store.list_entries() == []


@pytest.mark.asyncio
class TestListTransactions:
    """거래 목록"""

    async def test_month_filter(self, transactions):
        for day, month in [(1, 3), (31, 3), (1, 4)]:
            await transactions.create_transaction(
                create_request(transaction_date=datetime(2025, month, day, 12, tzinfo=TZ))
            )
        march = await transactions.list_transactions(month="2025-03")
        assert len(march) == 2
        # 최신순
        assert march[0].transaction_date.day == 31

    async def test_december_window(self, transactions):
        await transactions.create_transaction(
            create_request(transaction_date=datetime(2025, 12, 31, 20, tzinfo=TZ))
        )
        assert len(await transactions.list_transactions(month="2025-12")) == 1

    async def test_kind_and_category_filter(self, transactions):
        await transactions.create_transaction(create_request())
        await transactions.create_transaction(
            create_request(kind=EntryKind.expense, description="Luz", category="utilities")
        )
        expenses = await transactions.list_transactions(kind=EntryKind.expense)
        assert [e.description for e in expenses] == ["Luz"]
        assert len(await transactions.list_transactions(category="utilities")) == 1

    @pytest.mark.parametrize("month", ["2025", "2025-13", "março"])
    async def test_invalid_month(self, transactions, month):
        with pytest.raises(InvalidTransaction):
            await transactions.list_transactions(month=month)


@pytest.mark.asyncio
class TestDeleteAndRepair:
    """삭제 / 날짜 보정"""

    async def test_delete(self, transactions, ledger_store):
        entry = await transactions.create_transaction(create_request())
        await transactions.delete_transaction(entry.id)
        assert await ledger_store.list_entries() == []
        with pytest.raises(TransactionNotFound):
            await transactions.delete_transaction(entry.id)

    async def test_repair_dates(self, player_store, calendar, clock):
        ledger_store = InMemoryLedgerStore(rows=[
            {
                "id": "bad",
                "description": "Rifa",
                "amount": 10,
                "kind": "revenue",
                "transaction_date": "ontem",
                "created_at": None,
            },
            {
                "id": "good",
                "description": "Patrocínio",
                "amount": 20,
                "kind": "revenue",
                "transaction_date": "2025-03-01T10:00:00-03:00",
                "created_at": "2025-03-01T10:00:00-03:00",
            },
        ])
        service = TransactionService(ledger_store, player_store, calendar)

        # 파싱 불가 행은 목록에서 제외
        assert len(await service.list_transactions()) == 1

        assert await service.repair_dates() == 1
        repaired = await ledger_store.get("bad")
        assert repaired.transaction_date == clock()
        assert len(await service.list_transactions()) == 2

        assert await service.repair_dates() == 0
