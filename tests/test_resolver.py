"""
StatusResolver 단위 테스트
- strict / grace 정책
- 기준 월 이후(미래) 슬롯 무시
"""
import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

from app.club.models import AggregateStatus, CalendarSlot
from app.club.dues.resolver import (
    GracePeriodPolicy,
    StatusResolver,
    StrictMonthlyPolicy,
    get_policy,
    resolve_status,
)

TZ = ZoneInfo("America/Sao_Paulo")


def make_slots(flags, year=2025):
    """paid 플래그 목록 → 12개 슬롯 (납부 기한 20일)"""
    return [
        CalendarSlot(
            paid=paid,
            payment_date=datetime(year, index + 1, 5, tzinfo=TZ) if paid else None,
            due_date=datetime(year, index + 1, 20, 23, 59, 59, tzinfo=TZ),
        )
        for index, paid in enumerate(flags)
    ]


class TestStrictMonthlyPolicy:
    """기본 정책 - 기준 월까지 매달 납부"""

    def test_scenario_july_unpaid_is_delinquent(self):
        """1~6월 납부, 7월 1일 기준 → 7월 미납으로 미납 상태"""
        slots = make_slots([True] * 6 + [False] * 6)
        reference = datetime(2025, 7, 1, tzinfo=TZ)
        assert resolve_status(slots, reference) == AggregateStatus.delinquent

    def test_scenario_june_reference_is_compliant(self):
        """같은 달력, 6월 1일 기준 → 완납"""
        slots = make_slots([True] * 6 + [False] * 6)
        reference = datetime(2025, 6, 1, tzinfo=TZ)
        assert resolve_status(slots, reference) == AggregateStatus.compliant

    def test_all_paid_is_compliant(self):
        slots = make_slots([True] * 12)
        assert resolve_status(slots, datetime(2025, 12, 31, tzinfo=TZ)) == AggregateStatus.compliant

    def test_exempt_counts_as_settled(self):
        """면제 달은 미납으로 보지 않음"""
        slots = make_slots([True] * 12)
        slots[3] = CalendarSlot(exempt=True, due_date=slots[3].due_date)
        assert resolve_status(slots, datetime(2025, 12, 1, tzinfo=TZ)) == AggregateStatus.compliant

    def test_single_unpaid_past_month_is_delinquent(self):
        flags = [True] * 12
        flags[2] = False
        slots = make_slots(flags)
        assert resolve_status(slots, datetime(2025, 8, 1, tzinfo=TZ)) == AggregateStatus.delinquent

    def test_future_months_ignored(self):
        """기준 월 이후 미납은 무시"""
        slots = make_slots([True] + [False] * 11)
        assert resolve_status(slots, datetime(2025, 1, 15, tzinfo=TZ)) == AggregateStatus.compliant

    def test_delinquent_months_listing(self):
        flags = [True, False, True, False] + [True] * 8
        resolver = StatusResolver(StrictMonthlyPolicy())
        months = resolver.delinquent_months(make_slots(flags), datetime(2025, 4, 2, tzinfo=TZ))
        assert months == [1, 3]

    def test_deterministic(self):
        slots = make_slots([True] * 5 + [False] * 7)
        reference = datetime(2025, 9, 1, tzinfo=TZ)
        assert resolve_status(slots, reference) == resolve_status(slots, reference)


class TestGracePeriodPolicy:
    """기한 경과 정책 - 납부 기한이 지난 미납만 연체"""

    def test_current_month_before_due_date_is_compliant(self):
        slots = make_slots([True] * 6 + [False] * 6)
        resolver = StatusResolver(GracePeriodPolicy())
        assert resolver.resolve(slots, datetime(2025, 7, 1, tzinfo=TZ)) == AggregateStatus.compliant

    def test_current_month_after_due_date_is_delinquent(self):
        slots = make_slots([True] * 6 + [False] * 6)
        resolver = StatusResolver(GracePeriodPolicy())
        assert resolver.resolve(slots, datetime(2025, 7, 21, tzinfo=TZ)) == AggregateStatus.delinquent

    def test_paid_after_due_date_is_not_delinquent(self):
        """기한 후 납부한 달은 연체 아님"""
        slots = make_slots([True] * 12)
        resolver = StatusResolver(GracePeriodPolicy())
        assert resolver.resolve(slots, datetime(2025, 12, 31, tzinfo=TZ)) == AggregateStatus.compliant

    def test_naive_reference_date(self):
        """naive 기준일도 비교 가능"""
        slots = make_slots([False] * 12)
        resolver = StatusResolver(GracePeriodPolicy())
        assert resolver.resolve(slots, datetime(2025, 1, 25)) == AggregateStatus.delinquent


class TestPolicyLookup:
    """정책 이름 조회"""

    def test_known_policies(self):
        assert isinstance(get_policy("strict"), StrictMonthlyPolicy)
        assert isinstance(get_policy("grace"), GracePeriodPolicy)

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            get_policy("lenient")

    def test_default_resolver_policy_is_strict(self):
        assert StatusResolver().policy.name == "strict"
