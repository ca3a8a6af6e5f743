"""
StatusResolver - 12개월 달력으로 선수 재무 상태 계산

순수 함수. 같은 달력과 기준일이면 항상 같은 결과.
연체 판정 규칙은 정책 객체로 분리되어 교체 가능:
- strict: 기준 월까지 납부/면제 안 된 달이 있으면 미납
- grace:  납부 기한(due_date)이 지난 미납 달만 미납으로 판정
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Type

from ..models import AggregateStatus, CalendarSlot


def align_tz(reference: datetime, other: datetime) -> datetime:
    """naive/aware 비교 오류 방지"""
    if reference.tzinfo is None and other.tzinfo is not None:
        return reference.replace(tzinfo=other.tzinfo)
    if reference.tzinfo is not None and other.tzinfo is None:
        return reference.replace(tzinfo=None)
    return reference


class DelinquencyPolicy:
    """연체 판정 정책 기본 클래스"""

    name = "base"

    def is_delinquent(self, slot: CalendarSlot, reference_date: datetime) -> bool:
        raise NotImplementedError


class StrictMonthlyPolicy(DelinquencyPolicy):
    """기준 월까지 매달 납부 필요 (기한 무관)"""

    name = "strict"

    def is_delinquent(self, slot: CalendarSlot, reference_date: datetime) -> bool:
        return not slot.paid and not slot.exempt


class GracePeriodPolicy(DelinquencyPolicy):
    """납부 기한이 지난 미납 달만 연체"""

    name = "grace"

    def is_delinquent(self, slot: CalendarSlot, reference_date: datetime) -> bool:
        if slot.paid or slot.exempt:
            return False
        return align_tz(reference_date, slot.due_date) > slot.due_date


POLICIES: Dict[str, Type[DelinquencyPolicy]] = {
    StrictMonthlyPolicy.name: StrictMonthlyPolicy,
    GracePeriodPolicy.name: GracePeriodPolicy,
}


def get_policy(name: str) -> DelinquencyPolicy:
    """이름으로 정책 조회"""
    try:
        return POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown delinquency policy: {name} (available: {', '.join(POLICIES)})"
        )


class StatusResolver:
    """선수 재무 상태 계산기"""

    def __init__(self, policy: Optional[DelinquencyPolicy] = None):
        self.policy = policy or StrictMonthlyPolicy()

    def delinquent_months(
        self,
        slots: Sequence[CalendarSlot],
        reference_date: datetime
    ) -> List[int]:
        """기준 월까지의 연체 월 인덱스 목록 (미래 월은 제외)"""
        current_month_index = reference_date.month - 1
        return [
            index for index, slot in enumerate(slots)
            if index <= current_month_index
            and self.policy.is_delinquent(slot, reference_date)
        ]

    def resolve(
        self,
        slots: Sequence[CalendarSlot],
        reference_date: datetime
    ) -> AggregateStatus:
        if self.delinquent_months(slots, reference_date):
            return AggregateStatus.delinquent
        return AggregateStatus.compliant


def resolve_status(
    slots: Sequence[CalendarSlot],
    reference_date: datetime,
    policy: Optional[DelinquencyPolicy] = None
) -> AggregateStatus:
    """StatusResolver 편의 함수"""
    return StatusResolver(policy).resolve(slots, reference_date)
