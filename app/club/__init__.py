"""
Club Management Module

아마추어 축구 클럽 회비/회계 관리
- 선수별 12개월 회비 달력, 재무 상태 (완납/미납)
- 거래 장부 (수입/지출) 및 월회비 자동 동기화
- 연간 재무 요약, 실시간 알림
"""

from .models import (
    AggregateStatus,
    EntryKind,
    EntryStatus,
    ReconcileOutcome,
)

__all__ = [
    "AggregateStatus",
    "EntryKind",
    "EntryStatus",
    "ReconcileOutcome",
]
