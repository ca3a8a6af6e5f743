"""
Dues Module

월회비 재무 상태 엔진
- 12개월 회비 달력과 재무 상태 (완납/미납)
- 거래 장부 동기화 (납부/면제/취소)
- 연간 재무 요약
"""

from .errors import (
    DuesError,
    InvalidMonth,
    LedgerSyncFailed,
    PlayerAlreadyExists,
    PlayerNotFound,
    TransactionNotFound,
)
from .ledger import dues_description, derive_entry_status
from .reconciler import LedgerReconciler, ReconcileResult
from .record import DuesCalendar
from .resolver import (
    GracePeriodPolicy,
    StatusResolver,
    StrictMonthlyPolicy,
    get_policy,
    resolve_status,
)
from .service import DuesService, SlotUpdateResult
from .summary import FinancialSummaryAggregator
from .transactions import TransactionService

__all__ = [
    "DuesError",
    "InvalidMonth",
    "LedgerSyncFailed",
    "PlayerAlreadyExists",
    "PlayerNotFound",
    "TransactionNotFound",
    "dues_description",
    "derive_entry_status",
    "LedgerReconciler",
    "ReconcileResult",
    "DuesCalendar",
    "GracePeriodPolicy",
    "StatusResolver",
    "StrictMonthlyPolicy",
    "get_policy",
    "resolve_status",
    "DuesService",
    "SlotUpdateResult",
    "FinancialSummaryAggregator",
    "TransactionService",
]
