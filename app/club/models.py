"""
Club Dues Models

Pydantic 모델 정의 - 월회비 달력, 거래 장부, 재무 요약
"""

from datetime import datetime
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field


# =============================================
# Enums
# =============================================

class AggregateStatus(str, Enum):
    """선수 재무 상태"""
    compliant = "compliant"     # 완납 (Adimplente)
    delinquent = "delinquent"   # 미납 (Inadimplente)


class EntryKind(str, Enum):
    """거래 유형"""
    revenue = "revenue"   # 수입
    expense = "expense"   # 지출


class EntryStatus(str, Enum):
    """거래 상태"""
    pending = "pending"   # 대기
    paid = "paid"         # 납부완료
    overdue = "overdue"   # 연체
    exempt = "exempt"     # 면제


class ReconcileOutcome(str, Enum):
    """장부 동기화 결과"""
    created = "created"
    updated = "updated"
    deleted = "deleted"
    noop = "noop"


# =============================================
# Dues Calendar Models (핵심)
# =============================================

class CalendarSlot(BaseModel):
    """한 달 회비 의무"""
    paid: bool = False
    exempt: bool = False
    payment_date: Optional[datetime] = None
    due_date: datetime


class PlayerDuesRecord(BaseModel):
    """선수 12개월 회비 달력"""
    player_id: str
    player_name: str
    year: int
    slots: List[CalendarSlot] = []
    aggregate_status: AggregateStatus = AggregateStatus.delinquent
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlayerDuesView(BaseModel):
    """외부 조회용 회비 달력"""
    player_id: str
    player_name: str
    year: int
    slots: List[CalendarSlot]
    aggregate_status: AggregateStatus


class ReconcileRequest(BaseModel):
    """장부 동기화 요청 (선수/월 단위)"""
    player_id: str
    player_name: str
    month_index: int = Field(..., ge=0, le=11)
    slot: CalendarSlot


# =============================================
# Ledger Models
# =============================================

class LedgerEntry(BaseModel):
    """거래 기록"""
    id: Optional[str] = None
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    kind: EntryKind
    category: Optional[str] = None
    transaction_date: datetime
    due_date: Optional[datetime] = None
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    exempt: bool = False
    status: EntryStatus = EntryStatus.pending
    created_at: Optional[datetime] = None


class TransactionCreate(BaseModel):
    """거래 생성 요청"""
    description: str
    amount: float
    kind: EntryKind
    category: Optional[str] = None
    transaction_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    exempt: bool = False


class FinancialSummary(BaseModel):
    """연간 재무 요약"""
    year: int
    total_revenue: float = 0
    total_expense: float = 0
    balance: float = 0
    pending_dues_count: int = 0


# =============================================
# Request Models
# =============================================

class PlayerDuesCreate(BaseModel):
    """선수 회비 달력 생성"""
    player_id: str = Field(..., min_length=1)
    player_name: str = Field(..., min_length=1, max_length=100)
    year: Optional[int] = None


class SlotUpdateRequest(BaseModel):
    """월 납부/면제 변경 요청"""
    paid: Optional[bool] = None
    exempt: Optional[bool] = None
    dues_amount: Optional[float] = Field(default=None, ge=0)


# =============================================
# Notification Payloads
# =============================================

class PaymentStatusChanged(BaseModel):
    """납부 상태 변경 알림"""
    player_id: str
    month_index: int
    paid: bool
    exempt: bool
    aggregate_status: AggregateStatus


class FinancialSummaryChanged(BaseModel):
    """재무 요약 변경 알림"""
    total_revenue: float
    total_expense: float
    balance: float
