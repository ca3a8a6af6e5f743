"""
장부 공통 규칙

- 월회비 거래 설명 키 ("Mensalidade <Mês> - <Nome>")
- 월회비 거래 상태 계산
"""

from datetime import datetime
from ..models import EntryKind, EntryStatus, LedgerEntry
from .resolver import align_tz

DUES_CATEGORY = "dues"
EXPENSE_DEFAULT_CATEGORY = "other"

# 구버전 카테고리명 (mensalidade)
DUES_CATEGORY_ALIASES = {DUES_CATEGORY, "mensalidade"}

MONTH_NAMES_PT = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


def dues_description(month_index: int, player_name: str) -> str:
    """달력 슬롯과 거래를 잇는 유일한 연결 키"""
    return f"Mensalidade {MONTH_NAMES_PT[month_index]} - {player_name}"


def is_dues_entry(entry: LedgerEntry) -> bool:
    return entry.kind == EntryKind.revenue and entry.category in DUES_CATEGORY_ALIASES


def derive_entry_status(entry: LedgerEntry, now: datetime) -> EntryStatus:
    """
    월회비 거래 상태

    면제 > 기한 경과 + 금액 0 (연체) > 금액 있음 (납부) > 대기
    """
    if entry.exempt:
        return EntryStatus.exempt
    if entry.due_date is not None and not entry.amount:
        if align_tz(now, entry.due_date) > entry.due_date:
            return EntryStatus.overdue
    if entry.amount > 0:
        return EntryStatus.paid
    return EntryStatus.pending


def apply_entry_status(entry: LedgerEntry, now: datetime) -> LedgerEntry:
    """월회비 거래만 상태 재계산, 나머지는 입력값 유지"""
    if is_dues_entry(entry):
        entry.status = derive_entry_status(entry, now)
    return entry

