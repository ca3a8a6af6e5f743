"""
회비 도메인 예외
"""
from typing import Optional


class DuesError(Exception):
    """회비 도메인 기본 예외"""


class InvalidMonth(DuesError):
    """월 인덱스가 0..11 범위를 벗어남"""

    def __init__(self, month_index):
        self.month_index = month_index
        super().__init__(f"Invalid month index: {month_index} (expected 0-11)")


class PlayerNotFound(DuesError):
    """선수 회비 기록 없음"""

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player not found: {player_id}")


class TransactionNotFound(DuesError):
    """거래 기록 없음"""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Transaction not found: {entry_id}")


class InvalidTransaction(DuesError):
    """거래 입력값 오류"""


class LedgerSyncFailed(DuesError):
    """
    장부 동기화 실패

    달력 변경은 이미 커밋된 상태. 장부만 뒤처져 있으므로
    같은 (player_id, month_index)로 재동기화하면 복구된다.
    """

    def __init__(
        self,
        player_id: str,
        month_index: int,
        operation: str,
        cause: Optional[BaseException] = None
    ):
        self.player_id = player_id
        self.month_index = month_index
        self.operation = operation
        self.cause = cause
        message = (
            f"Ledger sync failed for player={player_id} month={month_index} "
            f"operation={operation}"
        )
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)

    def to_dict(self):
        return {
            "player_id": self.player_id,
            "month_index": self.month_index,
            "operation": self.operation,
            "message": str(self),
        }


class PlayerAlreadyExists(DuesError):
    """이미 회비 달력이 있는 선수"""

    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__(f"Player already registered: {player_id}")
