"""
저장소 인터페이스

선수 회비 달력 저장소와 거래 장부 저장소는 서로 독립.
두 저장소를 묶는 트랜잭션은 없음 - 장부는 달력에서 다시 만들 수 있는 투영.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.club.models import EntryKind, LedgerEntry


class StoreUnavailable(Exception):
    """저장소 접근 실패 (네트워크/서버 오류)"""


class PlayerStore:
    """선수 회비 달력 저장소 - 원본 dict 그대로 반환 (정규화는 호출측)"""

    async def get(self, player_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def replace(self, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def delete(self, player_id: str) -> bool:
        raise NotImplementedError

    async def list_all(self) -> List[Dict[str, Any]]:
        raise NotImplementedError


class LedgerStore:
    """거래 장부 저장소"""

    async def find_one(self, filters: Dict[str, Any]) -> Optional[LedgerEntry]:
        raise NotImplementedError

    async def get(self, entry_id: str) -> Optional[LedgerEntry]:
        raise NotImplementedError

    async def insert(self, entry: LedgerEntry) -> LedgerEntry:
        raise NotImplementedError

    async def update(self, entry: LedgerEntry) -> Optional[LedgerEntry]:
        """행이 없으면 None"""
        raise NotImplementedError

    async def delete_one(self, filters: Dict[str, Any]) -> bool:
        raise NotImplementedError

    async def delete(self, entry_id: str) -> bool:
        raise NotImplementedError

    async def list_entries(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[EntryKind] = None,
        category: Optional[str] = None,
        player_id: Optional[str] = None
    ) -> List[LedgerEntry]:
        """start 이상 end 미만, 최신순"""
        raise NotImplementedError

    async def list_raw(self) -> List[Dict[str, Any]]:
        """검증 없는 원본 행 (날짜 보정용)"""
        raise NotImplementedError

    async def patch(self, entry_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError


def dues_filters(player_id: str, description: str) -> Dict[str, Any]:
    """월회비 거래 조회 조건 (player_id + 설명 + 수입)"""
    return {
        "player_id": player_id,
        "kind": EntryKind.revenue.value,
        "description": description,
    }
