"""
프로세스 내부 저장소 (로컬 실행/테스트용)

Supabase 테이블과 같은 형태(JSON 직렬화된 dict)로 보관
"""
import copy
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from app.club.dues.resolver import align_tz
from app.club.models import EntryKind, LedgerEntry
from .stores import LedgerStore, PlayerStore


class InMemoryPlayerStore(PlayerStore):
    """선수 회비 달력 메모리 저장소"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self._rows: Dict[str, Dict[str, Any]] = {}
        for row in rows or []:
            self._rows[str(row["player_id"])] = copy.deepcopy(row)

    async def get(self, player_id: str) -> Optional[Dict[str, Any]]:
        row = self._rows.get(player_id)
        return copy.deepcopy(row) if row is not None else None

    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        player_id = str(data["player_id"])
        if player_id in self._rows:
            raise ValueError(f"이미 등록된 선수입니다: {player_id}")
        self._rows[player_id] = copy.deepcopy(data)
        return copy.deepcopy(data)

    async def replace(self, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self._rows[player_id] = copy.deepcopy(data)
        return copy.deepcopy(data)

    async def delete(self, player_id: str) -> bool:
        return self._rows.pop(player_id, None) is not None

    async def list_all(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(row) for row in self._rows.values()]


class InMemoryLedgerStore(LedgerStore):
    """거래 장부 메모리 저장소"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self._rows: Dict[str, Dict[str, Any]] = {}
        for row in rows or []:
            row = copy.deepcopy(row)
            row.setdefault("id", str(uuid.uuid4()))
            self._rows[row["id"]] = row

    @staticmethod
    def _serialize(entry: LedgerEntry) -> Dict[str, Any]:
        return entry.model_dump(mode="json")

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        return all(row.get(key) == value for key, value in filters.items())

    def _to_entry(self, row: Dict[str, Any]) -> Optional[LedgerEntry]:
        try:
            return LedgerEntry.model_validate(row)
        except ValidationError as e:
            logger.warning(f"장부 행 파싱 실패 (id={row.get('id')}): {e}")
            return None

    async def find_one(self, filters: Dict[str, Any]) -> Optional[LedgerEntry]:
        for row in self._rows.values():
            if self._matches(row, filters):
                return self._to_entry(row)
        return None

    async def get(self, entry_id: str) -> Optional[LedgerEntry]:
        row = self._rows.get(entry_id)
        return self._to_entry(row) if row is not None else None

    async def insert(self, entry: LedgerEntry) -> LedgerEntry:
        entry = entry.model_copy(update={"id": entry.id or str(uuid.uuid4())})
        self._rows[entry.id] = self._serialize(entry)
        return entry

    async def update(self, entry: LedgerEntry) -> Optional[LedgerEntry]:
        if entry.id not in self._rows:
            return None
        self._rows[entry.id] = self._serialize(entry)
        return entry

    async def delete_one(self, filters: Dict[str, Any]) -> bool:
        for entry_id, row in self._rows.items():
            if self._matches(row, filters):
                del self._rows[entry_id]
                return True
        return False

    async def delete(self, entry_id: str) -> bool:
        return self._rows.pop(entry_id, None) is not None

    async def list_entries(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[EntryKind] = None,
        category: Optional[str] = None,
        player_id: Optional[str] = None
    ) -> List[LedgerEntry]:
        entries = []
        for row in self._rows.values():
            entry = self._to_entry(row)
            if entry is None:
                continue
            if kind is not None and entry.kind != kind:
                continue
            if category is not None and entry.category != category:
                continue
            if player_id is not None and entry.player_id != player_id:
                continue
            if start is not None and align_tz(entry.transaction_date, start) < start:
                continue
            if end is not None and align_tz(entry.transaction_date, end) >= end:
                continue
            entries.append(entry)
        entries.sort(key=lambda e: e.transaction_date.timestamp(), reverse=True)
        return entries

    async def list_raw(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(row) for row in self._rows.values()]

    async def patch(self, entry_id: str, fields: Dict[str, Any]) -> None:
        if entry_id not in self._rows:
            raise KeyError(entry_id)
        self._rows[entry_id].update(copy.deepcopy(fields))
