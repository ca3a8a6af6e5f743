"""
Supabase 데이터베이스 클라이언트
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError
from supabase import create_client, Client

from app.club.config import get_dues_settings
from app.club.models import EntryKind, LedgerEntry
from .stores import LedgerStore, PlayerStore, StoreUnavailable


# 싱글톤 클라이언트
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Supabase 클라이언트 인스턴스 반환 (싱글톤)
    """
    global _supabase_client
    if _supabase_client is None:
        settings = get_dues_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("SUPABASE_URL과 SUPABASE_KEY 환경변수를 설정해주세요")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY
        )
    return _supabase_client


class SupabasePlayerStore(PlayerStore):
    """선수 회비 달력 테이블"""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self.client = client or get_supabase_client()
        self.table = table or get_dues_settings().PLAYERS_TABLE

    async def get(self, player_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.client.table(self.table).select("*").eq(
                "player_id", player_id
            ).limit(1).execute()
        except Exception as e:
            logger.error(f"선수 달력 조회 오류: {e}")
            raise StoreUnavailable(f"player store get failed: {e}") from e

        if result.data:
            return result.data[0]
        return None

    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.client.table(self.table).insert(data).execute()
        except Exception as e:
            logger.error(f"선수 달력 생성 오류: {e}")
            raise StoreUnavailable(f"player store insert failed: {e}") from e
        return result.data[0] if result.data else data

    async def replace(self, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.client.table(self.table).update(data).eq(
                "player_id", player_id
            ).execute()
        except Exception as e:
            logger.error(f"선수 달력 저장 오류: {e}")
            raise StoreUnavailable(f"player store replace failed: {e}") from e
        return result.data[0] if result.data else data

    async def delete(self, player_id: str) -> bool:
        try:
            result = self.client.table(self.table).delete().eq(
                "player_id", player_id
            ).execute()
        except Exception as e:
            logger.error(f"선수 달력 삭제 오류: {e}")
            raise StoreUnavailable(f"player store delete failed: {e}") from e
        return bool(result.data)

    async def list_all(self) -> List[Dict[str, Any]]:
        try:
            result = self.client.table(self.table).select("*").execute()
        except Exception as e:
            logger.error(f"선수 달력 목록 조회 오류: {e}")
            raise StoreUnavailable(f"player store list failed: {e}") from e
        return result.data or []


class SupabaseLedgerStore(LedgerStore):
    """거래 장부 테이블"""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self.client = client or get_supabase_client()
        self.table = table or get_dues_settings().TRANSACTIONS_TABLE

    @staticmethod
    def _serialize(entry: LedgerEntry) -> Dict[str, Any]:
        data = entry.model_dump(mode="json")
        if data.get("id") is None:
            data.pop("id", None)
        return data

    @staticmethod
    def _to_entry(row: Dict[str, Any]) -> Optional[LedgerEntry]:
        try:
            return LedgerEntry.model_validate(row)
        except ValidationError as e:
            logger.warning(f"장부 행 파싱 실패 (id={row.get('id')}): {e}")
            return None

    async def find_one(self, filters: Dict[str, Any]) -> Optional[LedgerEntry]:
        try:
            query = self.client.table(self.table).select("*")
            for key, value in filters.items():
                query = query.eq(key, value)
            result = query.limit(1).execute()
        except Exception as e:
            logger.error(f"거래 조회 오류: {e}")
            raise StoreUnavailable(f"ledger find failed: {e}") from e

        if result.data:
            return self._to_entry(result.data[0])
        return None

    async def get(self, entry_id: str) -> Optional[LedgerEntry]:
        return await self.find_one({"id": entry_id})

    async def insert(self, entry: LedgerEntry) -> LedgerEntry:
        try:
            result = self.client.table(self.table).insert(
                self._serialize(entry)
            ).execute()
        except Exception as e:
            logger.error(f"거래 저장 오류: {e}")
            raise StoreUnavailable(f"ledger insert failed: {e}") from e

        if result.data:
            return self._to_entry(result.data[0]) or entry
        return entry

    async def update(self, entry: LedgerEntry) -> Optional[LedgerEntry]:
        try:
            result = self.client.table(self.table).update(
                self._serialize(entry)
            ).eq("id", entry.id).execute()
        except Exception as e:
            logger.error(f"거래 수정 오류: {e}")
            raise StoreUnavailable(f"ledger update failed: {e}") from e

        if not result.data:
            return None
        return self._to_entry(result.data[0]) or entry

    async def delete_one(self, filters: Dict[str, Any]) -> bool:
        entry = await self.find_one(filters)
        if entry is None:
            return False
        return await self.delete(entry.id)

    async def delete(self, entry_id: str) -> bool:
        try:
            result = self.client.table(self.table).delete().eq(
                "id", entry_id
            ).execute()
        except Exception as e:
            logger.error(f"거래 삭제 오류: {e}")
            raise StoreUnavailable(f"ledger delete failed: {e}") from e
        return bool(result.data)

    async def list_entries(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[EntryKind] = None,
        category: Optional[str] = None,
        player_id: Optional[str] = None
    ) -> List[LedgerEntry]:
        try:
            query = self.client.table(self.table).select("*")
            if start is not None:
                query = query.gte("transaction_date", start.isoformat())
            if end is not None:
                query = query.lt("transaction_date", end.isoformat())
            if kind is not None:
                query = query.eq("kind", kind.value)
            if category is not None:
                query = query.eq("category", category)
            if player_id is not None:
                query = query.eq("player_id", player_id)
            result = query.order("transaction_date", desc=True).execute()
        except Exception as e:
            logger.error(f"거래 목록 조회 오류: {e}")
            raise StoreUnavailable(f"ledger list failed: {e}") from e

        entries = []
        for row in result.data or []:
            entry = self._to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    async def list_raw(self) -> List[Dict[str, Any]]:
        try:
            result = self.client.table(self.table).select("*").execute()
        except Exception as e:
            logger.error(f"거래 원본 조회 오류: {e}")
            raise StoreUnavailable(f"ledger list failed: {e}") from e
        return result.data or []

    async def patch(self, entry_id: str, fields: Dict[str, Any]) -> None:
        try:
            self.client.table(self.table).update(fields).eq("id", entry_id).execute()
        except Exception as e:
            logger.error(f"거래 보정 오류: {e}")
            raise StoreUnavailable(f"ledger patch failed: {e}") from e
