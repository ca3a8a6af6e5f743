"""
Dues API Router

월회비 달력 / 장부 / 재무 요약 API
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..models import (
    EntryKind,
    FinancialSummary,
    LedgerEntry,
    PlayerDuesCreate,
    PlayerDuesView,
    SlotUpdateRequest,
    TransactionCreate,
)
from .dependencies import get_dues_service, get_transaction_service
from .errors import (
    InvalidMonth,
    InvalidTransaction,
    LedgerSyncFailed,
    PlayerAlreadyExists,
    PlayerNotFound,
    TransactionNotFound,
)
from .service import DuesService
from .transactions import TransactionService

router = APIRouter(prefix="/dues", tags=["Dues"])


# =============================================
# 선수 회비 달력
# =============================================

@router.post("/players", response_model=PlayerDuesView, status_code=201)
async def create_player_record(
    data: PlayerDuesCreate,
    service: DuesService = Depends(get_dues_service)
):
    """선수 등록 - 12개월 미납 달력 생성"""
    try:
        return await service.create_record(data.player_id, data.player_name, data.year)
    except PlayerAlreadyExists as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/players/{player_id}", response_model=PlayerDuesView)
async def get_player_record(
    player_id: str,
    service: DuesService = Depends(get_dues_service)
):
    try:
        return await service.get_view(player_id)
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")


@router.delete("/players/{player_id}")
async def delete_player_record(
    player_id: str,
    service: DuesService = Depends(get_dues_service)
):
    try:
        await service.delete_record(player_id)
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")
    return {"success": True, "player_id": player_id}


@router.post("/players/{player_id}/payments/{month_index}")
async def update_payment(
    player_id: str,
    month_index: int,
    data: SlotUpdateRequest,
    service: DuesService = Depends(get_dues_service)
):
    """
    월 납부/면제 변경

    장부 동기화가 실패하면 달력 변경은 유지하고 207로 응답합니다.
    (POST .../reconcile 로 재시도)
    """
    try:
        result = await service.set_slot(
            player_id,
            month_index,
            paid=data.paid,
            exempt=data.exempt,
            dues_amount=data.dues_amount,
        )
    except InvalidMonth as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")

    body = {"success": result.ledger_synced, **result.to_dict()}
    if not result.ledger_synced:
        return JSONResponse(status_code=207, content=body)
    return body


@router.post("/players/{player_id}/payments/{month_index}/reconcile")
async def retry_reconcile(
    player_id: str,
    month_index: int,
    dues_amount: Optional[float] = Query(None, ge=0),
    service: DuesService = Depends(get_dues_service)
):
    """저장된 달력 상태로 장부 재동기화"""
    try:
        result = await service.retry_reconcile(player_id, month_index, dues_amount)
    except InvalidMonth as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")
    except LedgerSyncFailed as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    return result.to_dict()


# =============================================
# 장부 / 재무 요약
# =============================================

@router.post("/ledger/rebuild")
async def rebuild_ledger(
    dues_amount: Optional[float] = Query(None, ge=0),
    service: DuesService = Depends(get_dues_service)
):
    """전체 달력 기준 월회비 거래 재생성"""
    counts = await service.rebuild_ledger(dues_amount)
    return {"success": counts["failed"] == 0, "counts": counts}


@router.get("/summary", response_model=FinancialSummary)
async def get_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    service: DuesService = Depends(get_dues_service)
):
    return await service.summarize(year)


@router.get("/transactions")
async def list_transactions(
    month: Optional[str] = Query(None, description="YYYY-MM"),
    kind: Optional[EntryKind] = Query(None),
    category: Optional[str] = Query(None),
    player_id: Optional[str] = Query(None),
    service: TransactionService = Depends(get_transaction_service)
):
    try:
        entries = await service.list_transactions(month, kind, category, player_id)
    except InvalidTransaction as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"total": len(entries), "transactions": entries}


@router.post("/transactions", response_model=LedgerEntry, status_code=201)
async def create_transaction(
    data: TransactionCreate,
    service: TransactionService = Depends(get_transaction_service)
):
    try:
        return await service.create_transaction(data)
    except InvalidTransaction as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="선수를 찾을 수 없습니다")


@router.delete("/transactions/{entry_id}")
async def delete_transaction(
    entry_id: str,
    service: TransactionService = Depends(get_transaction_service)
):
    try:
        await service.delete_transaction(entry_id)
    except TransactionNotFound:
        raise HTTPException(status_code=404, detail="거래를 찾을 수 없습니다")
    return {"success": True, "id": entry_id}


@router.post("/transactions/repair-dates")
async def repair_transaction_dates(
    service: TransactionService = Depends(get_transaction_service)
):
    """거래일/생성일 보정"""
    fixed = await service.repair_dates()
    return {"success": True, "fixed": fixed}
