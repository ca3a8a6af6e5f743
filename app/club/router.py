"""
Club Management Router

클럽 관리 메인 라우터
- 월회비 / 장부 / 재무 요약
"""

from fastapi import APIRouter

from .dues.router import router as dues_router

router = APIRouter(prefix="/club", tags=["Club Management"])

router.include_router(dues_router)
