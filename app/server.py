"""
Club Dues - FastAPI 웹 서버
포트: 내부 71, 외부 7171

데이터 소스: Supabase 또는 메모리 (STORAGE_BACKEND)
"""
from fastapi import FastAPI
from loguru import logger
from dotenv import load_dotenv

from app.club.config import get_dues_settings
from app.club.router import router as club_router

# 환경변수 로드
load_dotenv()

# FastAPI 앱
app = FastAPI(
    title="Club Dues",
    description="아마추어 축구 클럽 월회비/회계 관리",
    version="1.0.0"
)

# Club Management 라우터 등록
app.include_router(club_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    settings = get_dues_settings()
    logger.info(
        f"서버 시작 - storage={settings.STORAGE_BACKEND} "
        f"policy={settings.DELINQUENCY_POLICY} fee={settings.MONTHLY_FEE}"
    )


@app.get("/health")
async def health():
    """헬스 체크"""
    settings = get_dues_settings()
    return {
        "status": "ok",
        "storage": settings.STORAGE_BACKEND,
        "delinquency_policy": settings.DELINQUENCY_POLICY,
    }


# ==================== 서버 실행 ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host="0.0.0.0",
        port=71,
        reload=True,
        log_level="info"
    )
