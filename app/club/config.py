"""
Club Dues Config - 회비/회계 설정
"""
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class DuesSettings(BaseSettings):
    """회비 엔진 설정"""

    # Supabase
    SUPABASE_URL: str = Field(default="", description="Supabase Project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase anon key")

    # 저장소 선택 (memory: 프로세스 내부, supabase: 운영)
    STORAGE_BACKEND: Literal["memory", "supabase"] = "memory"
    PLAYERS_TABLE: str = "player_dues"
    TRANSACTIONS_TABLE: str = "transactions"
    EVENTS_TABLE: str = "club_events"

    # 회비 규칙
    MONTHLY_FEE: float = Field(default=50.0, ge=0, description="월회비 기본 금액")
    DUE_DAY: int = Field(default=20, ge=1, le=28, description="매월 납부 기한 (일)")
    CLUB_TIMEZONE: str = "America/Sao_Paulo"
    DELINQUENCY_POLICY: Literal["strict", "grace"] = "strict"

    # 로깅
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_dues_settings() -> DuesSettings:
    return DuesSettings()
