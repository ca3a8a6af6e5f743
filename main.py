"""
클럽 회비 엔진 메인
"""
import asyncio
import sys
from datetime import datetime
from loguru import logger

from app.club.config import get_dues_settings
from app.club.dues.dependencies import get_dues_service


# 로깅 설정
def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level
    )
    logger.add(
        "logs/dues_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        level="DEBUG"
    )


async def show_summary(year: int) -> None:
    """연간 재무 요약 출력"""
    service = get_dues_service()
    summary = await service.summarize(year)
    logger.info(f"=== {summary.year}년 재무 요약 ===")
    logger.info(f"수입: {summary.total_revenue:,.2f}")
    logger.info(f"지출: {summary.total_expense:,.2f}")
    logger.info(f"잔액: {summary.balance:,.2f}")
    logger.info(f"미납 월 수: {summary.pending_dues_count}")


async def rebuild_ledger(dues_amount=None) -> bool:
    """전체 달력 기준 월회비 거래 재생성"""
    service = get_dues_service()
    counts = await service.rebuild_ledger(dues_amount)
    return counts["failed"] == 0


def main():
    """메인 함수"""
    import argparse

    parser = argparse.ArgumentParser(description="클럽 월회비/회계 엔진")
    parser.add_argument(
        "--mode",
        choices=["serve", "summary", "rebuild-ledger"],
        default="serve",
        help="실행 모드"
    )
    parser.add_argument("--year", type=int, default=None, help="요약 연도")
    parser.add_argument("--fee", type=float, default=None, help="월회비 금액 (기본: MONTHLY_FEE)")
    parser.add_argument("--port", type=int, default=71, help="서버 포트")

    args = parser.parse_args()
    setup_logging(get_dues_settings().LOG_LEVEL)

    if args.mode == "serve":
        import uvicorn

        uvicorn.run("app.server:app", host="0.0.0.0", port=args.port, log_level="info")

    elif args.mode == "summary":
        asyncio.run(show_summary(args.year or datetime.now().year))

    elif args.mode == "rebuild-ledger":
        if not asyncio.run(rebuild_ledger(args.fee)):
            sys.exit(1)


if __name__ == "__main__":
    main()
