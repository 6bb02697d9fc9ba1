"""Health check 엔드포인트."""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from app.core.database import get_async_session_maker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_db() -> str:
    """DB 연결 상태. SELECT 1 실행. 'ok' 또는 'error'. DB 미초기화 시 'error'."""
    maker = get_async_session_maker()
    if not maker:
        return "error"
    try:
        async with maker() as session:
            await session.execute(text("SELECT 1"))
        return "ok"
    except Exception as exc:
        logger.warning("Health check DB ping failed: %s", exc)
        return "error"


@router.get("/health")
async def get_health() -> dict[str, str]:
    """헬스 체크. status: ok | degraded."""
    db_status = await _check_db()
    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
    }
