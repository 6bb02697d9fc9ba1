"""비동기 DB 연결 및 트랜잭션 관리. SQLAlchemy 2.0 + asyncpg."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)


class _DbHolder:
    engine: AsyncEngine | None = None
    async_session_maker: async_sessionmaker[AsyncSession] | None = None


_db_holder = _DbHolder()


def _async_database_url(url: str) -> str:
    """스킴을 asyncpg 드라이버로 변환. SQLAlchemy make_url 사용."""
    return str(make_url(url.strip()).set(drivername="postgresql+asyncpg"))


def get_engine() -> AsyncEngine | None:
    return _db_holder.engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession] | None:
    """현재 세션 팩토리. init_db() 전이면 None."""
    return _db_holder.async_session_maker


def init_db() -> None:
    """DATABASE_URL이 있으면 엔진·세션 팩토리 초기화."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not set. DB features disabled.")
        return

    _db_holder.engine = create_async_engine(
        _async_database_url(settings.database_url),
        echo=False,
        pool_pre_ping=True,
    )
    _db_holder.async_session_maker = async_sessionmaker(
        _db_holder.engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def verify_db_connection() -> None:
    """
    부팅 시 DB 연결 검증. 설정된 횟수만큼 재시도 후 실패하면 Sentry 보고 + RuntimeError.
    컨테이너 기동 순서상 DB가 늦게 뜨는 경우 대비.
    """
    maker = get_async_session_maker()
    if not _db_holder.engine or not maker:
        return

    last_exc: Exception | None = None
    retries = max(1, settings.db_connect_retries)
    interval = max(0.5, settings.db_connect_retry_interval_sec)

    for attempt in range(1, retries + 1):
        try:
            async with maker() as session:
                await session.execute(text("SELECT 1"))
            return
        except Exception as exc:
            last_exc = exc
            if attempt < retries:
                logger.warning(
                    "Database connection attempt %d/%d failed: %s. Retrying in %.1fs...",
                    attempt,
                    retries,
                    exc,
                    interval,
                )
                await asyncio.sleep(interval)

    if settings.sentry_dsn:
        import sentry_sdk

        with sentry_sdk.new_scope() as scope:
            scope.set_tag("context", "database_connection_check")
            scope.set_context("database", {"retries": retries})
            sentry_sdk.capture_exception(last_exc)

    logger.critical(
        "Database connection failed after %d attempts: %s. Aborting startup.",
        retries,
        last_exc,
        exc_info=True,
    )
    raise RuntimeError(
        "Database connection failed after %d attempts: %s" % (retries, last_exc)
    ) from last_exc


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 트랜잭션. 성공 시 commit, 예외 시 rollback 후 재전파. 세션은 항상 close."""
    maker = get_async_session_maker()
    if not maker:
        raise RuntimeError("Database not initialized. Set DATABASE_URL.")

    session = maker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
