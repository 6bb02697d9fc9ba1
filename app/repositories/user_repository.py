"""User Repository. DB 쿼리만 수행."""

from datetime import UTC, datetime

from sqlalchemy import exists, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class DuplicateIdentityError(Exception):
    """(provider, uid)가 이미 존재해 INSERT가 거부됨. 동시 첫 로그인 경쟁에서 진 쪽."""

    def __init__(self, provider: str, uid: str) -> None:
        super().__init__(f"User already exists for provider={provider} uid={uid}")
        self.provider = provider
        self.uid = uid


async def get_by_provider_uid(
    session: AsyncSession, provider: str, uid: str
) -> User | None:
    """provider + uid로 유저 조회."""
    result = await session.execute(
        select(User).where(
            User.provider == provider,
            User.uid == uid,
        )
    )
    return result.scalars().one_or_none()


async def email_exists(session: AsyncSession, email: str) -> bool:
    """대소문자 무시 이메일 중복 여부."""
    result = await session.execute(
        select(exists().where(func.lower(User.email) == email.strip().lower()))
    )
    return bool(result.scalar())


async def insert_user(session: AsyncSession, user: User) -> User:
    """
    INSERT ... ON CONFLICT (provider, uid) DO NOTHING RETURNING id.
    충돌로 행이 반환되지 않으면 DuplicateIdentityError. 기존 행은 절대 수정하지 않음.
    """
    now = datetime.now(UTC)
    stmt = (
        pg_insert(User)
        .values(
            provider=user.provider,
            uid=user.uid,
            email=user.email,
            full_name=user.full_name,
            avatar_url=user.avatar_url,
            encrypted_password=user.encrypted_password,
            created_at=now,
            updated_at=now,
        )
        .on_conflict_do_nothing(constraint="uq_user_provider_uid")
        .returning(User.id)
    )
    result = await session.execute(stmt)
    user_id = result.scalars().one_or_none()
    if user_id is None:
        raise DuplicateIdentityError(user.provider, user.uid)
    await session.flush()
    created = await session.get(User, user_id)
    if created is None:
        raise RuntimeError("User not found after insert")
    return created
