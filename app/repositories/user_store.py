"""
UserStore: 서비스 레이어가 주입받는 영속성 경계.
운영은 SqlAlchemyUserStore(세션 바인딩), 테스트는 InMemoryUserStore로 교체.
"""

import asyncio
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories import user_repository
from app.repositories.user_repository import DuplicateIdentityError


class UserStore(Protocol):
    async def find_by_provider_uid(self, provider: str, uid: str) -> User | None: ...

    async def email_taken(self, email: str) -> bool: ...

    async def insert(self, user: User) -> User:
        """저장된 User 반환. (provider, uid) 충돌 시 DuplicateIdentityError."""
        ...


class SqlAlchemyUserStore:
    """AsyncSession 하나에 묶인 스토어. 트랜잭션 경계는 호출 측 transaction()이 관리."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_provider_uid(self, provider: str, uid: str) -> User | None:
        return await user_repository.get_by_provider_uid(self._session, provider, uid)

    async def email_taken(self, email: str) -> bool:
        return await user_repository.email_exists(self._session, email)

    async def insert(self, user: User) -> User:
        return await user_repository.insert_user(self._session, user)


class InMemoryUserStore:
    """
    dict 기반 스토어. DB와 같은 (provider, uid) 유니크 제약을 건다.
    각 호출마다 이벤트 루프에 양보해 동시 첫 로그인 경쟁을 재현할 수 있다.
    """

    def __init__(self) -> None:
        self._users: dict[tuple[str, str], User] = {}
        self._next_id = 1
        self.insert_count = 0

    @property
    def users(self) -> list[User]:
        return list(self._users.values())

    async def find_by_provider_uid(self, provider: str, uid: str) -> User | None:
        await asyncio.sleep(0)
        return self._users.get((provider, uid))

    async def email_taken(self, email: str) -> bool:
        await asyncio.sleep(0)
        normalized = email.strip().lower()
        return any(u.email.lower() == normalized for u in self._users.values())

    async def insert(self, user: User) -> User:
        await asyncio.sleep(0)
        key = (user.provider, user.uid)
        if key in self._users:
            raise DuplicateIdentityError(user.provider, user.uid)
        now = datetime.now(UTC)
        user.id = self._next_id
        user.created_at = now
        user.updated_at = now
        self._next_id += 1
        self._users[key] = user
        self.insert_count += 1
        return user
