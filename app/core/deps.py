"""FastAPI 의존성. OAuth 클라이언트·UserStore 주입. 테스트는 app.dependency_overrides로 교체."""

from collections.abc import AsyncGenerator
from typing import Any

from app.core.database import transaction
from app.core.oauth import GOOGLE_PROVIDER, oauth
from app.repositories.user_store import SqlAlchemyUserStore, UserStore


def get_google_oauth_client() -> Any:
    """레지스트리에 등록된 google_oauth2 Authlib 클라이언트(싱글톤)."""
    return oauth.create_client(GOOGLE_PROVIDER)


async def get_user_store() -> AsyncGenerator[UserStore, None]:
    """요청 단위 트랜잭션에 묶인 SqlAlchemyUserStore. 정상 종료 시 commit, 예외 시 rollback."""
    async with transaction() as session:
        yield SqlAlchemyUserStore(session)
