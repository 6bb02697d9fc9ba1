"""Pytest fixtures. 테스트 시 DB·구글 호출 없이 실행 가능하도록 환경 조정."""

import os
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

# CI에서 DATABASE_URL이 주입되면 그대로 사용. 로컬에서 비어 있으면 DB 없이 부팅 가능하도록 빈 문자열.
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = ""
# Settings Fail-fast 대비: 테스트 시 필수 env 설정
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-google-client-secret")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-for-pytest")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from app.repositories.user_store import InMemoryUserStore  # noqa: E402
from app.schemas.auth import OAuthPayload  # noqa: E402


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def make_payload():
    """OAuthPayload 팩토리. 기본값은 정상 구글 프로필."""

    def _make(
        uid: str = "123",
        email: str | None = "a@b.com",
        name: str | None = "Ann",
        image: str | None = "http://x/y.png",
        provider: str = "google_oauth2",
    ) -> OAuthPayload:
        return OAuthPayload.model_validate(
            {
                "provider": provider,
                "uid": uid,
                "info": {"email": email, "name": name, "image": image},
            }
        )

    return _make


@pytest.fixture
def client() -> Iterator[TestClient]:
    """FastAPI TestClient. lifespan 미실행(DB 미초기화) 상태로 라우트 테스트."""
    from app.main import app

    yield TestClient(app)
    app.dependency_overrides.clear()
