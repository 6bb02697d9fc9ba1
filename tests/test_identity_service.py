"""Identity Service 단위 테스트. InMemoryUserStore 주입, DB 없이 검증."""

import asyncio
import logging
import threading

import bcrypt
import pytest
from pydantic import ValidationError

from app.models.user import User
from app.repositories.user_repository import DuplicateIdentityError
from app.repositories.user_store import InMemoryUserStore
from app.schemas.auth import OAuthPayload
from app.services import identity_service
from app.services.identity_service import (
    EMAIL_TAKEN_MESSAGE,
    friendly_token,
    resolve_identity,
)

LOGGER = "app.services.identity_service"


@pytest.mark.asyncio
async def test_resolve_creates_user_from_profile(store, make_payload, caplog) -> None:
    """신규 (provider, uid): 프로필 필드 그대로 복사해 1건 생성 + info 로그."""
    caplog.set_level(logging.INFO, logger=LOGGER)
    result = await resolve_identity(make_payload(), store)

    assert result.persisted
    assert result.created
    assert result.errors == []
    user = result.user
    assert user.id is not None
    assert (user.provider, user.uid) == ("google_oauth2", "123")
    assert user.email == "a@b.com"
    assert user.full_name == "Ann"
    assert user.avatar_url == "http://x/y.png"
    assert store.insert_count == 1
    assert any(
        r.levelno == logging.INFO and "User saved successfully" in r.getMessage()
        for r in caplog.records
    )


@pytest.mark.asyncio
async def test_resolve_twice_returns_same_record(store, make_payload) -> None:
    """같은 페이로드 두 번: 레코드 1건, 두 번째는 INSERT 없이 같은 객체 반환."""
    first = await resolve_identity(make_payload(), store)
    second = await resolve_identity(make_payload(), store)

    assert second.user is first.user
    assert second.user.id == first.user.id
    assert not second.created
    assert store.insert_count == 1
    assert [u.uid for u in store.users] == ["123"]


@pytest.mark.asyncio
async def test_existing_user_is_not_updated(store, make_payload) -> None:
    """기존 유저는 프로필이 바뀌어도 수정하지 않음."""
    first = await resolve_identity(make_payload(), store)
    second = await resolve_identity(make_payload(name="Changed", image="http://x/z.png"), store)

    assert second.user.id == first.user.id
    assert second.user.full_name == "Ann"
    assert second.user.avatar_url == "http://x/y.png"


@pytest.mark.asyncio
async def test_generated_password_is_hashed(store, make_payload) -> None:
    """encrypted_password는 bcrypt 해시. 평문 토큰은 저장하지 않음."""
    result = await resolve_identity(make_payload(), store)
    hashed = result.user.encrypted_password
    assert hashed.startswith("$2")
    assert not bcrypt.checkpw(b"a@b.com", hashed.encode("utf-8"))


def test_friendly_token_length_and_uniqueness() -> None:
    """토큰 길이 20 이상, 1000회 생성 시 중복 없음."""
    tokens = {friendly_token() for _ in range(1000)}
    assert len(tokens) == 1000
    assert all(len(t) == 20 for t in tokens)
    assert all(not set(t) & set("lIO0") for t in tokens)


def test_friendly_token_never_shorter_than_20() -> None:
    assert len(friendly_token(8)) == 20
    assert len(friendly_token(32)) == 32


@pytest.mark.asyncio
async def test_malformed_email_returns_unsaved_user(store, make_payload, caplog) -> None:
    """이메일 형식 오류: 미저장 User + 에러 목록 반환, error 로그, 스토어 변화 없음."""
    caplog.set_level(logging.INFO, logger=LOGGER)
    result = await resolve_identity(make_payload(email="not-an-email"), store)

    assert not result.persisted
    assert not result.created
    assert result.user.id is None
    assert result.user.email == "not-an-email"
    assert result.errors == ["Email is invalid"]
    assert store.users == []
    assert store.insert_count == 0
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Email is invalid" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_missing_email_is_blank_error(store, make_payload) -> None:
    result = await resolve_identity(make_payload(email=None), store)
    assert result.errors == ["Email can't be blank"]
    assert store.users == []


@pytest.mark.asyncio
async def test_email_is_normalized(store, make_payload) -> None:
    """이메일은 공백 제거 + 소문자로 저장."""
    result = await resolve_identity(make_payload(email="  Ann@Example.COM "), store)
    assert result.persisted
    assert result.user.email == "ann@example.com"


@pytest.mark.asyncio
async def test_email_taken_by_other_provider(store, make_payload) -> None:
    """다른 (provider, uid)가 같은 이메일을 쓰고 있으면 검증 실패(계정 연결 없음)."""
    await resolve_identity(make_payload(uid="123"), store)
    result = await resolve_identity(
        make_payload(provider="github", uid="999", email="A@B.com"), store
    )

    assert not result.persisted
    assert result.errors == [EMAIL_TAKEN_MESSAGE]
    assert len(store.users) == 1


def test_payload_requires_provider_and_uid() -> None:
    """provider·uid 공백은 페이로드 파싱 단계에서 거부."""
    with pytest.raises(ValidationError):
        OAuthPayload.model_validate({"provider": "google_oauth2", "uid": "  ", "info": {}})
    with pytest.raises(ValidationError):
        OAuthPayload.model_validate({"provider": "", "uid": "123"})


def test_payload_from_google_userinfo() -> None:
    payload = OAuthPayload.from_google_userinfo(
        "google_oauth2",
        {"sub": 42, "email": "a@b.com", "name": "Ann", "picture": "http://x/y.png"},
    )
    assert payload.uid == "42"
    assert payload.info.email == "a@b.com"
    assert payload.info.name == "Ann"
    assert payload.info.image == "http://x/y.png"


@pytest.mark.asyncio
async def test_concurrent_first_login_creates_one_record(store, make_payload) -> None:
    """동시 첫 로그인 2건: 레코드 1건만 생성, 진 쪽은 재조회로 같은 레코드 반환."""
    first, second = await asyncio.gather(
        resolve_identity(make_payload(), store),
        resolve_identity(make_payload(), store),
    )

    assert len(store.users) == 1
    assert store.insert_count == 1
    assert first.persisted and second.persisted
    assert first.user.id == second.user.id
    assert [first.created, second.created].count(True) == 1


class _LosingStore(InMemoryUserStore):
    """조회는 항상 miss, INSERT는 항상 충돌. 재조회도 실패하는 경우 재현."""

    async def find_by_provider_uid(self, provider, uid):
        return None

    async def insert(self, user):
        raise DuplicateIdentityError(user.provider, user.uid)


@pytest.mark.asyncio
async def test_duplicate_without_existing_record_propagates(make_payload) -> None:
    with pytest.raises(DuplicateIdentityError):
        await resolve_identity(make_payload(), _LosingStore())


@pytest.mark.asyncio
async def test_overlong_email_is_reported_not_inserted(store, make_payload) -> None:
    """컬럼 길이(256) 초과 이메일: DB 에러 대신 검증 실패로 보고."""
    result = await resolve_identity(make_payload(email="a" * 300 + "@b.com"), store)

    assert not result.persisted
    assert result.errors == ["Email is too long (maximum is 256 characters)"]
    assert store.insert_count == 0


@pytest.mark.asyncio
async def test_overlong_profile_fields_are_reported(store, make_payload) -> None:
    result = await resolve_identity(
        make_payload(name="n" * 257, image="http://x/" + "y" * 2048), store
    )

    assert not result.persisted
    assert result.errors == [
        "Full name is too long (maximum is 256 characters)",
        "Avatar url is too long (maximum is 2048 characters)",
    ]
    assert store.users == []


@pytest.mark.asyncio
async def test_password_hashing_runs_off_event_loop(store, make_payload, monkeypatch) -> None:
    """bcrypt 해시는 이벤트 루프 스레드가 아닌 워커 스레드에서 실행."""
    loop_thread = threading.get_ident()
    hashed_on: list[int] = []
    original = identity_service._hash_password_sync

    def _recording(password: str) -> str:
        hashed_on.append(threading.get_ident())
        return original(password)

    monkeypatch.setattr(identity_service, "_hash_password_sync", _recording)
    result = await resolve_identity(make_payload(), store)

    assert result.persisted
    assert len(hashed_on) == 1
    assert hashed_on[0] != loop_thread


class _EmailRaceStore(InMemoryUserStore):
    """첫 조회는 miss, 이메일은 이미 사용 중, 재조회에서 승자 레코드 반환."""

    def __init__(self, winner: User) -> None:
        super().__init__()
        self.winner = winner
        self.lookups = 0

    async def find_by_provider_uid(self, provider, uid):
        self.lookups += 1
        return None if self.lookups == 1 else self.winner

    async def email_taken(self, email):
        return True


@pytest.mark.asyncio
async def test_race_loser_seeing_taken_email_returns_winner(make_payload, caplog) -> None:
    """이메일 중복으로 보이지만 같은 (provider, uid)가 이미 저장됐으면 그 레코드 반환(에러 아님)."""
    caplog.set_level(logging.INFO, logger=LOGGER)
    winner = User(id=1, provider="google_oauth2", uid="123", email="a@b.com")
    race_store = _EmailRaceStore(winner)

    result = await resolve_identity(make_payload(), race_store)

    assert result.user is winner
    assert result.persisted
    assert not result.created
    assert result.errors == []
    assert race_store.lookups == 2
    assert race_store.insert_count == 0
    assert not any(r.levelno == logging.ERROR for r in caplog.records)


def test_payload_keeps_uid_verbatim() -> None:
    """uid는 프로바이더의 불투명 식별자라 공백 포함 그대로 보존. provider만 정리."""
    payload = OAuthPayload.model_validate(
        {"provider": " google_oauth2 ", "uid": " 123 ", "info": {}}
    )
    assert payload.provider == "google_oauth2"
    assert payload.uid == " 123 "
