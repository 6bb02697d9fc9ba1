"""Identity Service. OAuth 콜백 페이로드 → (provider, uid)로 User 조회, 없으면 생성."""

import logging
import secrets
from dataclasses import dataclass, field

import bcrypt
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.models.user import User
from app.repositories.user_repository import DuplicateIdentityError
from app.repositories.user_store import UserStore
from app.schemas.auth import OAuthPayload
from app.schemas.user import UserCreate, full_messages

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "Email has already been taken"

# 헷갈리는 문자(l, I, O, 0) 치환 테이블.
_FRIENDLY_TRANSLATION = str.maketrans("lIO0", "sxyz")


@dataclass
class IdentityResolution:
    """
    resolve_identity 결과. 검증 실패 시 user는 저장되지 않은(id None) 상태로 errors와 함께 반환.
    호출 측은 persisted를 확인한 뒤 세션을 만들어야 한다.
    """

    user: User
    created: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return not self.errors and self.user.id is not None


def friendly_token(length: int | None = None) -> str:
    """URL-safe 랜덤 토큰. 사용자 입력과 무관, 최소 20자."""
    length = max(20, length or settings.password_token_length)
    token = secrets.token_urlsafe(length).translate(_FRIENDLY_TRANSLATION)
    return token[:length]


def _hash_password_sync(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode("utf-8")


async def hash_password(password: str) -> str:
    """bcrypt는 CPU 바운드. 이벤트 루프를 막지 않도록 스레드풀에서 실행."""
    return await run_in_threadpool(_hash_password_sync, password)


def build_user(payload: OAuthPayload, password: str) -> tuple[User, list[str]]:
    """
    페이로드로 새 User(미저장) 구성 + UserCreate 스키마 검증.
    실패해도 예외 없이 (원본 값이 담긴 User, 에러 목록) 반환. 비밀번호 해시는 호출 측에서 채운다.
    """
    attrs = {
        "provider": payload.provider,
        "uid": payload.uid,
        "email": payload.info.email,
        "full_name": payload.info.name,
        "avatar_url": payload.info.image,
        "password": password,
    }
    try:
        data = UserCreate.model_validate(attrs)
    except ValidationError as e:
        user = User(
            provider=payload.provider,
            uid=payload.uid,
            email=payload.info.email or "",
            full_name=payload.info.name,
            avatar_url=payload.info.image,
            encrypted_password="",
        )
        return user, full_messages(e)

    user = User(
        provider=data.provider,
        uid=data.uid,
        email=data.email,
        full_name=data.full_name,
        avatar_url=data.avatar_url,
        encrypted_password="",
    )
    return user, []


async def _refetch_after_conflict(store: UserStore, payload: OAuthPayload) -> User | None:
    """동시 첫 로그인에서 진 경우 승자가 만든 레코드 재조회."""
    return await store.find_by_provider_uid(payload.provider, payload.uid)


async def resolve_identity(payload: OAuthPayload, store: UserStore) -> IdentityResolution:
    """
    (provider, uid)로 User 조회 → 있으면 그대로 반환(INSERT 없음).
    없으면 프로필로 생성·검증·저장. 성공 시 info 로그, 검증 실패 시 error 로그 후 미저장 User 반환.
    (provider, uid) 유니크 충돌 시 한 번 재조회해 기존 레코드 반환. 재조회도 실패하면 예외 전파.
    """
    existing = await store.find_by_provider_uid(payload.provider, payload.uid)
    if existing is not None:
        return IdentityResolution(user=existing)

    password = friendly_token()
    user, errors = build_user(payload, password)
    if not errors and await store.email_taken(user.email):
        # 같은 (provider, uid)를 먼저 저장한 동시 요청이 있으면 그 레코드가 답이다.
        winner = await _refetch_after_conflict(store, payload)
        if winner is not None:
            return IdentityResolution(user=winner)
        errors.append(EMAIL_TAKEN_MESSAGE)

    if errors:
        logger.error("User save failed: %s", errors)
        return IdentityResolution(user=user, errors=errors)

    user.encrypted_password = await hash_password(password)
    try:
        saved = await store.insert(user)
    except DuplicateIdentityError as e:
        logger.warning("Concurrent first login detected, retrying lookup: %s", e)
        winner = await _refetch_after_conflict(store, payload)
        if winner is None:
            raise
        return IdentityResolution(user=winner)

    logger.info("User saved successfully: %r", saved)
    return IdentityResolution(user=saved, created=True)
