"""Auth API. 구글 OAuth 리다이렉트 + 콜백에서 User 조회/생성 후 세션 로그인."""

import logging
from typing import Any

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from app.core.config import settings
from app.core.deps import get_google_oauth_client, get_user_store
from app.core.oauth import GOOGLE_PROVIDER
from app.repositories.user_store import UserStore
from app.schemas.auth import OAuthPayload
from app.schemas.user import UserResponse
from app.services.identity_service import resolve_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/auth", tags=["auth"])

SESSION_USER_KEY = "user_id"


@router.get(f"/{GOOGLE_PROVIDER}")
async def get_google_authorize(
    request: Request,
    client: Any = Depends(get_google_oauth_client),
):
    """구글 로그인 페이지로 리다이렉트. state는 Authlib이 세션에 보관."""
    redirect_uri = settings.google_redirect_uri or str(
        request.url_for("google_oauth2_callback")
    )
    return await client.authorize_redirect(request, redirect_uri)


@router.get(
    f"/{GOOGLE_PROVIDER}/callback",
    response_model=UserResponse,
    name="google_oauth2_callback",
)
async def get_google_callback(
    request: Request,
    client: Any = Depends(get_google_oauth_client),
    store: UserStore = Depends(get_user_store),
) -> UserResponse:
    """
    구글 콜백. Authlib이 code 교환·id_token 검증을 마친 userinfo로 User 조회/생성.
    저장된 User면 세션에 user_id 기록 후 반환. 검증 실패 시 422 + 에러 목록.
    """
    try:
        token = await client.authorize_access_token(request)
    except OAuthError as e:
        logger.warning("Google OAuth callback failed: %s", e)
        raise HTTPException(status_code=401, detail="Google authentication failed") from e

    userinfo = token.get("userinfo") or await client.userinfo(token=token)
    try:
        payload = OAuthPayload.from_google_userinfo(GOOGLE_PROVIDER, userinfo)
    except ValidationError as e:
        logger.warning("Unreadable Google profile: %s", e)
        raise HTTPException(status_code=400, detail="Unable to read Google profile") from e

    resolution = await resolve_identity(payload, store)
    if not resolution.persisted:
        raise HTTPException(status_code=422, detail=resolution.errors)

    request.session[SESSION_USER_KEY] = resolution.user.id
    return UserResponse.model_validate(resolution.user)
