"""OAuth 콜백 페이로드 스키마. 토큰 교환·서명 검증이 끝난 뒤의 프로필 데이터만 다룬다."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError


class OAuthInfo(BaseModel):
    """프로바이더 프로필 클레임. 값은 가공 없이 그대로 복사된다."""

    email: str | None = None
    name: str | None = None
    image: str | None = None


class OAuthPayload(BaseModel):
    """
    인증 미들웨어가 넘겨주는 콜백 페이로드.
    provider는 공백 제거. uid는 프로바이더가 준 값 그대로 보존하되 공백뿐이면 ValidationError(조회 키이므로 Fail-fast).
    credentials/extra 등 알 수 없는 필드는 무시.
    """

    model_config = ConfigDict(extra="ignore")

    provider: str = Field(..., min_length=1, max_length=32)
    uid: str = Field(..., min_length=1, max_length=256)
    info: OAuthInfo = Field(default_factory=OAuthInfo)

    @field_validator("provider", mode="before")
    @classmethod
    def _strip_provider(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("uid")
    @classmethod
    def _uid_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("blank", "uid can't be blank")
        return value

    @classmethod
    def from_google_userinfo(
        cls, provider: str, userinfo: Mapping[str, Any]
    ) -> "OAuthPayload":
        """OpenID userinfo(sub, email, name, picture) → 페이로드. sub 누락 시 ValidationError."""
        sub = userinfo.get("sub")
        return cls.model_validate(
            {
                "provider": provider,
                "uid": str(sub) if sub is not None else "",
                "info": {
                    "email": userinfo.get("email"),
                    "name": userinfo.get("name"),
                    "image": userinfo.get("picture"),
                },
            }
        )
