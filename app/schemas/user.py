"""User 관련 Pydantic 스키마."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator
from pydantic_core import PydanticCustomError

# 형식 검사는 느슨하게: 공백 없는 local@domain.
EMAIL_REGEXP = re.compile(r"\A[^@\s]+@[^@\s]+\Z")
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
# users 테이블 컬럼 길이와 일치해야 함(app/models/user.py).
EMAIL_MAX_LENGTH = 256
FULL_NAME_MAX_LENGTH = 256
AVATAR_URL_MAX_LENGTH = 2048


def _too_long(maximum: int) -> PydanticCustomError:
    return PydanticCustomError(
        "too_long",
        "is too long (maximum is {count} characters)",
        {"count": maximum},
    )


class UserCreate(BaseModel):
    """
    신규 User 생성 전 스키마 검증용 값 객체.
    실패 메시지는 full_messages()로 "Email is invalid" 형태의 문장 목록으로 변환한다.
    """

    provider: str
    uid: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    password: SecretStr

    @field_validator("provider", "uid")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("blank", "can't be blank")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("blank", "can't be blank")
        if not EMAIL_REGEXP.match(value):
            raise PydanticCustomError("invalid", "is invalid")
        if len(value) > EMAIL_MAX_LENGTH:
            raise _too_long(EMAIL_MAX_LENGTH)
        return value

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, value: str | None) -> str | None:
        if value is not None and len(value) > FULL_NAME_MAX_LENGTH:
            raise _too_long(FULL_NAME_MAX_LENGTH)
        return value

    @field_validator("avatar_url")
    @classmethod
    def _check_avatar_url(cls, value: str | None) -> str | None:
        if value is not None and len(value) > AVATAR_URL_MAX_LENGTH:
            raise _too_long(AVATAR_URL_MAX_LENGTH)
        return value

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: SecretStr) -> SecretStr:
        length = len(value.get_secret_value())
        if length == 0:
            raise PydanticCustomError("blank", "can't be blank")
        if length < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "too_short",
                "is too short (minimum is {count} characters)",
                {"count": PASSWORD_MIN_LENGTH},
            )
        if length > PASSWORD_MAX_LENGTH:
            raise _too_long(PASSWORD_MAX_LENGTH)
        return value


def full_messages(exc: ValidationError) -> list[str]:
    """ValidationError → ["Email is invalid", ...]. 필드명은 사람이 읽는 형태로."""
    messages: list[str] = []
    for error in exc.errors():
        loc = error.get("loc") or ("base",)
        attribute = str(loc[0]).replace("_", " ").capitalize()
        if error["type"] == "missing":
            text = "can't be blank"
        else:
            msg = error["msg"]
            text = msg[:1].lower() + msg[1:]
        messages.append(f"{attribute} {text}")
    return messages


class UserResponse(BaseModel):
    """User 응답. encrypted_password는 노출하지 않음."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    provider: str
    uid: str
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime
