# Pydantic schemas
from app.schemas.auth import OAuthInfo, OAuthPayload
from app.schemas.user import UserCreate, UserResponse, full_messages

__all__ = [
    "OAuthInfo",
    "OAuthPayload",
    "UserCreate",
    "UserResponse",
    "full_messages",
]
