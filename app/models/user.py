"""User 모델. OAuth 로그인(provider, uid)으로 식별되는 계정."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class User(Base):
    """유저. (provider, uid) 쌍은 최대 한 건. 이메일은 소문자로 저장하며 전역 유니크."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("provider", "uid", name="uq_user_provider_uid"),
        Index("ix_users_email", "email", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    uid: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # OAuth 전용 계정도 스키마상 필수. 생성 시 랜덤 토큰의 bcrypt 해시만 저장.
    encrypted_password: Mapped[str] = mapped_column(String(128), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        # 로그에 찍히므로 encrypted_password는 제외.
        return (
            f"<User id={self.id!r} provider={self.provider!r} uid={self.uid!r} "
            f"email={self.email!r} full_name={self.full_name!r}>"
        )
