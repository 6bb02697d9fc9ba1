"""SQLAlchemy Declarative Base. Alembic target_metadata도 여기서 가져간다."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """공통 베이스 클래스."""

    pass
