"""환경 변수 기반 설정. pydantic-settings 사용."""

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """앱 설정. 환경변수에서 로드. 시크릿은 SecretStr로 마스킹, 필수 시크릿은 기본값 없음(Fail-fast)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # 모니터링 (선택)
    sentry_dsn: SecretStr | None = None
    environment: str = "development"  # Sentry/로깅용. production, staging, development 등.

    # DB
    database_url: str | None = None
    db_connect_retries: int = Field(5, ge=1, le=20)  # 연결 실패 시 재시도 횟수.
    db_connect_retry_interval_sec: float = Field(2.0, ge=0.5, le=60.0)  # 재시도 간격(초).

    # Google OAuth (필수: 기본값 없음 → 부팅 시점 Fail-fast)
    google_client_id: str
    google_client_secret: SecretStr
    # 콜백 URL. 비어 있으면 요청 URL 기준으로 라우트 경로에서 생성.
    google_redirect_uri: str | None = None

    # 세션 쿠키 서명 키(OAuth state 보관 + 로그인 유저 id). 필수.
    session_secret: SecretStr
    session_max_age_seconds: int = Field(14 * 24 * 3600, ge=60)

    # OAuth 전용 계정의 비밀번호 토큰 길이. 20자 미만 금지.
    password_token_length: int = Field(20, ge=20, le=128)
    # bcrypt cost. 테스트에서는 4로 낮춰 속도 확보.
    bcrypt_rounds: int = Field(12, ge=4, le=31)

    # CORS
    allowed_origins: str = ""

    @model_validator(mode="after")
    def fail_fast_production(self: "Settings") -> "Settings":
        """프로덕션 환경 시 필수 변수 누락이면 부팅 거부(Fail-Fast)."""
        if (self.environment or "").strip().lower() != "production":
            return self
        missing: list[str] = []
        if not (self.database_url or "").strip():
            missing.append("DATABASE_URL")
        if not (self.google_client_id or "").strip():
            missing.append("GOOGLE_CLIENT_ID")
        if not (self.google_client_secret.get_secret_value() or "").strip():
            missing.append("GOOGLE_CLIENT_SECRET")
        if not (self.session_secret.get_secret_value() or "").strip():
            missing.append("SESSION_SECRET")
        if missing:
            raise ValueError(
                f"Production environment requires these variables to be set: {', '.join(missing)}. "
                "Set them in Secret Manager or environment before boot."
            )
        return self


settings = Settings()
