"""Authlib OAuth 레지스트리. 토큰 교환·id_token 서명 검증·state(CSRF) 검사는 Authlib이 담당."""

from authlib.integrations.starlette_client import OAuth

from app.core.config import settings

GOOGLE_PROVIDER = "google_oauth2"
GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"

oauth = OAuth()
oauth.register(
    name=GOOGLE_PROVIDER,
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret.get_secret_value(),
    server_metadata_url=GOOGLE_DISCOVERY_URL,
    client_kwargs={"scope": "openid email profile"},
)
