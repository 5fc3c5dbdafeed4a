from __future__ import annotations

from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from formdesk.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_COOKIE = "sid"


class AuthNotConfigured(RuntimeError):
    """Raised when a session must be signed but no SECRET_KEY is set."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _serializer() -> URLSafeTimedSerializer:
    if not settings.SECRET_KEY:
        raise AuthNotConfigured("SECRET_KEY is not set")
    # Signed cookie for session (stateless)
    return URLSafeTimedSerializer(settings.SECRET_KEY, salt="formdesk_sid")


def sign_session(payload: dict) -> str:
    return _serializer().dumps(payload)


def verify_session(token: str, max_age_seconds: int | None = None) -> dict | None:
    if not token or not settings.SECRET_KEY:
        return None
    try:
        return _serializer().loads(token, max_age=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return None


def session_user_id(token: str | None) -> int | None:
    payload = verify_session(token) if token else None
    if not payload or "user_id" not in payload:
        return None
    try:
        return int(payload["user_id"])
    except (TypeError, ValueError):
        return None
