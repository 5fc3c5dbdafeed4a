from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from environment variables (.env)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "FormDesk"
    ENV: str = "dev"

    # STORAGE
    DATABASE_URL: str = "sqlite:///./formdesk.db"

    # SECURITY
    SECRET_KEY: str = ""
    COOKIE_SECURE: bool = False   # set True behind HTTPS
    COOKIE_SAMESITE: str = "lax"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 7  # signature lifetime of the sid cookie
    SESSION_LIFETIME_CAP_SECONDS: int = 60 * 60 * 5  # hard ceiling on any signed-in session

    # CORS
    CORS_ALLOW_ORIGINS: str = "*"  # "*" or "https://a.com,https://b.com"
    CORS_ALLOW_CREDENTIALS: bool = False

    # CACHE / PUBSUB ("" disables redis)
    REDIS_URL: str = "redis://127.0.0.1:6379/0"
    EDITOR_DRAFT_TTL_SECONDS: int = 60 * 60 * 2

    # DEV BOOTSTRAP
    AUTO_CREATE_DEMO_USER: bool = False
    DEMO_USER_EMAIL: str = "demo@example.com"
    DEMO_USER_PASSWORD: str = "demo123"
    DEMO_USER_DISPLAY_NAME: str = "Demo Organizer"

    def cors_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if not s or s == "*":
            return ["*"]
        return [x.strip() for x in s.split(",") if x.strip()]

    def auth_configured(self) -> bool:
        return bool((self.DATABASE_URL or "").strip()) and bool((self.SECRET_KEY or "").strip())


settings = Settings()
