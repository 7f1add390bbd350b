from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", case_sensitive=True, extra="ignore", frozen=True
    )

    # Application
    APP_NAME: str = "OAuthLogin"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "OAuth 2.0 authorization-code login with local account resolution"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # OAuth provider endpoints and client credentials
    OAUTHLOGIN_AUTH_URL: str | None = None
    OAUTHLOGIN_TOKEN_URL: str | None = None
    OAUTHLOGIN_USERINFO_URL: str | None = None
    OAUTHLOGIN_CLIENT_ID: str | None = None
    OAUTHLOGIN_CLIENT_SECRET: str | None = None
    OAUTHLOGIN_REDIRECT_URI: str | None = None
    OAUTHLOGIN_SCOPE: str = "openid email profile"

    # Account policy
    OAUTHLOGIN_ALLOWED_DOMAINS: str | list[str] = Field(default_factory=list)
    OAUTHLOGIN_AUTO_CREATE: bool = True

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./oauthlogin.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50

    # Session Management
    SESSION_COOKIE_NAME: str = "oauthlogin_session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_TIMEOUT_MINUTES: int = 60

    # CORS
    CORS_ORIGINS: str | list[str] = ["http://localhost:3000", "http://localhost:8000"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: str | list[str] = ["*"]
    CORS_ALLOW_HEADERS: str | list[str] = ["*"]

    @field_validator("CORS_ORIGINS", "OAUTHLOGIN_ALLOWED_DOMAINS", mode="before")
    @classmethod
    def parse_json_or_csv(cls, v: Any) -> Any:
        if isinstance(v, str):
            if v.startswith("[") and v.endswith("]"):
                try:
                    import json

                    return json.loads(v)
                except ValueError:
                    pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", mode="before")
    @classmethod
    def parse_lists(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def is_configured(self) -> bool:
        """True when every endpoint and credential needed to start a login is set."""
        return all(
            (
                self.OAUTHLOGIN_AUTH_URL,
                self.OAUTHLOGIN_TOKEN_URL,
                self.OAUTHLOGIN_USERINFO_URL,
                self.OAUTHLOGIN_CLIENT_ID,
                self.OAUTHLOGIN_CLIENT_SECRET,
                self.OAUTHLOGIN_REDIRECT_URI,
            )
        )

    @property
    def allowed_domains(self) -> tuple[str, ...]:
        domains = self.OAUTHLOGIN_ALLOWED_DOMAINS
        if isinstance(domains, str):
            domains = [domains] if domains else []
        return tuple(d.strip().lower() for d in domains if d.strip())

    @property
    def session_ttl_seconds(self) -> int:
        return self.SESSION_TIMEOUT_MINUTES * 60


# Global settings instance
settings = Settings()
