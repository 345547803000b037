"""
Application configuration models and helpers.

Centralizes settings management so the OAuth flow, the Graph API clients and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class InstagramSettings(BaseSettings):
    """Facebook Login application credentials and Graph API endpoints."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    app_id: str = Field(..., validation_alias="INSTAGRAM_APP_ID")
    app_secret: str = Field(..., validation_alias="INSTAGRAM_APP_SECRET", repr=False)
    redirect_uri: str = Field(..., validation_alias="INSTAGRAM_REDIRECT_URI")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ...,
        validation_alias="INSTAGRAM_SCOPES",
        description="Permissions requested on the consent dialog.",
    )
    api_version: str = Field("v21.0", validation_alias="FACEBOOK_API_VERSION")
    graph_api_url: str = Field(
        "https://graph.facebook.com", validation_alias="FACEBOOK_GRAPH_API_URL"
    )
    http_timeout: float = Field(10.0, validation_alias="GRAPH_API_TIMEOUT")

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())

    @property
    def authorize_url(self) -> str:
        return f"https://www.facebook.com/{self.api_version}/dialog/oauth"

    @property
    def token_url(self) -> str:
        return f"{self.graph_api_url}/{self.api_version}/oauth/access_token"


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL")
    state_sweep_interval_seconds: int = Field(
        300, validation_alias="OAUTH_STATE_SWEEP_INTERVAL"
    )
    default_token_ttl_seconds: int = Field(
        60 * 24 * 60 * 60,
        validation_alias="DEFAULT_TOKEN_TTL",
        description="Validity applied when the token endpoint omits expires_in.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
        repr=False,
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    success_redirect_url: str = Field(
        "/success.html",
        validation_alias="SUCCESS_REDIRECT_URL",
        description="Page the browser lands on after a completed connection.",
    )
    error_redirect_url: str = Field(
        "/error.html",
        validation_alias="ERROR_REDIRECT_URL",
        description="Page the browser lands on after a failed connection.",
    )
    frontend_static_dir: Optional[Path] = Field(
        None,
        validation_alias="FRONTEND_STATIC_DIR",
        description="Optional directory holding the static front-end pages.",
    )
    cors_allow_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        ("*",),
        validation_alias="CORS_ALLOW_ORIGINS",
        description="Origins allowed to call the API from a browser.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    instagram: InstagramSettings = Field(default_factory=InstagramSettings)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        if isinstance(value, (tuple, list)):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "InstagramSettings",
    "OAuthSettings",
    "SecuritySettings",
    "get_settings",
]
