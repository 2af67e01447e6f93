from functools import lru_cache
import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Public origin of the studio; used to build OAuth redirect URIs
    app_url: str = Field(
        "http://localhost:3000",
        validation_alias=AliasChoices("APP_URL", "BETTER_AUTH_URL", "NEXT_PUBLIC_APP_URL"),
    )

    # Cookie signing secret (legacy BETTER_AUTH_SECRET still honoured)
    auth_secret: str = Field(
        "",
        validation_alias=AliasChoices("AUTH_SECRET", "BETTER_AUTH_SECRET"),
    )
    session_cookie: str = Field("studio_session", validation_alias="SESSION_COOKIE")
    # 30 days
    session_expires_in_sec: int = Field(30 * 24 * 60 * 60, validation_alias="SESSION_EXPIRES_IN_SEC")
    # 24 hours
    session_update_age_sec: int = Field(24 * 60 * 60, validation_alias="SESSION_UPDATE_AGE_SEC")
    session_https_only: bool = Field(False, validation_alias="SESSION_HTTPS_ONLY")

    # Google OAuth (the only sign-in method)
    google_client_id: str = Field("", validation_alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field("", validation_alias="GOOGLE_CLIENT_SECRET")
    google_metadata_url: str = Field(
        "https://accounts.google.com/.well-known/openid-configuration",
        validation_alias="GOOGLE_METADATA_URL",
    )

    # External generation endpoint
    generation_api_url: str = Field(
        "http://localhost:3000/api/generate-video",
        validation_alias="GENERATION_API_URL",
    )
    # 0 disables the timeout: a hung provider keeps the run in "submitting"
    generation_timeout_sec: float = Field(0, validation_alias="GENERATION_TIMEOUT_SEC")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def _env_str(name: str, default: str = "") -> str:
    value = os.getenv(name)
    return value if value is not None and value != "" else default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


AUTH_BASE_PATH = _env_str("AUTH_BASE_PATH", "/api/auth")
SIGN_IN_PATH = _env_str("SIGN_IN_PATH", "/auth/signin")
DEFAULT_PROVIDER_ID = _env_str("DEFAULT_PROVIDER_ID", "")
MAX_REFERENCE_IMAGE_BYTES = _env_int("MAX_REFERENCE_IMAGE_BYTES", 10 * 1024 * 1024)
