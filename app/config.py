from typing import List
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ── Known insecure default keys (must never be used in production) ──
_INSECURE_KEYS = {
    "change_this",
    "change_this_to_a_secure_random_string",
    "secret",
}


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    APP_NAME: str = "Release Tracker"
    APP_ENV: str = "development"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "change_this"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8  # 8 days
    ALGORITHM: str = "HS256"

    # Writes without a bearer token are rejected when enabled
    AUTH_REQUIRED: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: str = ""

    # Logging (empty level: DEBUG in development, INFO elsewhere)
    LOG_LEVEL: str = ""
    LOG_JSON: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./releases.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    SLOW_QUERY_THRESHOLD_MS: int = 500

    # Release catalogue
    RELEASE_ENVIRONMENTS: str = "PROD,UAT,UAT2,UAT3,UAT4,UAT5"
    RELEASE_PLATFORMS: str = "iOS,Android GMS,Android HMS"
    RELEASE_CONCEPTS: str = (
        "All Concepts,lifestyle,babyshop,splash,shoemart,centrepoint,"
        "shoexpress,mothercare,homecentre,homebox,max"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_security(self) -> "Settings":
        """Block startup if the token secret is insecure in production / staging."""
        if self.APP_ENV in ("production", "staging"):
            if self.SECRET_KEY in _INSECURE_KEYS or len(self.SECRET_KEY) < 32:
                raise ValueError(
                    f"SECRET_KEY is insecure ('{self.SECRET_KEY[:8]}…'). "
                    "Set a strong random key (≥ 32 chars) in .env or environment. "
                    f"Hint: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
                )
        return self

    @property
    def environments(self) -> List[str]:
        return _split_csv(self.RELEASE_ENVIRONMENTS)

    @property
    def platforms(self) -> List[str]:
        return _split_csv(self.RELEASE_PLATFORMS)

    @property
    def concepts(self) -> List[str]:
        return _split_csv(self.RELEASE_CONCEPTS)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_staging(self) -> bool:
        return self.APP_ENV == "staging"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

settings = Settings()
