import os
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(val: str | None) -> list[str]:
    return [v.strip() for v in (val or "").split(",") if v.strip()]


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Referral API"
    LOG_LEVEL: str = "INFO"

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # DB (DB_URL is accepted for older deployments)
    DATABASE_URL: str = Field(..., validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))
    DATABASE_SSL_REQUIRED: bool = False
    DATABASE_ECHO: bool = False

    # Referrals
    REFERRAL_BASE_URL: str = "http://localhost:3000"
    ID_GENERATION_ATTEMPTS: int = 5

    # CORS
    ALLOW_ORIGINS: list[str] = ["*"]  # override via ALLOWED_ORIGINS (CSV)
    ALLOW_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
    ALLOW_HEADERS: list[str] = ["*"]
    ALLOW_CREDENTIALS: bool = False

    # Load .env file
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ---------- Helpers ----------

    def referral_link(self, userid: str) -> str:
        return f"{self.REFERRAL_BASE_URL.rstrip('/')}/referral/{userid}"


def normalize_database_url(url: str) -> str:
    # Hosted Postgres hands out postgres:// URLs; SQLAlchemy wants an explicit dialect
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


def build_settings() -> Settings:
    s = Settings()

    s.DATABASE_URL = normalize_database_url(s.DATABASE_URL)

    # Load CORS overrides
    env_origins = _split_csv(os.getenv("ALLOWED_ORIGINS"))
    if env_origins:
        s.ALLOW_ORIGINS = env_origins

    return s


settings = build_settings()
