"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Event Admission"
    debug: bool = False

    # Session tokens issued by the identity provider
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./event_admission.db"

    # Credentials shown at the checkpoint
    credential_signing_key: str = ""  # Empty keeps the plain base64 format
    accept_unsigned_credentials: bool = True

    # Check-in
    checkin_dedupe_window_seconds: int = 0  # 0 accepts repeat scans


settings = Settings()
