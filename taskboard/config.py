"""Taskboard configuration settings."""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SECRET_KEY = "dev-secret-key-change-me"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True)

    # Database
    DATABASE_URL: str = "sqlite:///./taskboard.db"

    # JWT
    JWT_SECRET_KEY: str = Field(default=DEV_SECRET_KEY)
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7

    # Application
    APP_NAME: str = "Taskboard API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"
    FRONTEND_URL: str = ""

    # Limits
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    SEARCH_LIMIT: int = 100

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5001

    @property
    def cors_origins_list(self) -> List[str]:
        """Return the configured CORS origins plus FRONTEND_URL as a sanitized list."""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        if self.FRONTEND_URL.strip() and self.FRONTEND_URL.strip() not in origins:
            origins.append(self.FRONTEND_URL.strip())
        return origins

    def insecure_defaults(self) -> List[str]:
        warnings = []
        if self.JWT_SECRET_KEY == DEV_SECRET_KEY:
            warnings.append("JWT_SECRET_KEY is the development default; set a real secret")
        if "*" in self.cors_origins_list:
            warnings.append("CORS_ORIGINS allows any origin")
        return warnings


settings = Settings()
