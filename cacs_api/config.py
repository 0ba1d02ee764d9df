# cacs_api/config.py
from fastapi import Request
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

DEFAULT_ORIGINS = "https://cacsfinaccservices.com,https://www.cacsfinaccservices.com"
DEV_ORIGINS = ["http://localhost:9002", "http://localhost:3000"]


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"

    DATABASE_URL: Optional[str] = None

    # Token signing; there is deliberately no default secret
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Outbound mail
    ADMIN_EMAIL: Optional[str] = None
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_FROM: Optional[str] = None
    EMAIL_USE_TLS: bool = True

    # Background notification queue
    NOTIFY_QUEUE_SIZE: int = 100
    NOTIFY_MAX_RETRIES: int = 3
    NOTIFY_RETRY_DELAY: float = 2.0
    NOTIFY_WORKERS: int = 1

    # HTTP
    FRONTEND_URL: Optional[str] = None
    ALLOWED_ORIGINS: str = DEFAULT_ORIGINS
    PORT: int = 5000
    MAX_BODY_SIZE: int = 10 * 1024 * 1024

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or "sqlite:///./cacs.db"

    @property
    def mail_sender(self) -> Optional[str]:
        return self.EMAIL_FROM or self.EMAIL_USER

    @property
    def allowed_origins(self) -> List[str]:
        origins = [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]
        origins.extend(DEV_ORIGINS)
        if self.FRONTEND_URL:
            origins.append(self.FRONTEND_URL)
        return origins

    def missing_production_vars(self) -> List[str]:
        # Variables that must be set explicitly before serving production traffic
        return [name for name in ("DATABASE_URL", "JWT_SECRET") if not getattr(self, name)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
