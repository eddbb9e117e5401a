"""
Configuration management for the Auth Service
"""
from typing import List, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Auth Service configuration loaded from environment variables"""

    # Token signing secrets (access and refresh must differ)
    JWT_ACCESS_SECRET: str = "change-this-access-secret-in-prod-0001"
    JWT_REFRESH_SECRET: str = "change-this-refresh-secret-in-prod-0002"

    # RabbitMQ Configuration
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASS: str = "guest"
    RABBITMQ_HOST: str = "localhost:5672"
    RABBITMQ_AUTH_QUEUE: str = "auth_queue"
    RABBITMQ_USER_QUEUE: str = "user_queue"
    BROKER_URL: Optional[str] = None

    # Request/acknowledge behaviour
    RPC_TIMEOUT_SECONDS: float = 10.0
    PREFETCH_COUNT: int = 1
    NACK_REQUEUE: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/app/logs"

    # CORS Configuration (HTTP gateway)
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_distinct_secrets(self) -> "Settings":
        if not self.JWT_ACCESS_SECRET or not self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set")
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    @property
    def broker_url(self) -> str:
        """AMQP url built from the RabbitMQ settings unless BROKER_URL overrides it."""
        if self.BROKER_URL:
            return self.BROKER_URL
        return f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASS}@{self.RABBITMQ_HOST}//"


def get_settings() -> Settings:
    return Settings()
