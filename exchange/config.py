"""
Application configuration - environment-driven settings via pydantic-settings.

Every setting has a default that works for local demos; override with
VIDEX_* environment variables or a .env file.

Retry defaults match the broker client the exchange was first deployed
with: 100 ms initial backoff, 5 retries.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


class Settings(BaseSettings):
    """Exchange settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VIDEX_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Directory fixtures
    data_dir: Optional[Path] = None

    # Broker
    notification_topic: str = "notifications.email"
    consumer_group: str = "videx-email-consumer-group"
    consumer_batch_size: int = Field(default=10, ge=1)
    consumer_poll_timeout: float = Field(default=0.5, gt=0)

    # Publisher
    publisher_max_retries: int = Field(default=5, ge=0)
    publisher_initial_backoff: float = Field(default=0.1, ge=0)
    publisher_close_timeout: float = Field(default=5.0, gt=0)

    # Delivery
    email_from_address: str = "noreply@videx.local"
    email_fail_rate: float = Field(default=0.0, ge=0.0, le=1.0)

    # Observability
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for CLI and server entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
