"""Configuration settings for the Courier service."""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from common.constants import (
    COURIER_PORT as DEFAULT_COURIER_PORT,
    DEFAULT_GLOBAL_COOLDOWN_SECONDS,
    DEFAULT_MAX_CHUNK_BYTES,
    DEFAULT_USER_COOLDOWN_SECONDS,
)


BACKUP_FOLDER = os.environ.get("BACKUP_FOLDER", "/backups")

BACKUP_PUBLISH_ROOT = os.environ.get("BACKUP_PUBLISH_ROOT", "/srv/backup-publish")

BACKUP_PUBLIC_BASE_URL = os.environ.get("BACKUP_PUBLIC_BASE_URL", "https://localhost/backups")

BACKUP_USER_COOLDOWN_SECONDS = int(os.environ.get("BACKUP_USER_COOLDOWN_SECONDS", str(DEFAULT_USER_COOLDOWN_SECONDS)))

BACKUP_GLOBAL_COOLDOWN_SECONDS = int(os.environ.get("BACKUP_GLOBAL_COOLDOWN_SECONDS", str(DEFAULT_GLOBAL_COOLDOWN_SECONDS)))

BACKUP_MAX_CHUNK_BYTES = int(os.environ.get("BACKUP_MAX_CHUNK_BYTES", str(DEFAULT_MAX_CHUNK_BYTES)))

CHAT_WEBHOOK_URL = os.environ.get("CHAT_WEBHOOK_URL", "")

COURIER_HOST = os.environ.get("COURIER_HOST", "0.0.0.0")

COURIER_PORT = int(os.environ.get("COURIER_PORT", str(DEFAULT_COURIER_PORT)))

# 0 disables automatic expiry; publications then live until revoked
COURIER_PUBLICATION_MAX_AGE_SECONDS = int(os.environ.get("COURIER_PUBLICATION_MAX_AGE_SECONDS", "0"))

COURIER_REAPER_INTERVAL_SECONDS = int(os.environ.get("COURIER_REAPER_INTERVAL_SECONDS", "3600"))


class ConfigError(ValueError):
    """Raised when a configuration value is unusable."""
    pass


@dataclass(frozen=True)
class CourierSettings:
    """
    Resolved configuration handed to the delivery service at startup.
    """
    backup_folder: Path
    publish_root: Path
    public_base_url: str
    user_cooldown: timedelta = timedelta(seconds=DEFAULT_USER_COOLDOWN_SECONDS)
    global_cooldown: timedelta = timedelta(seconds=DEFAULT_GLOBAL_COOLDOWN_SECONDS)
    max_chunk_bytes: int = DEFAULT_MAX_CHUNK_BYTES
    chat_webhook_url: Optional[str] = None
    publication_max_age: Optional[timedelta] = None

    def __post_init__(self):
        if self.max_chunk_bytes <= 0:
            raise ConfigError(f"Maximum chunk size must be positive, got {self.max_chunk_bytes}")
        if self.user_cooldown < timedelta(0) or self.global_cooldown < timedelta(0):
            raise ConfigError("Cooldown durations must not be negative")
        if not self.public_base_url.startswith(("http://", "https://")):
            raise ConfigError(
                f"Public base URL must start with http:// or https://, got '{self.public_base_url}'"
            )


def load_settings() -> CourierSettings:
    """
    Build settings from the environment-derived module constants.

    Returns:
        Validated CourierSettings

    Raises:
        ConfigError: If any value is invalid
    """
    max_age = None
    if COURIER_PUBLICATION_MAX_AGE_SECONDS > 0:
        max_age = timedelta(seconds=COURIER_PUBLICATION_MAX_AGE_SECONDS)

    return CourierSettings(
        backup_folder=Path(BACKUP_FOLDER),
        publish_root=Path(BACKUP_PUBLISH_ROOT),
        public_base_url=BACKUP_PUBLIC_BASE_URL,
        user_cooldown=timedelta(seconds=BACKUP_USER_COOLDOWN_SECONDS),
        global_cooldown=timedelta(seconds=BACKUP_GLOBAL_COOLDOWN_SECONDS),
        max_chunk_bytes=BACKUP_MAX_CHUNK_BYTES,
        chat_webhook_url=CHAT_WEBHOOK_URL or None,
        publication_max_age=max_age,
    )
