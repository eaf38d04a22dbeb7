"""User-facing texts for delivery outcomes.

Every failure maps to one short message; low-level details stay in the logs.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from courier.exceptions import (
    BackupNotFoundError,
    CooldownActiveError,
    CourierError,
    EmptyBackupError,
    InvalidTokenError,
    SourceVanishedError,
    TransportError,
)
from courier.rate_limiter import REASON_GLOBAL, REASON_IN_PROGRESS

NO_BACKUP_MESSAGE = (
    "❌ No backup found. The backup folder may not exist, is not accessible, "
    "or contains no files."
)
PUBLISH_FAILED_MESSAGE = "❌ Could not publish the backup. Please try again later."
SOURCE_CHANGED_MESSAGE = "❌ The backup changed while it was being published. Please try again."
EMPTY_BACKUP_MESSAGE = "❌ The latest backup is empty and cannot be delivered."
TRANSPORT_FAILED_MESSAGE = (
    "❌ Sending the backup failed partway. Run the command again to restart the transfer "
    "from the first part."
)
IN_PROGRESS_MESSAGE = "⏳ Another backup delivery is in progress. Please try again shortly."
INVALID_TOKEN_MESSAGE = "❌ That is not a valid publication token."

RESTORE_TEMPLATE = (
    "Linux/macOS:\n"
    "cat {name}.part* > {name}\n"
    "tar -xzf {name}\n"
    "\n"
    "Windows (Command Prompt):\n"
    "copy /b {name}.part* {name}\n"
    "tar -xzf {name}"
)


def format_size_mb(size_bytes: int) -> str:
    """Size in MB (1024-based) with two decimals, e.g. '12.50 MB'."""
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_wait(remaining: timedelta) -> str:
    """
    Render a wait as hours and minutes, rounding up to the next minute.

    Examples:
        timedelta(hours=1, minutes=5) -> '1 hour and 5 minutes'
        timedelta(seconds=30) -> '0 hours and 1 minute'
    """
    total_minutes = max(math.ceil(remaining.total_seconds() / 60), 0)
    hours, minutes = divmod(total_minutes, 60)
    return f"{_plural(hours, 'hour')} and {_plural(minutes, 'minute')}"


def cooldown_message(error: CooldownActiveError, now: Optional[datetime] = None) -> str:
    if error.reason == REASON_IN_PROGRESS:
        return IN_PROGRESS_MESSAGE

    if now is None:
        now = datetime.now(timezone.utc)
    until = (now + error.retry_after).astimezone(timezone.utc)
    scope = "globally on cooldown" if error.reason == REASON_GLOBAL else "on cooldown"
    return (
        f"⏳ Backup command is {scope}. Please wait {format_wait(error.retry_after)} "
        f"(until {until:%Y-%m-%d %H:%M} UTC)."
    )


def link_ready_message(file_name: str, file_size_bytes: int, url: str) -> str:
    return (
        f"📦 Backup ready for download: **{file_name}** ({format_size_mb(file_size_bytes)})\n"
        f"🔗 Link: {url}"
    )


def chunked_header_message(file_name: str, file_size_bytes: int, total: int) -> str:
    parts = "part" if total == 1 else "parts"
    return (
        f"📦 Sending **{file_name}** ({format_size_mb(file_size_bytes)}) in {total} {parts}. "
        f"Download every part, then follow the restore steps."
    )


def chunk_caption(part_name: str, index: int, total: int) -> str:
    return f"Part {index}/{total}: {part_name}"


def restore_commands(file_name: str) -> str:
    """Commands that rebuild and unpack the backup from its downloaded parts."""
    return RESTORE_TEMPLATE.format(name=file_name)


def restore_message(file_name: str) -> str:
    return f"✅ All parts sent. To restore:\n```\n{restore_commands(file_name)}\n```"


def message_for_error(error: CourierError, now: Optional[datetime] = None) -> str:
    """
    Map a delivery failure to its user-facing message.
    """
    if isinstance(error, CooldownActiveError):
        return cooldown_message(error, now)
    if isinstance(error, BackupNotFoundError):
        return NO_BACKUP_MESSAGE
    if isinstance(error, EmptyBackupError):
        return EMPTY_BACKUP_MESSAGE
    if isinstance(error, SourceVanishedError):
        return SOURCE_CHANGED_MESSAGE
    if isinstance(error, TransportError):
        return TRANSPORT_FAILED_MESSAGE
    if isinstance(error, InvalidTokenError):
        return INVALID_TOKEN_MESSAGE
    return PUBLISH_FAILED_MESSAGE
