"""Tests for user-facing delivery messages."""

from datetime import datetime, timedelta, timezone

import pytest

from courier import messages
from courier.exceptions import (
    BackupNotFoundError,
    CooldownActiveError,
    EmptyBackupError,
    InvalidTokenError,
    PublishError,
    SourceVanishedError,
    TokenSpaceExhaustedError,
    TransportError,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("remaining, expected", [
    (timedelta(hours=1, minutes=5), "1 hour and 5 minutes"),
    (timedelta(seconds=30), "0 hours and 1 minute"),
    (timedelta(hours=23), "23 hours and 0 minutes"),
    (timedelta(hours=2, seconds=1), "2 hours and 1 minute"),
])
def test_format_wait(remaining, expected):
    assert messages.format_wait(remaining) == expected


def test_format_size_mb():
    assert messages.format_size_mb(13_107_200) == "12.50 MB"
    assert messages.format_size_mb(1234) == "0.00 MB"


class TestCooldownMessage:

    def test_user_cooldown(self):
        error = CooldownActiveError('user', timedelta(hours=1, minutes=5))

        text = messages.cooldown_message(error, now=NOW)

        assert text == (
            "⏳ Backup command is on cooldown. Please wait 1 hour and 5 minutes "
            "(until 2024-01-01 13:05 UTC)."
        )

    def test_global_cooldown(self):
        error = CooldownActiveError('global', timedelta(minutes=90))

        text = messages.cooldown_message(error, now=NOW)

        assert "globally on cooldown" in text
        assert "1 hour and 30 minutes" in text
        assert "until 2024-01-01 13:30 UTC" in text

    def test_in_progress(self):
        error = CooldownActiveError('in_progress', timedelta(0))
        assert messages.cooldown_message(error) == messages.IN_PROGRESS_MESSAGE


def test_link_ready_message():
    text = messages.link_ready_message('b.tar.gz', 13_107_200, 'https://example.com/x/b.tar.gz')

    assert text == (
        "📦 Backup ready for download: **b.tar.gz** (12.50 MB)\n"
        "🔗 Link: https://example.com/x/b.tar.gz"
    )


def test_chunked_header_message():
    assert "in 3 parts" in messages.chunked_header_message('b.tar.gz', 1234, 3)
    assert "in 1 part." in messages.chunked_header_message('b.tar.gz', 1234, 1)


def test_chunk_caption():
    assert messages.chunk_caption('b.tar.gz.part002', 2, 3) == "Part 2/3: b.tar.gz.part002"


def test_restore_commands_cover_both_platforms():
    text = messages.restore_commands('b.tar.gz')

    assert "cat b.tar.gz.part* > b.tar.gz" in text
    assert "copy /b b.tar.gz.part* b.tar.gz" in text
    assert text.count("tar -xzf b.tar.gz") == 2


def test_restore_message_wraps_commands():
    text = messages.restore_message('b.tar.gz')
    assert messages.restore_commands('b.tar.gz') in text


@pytest.mark.parametrize("error, expected", [
    (BackupNotFoundError("x"), messages.NO_BACKUP_MESSAGE),
    (EmptyBackupError("x"), messages.EMPTY_BACKUP_MESSAGE),
    (SourceVanishedError("x"), messages.SOURCE_CHANGED_MESSAGE),
    (TransportError("x"), messages.TRANSPORT_FAILED_MESSAGE),
    (InvalidTokenError("x"), messages.INVALID_TOKEN_MESSAGE),
    (PublishError("/srv/secret/path"), messages.PUBLISH_FAILED_MESSAGE),
    (TokenSpaceExhaustedError("x"), messages.PUBLISH_FAILED_MESSAGE),
])
def test_message_for_error(error, expected):
    assert messages.message_for_error(error) == expected


def test_message_for_error_never_leaks_details():
    text = messages.message_for_error(PublishError("/srv/backup-publish: Permission denied"))
    assert "/srv" not in text
