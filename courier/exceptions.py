"""Custom exception classes for the Courier."""

from datetime import timedelta


class CourierError(Exception):
    """
    Base exception class for all backup delivery errors.
    """
    pass


class BackupNotFoundError(CourierError):
    """
    Raised when the backup folder is missing, unreadable or holds no file.
    """
    pass


class CooldownActiveError(CourierError):
    """
    Raised when a delivery request arrives before its cooldown elapsed.

    Attributes:
        reason: Scope whose window blocks the request ('user', 'global' or 'in_progress')
        retry_after: Time left until the request would be admitted
    """

    def __init__(self, reason: str, retry_after: timedelta):
        self.reason = reason
        self.retry_after = retry_after
        super().__init__(f"Cooldown active ({reason}), retry after {retry_after}")


class EmptyBackupError(CourierError):
    """
    Raised when the selected backup has zero length.
    """
    pass


class TokenSpaceExhaustedError(CourierError):
    """
    Raised when every token attempt collided with an existing directory.
    """
    pass


class PublishError(CourierError):
    """
    Raised when linking or copying the backup into the publish root fails.
    """
    pass


class SourceVanishedError(CourierError):
    """
    Raised when the backup was deleted or changed size after selection.
    """
    pass


class InvalidTokenError(CourierError):
    """
    Raised when a revocation names something that is not a publication token.
    """
    pass


class TransportError(CourierError):
    """
    Raised when the chat transport rejects a chunk.
    """
    pass
