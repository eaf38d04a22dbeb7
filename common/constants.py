"""Project-wide constants (chunk sizes, token shape, default cooldowns)."""

import string

CHAT_ATTACHMENT_LIMIT_BYTES: int = 24 * 1024 * 1024  # 24 MiB per chat attachment
CHUNK_PROTOCOL_OVERHEAD_BYTES: int = 256 * 1024  # multipart envelope + message body
DEFAULT_MAX_CHUNK_BYTES: int = CHAT_ATTACHMENT_LIMIT_BYTES - CHUNK_PROTOCOL_OVERHEAD_BYTES

TOKEN_ALPHABET: str = string.ascii_letters + string.digits
TOKEN_LENGTH: int = 12
TOKEN_MAX_ATTEMPTS: int = 5

DEFAULT_USER_COOLDOWN_SECONDS: int = 24 * 60 * 60
DEFAULT_GLOBAL_COOLDOWN_SECONDS: int = 2 * 60 * 60

PART_SUFFIX: str = ".part"
PART_INDEX_MIN_WIDTH: int = 3

COURIER_PORT: int = 8080
