"""Shared data type definitions (BackupFile, Chunk, Publication, etc.)."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class BackupFile:
    """
    Snapshot of a candidate backup taken at selection time.

    The file may change or disappear afterwards; holders must not assume
    it still matches.
    """
    path: Path
    size: int
    modified_at: datetime

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous byte range of a backup, numbered for ordered reassembly.
    """
    index: int
    total: int
    byte_offset: int
    byte_length: int
    is_last: bool


@dataclass(frozen=True)
class ChunkPayload:
    """Bytes of one chunk together with the part file name it travels under."""
    chunk: Chunk
    file_name: str
    data: bytes


@dataclass(frozen=True)
class Publication:
    """
    One published backup. The token directory on disk is the durable record.
    """
    token: str
    source_path: Optional[Path]
    published_path: Path
    url: str
    created_at: datetime
    file_size: int

    @property
    def file_name(self) -> str:
        return self.published_path.name
