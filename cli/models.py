"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class LinkCommand:
    """Publish the latest backup as a download link."""

    requester_id: str
    command: Literal["link"] = "link"


@dataclass(frozen=True)
class ChunksCommand:
    """Push the latest backup to the chat transport in parts."""

    requester_id: str
    max_chunk_size: Optional[int] = None
    command: Literal["chunks"] = "chunks"


@dataclass(frozen=True)
class LatestCommand:
    """Show the latest backup."""

    command: Literal["latest"] = "latest"


@dataclass(frozen=True)
class PublicationsCommand:
    """List live publications."""

    command: Literal["publications"] = "publications"


@dataclass(frozen=True)
class RevokeCommand:
    """Revoke a publication by token."""

    token: str
    command: Literal["revoke"] = "revoke"


CommandRequest = (
    LinkCommand
    | ChunksCommand
    | LatestCommand
    | PublicationsCommand
    | RevokeCommand
)
