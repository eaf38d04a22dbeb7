"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.models import (
    ChunksCommand,
    LatestCommand,
    LinkCommand,
    PublicationsCommand,
    RevokeCommand,
)
from cli.config import Config
from cli.courier_client import CourierClient

logger = get_logger(__name__)


DEFAULT_CONFIG_PATH = Path.home() / '.courier' / 'config.json'

_client: Optional[CourierClient] = None
_config_path: Path = DEFAULT_CONFIG_PATH


def use_config(config_path: Path) -> None:
    """
    Point the CLI at another config file; drops any client built so far.

    Args:
        config_path: JSON config file to read the courier address from
    """
    global _client, _config_path
    _config_path = Path(config_path)
    _client = None


def get_client() -> CourierClient:
    """
    Get or create global CourierClient instance.

    Returns:
        CourierClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new CourierClient instance")
        config = Config(_config_path)
        _client = CourierClient(config)
    return _client


def handle_link(cmd: LinkCommand, client: Optional[CourierClient] = None) -> str:
    """
    Handle 'link' command.

    Args:
        cmd: LinkCommand with requester_id
        client: Optional CourierClient for dependency injection (testing)

    Returns:
        Link message or error message
    """
    logger.info(f"Executing link command for requester {cmd.requester_id}")
    if client is None:
        client = get_client()
    return client.publish_link(cmd.requester_id)


def handle_chunks(cmd: ChunksCommand, client: Optional[CourierClient] = None) -> str:
    """
    Handle 'chunks' command.

    Args:
        cmd: ChunksCommand with requester_id and optional max_chunk_size
        client: Optional CourierClient for dependency injection (testing)

    Returns:
        Delivery summary or error message
    """
    logger.info(f"Executing chunks command for requester {cmd.requester_id}")
    if client is None:
        client = get_client()
    return client.send_chunks(cmd.requester_id, cmd.max_chunk_size)


def handle_latest(cmd: LatestCommand, client: Optional[CourierClient] = None) -> str:
    """Handle 'latest' command."""
    if client is None:
        client = get_client()
    return client.latest_backup()


def handle_publications(cmd: PublicationsCommand, client: Optional[CourierClient] = None) -> str:
    """Handle 'publications' command."""
    if client is None:
        client = get_client()
    return client.list_publications()


def handle_revoke(cmd: RevokeCommand, client: Optional[CourierClient] = None) -> str:
    """
    Handle 'revoke' command.

    Args:
        cmd: RevokeCommand with token
        client: Optional CourierClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    return client.revoke(cmd.token)
