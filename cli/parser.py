"""Command parser for CLI input."""

import shlex

from cli.models import (
    ChunksCommand,
    CommandRequest,
    LatestCommand,
    LinkCommand,
    PublicationsCommand,
    RevokeCommand,
)
from cli.utils import parse_size


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Link/Chunks/Latest/Publications/Revoke)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "link":
        return _parse_link(tokens[1:])
    elif command_name == "chunks":
        return _parse_chunks(tokens[1:])
    elif command_name == "latest":
        return _parse_no_args("latest", tokens[1:], LatestCommand)
    elif command_name == "publications":
        return _parse_no_args("publications", tokens[1:], PublicationsCommand)
    elif command_name == "revoke":
        return _parse_revoke(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_link(args: list[str]) -> LinkCommand:
    """Parse 'link <requester_id>' command."""
    if len(args) != 1:
        raise ParseError("link requires exactly 1 argument: <requester_id>")

    return LinkCommand(requester_id=args[0])


def _parse_chunks(args: list[str]) -> ChunksCommand:
    """Parse 'chunks <requester_id> [max_chunk_size]' command."""
    if len(args) not in (1, 2):
        raise ParseError("chunks requires 1 or 2 arguments: <requester_id> [max_chunk_size]")

    max_chunk_size = None
    if len(args) == 2:
        try:
            max_chunk_size = parse_size(args[1])
        except ValueError as e:
            raise ParseError(str(e))

    return ChunksCommand(requester_id=args[0], max_chunk_size=max_chunk_size)


def _parse_revoke(args: list[str]) -> RevokeCommand:
    """Parse 'revoke <token>' command."""
    if len(args) != 1:
        raise ParseError("revoke requires exactly 1 argument: <token>")

    return RevokeCommand(token=args[0])


def _parse_no_args(name: str, args: list[str], command_type):
    if args:
        raise ParseError(f"{name} takes no arguments")
    return command_type()
