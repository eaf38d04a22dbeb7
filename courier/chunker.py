"""Plans size-bounded chunks of a backup and reads them one at a time."""

from pathlib import Path
from typing import Iterator, Union

from common.constants import PART_INDEX_MIN_WIDTH, PART_SUFFIX
from common.types import Chunk
from courier.exceptions import EmptyBackupError, SourceVanishedError


def chunk_count(file_size: int, max_chunk_size: int) -> int:
    """
    Number of chunks needed for a file.

    Args:
        file_size: File size in bytes
        max_chunk_size: Largest allowed chunk in bytes

    Returns:
        ceil(file_size / max_chunk_size)

    Raises:
        EmptyBackupError: If file_size is zero
        ValueError: If a size is negative or max_chunk_size is not positive
    """
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    if file_size == 0:
        raise EmptyBackupError("Backup file is empty")
    return -(-file_size // max_chunk_size)


def plan_chunks(file_size: int, max_chunk_size: int) -> Iterator[Chunk]:
    """
    Lay out the chunks of a file in ascending order.

    Pure function of its arguments: calling it again yields the same plan
    without touching the file.

    Args:
        file_size: File size in bytes
        max_chunk_size: Largest allowed chunk in bytes

    Yields:
        Chunk descriptors, index 1 through total
    """
    total = chunk_count(file_size, max_chunk_size)
    for position in range(total):
        offset = position * max_chunk_size
        yield Chunk(
            index=position + 1,
            total=total,
            byte_offset=offset,
            byte_length=min(max_chunk_size, file_size - offset),
            is_last=position == total - 1,
        )


def read_chunk_bytes(path: Union[str, Path], chunk: Chunk) -> bytes:
    """
    Read exactly the byte range of one chunk.

    Args:
        path: Backup file path
        chunk: Chunk to read

    Returns:
        chunk.byte_length bytes starting at chunk.byte_offset

    Raises:
        SourceVanishedError: If the file is gone or now shorter than planned
    """
    try:
        with open(path, 'rb') as f:
            f.seek(chunk.byte_offset)
            data = f.read(chunk.byte_length)
    except FileNotFoundError as e:
        raise SourceVanishedError(f"Backup disappeared before chunk {chunk.index} was read") from e

    if len(data) != chunk.byte_length:
        raise SourceVanishedError(
            f"Backup shrank while reading chunk {chunk.index}/{chunk.total}: "
            f"expected {chunk.byte_length} bytes, got {len(data)}"
        )
    return data


def part_file_name(file_name: str, chunk: Chunk) -> str:
    """
    Name under which a chunk is delivered, e.g. 'backup.tar.gz.part001'.

    The index is zero-padded to a common width so that sorting the part
    names lexically gives reassembly order.
    """
    width = max(PART_INDEX_MIN_WIDTH, len(str(chunk.total)))
    return f"{file_name}{PART_SUFFIX}{chunk.index:0{width}d}"
