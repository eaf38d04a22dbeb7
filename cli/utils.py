"""Utility functions for CLI operations."""

import re

_SIZE_PATTERN = re.compile(r'^\s*(\d+)\s*([KMG]i?B?|B)?\s*$', re.IGNORECASE)
_SIZE_UNITS = {'': 1, 'B': 1, 'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3}


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.
    
    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).
    
    Args:
        size_bytes: File size in bytes
        
    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    
    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0
    
    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    
    return f"{size:.2f} PiB"


def parse_size(text: str) -> int:
    """
    Parse a byte size such as '500', '8M', '8MiB' or '1G' (1024-based).

    Args:
        text: Size string typed by the operator

    Returns:
        Size in bytes

    Raises:
        ValueError: If the text is not a positive size
    """
    match = _SIZE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid size: '{text}' (examples: 500, 8M, 20MiB)")

    number = int(match.group(1))
    unit = (match.group(2) or '').upper()[:1]
    if unit == 'B':
        unit = ''
    size = number * _SIZE_UNITS[unit]
    if size <= 0:
        raise ValueError("Size must be positive")
    return size
