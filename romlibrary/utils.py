"""
Utility functions for the ROM library importer
"""

import re
from typing import Iterator, List, Sequence, TypeVar

T = TypeVar('T')

_MULTI_SLASH = re.compile(r'/{2,}')


def join_path_segments(*segments: str) -> str:
    """
    Join path segments with a single slash between them.

    Empty segments are dropped and a trailing slash is removed, so
    join_path_segments("path/to/", "/roms", "game.nes") -> "path/to/roms/game.nes".
    """
    valid = [s for s in segments if isinstance(s, str) and s.strip()]
    if not valid:
        return ''

    joined = _MULTI_SLASH.sub('/', '/'.join(valid))
    if len(joined) > 1 and joined.endswith('/'):
        return joined[:-1]
    return joined


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most size items."""
    if size < 1:
        raise ValueError('size must be at least 1')
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def truncate_string(s: str, max_length: int, suffix: str = '...') -> str:
    """
    Truncate a string to max length.

    Args:
        s: String to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated string
    """
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix
