"""
Utility functions for the 1fichier SDK.

This module holds the wire-format helpers (integer booleans, the service's
UTC+1 timestamps), path splitting and small general helpers.
"""

import math
import mimetypes
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Iterator, List, Optional, Sequence, TypeVar

T = TypeVar("T")

API_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
# Timestamps on the wire are written in UTC+1 without an offset marker.
API_UTC_OFFSET = timedelta(hours=1)

_PATH_SEPARATORS = re.compile(r"[/\\]")


def encode_bool(value: bool) -> int:
    """Encode a boolean the way the API expects it (1 or 0)."""
    return 1 if value else 0


def decode_bool(value: Any) -> bool:
    """
    Decode an API boolean.

    Only ``1`` and ``"1"`` are true; every other value, including ``None``,
    is false.
    """
    if value is None:
        return False
    return str(value) == "1"


def parse_api_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an API timestamp into an aware UTC datetime.

    Args:
        value: Text in ``yyyy-MM-dd HH:mm:ss`` form, expressed in UTC+1

    Returns:
        The instant in UTC, or None for empty input
    """
    if not value:
        return None
    parsed = datetime.strptime(value, API_DATETIME_FORMAT)
    return (parsed - API_UTC_OFFSET).replace(tzinfo=timezone.utc)


def format_api_datetime(value: datetime) -> str:
    """
    Format a datetime for the API.

    Naive datetimes are taken as local time, like ``datetime.astimezone`` does.
    """
    utc = value.astimezone(timezone.utc)
    return (utc + API_UTC_OFFSET).strftime(API_DATETIME_FORMAT)


def split_path(path: str) -> List[str]:
    """
    Split a remote path into its non-empty segments.

    Both ``/`` and ``\\`` separate segments; ``"/a//b/"`` gives ``["a", "b"]``.
    """
    return [segment for segment in _PATH_SEPARATORS.split(path or "") if segment]


def guess_mime_type(filename: str) -> str:
    """
    Guess MIME type from filename.

    Args:
        filename: Name of the file

    Returns:
        MIME type string
    """
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` entries."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def drop_none(data: dict) -> dict:
    """Return a copy of ``data`` without the keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    if size_bytes <= 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
    i = int(math.floor(math.log(size_bytes, 1024)))

    if i >= len(size_names):
        i = len(size_names) - 1

    p = math.pow(1024, i)
    size = round(size_bytes / p, 2)

    return f"{size} {size_names[i]}"


def as_list(values: Optional[Iterable[T]]) -> Optional[List[T]]:
    return list(values) if values is not None else None
