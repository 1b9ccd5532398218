"""Timestamp based names for temporary files and datasets."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import random

MAX_RANDOM = 1_000_000_000_000


def generate_date_string(separator: str = "", include_ms: bool = True, now: datetime | None = None) -> str:
    """Return the UTC time as ``YYYYMMDDhhmmssmmm``.

    With ``separator="."`` the result looks like ``2022.10.11.10.35.52.333``.
    """

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    parts = [
        f"{moment.year:04d}",
        f"{moment.month:02d}",
        f"{moment.day:02d}",
        f"{moment.hour:02d}",
        f"{moment.minute:02d}",
        f"{moment.second:02d}",
    ]
    if include_ms:
        parts.append(f"{moment.microsecond // 1000:03d}")
    return separator.join(parts)


def generate_new_name(prefix: str = "", suffix: str = "", separator: str = "_") -> str:
    # A duplicate is unlikely but possible, so callers writing files should use unique_path.
    segments = [generate_date_string(), str(random.randrange(MAX_RANDOM))]
    if prefix:
        segments.insert(0, prefix)
    if suffix:
        segments.append(suffix)
    return separator.join(segments)


def unique_path(directory: Path, prefix: str = "", extension: str = "") -> Path:
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    while True:
        candidate = Path(directory) / f"{generate_new_name(prefix)}{extension}"
        if not candidate.exists():
            return candidate
