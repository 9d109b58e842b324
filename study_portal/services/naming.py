"""Utility helpers for consistent media file naming."""

from __future__ import annotations

import re
import time
from typing import Optional

__all__ = [
    "MAX_STEM_LENGTH",
    "build_timestamped_name",
    "current_millis",
    "sanitize_stem",
]

MAX_STEM_LENGTH = 60

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_-]+")


def current_millis() -> int:
    """Return the current wall-clock time in milliseconds."""

    return time.time_ns() // 1_000_000


def sanitize_stem(value: str, *, max_length: int = MAX_STEM_LENGTH, default: str = "media") -> str:
    """Return a filesystem-friendly representation of *value*.

    Runs of characters other than ASCII letters, digits, dashes and
    underscores collapse into a single underscore and the result is capped to
    *max_length* characters.
    """

    cleaned = _UNSAFE_CHARACTERS.sub("_", value or "")[:max_length]
    return cleaned or default


def build_timestamped_name(
    stem: str,
    *,
    timestamp: Optional[int] = None,
    extension: str = "",
) -> str:
    """Return ``<stem>_<timestamp><extension>`` with a lower-cased extension."""

    stamp = current_millis() if timestamp is None else timestamp
    suffix = ""
    if extension:
        suffix = extension if extension.startswith(".") else f".{extension}"
        suffix = suffix.lower()
    return f"{stem or 'media'}_{stamp}{suffix}"
