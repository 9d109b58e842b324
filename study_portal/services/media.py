"""Admission and storage of uploaded lesson media."""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, FrozenSet, Optional

from ..config import DEFAULT_MAX_UPLOAD_BYTES
from ..errors import PayloadTooLarge, UnsupportedMediaType
from .events import emit_file_event
from .naming import build_timestamped_name, sanitize_stem


LOGGER = logging.getLogger(__name__)

ALLOWED_MEDIA_EXTENSIONS: FrozenSet[str] = frozenset(
    {".mp4", ".m4a", ".mp4a", ".mp3", ".wav", ".webm", ".ogg"}
)
DEFAULT_EXTENSION = ".bin"
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredMedia:
    """Generated identity of an uploaded media file."""

    file_name: str
    original_name: str


def is_allowed_media(filename: str) -> bool:
    return Path(filename or "").suffix.lower() in ALLOWED_MEDIA_EXTENSIONS


class MediaLibrary:
    """Validate media names and write uploads into the media directory."""

    def __init__(
        self,
        media_root: Path,
        *,
        max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._root = media_root
        self._max_bytes = max_bytes
        self._chunk_size = chunk_size

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def resolve(self, original_name: str, *, timestamp_ms: Optional[int] = None) -> StoredMedia:
        """Return the stored name for *original_name* or reject its extension."""

        original_name = original_name or ""
        if not is_allowed_media(original_name):
            raise UnsupportedMediaType()

        path = Path(original_name)
        extension = path.suffix.lower() or DEFAULT_EXTENSION
        stem = sanitize_stem(path.name[: len(path.name) - len(path.suffix)])
        file_name = build_timestamped_name(stem, timestamp=timestamp_ms, extension=extension)
        return StoredMedia(file_name=file_name, original_name=original_name)

    def store(self, source: BinaryIO, stored: StoredMedia) -> Path:
        """Copy *source* into the media directory under ``stored.file_name``.

        The partial file is removed and :class:`PayloadTooLarge` raised once the
        size cap is exceeded.
        """

        self._root.mkdir(parents=True, exist_ok=True)
        target = self._root / stored.file_name
        started = time.perf_counter()
        if hasattr(source, "seek"):
            with contextlib.suppress(OSError, ValueError):
                source.seek(0)

        written = 0
        try:
            with target.open("wb") as buffer:
                while True:
                    chunk = source.read(self._chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise PayloadTooLarge()
                    buffer.write(chunk)
        except BaseException:
            with contextlib.suppress(OSError):
                target.unlink()
            raise

        emit_file_event(
            "Stored media upload",
            context={
                "file_name": stored.file_name,
                "original_name": stored.original_name,
                "bytes": written,
            },
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return target

    def open(self, name: str) -> Path:
        """Return the path of stored media *name*.

        Raises ``FileNotFoundError`` when the file is missing or lies outside
        the media directory.
        """

        root_path = self._root.resolve()
        candidate = (root_path / name).resolve()
        try:
            candidate.relative_to(root_path)
        except ValueError as error:
            raise FileNotFoundError(name) from error
        if not candidate.is_file():
            raise FileNotFoundError(name)
        return candidate


__all__ = [
    "ALLOWED_MEDIA_EXTENSIONS",
    "MediaLibrary",
    "StoredMedia",
    "is_allowed_media",
]
