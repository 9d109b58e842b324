"""Persistence for the lesson catalog."""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..errors import PersistenceCorrupt
from .events import emit_catalog_event


LOGGER = logging.getLogger(__name__)

Catalog = List[Dict[str, Any]]


class CatalogStore(Protocol):
    """Whole-catalog persistence used by :class:`~study_portal.services.lessons.LessonService`."""

    def load(self) -> Catalog:
        ...

    def replace(self, catalog: Sequence[Dict[str, Any]]) -> None:
        ...


class JsonCatalogStore:
    """Load and overwrite the catalog stored as a JSON array on disk.

    Reads never fail: a missing, unreadable or malformed file is reported as an
    empty catalog. Writes replace the whole file. There is no locking, so two
    interleaved read-modify-write cycles resolve as last writer wins.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self.ensure()

    @property
    def path(self) -> Path:
        return self._path

    def ensure(self) -> None:
        """Create an empty catalog file when none exists yet."""

        if self._path.exists():
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write("[]")
        emit_catalog_event("Initialized empty catalog", context={"path": self._path})

    def load(self) -> Catalog:
        try:
            return self._read()
        except PersistenceCorrupt as error:
            LOGGER.warning("Treating catalog '%s' as empty: %s", self._path, error)
            return []

    def replace(self, catalog: Sequence[Dict[str, Any]]) -> None:
        started = time.perf_counter()
        data = json.dumps(list(catalog), indent=2, ensure_ascii=False)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write(data)
        emit_catalog_event(
            "Replaced catalog",
            context={"path": self._path, "lesson_count": len(catalog)},
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

    def _read(self) -> Catalog:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as error:
            raise PersistenceCorrupt(f"Unable to read catalog: {error}") from error

        try:
            parsed = json.loads(raw or "[]")
        except json.JSONDecodeError as error:
            raise PersistenceCorrupt(f"Invalid JSON: {error}") from error

        if not isinstance(parsed, list):
            raise PersistenceCorrupt(
                f"Expected a JSON array, found {type(parsed).__name__}"
            )
        return parsed

    def _write(self, data: str) -> None:
        descriptor, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                handle.write(data)
            os.replace(temp_name, self._path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(temp_name)
            raise


class InMemoryCatalogStore:
    """Catalog store that keeps a private copy of the catalog in memory."""

    def __init__(self, initial: Optional[Sequence[Dict[str, Any]]] = None) -> None:
        self._catalog: Catalog = copy.deepcopy(list(initial or []))
        self.replace_count = 0

    def load(self) -> Catalog:
        return copy.deepcopy(self._catalog)

    def replace(self, catalog: Sequence[Dict[str, Any]]) -> None:
        self._catalog = copy.deepcopy(list(catalog))
        self.replace_count += 1


__all__ = ["Catalog", "CatalogStore", "InMemoryCatalogStore", "JsonCatalogStore"]
