"""Lesson records and the service that edits the catalog."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import ValidationError
from .catalog import Catalog, CatalogStore
from .naming import current_millis


LOGGER = logging.getLogger(__name__)

IdFactory = Callable[[], int]


@dataclass(frozen=True)
class Lesson:
    """A normalized catalog entry."""

    id: int
    title: str
    description: str = ""
    media_file: str = ""
    resource_link: str = ""
    tasks: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "mediaFile": self.media_file,
            "resourceLink": self.resource_link,
            "tasks": self.tasks,
        }


def _as_text(value: Any) -> str:
    if not value:
        return ""
    return str(value)


def coerce_lesson_id(value: Any) -> Optional[int]:
    """Return *value* as a lesson id, or ``None`` when it is not one.

    Zero is not a valid id.
    """

    if not value or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text) or None
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) or None


def exact_lesson_id(value: Any) -> Optional[int]:
    """Return *value* as an integer id only when it denotes one exactly.

    Fractional, non-numeric and boolean values yield ``None``.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def normalize_lesson(payload: Any, *, id_factory: IdFactory = current_millis) -> Lesson:
    """Build a :class:`Lesson` from an untrusted *payload*.

    Raises :class:`ValidationError` when the trimmed title is empty. A missing
    or unusable id is replaced by ``id_factory()``.
    """

    if not isinstance(payload, Mapping):
        payload = {}

    title = _as_text(payload.get("title")).strip()
    if not title:
        raise ValidationError("Title is required")

    lesson_id = coerce_lesson_id(payload.get("id"))
    if lesson_id is None:
        lesson_id = id_factory()

    return Lesson(
        id=lesson_id,
        title=title,
        description=_as_text(payload.get("description")),
        media_file=_as_text(payload.get("mediaFile")),
        resource_link=_as_text(payload.get("resourceLink")),
        tasks=_as_text(payload.get("tasks")),
    )


def _entry_id(entry: Any) -> Any:
    if isinstance(entry, Mapping):
        return entry.get("id")
    return None


def upsert_lesson_record(catalog: Sequence[Any], lesson: Lesson) -> List[Any]:
    """Return a copy of *catalog* with *lesson* replaced in place or appended."""

    updated = list(catalog)
    record = lesson.to_dict()
    for index, entry in enumerate(updated):
        if _entry_id(entry) == lesson.id:
            updated[index] = record
            return updated
    updated.append(record)
    return updated


class LessonService:
    """Orchestrate catalog reads and read-modify-write cycles."""

    def __init__(self, store: CatalogStore, *, id_factory: Optional[IdFactory] = None) -> None:
        self._store = store
        self._id_factory = id_factory or current_millis

    @property
    def store(self) -> CatalogStore:
        return self._store

    def list_lessons(self) -> Catalog:
        return self._store.load()

    def upsert_lesson(self, payload: Any) -> Lesson:
        catalog = self._store.load()
        lesson = normalize_lesson(payload, id_factory=self._id_factory)
        existing = any(_entry_id(entry) == lesson.id for entry in catalog)
        self._store.replace(upsert_lesson_record(catalog, lesson))
        LOGGER.info(
            "%s lesson %s (%s)", "Updated" if existing else "Created", lesson.id, lesson.title
        )
        return lesson

    def delete_lesson(self, lesson_id: Any) -> int:
        """Remove every lesson whose id matches and return how many were removed."""

        target = exact_lesson_id(lesson_id)
        catalog = self._store.load()
        remaining = [entry for entry in catalog if target is None or _entry_id(entry) != target]
        self._store.replace(remaining)
        removed = len(catalog) - len(remaining)
        LOGGER.info("Deleted lesson %s (%d record(s) removed)", lesson_id, removed)
        return removed


__all__ = [
    "Lesson",
    "LessonService",
    "coerce_lesson_id",
    "exact_lesson_id",
    "normalize_lesson",
    "upsert_lesson_record",
]
