"""Plain-text console overview of the lesson catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from ..services.lessons import LessonService


@dataclass
class ConsoleSection:
    title: str
    entries: Iterable[str]


class ConsoleUI:
    """Minimal console UI that surfaces stored lessons."""

    def __init__(self, service: LessonService, *, write: Callable[[str], None] = print) -> None:
        self._service = service
        self._write = write

    def run(self) -> None:
        """Render every lesson in catalog order."""

        self._write("Study Portal – Console Overview")
        self._write("=" * 40)
        lessons = self._service.list_lessons()
        if not lessons:
            self._write("(no lessons)")
            return

        for section in self._build_sections(lessons):
            self._write(section.title)
            self._write("-" * len(section.title))
            for entry in section.entries:
                self._write(entry)
            self._write("")

    def _build_sections(self, lessons: Iterable[Any]) -> Iterable[ConsoleSection]:
        for lesson in lessons:
            if not isinstance(lesson, Mapping):
                continue
            yield ConsoleSection(
                title=f"Lesson {lesson.get('id')}: {lesson.get('title') or '(untitled)'}",
                entries=list(self._format_details(lesson)),
            )

    @staticmethod
    def _format_details(lesson: Mapping[str, Any]) -> Iterable[str]:
        labels = (
            ("description", "Description"),
            ("mediaFile", "Media"),
            ("resourceLink", "Resource"),
            ("tasks", "Tasks"),
        )
        for key, label in labels:
            value = lesson.get(key)
            if value:
                yield f"  {label}: {value}"


__all__ = ["ConsoleUI"]
