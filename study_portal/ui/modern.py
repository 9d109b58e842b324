"""A Rich-powered console front-end for browsing stored lessons."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from ..services.lessons import LessonService


ASSET_LABELS: Dict[str, str] = {
    "mediaFile": "🎧 Media",
    "resourceLink": "🔗 Resource",
    "tasks": "📝 Tasks",
}


@dataclass
class OverviewSnapshot:
    lessons: List[Mapping[str, Any]]
    lesson_count: int
    asset_totals: Dict[str, int]


class ModernUI:
    """Render the catalog as a Rich table with summary counts."""

    def __init__(self, service: LessonService, *, console: Optional[Console] = None) -> None:
        self._service = service
        self._console = console or Console()

    def run(self) -> None:
        snapshot = self._collect_snapshot()
        console = self._console

        console.rule("[bold magenta]Study Portal Overview")

        if snapshot.lesson_count == 0:
            console.print(
                Panel(
                    "No lessons have been published yet.\n"
                    "Sign in at [bold]/admin-login[/bold] to add your first lesson.",
                    border_style="yellow",
                    box=box.ROUNDED,
                )
            )
            return

        console.print(
            Panel(
                self._build_table(snapshot.lessons),
                title="Lessons",
                border_style="cyan",
                box=box.ROUNDED,
            )
        )
        console.print(self._build_stats_panel(snapshot))

    def _build_table(self, lessons: List[Mapping[str, Any]]) -> Table:
        table = Table(box=box.SIMPLE_HEAVY, expand=True)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Title", style="bold")
        table.add_column("Assets", style="green")
        for lesson in lessons:
            title = Text(str(lesson.get("title") or ""))
            description = lesson.get("description")
            if description:
                title.append("\n")
                title.append(str(description), style="dim")
            assets = [label for key, label in ASSET_LABELS.items() if lesson.get(key)]
            table.add_row(
                str(lesson.get("id", "")),
                title,
                " · ".join(assets) if assets else Text("No assets yet", style="dim"),
            )
        return table

    def _build_stats_panel(self, snapshot: OverviewSnapshot) -> Panel:
        metrics = Table.grid(expand=True, padding=(0, 1))
        metrics.add_column(style="dim")
        metrics.add_column(justify="right", style="bold")
        metrics.add_row("Lessons", str(snapshot.lesson_count))

        asset_table = Table.grid(expand=True, padding=(0, 1))
        asset_table.add_column(style="dim")
        asset_table.add_column(justify="right", style="bold")
        for key, label in ASSET_LABELS.items():
            asset_table.add_row(label, str(snapshot.asset_totals.get(key, 0)))

        body = Group(metrics, Rule(style="magenta"), asset_table)
        return Panel(body, title="At a glance", border_style="magenta", box=box.ROUNDED)

    def _collect_snapshot(self) -> OverviewSnapshot:
        lessons = [entry for entry in self._service.list_lessons() if isinstance(entry, Mapping)]
        asset_totals = {key: 0 for key in ASSET_LABELS}
        for lesson in lessons:
            for key in ASSET_LABELS:
                if lesson.get(key):
                    asset_totals[key] += 1
        return OverviewSnapshot(
            lessons=lessons,
            lesson_count=len(lessons),
            asset_totals=asset_totals,
        )


__all__ = ["ModernUI"]
