from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from study_portal.services.catalog import InMemoryCatalogStore, JsonCatalogStore
from study_portal.services.lessons import LessonService


def _lesson(lesson_id: int, title: str) -> dict:
    return {
        "id": lesson_id,
        "title": title,
        "description": "",
        "mediaFile": "",
        "resourceLink": "",
        "tasks": "",
    }


def test_store_initializes_missing_file_as_empty_array(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "data.json"

    store = JsonCatalogStore(path)

    assert path.read_text(encoding="utf-8") == "[]"
    assert store.load() == []


def test_replace_then_load_round_trips(tmp_path: Path) -> None:
    store = JsonCatalogStore(tmp_path / "data.json")
    catalog = [_lesson(1, "Intro"), _lesson(2, "Grammar – überblick")]

    store.replace(catalog)

    assert store.load() == catalog


def test_replace_writes_pretty_utf8_json(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    store = JsonCatalogStore(path)

    store.replace([_lesson(7, "Café")])

    raw = path.read_text(encoding="utf-8")
    assert raw.startswith("[\n  {\n")
    assert "Café" in raw
    assert json.loads(raw)[0]["id"] == 7
    assert not list(tmp_path.glob("*.tmp"))


@pytest.mark.parametrize(
    "contents",
    ["{not json", '{"id": 1}', '"text"', "42", "null"],
)
def test_load_fails_open_on_malformed_content(tmp_path: Path, contents: str, caplog) -> None:
    path = tmp_path / "data.json"
    path.write_text(contents, encoding="utf-8")
    store = JsonCatalogStore(path)

    with caplog.at_level(logging.WARNING):
        assert store.load() == []

    assert "Treating catalog" in caplog.text


def test_load_treats_blank_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("", encoding="utf-8")

    assert JsonCatalogStore(path).load() == []


def test_load_returns_empty_when_file_removed(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    store = JsonCatalogStore(path)
    path.unlink()

    assert store.load() == []


def test_replace_recovers_from_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("garbage", encoding="utf-8")
    store = JsonCatalogStore(path)

    store.replace([_lesson(1, "Fresh")])

    assert store.load() == [_lesson(1, "Fresh")]


def test_in_memory_store_isolates_callers() -> None:
    store = InMemoryCatalogStore([_lesson(1, "Intro")])

    loaded = store.load()
    loaded[0]["title"] = "Mutated"
    loaded.append(_lesson(2, "Extra"))

    assert store.load() == [_lesson(1, "Intro")]
    assert store.replace_count == 0


def test_concurrent_read_modify_write_loses_first_update(tmp_path: Path) -> None:
    """Interleaved writers race; the last replace wins and drops the other update."""

    store = JsonCatalogStore(tmp_path / "data.json")
    store.replace([_lesson(1, "Intro")])

    snapshot_a = store.load()
    snapshot_b = store.load()
    snapshot_a.append(_lesson(2, "From writer A"))
    snapshot_b.append(_lesson(3, "From writer B"))
    store.replace(snapshot_a)
    store.replace(snapshot_b)

    ids = [entry["id"] for entry in store.load()]
    assert ids == [1, 3]


def test_service_round_trip_on_disk(tmp_path: Path) -> None:
    store = JsonCatalogStore(tmp_path / "data.json")
    service = LessonService(store, id_factory=lambda: 1700000000000)

    lesson = service.upsert_lesson({"title": "Intro"})

    reopened = JsonCatalogStore(tmp_path / "data.json")
    assert reopened.load() == [lesson.to_dict()]
