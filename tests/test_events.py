from __future__ import annotations

import logging
from pathlib import Path

from study_portal.services.events import (
    emit_auth_event,
    emit_catalog_event,
    emit_file_event,
    emit_structured_event,
    event_details,
)


def test_event_details_drops_empty_values_and_renders_paths() -> None:
    details = event_details(
        {"path": Path("storage") / "data.json", "lesson_count": 0, "note": "", "actor": None}
    )

    assert details == {"path": str(Path("storage") / "data.json"), "lesson_count": 0}


def test_catalog_event_lists_details_in_message(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="study_portal.events"):
        emit_catalog_event(
            "Replaced catalog",
            context={"path": Path("data.json"), "lesson_count": 2},
            duration_ms=1.23456,
        )

    record = caplog.records[-1]
    assert record.getMessage() == "[CATALOG_OP] Replaced catalog (path=data.json, lesson_count=2)"
    assert record.event_type == "CATALOG_OP"
    assert record.event_context == {"path": "data.json", "lesson_count": 2}
    assert record.event_duration_ms == 1.235


def test_file_event_without_details_has_bare_message(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="study_portal.events"):
        emit_file_event("Stored media upload", context={"original_name": ""})

    record = caplog.records[-1]
    assert record.getMessage() == "[FILE_OP] Stored media upload"
    assert not hasattr(record, "event_context")


def test_auth_event_uses_requested_level(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="study_portal.events"):
        emit_auth_event("Rejected admin login", level=logging.WARNING)

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "[AUTH] Rejected admin login"


def test_correlation_precedes_context(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="study_portal.events"):
        emit_structured_event(
            "APP_EVENT",
            "Saved lesson",
            context={"lesson_id": 7},
            correlation={"request_id": "abc"},
        )

    record = caplog.records[-1]
    assert record.getMessage() == "[APP_EVENT] Saved lesson (request_id=abc, lesson_id=7)"
    assert record.event_correlation == {"request_id": "abc"}
