"""Tagged log lines for catalog writes, media files and admin sessions.

Each event is logged as ``[TAG] message (key=value, ...)`` and carries the
same details on the record as ``event_*`` attributes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


DEFAULT_EVENT_LOGGER = logging.getLogger("study_portal.events")

EventLogger = logging.Logger | logging.LoggerAdapter


def event_details(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop empty entries and render paths as plain strings."""

    details: Dict[str, Any] = {}
    for key, value in (values or {}).items():
        if value is None or value == "":
            continue
        details[key] = str(value) if isinstance(value, Path) else value
    return details


def emit_structured_event(
    event_type: str,
    message: str,
    *,
    context: Optional[Mapping[str, Any]] = None,
    correlation: Optional[Mapping[str, Any]] = None,
    duration_ms: Optional[float] = None,
    level: int = logging.INFO,
    logger: EventLogger = DEFAULT_EVENT_LOGGER,
) -> None:
    details = event_details(context)
    correlated = event_details(correlation)
    text = f"[{event_type}] {message}"
    shown = {**correlated, **details}
    if shown:
        text += " (" + ", ".join(f"{key}={value}" for key, value in shown.items()) + ")"

    extra: Dict[str, Any] = {"event": message, "event_type": event_type}
    if details:
        extra["event_context"] = details
    if correlated:
        extra["event_correlation"] = correlated
    if duration_ms is not None:
        extra["event_duration_ms"] = round(duration_ms, 3)
    logger.log(level, text, extra=extra)


def emit_catalog_event(
    action: str,
    *,
    context: Optional[Mapping[str, Any]] = None,
    duration_ms: Optional[float] = None,
) -> None:
    emit_structured_event("CATALOG_OP", action, context=context, duration_ms=duration_ms)


def emit_file_event(
    operation: str,
    *,
    context: Optional[Mapping[str, Any]] = None,
    duration_ms: Optional[float] = None,
) -> None:
    emit_structured_event("FILE_OP", operation, context=context, duration_ms=duration_ms)


def emit_auth_event(message: str, *, level: int = logging.INFO) -> None:
    emit_structured_event("AUTH", message, level=level)


__all__ = [
    "DEFAULT_EVENT_LOGGER",
    "emit_auth_event",
    "emit_catalog_event",
    "emit_file_event",
    "emit_structured_event",
    "event_details",
]
