"""Configuration loading utilities for the Study Portal application."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


LOGGER = logging.getLogger(__name__)


_PERMISSION_SENTINEL = ".study_portal_write_check"

DEFAULT_MAX_UPLOAD_BYTES = 500 * 1024 * 1024
DEFAULT_COOKIE_NAME = "study_admin"

_ENV_OVERRIDES: Dict[str, str] = {
    "admin_username": "STUDY_PORTAL_ADMIN_USERNAME",
    "admin_password": "STUDY_PORTAL_ADMIN_PASSWORD",
    "secret_key": "STUDY_PORTAL_SECRET_KEY",
    "max_upload_bytes": "STUDY_PORTAL_MAX_UPLOAD_BYTES",
}


def _ensure_writable_directory(path: Path) -> bool:
    """Return ``True`` if *path* can be created and written to."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False

    test_file = path / _PERMISSION_SENTINEL
    try:
        with test_file.open("w", encoding="utf-8") as handle:
            handle.write("ok")
    except OSError:
        return False
    finally:
        with contextlib.suppress(OSError):
            test_file.unlink()

    return True


def _select_writable_directory(
    preferred: Path,
    *,
    label: str,
    fallbacks: Iterable[Path] = (),
) -> Tuple[Path, bool]:
    """Return a usable directory based on ``preferred`` and ``fallbacks``.

    The helper attempts to create ``preferred`` and returns it when writable. If
    the preferred location is unavailable, each candidate in ``fallbacks`` is
    tried in order. The first writable fallback is returned along with a flag
    indicating that a fallback was used. When no candidate can be prepared the
    original ``preferred`` path is returned.
    """

    preferred = preferred.resolve()
    if _ensure_writable_directory(preferred):
        return preferred, False

    for fallback in fallbacks:
        candidate = fallback.resolve()
        if candidate == preferred:
            continue
        if _ensure_writable_directory(candidate):
            LOGGER.warning(
                "Preferred %s directory '%s' is not writable; using fallback '%s'.",
                label,
                preferred,
                candidate,
            )
            return candidate, True

    LOGGER.warning(
        "%s directory '%s' is not writable and no fallback is available.",
        label.capitalize(),
        preferred,
    )
    return preferred, False


def _parse_byte_limit(value: Any) -> int:
    try:
        limit = int(str(value).strip())
    except (TypeError, ValueError):
        LOGGER.warning("Ignoring invalid upload limit %r; using the default.", value)
        return DEFAULT_MAX_UPLOAD_BYTES
    return limit if limit > 0 else DEFAULT_MAX_UPLOAD_BYTES


def apply_environment_overrides(
    mapping: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Return a copy of *mapping* with ``STUDY_PORTAL_*`` variables applied."""

    if environ is None:
        environ = os.environ
    merged = dict(mapping)
    for key, variable in _ENV_OVERRIDES.items():
        raw = (environ.get(variable) or "").strip()
        if raw:
            merged[key] = raw
    return merged


@dataclass(frozen=True)
class AdminCredentials:
    """The single administrator account allowed to edit the catalog."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"AdminCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class AppConfig:
    """Runtime paths and static secrets for the application."""

    storage_root: Path
    catalog_file: Path
    media_root: Path
    admin: AdminCredentials
    secret_key: str
    cookie_name: str = DEFAULT_COOKIE_NAME
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any], *, base_path: Path) -> "AppConfig":
        preferred_storage = (base_path / mapping["storage_root"]).resolve()
        storage_fallback = Path.home() / ".study_portal" / "storage"
        storage_root, storage_fallback_used = _select_writable_directory(
            preferred_storage,
            label="storage",
            fallbacks=(storage_fallback,),
        )

        catalog_file = (base_path / mapping["catalog_file"]).resolve()
        if storage_fallback_used:
            try:
                relative_catalog = catalog_file.relative_to(preferred_storage)
            except ValueError:
                relative_catalog = None
            if relative_catalog is not None:
                fallback_catalog = (storage_root / relative_catalog).resolve()
                LOGGER.warning(
                    "Preferred catalog location '%s' is not writable; using fallback '%s'.",
                    catalog_file,
                    fallback_catalog,
                )
                catalog_file = fallback_catalog

        if not _ensure_writable_directory(catalog_file.parent):
            fallback_catalog = (storage_root / catalog_file.name).resolve()
            if fallback_catalog != catalog_file:
                LOGGER.warning(
                    "Preferred catalog location '%s' is not writable; using fallback '%s'.",
                    catalog_file,
                    fallback_catalog,
                )
                catalog_file = fallback_catalog

        preferred_media = (base_path / mapping["media_root"]).resolve()
        media_root, _ = _select_writable_directory(
            preferred_media,
            label="media",
            fallbacks=(storage_root / "video",),
        )

        admin = AdminCredentials(
            username=str(mapping.get("admin_username", "")),
            password=str(mapping.get("admin_password", "")),
        )
        if not admin.username or not admin.password:
            LOGGER.warning("Admin credentials are not configured; logins will be rejected.")

        return cls(
            storage_root=storage_root,
            catalog_file=catalog_file,
            media_root=media_root,
            admin=admin,
            secret_key=str(mapping.get("secret_key", "")),
            cookie_name=str(mapping.get("cookie_name") or DEFAULT_COOKIE_NAME),
            max_upload_bytes=_parse_byte_limit(
                mapping.get("max_upload_bytes", DEFAULT_MAX_UPLOAD_BYTES)
            ),
        )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the application configuration from ``config/default.json`` by default."""

    base_path = Path(__file__).resolve().parent.parent
    if config_path is None:
        config_path = base_path / "config" / "default.json"

    with config_path.open("r", encoding="utf-8") as config_file:
        raw_config = json.load(config_file)

    return AppConfig.from_mapping(apply_environment_overrides(raw_config), base_path=base_path)


__all__ = [
    "AdminCredentials",
    "AppConfig",
    "DEFAULT_MAX_UPLOAD_BYTES",
    "apply_environment_overrides",
    "load_config",
]
