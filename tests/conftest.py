from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from study_portal.bootstrap import Bootstrapper
from study_portal.config import AppConfig


CONFIG_MAPPING = {
    "storage_root": "storage",
    "catalog_file": "storage/data.json",
    "media_root": "storage/video",
    "admin_username": "admin",
    "admin_password": "secret123",
    "secret_key": "test-secret-key",
    "cookie_name": "study_admin",
    "max_upload_bytes": 524288000,
}


@pytest.fixture()
def temp_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppConfig:
    monkeypatch.chdir(tmp_path)

    config = AppConfig.from_mapping(dict(CONFIG_MAPPING), base_path=tmp_path)

    Bootstrapper(config).initialize()
    return config
