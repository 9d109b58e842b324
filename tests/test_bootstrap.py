import json
from pathlib import Path

import pytest

import study_portal.config as config_module
from study_portal.bootstrap import BootstrapError, Bootstrapper
from study_portal.config import AdminCredentials, AppConfig


def _build_config(tmp_path: Path) -> AppConfig:
    storage_root = tmp_path / "storage"
    return AppConfig(
        storage_root=storage_root,
        catalog_file=storage_root / "data.json",
        media_root=storage_root / "video",
        admin=AdminCredentials("admin", "secret123"),
        secret_key="test",
    )


def test_bootstrapper_creates_directories_and_empty_catalog(tmp_path: Path) -> None:
    config = _build_config(tmp_path)

    Bootstrapper(config).initialize()

    assert config.media_root.is_dir()
    assert json.loads(config.catalog_file.read_text(encoding="utf-8")) == []


def test_bootstrapper_keeps_existing_catalog(tmp_path: Path) -> None:
    config = _build_config(tmp_path)
    config.catalog_file.parent.mkdir(parents=True)
    config.catalog_file.write_text('[{"id": 1, "title": "Kept"}]', encoding="utf-8")

    Bootstrapper(config).initialize()

    assert json.loads(config.catalog_file.read_text(encoding="utf-8")) == [
        {"id": 1, "title": "Kept"}
    ]


def test_bootstrapper_raises_when_storage_directory_unwritable(
    tmp_path: Path, monkeypatch
) -> None:
    config = _build_config(tmp_path)
    storage_root = config.storage_root

    original_ensure = config_module._ensure_writable_directory

    def fake_ensure(path: Path) -> bool:
        if path.resolve() == storage_root.resolve():
            return False
        return original_ensure(path)

    monkeypatch.setattr(config_module, "_ensure_writable_directory", fake_ensure)

    bootstrapper = Bootstrapper(config)

    with pytest.raises(BootstrapError) as excinfo:
        bootstrapper.initialize()

    assert "storage" in str(excinfo.value).lower()
