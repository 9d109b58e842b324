"""Tests for the run.py entrypoint helpers."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

import run


def _setup_serve(monkeypatch, temp_config, *, supports_limit=True):
    captured = {}

    monkeypatch.setattr(run, "initialize_app", lambda config_path=None: temp_config)
    monkeypatch.setattr(run, "_prepare_logging", lambda storage_root: None)

    dummy_app = SimpleNamespace(state=SimpleNamespace())

    def fake_create_app(config, root_path):
        captured["create_app_config"] = config
        captured["root_path"] = root_path
        return dummy_app

    monkeypatch.setattr(run, "create_app_from_config", fake_create_app)

    if supports_limit:
        class DummyConfig:
            def __init__(self, app, host="", port=0, log_config=None, root_path="", limit_max_request_size=None, **kwargs):
                captured["app"] = app
                captured["config_kwargs"] = {
                    "host": host,
                    "port": port,
                    "log_config": log_config,
                    "root_path": root_path,
                    "limit_max_request_size": limit_max_request_size,
                    **kwargs,
                }
    else:
        class DummyConfig:
            def __init__(self, app, host="", port=0, log_config=None, root_path=""):
                captured["app"] = app
                captured["config_kwargs"] = {
                    "host": host,
                    "port": port,
                    "log_config": log_config,
                    "root_path": root_path,
                }

    class DummyServer:
        def __init__(self, config):
            captured["server_instance"] = self

        def run(self):
            captured["server_run"] = True

    monkeypatch.setattr(run.uvicorn, "Config", DummyConfig)
    monkeypatch.setattr(run.uvicorn, "Server", DummyServer)

    run.serve(host="0.0.0.0", port=9000, root_path="portal/", config_path=None)

    captured["app_state_server"] = dummy_app.state.server
    return captured


def test_serve_applies_request_size_limit(monkeypatch, temp_config):
    captured = _setup_serve(monkeypatch, temp_config)

    assert captured["config_kwargs"]["limit_max_request_size"] == temp_config.max_upload_bytes
    assert captured["config_kwargs"]["log_config"] is None
    assert captured["app_state_server"] is captured["server_instance"]
    assert captured["server_run"] is True


def test_serve_omits_limit_when_unsupported(monkeypatch, temp_config):
    captured = _setup_serve(monkeypatch, temp_config, supports_limit=False)

    assert "limit_max_request_size" not in captured["config_kwargs"]


def test_serve_normalizes_root_path(monkeypatch, temp_config):
    captured = _setup_serve(monkeypatch, temp_config)

    assert captured["root_path"] == "/portal"
    assert captured["config_kwargs"]["root_path"] == "/portal"


@pytest.mark.parametrize(
    "raw, expected",
    [(None, ""), ("", ""), ("  ", ""), ("/", ""), ("api", "/api"), ("/api/", "/api")],
)
def test_normalize_root_path(raw, expected):
    assert run._normalize_root_path(raw) == expected
