import os
import sys
import asyncio
import logging
import pathlib
import tempfile
import importlib

import pytest
import uvicorn

# Configure environment before importing app
os.environ["ARTICLES_PATH"] = os.path.join(tempfile.gettempdir(), "articles_board_test.json")
base_dir = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(base_dir))

import backend.main as server


def reload_server(monkeypatch, **env):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return importlib.reload(server)


@pytest.fixture(autouse=True)
def restore_server(monkeypatch):
    yield
    reload_server(monkeypatch)


def capture_run(monkeypatch, module):
    captured = {}

    def fake_run(self, sockets=None):
        captured["config"] = self.config

    monkeypatch.setattr(module.ArticlesServer, "run", fake_run)
    return captured


def fake_bind(monkeypatch, succeeds):
    async def fake_startup(self, sockets=None):
        self.started = succeeds

    monkeypatch.setattr(uvicorn.Server, "startup", fake_startup)


def test_defaults(monkeypatch):
    module = reload_server(monkeypatch)

    assert module.PORT == 4111
    assert module.LOG_LEVEL == "INFO"


def test_main_serves_app_on_default_port(monkeypatch):
    module = reload_server(monkeypatch)
    captured = capture_run(monkeypatch, module)

    module.main()

    config = captured["config"]
    assert config.app is module.app
    assert config.port == 4111
    assert config.host == "0.0.0.0"


def test_port_and_log_level_from_environment(monkeypatch):
    module = reload_server(monkeypatch, PORT="5050", LOG_LEVEL="debug")
    captured = capture_run(monkeypatch, module)

    module.main()

    assert module.PORT == 5050
    assert module.LOG_LEVEL == "DEBUG"
    assert captured["config"].port == 5050


def test_startup_logs_port_once_bound(monkeypatch, caplog):
    fake_bind(monkeypatch, succeeds=True)
    instance = server.ArticlesServer(uvicorn.Config(server.app, port=5051))

    with caplog.at_level(logging.INFO, logger="backend.main"):
        asyncio.run(instance.startup())

    assert "Server has started at port 5051" in caplog.text


def test_failed_bind_does_not_log_start(monkeypatch, caplog):
    fake_bind(monkeypatch, succeeds=False)
    instance = server.ArticlesServer(uvicorn.Config(server.app, port=5052))

    with caplog.at_level(logging.INFO, logger="backend.main"):
        asyncio.run(instance.startup())

    assert "Server has started" not in caplog.text
