"""
Tests for the app factory: config selection and shutdown cleanup.
"""

import atexit

import app as app_module
from app import create_app
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    config_for_environment,
)


class TestConfigSelection:
    """FLASK_ENV picks the config class when none is passed."""

    def test_known_environments(self):
        assert config_for_environment("production") is ProductionConfig
        assert config_for_environment("development") is DevelopmentConfig
        assert config_for_environment("Testing") is TestingConfig

    def test_unknown_environment_uses_base(self):
        assert config_for_environment("staging") is Config
        assert config_for_environment("") is Config

    def test_production_defaults(self):
        assert ProductionConfig.SESSION_COOKIE_SECURE is True
        assert ProductionConfig.DEBUG is False

    def test_create_app_without_config_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FLASK_ENV", "testing")
        monkeypatch.setattr(TestingConfig, "UPLOAD_FOLDER", str(tmp_path / "uploads"))

        application = create_app()

        assert application.config["TESTING"] is True
        assert application.config["REPOSITORY"].backend_name == "memory"
        assert (tmp_path / "uploads").is_dir()


class TestShutdown:
    """Repositories are closed by one exit hook, not one per app."""

    def test_create_app_registers_no_exit_hook(self, monkeypatch, tmp_path):
        registered = []
        monkeypatch.setattr(atexit, "register", lambda fn, *a, **kw: registered.append(fn))
        monkeypatch.setattr(TestingConfig, "UPLOAD_FOLDER", str(tmp_path / "uploads"))

        create_app(TestingConfig)
        create_app(TestingConfig)

        assert registered == []

    def test_repository_tracked_and_closed(self, memory_app, monkeypatch):
        repository = memory_app.config["REPOSITORY"]
        assert repository in app_module._open_repositories

        closed = []
        monkeypatch.setattr(repository, "close", lambda: closed.append(repository))
        app_module._close_repositories()

        assert repository in closed
