"""
Tests for settings and logging setup.
"""

import logging

from ..config import Settings
from ..logging_utils import get_logger, setup_logging


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in (
            "WAR_REDIS_URL", "WAR_AUTO_BIND_SEAT", "WAR_OPTIMISTIC_WRITES", "WAR_MAX_WRITE_RETRIES",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.redis_url is None
        assert settings.auto_bind_seat is False
        assert settings.optimistic_writes is True
        assert settings.max_write_retries == 5

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WAR_REDIS_URL", "redis://cache:6379/1")
        monkeypatch.setenv("WAR_AUTO_BIND_SEAT", "yes")
        monkeypatch.setenv("WAR_OPTIMISTIC_WRITES", "0")
        monkeypatch.setenv("WAR_MAX_WRITE_RETRIES", "2")
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test,http://b.test")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.redis_url == "redis://cache:6379/1"
        assert settings.auto_bind_seat is True
        assert settings.optimistic_writes is False
        assert settings.max_write_retries == 2
        assert settings.allowed_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"


class TestLogging:

    def test_named_loggers(self):
        assert get_logger("weighted_war.store").name == "weighted_war.store"

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        setup_logging("chatty")
        setup_logging("warning")

        assert calls[0]["level"] == logging.INFO
        assert calls[1]["level"] == logging.WARNING
