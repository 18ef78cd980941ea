"""
Tests for settings loading and the background event loop.
"""

import asyncio

import pytest

from apollo.config import DEFAULT_API_URL, DEFAULT_RENDER_WAIT, load_settings
from apollo.utils import BackgroundLoop


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("APOLLO_API_URL", "APOLLO_HTTP_TIMEOUT", "APOLLO_RENDER_WAIT", "APOLLO_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "missing.env"


class TestSettings:
    def test_defaults(self, clean_env):
        settings = load_settings(clean_env)
        assert settings.api_url == DEFAULT_API_URL
        assert settings.render_wait == DEFAULT_RENDER_WAIT
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv("APOLLO_API_URL", "http://api.test/v1/")
        monkeypatch.setenv("APOLLO_RENDER_WAIT", "0.5")
        monkeypatch.setenv("APOLLO_LOG_LEVEL", "debug")
        settings = load_settings(clean_env)
        assert settings.api_url == "http://api.test/v1"
        assert settings.render_wait == 0.5
        assert settings.log_level == "DEBUG"

    def test_env_file(self, clean_env, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("APOLLO_HTTP_TIMEOUT=3\n")
        # Recorded so the value load_dotenv sets is removed afterwards
        monkeypatch.setenv("APOLLO_HTTP_TIMEOUT", "0")
        monkeypatch.delenv("APOLLO_HTTP_TIMEOUT")
        settings = load_settings(env_file)
        assert settings.http_timeout == 3.0

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_bad_numbers_rejected(self, clean_env, monkeypatch, value):
        monkeypatch.setenv("APOLLO_HTTP_TIMEOUT", value)
        with pytest.raises(ValueError):
            load_settings(clean_env)


class TestBackgroundLoop:
    def test_run_and_wait(self):
        loop = BackgroundLoop(name="test-loop")
        try:
            async def add(a, b):
                await asyncio.sleep(0)
                return a + b

            async def slow():
                await asyncio.sleep(1)
                return "late"

            assert loop.run(add(1, 2), timeout=5) == 3
            assert loop.wait(slow(), timeout=0.01) is None
        finally:
            loop.stop()

    def test_exceptions_propagate(self):
        loop = BackgroundLoop(name="test-loop-errors")
        try:
            async def boom():
                raise RuntimeError("boom")

            with pytest.raises(RuntimeError):
                loop.run(boom(), timeout=5)
        finally:
            loop.stop()
