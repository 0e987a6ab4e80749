"""
Tests for main.py - Main Entry Point

Tests for:
- Logging configuration on startup
- API mode hands the app to uvicorn
- Headless mode runs the container lifecycle
- Error handling and exit codes
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chat_jukebox.config.settings import ApiSettings, DatabaseSettings, Settings
from chat_jukebox.main import _run_headless, cli, main


@pytest.fixture
def api_settings():
    return Settings(_env_file=None, database=DatabaseSettings(url=":memory:"))


@pytest.fixture
def headless_settings():
    return Settings(
        _env_file=None,
        database=DatabaseSettings(url=":memory:"),
        api=ApiSettings(enabled=False),
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("chat_jukebox.main.configure_logging") as configure:
        yield configure


class TestMain:
    def test_api_mode_runs_uvicorn(self, api_settings, quiet_logging):
        with (
            patch("chat_jukebox.config.settings.get_settings", return_value=api_settings),
            patch("uvicorn.run") as run,
        ):
            assert main() == 0

        quiet_logging.assert_called_once()
        assert quiet_logging.call_args.args[0] == "INFO"
        run.assert_called_once()
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 8080
        assert run.call_args.kwargs["log_config"] is None

    def test_headless_mode(self, headless_settings):
        with (
            patch("chat_jukebox.config.settings.get_settings", return_value=headless_settings),
            patch("chat_jukebox.main.asyncio.run") as run,
            patch("uvicorn.run") as uvicorn_run,
        ):
            assert main() == 0

        run.assert_called_once()
        run.call_args.args[0].close()
        uvicorn_run.assert_not_called()

    def test_keyboard_interrupt_exits_cleanly(self, api_settings):
        with (
            patch("chat_jukebox.config.settings.get_settings", return_value=api_settings),
            patch("uvicorn.run", side_effect=KeyboardInterrupt),
        ):
            assert main() == 0

    def test_fatal_error_returns_one(self, api_settings, caplog):
        with (
            patch("chat_jukebox.config.settings.get_settings", return_value=api_settings),
            patch("uvicorn.run", side_effect=OSError("address in use")),
        ):
            assert main() == 1

        assert "address in use" in caplog.text

    def test_cli_exits_with_main_status(self):
        with patch("chat_jukebox.main.main", return_value=1):
            with pytest.raises(SystemExit) as exc_info:
                cli()

        assert exc_info.value.code == 1


class TestRunHeadless:
    async def test_shutdown_after_failure(self):
        container = MagicMock()
        container.initialize = AsyncMock()
        container.shutdown = AsyncMock()

        with patch("chat_jukebox.main.asyncio.Event") as event_cls:
            event_cls.return_value.wait = AsyncMock(side_effect=RuntimeError("stop"))
            with pytest.raises(RuntimeError):
                await _run_headless(container)

        container.initialize.assert_awaited_once()
        container.shutdown.assert_awaited_once()
