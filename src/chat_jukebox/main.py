#!/usr/bin/env python3
"""Main entry point for the chat jukebox."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.messages import LogTemplates
from chat_jukebox.utils.logging import configure_logging

if TYPE_CHECKING:
    from chat_jukebox.config.container import Container

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"


async def _run_headless(container: Container) -> None:
    await container.initialize()
    try:
        await asyncio.Event().wait()
    finally:
        await container.shutdown()


def main() -> int:
    from chat_jukebox.config.settings import get_settings

    settings = get_settings()
    configure_logging(settings.log_level, _LOGGING_CONFIG_PATH)

    logger = logging.getLogger(__name__)
    logger.info(LogTemplates.APP_STARTING, settings.environment)

    from chat_jukebox.config.container import create_container

    container = create_container(settings)

    try:
        if settings.api.enabled:
            import uvicorn

            from chat_jukebox.infrastructure.http.app import create_app

            logger.info(LogTemplates.API_STARTING, settings.api.host, settings.api.port)
            uvicorn.run(
                create_app(container),
                host=settings.api.host,
                port=settings.api.port,
                log_config=None,
            )
        else:
            asyncio.run(_run_headless(container))
        logger.info(LogTemplates.APP_STOPPED)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.APP_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
