"""FastAPI application exposing the jukebox to a dashboard."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chat_jukebox.config.container import Container

from .routes import router


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    container: Container = fastapi_app.state.container

    await container.initialize()
    try:
        yield
    finally:
        await container.shutdown()


def create_app(container: Container) -> FastAPI:
    app = FastAPI(title="Chat Jukebox", lifespan=lifespan)

    app.state.settings = container.settings
    app.state.container = container

    app.include_router(router)
    return app
