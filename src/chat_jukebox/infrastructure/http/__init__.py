"""Dashboard HTTP API - thin FastAPI wrappers around the command and query handlers."""

from chat_jukebox.infrastructure.http.app import create_app

__all__ = ["create_app"]
