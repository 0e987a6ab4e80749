from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from chat_jukebox.application.commands.enqueue_playlist import (
    EnqueuePlaylistCommand,
    PlaylistStatus,
)
from chat_jukebox.application.commands.enqueue_track import EnqueueStatus, EnqueueTrackCommand
from chat_jukebox.application.commands.playback_controls import SeekCommand
from chat_jukebox.application.commands.queue_edit import (
    QueueEditStatus,
    RemoveTrackCommand,
    ReorderTrackCommand,
)
from chat_jukebox.application.commands.skip_track import SkipStatus, SkipTrackCommand
from chat_jukebox.domain.shared.exceptions import PersistenceFailure, ValidationError
from chat_jukebox.domain.shared.messages import ErrorMessages, UserMessages

from .schemas import (
    EnqueueBody,
    PerformanceBody,
    PlaylistBody,
    PriorityUserBody,
    RateLimitBody,
    ReorderBody,
    SeekBody,
    SkipBody,
)

if TYPE_CHECKING:
    from chat_jukebox.config.container import Container

router = APIRouter()

_ENQUEUE_CODES = {
    EnqueueStatus.QUEUED: 200,
    EnqueueStatus.DUPLICATE: 200,
    EnqueueStatus.RATE_LIMITED: 429,
    EnqueueStatus.NOT_FOUND: 404,
    EnqueueStatus.STORAGE_ERROR: 503,
}

_PLAYLIST_CODES = {
    PlaylistStatus.SUCCESS: 200,
    PlaylistStatus.RATE_LIMITED: 429,
    PlaylistStatus.NOT_FOUND: 404,
    PlaylistStatus.STORAGE_ERROR: 503,
}

_SKIP_CODES = {
    SkipStatus.SUCCESS: 200,
    SkipStatus.NOTHING_PLAYING: 409,
    SkipStatus.PERMISSION_DENIED: 403,
}

_EDIT_CODES = {
    QueueEditStatus.SUCCESS: 200,
    QueueEditStatus.INVALID_INDEX: 400,
    QueueEditStatus.STORAGE_ERROR: 503,
}


def _container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    return container


def _reply(
    success: bool, message: str, status_code: int = 200, data: dict[str, Any] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "message": message, "data": data},
    )


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# === Reads ===


@router.get("/api/queue")
async def get_queue(request: Request) -> JSONResponse:
    info = await _container(request).get_queue_handler.handle()
    return JSONResponse(content=info.model_dump(mode="json"))


@router.get("/api/current")
async def get_current(request: Request) -> JSONResponse:
    info = await _container(request).get_current_handler.handle()
    return JSONResponse(content=info.model_dump(mode="json"))


@router.get("/api/prefetch")
async def prefetch_state(request: Request) -> JSONResponse:
    state = await _container(request).prefetch.state()
    return JSONResponse(content=state.model_dump(mode="json"))


# === Queue ===


@router.post("/api/queue")
async def enqueue(request: Request, body: EnqueueBody) -> JSONResponse:
    result = await _container(request).enqueue_track_handler.handle(
        EnqueueTrackCommand(
            track_spec=body.track,
            requester_id=body.requester_id,
            requester_name=body.requester_name,
            group_id=body.group_id,
        )
    )
    data: dict[str, Any] = {"status": result.status.value}
    if result.track is not None:
        data["track"] = result.track.model_dump(mode="json")
    if result.queue_position is not None:
        data["queue_position"] = result.queue_position
    if result.wait_seconds is not None:
        data["wait_seconds"] = result.wait_seconds
    return _reply(result.is_success, result.message, _ENQUEUE_CODES[result.status], data)


@router.post("/api/playlist")
async def enqueue_playlist(request: Request, body: PlaylistBody) -> JSONResponse:
    result = await _container(request).enqueue_playlist_handler.handle(
        EnqueuePlaylistCommand(
            playlist_url=body.url,
            requester_id=body.requester_id,
            requester_name=body.requester_name,
            group_id=body.group_id,
        )
    )
    data = {
        "added": len(result.added),
        "duplicates": result.duplicates,
        "failed": result.failed,
    }
    return _reply(result.is_success, result.message, _PLAYLIST_CODES[result.status], data)


@router.post("/api/remove/{index}")
async def remove(request: Request, index: int) -> JSONResponse:
    result = await _container(request).queue_edit_handler.remove(RemoveTrackCommand(index))
    return _reply(result.is_success, result.message, _EDIT_CODES[result.status])


@router.post("/api/reorder")
async def reorder(request: Request, body: ReorderBody) -> JSONResponse:
    result = await _container(request).queue_edit_handler.reorder(
        ReorderTrackCommand(body.from_index, body.to_index)
    )
    return _reply(result.is_success, result.message, _EDIT_CODES[result.status])


@router.post("/api/prefetch")
async def prefetch_all(request: Request) -> JSONResponse:
    result = await _container(request).prefetch_all_handler.handle()
    return _reply(result.success, result.message, data={"scheduled": result.count})


@router.post("/api/newsession")
async def new_session(request: Request) -> JSONResponse:
    result = await _container(request).new_session_handler.handle()
    return _reply(
        result.success, result.message, 200 if result.success else 503, {"cleared": result.count}
    )


# === Playback ===


@router.post("/api/skip")
async def skip(request: Request, body: SkipBody) -> JSONResponse:
    result = await _container(request).skip_track_handler.handle(
        SkipTrackCommand(requester_id=body.requester_id)
    )
    return _reply(result.is_success, result.message, _SKIP_CODES[result.status])


@router.post("/api/pause")
async def pause(request: Request) -> JSONResponse:
    result = await _container(request).playback_controls_handler.pause()
    return _reply(result.is_success, result.message, 200 if result.is_success else 409)


@router.post("/api/resume")
async def resume(request: Request) -> JSONResponse:
    result = await _container(request).playback_controls_handler.resume()
    return _reply(result.is_success, result.message, 200 if result.is_success else 409)


@router.post("/api/seek")
async def seek(request: Request, body: SeekBody) -> JSONResponse:
    result = await _container(request).playback_controls_handler.seek(SeekCommand(body.time))
    return _reply(
        result.is_success,
        result.message,
        200 if result.is_success else 409,
        {"position_ms": result.position_ms},
    )


# === Settings ===


@router.get("/api/settings")
async def get_settings(request: Request) -> JSONResponse:
    runtime = _container(request).runtime_config
    rate_limit = await runtime.rate_limit()
    performance = await runtime.performance()
    return JSONResponse(
        content={"rate_limit": rate_limit.model_dump(), "performance": performance.model_dump()}
    )


@router.put("/api/settings/rate-limit")
async def update_rate_limit(request: Request, body: RateLimitBody) -> JSONResponse:
    try:
        config = await _container(request).runtime_config.update_rate_limit(
            **body.model_dump(exclude_none=True)
        )
    except ValidationError as e:
        return _reply(False, e.message, 422)
    except PersistenceFailure:
        return _reply(False, UserMessages.STORAGE_UNAVAILABLE, 503)
    return _reply(True, "Rate limit updated", data=config.model_dump())


@router.put("/api/settings/performance")
async def update_performance(request: Request, body: PerformanceBody) -> JSONResponse:
    container = _container(request)
    try:
        config = await container.runtime_config.update_performance(
            **body.model_dump(exclude_none=True)
        )
    except ValidationError as e:
        return _reply(False, e.message, 422)
    except PersistenceFailure:
        return _reply(False, UserMessages.STORAGE_UNAVAILABLE, 503)
    await container.prefetch.trigger()
    return _reply(True, "Performance settings updated", data=config.model_dump())


# === Priority users ===


@router.get("/api/priority")
async def list_priority(request: Request) -> JSONResponse:
    users = await _container(request).priority_service.list_all()
    return JSONResponse(content={"users": users})


@router.post("/api/priority")
async def add_priority(request: Request, body: PriorityUserBody) -> JSONResponse:
    added = await _container(request).priority_service.add(body.user_id, body.name)
    return _reply(added, "VIP added" if added else "Already a VIP")


@router.delete("/api/priority/{user_id}")
async def remove_priority(request: Request, user_id: str) -> JSONResponse:
    removed = await _container(request).priority_service.remove(user_id)
    return _reply(removed, "VIP removed" if removed else "Not a VIP", 200 if removed else 404)
