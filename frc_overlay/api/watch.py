"""
File change push channel (Server-Sent Events)
"""
import asyncio
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from frc_overlay.core.notifier import CONNECTED_EVENT, ChangeNotifier
from frc_overlay.models import OverlayConfig, WatchPaths
from frc_overlay.state import get_config, get_notifier
from frc_overlay.utils import read_json


logger = logging.getLogger(__name__)

router = APIRouter(tags=["watch"])


def _sse(message: dict) -> str:
    return f"data: {json.dumps(message)}\n\n"


@router.get("/api/overlay-watch")
async def watch_stream(
    request: Request,
    notifier: ChangeNotifier = Depends(get_notifier),
    config: OverlayConfig = Depends(get_config),
):
    """
    Event stream of file changes

    Sends {"type": "connected"} first, then one
    {"type": "file_changed", "field", "fileName", "filePath", "timestamp"}
    per change. Comment lines keep idle connections open.
    """
    subscription = notifier.subscribe()
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"📡 Watch subscriber connected from {client_ip}")

    async def events():
        try:
            yield _sse({"type": CONNECTED_EVENT})
            while True:
                if await request.is_disconnected():
                    break
                message = await subscription.get(timeout=config.watch_keepalive)
                if message is None:
                    yield ": keepalive\n\n"
                    continue
                yield _sse(message)
        finally:
            if notifier.topic.unsubscribe(subscription) == 0:
                # Last subscriber gone: release the OS watches
                await asyncio.to_thread(notifier.stop_watching)
            logger.info(f"📡 Watch subscriber {client_ip} disconnected")

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/api/overlay-watch")
async def watch_control(request: Request, notifier: ChangeNotifier = Depends(get_notifier)):
    """
    Start or stop watching

    Request:
        {"action": "start", "paths": {"field1": "...", "field2": "..."}}
        {"action": "stop"}
    """
    body = await read_json(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request")

    action = body.get("action")
    if action == "start" and body.get("paths"):
        try:
            paths = WatchPaths.model_validate(body["paths"])
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="Invalid paths") from exc
        watched = await asyncio.to_thread(notifier.start_watching, paths.model_dump())
        return {"status": "watching started", "paths": watched}
    if action == "stop":
        await asyncio.to_thread(notifier.stop_watching)
        return {"status": "watching stopped"}

    raise HTTPException(status_code=400, detail="Invalid action")
