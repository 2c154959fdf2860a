"""
Direct game file endpoints (scores, single file, directory listing)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from frc_overlay.api.overlay import NO_CACHE_HEADERS
from frc_overlay.core.field_reader import FieldReader
from frc_overlay.core.store import OverlayStore
from frc_overlay.services.game_files import is_within, list_game_files
from frc_overlay.state import get_reader, get_store
from frc_overlay.utils import read_json


logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


@router.get("/api/scores")
async def get_scores(
    field1: Optional[str] = None,
    field2: Optional[str] = None,
    reader: FieldReader = Depends(get_reader),
):
    """
    Red/blue scores for up to two field directories

    Response:
        {"field1": {"redScore": 0, "blueScore": 0}, "field2": {...}}
    """
    result = {}
    for name, directory in (("field1", field1), ("field2", field2)):
        red, blue = await reader.read_scores(directory or "")
        result[name] = {"redScore": red, "blueScore": blue}
    return JSONResponse(result, headers=NO_CACHE_HEADERS)


@router.get("/api/read-file")
async def read_file(
    path: Optional[str] = None,
    reader: FieldReader = Depends(get_reader),
    store: OverlayStore = Depends(get_store),
):
    """
    Trimmed content of one file; "0" when missing or unreadable

    Only files under a configured game file location are served, anything
    else reads as "0" without touching the disk or the cache.
    """
    if path and not is_within(path, store.game_file_locations()):
        logger.warning(f"Refused read-file outside game file locations: {path}")
        return PlainTextResponse("0", headers=NO_CACHE_HEADERS)
    content = await reader.read_text(path)
    return PlainTextResponse(content, headers=NO_CACHE_HEADERS)


@router.post("/api/game-files")
async def game_files(request: Request):
    """
    Every .txt file in a game file directory

    Request:
        {"gameFileLocation": "C:/FRC/Field1"}
    """
    body = await read_json(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request")
    location = body.get("gameFileLocation") or ""
    if not isinstance(location, str):
        raise HTTPException(status_code=400, detail="gameFileLocation must be a string")
    return await list_game_files(location)
