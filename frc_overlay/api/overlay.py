"""
Overlay state read/write endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from frc_overlay.core.store import InvalidPatchError, OverlayStore
from frc_overlay.state import get_store
from frc_overlay.utils import read_json


logger = logging.getLogger(__name__)

router = APIRouter(tags=["overlay"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _apply(store: OverlayStore, patch) -> None:
    try:
        store.apply_partial_update(patch)
    except InvalidPatchError as exc:
        logger.warning(f"Rejected overlay update: {exc}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/api/overlay-state")
async def get_overlay_state(store: OverlayStore = Depends(get_store)):
    """
    Current overlay state

    Refreshes file-derived values first; lastUpdated only moves when
    something observable changed.
    """
    await store.read()
    return JSONResponse(store.document(), headers=NO_CACHE_HEADERS)


@router.post("/api/overlay-state")
async def update_overlay_state(request: Request, store: OverlayStore = Depends(get_store)):
    """
    Operator update

    Request:
        Any subset of the state document's keys, e.g.
        {"mode": "match", "field2RedAllianceName": "Team 254"}

    Response:
        The full updated document
    """
    patch = await read_json(request)
    _apply(store, patch)
    return JSONResponse(store.document(), headers=NO_CACHE_HEADERS)


@router.post("/api/overlay-batch")
async def batch_update(request: Request, store: OverlayStore = Depends(get_store)):
    """Same as POST /api/overlay-state, acknowledges without the document"""
    patch = await read_json(request)
    _apply(store, patch)
    return JSONResponse({"success": True, "lastUpdated": store.last_updated}, headers=NO_CACHE_HEADERS)
