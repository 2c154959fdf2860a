"""
Points differential endpoints
"""
from fastapi import APIRouter, Depends, Request

from frc_overlay.core.differential import PointsDifferentialTracker
from frc_overlay.core.store import OverlayStore
from frc_overlay.models import FieldId
from frc_overlay.state import get_store, get_tracker
from frc_overlay.utils import read_json


router = APIRouter(prefix="/api/differential", tags=["differential"])


@router.get("")
async def get_differential(tracker: PointsDifferentialTracker = Depends(get_tracker)):
    return {
        "active": tracker.is_active,
        "gameFileLocation": tracker.game_file_location,
        "points": tracker.data(),
    }


@router.post("/start")
async def start_differential(
    request: Request,
    tracker: PointsDifferentialTracker = Depends(get_tracker),
    store: OverlayStore = Depends(get_store),
):
    """Start a fresh log (optional body: {"gameFileLocation": "..."})"""
    location = store.state.field(FieldId.FIELD1).game_file_location
    if await request.body():
        body = await read_json(request)
        if isinstance(body, dict) and body.get("gameFileLocation"):
            location = str(body["gameFileLocation"])
    tracker.start(location)
    return {"success": True, "active": True}


@router.post("/stop")
async def stop_differential(tracker: PointsDifferentialTracker = Depends(get_tracker)):
    tracker.stop()
    return {"success": True, "active": False, "points": len(tracker.data())}


@router.post("/clear")
async def clear_differential(tracker: PointsDifferentialTracker = Depends(get_tracker)):
    tracker.clear()
    return {"success": True}
