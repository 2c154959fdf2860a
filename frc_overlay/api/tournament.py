"""
Tournament roster endpoints
"""
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from frc_overlay.core.field_reader import FieldReader
from frc_overlay.services.game_files import players_file, write_players
from frc_overlay.state import get_reader
from frc_overlay.utils import read_json


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tournament-players", tags=["tournament"])


@router.get("")
async def get_players(
    path: Optional[str] = None,
    team: Optional[str] = None,
    reader: FieldReader = Depends(get_reader),
):
    """Players listed in RedPlayers.txt / BluePlayers.txt; empty if the file is missing"""
    if not path or not team:
        raise HTTPException(status_code=400, detail="Missing path or team parameter")
    try:
        file_name = players_file(team)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    players = await reader.read_players(path, file_name)
    return {
        "success": True,
        "players": list(players),
        "filePath": os.path.join(path, file_name),
    }


@router.post("")
async def set_players(request: Request):
    """
    Overwrite a roster file

    Request:
        {"playersPath": "C:/FRC/Tournament", "team": "red", "players": ["alice", "bob"]}
    """
    body = await read_json(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Missing required parameters")

    players_path = body.get("playersPath")
    team = body.get("team")
    players = body.get("players")
    if not players_path or not team or not isinstance(players, list):
        raise HTTPException(status_code=400, detail="Missing required parameters")

    try:
        file_path = await write_players(players_path, team, players)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except OSError as exc:
        logger.error(f"❌ Failed to write players file: {exc}")
        raise HTTPException(status_code=500, detail=f"Failed to write players file: {exc}") from exc

    return {
        "success": True,
        "message": f"{os.path.basename(file_path)} updated successfully",
        "filePath": file_path,
    }
