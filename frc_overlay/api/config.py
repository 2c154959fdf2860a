"""
Configuration endpoints
"""
from fastapi import APIRouter, Depends

from frc_overlay.models import OverlayConfig
from frc_overlay.state import get_config


router = APIRouter(tags=["config"])


@router.get("/config")
async def get_server_config(config: OverlayConfig = Depends(get_config)):
    """Effective settings, including the cadence sync clients should poll at"""
    return {
        "cache_capacity": config.cache_capacity,
        "tournament_refresh_interval": config.tournament_refresh_interval,
        "differential_max_points": config.differential_max_points,
        "sync": {
            "active_interval": config.active_poll_interval,
            "idle_interval": config.idle_poll_interval,
            "reconnect_delay": config.watch_reconnect_delay,
        },
    }
