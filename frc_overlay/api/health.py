"""
Health check and system status endpoints
"""
from fastapi import APIRouter, Depends

from frc_overlay.state import Services, get_services


VERSION = "1.0.0"

router = APIRouter(tags=["health"])


@router.get("/")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint"""
    store = services.store
    return {
        "status": "ok",
        "message": "FRC Overlay State Server",
        "version": VERSION,
        "mode": store.state.mode.value,
        "last_updated": store.last_updated,
        "active_fields": [field_id.value for field_id, _ in store.active_fields()],
        "watching": services.notifier.watching,
        "subscribers": len(services.notifier.topic),
        "cached_files": len(services.cache),
    }
