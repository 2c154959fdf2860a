"""
FastAPI main application
FRC Stream Overlay - State Synchronization Server

Modular architecture with separated API routers in frc_overlay/api/:
- health.py: Health check and system status
- config.py: Effective configuration and client cadence
- overlay.py: Overlay state read / operator update
- watch.py: File change event stream and watch control
- files.py: Scores, single-file reads, directory listing
- tournament.py: Tournament roster files
- differential.py: Points differential log

All routers reach the shared components via frc_overlay.state.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import os

from frc_overlay.config import load_settings
from frc_overlay.core.scheduling import PeriodicTask
from frc_overlay.models import OverlayConfig
from frc_overlay.state import Services

# Import all API routers
from frc_overlay.api import health, overlay, watch, files, tournament, differential
from frc_overlay.api import config as config_router


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config: Optional[OverlayConfig] = None) -> FastAPI:
    """Build the application around one set of shared services"""
    config = config or load_settings()
    logging.getLogger().setLevel(config.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        services = Services(config)
        app.state.services = services

        # Roster files change rarely: own slower loop, off the hot read path
        roster_refresh = PeriodicTask(
            services.store.refresh_tournament,
            config.tournament_refresh_interval,
            name="tournament-refresh",
        )
        roster_refresh.start()
        logger.info(f"✅ Overlay server started (file cache capacity {config.cache_capacity})")

        yield

        # Shutdown
        await roster_refresh.stop()
        await asyncio.to_thread(services.notifier.stop_watching)
        logger.info("🛑 Overlay server shutting down")

    app = FastAPI(
        title="FRC Stream Overlay",
        description="Game file synchronization server for FRC stream overlays",
        version=health.VERSION,
        lifespan=lifespan,
    )

    # CORS middleware (OBS browser sources load from other origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==================== INCLUDE ROUTERS ====================

    # Health check (GET /)
    app.include_router(health.router)

    # Config (GET /config)
    app.include_router(config_router.router)

    # Overlay state (GET/POST /api/overlay-state, POST /api/overlay-batch)
    app.include_router(overlay.router)

    # Change events (GET/POST /api/overlay-watch)
    app.include_router(watch.router)

    # Game files (GET /api/scores, GET /api/read-file, POST /api/game-files)
    app.include_router(files.router)

    # Tournament rosters (GET/POST /api/tournament-players)
    app.include_router(tournament.router)

    # Points differential (/api/differential)
    app.include_router(differential.router)

    # ==================== STATIC FILES ====================

    # Overlay views are served from here when present
    if os.path.isdir(config.static_dir):
        app.mount("/static", StaticFiles(directory=config.static_dir), name="static")

    return app


app = create_app()


# ==================== RUN SERVER ====================

def run() -> None:
    import uvicorn
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
