"""
Application services
Constructed once per process in the lifespan and shared by every router
through app.state.services.
"""
from fastapi import Request

from frc_overlay.core.differential import PointsDifferentialTracker
from frc_overlay.core.field_reader import FieldReader
from frc_overlay.core.file_cache import FileCache
from frc_overlay.core.notifier import ChangeNotifier
from frc_overlay.core.store import OverlayStore
from frc_overlay.models import OverlayConfig


class Services:
    """The single instance of each synchronization component"""

    def __init__(self, config: OverlayConfig):
        self.config = config
        self.cache = FileCache(capacity=config.cache_capacity)
        self.reader = FieldReader(self.cache)
        self.tracker = PointsDifferentialTracker(max_points=config.differential_max_points)
        self.store = OverlayStore(
            self.reader,
            tracker=self.tracker,
            default_match_title=config.default_match_title,
        )
        self.notifier = ChangeNotifier()


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_config(request: Request) -> OverlayConfig:
    return get_services(request).config


def get_store(request: Request) -> OverlayStore:
    return get_services(request).store


def get_reader(request: Request) -> FieldReader:
    return get_services(request).reader


def get_notifier(request: Request) -> ChangeNotifier:
    return get_services(request).notifier


def get_tracker(request: Request) -> PointsDifferentialTracker:
    return get_services(request).tracker
