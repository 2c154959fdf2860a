"""
Change notifier: filesystem watch -> broadcast

Watches the field file set under each configured directory with watchdog
and publishes a `file_changed` event per change. Latency optimization
only: clients keep polling, so nothing breaks if a watch cannot be set up.
"""
import logging
import os
import threading
from typing import Callable, Dict, Mapping, Optional, Union

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from frc_overlay.core.field_reader import FIELD_FILES
from frc_overlay.core.pubsub import Subscription, Topic
from frc_overlay.models import FieldId
from frc_overlay.utils import now_ms


logger = logging.getLogger(__name__)

CONNECTED_EVENT = "connected"
FILE_CHANGED_EVENT = "file_changed"

# Opened/closed events are skipped: our own reads would trigger them
_CHANGE_EVENTS = {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}


class FieldChangeHandler(FileSystemEventHandler):
    """Forwards changes to the watched file names of one field directory"""

    def __init__(self, field_id: FieldId, directory: str, on_change: Callable[[FieldId, str, str], None]):
        super().__init__()
        self.field_id = field_id
        self.directory = os.path.abspath(directory)
        self._on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        for raw_path in (event.src_path, getattr(event, "dest_path", "")):
            if not raw_path:
                continue
            path = os.fsdecode(raw_path)
            name = os.path.basename(path)
            if name in FIELD_FILES and os.path.dirname(os.path.abspath(path)) == self.directory:
                self._on_change(self.field_id, name, path)
                return


class ChangeNotifier:
    """
    Process-wide watch configuration plus subscriber set

    Only one watch configuration is active at a time; start_watching()
    replaces the previous one. When the last subscriber leaves, watches are
    torn down so OS watch handles do not leak.
    """

    def __init__(self, topic: Optional[Topic] = None, observer_factory: Callable[[], Observer] = Observer):
        self.topic = topic or Topic()
        self._observer_factory = observer_factory
        self._observer = None
        self._paths: Dict[FieldId, str] = {}
        # start/stop run on worker threads; one reconfiguration at a time
        self._lock = threading.RLock()

    @property
    def watching(self) -> bool:
        return self._observer is not None

    @property
    def paths(self) -> Dict[str, str]:
        return {field_id.value: directory for field_id, directory in self._paths.items()}

    def start_watching(self, paths: Mapping[Union[FieldId, str], Optional[str]]) -> Dict[str, str]:
        """
        Watch the field files under each given directory

        Args:
            paths: {"field1": dir, "field2": dir}; empty entries are skipped

        Returns:
            The field -> directory pairs actually being watched. A directory
            that cannot be watched is logged and left out.

        Blocking (stat calls, observer thread start/join): call it from a
        worker thread when serving requests.
        """
        with self._lock:
            self._stop_watching()
            return self._start_watching(paths)

    def _start_watching(self, paths: Mapping[Union[FieldId, str], Optional[str]]) -> Dict[str, str]:
        observer = self._observer_factory()
        watched: Dict[FieldId, str] = {}
        for key, directory in paths.items():
            if not directory:
                continue
            field_id = FieldId(key)
            if not os.path.isdir(directory):
                logger.warning(f"Cannot watch {field_id.value}: {directory} is not a directory")
                continue
            try:
                observer.schedule(FieldChangeHandler(field_id, directory, self._broadcast), directory, recursive=False)
            except OSError as e:
                logger.warning(f"Cannot watch {field_id.value} at {directory}: {e}")
                continue
            watched[field_id] = directory

        if not watched:
            return {}

        try:
            observer.start()
        except OSError as e:
            logger.warning(f"File watcher failed to start: {e}")
            return {}

        self._observer = observer
        self._paths = watched
        logger.info(f"Watching {self.paths}")
        return self.paths

    def stop_watching(self) -> None:
        with self._lock:
            self._stop_watching()

    def _stop_watching(self) -> None:
        observer, self._observer = self._observer, None
        self._paths = {}
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=2.0)
        logger.info("File watching stopped")

    def subscribe(self) -> Subscription:
        return self.topic.subscribe()

    def unsubscribe(self, subscription: Subscription) -> None:
        if self.topic.unsubscribe(subscription) == 0:
            self.stop_watching()

    def _broadcast(self, field_id: FieldId, file_name: str, file_path: str) -> None:
        self.topic.publish({
            "type": FILE_CHANGED_EVENT,
            "field": field_id.value,
            "fileName": file_name,
            "filePath": file_path,
            "timestamp": now_ms(),
        })
