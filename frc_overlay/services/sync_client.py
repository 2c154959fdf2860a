"""
Sync client - keeps a viewer in step with the overlay state server

Polls GET /api/overlay-state at an adaptive cadence and calls back only
when lastUpdated advances. Optionally listens to the /api/overlay-watch
event stream and re-reads immediately on a file change; polling keeps
running underneath as the fallback.
"""
import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

import httpx
from pydantic import BaseModel, Field

from frc_overlay.core.scheduling import PeriodicTask


logger = logging.getLogger(__name__)

STATE_PATH = "/api/overlay-state"
WATCH_PATH = "/api/overlay-watch"
CONFIG_PATH = "/config"
FINISHED_STATE = "FINISHED"

StateCallback = Callable[[Dict[str, Any]], None]


class Cadence(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


class SyncOptions(BaseModel):
    """Polling and push settings for one subscription"""
    active_interval: float = Field(default=0.1, gt=0)   # seconds, during a match
    idle_interval: float = Field(default=1.0, gt=0)     # seconds, otherwise
    use_change_events: bool = False
    reconnect_delay: float = Field(default=5.0, gt=0)
    timeout: float = Field(default=2.0, gt=0)


def is_active_state(doc: Dict[str, Any]) -> bool:
    """
    A match is in progress on any field

    Active when mode is "match", or either field's game state is set and
    not FINISHED.
    """
    if doc.get("mode") == "match":
        return True
    for key in ("gameState", "field2GameState"):
        game_state = str(doc.get(key) or "").strip()
        if game_state and game_state != FINISHED_STATE:
            return True
    return False


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
    """Decode one `data: {...}` line; comments and other fields give None"""
    if not line.startswith("data:"):
        return None
    try:
        event = json.loads(line[len("data:"):].strip())
    except ValueError:
        logger.debug(f"Ignoring malformed event line: {line!r}")
        return None
    return event if isinstance(event, dict) else None


class StateSubscription:
    """
    One callback's poll loop

    State machine: IDLE <-> ACTIVE driven by each successful read,
    STOPPED once closed. Every tick cancels a read still in flight, and
    responses from superseded reads are dropped.
    """

    def __init__(self, client: "SyncClient", callback: StateCallback, options: SyncOptions):
        self._client = client
        self._callback = callback
        self.options = options
        self.cadence = Cadence.IDLE
        self.last_updated: Optional[int] = None
        self.connected = False

        self._seq = 0
        self._inflight: Optional[asyncio.Task] = None
        self._poller = PeriodicTask(self._tick, self.interval, name="overlay-poll")
        self._listener: Optional[asyncio.Task] = None
        self._watch_request: Optional[asyncio.Task] = None
        self._watch_paths: Dict[str, Optional[str]] = {}
        self._requested_paths: Optional[Dict[str, Optional[str]]] = None

    def interval(self) -> float:
        if self.cadence is Cadence.ACTIVE:
            return self.options.active_interval
        return self.options.idle_interval

    def start(self) -> None:
        self._poller.start()
        if self.options.use_change_events:
            self._listener = asyncio.create_task(self._listen(), name="overlay-watch")

    def close(self) -> None:
        self.cadence = Cadence.STOPPED
        self.connected = False
        self._poller.cancel()
        for task in (self._inflight, self._listener, self._watch_request):
            if task is not None:
                task.cancel()

    # ==================== POLLING ====================

    async def _tick(self) -> None:
        self.request_read()

    def request_read(self) -> None:
        """Start a read now, superseding any read still in flight"""
        if self.cadence is Cadence.STOPPED:
            return
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._seq += 1
        self._inflight = asyncio.create_task(self._fetch(self._seq))

    async def _fetch(self, seq: int) -> None:
        try:
            doc = await self._client.read()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Overlay state read failed: {e}")
            return
        if seq != self._seq or self.cadence is Cadence.STOPPED:
            return
        if isinstance(doc, dict):
            self._handle(doc)

    def _handle(self, doc: Dict[str, Any]) -> None:
        try:
            last_updated = int(doc.get("lastUpdated") or 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring state document with bad lastUpdated: {doc.get('lastUpdated')!r}")
            return

        self.cadence = Cadence.ACTIVE if is_active_state(doc) else Cadence.IDLE
        self._watch_paths = {
            "field1": doc.get("gameFileLocation") or None,
            "field2": (doc.get("field2GameFileLocation") or None) if doc.get("field2Enabled") else None,
        }
        if self.connected and self._watch_paths != self._requested_paths:
            self._schedule_watch_request()

        if self.last_updated is not None and last_updated <= self.last_updated:
            return
        self.last_updated = last_updated
        try:
            self._callback(doc)
        except Exception:
            logger.exception("Overlay state callback failed")

    # ==================== CHANGE EVENTS ====================

    async def _listen(self) -> None:
        while self.cadence is not Cadence.STOPPED:
            try:
                async with self._client.http.stream("GET", WATCH_PATH, timeout=None) as response:
                    response.raise_for_status()
                    async for line in response.aiter_lines():
                        event = parse_sse_line(line)
                        if event is not None:
                            self._on_event(event)
            except httpx.HTTPError as e:
                logger.debug(f"Change event stream error: {e}")
            self.connected = False
            self._requested_paths = None
            if self.cadence is Cadence.STOPPED:
                break
            await asyncio.sleep(self.options.reconnect_delay)

    def _on_event(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        if event_type == "connected":
            self.connected = True
            self._schedule_watch_request()
        elif event_type == "file_changed":
            self.request_read()

    def _schedule_watch_request(self) -> None:
        if not any(self._watch_paths.values()):
            return
        self._requested_paths = dict(self._watch_paths)
        if self._watch_request is not None and not self._watch_request.done():
            self._watch_request.cancel()
        self._watch_request = asyncio.create_task(self._client.start_watching(self._requested_paths))


class SyncClient:
    """
    HTTP client for the overlay state server

    Usage:
        async with SyncClient("http://localhost:8000") as client:
            unsubscribe = client.subscribe(render)
            ...
            unsubscribe()
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        options: Optional[SyncOptions] = None,
    ):
        self.options = options or SyncOptions()
        self.http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=self.options.timeout)
        self._subscriptions: Set[StateSubscription] = set()

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def read(self) -> Dict[str, Any]:
        response = await self.http.get(STATE_PATH, headers={"Cache-Control": "no-cache"})
        response.raise_for_status()
        return response.json()

    async def server_options(self, use_change_events: bool = False) -> SyncOptions:
        """SyncOptions using the cadence advertised by GET /config"""
        response = await self.http.get(CONFIG_PATH)
        response.raise_for_status()
        return SyncOptions(
            use_change_events=use_change_events,
            timeout=self.options.timeout,
            **response.json().get("sync", {}),
        )

    async def update(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.http.post(STATE_PATH, json=patch)
        response.raise_for_status()
        return response.json()

    async def start_watching(self, paths: Dict[str, Optional[str]]) -> None:
        try:
            response = await self.http.post(WATCH_PATH, json={"action": "start", "paths": paths})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Could not start file watching for {paths}: {e}")

    async def stop_watching(self) -> None:
        try:
            response = await self.http.post(WATCH_PATH, json={"action": "stop"})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Could not stop file watching: {e}")

    def subscribe(self, callback: StateCallback, options: Optional[SyncOptions] = None) -> Callable[[], None]:
        """
        Start delivering state documents to `callback`

        Must be called from a running event loop. The callback fires on the
        first successful read and then whenever lastUpdated advances.

        Returns:
            Function that stops this subscription
        """
        subscription = StateSubscription(self, callback, options or self.options)
        self._subscriptions.add(subscription)
        subscription.start()

        def unsubscribe() -> None:
            subscription.close()
            self._subscriptions.discard(subscription)

        return unsubscribe

    async def aclose(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.close()
        self._subscriptions.clear()
        await self.http.aclose()
