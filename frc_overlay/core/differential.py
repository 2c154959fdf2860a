"""
Points differential tracker

Records (red - blue) over the course of a match for the results graph.
"""
import logging
from collections import deque
from typing import Deque, Dict, List

from frc_overlay.utils import now_ms


logger = logging.getLogger(__name__)

FINISHED_STATE = "FINISHED"


class PointsDifferentialTracker:
    def __init__(self, max_points: int = 2000):
        self._data: Deque[Dict] = deque(maxlen=max_points)
        self._active = False
        self.game_file_location = ""

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self, game_file_location: str = "") -> None:
        self.game_file_location = game_file_location
        self._data.clear()
        self._active = True
        logger.info(f"Points differential logging started ({game_file_location or 'no location'})")

    def stop(self) -> None:
        self._active = False
        logger.info(f"Points differential logging stopped, {len(self._data)} data points")

    def clear(self) -> None:
        self._data.clear()
        self._active = False

    def log_point(self, red_score: int, blue_score: int, game_time: str, game_state: str) -> bool:
        """
        Append a sample if logging and the scores or clock moved

        Returns:
            True if a sample was recorded
        """
        if not self._active or game_state == FINISHED_STATE:
            return False

        last = self._data[-1] if self._data else None
        if last is not None and (
            last["redScore"] == red_score
            and last["blueScore"] == blue_score
            and last["gameTime"] == game_time
        ):
            return False

        self._data.append({
            "timestamp": now_ms(),
            "redScore": red_score,
            "blueScore": blue_score,
            "differential": red_score - blue_score,
            "gameTime": game_time,
        })
        return True

    def data(self) -> List[Dict]:
        return [dict(point) for point in self._data]
