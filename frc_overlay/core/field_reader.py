"""
Field reader: turns a field directory into a FieldSnapshot
"""
import asyncio
import os
from typing import Optional, Tuple

from frc_overlay.core.file_cache import FileCache
from frc_overlay.core.parsers import parse_int, parse_lines, parse_opr, parse_text, split_opr
from frc_overlay.models import FieldSnapshot, TournamentSnapshot


SCORE_RED_FILE = "Score_R.txt"
SCORE_BLUE_FILE = "Score_B.txt"
TIMER_FILE = "Timer.txt"
OPR_FILE = "OPR.txt"
GAME_STATE_FILE = "GameState.txt"

RED_PLAYERS_FILE = "RedPlayers.txt"
BLUE_PLAYERS_FILE = "BluePlayers.txt"
MATCH_NUMBER_FILE = "MatchNumber.txt"

FIELD_FILES = (SCORE_RED_FILE, SCORE_BLUE_FILE, TIMER_FILE, OPR_FILE, GAME_STATE_FILE)
TOURNAMENT_FILES = (RED_PLAYERS_FILE, BLUE_PLAYERS_FILE, MATCH_NUMBER_FILE)

DEFAULT_MATCH_TIME = "00:00"


class FieldReader:
    """Reads the fixed file set of one directory through a shared FileCache"""

    def __init__(self, cache: FileCache):
        self.cache = cache

    async def read_field(self, directory: str) -> FieldSnapshot:
        """
        Read every field file in `directory`

        A missing directory or file yields the default for that value;
        an empty `directory` yields an all-default snapshot without
        touching the disk.
        """
        if not directory:
            return FieldSnapshot()

        red, blue, timer, game_state, opr = await asyncio.gather(
            self.cache.get(os.path.join(directory, SCORE_RED_FILE), parse_int, 0),
            self.cache.get(os.path.join(directory, SCORE_BLUE_FILE), parse_int, 0),
            self.cache.get(os.path.join(directory, TIMER_FILE), parse_text, ""),
            self.cache.get(os.path.join(directory, GAME_STATE_FILE), parse_text, ""),
            self.cache.get(os.path.join(directory, OPR_FILE), parse_opr, []),
        )
        red_opr, blue_opr = split_opr(opr)

        return FieldSnapshot(
            red_score=red,
            blue_score=blue,
            match_time=timer or DEFAULT_MATCH_TIME,
            game_state=game_state,
            red_opr=red_opr,
            blue_opr=blue_opr,
        )

    async def read_scores(self, directory: str) -> Tuple[int, int]:
        """Only the two score files; (0, 0) when unset or missing"""
        if not directory:
            return 0, 0
        red, blue = await asyncio.gather(
            self.cache.get(os.path.join(directory, SCORE_RED_FILE), parse_int, 0),
            self.cache.get(os.path.join(directory, SCORE_BLUE_FILE), parse_int, 0),
        )
        return red, blue

    async def read_roster(self, directory: str) -> TournamentSnapshot:
        if not directory:
            return TournamentSnapshot()

        red_players, blue_players, match_number = await asyncio.gather(
            self.cache.get(os.path.join(directory, RED_PLAYERS_FILE), parse_lines, []),
            self.cache.get(os.path.join(directory, BLUE_PLAYERS_FILE), parse_lines, []),
            self.cache.get(os.path.join(directory, MATCH_NUMBER_FILE), parse_text, ""),
        )
        return TournamentSnapshot(
            red_players=red_players,
            blue_players=blue_players,
            match_number=match_number,
        )

    async def read_players(self, directory: str, file_name: str) -> list:
        return await self.cache.get(os.path.join(directory, file_name), parse_lines, [])

    async def read_text(self, path: Optional[str], default: str = "0") -> str:
        """Trimmed content of a single file, `default` on any failure"""
        if not path:
            return default
        content = await self.cache.get(path, parse_text, None)
        return default if content is None else content
