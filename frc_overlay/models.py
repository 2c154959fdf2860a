"""
Data models for the overlay state server
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OverlayMode(str, Enum):
    """Which presentation view the overlay shows"""
    STARTING_SOON = "starting-soon"
    MATCH = "match"
    RESULTS = "results"


class FieldId(str, Enum):
    """Competition field identifier; field1 keys are unprefixed on the wire"""
    FIELD1 = "field1"
    FIELD2 = "field2"


class OprEntry(BaseModel):
    """One player's contribution score from OPR.txt"""
    username: str = ""
    score: float = 0.0


class FieldSnapshot(BaseModel):
    """Values read from one field directory in a single poll cycle"""
    red_score: int = 0
    blue_score: int = 0
    match_time: str = "00:00"
    game_state: str = ""
    red_opr: List[OprEntry] = []
    blue_opr: List[OprEntry] = []


class TournamentSnapshot(BaseModel):
    """Roster and match number files read in tournament mode"""
    red_players: List[str] = []
    blue_players: List[str] = []
    match_number: str = ""


class FieldState(BaseModel):
    """
    Everything the overlay knows about one field

    The first block mirrors FieldSnapshot and is refreshed from the field
    directory; the rest is operator-controlled (branding, series).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    game_file_location: str = ""

    # File-derived
    red_score: int = 0
    blue_score: int = 0
    match_time: str = "00:00"
    game_state: str = ""
    red_opr: List[OprEntry] = Field(default_factory=list, alias="redOPR")
    blue_opr: List[OprEntry] = Field(default_factory=list, alias="blueOPR")

    # Operator-controlled
    red_alliance_name: str = "Red Alliance"
    blue_alliance_name: str = "Blue Alliance"
    red_team_id: str = ""
    blue_team_id: str = ""
    red_primary_color: str = "#dc2626"
    red_secondary_color: str = "#7f1d1d"
    blue_primary_color: str = "#2563eb"
    blue_secondary_color: str = "#1e3a8a"
    alliance_branding: bool = False
    flipped_teams: bool = False
    series_enabled: bool = False
    series_type: str = "bo3"
    red_series_score: int = 0
    blue_series_score: int = 0


def _default_fields() -> Dict[FieldId, FieldState]:
    return {field_id: FieldState() for field_id in FieldId}


class OverlayState(BaseModel):
    """The single shared document rendered by every overlay view"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    mode: OverlayMode = OverlayMode.STARTING_SOON
    match_title: str = "FRC Stream Overlay"
    starting_time: str = ""
    match_number: str = ""
    field2_enabled: bool = False

    tournament_mode: bool = False
    tournament_file_location: str = ""
    red_players: List[str] = []
    blue_players: List[str] = []

    fields: Dict[FieldId, FieldState] = Field(default_factory=_default_fields)
    last_updated: int = 0  # epoch ms, bumped only on observable change

    def field(self, field_id: FieldId) -> FieldState:
        return self.fields[field_id]


class WatchPaths(BaseModel):
    """Directories the change notifier should watch"""
    field1: Optional[str] = None
    field2: Optional[str] = None


class OverlayConfig(BaseModel):
    """Server configuration, loaded from YAML (every key optional)"""
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    cache_capacity: int = Field(default=64, ge=1, le=10000)
    tournament_refresh_interval: float = Field(default=5.0, ge=1.0)

    # Sync client cadence (seconds)
    active_poll_interval: float = Field(default=0.1, gt=0)
    idle_poll_interval: float = Field(default=1.0, gt=0)
    watch_reconnect_delay: float = Field(default=5.0, gt=0)
    watch_keepalive: float = Field(default=15.0, gt=0)

    default_match_title: str = "FRC Stream Overlay"
    differential_max_points: int = Field(default=2000, ge=1)
    static_dir: str = "static"
