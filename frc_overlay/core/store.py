"""
Overlay state store

Owns the single OverlayState document. Two paths mutate it:

- read(): passive polling. Each configured field directory is read and
  folded in; lastUpdated moves only when an observable value changed.
- apply_partial_update(): operator edits. Always bumps lastUpdated.

Precedence between the two: every field keeps the last snapshot read from
its directory (its baseline). Polling writes only the values whose *file*
content changed since that baseline, so an operator value for a
file-derived key survives until the file itself changes.
"""
import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from frc_overlay.core.differential import PointsDifferentialTracker
from frc_overlay.core.equality import changed_values, values_equal
from frc_overlay.core.field_reader import FieldReader
from frc_overlay.models import FieldId, FieldSnapshot, OverlayState, TournamentSnapshot
from frc_overlay.utils import now_ms, resolve_wire_key, to_document


logger = logging.getLogger(__name__)

LAST_UPDATED_KEY = "lastUpdated"


class InvalidPatchError(ValueError):
    """Operator patch rejected; the stored state was not modified"""


def _apply_values(target: BaseModel, values: Dict[str, Any]) -> bool:
    changed = False
    for name, value in values.items():
        if not values_equal(getattr(target, name), value):
            setattr(target, name, value)
            changed = True
    return changed


class OverlayStore:
    """
    Single writer of the overlay state

    All callers share one instance per process; asyncio serializes the
    synchronous compare-and-write sections, so no lock is taken.
    """

    def __init__(
        self,
        reader: FieldReader,
        tracker: Optional[PointsDifferentialTracker] = None,
        default_match_title: str = "FRC Stream Overlay",
        clock: Callable[[], int] = now_ms,
    ):
        self.reader = reader
        self.tracker = tracker
        self._clock = clock
        self._state = OverlayState(match_title=default_match_title, last_updated=clock())
        self._baselines: Dict[FieldId, FieldSnapshot] = {}
        self._roster_baseline: Optional[TournamentSnapshot] = None
        # Start order of read() calls and, per field, the latest one merged
        self._read_seq = 0
        self._merged_seq: Dict[FieldId, int] = {}

    @property
    def state(self) -> OverlayState:
        return self._state

    @property
    def last_updated(self) -> int:
        return self._state.last_updated

    def document(self) -> Dict[str, Any]:
        return to_document(self._state)

    def active_fields(self) -> List[Tuple[FieldId, str]]:
        """(field, directory) pairs that are file-driven right now"""
        active = []
        field1 = self._state.field(FieldId.FIELD1).game_file_location
        if field1:
            active.append((FieldId.FIELD1, field1))
        field2 = self._state.field(FieldId.FIELD2).game_file_location
        if self._state.field2_enabled and field2:
            active.append((FieldId.FIELD2, field2))
        return active

    def tournament_directory(self) -> str:
        return (
            self._state.tournament_file_location
            or self._state.field(FieldId.FIELD1).game_file_location
        )

    def game_file_locations(self) -> List[str]:
        """Every directory the operator has pointed the overlay at"""
        locations = [field_state.game_file_location for field_state in self._state.fields.values()]
        locations.append(self._state.tournament_file_location)
        return [location for location in locations if location]

    def _touch(self) -> None:
        # Strictly increasing even within one millisecond
        self._state.last_updated = max(self._clock(), self._state.last_updated + 1)

    # ==================== POLLING PATH ====================

    async def read(self) -> OverlayState:
        """
        Refresh file-derived values and return the stored state

        Safe to call at sub-second frequency: unchanged files are served
        from the FileCache and an unchanged snapshot writes nothing.
        """
        self._read_seq += 1
        seq = self._read_seq
        targets = self.active_fields()
        snapshots = await asyncio.gather(
            *(self.reader.read_field(directory) for _, directory in targets)
        )

        # Compare and write with no await in between: readers never see a half-merged state
        changed = False
        for (field_id, directory), snapshot in zip(targets, snapshots):
            if self._state.field(field_id).game_file_location != directory:
                # Directory was changed by an operator while this read was in flight
                continue
            if self._merged_seq.get(field_id, 0) >= seq:
                # A read started later already merged newer files for this field
                continue
            self._merged_seq[field_id] = seq
            if self._merge_field(field_id, snapshot):
                changed = True

        if changed:
            self._touch()
        return self._state

    def _merge_field(self, field_id: FieldId, snapshot: FieldSnapshot) -> bool:
        baseline = self._baselines.get(field_id)
        self._baselines[field_id] = snapshot
        updates = changed_values(baseline, snapshot)
        if not updates:
            return False

        field_state = self._state.field(field_id)
        changed = _apply_values(field_state, updates)
        if changed and field_id is FieldId.FIELD1 and self.tracker is not None:
            self.tracker.log_point(
                field_state.red_score,
                field_state.blue_score,
                field_state.match_time,
                field_state.game_state,
            )
        return changed

    async def refresh_tournament(self) -> OverlayState:
        """
        Re-read roster and match number files (tournament mode only)

        Runs on its own slower cadence; same baseline rule as read().
        """
        if not self._state.tournament_mode:
            return self._state
        directory = self.tournament_directory()
        if not directory:
            return self._state

        snapshot = await self.reader.read_roster(directory)
        if not self._state.tournament_mode or directory != self.tournament_directory():
            return self._state

        baseline, self._roster_baseline = self._roster_baseline, snapshot
        updates = changed_values(baseline, snapshot)
        if updates and _apply_values(self._state, updates):
            logger.info(f"Tournament roster updated from {directory}: {sorted(updates)}")
            self._touch()
        return self._state

    # ==================== OPERATOR PATH ====================

    def apply_partial_update(self, patch: Any) -> OverlayState:
        """
        Shallow-merge an operator patch into the state

        Args:
            patch: Mapping of wire keys (e.g. "mode", "field2RedAllianceName")
                   to new values; each key fully replaces its value

        Returns:
            The updated state, with lastUpdated bumped unconditionally

        Raises:
            InvalidPatchError: Patch is not a mapping, names an unknown key,
                               or carries a value that fails validation
        """
        if not isinstance(patch, Mapping):
            raise InvalidPatchError("Patch must be a JSON object")

        shared: Dict[str, Any] = {}
        per_field: Dict[FieldId, Dict[str, Any]] = {}
        unknown = []
        for key, value in patch.items():
            if key == LAST_UPDATED_KEY:
                continue
            resolved = resolve_wire_key(key) if isinstance(key, str) else None
            if resolved is None:
                unknown.append(str(key))
                continue
            field_id, name = resolved
            if field_id is None:
                shared[name] = value
            else:
                per_field.setdefault(field_id, {})[name] = value
        if unknown:
            raise InvalidPatchError(f"Unknown keys: {', '.join(sorted(unknown))}")

        # Validate on a copy, swap only when every value is accepted
        candidate = self._state.model_copy(deep=True)
        try:
            for name, value in shared.items():
                setattr(candidate, name, value)
            for field_id, values in per_field.items():
                target = candidate.field(field_id)
                for name, value in values.items():
                    setattr(target, name, value)
        except ValidationError as exc:
            raise InvalidPatchError(str(exc)) from exc

        previous_roster_dir = self.tournament_directory()
        for field_id in FieldId:
            if candidate.field(field_id).game_file_location != self._state.field(field_id).game_file_location:
                self._baselines.pop(field_id, None)
                # Reads already in flight belong to the old directory
                self._merged_seq[field_id] = self._read_seq

        self._state = candidate
        if self.tournament_directory() != previous_roster_dir:
            self._roster_baseline = None
        self._touch()

        logger.info(f"Operator update: {sorted(k for k in patch if k != LAST_UPDATED_KEY)}")
        return self._state
