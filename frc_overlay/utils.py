"""
Utility functions
"""
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, Request
from pydantic.alias_generators import to_camel

from frc_overlay.models import FieldId, FieldState, OverlayState


# Keys of OverlayState that never appear on the wire as-is
_NESTED_KEYS = {"fields"}


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds"""
    return int(time.time() * 1000)


def _alias(model, name: str) -> str:
    info = model.model_fields[name]
    return info.alias or to_camel(name)


def field_wire_key(field_id: FieldId, alias: str) -> str:
    """
    Wire key for a per-field attribute

    Example:
        >>> field_wire_key(FieldId.FIELD1, "redScore")
        'redScore'
        >>> field_wire_key(FieldId.FIELD2, "redScore")
        'field2RedScore'
    """
    if field_id is FieldId.FIELD1:
        return alias
    return f"{field_id.value}{alias[0].upper()}{alias[1:]}"


def _build_key_table() -> Dict[str, Tuple[Optional[FieldId], str]]:
    table: Dict[str, Tuple[Optional[FieldId], str]] = {}
    for name in OverlayState.model_fields:
        if name in _NESTED_KEYS:
            continue
        table[_alias(OverlayState, name)] = (None, name)
    for field_id in FieldId:
        for name in FieldState.model_fields:
            key = field_wire_key(field_id, _alias(FieldState, name))
            # Shared keys win (e.g. field2Enabled)
            table.setdefault(key, (field_id, name))
    return table


# wire key -> (field id or None for shared keys, attribute name)
WIRE_KEYS: Dict[str, Tuple[Optional[FieldId], str]] = _build_key_table()


def resolve_wire_key(key: str) -> Optional[Tuple[Optional[FieldId], str]]:
    return WIRE_KEYS.get(key)


def to_document(state: OverlayState) -> Dict[str, Any]:
    """Flatten OverlayState into the camelCase document served to views"""
    doc = state.model_dump(by_alias=True, mode="json", exclude=_NESTED_KEYS)
    for field_id, field_state in state.fields.items():
        for key, value in field_state.model_dump(by_alias=True, mode="json").items():
            doc[field_wire_key(field_id, key)] = value
    return doc


async def read_json(request: Request) -> Any:
    """Parse a request body as JSON, mapping decode errors to HTTP 400"""
    try:
        return await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON") from exc
