"""
Value equality for change detection

Per-shape comparisons instead of serializing both sides: scalars compare
with ==, lists element-wise, OPR entries by username and score.
"""
from typing import Any, Callable, Dict, Optional, Sequence

from pydantic import BaseModel

from frc_overlay.models import OprEntry


def scalars_equal(a: Any, b: Any) -> bool:
    return a == b


def opr_entries_equal(a: OprEntry, b: OprEntry) -> bool:
    return a.username == b.username and a.score == b.score


def lists_equal(a: Sequence, b: Sequence, item_equal: Callable[[Any, Any], bool] = scalars_equal) -> bool:
    if len(a) != len(b):
        return False
    return all(item_equal(x, y) for x, y in zip(a, b))


def values_equal(a: Any, b: Any) -> bool:
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if any(isinstance(item, OprEntry) for item in (*a[:1], *b[:1])):
            return lists_equal(a, b, opr_entries_equal)
        return lists_equal(a, b)
    if isinstance(a, OprEntry) and isinstance(b, OprEntry):
        return opr_entries_equal(a, b)
    return scalars_equal(a, b)


def changed_values(old: Optional[BaseModel], new: BaseModel) -> Dict[str, Any]:
    """
    Attributes of `new` whose value differs from `old`

    With no `old` every attribute counts as changed.
    """
    changes = {}
    for name in type(new).model_fields:
        value = getattr(new, name)
        if old is None or not values_equal(getattr(old, name), value):
            changes[name] = value
    return changes
