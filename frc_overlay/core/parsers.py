"""
Parsers for the text files written by the scoring software

Every parser is total: malformed input degrades to a default value
instead of raising, so one bad file never blanks a whole snapshot.
"""
import math
import re
from typing import List, Tuple

from frc_overlay.models import OprEntry


# Leading integer, same leniency as the scoring tool's own readers ("14\r\n", "12.0")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(raw: str) -> int:
    """
    Parse an integer score

    Examples:
        >>> parse_int(" 14\\n")
        14
        >>> parse_int("abc")
        0
    """
    match = _LEADING_INT.match(raw)
    if not match:
        return 0
    return int(match.group(1))


def parse_float(raw: str) -> float:
    try:
        value = float(raw.strip())
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def parse_text(raw: str) -> str:
    return raw.strip()


def parse_lines(raw: str) -> List[str]:
    """Non-empty, trimmed lines in file order"""
    return [line.strip() for line in raw.splitlines() if line.strip()]


def parse_opr_line(line: str) -> OprEntry:
    """
    Parse one `username: score` line

    Split on the first colon only. A line without a colon is a username
    with score 0.
    """
    username, sep, score = line.partition(":")
    if not sep:
        return OprEntry(username=line.strip(), score=0.0)
    return OprEntry(username=username.strip(), score=parse_float(score))


def parse_opr(raw: str) -> List[OprEntry]:
    return [parse_opr_line(line) for line in parse_lines(raw)]


def split_opr(entries: List[OprEntry]) -> Tuple[List[OprEntry], List[OprEntry]]:
    """
    Split OPR entries into (red, blue) by position

    The first ceil(N/2) lines are red, the rest blue.
    """
    half = (len(entries) + 1) // 2
    return list(entries[:half]), list(entries[half:])
