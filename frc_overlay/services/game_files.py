"""
Game file directory helpers used by the dashboard

Listing a directory's .txt files for the file viewer and writing the
tournament roster files.
"""
import asyncio
import logging
import os
from typing import Dict, List

from frc_overlay.core.field_reader import BLUE_PLAYERS_FILE, RED_PLAYERS_FILE


logger = logging.getLogger(__name__)

TEAM_FILES = {"red": RED_PLAYERS_FILE, "blue": BLUE_PLAYERS_FILE}


def is_url(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


def players_file(team: str) -> str:
    """
    Roster file name for a team color

    Raises:
        ValueError: If team is not "red" or "blue"
    """
    try:
        return TEAM_FILES[team]
    except KeyError:
        raise ValueError('Team must be "red" or "blue"') from None


def _list_text_files(directory: str) -> Dict:
    try:
        if not os.path.isdir(directory):
            if os.path.exists(directory):
                return {"files": [], "error": "Path is not a directory"}
            return {"files": [], "error": f"Failed to access directory: {directory} does not exist"}
        names = sorted(name for name in os.listdir(directory) if name.lower().endswith(".txt"))
    except OSError as e:
        return {"files": [], "error": f"Failed to access directory: {e}"}

    files = []
    for name in names:
        path = os.path.join(directory, name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                files.append({"name": name, "content": f.read()})
        except (OSError, UnicodeDecodeError) as e:
            files.append({"name": name, "content": "", "error": f"Failed to read file: {e}"})
    return {"files": files}


async def list_game_files(location: str) -> Dict:
    """
    Read every .txt file in a game file directory

    Returns:
        {"files": [{"name", "content", "error"?}], "error"?} - problems are
        reported in "error", never raised
    """
    if not location:
        return {"files": []}
    if is_url(location):
        return {"files": [], "error": "URL-based file locations require server configuration"}
    return await asyncio.to_thread(_list_text_files, location)


def _write_lines(path: str, lines: List[str]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))


async def write_players(players_path: str, team: str, players: List[str]) -> str:
    """
    Write a roster file, one player per line

    Returns:
        Path of the written file
    """
    file_path = os.path.join(players_path, players_file(team))
    await asyncio.to_thread(_write_lines, file_path, [str(p) for p in players])
    logger.info(f"Wrote {len(players)} players to {file_path}")
    return file_path


def is_within(path: str, directories: List[str]) -> bool:
    """
    True if `path` names a file directly or nested inside one of `directories`

    Pure path arithmetic, no filesystem access.
    """
    target = os.path.normcase(os.path.abspath(path))
    for directory in directories:
        root = os.path.normcase(os.path.abspath(directory))
        try:
            common = os.path.commonpath([target, root])
        except ValueError:
            # Different drives
            continue
        if common == root and target != root:
            return True
    return False
