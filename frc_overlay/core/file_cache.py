"""
Modification-time keyed cache of parsed file contents

The scoring software rewrites its files at its own cadence, so a file may
be missing or mid-write at any instant. get() never raises: any stat or
read failure returns the caller's default.
"""
import asyncio
import logging
import os
import stat
from collections import OrderedDict
from typing import Any, Callable, Hashable, NamedTuple, Tuple


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 64


class CachedFile(NamedTuple):
    path: str
    content: Any          # parsed value, not raw text
    modified_time: int    # st_mtime_ns
    size: int


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class FileCache:
    """
    Parsed-content cache, one entry per (path, parser)

    Entries are replaced whole when the file's modification time (or size)
    moves, and the oldest inserted entry is evicted once capacity is
    exceeded.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, reader: Callable[[str], str] = read_text):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._reader = reader
        self._entries: "OrderedDict[Tuple[str, Hashable], CachedFile]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return any(key[0] == path for key in self._entries)

    def clear(self) -> None:
        self._entries.clear()

    async def get(self, path: str, parse: Callable[[str], Any], default: Any) -> Any:
        """
        Return the parsed content of `path`

        Args:
            path: File to read
            parse: Turns raw text into the cached value; must not raise
            default: Returned when the file is absent or unreadable

        Returns:
            Cached value when the modification time is unchanged, else a
            freshly read and parsed value
        """
        key = (path, parse)
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError as e:
            logger.debug(f"stat failed for {path}: {e}")
            self._entries.pop(key, None)
            return default

        if not stat.S_ISREG(st.st_mode):
            return default

        cached = self._entries.get(key)
        if cached is not None and cached.modified_time == st.st_mtime_ns and cached.size == st.st_size:
            return cached.content

        # stat before read: stored content is never older than its stamp
        try:
            raw = await asyncio.to_thread(self._reader, path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"read failed for {path}: {e}")
            return default

        content = parse(raw)
        self._store(key, CachedFile(path, content, st.st_mtime_ns, st.st_size))
        return content

    def _store(self, key: Tuple[str, Hashable], entry: CachedFile) -> None:
        self._entries.pop(key, None)
        self._entries[key] = entry
        while len(self._entries) > self.capacity:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug(f"evicted {evicted_key[0]} from file cache")
