"""
Entry Cache - Skip re-parsing desktop files that have not changed.

Parsed entries are stored in a versioned JSON file keyed by the absolute
path of the .desktop file. An entry is reused only when the file's mtime
matches the one recorded with it, and only when it was parsed for the same
locale keys (localized names depend on them).
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from appmenu.entries.desktop_entry import DesktopEntry, check_exec
from appmenu.errors import DesktopEntryError

CACHE_VERSION = 1


class EntryCache:
    """Parsed desktop entries keyed by file path and mtime."""

    def __init__(self, path: Optional[Path] = None, locales: Sequence[str] = ()):
        self.path = Path(path) if path is not None else None
        self.locales = list(locales)
        self._records: dict[str, dict] = {}
        self._seen: set[str] = set()
        self._dirty = False

    @classmethod
    def load(cls, path: Path, locales: Sequence[str] = ()) -> "EntryCache":
        """
        Read the cache file.

        A missing file, another cache version, or different locale keys
        give an empty cache. Corrupt or unreadable files also give an empty
        cache and log a warning.
        """
        cache = cls(path, locales)
        if not cache.path.exists():
            return cache

        try:
            with open(cache.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load entry cache from {cache.path}: {e}")
            return cache

        if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
            logger.debug(f"Discarding entry cache {cache.path}: version mismatch")
            return cache
        if data.get("locales") != cache.locales:
            logger.debug(f"Discarding entry cache {cache.path}: locale changed")
            return cache

        entries = data.get("entries")
        if isinstance(entries, dict):
            cache._records = {k: v for k, v in entries.items() if isinstance(v, dict)}
        logger.debug(f"Loaded {len(cache._records)} cached entries from {cache.path}")
        return cache

    def lookup(self, file_path: Path, mtime: float) -> Optional[DesktopEntry]:
        """Cached entry for file_path if it was stored with the same mtime."""
        self._seen.add(str(file_path))
        record = self._records.get(str(file_path))
        if record is None or record.get("mtime") != mtime:
            return None
        try:
            entry = DesktopEntry.from_dict(record["entry"])
            check_exec(entry)
        except (KeyError, TypeError, AttributeError, DesktopEntryError):
            logger.debug(f"Dropping unusable cache record for {file_path}")
            del self._records[str(file_path)]
            self._dirty = True
            return None
        return entry

    def store(self, file_path: Path, mtime: float, entry: DesktopEntry) -> None:
        self._seen.add(str(file_path))
        self._records[str(file_path)] = {"mtime": mtime, "entry": entry.to_dict()}
        self._dirty = True

    def __len__(self) -> int:
        return len(self._records)

    def save(self) -> bool:
        """
        Write the cache back if anything changed.

        Records for files that were neither looked up nor stored since the
        cache was loaded are dropped first. That covers deleted files and
        files shadowed by a higher-precedence copy.

        Returns:
            True if the file was written
        """
        stale = [key for key in self._records if key not in self._seen]
        for key in stale:
            del self._records[key]
        if stale:
            logger.debug(f"Pruned {len(stale)} stale cache records")
            self._dirty = True

        if self.path is None or not self._dirty:
            return False

        data = {"version": CACHE_VERSION, "locales": self.locales, "entries": self._records}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".entries-", suffix=".json", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.warning(f"Could not save entry cache to {self.path}: {e}")
            return False

        self._dirty = False
        return True
