"""
History Service - Track launch counts and rank entries by usage.

History maps the exact command that was launched to the number of times it
was launched:

    {"history": {"firefox": 12, "xterm -e htop": 3}}

It is loaded once at startup, updated in memory when the user picks
something, and rewritten in full before the command is spawned. A missing
or unreadable file is treated as empty history; a failed write only costs
ranking accuracy on the next run.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class History:
    """
    Launch counters keyed by command string.

    Methods:
        load(path): Read history from disk (classmethod)
        count(key): Launch count for a command, 0 if unknown
        record(key): Increment a command's count
        save(): Rewrite the history file
    """

    def __init__(self, counts: Optional[dict[str, int]] = None, path: Optional[Path] = None):
        self.counts: dict[str, int] = dict(counts or {})
        self.path = Path(path) if path is not None else None

    @classmethod
    def load(cls, path: Path) -> "History":
        """
        Load history from a JSON file.

        Args:
            path: History file location

        Returns:
            History bound to path. Empty when the file is missing,
            unreadable, or not valid history JSON.
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"History file not found at {path}, starting empty")
            return cls(path=path)

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load history from {path}: {e}")
            return cls(path=path)

        raw = data.get("history") if isinstance(data, dict) else None
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed history file {path}")
            return cls(path=path)

        counts = {}
        for key, count in raw.items():
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                logger.warning(f"Ignoring bad history count for {key!r}: {count!r}")
                continue
            counts[key] = count

        logger.debug(f"Loaded {len(counts)} history records from {path}")
        return cls(counts, path)

    def count(self, key: str) -> int:
        return self.counts.get(key, 0)

    def record(self, key: str) -> int:
        """
        Record a launch of key.

        Returns:
            The new count
        """
        self.counts[key] = self.counts.get(key, 0) + 1
        logger.debug(f"Recorded launch for {key!r} ({self.counts[key]})")
        return self.counts[key]

    def save(self) -> bool:
        """
        Rewrite the history file with the current counters.

        Returns:
            True if written, False if there is no path or the write failed
        """
        if self.path is None:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".history-", suffix=".json", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({"history": self.counts}, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.warning(f"Could not save history to {self.path}: {e}")
            return False

        logger.debug(f"Saved {len(self.counts)} history records to {self.path}")
        return True


def rank_entries(entries: Iterable[T], history: History, resolve: Callable[[T], str]) -> list[T]:
    """
    Order entries by descending launch count.

    Args:
        entries: Entries in collection order
        history: Launch counters
        resolve: Maps an entry to the command key it would launch with

    Returns:
        New list; entries with equal counts keep their relative order
    """
    return sorted(entries, key=lambda entry: history.count(resolve(entry)), reverse=True)
