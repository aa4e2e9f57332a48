"""
Entry Collector - Gather desktop entries from the XDG application dirs.

Directories are searched in precedence order ($XDG_DATA_HOME first, then
each of $XDG_DATA_DIRS). The first file seen for a desktop id wins, so a
user's copy in ~/.local/share/applications overrides the system one.
"""

import os
import shutil
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Optional, Sequence

from loguru import logger

from appmenu.entries.desktop_entry import (
    DESKTOP_SUFFIX,
    DesktopEntry,
    load_desktop_entry,
)
from appmenu.errors import DesktopEntryError, NoApplicationDirectoriesError
from appmenu.utils.helpers import xdg_data_home

DEFAULT_DATA_DIRS = "/usr/local/share/:/usr/share/"


def application_dirs(environ: Optional[Mapping[str, str]] = None) -> list[Path]:
    """
    Application directories in precedence order.

    Returns:
        [$XDG_DATA_HOME/applications, <each $XDG_DATA_DIRS entry>/applications]
    """
    env = os.environ if environ is None else environ
    data_dirs = env.get("XDG_DATA_DIRS") or DEFAULT_DATA_DIRS

    dirs = [xdg_data_home(env)]
    dirs.extend(Path(d) for d in data_dirs.split(":") if d)
    return [d / "applications" for d in dirs]


def collect_entries(
    dirs: Sequence[Path],
    locales: Sequence[str] = (),
    cache=None,
    environ: Optional[Mapping[str, str]] = None,
) -> list[DesktopEntry]:
    """
    Parse every .desktop file in dirs, keeping one entry per id.

    Args:
        dirs: Application directories, highest precedence first
        locales: Locale keys for localized names
        cache: Optional EntryCache consulted before parsing
        environ: Environment used for TryExec lookups

    Returns:
        Entries in directory order, then filename order within a directory

    Raises:
        NoApplicationDirectoriesError: Not a single directory could be listed
    """
    env = os.environ if environ is None else environ
    entries: list[DesktopEntry] = []
    seen: set[str] = set()
    readable = 0

    for app_dir in dirs:
        try:
            candidates = sorted(
                p for p in Path(app_dir).iterdir() if p.name.endswith(DESKTOP_SUFFIX)
            )
        except OSError as e:
            logger.debug(f"Skipping application dir {app_dir}: {e}")
            continue
        readable += 1

        for path in candidates:
            entry_id = path.name[: -len(DESKTOP_SUFFIX)]
            if entry_id in seen or not path.is_file():
                continue

            entry = _load(path, entry_id, locales, cache)
            if entry is None:
                continue
            seen.add(entry_id)

            if entry.entry_type != "Application":
                logger.debug(f"Ignoring {path}: Type={entry.entry_type}")
                continue
            if entry.try_exec and not try_exec_available(entry.try_exec, env):
                logger.debug(f"Hiding {entry_id}: TryExec {entry.try_exec} not found")
                entry = replace(entry, hidden=True)

            entries.append(entry)

    if readable == 0:
        raise NoApplicationDirectoriesError(dirs)

    logger.debug(f"Collected {len(entries)} desktop entries from {readable} dirs")
    return entries


def _load(path: Path, entry_id: str, locales: Sequence[str], cache) -> Optional[DesktopEntry]:
    """Parse one file, going through the cache when there is one."""
    mtime = None
    if cache is not None:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            mtime = None
        if mtime is not None:
            cached = cache.lookup(path, mtime)
            if cached is not None:
                return cached

    try:
        entry = load_desktop_entry(path, entry_id, locales)
    except DesktopEntryError as e:
        logger.warning(f"Could not parse {path}: {e}")
        return None

    if cache is not None and mtime is not None:
        cache.store(path, mtime, entry)
    return entry


def try_exec_available(try_exec: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Check whether a TryExec program is installed.

    Absolute paths must be executable files; bare names are looked up
    on $PATH.
    """
    env = os.environ if environ is None else environ
    if "/" in try_exec:
        return os.path.isfile(try_exec) and os.access(try_exec, os.X_OK)
    return shutil.which(try_exec, path=env.get("PATH", os.defpath)) is not None
