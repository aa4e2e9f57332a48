"""
Entries package - Desktop entry parsing and collection.

The parser turns one .desktop file into a DesktopEntry; the collector
walks the XDG application directories and merges them by precedence.
"""

from .collector import application_dirs, collect_entries
from .desktop_entry import DesktopEntry, parse_desktop_entry

__all__ = ["DesktopEntry", "application_dirs", "collect_entries", "parse_desktop_entry"]
