# appmenu Services Package
"""
Persistence services for the appmenu launcher.

Services handle launch history and the parsed-entry cache.
"""

from .cache import EntryCache
from .history import History, rank_entries

__all__ = ["EntryCache", "History", "rank_entries"]
