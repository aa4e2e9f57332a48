# appmenu Utilities Package
"""
Shared utility functions and helpers for the appmenu launcher.
"""

from .helpers import load_settings, split_command

__all__ = ["load_settings", "split_command"]
