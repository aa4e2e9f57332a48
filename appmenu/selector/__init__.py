"""
Selector package - External menu program and launching.

The menu module talks to the selector and resolves its output; the
launcher module builds and spawns the final command.
"""

from .launcher import LaunchCommand, build_command, launch
from .menu import Known, Menu, Raw, render_menu, run_selector

__all__ = ["Known", "LaunchCommand", "Menu", "Raw", "build_command", "launch", "render_menu", "run_selector"]
