# appmenu Launcher Package
"""
Desktop-entry application menu for dmenu-style selectors.

Pipeline:
  - Entries (collect): XDG desktop entries, highest-precedence directory wins
  - Services (rank): launch history, parsed-entry cache
  - Selector (display/launch): external menu program, detached launch
"""

__version__ = "0.1.0"
