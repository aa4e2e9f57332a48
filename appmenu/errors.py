"""
Exception types raised by appmenu.

Only errors that stop the launcher from showing a menu or starting the
chosen command escape to the CLI; everything else is logged and skipped
inside the component that hit it.
"""


class AppMenuError(Exception):
    """Base class for fatal appmenu errors."""


class ConfigError(AppMenuError):
    """Settings file or command-line configuration is malformed."""


class DesktopEntryError(AppMenuError):
    """A desktop entry file could not be read or parsed."""


class NoApplicationDirectoriesError(AppMenuError):
    """None of the application directories could be listed."""

    def __init__(self, dirs):
        self.dirs = list(dirs)
        searched = ", ".join(str(d) for d in self.dirs) or "(none)"
        super().__init__(f"No readable application directories (searched: {searched})")


class SelectorError(AppMenuError):
    """The external selector program could not be started."""


class LaunchError(AppMenuError):
    """The resolved command could not be spawned."""
