"""
Launcher - Turn a resolved choice into a command and start it detached.

The same resolution is used for ranking: an entry's history key is the
command it would launch with no arguments, so what gets recorded on
launch is what gets looked up on the next run.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from loguru import logger

from appmenu.entries.desktop_entry import DesktopEntry, expand_field_codes, tokenize_exec
from appmenu.errors import LaunchError
from appmenu.selector.menu import Known, Raw, Resolution
from appmenu.utils.helpers import split_command

DEFAULT_TERMINAL = "xterm"

# Spawned children are never waited on; hold them until the process exits
_children: list[subprocess.Popen] = []


@dataclass(frozen=True)
class LaunchCommand:
    """A command ready to spawn."""
    argv: tuple[str, ...]
    key: str
    cwd: Optional[str] = None


def terminal_command(setting: str = "", environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """
    Terminal emulator argv.

    Uses the configured value, then $TERMINAL, then xterm.
    """
    env = os.environ if environ is None else environ
    command = setting or env.get("TERMINAL") or DEFAULT_TERMINAL
    return split_command(command, "terminal")


def entry_argv(entry: DesktopEntry, terminal: Sequence[str], args: Sequence[str] = ()) -> list[str]:
    """Expanded Exec argv, wrapped in the terminal when the entry asks for one."""
    argv = expand_field_codes(tokenize_exec(entry.exec_template), entry, args)
    if not argv or not argv[0]:
        raise LaunchError(f"{entry.id}: Exec {entry.exec_template!r} names no program")
    if entry.terminal:
        return [*terminal, "-e", *argv]
    return argv


def build_command(resolution: Resolution, terminal: Sequence[str]) -> LaunchCommand:
    """
    Build the command for a resolved choice.

    Known entries run their Exec argv directly and are keyed by its
    shell-quoted form. Raw text runs through sh -c and is keyed verbatim.

    Raises:
        LaunchError: A known entry expands to no program
    """
    if isinstance(resolution, Known):
        entry = resolution.entry
        argv = entry_argv(entry, terminal, resolution.args)
        return LaunchCommand(tuple(argv), shlex.join(argv), entry.path)
    if isinstance(resolution, Raw):
        return LaunchCommand(("sh", "-c", resolution.command), resolution.command)
    raise TypeError(f"Unknown resolution: {resolution!r}")


def history_key(entry: DesktopEntry, terminal: Sequence[str]) -> str:
    """Key an entry is ranked by: its command when launched without arguments."""
    return build_command(Known(entry), terminal).key


def spawn_detached(argv: Sequence[str], cwd: Optional[str] = None) -> subprocess.Popen:
    """Start argv in its own session with stdio on /dev/null; do not wait."""
    return subprocess.Popen(
        list(argv),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def launch(command: LaunchCommand) -> subprocess.Popen:
    """
    Spawn a LaunchCommand.

    Returns:
        The detached child process

    Raises:
        LaunchError: The argv is empty or the program could not be started
    """
    if not command.argv:
        raise LaunchError(f"Nothing to launch for {command.key!r}")

    cwd = command.cwd
    if cwd and not os.path.isdir(cwd):
        logger.warning(f"Working directory {cwd} does not exist, ignoring Path")
        cwd = None

    try:
        process = spawn_detached(command.argv, cwd)
    except OSError as e:
        raise LaunchError(f"Failed to launch {command.key!r}: {e}") from e

    _children.append(process)
    logger.debug(f"Launched {command.key!r} as pid {process.pid}")
    return process
