"""
appmenu - Command-line entry point.

Runs one pass: collect desktop entries, rank them by launch history,
show them in the selector, then launch whatever was picked.

Usage:
  appmenu
  appmenu --selector "rofi -dmenu -i -p run" --terminal foot
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from appmenu import __version__
from appmenu.entries.collector import application_dirs, collect_entries
from appmenu.entries.desktop_entry import current_locale_keys
from appmenu.errors import AppMenuError
from appmenu.selector.launcher import build_command, history_key, launch, terminal_command
from appmenu.selector.menu import Menu, fuzzy_filter, render_menu, run_selector
from appmenu.services.cache import EntryCache
from appmenu.services.history import History, rank_entries
from appmenu.utils.helpers import (
    default_cache_path,
    default_history_path,
    load_settings,
    split_command,
)

LOG_FORMAT = "<level>{level: <8}</level> | {message}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appmenu",
        description="Pick an installed application with a dmenu-style selector and launch it.",
    )
    parser.add_argument("-s", "--selector", help='selector command (default: "dmenu -i")')
    parser.add_argument("-t", "--terminal", help="terminal emulator for Terminal=true entries")
    parser.add_argument("--history-file", type=Path, help="launch history file")
    parser.add_argument("--no-history", action="store_true", help="do not read or write launch history")
    parser.add_argument("--no-cache", action="store_true", help="parse every desktop file, ignoring the cache")
    parser.add_argument("-c", "--config", type=Path, help="settings file (TOML)")
    parser.add_argument("-f", "--filter", metavar="QUERY", help="only show entries fuzzy-matching QUERY")
    parser.add_argument("-n", "--dry-run", action="store_true", help="print the command instead of running it")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format=LOG_FORMAT)


def run(args: argparse.Namespace) -> int:
    """
    Run one launcher pass.

    Returns:
        Exit status (0 for a launch or a cancelled selection)

    Raises:
        AppMenuError: Fatal configuration, selector or launch failure
    """
    settings = load_settings(args.config)

    selector = split_command(args.selector or settings["selector"]["command"], "selector")
    terminal = terminal_command(args.terminal or settings["launcher"]["terminal"])

    history_enabled = settings["history"]["enabled"] and not args.no_history
    if history_enabled:
        history_path = args.history_file or Path(settings["history"]["path"] or default_history_path())
        history = History.load(history_path)
    else:
        history = History()

    locales = current_locale_keys()
    cache = None
    if settings["cache"]["enabled"] and not args.no_cache:
        cache = EntryCache.load(Path(settings["cache"]["path"] or default_cache_path()), locales)

    entries = collect_entries(application_dirs(), locales, cache)
    if cache is not None:
        cache.save()

    ranked = rank_entries(entries, history, lambda entry: history_key(entry, terminal))
    menu = Menu(entries)
    labels = menu.visible_labels(ranked)
    if args.filter:
        labels = fuzzy_filter(labels, args.filter, settings["search"]["fuzzy_threshold"])

    choice = run_selector(selector, render_menu(labels))
    if choice is None:
        logger.debug("Selection cancelled, nothing to launch")
        return 0

    command = build_command(menu.resolve(choice), terminal)
    if args.dry_run:
        print(command.key)
        return 0

    if history_enabled:
        history.record(command.key)
        history.save()

    launch(command)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        return run(args)
    except AppMenuError as e:
        logger.error(str(e))
        return 1
