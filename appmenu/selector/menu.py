"""
Menu - Feed entry labels to an external selector and resolve the choice.

The selector (dmenu, rofi -dmenu, fzf, ...) reads one candidate per line
on stdin and prints the chosen line on stdout. Whatever it prints is
resolved to either a known desktop entry or a raw shell command.
"""

import subprocess
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from loguru import logger
from rapidfuzz import fuzz, process, utils

from appmenu.entries.desktop_entry import DesktopEntry
from appmenu.errors import SelectorError


@dataclass(frozen=True)
class Known:
    """The choice named a desktop entry, optionally followed by one argument."""
    entry: DesktopEntry
    args: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class Raw:
    """The choice matched nothing and is run as a shell command."""
    command: str


Resolution = Union[Known, Raw]


class Menu:
    """
    Selector labels for a set of collected entries.

    Labels are the entries' display names. When two entries share a name
    the later one becomes "Name (2)", "Name (3)", ... Visible entries are
    labelled before hidden ones so a hidden duplicate never pushes a
    visible entry to a suffixed label.
    """

    def __init__(self, entries: Sequence[DesktopEntry]):
        self.labels: dict[str, DesktopEntry] = {}
        self._label_by_id: dict[str, str] = {}

        ordered = [e for e in entries if e.visible] + [e for e in entries if not e.visible]
        for entry in ordered:
            label = self._unique_label(entry.display_name)
            self.labels[label] = entry
            self._label_by_id[entry.id] = label

    def _unique_label(self, name: str) -> str:
        label = name
        counter = 1
        while label in self.labels:
            counter += 1
            label = f"{name} ({counter})"
        return label

    def label_for(self, entry: DesktopEntry) -> str:
        return self._label_by_id[entry.id]

    def visible_labels(self, ranked: Sequence[DesktopEntry]) -> list[str]:
        """Labels of the visible entries, in the given order."""
        return [self.label_for(e) for e in ranked if e.visible]

    def resolve(self, choice: str) -> Resolution:
        """
        Map selector output to an entry or a raw command.

        Hidden entries still resolve when their label is typed exactly.
        "Name arg" resolves to Name with arg passed to its %f/%u codes.
        """
        entry = self.labels.get(choice)
        if entry is not None:
            return Known(entry)

        if " " in choice:
            name, arg = choice.rsplit(" ", 1)
            entry = self.labels.get(name)
            if entry is not None and arg:
                return Known(entry, (arg,))

        return Raw(choice)


def render_menu(labels: Sequence[str]) -> str:
    """Newline-terminated selector input, one label per line."""
    return "".join(f"{label}\n" for label in labels)


def fuzzy_filter(labels: Sequence[str], query: str, threshold: int = 50) -> list[str]:
    """
    Narrow labels to those fuzzy-matching query.

    Uses rapidfuzz weighted ratio, case-insensitive. Results are ordered
    by score; equal scores keep the order of labels.
    """
    if not query or not query.strip():
        return list(labels)

    matches = process.extract(
        query,
        list(labels),
        scorer=fuzz.WRatio,
        processor=utils.default_process,
        limit=None,
        score_cutoff=threshold,
    )
    # matches: list of (label, score, index)
    matches.sort(key=lambda m: (-m[1], m[2]))
    return [label for label, _score, _index in matches]


def run_selector(argv: Sequence[str], menu_text: str) -> Optional[str]:
    """
    Run the selector and return the chosen line.

    Args:
        argv: Selector command, e.g. ["dmenu", "-i"]
        menu_text: Candidates, newline-separated

    Returns:
        The first output line without trailing whitespace, or None when
        the user cancelled (non-zero exit or empty output)

    Raises:
        SelectorError: The selector could not be started
    """
    try:
        result = subprocess.run(
            list(argv),
            input=menu_text,
            stdout=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise SelectorError(f"Could not start selector {argv[0]!r}: {e}") from e

    if result.returncode != 0:
        logger.debug(f"Selector exited with status {result.returncode}, treating as cancel")
        return None

    lines = result.stdout.splitlines()
    choice = lines[0].rstrip() if lines else ""
    if not choice:
        logger.debug("Selector returned no choice")
        return None
    return choice
