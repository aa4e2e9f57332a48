"""
Desktop Entry Parser - Read one XDG .desktop file into a DesktopEntry.

Only the [Desktop Entry] group is read. Values go through the general
escape rule (\\s, \\n, \\t, \\r, \\\\) before use; unknown escapes are kept
as-is. The Exec value is then split into words by its quoting rules and
its field codes (%f, %U, %i, ...) are expanded against an argument list
that is empty unless the user typed one after the entry name.

See https://specifications.freedesktop.org/desktop-entry-spec/latest/
"""

import os
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from appmenu.errors import DesktopEntryError

DESKTOP_SUFFIX = ".desktop"
MAIN_GROUP = "[Desktop Entry]"

_KV_PAIR = re.compile(
    r"""^
    (
        [A-Za-z0-9-]+       # key
        (?:\[[^\]]+\])?     # optional locale suffix
    )
    \s*=\s*                 # whitespace around '=' is ignored
    (.*)                    # value
    $""",
    re.VERBOSE,
)
_LOCALIZED_NAME = re.compile(r"^Name\[([^\]]+)\]$")
_FIELD_CODE = re.compile(r"%(.)")
_STANDALONE_CODES = frozenset(("%f", "%F", "%u", "%U", "%i"))
_DQUOTE_ESCAPABLE = frozenset("\"`$\\")

_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


@dataclass(frozen=True)
class DesktopEntry:
    """A launchable application parsed from a .desktop file."""
    id: str
    display_name: str
    exec_template: str
    terminal: bool = False
    no_display: bool = False
    hidden: bool = False
    entry_type: str = "Application"
    try_exec: Optional[str] = None
    path: Optional[str] = None
    icon: Optional[str] = None
    location: str = ""

    @property
    def visible(self) -> bool:
        """Whether the entry belongs in the menu list."""
        return not (self.hidden or self.no_display)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DesktopEntry":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def unescape_value(value: str) -> str:
    """
    Apply the general string escape rule to a desktop entry value.

    Examples:
        unescape_value(r"Foo\\sBar")  -> "Foo Bar"
        unescape_value(r"a\\\\nb")    -> "a\\nb"
        unescape_value(r"a\\qb")      -> "a\\qb"  (unknown escape kept)
    """
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(_ESCAPES.get(nxt, ch + nxt))
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def locale_keys(lc_messages: str) -> list[str]:
    """
    Locale suffixes to try for Name[...] keys, highest priority first.

    LC_MESSAGES value     | Keys in order of matching
    ----------------------|-------------------------------------------------
    lang_COUNTRY@MODIFIER | lang_COUNTRY@MODIFIER, lang_COUNTRY, lang@MODIFIER, lang
    lang_COUNTRY          | lang_COUNTRY, lang
    lang@MODIFIER         | lang@MODIFIER, lang
    lang                  | lang

    The encoding part (e.g. ".UTF-8") is ignored.
    """
    lc = re.sub(r"\.[^@]+", "", lc_messages)
    keys = [lc]
    if re.search(r"_[^@]+@", lc):
        keys.append(re.sub(r"@.*", "", lc))
        keys.append(re.sub(r"_[^@]+", "", lc))
    lang = re.sub(r"[_@].*", "", lc)
    if lang != lc:
        keys.append(lang)
    return keys


def current_locale_keys(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Locale keys for the running environment (see man:locale(7))."""
    env = os.environ if environ is None else environ
    for var in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = env.get(var)
        if value:
            return locale_keys(value)
    return locale_keys("C")


def parse_desktop_entry(
    content: str,
    entry_id: str,
    location: str = "",
    locales: Sequence[str] = (),
) -> DesktopEntry:
    """
    Parse desktop entry text.

    Args:
        content: Full file contents
        entry_id: Desktop file id (filename without .desktop)
        location: Path of the file, used for the %k field code
        locales: Locale keys from locale_keys(), highest priority first

    Returns:
        DesktopEntry

    Raises:
        DesktopEntryError: Exec is missing, empty, or has unbalanced quoting
    """
    values: dict[str, str] = {}
    localized_name = None
    localized_rank = len(locales)
    in_main_group = False

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("["):
            in_main_group = line == MAIN_GROUP
            continue
        if not in_main_group or line.startswith("#"):
            continue

        match = _KV_PAIR.match(line)
        if not match:
            continue
        key, value = match.group(1), match.group(2)

        localized = _LOCALIZED_NAME.match(key)
        if localized:
            locale = localized.group(1)
            if locale in locales:
                rank = list(locales).index(locale)
                if rank < localized_rank:
                    localized_name = value
                    localized_rank = rank
            continue

        values[key] = value

    exec_template = unescape_value(values.get("Exec", ""))
    if "Exec" not in values:
        raise DesktopEntryError(f"{entry_id}: missing Exec key")
    if not exec_template.strip():
        raise DesktopEntryError(f"{entry_id}: Exec key is empty")

    name = localized_name if localized_name is not None else values.get("Name", "")
    name = unescape_value(name).strip()

    entry = DesktopEntry(
        id=entry_id,
        display_name=name or entry_id,
        exec_template=exec_template,
        terminal=_is_true(values.get("Terminal")),
        no_display=_is_true(values.get("NoDisplay")),
        hidden=_is_true(values.get("Hidden")),
        entry_type=unescape_value(values.get("Type", "")) or "Application",
        try_exec=_optional(values.get("TryExec")),
        path=_optional(values.get("Path")),
        icon=_optional(values.get("Icon")),
        location=location,
    )
    # Reject templates that cannot be launched now rather than at launch time
    check_exec(entry)
    return entry


def load_desktop_entry(path: Path, entry_id: str, locales: Sequence[str] = ()) -> DesktopEntry:
    """Read and parse a .desktop file from disk."""
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise DesktopEntryError(f"Could not read {path}: {e}") from e
    return parse_desktop_entry(content, entry_id, str(path), locales)


def check_exec(entry: DesktopEntry) -> None:
    """
    Make sure an entry's Exec names a program.

    The template must tokenize, and with no arguments it must still expand
    to at least one word. "Exec=%f" on its own names nothing to run.

    Raises:
        DesktopEntryError: The Exec value is malformed or names no program
    """
    tokens = tokenize_exec(entry.exec_template)
    argv = expand_field_codes(tokens, entry)
    if not argv or not argv[0] or tokens[0] in _STANDALONE_CODES:
        raise DesktopEntryError(f"{entry.id}: Exec {entry.exec_template!r} names no program")


def tokenize_exec(exec_template: str) -> list[str]:
    """
    Split an Exec value into argv tokens.

    Whitespace separates arguments. Single quotes group literally. Inside
    double quotes a backslash only escapes ``"``, `` ` ``, ``$`` and
    ``\\``; any other backslash is kept. Outside quotes a backslash escapes
    the next character.

    Raises:
        DesktopEntryError: Unbalanced quotes or a trailing backslash
    """
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    quote = None
    i = 0

    while i < len(exec_template):
        char = exec_template[i]
        if quote == '"':
            if char == "\\" and exec_template[i + 1:i + 2] in _DQUOTE_ESCAPABLE:
                current.append(exec_template[i + 1])
                i += 2
                continue
            if char == '"':
                quote = None
            else:
                current.append(char)
        elif quote == "'":
            if char == "'":
                quote = None
            else:
                current.append(char)
        elif char in " \t\n":
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        elif char == "\\":
            if i + 1 == len(exec_template):
                raise DesktopEntryError(f"Malformed Exec value {exec_template!r}: trailing backslash")
            current.append(exec_template[i + 1])
            in_token = True
            i += 2
            continue
        elif char in "\"'":
            quote = char
            in_token = True
        else:
            current.append(char)
            in_token = True
        i += 1

    if quote is not None:
        raise DesktopEntryError(f"Malformed Exec value {exec_template!r}: unbalanced {quote} quote")
    if in_token:
        tokens.append("".join(current))
    return tokens


def expand_field_codes(
    tokens: Sequence[str],
    entry: DesktopEntry,
    args: Sequence[str] = (),
) -> list[str]:
    """
    Substitute field codes in tokenized Exec arguments.

    Standalone %f/%u expand to the first argument, %F/%U to every argument,
    and %i to "--icon <Icon>". A standalone code with nothing to expand to
    is dropped instead of leaving an empty argument behind. Codes inside a
    larger token are replaced in place; deprecated and unknown codes
    become empty.
    """
    args = list(args)
    argv: list[str] = []

    for token in tokens:
        if token in ("%F", "%U"):
            argv.extend(args)
            continue
        if token in ("%f", "%u"):
            argv.extend(args[:1])
            continue
        if token == "%i":
            if entry.icon:
                argv.extend(["--icon", entry.icon])
            continue

        expanded = _FIELD_CODE.sub(lambda m: _inline_code(m.group(1), entry, args), token)
        if token and not expanded:
            continue
        argv.append(expanded)

    return argv


def _inline_code(code: str, entry: DesktopEntry, args: list[str]) -> str:
    if code == "%":
        return "%"
    if code in "fu":
        return args[0] if args else ""
    if code in "FU":
        return " ".join(args)
    if code == "i":
        return entry.icon or ""
    if code == "c":
        return entry.display_name
    if code == "k":
        return entry.location
    # %d %D %n %N %v %m are deprecated
    return ""


def _is_true(value: Optional[str]) -> bool:
    return value is not None and value.strip() == "true"


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = unescape_value(value).strip()
    return value or None
