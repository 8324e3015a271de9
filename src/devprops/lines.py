"""Parsing and editing rules for property lines.

Two line formats are handled here:

* ``getprop`` output, one property per line in brackets: ``[key]: [value]``.
* property files (``build.prop`` and friends): ``key=value`` with ``#``
  comments and blank lines mixed in.

The edit helpers never touch a line that does not match the key, so comments,
ordering and unrelated entries survive a rewrite verbatim.
"""

from __future__ import annotations

import enum
from typing import Iterable, List, Optional, Tuple

from .exceptions import PropertyParseError

COMMENT_MARKER = "#"


class MatchKind(enum.Enum):
    NO_MATCH = "no-match"
    REWRITE_TARGET = "rewrite"
    REMOVE_TARGET = "remove"


class EditAction(enum.Enum):
    REWRITE = "rewrite"
    REMOVE = "remove"


def is_comment(line: str, marker: str = COMMENT_MARKER) -> bool:
    return line.lstrip().startswith(marker)


def format_property(key: str, value: str) -> str:
    return f"{key}={value}"


def parse_property_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a ``key=value`` line on the first ``=``.

    Returns ``None`` for comments, blank lines, lines without ``=`` and lines
    with an empty key.
    """

    text = line.strip()
    if not text or is_comment(text):
        return None
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip()


def parse_getprop_line(line: str) -> Tuple[str, str]:
    """Parse one line of ``getprop`` output.

    The key ends at the first ``]``; the value runs from the bracket opened
    after the key up to the final ``]``, so a value may itself contain
    brackets (``[k]: [v[1]]`` gives ``v[1]``).
    """

    text = line.strip()
    close = text.find("]")
    if not text.startswith("[") or not text.endswith("]") or close < 2:
        raise PropertyParseError(f"Malformed property line: {line!r}")
    open_ = text.find("[", close)
    if open_ < 0:
        raise PropertyParseError(f"Missing value in property line: {line!r}")
    return text[1:close], text[open_ + 1 : -1]


def matches_key(line: str, key: str) -> bool:
    stripped = line.strip()
    return key in line and (stripped.startswith(key + "=") or stripped.startswith(key + " "))


def classify_line(line: str, key: str, action: EditAction) -> MatchKind:
    if not matches_key(line, key):
        return MatchKind.NO_MATCH
    if action is EditAction.REMOVE:
        return MatchKind.REMOVE_TARGET
    return MatchKind.REWRITE_TARGET


def rewrite_lines(lines: Iterable[str], key: str, value: str, first_only: bool = False) -> List[str]:
    """Replace every line defining ``key`` with ``key=value``.

    With ``first_only`` later duplicates of the key are left as they are.
    """

    result: List[str] = []
    replaced = False
    for line in lines:
        kind = classify_line(line, key, EditAction.REWRITE)
        if kind is MatchKind.REWRITE_TARGET and not (first_only and replaced):
            result.append(format_property(key, value))
            replaced = True
        else:
            result.append(line)
    return result


def remove_lines(lines: Iterable[str], key: str) -> List[str]:
    return [line for line in lines if classify_line(line, key, EditAction.REMOVE) is MatchKind.NO_MATCH]
