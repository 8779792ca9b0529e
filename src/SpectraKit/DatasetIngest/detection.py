# === NAVMAP v1 ===
# {
#   "module": "SpectraKit.DatasetIngest.detection",
#   "purpose": "Sniff delimiters and normalise whitespace-separated tables",
#   "sections": [
#     {"id": "delimiter", "name": "Delimiter", "anchor": "class-delimiter", "kind": "class"},
#     {"id": "detect-delimiter", "name": "detect_delimiter", "anchor": "function-detect-delimiter", "kind": "function"},
#     {"id": "normalize-space-separated", "name": "normalize_space_separated", "anchor": "function-normalize-space-separated", "kind": "function"},
#     {"id": "resolve-delimiter", "name": "resolve_delimiter", "anchor": "function-resolve-delimiter", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Delimiter sniffing for loosely structured measurement tables.

Instrument exports arrive as comma, semicolon, tab, or column-aligned
whitespace tables.  Only the first non-blank line is inspected: comment and
metadata lines usually share the delimiter of the data that follows, and a
single line keeps detection cheap for multi-megabyte payloads.
Whitespace-aligned tables are rewritten into tab-separated text so the parser
only ever deals with single-character delimiters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .policy import TSV_MIME_TYPE
from .validators import base_mime_type

__all__ = [
    "Delimiter",
    "DetectedLayout",
    "detect_delimiter",
    "normalize_space_separated",
    "resolve_delimiter",
]

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_NUMERIC_SPACE_ROW = re.compile(rf"{_NUMBER}(?:\s+{_NUMBER})+")
_SPACE_RUN = re.compile(r" {2,}")
_WHITESPACE_RUN = re.compile(r"\s+")


class Delimiter(str, Enum):
    """Field separators recognised by the detector.

    ``SPACE`` is a signal rather than a literal separator: the text must be
    passed through :func:`normalize_space_separated` and parsed as ``TAB``.
    """

    COMMA = ","
    SEMICOLON = ";"
    TAB = "\t"
    SPACE = " "


@dataclass(frozen=True)
class DetectedLayout:
    """Delimiter decision plus the text the parser should split.

    Attributes:
        delimiter: Single-character delimiter to split ``text`` with.
        text: Original payload, or its tab-normalised form for whitespace tables.
        space_normalized: ``True`` when whitespace normalisation was applied.
    """

    delimiter: Delimiter
    text: str
    space_normalized: bool = False


def _first_non_blank_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line
    return ""


def detect_delimiter(text: str) -> Delimiter:
    """Pick the most likely delimiter from the first non-blank line.

    Lines without any tab, comma, or semicolon are reported as ``SPACE`` when
    they contain a run of two or more spaces or consist solely of numbers
    separated by whitespace.  Otherwise the delimiter with the highest count
    wins, ties resolved as tab, then semicolon, then comma; a line with none
    of them falls back to comma.

    Examples:
        >>> detect_delimiter("x;y\\n1;2")
        <Delimiter.SEMICOLON: ';'>
        >>> detect_delimiter("1  100\\n2  200")
        <Delimiter.SPACE: ' '>
    """

    line = _first_non_blank_line(text)
    counts = {
        Delimiter.TAB: line.count("\t"),
        Delimiter.SEMICOLON: line.count(";"),
        Delimiter.COMMA: line.count(","),
    }
    highest = max(counts.values())
    if highest == 0:
        stripped = line.strip()
        if _SPACE_RUN.search(stripped) or _NUMERIC_SPACE_ROW.fullmatch(stripped):
            return Delimiter.SPACE
        return Delimiter.COMMA
    for delimiter in (Delimiter.TAB, Delimiter.SEMICOLON, Delimiter.COMMA):
        if counts[delimiter] == highest:
            return delimiter
    return Delimiter.COMMA  # pragma: no cover - loop always returns


def normalize_space_separated(text: str) -> str:
    """Collapse whitespace runs into single tabs and drop blank lines.

    Examples:
        >>> normalize_space_separated("  1   2\\n\\n3 4  ")
        '1\\t2\\n3\\t4'
    """

    rows = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            rows.append(_WHITESPACE_RUN.sub("\t", stripped))
    return "\n".join(rows)


def resolve_delimiter(text: str, mime_type: Optional[str]) -> DetectedLayout:
    """Return the delimiter and text the parser should use for ``mime_type``.

    The tab-separated MIME type forces tab delimiting without inspecting the
    payload.
    """

    if base_mime_type(mime_type) == TSV_MIME_TYPE:
        return DetectedLayout(delimiter=Delimiter.TAB, text=text)
    delimiter = detect_delimiter(text)
    if delimiter is Delimiter.SPACE:
        return DetectedLayout(
            delimiter=Delimiter.TAB,
            text=normalize_space_separated(text),
            space_normalized=True,
        )
    return DetectedLayout(delimiter=delimiter, text=text)
