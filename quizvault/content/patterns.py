"""
Pattern matcher.

Finds every candidate occurrence of each supported construct in a text span:
image embeds, fenced code, markdown tables, display/inline math and, in cloze
mode, ``{{cN::content}}`` markers. Each construct is searched across the whole
span independently; competing candidates are settled by ``overlap``.

All scans use fresh ``finditer``/``match`` calls with explicit positions, so no
cursor state is shared between calls.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .overlap import resolve_overlaps


class MatchKind(str, Enum):
    """Construct kinds recognised by the matcher."""

    IMAGE = "image"
    CODE_BLOCK = "code_block"
    TABLE = "table"
    LATEX_DISPLAY = "latex_display"
    LATEX_INLINE = "latex_inline"
    CLOZE = "cloze"


MATH_KINDS = frozenset({MatchKind.LATEX_DISPLAY, MatchKind.LATEX_INLINE})


@dataclass(frozen=True)
class Match:
    """A raw candidate match with absolute source offsets."""

    kind: MatchKind
    start: int
    end: int
    raw: str
    groups: tuple[str, ...] = ()
    children: tuple["Match", ...] = ()

    def overlaps(self, other: "Match") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, other: "Match") -> bool:
        return self.start <= other.start and other.end <= self.end


# ========================================
# Construct grammars
# ========================================
IMAGE_PATTERN = re.compile(r"!\[\[([^\]]+)\]\]")
CODE_BLOCK_PATTERN = re.compile(r"```([\w-]*)\r?\n([\s\S]*?)```")
# Header row, separator row of dashes/colons, then at least one body row.
TABLE_PATTERN = re.compile(
    r"^\|[^\n]*\|[ \t]*\r?\n"
    r"\|[- :|]*-[- :|]*\|[ \t]*"
    r"(?:\r?\n\|[^\n]*\|[ \t]*)+",
    re.MULTILINE,
)
LATEX_DISPLAY_PATTERN = re.compile(r"\$\$([\s\S]+?)\$\$")
LATEX_INLINE_PATTERN = re.compile(r"\$(?!\$)([^$\n]+?)\$")

CLOZE_OPEN_PATTERN = re.compile(r"\{\{c(\d+)::")
CLOZE_CLOSE = "}}"

PATTERNS: dict[MatchKind, re.Pattern] = {
    MatchKind.IMAGE: IMAGE_PATTERN,
    MatchKind.CODE_BLOCK: CODE_BLOCK_PATTERN,
    MatchKind.TABLE: TABLE_PATTERN,
    MatchKind.LATEX_DISPLAY: LATEX_DISPLAY_PATTERN,
    MatchKind.LATEX_INLINE: LATEX_INLINE_PATTERN,
}


def _to_match(kind: MatchKind, m: re.Match, offset: int = 0) -> Match:
    return Match(
        kind=kind,
        start=m.start() + offset,
        end=m.end() + offset,
        raw=m.group(0),
        groups=tuple(g if g is not None else "" for g in m.groups()),
    )


def find_kind(text: str, kind: MatchKind) -> list[Match]:
    """All matches of a single construct kind, in source order."""
    if kind is MatchKind.CLOZE:
        return find_cloze_markers(text)
    return [_to_match(kind, m) for m in PATTERNS[kind].finditer(text)]


def find_candidates(
    text: str,
    cloze: bool = False,
    kinds: Iterable[MatchKind] | None = None,
) -> dict[MatchKind, list[Match]]:
    """
    Find raw candidates for every construct, one list per kind.

    Cloze markers are only searched for in cloze mode, and are located first.
    Candidates may overlap each other; nothing is resolved here.
    """
    wanted = list(kinds) if kinds is not None else list(MatchKind)
    found: dict[MatchKind, list[Match]] = {}

    if cloze and MatchKind.CLOZE in wanted:
        found[MatchKind.CLOZE] = find_cloze_markers(text)

    for kind in wanted:
        if kind is MatchKind.CLOZE:
            continue
        found[kind] = find_kind(text, kind)

    return found


def flatten(found: dict[MatchKind, list[Match]]) -> list[Match]:
    return [m for matches in found.values() for m in matches]


# ========================================
# Math
# ========================================
def match_math_at(text: str, pos: int, end: int | None = None) -> Match | None:
    """Match display math, else inline math, starting exactly at ``pos``."""
    end = len(text) if end is None else end
    m = LATEX_DISPLAY_PATTERN.match(text, pos, end)
    if m is not None:
        return _to_match(MatchKind.LATEX_DISPLAY, m)
    m = LATEX_INLINE_PATTERN.match(text, pos, end)
    if m is not None:
        return _to_match(MatchKind.LATEX_INLINE, m)
    return None


def find_math(text: str, start: int = 0, end: int | None = None) -> list[Match]:
    """
    Math-only scan of ``text[start:end]``, overlaps already resolved.

    Offsets stay absolute to ``text``.
    """
    end = len(text) if end is None else end
    candidates = [
        _to_match(kind, m)
        for kind in (MatchKind.LATEX_DISPLAY, MatchKind.LATEX_INLINE)
        for m in PATTERNS[kind].finditer(text, start, end)
    ]
    return resolve_overlaps(candidates)


# ========================================
# Cloze markers
# ========================================
def _math_in_marker(text: str, pos: int) -> Match | None:
    """
    Math starting at ``pos`` that can belong to the marker being walked.

    The span may not reach the next ``{{cN::`` opener, and a ``}}`` must
    still follow it before that opener. Otherwise the ``$`` is literal.
    """
    next_opening = CLOZE_OPEN_PATTERN.search(text, pos)
    limit = next_opening.start() if next_opening is not None else len(text)
    math = match_math_at(text, pos, limit)
    if math is None or text.find(CLOZE_CLOSE, math.end, limit) == -1:
        return None
    return math


def _scan_cloze_content(text: str, pos: int) -> tuple[int | None, list[Match]]:
    """
    Walk cloze content from ``pos`` to its closing ``}}``.

    Math spans are consumed whole, so braces inside ``$...$`` never close the
    marker. Returns the offset of the closing braces (None if unterminated)
    and the math spans seen on the way.
    """
    children: list[Match] = []
    length = len(text)
    while pos < length:
        if text.startswith(CLOZE_CLOSE, pos):
            return pos, children
        if text[pos] == "$":
            math = _math_in_marker(text, pos)
            if math is not None:
                children.append(math)
                pos = math.end
                continue
        pos += 1
    return None, children


def find_cloze_markers(text: str) -> list[Match]:
    """
    Locate ``{{cN::content}}`` markers in source order.

    ``groups`` is ``(id, content)``; ``children`` holds the math spans inside
    the content. An opener without a closing ``}}`` is not a marker.
    """
    markers: list[Match] = []
    pos = 0
    while True:
        opening = CLOZE_OPEN_PATTERN.search(text, pos)
        if opening is None:
            break

        close, children = _scan_cloze_content(text, opening.end())
        if close is None:
            pos = opening.end()
            continue

        end = close + len(CLOZE_CLOSE)
        markers.append(
            Match(
                kind=MatchKind.CLOZE,
                start=opening.start(),
                end=end,
                raw=text[opening.start():end],
                groups=(opening.group(1), text[opening.end():close]),
                children=tuple(children),
            )
        )
        pos = end

    return markers


def has_cloze_opening(text: str) -> bool:
    """Cheap check for any ``{{cN::`` opener, terminated or not."""
    return bool(text) and CLOZE_OPEN_PATTERN.search(text) is not None
