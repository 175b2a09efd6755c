"""
LaTeX protection for cloze text.

Math spans inside cloze content are discovered before any marker text is
touched, so blanking never rewrites ``_``, ``{}`` or ``$`` inside an
expression. ``LatexRecord`` is the side table describing each protected span;
``protect_latex``/``restore_latex`` expose the token form for callers that do
whole-string substitutions of their own.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..content.models import DisplayMode
from ..content.patterns import Match, MatchKind, find_math

LATEX_TOKEN_PATTERN = re.compile(r"__LATEX_(\d+)__")


@dataclass(frozen=True)
class LatexRecord:
    """Maps a placeholder token back to the math it stands for."""

    token: str
    original: str  # raw text including dollar delimiters
    expression: str
    display_mode: DisplayMode


def latex_token(index: int) -> str:
    return f"__LATEX_{index}__"


def display_mode_for(match: Match) -> DisplayMode:
    if match.kind is MatchKind.LATEX_DISPLAY:
        return DisplayMode.DISPLAY
    return DisplayMode.INLINE


def records_for(matches: Iterable[Match], start_index: int = 0) -> list[LatexRecord]:
    """Build records for math matches, numbering tokens from ``start_index``."""
    return [
        LatexRecord(
            token=latex_token(index),
            original=match.raw,
            expression=match.groups[0],
            display_mode=display_mode_for(match),
        )
        for index, match in enumerate(matches, start=start_index)
    ]


def protect_latex(text: str) -> tuple[str, tuple[LatexRecord, ...]]:
    """Replace every math span in ``text`` with a unique token."""
    if not text:
        return text or "", ()

    spans = find_math(text)
    records = records_for(spans)

    parts: list[str] = []
    last = 0
    for span, record in zip(spans, records):
        parts.append(text[last:span.start])
        parts.append(record.token)
        last = span.end
    parts.append(text[last:])

    return "".join(parts), tuple(records)


def restore_latex(text: str, records: Sequence[LatexRecord]) -> str:
    """Put the original math back in place of every known token."""
    if not text or not records:
        return text or ""

    by_token = {record.token: record.original for record in records}
    return LATEX_TOKEN_PATTERN.sub(
        lambda m: by_token.get(m.group(0), m.group(0)),
        text,
    )
