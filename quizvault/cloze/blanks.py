"""
Cloze blanking.

Produces the display form of a cloze text with every marker replaced by a
blank. Three modes:

- ``GLYPH``: a fixed ``_____`` glyph, for read-only previews.
- ``ID_AWARE``: ``__CLOZE_<id>__``, so repeated ids stay visually linked.
- ``SEQUENTIAL``: ``__CLOZE_<n>__`` with n = 1..count in appearance order,
  one independent input per occurrence.

Markers are replaced by splicing their source spans; text between markers,
including any math, is copied through untouched.
"""
from __future__ import annotations

import re
from enum import Enum

from ..content.models import ClozeMarker
from .markers import ClozeScan, scan_cloze

BLANK_GLYPH = "_____"
CLOZE_TOKEN_PATTERN = re.compile(r"__CLOZE_(\d+)__")


class BlankMode(str, Enum):
    GLYPH = "glyph"
    ID_AWARE = "id"
    SEQUENTIAL = "sequential"


def blank_token(marker: ClozeMarker, mode: BlankMode, glyph: str = BLANK_GLYPH) -> str:
    if mode is BlankMode.GLYPH:
        return glyph
    if mode is BlankMode.ID_AWARE:
        return f"__CLOZE_{marker.cloze_id}__"
    return f"__CLOZE_{marker.number}__"


def blank_scan(
    scan: ClozeScan,
    mode: BlankMode = BlankMode.GLYPH,
    target_id: int | None = None,
    glyph: str = BLANK_GLYPH,
) -> str:
    """Blank the markers of an existing scan (see ``to_blanks``)."""
    text = scan.text
    if not scan.markers:
        return text

    parts: list[str] = []
    last = 0
    for marker in scan.markers:
        parts.append(text[last:marker.start])
        if target_id is None or marker.cloze_id == target_id:
            parts.append(blank_token(marker, mode, glyph))
        else:
            parts.append(text[marker.start:marker.end])
        last = marker.end
    parts.append(text[last:])
    return "".join(parts)


def to_blanks(
    text: str,
    mode: BlankMode | str = BlankMode.GLYPH,
    target_id: int | None = None,
    glyph: str = BLANK_GLYPH,
) -> str:
    """
    Replace cloze markers in ``text`` with blanks.

    Args:
        text: Source text with ``{{cN::...}}`` markers.
        mode: Blank style (``BlankMode`` or its string value).
        target_id: Only blank markers with this id; others are left as-is.
            Sequential numbers still count every marker.
        glyph: Glyph used in ``GLYPH`` mode.
    """
    if not text:
        return text or ""
    return blank_scan(scan_cloze(text), BlankMode(mode), target_id, glyph)


def replace_with_blanks(text: str, target_id: int | None = None) -> str:
    return to_blanks(text, BlankMode.GLYPH, target_id)


def to_id_aware_blanks(text: str) -> str:
    return to_blanks(text, BlankMode.ID_AWARE)


def to_sequential_blanks(text: str) -> str:
    return to_blanks(text, BlankMode.SEQUENTIAL)


def blank_ids_in(text: str) -> list[int]:
    """Distinct numbers referenced by ``__CLOZE_n__`` tokens, ascending."""
    if not text:
        return []
    return sorted({int(m.group(1)) for m in CLOZE_TOKEN_PATTERN.finditer(text)})


def blanks_for_tokens(text: str, answers: list[str]) -> list[str]:
    """
    Answers referenced by the ``__CLOZE_n__`` tokens of an id-aware text.

    ``answers`` is indexed by id - 1 (i.e. the grouped extraction).
    """
    return [
        answers[n - 1]
        for n in blank_ids_in(text)
        if 0 < n <= len(answers) and answers[n - 1]
    ]
