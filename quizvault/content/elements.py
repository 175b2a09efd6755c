"""
Element builder.

Walks resolved, non-overlapping matches in source order and emits one ordered
sequence of typed content elements, with a ``Text`` element for every gap
between matches. In cloze mode each top-level marker becomes a ``Text`` holding
its sequential blank token and a ``ClozeSlot`` whose answer elements keep any
math from the marker content as ``Latex`` nodes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger

from ..cloze.markers import ClozeScan, scan_cloze
from .models import (
    ClozeSlot,
    CodeBlock,
    ContentElement,
    DisplayMode,
    Image,
    Latex,
    Table,
    Text,
)
from .overlap import resolve_overlaps, resolve_with_cloze
from .patterns import Match, MatchKind, find_candidates, flatten


def _gap(text: str, start: int, end: int) -> Text | None:
    # Every non-empty gap is kept so element spans tile the source exactly.
    if end <= start:
        return None
    return Text(content=text[start:end], start=start, end=end)


def _latex(match: Match) -> Latex:
    mode = (
        DisplayMode.DISPLAY
        if match.kind is MatchKind.LATEX_DISPLAY
        else DisplayMode.INLINE
    )
    return Latex(
        expression=match.groups[0],
        display_mode=mode,
        start=match.start,
        end=match.end,
    )


def _cloze_slot(text: str, match: Match, scan: ClozeScan) -> Text:
    marker = scan.marker_at(match.start)
    if marker is None:
        # Not part of the scan; keep the source text rather than lose it.
        return Text(content=match.raw, start=match.start, end=match.end)

    answer_elements = build_elements(
        text,
        list(match.children),
        start=marker.content_start,
        end=marker.content_end,
    )
    slot = ClozeSlot(
        number=marker.number,
        cloze_id=marker.cloze_id,
        occurrence=marker.occurrence,
        answer=marker.content.strip(),
        answer_elements=answer_elements,
    )
    return Text(
        content=f"__CLOZE_{marker.number}__",
        start=match.start,
        end=match.end,
        cloze=slot,
    )


def _table(match: Match, scan: ClozeScan | None) -> Table:
    if scan is None:
        return Table(raw_markup=match.raw, start=match.start, end=match.end)

    inside = scan.markers_within(match.start, match.end)
    return Table(
        raw_markup=match.raw,
        start=match.start,
        end=match.end,
        first_blank=scan.markers_before(match.start) + 1,
        blank_keys=tuple(marker.key for marker in inside),
    )


def element_for(text: str, match: Match, scan: ClozeScan | None = None) -> ContentElement:
    """Construct-specific element for one accepted match."""
    if match.kind is MatchKind.IMAGE:
        return Image(path=match.groups[0], start=match.start, end=match.end)
    if match.kind is MatchKind.CODE_BLOCK:
        return CodeBlock(
            language=match.groups[0],
            code=match.groups[1],
            start=match.start,
            end=match.end,
        )
    if match.kind is MatchKind.TABLE:
        return _table(match, scan)
    if match.kind in (MatchKind.LATEX_DISPLAY, MatchKind.LATEX_INLINE):
        return _latex(match)
    if match.kind is MatchKind.CLOZE and scan is not None:
        return _cloze_slot(text, match, scan)

    logger.debug(f"Unrecognised match kind {match.kind} kept as text")
    return Text(content=match.raw, start=match.start, end=match.end)


def build_elements(
    text: str,
    matches: Sequence[Match],
    scan: ClozeScan | None = None,
    start: int = 0,
    end: int | None = None,
) -> tuple[ContentElement, ...]:
    """
    Build the ordered element sequence for ``text[start:end]``.

    ``matches`` must be non-overlapping, sorted, and lie inside the span.
    With no matches the whole non-empty span becomes a single ``Text``.
    """
    end = len(text) if end is None else end
    elements: list[ContentElement] = []

    position = start
    for match in matches:
        gap = _gap(text, position, match.start)
        if gap is not None:
            elements.append(gap)
        elements.append(element_for(text, match, scan))
        position = match.end

    tail = _gap(text, position, end)
    if tail is not None:
        elements.append(tail)

    return tuple(elements)


@dataclass(frozen=True)
class ParsedContent:
    """Ordered elements of one text span plus flat legacy views."""

    source: str
    elements: tuple[ContentElement, ...]
    cloze: bool = False
    cloze_scan: ClozeScan | None = field(default=None, repr=False)

    @property
    def text(self) -> str:
        """Text elements joined; blanked markers appear as their tokens."""
        return " ".join(
            e.content.strip()
            for e in self.elements
            if isinstance(e, Text) and e.content.strip()
        )

    @property
    def images(self) -> list[str]:
        return [e.path for e in self.elements if isinstance(e, Image)]

    @property
    def code_blocks(self) -> list[CodeBlock]:
        return [e for e in self.elements if isinstance(e, CodeBlock)]

    @property
    def latex_blocks(self) -> list[Latex]:
        return [e for e in self.elements if isinstance(e, Latex)]

    @property
    def tables(self) -> list[Table]:
        return [e for e in self.elements if isinstance(e, Table)]

    @property
    def blanks(self) -> list[ClozeSlot]:
        return [
            e.cloze
            for e in self.elements
            if isinstance(e, Text) and e.cloze is not None
        ]


def parse_content(
    text: str,
    cloze: bool = False,
    first_number: int = 1,
    prior_occurrences: dict[int, int] | None = None,
) -> ParsedContent:
    """
    Parse a text span into ordered content elements.

    Args:
        text: The span to parse.
        cloze: Enable cloze-marker handling.
        first_number: Sequential number of the first cloze marker.
        prior_occurrences: Per-id occurrence counts seen before this span.
    """
    if not text:
        return ParsedContent(source=text or "", elements=(), cloze=cloze)

    found = find_candidates(text, cloze=cloze)

    if cloze:
        cloze_matches = found.pop(MatchKind.CLOZE, [])
        scan = scan_cloze(
            text,
            first_number=first_number,
            prior_occurrences=prior_occurrences,
            matches=cloze_matches,
        )
        matches = resolve_with_cloze(cloze_matches, flatten(found))
    else:
        scan = None
        matches = resolve_overlaps(flatten(found))

    return ParsedContent(
        source=text,
        elements=build_elements(text, matches, scan),
        cloze=cloze,
        cloze_scan=scan,
    )
