"""
Cloze marker extraction.

A scan of ``{{cN::content}}`` markers yields two blank lists: every occurrence
in source order, and one blank per distinct id (first occurrence wins, ids
ascending). Both are needed: interactive answer entry uses one input per
occurrence, grouped review uses one per id.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from loguru import logger

from ..content.models import BlankKey, ClozeMarker
from ..content.patterns import Match, find_cloze_markers, has_cloze_opening
from ..diagnostics import Diagnostic, DiagnosticCode, Severity
from .latex import LatexRecord, records_for


@dataclass(frozen=True)
class ClozeBlank:
    """One expected answer derived from a cloze marker."""

    cloze_id: int
    answer_text: str
    number: int = 1
    occurrence: int = 0

    @property
    def key(self) -> BlankKey:
        return BlankKey(self.cloze_id, self.occurrence)


@dataclass(frozen=True)
class ClozeScan:
    """All cloze markers of one text, with their math side table."""

    text: str
    markers: tuple[ClozeMarker, ...]
    matches: tuple[Match, ...]
    latex_records: tuple[LatexRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.markers)

    @property
    def ids(self) -> list[int]:
        """Unique cloze ids, ascending."""
        return sorted({marker.cloze_id for marker in self.markers})

    def all_blanks(self) -> list[ClozeBlank]:
        return [
            ClozeBlank(
                cloze_id=marker.cloze_id,
                answer_text=marker.content.strip(),
                number=marker.number,
                occurrence=marker.occurrence,
            )
            for marker in self.markers
        ]

    def grouped_blanks(self) -> list[ClozeBlank]:
        first_by_id: dict[int, ClozeBlank] = {}
        for blank in self.all_blanks():
            first_by_id.setdefault(blank.cloze_id, blank)
        return [first_by_id[cloze_id] for cloze_id in sorted(first_by_id)]

    def answers(self) -> list[str]:
        return [blank.answer_text for blank in self.all_blanks()]

    def grouped_answers(self) -> list[str]:
        return [blank.answer_text for blank in self.grouped_blanks()]

    def marker_at(self, start: int) -> ClozeMarker | None:
        for marker in self.markers:
            if marker.start == start:
                return marker
        return None

    def markers_within(self, start: int, end: int) -> list[ClozeMarker]:
        return [m for m in self.markers if start <= m.start and m.end <= end]

    def markers_before(self, offset: int) -> int:
        return sum(1 for m in self.markers if m.start < offset)

    def diagnostics(self) -> list[Diagnostic]:
        """Empty content and non-sequential ids; both are authoring smells."""
        found: list[Diagnostic] = []

        for marker in self.markers:
            if not marker.content.strip():
                found.append(
                    Diagnostic(
                        code=DiagnosticCode.CLOZE_EMPTY_CONTENT,
                        message=(
                            f"Cloze marker c{marker.cloze_id} at offset "
                            f"{marker.start} has empty content"
                        ),
                    )
                )

        ids = self.ids
        if ids and ids != list(range(1, len(ids) + 1)):
            found.append(
                Diagnostic(
                    code=DiagnosticCode.CLOZE_NON_SEQUENTIAL_IDS,
                    message=(
                        f"Cloze ids are not sequential (found "
                        f"{', '.join(str(i) for i in ids)}, expected 1-{len(ids)})"
                    ),
                )
            )

        return found


def scan_cloze(
    text: str,
    first_number: int = 1,
    prior_occurrences: Mapping[int, int] | None = None,
    matches: Sequence[Match] | None = None,
) -> ClozeScan:
    """
    Scan ``text`` for cloze markers.

    Args:
        text: Source text.
        first_number: Sequential number given to the first marker.
        prior_occurrences: Per-id occurrence counts already seen before
            ``text`` (used when a table cell is parsed on its own).
        matches: Pre-computed cloze matches for ``text``, if the caller has them.
    """
    if not text:
        return ClozeScan(text=text or "", markers=(), matches=())

    found = list(matches) if matches is not None else find_cloze_markers(text)
    seen: dict[int, int] = dict(prior_occurrences or {})

    markers: list[ClozeMarker] = []
    math: list[Match] = []
    for number, match in enumerate(found, start=first_number):
        cloze_id = int(match.groups[0])
        occurrence = seen.get(cloze_id, 0)
        seen[cloze_id] = occurrence + 1

        content = match.groups[1]
        markers.append(
            ClozeMarker(
                cloze_id=cloze_id,
                content=content,
                start=match.start,
                end=match.end,
                content_start=match.end - 2 - len(content),
                number=number,
                occurrence=occurrence,
            )
        )
        math.extend(match.children)

    return ClozeScan(
        text=text,
        markers=tuple(markers),
        matches=tuple(found),
        latex_records=tuple(records_for(math)),
    )


# ========================================
# String-level helpers
# ========================================
def extract_all_blanks(text: str) -> list[str]:
    """One answer per marker, duplicates allowed, source order."""
    return scan_cloze(text).answers()


def extract_grouped_blanks(text: str) -> list[str]:
    """One answer per distinct id (first occurrence), ids ascending."""
    return scan_cloze(text).grouped_answers()


def get_cloze_ids(text: str) -> list[int]:
    return scan_cloze(text).ids


def has_cloze(text: str) -> bool:
    """True if ``text`` holds at least one complete cloze marker."""
    return has_cloze_opening(text) and bool(find_cloze_markers(text))


def _strip_once(text: str) -> str:
    markers = find_cloze_markers(text)
    if not markers:
        return text

    parts: list[str] = []
    last = 0
    for match in markers:
        parts.append(text[last:match.start])
        parts.append(match.groups[1])
        last = match.end
    parts.append(text[last:])
    return "".join(parts)


def strip_markers(text: str) -> str:
    """
    Remove cloze markers, keeping their inner content.

    Repeated until no marker remains, since unwrapping a malformed nested
    marker can expose a new one; the result is therefore a fixed point.
    """
    if not text:
        return text or ""

    result = text
    while True:
        stripped = _strip_once(result)
        if stripped == result:
            return result
        result = stripped


def validate_cloze_text(text: str) -> list[Diagnostic]:
    """Diagnostics for a cloze body (empty input is an error)."""
    if not text or not text.strip():
        return [
            Diagnostic(
                code=DiagnosticCode.EMPTY_QUESTION,
                message="Cloze text is empty",
                severity=Severity.ERROR,
            )
        ]

    scan = scan_cloze(text)
    if not scan.markers:
        logger.debug(f"No cloze markers found in text of length {len(text)}")
    return scan.diagnostics()
