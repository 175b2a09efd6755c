"""
Overlap resolver.

Picks a maximal non-overlapping subset of candidate matches. Candidates are
ordered by ``(start asc, end desc)`` and accepted greedily, so at a shared start
the longer construct wins (a table is not fragmented by math in its first
cell). No construct kind has priority over another.

Cloze mode adds one pass in front: cloze spans are always kept, candidates
inside a cloze span are re-scoped into that marker, and candidates straddling
a cloze boundary are rejected. Only tables may enclose cloze markers; their
cells are re-parsed later.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .patterns import Match


def _overlaps(a: "Match", b: "Match") -> bool:
    return a.start < b.end and a.end > b.start


def resolve_overlaps(candidates: Sequence["Match"]) -> list["Match"]:
    """Greedy non-overlapping selection, returned sorted by start offset."""
    ordered = sorted(candidates, key=lambda m: (m.start, -m.end))

    accepted: list["Match"] = []
    for candidate in ordered:
        if not any(_overlaps(candidate, existing) for existing in accepted):
            accepted.append(candidate)

    accepted.sort(key=lambda m: m.start)
    return accepted


def partition_by_cloze(
    cloze_matches: Sequence["Match"],
    others: Sequence["Match"],
) -> tuple[list["Match"], list["Match"], list["Match"]]:
    """
    Split non-cloze candidates against the cloze spans.

    Returns ``(free, rescoped, rejected)``: candidates clear of every cloze span
    (or tables enclosing them whole), candidates fully inside one, and
    candidates that straddle a boundary or enclose a marker without being a
    table.
    """
    from .patterns import MatchKind

    free: list["Match"] = []
    rescoped: list["Match"] = []
    rejected: list["Match"] = []

    for candidate in others:
        verdict = "free"
        for marker in cloze_matches:
            if not _overlaps(candidate, marker):
                continue
            if marker.contains(candidate):
                verdict = "rescoped"
                break
            if candidate.contains(marker) and candidate.kind is MatchKind.TABLE:
                continue
            verdict = "rejected"
            break

        if verdict == "free":
            free.append(candidate)
        elif verdict == "rescoped":
            rescoped.append(candidate)
        else:
            rejected.append(candidate)

    return free, rescoped, rejected


def resolve_with_cloze(
    cloze_matches: Sequence["Match"],
    others: Sequence["Match"],
) -> list["Match"]:
    """
    Cloze-mode resolution.

    Cloze markers are resolved first and always survive, except that markers
    enclosed by an accepted table are left for the table's cell parsing.
    """
    from .patterns import MatchKind

    free, _rescoped, _rejected = partition_by_cloze(cloze_matches, others)
    accepted = resolve_overlaps(free)

    tables = [m for m in accepted if m.kind is MatchKind.TABLE]
    top_level_cloze = [
        marker
        for marker in cloze_matches
        if not any(table.contains(marker) for table in tables)
    ]

    merged = accepted + top_level_cloze
    merged.sort(key=lambda m: m.start)
    return merged
