"""
Unit tests for overlap resolution.

Run: pytest tests/unit/test_overlap.py -v
"""
from quizvault.content.overlap import partition_by_cloze, resolve_overlaps, resolve_with_cloze
from quizvault.content.patterns import Match, MatchKind


def make(kind: MatchKind, start: int, end: int) -> Match:
    return Match(kind=kind, start=start, end=end, raw="x" * (end - start))


class TestResolveOverlaps:
    """Test greedy (start asc, end desc) selection."""

    def test_longer_wins_at_same_start(self):
        table = make(MatchKind.TABLE, 0, 30)
        math = make(MatchKind.LATEX_INLINE, 0, 5)
        assert resolve_overlaps([math, table]) == [table]

    def test_earlier_start_wins(self):
        first = make(MatchKind.LATEX_INLINE, 0, 10)
        second = make(MatchKind.IMAGE, 5, 20)
        assert resolve_overlaps([second, first]) == [first]

    def test_inner_match_is_dropped(self):
        code = make(MatchKind.CODE_BLOCK, 0, 40)
        inner = make(MatchKind.LATEX_INLINE, 10, 15)
        assert resolve_overlaps([inner, code]) == [code]

    def test_adjacent_matches_do_not_overlap(self):
        a = make(MatchKind.IMAGE, 0, 5)
        b = make(MatchKind.IMAGE, 5, 10)
        assert resolve_overlaps([b, a]) == [a, b]

    def test_result_is_sorted_and_disjoint(self):
        candidates = [
            make(MatchKind.IMAGE, 50, 60),
            make(MatchKind.LATEX_INLINE, 0, 8),
            make(MatchKind.LATEX_DISPLAY, 20, 30),
            make(MatchKind.LATEX_INLINE, 25, 35),
        ]
        accepted = resolve_overlaps(candidates)
        assert [m.start for m in accepted] == [0, 20, 50]
        for left, right in zip(accepted, accepted[1:]):
            assert left.end <= right.start

    def test_empty(self):
        assert resolve_overlaps([]) == []


class TestClozeResolution:
    """Test the cloze-first pass."""

    def test_partition(self):
        cloze = [make(MatchKind.CLOZE, 10, 30)]
        inside = make(MatchKind.LATEX_INLINE, 15, 20)
        straddling = make(MatchKind.LATEX_INLINE, 5, 15)
        outside = make(MatchKind.IMAGE, 40, 50)

        free, rescoped, rejected = partition_by_cloze(cloze, [inside, straddling, outside])

        assert free == [outside]
        assert rescoped == [inside]
        assert rejected == [straddling]

    def test_only_tables_may_enclose_markers(self):
        cloze = [make(MatchKind.CLOZE, 10, 20)]
        table = make(MatchKind.TABLE, 0, 40)
        code = make(MatchKind.CODE_BLOCK, 0, 40)

        free, _, rejected = partition_by_cloze(cloze, [table, code])

        assert free == [table]
        assert rejected == [code]

    def test_cloze_spans_always_survive(self):
        cloze = [make(MatchKind.CLOZE, 0, 10), make(MatchKind.CLOZE, 20, 30)]
        straddling = make(MatchKind.LATEX_INLINE, 5, 25)
        image = make(MatchKind.IMAGE, 12, 18)

        resolved = resolve_with_cloze(cloze, [straddling, image])

        assert resolved == [cloze[0], image, cloze[1]]

    def test_markers_inside_table_are_left_to_cells(self):
        cloze = [make(MatchKind.CLOZE, 10, 20)]
        table = make(MatchKind.TABLE, 0, 40)

        assert resolve_with_cloze(cloze, [table]) == [table]
