"""
Unit tests for cloze extraction, blanking and LaTeX protection.

Run: pytest tests/unit/test_cloze.py -v
"""
import pytest

from quizvault.cloze import (
    BlankMode,
    blank_ids_in,
    blanks_for_tokens,
    extract_all_blanks,
    extract_grouped_blanks,
    get_cloze_ids,
    has_cloze,
    protect_latex,
    replace_with_blanks,
    restore_latex,
    scan_cloze,
    strip_markers,
    to_blanks,
    to_id_aware_blanks,
    to_sequential_blanks,
    validate_cloze_text,
)
from quizvault.cloze.blanks import CLOZE_TOKEN_PATTERN
from quizvault.diagnostics import DiagnosticCode, Severity

SAMPLES = [
    "",
    "no markers",
    "The capital is {{c1::Paris}}.",
    "{{c1::x}} {{c2::y}} {{c1::z}}",
    "{{c3::a}} {{c1::}} {{c3::$x_1$}}",
    "{{c1::outer {{c2::inner}} tail}}",
    "{{c1::$\\frac{a}{b}}$}} and {{c2::$$\\sum_i i$$}}",
    "{{c1::$5}} costs less than {{c2::$10}}",
]


class TestExtraction:
    """Test all-occurrence and grouped extraction."""

    def test_single_marker(self):
        text = "The capital is {{c1::Paris}}."
        assert extract_all_blanks(text) == ["Paris"]
        assert extract_grouped_blanks(text) == ["Paris"]

    def test_repeated_ids(self):
        text = "{{c1::x}} {{c2::y}} {{c1::z}}"
        assert extract_grouped_blanks(text) == ["x", "y"]
        assert extract_all_blanks(text) == ["x", "y", "z"]

    def test_grouped_is_sorted_by_id(self):
        assert extract_grouped_blanks("{{c2::b}} {{c1::a}}") == ["a", "b"]

    def test_answers_are_trimmed(self):
        assert extract_all_blanks("{{c1::  spaced  }}") == ["spaced"]

    def test_empty_marker_still_counts(self):
        assert extract_all_blanks("{{c1::}} {{c2:: }}") == ["", ""]

    @pytest.mark.parametrize("text", SAMPLES)
    def test_occurrence_count_law(self, text):
        scan = scan_cloze(text)
        assert len(extract_all_blanks(text)) == scan.count
        assert len(extract_grouped_blanks(text)) == len(set(get_cloze_ids(text)))
        assert len(extract_grouped_blanks(text)) <= scan.count

    def test_occurrence_indexes(self):
        blanks = scan_cloze("{{c1::x}} {{c2::y}} {{c1::z}}").all_blanks()
        assert [(b.cloze_id, b.occurrence, b.number) for b in blanks] == [
            (1, 0, 1),
            (2, 0, 2),
            (1, 1, 3),
        ]

    def test_literal_dollars_stay_in_their_markers(self):
        text = "{{c1::$5}} costs less than {{c2::$10}}"

        assert extract_all_blanks(text) == ["$5", "$10"]
        assert to_sequential_blanks(text) == "__CLOZE_1__ costs less than __CLOZE_2__"
        assert scan_cloze(text).latex_records == ()

    def test_unbalanced_dollar_before_math_marker(self):
        text = "{{c1::$5}} and {{c2::$x^{2}$}}"

        assert extract_all_blanks(text) == ["$5", "$x^{2}$"]
        assert [r.expression for r in scan_cloze(text).latex_records] == ["x^{2}"]

    def test_has_cloze(self):
        assert has_cloze("{{c1::x}}")
        assert not has_cloze("{{c1::x")
        assert not has_cloze("")


class TestBlanking:
    """Test the three blank modes."""

    def test_glyph_mode(self):
        assert replace_with_blanks("The capital is {{c1::Paris}}.") == "The capital is _____."

    def test_sequential_mode(self):
        text = "{{c1::x}} {{c2::y}} {{c1::z}}"
        assert to_sequential_blanks(text) == "__CLOZE_1__ __CLOZE_2__ __CLOZE_3__"

    def test_id_aware_mode(self):
        text = "{{c1::x}} {{c2::y}} {{c1::z}}"
        assert to_id_aware_blanks(text) == "__CLOZE_1__ __CLOZE_2__ __CLOZE_1__"

    def test_mode_accepts_string_value(self):
        assert to_blanks("{{c2::a}}", "id") == "__CLOZE_2__"

    def test_target_id_blanks_only_that_id(self):
        text = "{{c1::x}} {{c2::y}}"
        assert replace_with_blanks(text, target_id=2) == "{{c1::x}} _____"

    def test_custom_glyph(self):
        assert to_blanks("a {{c1::b}}", BlankMode.GLYPH, glyph="[...]") == "a [...]"

    @pytest.mark.parametrize("text", SAMPLES)
    def test_sequential_numbering_law(self, text):
        k = scan_cloze(text).count
        numbers = [int(m.group(1)) for m in CLOZE_TOKEN_PATTERN.finditer(to_sequential_blanks(text))]
        assert numbers == list(range(1, k + 1))

    def test_math_outside_markers_is_untouched(self):
        text = "$a_{1}$ then {{c1::b}} then $$c^{2}$$"
        assert to_sequential_blanks(text) == "$a_{1}$ then __CLOZE_1__ then $$c^{2}$$"

    def test_blank_ids_in(self):
        assert blank_ids_in("__CLOZE_2__ x __CLOZE_1__ __CLOZE_2__") == [1, 2]

    def test_blanks_for_tokens(self):
        answers = ["x", "y", "z"]
        assert blanks_for_tokens("__CLOZE_3__ and __CLOZE_1__", answers) == ["x", "z"]


class TestStripping:
    """Test marker stripping."""

    def test_strip_keeps_content(self):
        assert strip_markers("The capital is {{c1::Paris}}.") == "The capital is Paris."

    @pytest.mark.parametrize("text", SAMPLES)
    def test_stripping_is_idempotent(self, text):
        once = strip_markers(text)
        assert strip_markers(once) == once

    def test_strip_nested(self):
        assert strip_markers("{{c1::outer {{c2::inner}} tail}}") == "outer inner tail"


class TestLatex:
    """Test math protection inside cloze content."""

    def test_latex_round_trip_through_blanking(self):
        """Math inside a marker survives element building character-for-character."""
        from quizvault.content import Latex, iter_elements, parse_content

        text = "Solve {{c1::$x_{1} = \\frac{-b}{2a}$}} and {{c2::$$\\int_0^1 f$$}}"
        elements = parse_content(text, cloze=True).elements
        expressions = [e.expression for e in iter_elements(elements) if isinstance(e, Latex)]

        assert expressions == ["x_{1} = \\frac{-b}{2a}", "\\int_0^1 f"]
        assert "$" not in to_sequential_blanks(text)

    def test_scan_records_math_inside_markers_only(self):
        scan = scan_cloze("$outside$ {{c1::$inside$}}")
        assert [r.original for r in scan.latex_records] == ["$inside$"]

    def test_protect_and_restore(self):
        text = "a $x_1$ b $$y^2$$"
        protected, records = protect_latex(text)

        assert protected == "a __LATEX_0__ b __LATEX_1__"
        assert [r.expression for r in records] == ["x_1", "y^2"]
        assert restore_latex(protected, records) == text

    def test_restore_leaves_unknown_tokens(self):
        assert restore_latex("__LATEX_9__", ()) == "__LATEX_9__"


class TestValidation:
    """Test cloze diagnostics."""

    def test_clean_text_has_no_diagnostics(self):
        assert validate_cloze_text("{{c1::a}} {{c2::b}}") == []

    def test_empty_text_is_an_error(self):
        diagnostics = validate_cloze_text("   ")
        assert diagnostics[0].code is DiagnosticCode.EMPTY_QUESTION
        assert diagnostics[0].severity is Severity.ERROR

    def test_empty_marker_content(self):
        codes = [d.code for d in validate_cloze_text("{{c1::  }}")]
        assert codes == [DiagnosticCode.CLOZE_EMPTY_CONTENT]

    def test_non_sequential_ids(self):
        diagnostics = validate_cloze_text("{{c1::a}} {{c3::b}}")
        assert [d.code for d in diagnostics] == [DiagnosticCode.CLOZE_NON_SEQUENTIAL_IDS]
        assert "1, 3" in diagnostics[0].message
