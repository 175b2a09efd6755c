"""
Structured parse diagnostics.

Parsing never aborts on malformed content. Problems are reported as
``Diagnostic`` records attached to the question they concern and collected on
the parsed document.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(str, Enum):
    """Closed set of diagnostic codes."""

    # Structural
    NO_GROUPS = "no_groups"
    GROUP_EMPTY = "group_empty"
    NO_QUESTIONS_SECTION = "no_questions_section"
    NO_QUESTION_BLOCKS = "no_question_blocks"
    UNTERMINATED_BLOCK = "unterminated_block"
    MIXED_BLOCK_FORMATS = "mixed_block_formats"
    # Field
    MISSING_TYPE = "missing_type"
    UNKNOWN_TYPE = "unknown_type"
    EMPTY_QUESTION = "empty_question"
    INVALID_QUESTION_ID = "invalid_question_id"
    DUPLICATE_QUESTION_ID = "duplicate_question_id"
    BLOCK_FAILED = "block_failed"
    # Cloze
    CLOZE_EMPTY_CONTENT = "cloze_empty_content"
    CLOZE_NON_SEQUENTIAL_IDS = "cloze_non_sequential_ids"
    CLOZE_COUNT_MISMATCH = "cloze_count_mismatch"
    CLOZE_GROUPED_FALLBACK = "cloze_grouped_fallback"
    CLOZE_NO_MARKERS = "cloze_no_markers"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while parsing."""

    code: DiagnosticCode
    message: str
    severity: Severity = Severity.WARNING
    group_id: str | None = None
    question_id: str | None = None
    block_index: int | None = None

    def with_context(self, **context) -> "Diagnostic":
        """Copy with location fields filled in (existing values are kept)."""
        updates = {k: v for k, v in context.items() if getattr(self, k) is None}
        return replace(self, **updates) if updates else self

    def __str__(self) -> str:
        where = "/".join(
            str(part)
            for part in (self.group_id, self.question_id)
            if part is not None
        )
        prefix = f"[{self.severity.value}] {self.code.value}"
        return f"{prefix} ({where}): {self.message}" if where else f"{prefix}: {self.message}"


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(d.severity is Severity.ERROR for d in diagnostics)


def count_by_code(diagnostics: Iterable[Diagnostic]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for diagnostic in diagnostics:
        counts[diagnostic.code.value] = counts.get(diagnostic.code.value, 0) + 1
    return counts
