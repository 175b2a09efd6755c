"""
Question, Group and ParsedDocument models.

All three are frozen: a document is reparsed on reload, never mutated.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterator

from ..cloze.blanks import BLANK_GLYPH, BlankMode, to_blanks
from ..cloze.latex import LatexRecord
from ..cloze.markers import ClozeBlank
from ..content.models import ContentElement, Table, Text
from ..content.tables import ParsedTable, parse_table
from ..diagnostics import Diagnostic, Severity, count_by_code
from .blocks import BlockFormat


class QuestionType(str, Enum):
    TRUE_FALSE = "T-F"
    CLOZE = "CLOZE"
    SHORT_ANSWER = "SHORT"
    AUDIO = "AUDIO"

    @property
    def slug(self) -> str:
        """Lower-case form used inside generated ids."""
        return self.value.lower()

    @classmethod
    def from_field(cls, value: str | None) -> QuestionType | None:
        """Type named by a ``TYPE:`` line (``CLOZE``, ``T-F``, ``Short``)."""
        if not value:
            return None
        normalized = value.strip().upper()
        for member in (cls.CLOZE, cls.TRUE_FALSE, cls.SHORT_ANSWER):
            if member.value == normalized:
                return member
        return None


@dataclass(frozen=True)
class Question:
    """One parsed question. ``raw_text`` keeps the ``Q:`` body verbatim."""

    id: str
    type: QuestionType
    raw_text: str = ""
    ordered_elements: tuple[ContentElement, ...] = ()
    answer_text: str = ""
    blanks: tuple[str, ...] = ()
    grouped_blanks: tuple[str, ...] = ()
    cloze_blanks: tuple[ClozeBlank, ...] = ()
    latex_records: tuple[LatexRecord, ...] = ()
    explanation_raw_text: str = ""
    explanation_elements: tuple[ContentElement, ...] = ()
    audio_file: str | None = None
    group_id: str = ""
    position: int = 0
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def is_cloze(self) -> bool:
        return self.type is QuestionType.CLOZE

    @property
    def text(self) -> str:
        """Display text: blanked for cloze, the trimmed body otherwise."""
        return self.display_text()

    def display_text(
        self,
        mode: BlankMode | str = BlankMode.GLYPH,
        glyph: str = BLANK_GLYPH,
    ) -> str:
        if self.type is QuestionType.AUDIO:
            return "AUDIO:"
        if self.is_cloze:
            return to_blanks(self.raw_text, mode, glyph=glyph).strip()
        return self.raw_text.strip()

    def tables(self) -> list[ParsedTable]:
        """Tables of the question body, with cells re-parsed."""
        return [
            parse_table(element, cloze=self.is_cloze)
            for element in self.ordered_elements
            if isinstance(element, Table)
        ]

    def plain_text(self) -> str:
        return "".join(
            e.content for e in self.ordered_elements if isinstance(e, Text)
        ).strip()


@dataclass(frozen=True)
class Group:
    """Questions under one ``## <identifier>`` heading."""

    id: str
    title: str
    questions: tuple[Question, ...] = ()
    transcript_raw_text: str = ""
    transcript_elements: tuple[ContentElement, ...] = ()
    audio_file: str | None = None
    position: int = 0

    @property
    def identifier(self) -> str:
        return self.title

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass(frozen=True)
class ParsedDocument:
    groups: tuple[Group, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    block_format: BlockFormat = BlockFormat.NONE

    def iter_questions(self) -> Iterator[Question]:
        for group in self.groups:
            yield from group.questions

    @property
    def questions(self) -> list[Question]:
        return list(self.iter_questions())

    def get_question(self, question_id: str) -> Question | None:
        for question in self.iter_questions():
            if question.id == question_id:
                return question
        return None

    def get_group(self, group_id: str) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    def summary(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        for question in self.iter_questions():
            by_type[question.type.value] = by_type.get(question.type.value, 0) + 1
        return {
            "groups": len(self.groups),
            "questions": sum(by_type.values()),
            "by_type": by_type,
            "block_format": self.block_format.value,
            "diagnostics": count_by_code(self.diagnostics),
        }

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form of the whole graph (enums become their values)."""
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


__all__ = [
    "QuestionType",
    "Question",
    "Group",
    "ParsedDocument",
]
