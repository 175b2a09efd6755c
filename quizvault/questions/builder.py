"""
Question builder.

Turns the extracted fields of one block into a ``Question``, routing by type:

- AUDIO: carries only the media reference.
- CLOZE: cloze-mode parse of the ``Q:`` body; blanks from every marker
  occurrence, with the ``A:`` comma list as a fallback for bodies without
  markers.
- T-F / SHORT: plain parse; ``answer_text`` is the trimmed ``A:`` value.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Sequence, Union

from loguru import logger

from ..content.elements import parse_content
from ..diagnostics import Diagnostic, DiagnosticCode, Severity
from .fields import BlockFields, question_text_for_hash
from .ids import generate_question_id, is_valid_question_id
from .models import Question, QuestionType


class BlockFieldError(ValueError):
    """A block whose fields cannot make a question (it is skipped)."""

    def __init__(self, code: DiagnosticCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_diagnostic(self, **context) -> Diagnostic:
        return Diagnostic(
            code=self.code,
            message=self.message,
            severity=Severity.ERROR,
            **context,
        )


def resolve_type(fields: BlockFields) -> QuestionType:
    """Question type of a block; blocks with only ``AUDIO:`` are audio questions."""
    if fields.type_value is not None:
        question_type = QuestionType.from_field(fields.type_value)
        if question_type is None:
            raise BlockFieldError(
                DiagnosticCode.UNKNOWN_TYPE,
                f"Unknown question type {fields.type_value!r}",
            )
        return question_type

    if fields.audio is not None and not fields.has_question:
        return QuestionType.AUDIO

    raise BlockFieldError(DiagnosticCode.MISSING_TYPE, "Question block has no TYPE: line")


def split_answer_list(answer: str | None) -> list[str]:
    """Comma-separated ``A:`` values, trimmed, empties dropped."""
    if not answer:
        return []
    return [part.strip() for part in answer.split(",") if part.strip()]


def select_cloze_blanks(
    all_answers: Sequence[str],
    grouped_answers: Sequence[str],
    marker_count: int,
    answer_list: Sequence[str] = (),
) -> tuple[list[str], list[Diagnostic]]:
    """
    Choose the blanks of a cloze question.

    Occurrence answers are used when present. If markers exist but occurrence
    extraction produced nothing, grouped answers are used instead and the
    inconsistency is reported. Without markers the ``A:`` list is used.
    """
    diagnostics: list[Diagnostic] = []

    if marker_count == 0:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.CLOZE_NO_MARKERS,
                message="Cloze question has no {{cN::...}} markers",
            )
        )
        return list(answer_list), diagnostics

    blanks = list(all_answers)
    if not blanks:
        blanks = list(grouped_answers)
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.CLOZE_GROUPED_FALLBACK,
                message=(
                    f"{marker_count} cloze marker(s) but no occurrence blanks; "
                    f"using {len(blanks)} grouped blank(s)"
                ),
            )
        )

    if len(blanks) != marker_count:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.CLOZE_COUNT_MISMATCH,
                message=f"{len(blanks)} blank(s) for {marker_count} cloze marker(s)",
            )
        )
    elif answer_list and len(answer_list) != marker_count:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.CLOZE_COUNT_MISMATCH,
                message=(
                    f"A: lists {len(answer_list)} answer(s) for "
                    f"{marker_count} cloze marker(s)"
                ),
                severity=Severity.INFO,
            )
        )

    return blanks, diagnostics


def _question_id(
    fields: BlockFields,
    question_type: QuestionType,
    position: int,
    group_identifier: str,
) -> tuple[str, list[Diagnostic]]:
    explicit = fields.id
    if explicit and is_valid_question_id(explicit):
        return explicit, []

    generated = generate_question_id(
        question_text_for_hash(fields), question_type, position, group_identifier
    )
    if not explicit:
        return generated, []

    return generated, [
        Diagnostic(
            code=DiagnosticCode.INVALID_QUESTION_ID,
            message=f"Ignoring malformed ID {explicit!r}; generated {generated}",
        )
    ]


def build_question(
    fields: BlockFields,
    group_id: str,
    position: int,
    group_identifier: str | None = None,
    question_type: Union[QuestionType, str, None] = None,
) -> Question:
    """
    Build one question from its block fields.

    Args:
        fields: Extracted block fields.
        group_id: Id of the owning group.
        position: 0-based index of the block within its group.
        group_identifier: Group heading text used in generated ids
            (defaults to ``group_id``).
        question_type: Force a type instead of reading ``TYPE:``.

    Raises:
        BlockFieldError: The block is missing its type or question body.
        ValueError: ``question_type`` is not a known type.
    """
    if question_type is None:
        resolved = resolve_type(fields)
    else:
        resolved = QuestionType(question_type)

    identifier = group_identifier if group_identifier is not None else group_id
    question_id, diagnostics = _question_id(fields, resolved, position, identifier)

    if resolved is QuestionType.AUDIO:
        question = Question(
            id=question_id,
            type=resolved,
            audio_file=fields.audio_file,
            group_id=group_id,
            position=position,
        )
        return _with_diagnostics(question, diagnostics)

    if not fields.has_question:
        raise BlockFieldError(DiagnosticCode.EMPTY_QUESTION, "Question block has an empty Q: body")

    raw_text = fields.question or ""
    explanation = fields.explanation or ""
    explanation_elements = parse_content(explanation).elements

    if resolved is QuestionType.CLOZE:
        parsed = parse_content(raw_text, cloze=True)
        scan = parsed.cloze_scan
        blanks, cloze_diagnostics = select_cloze_blanks(
            scan.answers(),
            scan.grouped_answers(),
            scan.count,
            split_answer_list(fields.answer),
        )
        diagnostics.extend(scan.diagnostics())
        diagnostics.extend(cloze_diagnostics)
        logger.debug(f"Cloze question {question_id}: {scan.count} marker(s), ids {scan.ids}")

        question = Question(
            id=question_id,
            type=resolved,
            raw_text=raw_text,
            ordered_elements=parsed.elements,
            answer_text=(fields.answer or "").strip(),
            blanks=tuple(blanks),
            grouped_blanks=tuple(scan.grouped_answers()),
            cloze_blanks=tuple(scan.all_blanks()),
            latex_records=scan.latex_records,
            explanation_raw_text=explanation,
            explanation_elements=explanation_elements,
            audio_file=fields.audio_file,
            group_id=group_id,
            position=position,
        )
        return _with_diagnostics(question, diagnostics)

    parsed = parse_content(raw_text)
    question = Question(
        id=question_id,
        type=resolved,
        raw_text=raw_text,
        ordered_elements=parsed.elements,
        answer_text=(fields.answer or "").strip(),
        explanation_raw_text=explanation,
        explanation_elements=explanation_elements,
        audio_file=fields.audio_file,
        group_id=group_id,
        position=position,
    )
    return _with_diagnostics(question, diagnostics)


def _with_diagnostics(question: Question, diagnostics: list[Diagnostic]) -> Question:
    if not diagnostics:
        return question
    located = tuple(
        d.with_context(
            group_id=question.group_id,
            question_id=question.id,
            block_index=question.position,
        )
        for d in diagnostics
    )
    return replace(question, diagnostics=located)
