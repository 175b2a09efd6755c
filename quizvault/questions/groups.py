"""
Section/group parser.

A document is split on ``## <identifier>`` headings. Each group body may hold a
``### Transcript`` section (plain content, up to the next ``###`` heading) and
a ``### Questions`` section (to the end of the body) containing question
blocks in either delimiter syntax.

Malformed structure never aborts the parse: the affected group or block is
skipped with a warning and a diagnostic, and the rest of the document parses.
"""
from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from loguru import logger

from ..content.elements import parse_content
from ..diagnostics import Diagnostic, DiagnosticCode, Severity
from .blocks import BlockFormat, QuestionBlock, detect_block_format, split_question_blocks
from .builder import BlockFieldError, build_question
from .fields import extract_fields
from .models import Group, ParsedDocument, Question, QuestionType

HEADING_PATTERN = re.compile(r"^##\s+(.+)$", re.MULTILINE)
SECTION_PATTERN = re.compile(r"^###[ \t]+([^\r\n]*?)[ \t]*\r?$", re.MULTILINE)
FENCE_PATTERN = re.compile(r"^```[^`\r\n]*\r?\n([\s\S]*?)^```[ \t]*\r?$", re.MULTILINE)
WRAPPED_TRANSCRIPT_PATTERN = re.compile(r"^```[ \t]*\r?\n([\s\S]*?)\r?\n```$")

TRANSCRIPT_TITLE = "transcript"
QUESTIONS_TITLE = "questions"


def group_id_for(identifier: str) -> str:
    return "g" + re.sub(r"\s+", "-", identifier.strip())


@dataclass
class _GroupResult:
    group: Group | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class _Section:
    title: str
    start: int  # after the heading line
    end: int


def _sections(text: str, start: int, end: int, block_format: BlockFormat) -> list[_Section]:
    """
    ``###`` sections of a group body.

    Headings inside question blocks belong to the block. The Questions
    section runs to the end of the body; any other section ends at the next
    heading.
    """
    blocks, _ = split_question_blocks(text, block_format, start, end)
    headings = [
        heading
        for heading in SECTION_PATTERN.finditer(text, start, end)
        if not any(b.start <= heading.start() < b.end for b in blocks)
    ]
    sections = []
    for i, heading in enumerate(headings):
        title = heading.group(1).strip().lower()
        body_start = heading.end()
        if text.startswith("\n", body_start):
            body_start += 1
        if title == QUESTIONS_TITLE or i + 1 == len(headings):
            body_end = end
        else:
            body_end = headings[i + 1].start()
        sections.append(_Section(title, min(body_start, body_end), body_end))
    return sections


def _find_section(sections: list[_Section], title: str) -> _Section | None:
    for section in sections:
        if section.title == title:
            return section
    return None


def group_spans(text: str) -> list[tuple[re.Match, int]]:
    """Each group heading with the offset where its body ends."""
    headings = list(HEADING_PATTERN.finditer(text))
    return [
        (heading, headings[i + 1].start() if i + 1 < len(headings) else len(text))
        for i, heading in enumerate(headings)
    ]


def questions_section_span(
    text: str, start: int, end: int, block_format: BlockFormat
) -> tuple[int, int] | None:
    section = _find_section(_sections(text, start, end, block_format), QUESTIONS_TITLE)
    return (section.start, section.end) if section is not None else None


def transcript_text(raw: str) -> str:
    """Transcript body; a transcript wrapped whole in a bare fence is unwrapped."""
    text = raw.strip()
    wrapped = WRAPPED_TRANSCRIPT_PATTERN.match(text)
    if wrapped and "```" not in wrapped.group(1):
        return wrapped.group(1)
    return text


def find_group_audio(
    text: str,
    start: int,
    end: int,
    blocks: list[QuestionBlock],
) -> str | None:
    """
    Media file of a group-level audio block.

    Looks for a ``` fence outside question blocks holding ``AUDIO:``
    with a media reference and no ``TYPE:``/``Q:``.
    """
    for fence in FENCE_PATTERN.finditer(text, start, end):
        if any(b.start < fence.end() and fence.start() < b.end for b in blocks):
            continue
        fields = extract_fields(fence.group(1))
        if fields.is_audio_only and fields.audio_file:
            return fields.audio_file
    return None


def _diagnostic(
    code: DiagnosticCode,
    message: str,
    group_id: str | None = None,
    block_index: int | None = None,
    severity: Severity = Severity.WARNING,
) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=severity,
        group_id=group_id,
        block_index=block_index,
    )


def parse_group(
    text: str,
    heading: re.Match,
    end: int,
    position: int,
    block_format: BlockFormat,
) -> _GroupResult:
    """Parse the group whose heading is ``heading`` and whose body ends at ``end``."""
    identifier = heading.group(1).strip()
    group_id = group_id_for(identifier)
    result = _GroupResult()

    body_start = heading.end()
    if not text[body_start:end].strip():
        logger.warning(f"Group {identifier!r} has an empty body, skipping")
        result.diagnostics.append(
            _diagnostic(DiagnosticCode.GROUP_EMPTY, f"Group {identifier!r} has no content", group_id)
        )
        return result

    sections = _sections(text, body_start, end, block_format)

    transcript_raw = ""
    transcript_elements: tuple = ()
    transcript = _find_section(sections, TRANSCRIPT_TITLE)
    if transcript is not None:
        transcript_raw = text[transcript.start:transcript.end]
        transcript_elements = parse_content(transcript_text(transcript_raw)).elements

    blocks: list[QuestionBlock] = []
    questions: list[Question] = []
    questions_section = _find_section(sections, QUESTIONS_TITLE)
    if questions_section is None:
        logger.warning(f"Group {identifier!r} has no ### Questions section")
        result.diagnostics.append(
            _diagnostic(
                DiagnosticCode.NO_QUESTIONS_SECTION,
                f"Group {identifier!r} has no ### Questions section",
                group_id,
            )
        )
    else:
        blocks, unterminated = split_question_blocks(
            text, block_format, questions_section.start, questions_section.end
        )
        for offset in unterminated:
            line = text.count("\n", 0, offset) + 1
            logger.warning(f"Unterminated question block at line {line} in group {identifier!r}")
            result.diagnostics.append(
                _diagnostic(
                    DiagnosticCode.UNTERMINATED_BLOCK,
                    f"Question block opened at line {line} has no terminator",
                    group_id,
                )
            )
        if not blocks and not unterminated:
            logger.warning(f"Group {identifier!r} has no question blocks")
            result.diagnostics.append(
                _diagnostic(
                    DiagnosticCode.NO_QUESTION_BLOCKS,
                    f"Questions section of {identifier!r} has no question blocks",
                    group_id,
                )
            )

        for block in blocks:
            question = _parse_block(block, group_id, identifier, result.diagnostics)
            if question is not None:
                questions.append(question)
                result.diagnostics.extend(question.diagnostics)

    audio_file = find_group_audio(text, body_start, end, blocks)
    has_audio_question = any(q.type is QuestionType.AUDIO for q in questions)
    if audio_file and not has_audio_question:
        logger.debug(f"Adding implicit audio question for group {identifier!r}")
        questions.insert(
            0,
            Question(
                id=f"{group_id}_q0",
                type=QuestionType.AUDIO,
                audio_file=audio_file,
                group_id=group_id,
            ),
        )
    if audio_file is None:
        audio_file = next(
            (q.audio_file for q in questions if q.type is QuestionType.AUDIO and q.audio_file),
            None,
        )

    logger.debug(f"Parsed group {identifier!r}: {len(questions)} question(s)")
    result.group = Group(
        id=group_id,
        title=identifier,
        questions=tuple(questions),
        transcript_raw_text=transcript_raw,
        transcript_elements=transcript_elements,
        audio_file=audio_file,
        position=position,
    )
    return result


def _parse_block(
    block: QuestionBlock,
    group_id: str,
    identifier: str,
    diagnostics: list[Diagnostic],
) -> Question | None:
    fields = extract_fields(block.content)
    try:
        return build_question(fields, group_id, block.index, group_identifier=identifier)
    except BlockFieldError as e:
        logger.warning(f"Skipping question {block.index + 1} in group {identifier!r}: {e}")
        diagnostics.append(e.to_diagnostic(group_id=group_id, block_index=block.index))
    except Exception as e:
        logger.exception(f"Failed to build question {block.index + 1} in group {identifier!r}")
        diagnostics.append(
            _diagnostic(
                DiagnosticCode.BLOCK_FAILED,
                f"Unexpected error building question: {e}",
                group_id,
                block.index,
                Severity.ERROR,
            )
        )
    return None


def _parse_group_safely(
    text: str,
    heading: re.Match,
    end: int,
    position: int,
    block_format: BlockFormat,
) -> _GroupResult:
    try:
        return parse_group(text, heading, end, position, block_format)
    except Exception as e:
        identifier = heading.group(1).strip()
        logger.exception(f"Failed to parse group {identifier!r}")
        return _GroupResult(
            diagnostics=[
                _diagnostic(
                    DiagnosticCode.BLOCK_FAILED,
                    f"Unexpected error parsing group: {e}",
                    group_id_for(identifier),
                    severity=Severity.ERROR,
                )
            ]
        )


def _duplicate_ids(groups: list[Group]) -> list[Diagnostic]:
    seen: set[str] = set()
    found = []
    for group in groups:
        for question in group.questions:
            if question.id in seen:
                found.append(
                    Diagnostic(
                        code=DiagnosticCode.DUPLICATE_QUESTION_ID,
                        message=f"Question id {question.id} is used more than once",
                        group_id=group.id,
                        question_id=question.id,
                        block_index=question.position,
                    )
                )
            seen.add(question.id)
    return found


def parse_document(text: str, workers: int = 1) -> ParsedDocument:
    """
    Parse a whole document into groups of questions.

    Args:
        text: Document source.
        workers: Parse groups in a thread pool of this size when > 1. Output
            is identical for any worker count.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    text = text or ""
    block_format = detect_block_format(text)
    diagnostics: list[Diagnostic] = []

    if block_format is BlockFormat.MIXED:
        logger.warning("Document mixes --- start-question and ````ad-question blocks")
        diagnostics.append(
            _diagnostic(
                DiagnosticCode.MIXED_BLOCK_FORMATS,
                "Document uses both question block syntaxes",
                severity=Severity.INFO,
            )
        )

    spans = group_spans(text)
    if not spans:
        logger.warning("Document has no ## group headings")
        diagnostics.append(_diagnostic(DiagnosticCode.NO_GROUPS, "Document has no ## group headings"))
        return ParsedDocument(diagnostics=tuple(diagnostics), block_format=block_format)

    jobs = [(heading, end, i) for i, (heading, end) in enumerate(spans)]

    results: list[_GroupResult | None] = [None] * len(jobs)
    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(_parse_group_safely, text, heading, end, i, block_format): i
                for heading, end, i in jobs
            }
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
    else:
        for heading, end, i in jobs:
            results[i] = _parse_group_safely(text, heading, end, i, block_format)

    groups: list[Group] = []
    for result in results:
        diagnostics.extend(result.diagnostics)
        if result.group is not None:
            groups.append(result.group)

    diagnostics.extend(_duplicate_ids(groups))
    logger.debug(f"Parsed {len(groups)} group(s), {len(diagnostics)} diagnostic(s)")
    return ParsedDocument(
        groups=tuple(groups),
        diagnostics=tuple(diagnostics),
        block_format=block_format,
    )
