"""
Document maintenance rewrites.

- ``convert_block_format``: rewrite every question block to one delimiter
  syntax.
- ``add_question_ids``: write a generated ``ID:`` line into every block that
  lacks a valid one, so ids stay stable when questions are later reordered.

Both are pure text-to-text functions; reading and writing files is the
caller's business.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from loguru import logger

from .blocks import BlockFormat, detect_block_format, split_question_blocks
from .builder import BlockFieldError, resolve_type
from .fields import extract_fields, question_text_for_hash
from .groups import group_spans, questions_section_span
from .ids import add_question_id_to_block, generate_question_id, is_valid_question_id
from .models import QuestionType


@dataclass(frozen=True)
class RewriteResult:
    text: str
    changed: int = 0

    @property
    def modified(self) -> bool:
        return self.changed > 0


def _apply(text: str, edits: list[tuple[int, int, str]]) -> str:
    # Edits are non-overlapping; apply back to front so offsets stay valid.
    for start, end, replacement in sorted(edits, reverse=True):
        text = text[:start] + replacement + text[end:]
    return text


def convert_block_format(
    text: str,
    target: Union[BlockFormat, str] = BlockFormat.ADMONITION,
) -> RewriteResult:
    """Rewrite all question block delimiters to ``target`` syntax."""
    target = BlockFormat(target)
    if target not in (BlockFormat.LEGACY, BlockFormat.ADMONITION):
        raise ValueError(f"Cannot convert to {target.value!r}; use legacy or admonition")

    blocks, unterminated = split_question_blocks(text or "", BlockFormat.MIXED)
    if unterminated:
        logger.warning(f"Leaving {len(unterminated)} unterminated block(s) unchanged")

    edits = []
    for block in blocks:
        if block.format is target:
            continue
        opener = text[block.start:block.content_start]
        terminator = text[block.content_end:block.end]
        edits.append((block.start, block.content_start, opener.replace(block.format.opener, target.opener, 1)))
        edits.append((block.content_end, block.end, terminator.replace(block.format.terminator, target.terminator, 1)))

    changed = len(edits) // 2
    logger.debug(f"Converting {changed} block(s) to {target.value}")
    return RewriteResult(text=_apply(text, edits), changed=changed)


def add_question_ids(text: str) -> RewriteResult:
    """
    Insert generated ids into blocks without a valid ``ID:``.

    The id written is the one the parser would generate for the block, so a
    parse before and after the rewrite yields the same ids. Blocks that would
    be skipped by the parser (no type, empty body) are left alone.
    """
    text = text or ""
    block_format = detect_block_format(text)
    edits = []

    for heading, end in group_spans(text):
        identifier = heading.group(1).strip()
        span = questions_section_span(text, heading.end(), end, block_format)
        if span is None:
            continue

        blocks, _ = split_question_blocks(text, block_format, *span)
        for block in blocks:
            fields = extract_fields(block.content)
            if is_valid_question_id(fields.id):
                continue
            try:
                question_type = resolve_type(fields)
            except BlockFieldError as e:
                logger.debug(f"Not adding id to question {block.index + 1} in {identifier!r}: {e}")
                continue
            if question_type is not QuestionType.AUDIO and not fields.has_question:
                continue

            question_id = generate_question_id(
                question_text_for_hash(fields), question_type, block.index, identifier
            )
            logger.info(f"Adding ID {question_id} to question {block.index + 1} in {identifier!r}")
            edits.append(
                (
                    block.content_start,
                    block.content_end,
                    add_question_id_to_block(block.content, question_id),
                )
            )

    return RewriteResult(text=_apply(text, edits), changed=len(edits))
