"""
Stable question ids.

Generated ids look like ``q{group}_{n}_{type}_{hash}``, e.g.
``q1_2_cloze_1x9k3a``. The hash is a 32-bit rolling hash (``h * 31 + unit``
over UTF-16 code units, wrapped to a signed 32-bit value) of the normalised
question text rendered in base 36, so ids already written into documents by
earlier tooling keep matching.
"""
from __future__ import annotations

import re
from typing import Union

from .models import QuestionType

ID_LINE_PATTERN = re.compile(r"^ID:[ \t]*(\S[^\r\n]*?)[ \t]*(?=\r?$)", re.MULTILINE)
ID_FIELD_PATTERN = re.compile(r"^ID:[^\r\n]*", re.MULTILINE)
TYPE_LINE_PATTERN = re.compile(r"^TYPE:[^\r\n]*", re.MULTILINE)
EXPLICIT_ID_PATTERN = re.compile(r"^[\w.:-]+$")
GENERATED_ID_PATTERN = re.compile(r"^q\w+_\d+_[a-z-]+_[a-z0-9]+$", re.IGNORECASE)
DISPLAY_ID_PATTERN = re.compile(r"q(\d+)_(\d+)")

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_TEXT = re.compile(r"[^\w\s$=+-]", re.ASCII)
_NON_WORD = re.compile(r"[^\w]", re.ASCII)
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

MAX_HASHED_LENGTH = 100
MAX_GROUP_LENGTH = 20
HASH_LENGTH = 6


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def content_hash(text: str) -> str:
    """Six-character base-36 hash of ``text``."""
    value = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return _to_base36(abs(value))[:HASH_LENGTH].rjust(HASH_LENGTH, "0")


def normalize_question_text(text: str) -> str:
    cleaned = _WHITESPACE.sub(" ", text or "")
    cleaned = _UNSAFE_TEXT.sub("", cleaned).strip()
    return cleaned[:MAX_HASHED_LENGTH]


def generate_question_id(
    text: str,
    question_type: Union[QuestionType, str],
    index: int,
    group_identifier: str,
) -> str:
    """
    Deterministic id for a question.

    Args:
        text: The question body (``Q:`` value).
        question_type: Type of the question.
        index: 0-based position of the block within its group.
        group_identifier: The group heading text.
    """
    if index < 0:
        raise ValueError(f"Question index must be >= 0, got {index}")

    slug = (
        question_type.slug
        if isinstance(question_type, QuestionType)
        else str(question_type).lower()
    )
    group = _NON_WORD.sub("", group_identifier or "")[:MAX_GROUP_LENGTH]
    digest = content_hash(normalize_question_text(text))
    return f"q{group}_{index + 1}_{slug}_{digest}"


def is_valid_question_id(question_id: str | None) -> bool:
    """True if an explicit ``ID:`` value can be used verbatim."""
    return bool(question_id) and EXPLICIT_ID_PATTERN.match(question_id) is not None


def is_generated_question_id(question_id: str | None) -> bool:
    return bool(question_id) and GENERATED_ID_PATTERN.match(question_id) is not None


def extract_question_id(block: str) -> str | None:
    """Value of the first ``ID:`` line of a block, if any."""
    match = ID_LINE_PATTERN.search(block or "")
    return match.group(1) if match else None


def add_question_id_to_block(block: str, question_id: str) -> str:
    """
    Set the ``ID:`` line of a block.

    An existing ``ID:`` line is replaced. Otherwise the line is inserted after
    ``TYPE:``, or prepended when the block has no type line.
    """
    line = f"ID: {question_id}"
    if ID_FIELD_PATTERN.search(block):
        return ID_FIELD_PATTERN.sub(lambda _: line, block, count=1)

    type_line = TYPE_LINE_PATTERN.search(block)
    if type_line is None:
        return f"{line}\n{block}"

    end = type_line.end()
    newline = "\r\n" if block.startswith("\r\n", end) else "\n"
    return f"{block[:end]}{newline}{line}{block[end:]}"


def display_id(question_id: str | None) -> str:
    """Short form for display: ``q12_3_cloze_x`` becomes ``12.3``."""
    if not question_id:
        return ""
    match = DISPLAY_ID_PATTERN.search(question_id)
    if match:
        return f"{match.group(1)}.{match.group(2)}"
    return question_id.split("_")[-1]
