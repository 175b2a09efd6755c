"""
Question block delimiters.

Two historical syntaxes delimit question blocks::

    --- start-question          ````ad-question
    ...                         ...
    --- end-question            ````

A document normally uses one of them, but the parser must not assume which.
The syntax in play is detected once per document as a ``BlockFormat`` and
drives a single block scanner.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class BlockFormat(str, Enum):
    LEGACY = "legacy"
    ADMONITION = "admonition"
    MIXED = "mixed"
    NONE = "none"

    @property
    def opener(self) -> str:
        return BLOCK_DELIMITERS[self][0]

    @property
    def terminator(self) -> str:
        return BLOCK_DELIMITERS[self][1]

    def allows(self, kind: "BlockFormat") -> bool:
        return self is BlockFormat.MIXED or self is kind


BLOCK_DELIMITERS = {
    BlockFormat.LEGACY: ("--- start-question", "--- end-question"),
    BlockFormat.ADMONITION: ("````ad-question", "````"),
}

OPENER_PATTERN = re.compile(
    r"^(?:(--- start-question)|(````ad-question))[ \t]*\r?$", re.MULTILINE
)
TERMINATOR_PATTERNS = {
    BlockFormat.LEGACY: re.compile(r"^--- end-question[ \t]*\r?$", re.MULTILINE),
    BlockFormat.ADMONITION: re.compile(r"^````[ \t]*\r?$", re.MULTILINE),
}


@dataclass(frozen=True)
class QuestionBlock:
    """One delimited block; offsets are absolute to the scanned document."""

    index: int
    format: BlockFormat
    start: int
    end: int
    content_start: int
    content_end: int
    content: str


def _opener_kind(match: re.Match) -> BlockFormat:
    return BlockFormat.LEGACY if match.group(1) else BlockFormat.ADMONITION


def detect_block_format(text: str) -> BlockFormat:
    """Which delimiter syntax(es) the document uses."""
    kinds = {_opener_kind(m) for m in OPENER_PATTERN.finditer(text or "")}
    if not kinds:
        return BlockFormat.NONE
    if len(kinds) == 2:
        return BlockFormat.MIXED
    return kinds.pop()


def split_question_blocks(
    text: str,
    block_format: BlockFormat,
    start: int = 0,
    end: int | None = None,
) -> tuple[list[QuestionBlock], list[int]]:
    """
    Find question blocks in ``text[start:end]``.

    Returns the terminated blocks and the offsets of openers that have no
    terminator before the next opener (or the end of the span).
    """
    end = len(text) if end is None else end
    if block_format is BlockFormat.NONE:
        return [], []

    openers = [
        m
        for m in OPENER_PATTERN.finditer(text, start, end)
        if block_format.allows(_opener_kind(m))
    ]

    blocks: list[QuestionBlock] = []
    unterminated: list[int] = []
    for i, opener in enumerate(openers):
        kind = _opener_kind(opener)
        limit = openers[i + 1].start() if i + 1 < len(openers) else end
        terminator = TERMINATOR_PATTERNS[kind].search(text, opener.end(), limit)
        if terminator is None:
            unterminated.append(opener.start())
            continue

        content_start = opener.end()
        if text.startswith("\n", content_start):
            content_start += 1
        content_end = max(content_start, terminator.start())

        blocks.append(
            QuestionBlock(
                index=len(blocks),
                format=kind,
                start=opener.start(),
                end=terminator.end(),
                content_start=content_start,
                content_end=content_end,
                content=text[content_start:content_end],
            )
        )

    return blocks, unterminated
