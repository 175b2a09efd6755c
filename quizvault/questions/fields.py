"""
Question block field extraction.

A block body is a sequence of line-anchored fields::

    TYPE: CLOZE
    ID: q1_1_cloze_abc123
    Q:
    The capital is {{c1::Paris}}.
    A: Paris
    E: Explanation, possibly
    spanning lines.

Each field runs until the next field line or the end of the block. The first
occurrence of a keyword wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

FIELD_LINE_PATTERN = re.compile(r"^(TYPE|ID|AUDIO|ANSWER|Q|A|E):", re.MULTILINE)

AUDIO_EXTENSIONS = ("mp3", "wav", "m4a", "ogg", "flac")
AUDIO_EMBED_PATTERN = re.compile(r"!\[\[([^\]]+)\]\]")
AUDIO_FILE_PATTERN = re.compile(
    r"^[^\s\[\]]+\.(?:" + "|".join(AUDIO_EXTENSIONS) + r")$", re.IGNORECASE
)

_FIELD_NAMES = {
    "TYPE": "type_value",
    "ID": "id",
    "AUDIO": "audio",
    "ANSWER": "answer",
    "A": "answer",
    "Q": "question",
    "E": "explanation",
}
_BODY_FIELDS = {"question", "explanation"}


@dataclass(frozen=True)
class BlockFields:
    """Raw field values of one block; ``None`` when the field is absent."""

    type_value: str | None = None
    id: str | None = None
    audio: str | None = None
    question: str | None = None
    answer: str | None = None
    explanation: str | None = None
    source: str = ""

    @property
    def has_question(self) -> bool:
        return bool(self.question and self.question.strip())

    @property
    def audio_file(self) -> str | None:
        return extract_audio_file(self.audio)

    @property
    def is_audio_only(self) -> bool:
        """``AUDIO:`` present with neither ``TYPE:`` nor a question body."""
        return (
            self.audio is not None
            and self.type_value is None
            and not self.has_question
        )


def _body(segment: str) -> str:
    # Q:/E: keep internal newlines; exactly one newline is dropped at each edge.
    value = segment.lstrip(" \t")
    if value.startswith("\r\n"):
        value = value[2:]
    elif value.startswith("\n"):
        value = value[1:]
    if value.endswith("\r\n"):
        value = value[:-2]
    elif value.endswith("\n"):
        value = value[:-1]
    return value


def extract_fields(content: str) -> BlockFields:
    """Field values of a block body (delimiter lines excluded)."""
    if not content:
        return BlockFields(source=content or "")

    found = list(FIELD_LINE_PATTERN.finditer(content))
    values: dict[str, str] = {}
    for i, match in enumerate(found):
        name = _FIELD_NAMES[match.group(1)]
        if name in values:
            continue
        segment_end = found[i + 1].start() if i + 1 < len(found) else len(content)
        segment = content[match.end():segment_end]
        values[name] = _body(segment) if name in _BODY_FIELDS else segment.strip()

    return BlockFields(source=content, **values)


def extract_audio_file(value: str | None) -> str | None:
    """Media file named by an ``AUDIO:`` value (``![[x.mp3]]`` or ``x.mp3``)."""
    if not value:
        return None
    embed = AUDIO_EMBED_PATTERN.search(value)
    if embed:
        return embed.group(1).strip()
    bare = value.strip()
    if AUDIO_FILE_PATTERN.match(bare):
        return bare
    return None


def question_text_for_hash(fields: BlockFields) -> str:
    """Question body as hashed into generated ids."""
    return (fields.question or "").strip()
