"""
Content element types.

Every element produced by the parser is a frozen dataclass carrying the
``start``/``end`` offsets of the source span it was built from. Concatenating
``text[e.start:e.end]`` over a finished element sequence reproduces the input.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union


class ElementKind(str, Enum):
    """Tag of a content element."""

    TEXT = "text"
    IMAGE = "image"
    CODE_BLOCK = "code_block"
    TABLE = "table"
    LATEX = "latex"
    # Transient kinds, never present in a finished sequence
    LATEX_PLACEHOLDER = "latex_placeholder"
    CLOZE_MARKER = "cloze_marker"


class DisplayMode(str, Enum):
    """How a LaTeX expression is typeset."""

    INLINE = "inline"
    DISPLAY = "display"


@dataclass(frozen=True)
class BlankKey:
    """Stable identity of one cloze blank: marker id + per-id occurrence index."""

    cloze_id: int
    occurrence: int

    def __str__(self) -> str:
        return f"c{self.cloze_id}#{self.occurrence}"


@dataclass(frozen=True)
class ClozeSlot:
    """A blanked cloze marker attached to the Text element that replaced it."""

    number: int  # 1-based position among all markers of the source text
    cloze_id: int
    occurrence: int
    answer: str
    answer_elements: tuple["ContentElement", ...] = ()

    @property
    def key(self) -> BlankKey:
        return BlankKey(self.cloze_id, self.occurrence)


@dataclass(frozen=True)
class Text:
    content: str
    start: int
    end: int
    cloze: ClozeSlot | None = None
    kind: ElementKind = field(default=ElementKind.TEXT, init=False)

    @property
    def is_blank(self) -> bool:
        return self.cloze is not None


@dataclass(frozen=True)
class Image:
    path: str
    start: int
    end: int
    kind: ElementKind = field(default=ElementKind.IMAGE, init=False)


@dataclass(frozen=True)
class CodeBlock:
    language: str
    code: str
    start: int
    end: int
    kind: ElementKind = field(default=ElementKind.CODE_BLOCK, init=False)


@dataclass(frozen=True)
class Table:
    """Raw markdown table; cells are re-parsed on demand (see ``tables.parse_table``)."""

    raw_markup: str
    start: int
    end: int
    first_blank: int = 1
    blank_keys: tuple[BlankKey, ...] = ()
    kind: ElementKind = field(default=ElementKind.TABLE, init=False)


@dataclass(frozen=True)
class Latex:
    expression: str
    display_mode: DisplayMode
    start: int
    end: int
    kind: ElementKind = field(default=ElementKind.LATEX, init=False)

    @property
    def delimited(self) -> str:
        """Expression wrapped in its original dollar delimiters."""
        fence = "$$" if self.display_mode is DisplayMode.DISPLAY else "$"
        return f"{fence}{self.expression}{fence}"


@dataclass(frozen=True)
class LatexPlaceholder:
    """
    A math span in its ``__LATEX_n__`` token form.

    Kept in the element model for text passed through ``protect_latex``;
    ``parse_content`` never emits it, and it never appears in output.
    """

    token: str
    start: int
    end: int
    kind: ElementKind = field(default=ElementKind.LATEX_PLACEHOLDER, init=False)


@dataclass(frozen=True)
class ClozeMarker:
    """One ``{{cN::content}}`` occurrence as found in the source."""

    cloze_id: int
    content: str
    start: int
    end: int
    content_start: int = 0
    number: int = 1
    occurrence: int = 0
    kind: ElementKind = field(default=ElementKind.CLOZE_MARKER, init=False)

    @property
    def content_end(self) -> int:
        return self.content_start + len(self.content)

    @property
    def key(self) -> BlankKey:
        return BlankKey(self.cloze_id, self.occurrence)


ContentElement = Union[
    Text, Image, CodeBlock, Table, Latex, LatexPlaceholder, ClozeMarker
]

TRANSIENT_KINDS = frozenset({ElementKind.LATEX_PLACEHOLDER, ElementKind.CLOZE_MARKER})


def iter_elements(elements: tuple[ContentElement, ...]) -> Iterator[ContentElement]:
    """Walk elements depth-first, descending into cloze answer elements."""
    for element in elements:
        yield element
        if isinstance(element, Text) and element.cloze is not None:
            yield from iter_elements(element.cloze.answer_elements)


def reconstruct(source: str, elements: tuple[ContentElement, ...]) -> str:
    """Rebuild the source span covered by a top-level element sequence."""
    return "".join(source[e.start:e.end] for e in elements)
