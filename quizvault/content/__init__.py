"""
Content: pattern matching, overlap resolution and element building.

Modules:
- models: content element types
- patterns: construct grammars and candidate scanning
- overlap: non-overlapping match selection
- elements: ordered element sequences (``parse_content``)
- tables: table cell re-parsing
"""

from .models import (
    BlankKey,
    ClozeMarker,
    ClozeSlot,
    CodeBlock,
    ContentElement,
    DisplayMode,
    ElementKind,
    Image,
    Latex,
    LatexPlaceholder,
    Table,
    Text,
    iter_elements,
    reconstruct,
)
from .patterns import Match, MatchKind, find_candidates, find_cloze_markers, find_math
from .overlap import resolve_overlaps, resolve_with_cloze
from .elements import ParsedContent, build_elements, parse_content
from .tables import ParsedTable, TableCell, parse_table

__all__ = [
    # Elements
    "ElementKind",
    "DisplayMode",
    "BlankKey",
    "ClozeSlot",
    "ContentElement",
    "Text",
    "Image",
    "CodeBlock",
    "Table",
    "Latex",
    "LatexPlaceholder",
    "ClozeMarker",
    "iter_elements",
    "reconstruct",
    # Matching
    "Match",
    "MatchKind",
    "find_candidates",
    "find_cloze_markers",
    "find_math",
    "resolve_overlaps",
    "resolve_with_cloze",
    # Building
    "ParsedContent",
    "build_elements",
    "parse_content",
    "ParsedTable",
    "TableCell",
    "parse_table",
]
