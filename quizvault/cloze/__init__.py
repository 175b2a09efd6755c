"""
Cloze: marker extraction, LaTeX protection and blanking.

Modules:
- markers: scanning ``{{cN::content}}`` markers, blank extraction, stripping
- latex: math side table and placeholder token helpers
- blanks: glyph / id-aware / sequential blank rendering of cloze text
"""

from .blanks import (
    BLANK_GLYPH,
    BlankMode,
    blank_ids_in,
    blank_scan,
    blanks_for_tokens,
    replace_with_blanks,
    to_blanks,
    to_id_aware_blanks,
    to_sequential_blanks,
)
from .latex import LatexRecord, protect_latex, restore_latex
from .markers import (
    ClozeBlank,
    ClozeScan,
    extract_all_blanks,
    extract_grouped_blanks,
    get_cloze_ids,
    has_cloze,
    scan_cloze,
    strip_markers,
    validate_cloze_text,
)

__all__ = [
    # Extraction
    "ClozeBlank",
    "ClozeScan",
    "scan_cloze",
    "extract_all_blanks",
    "extract_grouped_blanks",
    "get_cloze_ids",
    "has_cloze",
    "strip_markers",
    "validate_cloze_text",
    # LaTeX
    "LatexRecord",
    "protect_latex",
    "restore_latex",
    # Blanking
    "BLANK_GLYPH",
    "BlankMode",
    "blank_scan",
    "to_blanks",
    "replace_with_blanks",
    "to_id_aware_blanks",
    "to_sequential_blanks",
    "blank_ids_in",
    "blanks_for_tokens",
]
