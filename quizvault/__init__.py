"""
quizvault: parse cloze study documents into questions.

A document is split into groups (``## <identifier>``) of question blocks. Each
question body is parsed into an ordered sequence of typed content elements
(text, images, code, tables, math, cloze blanks) with exact source spans.

Typical use::

    from quizvault import parse_document

    document = parse_document(text)
    for question in document.iter_questions():
        print(question.id, question.display_text())
"""

from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .content import ParsedContent, parse_content, parse_table
from .cloze import BlankMode, extract_all_blanks, extract_grouped_blanks, strip_markers, to_blanks
from .questions import (
    BlockFormat,
    Group,
    ParsedDocument,
    Question,
    QuestionType,
    add_question_ids,
    build_question,
    convert_block_format,
    parse_document,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "ParsedContent",
    "parse_content",
    "parse_table",
    "BlankMode",
    "to_blanks",
    "strip_markers",
    "extract_all_blanks",
    "extract_grouped_blanks",
    "BlockFormat",
    "QuestionType",
    "Question",
    "Group",
    "ParsedDocument",
    "build_question",
    "parse_document",
    "convert_block_format",
    "add_question_ids",
]
