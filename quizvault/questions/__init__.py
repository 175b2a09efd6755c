"""
Questions: document structure, field extraction and question building.

Modules:
- blocks: question block delimiters (``BlockFormat``)
- fields: line-anchored block fields
- ids: stable question ids
- builder: ``build_question``
- groups: ``parse_document``
- maintenance: block format conversion and id insertion
"""

from .blocks import BlockFormat, QuestionBlock, detect_block_format, split_question_blocks
from .models import Group, ParsedDocument, Question, QuestionType
from .fields import BlockFields, extract_audio_file, extract_fields
from .ids import (
    add_question_id_to_block,
    display_id,
    extract_question_id,
    generate_question_id,
    is_generated_question_id,
    is_valid_question_id,
)
from .builder import BlockFieldError, build_question
from .groups import parse_document
from .maintenance import RewriteResult, add_question_ids, convert_block_format

__all__ = [
    # Models
    "QuestionType",
    "Question",
    "Group",
    "ParsedDocument",
    # Blocks & fields
    "BlockFormat",
    "QuestionBlock",
    "detect_block_format",
    "split_question_blocks",
    "BlockFields",
    "extract_fields",
    "extract_audio_file",
    # Ids
    "generate_question_id",
    "is_valid_question_id",
    "is_generated_question_id",
    "extract_question_id",
    "add_question_id_to_block",
    "display_id",
    # Building
    "BlockFieldError",
    "build_question",
    "parse_document",
    # Maintenance
    "RewriteResult",
    "convert_block_format",
    "add_question_ids",
]
