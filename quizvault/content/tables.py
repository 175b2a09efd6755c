"""
Markdown table cells.

A ``Table`` element keeps its raw markup; this module splits it into cells and
re-parses each cell with the element builder. In cloze mode, markers inside
cells are numbered in row-major order continuing from the table's
``first_blank`` and are attributed by ``BlankKey`` (id + occurrence), never by
comparing answer text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from ..cloze.markers import ClozeBlank
from .elements import parse_content
from .models import BlankKey, ContentElement, Table
from .patterns import find_cloze_markers, find_math

CELL_SPLIT_PATTERN = re.compile(r"(?<!\\)\|")
SEPARATOR_CELL_PATTERN = re.compile(r"^\s*(:?)-+(:?)\s*$")


@dataclass(frozen=True)
class TableCell:
    row: int  # 0 is the header row
    column: int
    raw: str
    elements: tuple[ContentElement, ...] = ()
    blanks: tuple[ClozeBlank, ...] = ()

    @property
    def is_header(self) -> bool:
        return self.row == 0


@dataclass(frozen=True)
class ParsedTable:
    rows: tuple[tuple[TableCell, ...], ...]
    alignments: tuple[str, ...] = ()

    @property
    def header(self) -> tuple[TableCell, ...]:
        return self.rows[0] if self.rows else ()

    @property
    def body(self) -> tuple[tuple[TableCell, ...], ...]:
        return self.rows[1:]

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        """Number of body rows (header excluded)."""
        return len(self.body)

    def cells(self) -> list[TableCell]:
        """All cells, row-major."""
        return [cell for row in self.rows for cell in row]

    def cell(self, row: int, column: int) -> TableCell | None:
        if 0 <= row < len(self.rows) and 0 <= column < len(self.rows[row]):
            return self.rows[row][column]
        return None

    def blanks(self) -> list[ClozeBlank]:
        return [blank for cell in self.cells() for blank in cell.blanks]

    def locate(self, key: BlankKey) -> TableCell | None:
        """Cell holding the blank with this key."""
        for cell in self.cells():
            if any(blank.key == key for blank in cell.blanks):
                return cell
        return None


def _protected_spans(line: str, cloze: bool) -> list[tuple[int, int]]:
    # Pipes inside markers and tight math (no space inside the delimiters)
    # do not separate cells.
    spans = [(m.start, m.end) for m in find_cloze_markers(line)] if cloze else []
    for math in find_math(line):
        inner = math.groups[0]
        if inner and inner == inner.strip():
            spans.append((math.start, math.end))
    return spans


def split_row(line: str, cloze: bool = False) -> list[str]:
    """Cells of one ``| a | b |`` line, outer pipes removed, whitespace trimmed."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]

    spans = _protected_spans(stripped, cloze)
    cells = []
    cell_start = 0
    for pipe in CELL_SPLIT_PATTERN.finditer(stripped):
        if any(start < pipe.start() < end for start, end in spans):
            continue
        cells.append(stripped[cell_start:pipe.start()].strip())
        cell_start = pipe.end()
    cells.append(stripped[cell_start:].strip())
    return cells


def _alignment(cell: str) -> str:
    m = SEPARATOR_CELL_PATTERN.match(cell)
    if m is None:
        return ""
    left, right = m.group(1), m.group(2)
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return ""


def _prior_occurrences(keys: tuple[BlankKey, ...]) -> dict[int, int]:
    prior: dict[int, int] = {}
    for key in keys:
        prior.setdefault(key.cloze_id, key.occurrence)
    return prior


def parse_table(
    table: Union[Table, str],
    cloze: bool = False,
    first_blank: int | None = None,
) -> ParsedTable:
    """
    Split a table into re-parsed cells.

    Args:
        table: A ``Table`` element or raw table markup.
        cloze: Parse cells with cloze markers enabled.
        first_blank: Sequential number of the first marker in the table.
            Defaults to the element's ``first_blank`` (1 for raw markup).
    """
    if isinstance(table, Table):
        raw = table.raw_markup
        number = table.first_blank if first_blank is None else first_blank
        occurrences = _prior_occurrences(table.blank_keys)
    else:
        raw = table
        number = 1 if first_blank is None else first_blank
        occurrences = {}

    lines = [line for line in raw.splitlines() if line.strip()]
    if len(lines) < 2:
        return ParsedTable(rows=())

    alignments = tuple(_alignment(cell) for cell in split_row(lines[1]))
    row_lines = [lines[0]] + lines[2:]

    rows: list[tuple[TableCell, ...]] = []
    for row_index, line in enumerate(row_lines):
        cells: list[TableCell] = []
        for column_index, cell_raw in enumerate(split_row(line, cloze)):
            parsed = parse_content(
                cell_raw,
                cloze=cloze,
                first_number=number,
                prior_occurrences=occurrences,
            )
            blanks: tuple[ClozeBlank, ...] = ()
            if parsed.cloze_scan is not None and parsed.cloze_scan.markers:
                blanks = tuple(parsed.cloze_scan.all_blanks())
                number += len(blanks)
                for blank in blanks:
                    occurrences[blank.cloze_id] = blank.occurrence + 1

            cells.append(
                TableCell(
                    row=row_index,
                    column=column_index,
                    raw=cell_raw,
                    elements=parsed.elements,
                    blanks=blanks,
                )
            )
        rows.append(tuple(cells))

    return ParsedTable(rows=tuple(rows), alignments=alignments)
