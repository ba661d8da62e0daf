"""Table layout decisions.

Computes everything the row and cell transcoders need to know about a
table's shape, without rendering anything:

- row groups: runs of data rows between rule rows of the source table
- header and footer row ranges
- column groups: from the ``<``/``>`` markers of a colgroup row
- per-row and per-cell roles, resolved by fixed priority
- rule lines, the column specification and the width sizing row

Row roles, highest priority first (mutually exclusive):

1. ``single``: a header or footer made of exactly one row
2. ``top``: first row of the header or footer
3. ``bottom``: last row of the header or footer
4. ``mid``: any other header or footer row
5. ``first``: first row of the table
6. ``last``: last row of the table
7. ``group-start``: first row of a row group
8. ``group-end``: last row of a row group
9. ``none``

Cell roles, highest priority first: ``corner`` (first/last row and
first/last column), ``edge`` (first or last column), ``group-start`` /
``group-end`` (column-group boundary), ``none``.

Thread Safety:
    TableGeometry is frozen; the functions are pure.

"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from texloom.config import LatexConfig
from texloom.nodes import Table, TableRow
from texloom.references import plain_text

type RowPart = Literal["head", "body", "foot"]

_TRUE_VALUES = frozenset({"t", "true", "yes", "y", "1"})
_FALSE_VALUES = frozenset({"nil", "false", "no", "n", "0"})

# A cell counts as numeric for column alignment
_NUMBER_RE = re.compile(r"^[<>]?[-+]?[$€£]?\d[\d.,\s]*(?:[eE][-+]?\d+)?\s*%?$")

# Fraction of numeric cells above which a column is right-aligned
NUMBER_FRACTION = 0.5


class RowRole(Enum):
    SINGLE = "single"
    TOP = "top"
    BOTTOM = "bottom"
    MID = "mid"
    FIRST = "first"
    LAST = "last"
    GROUP_START = "group-start"
    GROUP_END = "group-end"
    NONE = "none"


class CellRole(Enum):
    CORNER = "corner"
    EDGE = "edge"
    GROUP_START = "group-start"
    GROUP_END = "group-end"
    NONE = "none"


def attribute_flag(value: str | None) -> bool | None:
    """Interpret a table attribute as a boolean, None when unset or unclear."""
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


@dataclass(frozen=True, slots=True)
class TableGeometry:
    """Derived shape of one table.

    Row indices count data rows only; rule and colgroup rows are not rows
    of the layout.

    Attributes:
        row_count: Number of data rows
        column_count: Widest row's cell count
        groups: (first, last) row index of each row group, in order
        header: (first, last) header rows, or None
        footer: (first, last) footer rows, or None
        column_group_starts: Columns opening a column group
        column_group_ends: Columns closing a column group
        widths: Width cookie of each cell of the first data row
        row_index: id(row) -> data row index

    """

    row_count: int
    column_count: int
    groups: tuple[tuple[int, int], ...]
    header: tuple[int, int] | None
    footer: tuple[int, int] | None
    column_group_starts: frozenset[int]
    column_group_ends: frozenset[int]
    widths: tuple[int | None, ...]
    row_index: dict[int, int]

    def index_of(self, row: TableRow) -> int | None:
        """Data row index of ``row``; None for rule and colgroup rows."""
        return self.row_index.get(id(row))

    def part(self, index: int) -> RowPart:
        """Which part of the table a data row belongs to."""
        if self.header is not None and self.header[0] <= index <= self.header[1]:
            return "head"
        if self.footer is not None and self.footer[0] <= index <= self.footer[1]:
            return "foot"
        return "body"

    @property
    def body_start(self) -> int:
        """Index of the first row after the header."""
        return self.header[1] + 1 if self.header is not None else 0

    def row_role(self, index: int) -> RowRole:
        """Role of data row ``index``, highest-priority match wins."""
        for span in (self.header, self.footer):
            if span is None or not span[0] <= index <= span[1]:
                continue
            if span[0] == span[1]:
                return RowRole.SINGLE
            if index == span[0]:
                return RowRole.TOP
            if index == span[1]:
                return RowRole.BOTTOM
            return RowRole.MID
        if index == 0:
            return RowRole.FIRST
        if index == self.row_count - 1:
            return RowRole.LAST
        for start, end in self.groups:
            if index == start:
                return RowRole.GROUP_START
            if index == end:
                return RowRole.GROUP_END
        return RowRole.NONE

    def cell_role(self, index: int, column: int) -> CellRole:
        """Role of the cell at (row ``index``, ``column``)."""
        edge_row = index in (0, self.row_count - 1)
        edge_column = column in (0, self.column_count - 1)
        if edge_row and edge_column:
            return CellRole.CORNER
        if edge_column:
            return CellRole.EDGE
        if column in self.column_group_starts:
            return CellRole.GROUP_START
        if column in self.column_group_ends:
            return CellRole.GROUP_END
        return CellRole.NONE

    def rules(self, index: int, booktabs: bool) -> tuple[str, str]:
        """Rule lines to print before and after data row ``index``."""
        top, mid, bottom = (
            ("\\toprule", "\\midrule", "\\bottomrule") if booktabs else ("\\hline",) * 3
        )
        before = ""
        after = ""
        if index == 0:
            before = top
        elif any(start == index for start, _ in self.groups):
            before = mid
        elif self.header is not None and index == self.header[1] + 1:
            # Header carved out of a single row group
            before = mid
        if index == self.row_count - 1:
            after = bottom
        return before, after

    def sizing_row(self) -> str | None:
        """Zero-height row that forces the column widths, if any are set."""
        if not any(self.widths):
            return None
        cells = [f"\\rule{{{width}em}}{{0pt}}" if width else "" for width in self.widths]
        cells.extend("" for _ in range(self.column_count - len(cells)))
        return " & ".join(cells) + " \\\\[-\\normalbaselineskip]"


def header_enabled(table: Table, config: LatexConfig) -> bool:
    """Table attribute ``header`` overrides ``config.table_header``."""
    flag = attribute_flag(table.attributes.get("header"))
    return config.table_header if flag is None else flag


def footer_enabled(table: Table, group_count: int, config: LatexConfig) -> bool:
    """A footer needs more than two row groups and a reason to exist.

    The reason is either a ``footer`` attribute on the table or a non-empty
    global footer content. A global footer *style* alone does not create a
    footer.
    """
    if group_count <= 2:
        return False
    return "footer" in table.attributes or bool(config.table_footer_content.strip())


def compute_geometry(table: Table, config: LatexConfig) -> TableGeometry:
    """Derive the layout of ``table`` from its rows and configuration."""
    data_rows: list[TableRow] = []
    groups: list[tuple[int, int]] = []
    group_start: int | None = None
    column_group_starts: set[int] = set()
    column_group_ends: set[int] = set()

    for row in table.children:
        if row.kind == "rule":
            if group_start is not None:
                groups.append((group_start, len(data_rows) - 1))
                group_start = None
            continue
        if row.kind == "colgroup":
            for column, cell in enumerate(row.children):
                marker = plain_text(cell.children).strip()
                if "<" in marker:
                    column_group_starts.add(column)
                if ">" in marker:
                    column_group_ends.add(column)
            continue
        if group_start is None:
            group_start = len(data_rows)
        data_rows.append(row)
    if group_start is not None:
        groups.append((group_start, len(data_rows) - 1))

    row_count = len(data_rows)
    column_count = max((len(row.children) for row in data_rows), default=0)

    header: tuple[int, int] | None = None
    if row_count and header_enabled(table, config):
        header = groups[0] if len(groups) > 1 else (0, 0)

    footer: tuple[int, int] | None = None
    if footer_enabled(table, len(groups), config):
        footer = groups[-1]

    widths: tuple[int | None, ...] = ()
    if data_rows:
        widths = tuple(cell.width for cell in data_rows[0].children)

    return TableGeometry(
        row_count=row_count,
        column_count=column_count,
        groups=tuple(groups),
        header=header,
        footer=footer,
        column_group_starts=frozenset(column_group_starts),
        column_group_ends=frozenset(column_group_ends),
        widths=widths,
        row_index={id(row): index for index, row in enumerate(data_rows)},
    )


def column_alignment(table: Table, geometry: TableGeometry) -> list[str]:
    """Per-column ``l``/``r``: right-align columns that are mostly numbers."""
    numeric = [0] * geometry.column_count
    filled = [0] * geometry.column_count
    for row in table.children:
        if geometry.index_of(row) is None or geometry.part(geometry.index_of(row)) == "head":
            continue
        for column, cell in enumerate(row.children):
            text = plain_text(cell.children).strip()
            if not text:
                continue
            filled[column] += 1
            if _NUMBER_RE.match(text):
                numeric[column] += 1
    return [
        "r" if filled[column] and numeric[column] / filled[column] > NUMBER_FRACTION else "l"
        for column in range(geometry.column_count)
    ]


def column_spec(table: Table, geometry: TableGeometry) -> str:
    """Column specification, with ``|`` at column-group boundaries.

    An ``align`` table attribute is used as is.
    """
    explicit = table.attributes.get("align")
    if explicit:
        return explicit
    parts: list[str] = []
    last = geometry.column_count - 1
    for column, alignment in enumerate(column_alignment(table, geometry)):
        if column in geometry.column_group_starts and column > 0 and not (
            parts and parts[-1] == "|"
        ):
            parts.append("|")
        parts.append(alignment)
        if column in geometry.column_group_ends and column < last:
            parts.append("|")
    return "".join(parts)


def cell_style(
    geometry: TableGeometry,
    index: int,
    column: int,
    config: LatexConfig,
    footer_style: str | None = None,
) -> str:
    """Format string (``%s`` is the cell content) for one cell.

    The cell role picks a style from ``config.table_cell_styles``; footer
    cells are additionally wrapped in the footer style.
    """
    role = geometry.cell_role(index, column)
    style = config.table_cell_styles.get(role.value, "%s")
    if geometry.part(index) == "foot":
        wrapper = footer_style or config.table_footer_style
        if wrapper:
            style = wrapper.replace("%s", style, 1) if "%s" in wrapper else style
    return style
