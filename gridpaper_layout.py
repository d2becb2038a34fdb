"""gridpaper_layout.py

Grid layout engine: decide how many writing cells fit on a page and where each
one goes.

Counting rule (per axis):
- The first element on an axis is a *boundary* element: it pays for its outer
  size plus the margin on both sides.
- Every further element is an *interior* element: it shares one stroke with its
  neighbour and one (merged) gap, so it adds  outer - stroke + max(margin_a, margin_b).

    count = floor((usable - boundary) / interior) + 1     if usable >= boundary
          = 0                                              otherwise

Leftover space is split evenly before and after the filled block (the grid is
centred, never stretched).

Columns may reserve one title column, exactly one cell wide, at the start, the
middle or the end of the sheet. When the sheet is too narrow for the requested
title the title is dropped and the sheet is laid out as if none was requested.

The engine never mutates the boxes it is given; it works on a clone of the cell.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from gridpaper_geometry import Box

logger = logging.getLogger(__name__)

EPS = 1e-9


class CellStyle:
    NONE = "none"    # frame only
    RULED = "ruled"  # continuous columns, no row divisions
    GRID = "grid"    # individual cells with guide lines

    ALL = (NONE, RULED, GRID)


class TitlePlacement:
    NONE = "none"
    START = "start"
    MIDDLE = "middle"
    END = "end"

    ALL = (NONE, START, MIDDLE, END)


@dataclass
class GuideLines:
    """Which interior lines a grid cell carries."""

    cross: bool = True
    diagonal: bool = False
    thirds: bool = False
    inner_box: bool = False
    # Dashed line between vertically adjacent cells that share a border.
    bottom_separator: bool = True
    n_dashes_straight: int = 19
    n_dashes_diagonal: int = 25


@dataclass
class WarningMsg:
    severity: str  # error|warn|info
    code: str
    message: str
    fix: str


@dataclass
class AxisFit:
    boundary: float
    interior: float
    count: int = 0
    used: float = 0.0
    leading: float = 0.0


@dataclass
class CellPlacement:
    row: int
    column: int
    x: float
    y: float
    is_last_row: bool


@dataclass
class ColumnPlacement:
    index: int
    x: float
    y: float
    width: float
    height: float
    is_title: bool = False


@dataclass
class LayoutPlan:
    cell: Box
    style: str
    guides: GuideLines
    rows: AxisFit
    columns_fit: AxisFit
    n_rows: int
    n_columns: int
    n_cell_columns: int
    title_placement: str = TitlePlacement.NONE
    title_index: Optional[int] = None
    title_length: int = 0
    # (x, y, width, height) reserved for the title characters, centred in the title column.
    title_text_box: Optional[Tuple[float, float, float, float]] = None
    used_width: float = 0.0
    used_height: float = 0.0
    cells: List[CellPlacement] = field(default_factory=list)
    columns: List[ColumnPlacement] = field(default_factory=list)
    frame: Optional[Tuple[float, float, float, float]] = None
    warnings: List[WarningMsg] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.cells and not self.columns


def is_enclosed_vertically(cell: Box) -> bool:
    return cell.margin.merged_vertical > 0


def is_enclosed_horizontally(cell: Box) -> bool:
    return cell.margin.merged_horizontal > 0


def fit_count(usable: float, boundary: float, interior: float) -> int:
    if interior <= 0 or usable + EPS < boundary:
        return 0
    return max(0, int(math.floor((usable - boundary) / interior + EPS)) + 1)


def used_length(count: int, boundary: float, interior: float) -> float:
    if count <= 0:
        return 0.0
    return boundary + (count - 1) * interior


def column_axis(cell: Box) -> AxisFit:
    m = cell.margin
    return AxisFit(
        boundary=cell.outer_width + m.left + m.right,
        interior=cell.outer_width - cell.stroke_width + m.merged_horizontal,
    )


def row_axis(cell: Box) -> AxisFit:
    m = cell.margin
    return AxisFit(
        boundary=cell.outer_height + m.top + m.bottom,
        interior=cell.outer_height - cell.stroke_width + m.merged_vertical,
    )


def fit_columns(usable: float, axis: AxisFit, title_w: float, placement: str) -> Tuple[str, int, float]:
    """Return (resolved placement, number of cell columns, used width)."""

    boundary, interior = axis.boundary, axis.interior
    if interior > 0:
        if placement in (TitlePlacement.START, TitlePlacement.END):
            required = title_w + boundary
            if usable + EPS >= required:
                n = 1 + int(math.floor((usable - required) / interior + EPS))
                return placement, n, required + (n - 1) * interior
        elif placement == TitlePlacement.MIDDLE:
            required = title_w + 2 * boundary
            if usable + EPS >= required:
                n_inner = int(math.floor((usable - required) / interior + EPS))
                n_inner -= n_inner % 2
                return placement, 2 + n_inner, required + n_inner * interior

    n = fit_count(usable, boundary, interior)
    return TitlePlacement.NONE, n, used_length(n, boundary, interior)


def _column_slots(placement: str, n_cells: int, axis: AxisFit, title_w: float) -> List[Tuple[bool, float]]:
    """Left edge of every column, in order, relative to the start of the filled block.

    Cell entries are the left edge of the block slot (margin not yet applied).
    """

    def block(start: float, k: int) -> List[Tuple[bool, float]]:
        return [(False, start + i * axis.interior) for i in range(k)]

    def block_width(k: int) -> float:
        return used_length(k, axis.boundary, axis.interior)

    if placement == TitlePlacement.START:
        return [(True, 0.0)] + block(title_w, n_cells)
    if placement == TitlePlacement.END:
        return block(0.0, n_cells) + [(True, block_width(n_cells))]
    if placement == TitlePlacement.MIDDLE:
        half = n_cells // 2
        title_x = block_width(half)
        return block(0.0, half) + [(True, title_x)] + block(title_x + title_w, half)
    return block(0.0, n_cells)


def compute_layout(
    page: Box,
    cell: Box,
    *,
    style: str = CellStyle.GRID,
    guides: Optional[GuideLines] = None,
    title_placement: str = TitlePlacement.NONE,
    title_length: int = 0,
) -> LayoutPlan:
    if style not in CellStyle.ALL:
        raise ValueError(f"Unknown cell style: {style!r}")
    if title_placement not in TitlePlacement.ALL:
        raise ValueError(f"Unknown title placement: {title_placement!r}")
    if page.inner_width is None or page.inner_height is None:
        raise ValueError("page inner size must be known")
    if cell.inner_width is None or cell.inner_height is None:
        raise ValueError("cell inner size must be known")

    guides = guides if guides is not None else GuideLines()
    cell = cell.clone()
    if style == CellStyle.RULED:
        cell.margin.top = 0.0
        cell.margin.bottom = 0.0

    warns: List[WarningMsg] = []
    rows = row_axis(cell)
    cols = column_axis(cell)
    if rows.interior <= 0 or cols.interior <= 0:
        warns.append(WarningMsg("error", "CELL_DEGENERATE",
                                "Cell is not larger than its stroke; nothing can be repeated.",
                                "Increase the cell size or reduce stroke_width."))

    usable_w = page.inner_width
    usable_h = page.inner_height
    title_w = cell.outer_width

    rows.count = fit_count(usable_h, rows.boundary, rows.interior)
    rows.used = used_length(rows.count, rows.boundary, rows.interior)

    placement, n_cells, used_w = fit_columns(usable_w, cols, title_w, title_placement)
    if placement != title_placement:
        logger.debug("title column %s dropped: usable width %.4f too small", title_placement, usable_w)
        warns.append(WarningMsg("info", "TITLE_DROPPED",
                                f"Title column ({title_placement}) is wider than the remaining page width and was left out.",
                                "Widen the page, shrink the cell or reduce page padding."))
    elif rows.count == 0 and placement != TitlePlacement.NONE:
        placement = TitlePlacement.NONE
        logger.debug("title column %s dropped: usable height %.4f holds no row", title_placement, usable_h)
        warns.append(WarningMsg("info", "TITLE_DROPPED",
                                f"Title column ({title_placement}) was left out because no row fits the page height.",
                                "Make the page taller, shrink the cell or reduce page padding."))
    if placement == TitlePlacement.NONE:
        n_cells, used_w = fit_columns(usable_w, cols, title_w, TitlePlacement.NONE)[1:]
    cols.count = n_cells
    cols.used = used_w

    degenerate = any(w.code == "CELL_DEGENERATE" for w in warns)
    if (rows.count == 0 or cols.count == 0) and not degenerate:
        warns.append(WarningMsg("warn", "NOTHING_FITS",
                                "Printable area is smaller than a single cell.",
                                "Reduce page padding or the cell size."))

    plan = LayoutPlan(
        cell=cell,
        style=style,
        guides=guides,
        rows=rows,
        columns_fit=cols,
        n_rows=rows.count,
        n_columns=0,
        n_cell_columns=cols.count,
        title_length=max(0, int(title_length)),
        warnings=warns,
    )
    if rows.count == 0 or cols.count == 0:
        logger.debug("empty layout: %d rows x %d columns", rows.count, cols.count)
        return plan

    rows.leading = (usable_h - rows.used) / 2
    cols.leading = (usable_w - cols.used) / 2
    page_x0, page_y0 = page.inner_origin
    x0 = page_x0 + cols.leading
    y0 = page_y0 + rows.leading
    top = y0 + cell.margin.top
    column_h = (rows.count - 1) * rows.interior + cell.outer_height

    for index, (is_title, slot_x) in enumerate(_column_slots(placement, cols.count, cols, title_w)):
        if is_title:
            plan.columns.append(ColumnPlacement(index, x0 + slot_x, top, title_w, column_h, is_title=True))
            plan.title_index = index
            continue
        x = x0 + slot_x + cell.margin.left
        plan.columns.append(ColumnPlacement(index, x, top, cell.outer_width, column_h))
        for row in range(rows.count):
            plan.cells.append(CellPlacement(row, index, x, top + row * rows.interior, row == rows.count - 1))

    plan.title_placement = placement
    plan.n_columns = len(plan.columns)
    plan.used_width = cols.used
    plan.used_height = rows.used
    plan.frame = (x0, y0, cols.used, rows.used)

    if plan.title_index is not None:
        title_col = plan.columns[plan.title_index]
        text_h = plan.title_length * title_w
        if text_h > column_h + EPS:
            warns.append(WarningMsg("warn", "TITLE_TOO_LONG",
                                    f"{plan.title_length} title characters need {text_h:.1f} mm; column is {column_h:.1f} mm.",
                                    "Shorten the title or use a smaller cell."))
            text_h = column_h
        plan.title_text_box = (title_col.x, title_col.y + (column_h - text_h) / 2, title_w, text_h)

    logger.debug("layout %s: %d rows x %d columns (title=%s)", style, plan.n_rows, plan.n_columns, placement)
    return plan
