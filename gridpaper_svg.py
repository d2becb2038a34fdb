#!/usr/bin/env python3
"""gridpaper_svg.py

Printable grid paper for practicing character writing (vertical columns).

Takes a page and a writing cell, asks the layout engine how many cells fit and
where, and writes the result as an SVG document in millimetres.

Styles:
- grid   individual cells with dashed guide lines (cross, thirds, diagonals, inner box)
- ruled  continuous vertical columns without row divisions
- none   only the frame around the filled area

Cell borders are solid. Guide lines are dashed in a lighter shade of the
border colour. When rows share a border (zero top/bottom cell margin) the line
between two cells of a column is drawn once, dashed, in the guide colour.

Outputs: SVG with width/height in mm and a matching unitless viewBox.
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
import textwrap
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from gridpaper_geometry import Box, SpacingRectangle
from gridpaper_layout import (
    CellStyle,
    GuideLines,
    LayoutPlan,
    TitlePlacement,
    WarningMsg,
    compute_layout,
    is_enclosed_horizontally,
    is_enclosed_vertically,
)

__version__ = "0.3"

logger = logging.getLogger(__name__)

Sides = Tuple[bool, bool, bool, bool]  # top, right, bottom, left
ALL_SIDES: Sides = (True, True, True, True)
COLUMN_SIDES: Sides = (False, True, False, True)


def fmt(n: float, digits: int = 4) -> str:
    s = f"{n:.{digits}f}".rstrip("0").rstrip(".")
    return "0" if s == "-0" else s


def brighten_color(hex_string: str, factor: float = 0.5) -> str:
    """Blend a #rrggbb colour toward white; factor 0 keeps it, 1 gives white."""

    if not isinstance(hex_string, str) or len(hex_string) != 7 or not hex_string.startswith("#"):
        raise ValueError(f"expected a #rrggbb colour, got {hex_string!r}")
    try:
        rgb = [int(hex_string[i:i + 2], 16) for i in (1, 3, 5)]
    except ValueError:
        raise ValueError(f"expected a #rrggbb colour, got {hex_string!r}") from None
    # Round half up, not to even.
    out = [int(math.floor(c + (255 - c) * factor + 0.5)) for c in rgb]
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in out)


def dash_pattern(length: float, n_dashes: float) -> Optional[Tuple[float, float]]:
    """Return (dash length, dash offset) for a line split into n_dashes dashes.

    The offset equals the dash length so a line starts and ends on half a gap,
    which keeps the dashes visually centred. No pattern for n_dashes <= 1.
    """

    assert n_dashes >= 0, "n_dashes must be non-negative"
    if n_dashes <= 1:
        return None
    dash = length / n_dashes
    return dash, dash


# ---------------------- Primitives ----------------------

def _dash_attrs(length: float, n_dashes: float) -> str:
    pattern = dash_pattern(length, n_dashes)
    if pattern is None:
        return ""
    dash, offset = pattern
    return f' stroke-dasharray="{fmt(dash, 6)}" stroke-dashoffset="{fmt(offset, 6)}"'


def svg_line(x0: float, y0: float, x1: float, y1: float, n_dashes: float = 0,
             stroke: Optional[str] = None, stroke_width: Optional[float] = None) -> str:
    attrs = f'x1="{fmt(x0)}" y1="{fmt(y0)}" x2="{fmt(x1)}" y2="{fmt(y1)}"'
    attrs += _dash_attrs(math.hypot(x1 - x0, y1 - y0), n_dashes)
    if stroke is not None:
        attrs += f' stroke="{stroke}"'
    if stroke_width is not None:
        attrs += f' stroke-width="{fmt(stroke_width)}"'
    return f"<line {attrs}/>"


def svg_rect(x: float, y: float, w: float, h: float, *, stroke: Optional[str] = None,
             fill: Optional[str] = None, stroke_width: Optional[float] = None, extra: str = "") -> str:
    attrs = f'x="{fmt(x)}" y="{fmt(y)}" width="{fmt(w)}" height="{fmt(h)}"'
    if fill is not None:
        attrs += f' fill="{fill}"'
    if stroke is not None:
        attrs += f' stroke="{stroke}"'
    if stroke_width is not None:
        attrs += f' stroke-width="{fmt(stroke_width)}"'
    return f"<rect {attrs}{extra}/>"


def svg_group(children: Iterable[str], *, attrs: str = "") -> str:
    body = "".join(children)
    head = f"<g {attrs}" if attrs else "<g"
    return f"{head}>{body}</g>" if body else f"{head}/>"


def svg_use(ref_id: str, x: float, y: float) -> str:
    return f'<use href="#{ref_id}" transform="translate({fmt(x)},{fmt(y)})"/>'


# ---------------------- Boxes and cells ----------------------

def render_box(box: Box, x: float = 0.0, y: float = 0.0, *, sides: Sides = ALL_SIDES,
               stroke: Optional[str] = None, fill: Optional[str] = "none") -> str:
    """Draw the border of a box whose outer top-left corner is (x, y)."""

    if box.svg_width is None or box.svg_height is None or box.svg_width <= 0 or box.svg_height <= 0:
        return "<g/>"

    sw = box.stroke_width
    if all(sides):
        return svg_rect(x + sw / 2, y + sw / 2, box.svg_width, box.svg_height,
                        stroke=stroke, fill=fill, stroke_width=sw)

    has_top, has_right, has_bottom, has_left = sides
    ow, oh = box.outer_width, box.outer_height
    parts: List[str] = []
    if has_left:
        parts.append(svg_line(x + sw / 2, y, x + sw / 2, y + oh))
    if has_right:
        parts.append(svg_line(x + ow - sw / 2, y, x + ow - sw / 2, y + oh))
    if has_top:
        parts.append(svg_line(x, y + sw / 2, x + ow, y + sw / 2))
    if has_bottom:
        parts.append(svg_line(x, y + oh - sw / 2, x + ow, y + oh - sw / 2))
    if fill is not None and fill != "none":
        x0, y0 = box.inner_origin
        parts.append(svg_rect(x + x0, y + y0, box.inner_width, box.inner_height, fill=fill, stroke="none"))

    attrs = f'stroke-width="{fmt(sw)}"'
    if stroke is not None:
        attrs = f'stroke="{stroke}" ' + attrs
    return svg_group(parts, attrs=attrs)


def box_with_outer_size(width: float, height: float, stroke_width: float) -> Box:
    box = Box(stroke_width=stroke_width)
    box.outer_width = width
    box.outer_height = height
    return box


def render_cell(cell: Box, guides: GuideLines, x: float = 0.0, y: float = 0.0, *,
                is_last: bool = False, stroke: str = "#cc0000", guide: str = "#e68080") -> str:
    x0b, y0b = cell.inner_origin
    x1b, y1b = cell.inner_end
    x0, y0, x1, y1 = x + x0b, y + y0b, x + x1b, y + y1b
    w, h = cell.inner_width, cell.inner_height
    straight = guides.n_dashes_straight

    parts: List[str] = []
    if guides.cross:
        parts.append(svg_line(x0, y0 + h / 2, x1, y0 + h / 2, straight, guide))
        parts.append(svg_line(x0 + w / 2, y0, x0 + w / 2, y1, straight, guide))
    if guides.thirds:
        for k in (1, 2):
            parts.append(svg_line(x0, y0 + k * h / 3, x1, y0 + k * h / 3, straight, guide))
        for k in (1, 2):
            parts.append(svg_line(x0 + k * w / 3, y0, x0 + k * w / 3, y1, straight, guide))
    if guides.diagonal:
        parts.append(svg_line(x0, y0, x1, y1, guides.n_dashes_diagonal, guide))
        parts.append(svg_line(x0, y1, x1, y0, guides.n_dashes_diagonal, guide))
    if guides.inner_box:
        side = min(w, h) / 2
        # Each side of the inner box is half a centre line long; keep the same dash pitch.
        parts.append(svg_rect(x0 + (w - side) / 2, y0 + (h - side) / 2, side, side,
                              stroke=guide, fill="none", extra=_dash_attrs(side, straight / 2)))

    enclosed = is_enclosed_vertically(cell)
    if not enclosed and guides.bottom_separator and not is_last:
        sep_y = y + cell.outer_height - cell.stroke_width / 2
        parts.append(svg_line(x0, sep_y, x1, sep_y, straight, guide, cell.stroke_width))

    parts.append(render_box(cell, x, y, sides=ALL_SIDES if enclosed else COLUMN_SIDES, stroke=stroke))
    return svg_group(parts, attrs=f'stroke="{stroke}" stroke-width="{fmt(cell.stroke_width)}"')


# ---------------------- Document ----------------------

def svg_header(W: float, H: float) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="{fmt(W)}mm" height="{fmt(H)}mm" viewBox="0 0 {fmt(W)} {fmt(H)}">
"""


def svg_footer() -> str:
    return "</svg>\n"


def cell_symbol_id(is_last: bool) -> str:
    return f"cell-{'true' if is_last else 'false'}"


def make_svg(plan: LayoutPlan, page: Box, *, stroke: str = "#cc0000", guide: Optional[str] = None,
             meta: Optional[dict] = None) -> str:
    guide = guide if guide is not None else brighten_color(stroke, 0.5)
    cell = plan.cell
    out = [svg_header(page.outer_width, page.outer_height)]
    if meta:
        # "--" is not allowed inside an XML comment.
        meta_json = json.dumps(meta, ensure_ascii=False, sort_keys=True).replace("--", "- -")
        meta_comment = "\n".join(textwrap.wrap(meta_json, width=120))
        out.append(f"  <!-- meta: {meta_comment} -->\n")

    out.append(f'  <g id="SHEET" fill="none" stroke="{stroke}" stroke-width="{fmt(cell.stroke_width)}">\n')
    if plan.style == CellStyle.GRID and plan.cells:
        out.append("    <defs>\n")
        for is_last in (False, True):
            out.append(f'      <g id="{cell_symbol_id(is_last)}">'
                       f"{render_cell(cell, plan.guides, is_last=is_last, stroke=stroke, guide=guide)}</g>\n")
        out.append("    </defs>\n")
        out.append('    <g id="CELLS">\n')
        for c in plan.cells:
            out.append(f"      {svg_use(cell_symbol_id(c.is_last_row), c.x, c.y)}\n")
        out.append("    </g>\n")

    if plan.style == CellStyle.RULED:
        out.append('    <g id="COLUMNS">\n')
        for col in plan.columns:
            if not col.is_title:
                out.append(f"      {render_box(box_with_outer_size(col.width, col.height, cell.stroke_width), col.x, col.y)}\n")
        out.append("    </g>\n")

    for col in plan.columns:
        if col.is_title and plan.style != CellStyle.NONE:
            title_box = box_with_outer_size(col.width, col.height, cell.stroke_width)
            out.append(f'    <g id="TITLE">{render_box(title_box, col.x, col.y)}</g>\n')

    if plan.frame is not None:
        fx, fy, fw, fh = plan.frame
        out.append(f'    <g id="FRAME">{render_box(box_with_outer_size(fw, fh, cell.stroke_width), fx, fy)}</g>\n')
    out.append("  </g>\n")
    out.append(svg_footer())
    return "".join(out)


# ---------------------- Parameters / API ----------------------

def _spacing_values(v) -> List[float]:
    if isinstance(v, bool):
        raise TypeError(f"spacing must be a number or a list of numbers, got {v!r}")
    if isinstance(v, (int, float)):
        return [float(v)]
    if isinstance(v, str):
        # "10", "0 2" or "0,2" in CSS shorthand order
        v = v.replace(",", " ").split()
    vals = [float(x) for x in v]
    if not 1 <= len(vals) <= 4:
        raise ValueError(f"spacing takes 1 to 4 values, got {len(vals)}")
    return vals


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _flag(v, name: str) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, int) and v in (0, 1):
        return bool(v)
    if isinstance(v, str) and v.strip().lower() in _TRUE + _FALSE:
        return v.strip().lower() in _TRUE
    raise ValueError(f"{name} must be a boolean, got {v!r}")


@dataclass
class SheetParams:
    # Page (A4 portrait)
    page_width: float = 210.0
    page_height: float = 297.0
    page_padding: List[float] = field(default_factory=lambda: [10.0])

    # Cell
    cell_width: float = 12.0
    cell_height: Optional[float] = None  # defaults to cell_width
    cell_margin: List[float] = field(default_factory=lambda: [0.0, 2.0])
    cell_padding: List[float] = field(default_factory=lambda: [0.0])
    stroke_width: float = 0.3

    style: str = CellStyle.GRID
    cross: bool = True
    diagonal: bool = False
    thirds: bool = False
    inner_box: bool = False
    bottom_separator: bool = True

    title: str = TitlePlacement.NONE
    title_length: int = 0

    stroke_color: str = "#cc0000"
    guide_brighten: float = 0.5

    @classmethod
    def from_dict(cls, params: dict) -> "SheetParams":
        if not isinstance(params, dict):
            raise TypeError("params must be a dict")
        d = cls()
        p = cls(
            page_width=float(params.get("page_width", d.page_width)),
            page_height=float(params.get("page_height", d.page_height)),
            page_padding=_spacing_values(params.get("page_padding", d.page_padding)),
            cell_width=float(params.get("cell_width", d.cell_width)),
            cell_height=None if params.get("cell_height") is None else float(params["cell_height"]),
            cell_margin=_spacing_values(params.get("cell_margin", d.cell_margin)),
            cell_padding=_spacing_values(params.get("cell_padding", d.cell_padding)),
            stroke_width=float(params.get("stroke_width", d.stroke_width)),
            style=str(params.get("style", d.style)).strip().lower(),
            cross=_flag(params.get("cross", d.cross), "cross"),
            diagonal=_flag(params.get("diagonal", d.diagonal), "diagonal"),
            thirds=_flag(params.get("thirds", d.thirds), "thirds"),
            inner_box=_flag(params.get("inner_box", d.inner_box), "inner_box"),
            bottom_separator=_flag(params.get("bottom_separator", d.bottom_separator), "bottom_separator"),
            title=str(params.get("title", d.title)).strip().lower(),
            title_length=int(params.get("title_length", d.title_length)),
            stroke_color=str(params.get("stroke_color", d.stroke_color)),
            guide_brighten=float(params.get("guide_brighten", d.guide_brighten)),
        )
        p.validate()
        return p

    def validate(self) -> None:
        if self.style not in CellStyle.ALL:
            raise ValueError(f"Unknown style: {self.style!r} (expected one of {', '.join(CellStyle.ALL)})")
        if self.title not in TitlePlacement.ALL:
            raise ValueError(f"Unknown title placement: {self.title!r} (expected one of {', '.join(TitlePlacement.ALL)})")
        if self.page_width <= 0 or self.page_height <= 0:
            raise ValueError("page_width and page_height must be > 0")
        if self.stroke_width < 0:
            raise ValueError("stroke_width must be >= 0")
        if self.title_length < 0:
            raise ValueError("title_length must be >= 0")
        brighten_color(self.stroke_color, 0.0)

    def page_box(self) -> Box:
        page = Box(padding=SpacingRectangle(*self.page_padding))
        page.outer_width = self.page_width
        page.outer_height = self.page_height
        return page

    def cell_box(self) -> Box:
        return Box(
            inner_width=self.cell_width,
            inner_height=self.cell_width if self.cell_height is None else self.cell_height,
            margin=SpacingRectangle(*self.cell_margin),
            padding=SpacingRectangle(*self.cell_padding),
            stroke_width=self.stroke_width,
        )

    def guide_lines(self) -> GuideLines:
        return GuideLines(
            cross=self.cross,
            diagonal=self.diagonal,
            thirds=self.thirds,
            inner_box=self.inner_box,
            bottom_separator=self.bottom_separator,
        )

    @property
    def guide_color(self) -> str:
        return brighten_color(self.stroke_color, self.guide_brighten)


def _warn_dicts(warns: List[WarningMsg]) -> List[dict]:
    return [w.__dict__.copy() for w in (warns or [])]


def layout_summary(plan: LayoutPlan) -> dict:
    return {
        "style": plan.style,
        "n_rows": plan.n_rows,
        "n_columns": plan.n_columns,
        "n_cell_columns": plan.n_cell_columns,
        "title_placement": plan.title_placement,
        "title_index": plan.title_index,
        "title_text_box": list(plan.title_text_box) if plan.title_text_box else None,
        "used_width": plan.used_width,
        "used_height": plan.used_height,
        "frame": list(plan.frame) if plan.frame else None,
        "enclosed": {"rows": is_enclosed_vertically(plan.cell), "columns": is_enclosed_horizontally(plan.cell)},
        "rows": asdict(plan.rows),
        "columns": asdict(plan.columns_fit),
    }


def build_layout(p: SheetParams) -> Tuple[Box, LayoutPlan]:
    page = p.page_box()
    plan = compute_layout(
        page,
        p.cell_box(),
        style=p.style,
        guides=p.guide_lines(),
        title_placement=p.title,
        title_length=p.title_length,
    )
    return page, plan


def generate_svg(params: dict) -> dict:
    """Public API (JSON in, JSON out).

    Returns a JSON-serializable dict:
      {"svg": str, "warnings": [{severity, code, message, fix}, ...], "meta": dict, "layout": dict}
    """
    p = SheetParams.from_dict(params)
    page, plan = build_layout(p)
    meta = {"generator": f"gridpaper {__version__}", "params": asdict(p)}
    svg = make_svg(plan, page, stroke=p.stroke_color, guide=p.guide_color, meta=meta)
    return {
        "svg": svg,
        "warnings": _warn_dicts(plan.warnings),
        "meta": meta,
        "layout": layout_summary(plan),
    }


# ---------------------- CLI ----------------------

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate printable grid paper for character writing (SVG, mm).")
    ap.add_argument("--out", required=True, help="Output SVG path")
    ap.add_argument("--params", default=None,
                    help="JSON file with sheet params; when given, the layout options below are ignored")

    ap.add_argument("--page-width", type=float, default=210.0, help="Paper width (mm)")
    ap.add_argument("--page-height", type=float, default=297.0, help="Paper height (mm)")
    ap.add_argument("--page-padding", type=float, nargs="+", default=[10.0],
                    help="Printable-area inset, CSS shorthand (1-4 values, mm)")

    ap.add_argument("--cell-width", type=float, default=12.0, help="Cell inner width (mm)")
    ap.add_argument("--cell-height", type=float, default=None, help="Cell inner height (mm), default = width")
    ap.add_argument("--cell-margin", type=float, nargs="+", default=[0.0, 2.0],
                    help="Gap between cells, CSS shorthand (1-4 values, mm)")
    ap.add_argument("--cell-padding", type=float, nargs="+", default=[0.0],
                    help="Inset of guide lines inside a cell, CSS shorthand (1-4 values, mm)")
    ap.add_argument("--stroke-width", type=float, default=0.3, help="Border line width (mm)")

    ap.add_argument("--style", choices=list(CellStyle.ALL), default=CellStyle.GRID)
    ap.add_argument("--no-cross", action="store_true", help="Omit the centre cross")
    ap.add_argument("--diagonal", action="store_true")
    ap.add_argument("--thirds", action="store_true")
    ap.add_argument("--inner-box", action="store_true")
    ap.add_argument("--no-separator", action="store_true",
                    help="Omit the dashed line between cells that share a border")

    ap.add_argument("--title", choices=list(TitlePlacement.ALL), default=TitlePlacement.NONE)
    ap.add_argument("--title-length", type=int, default=0, help="Number of title characters")

    ap.add_argument("--color", default="#cc0000", help="Border colour (#rrggbb)")
    ap.add_argument("--guide-brighten", type=float, default=0.5, help="How far guide lines are blended toward white")
    ap.add_argument("--verbose", action="store_true")
    return ap.parse_args(argv)


def params_from_args(args: argparse.Namespace) -> dict:
    if args.params:
        with open(args.params, "r", encoding="utf-8") as f:
            return json.load(f)
    return {
        "page_width": args.page_width,
        "page_height": args.page_height,
        "page_padding": args.page_padding,
        "cell_width": args.cell_width,
        "cell_height": args.cell_height,
        "cell_margin": args.cell_margin,
        "cell_padding": args.cell_padding,
        "stroke_width": args.stroke_width,
        "style": args.style,
        "cross": not args.no_cross,
        "diagonal": args.diagonal,
        "thirds": args.thirds,
        "inner_box": args.inner_box,
        "bottom_separator": not args.no_separator,
        "title": args.title,
        "title_length": args.title_length,
        "stroke_color": args.color,
        "guide_brighten": args.guide_brighten,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    res = generate_svg(params_from_args(args))
    with open(args.out, "w", encoding="utf-8") as f:
        f.write(res["svg"])
    logger.debug("wrote %s", args.out)

    layout = res["layout"]
    warns = res["warnings"]
    errs = [w for w in warns if w["severity"] == "error"]
    if errs:
        print("EXPORT SHOULD BE BLOCKED (errors):")
        for w in errs:
            print("-", w["code"], w["message"], "| fix:", w["fix"])
        return 1
    if warns:
        print("Warnings:")
        for w in warns:
            print("-", w["severity"], w["code"], w["message"], "| fix:", w["fix"])
    print(f"OK {layout['n_rows']} rows x {layout['n_columns']} columns")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
