"""gridpaper_geometry.py

Box model used by the grid-paper generator.

A Box is described inside-out: inner content size, then padding, then a stroke
drawn centred on the boundary. The full stroke width is counted on each side of
the outer size, so two neighbouring boxes that overlap by one stroke share a
single border line.

All lengths are millimetres.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional, Tuple

Point = Tuple[float, float]


@dataclass(init=False)
class SpacingRectangle:
    """Four-sided spacing (margin or padding) built with CSS shorthand.

      SpacingRectangle(a)          -> all sides a
      SpacingRectangle(a, b)       -> top/bottom a, left/right b
      SpacingRectangle(a, b, c)    -> top a, left/right b, bottom c
      SpacingRectangle(a, b, c, d) -> top, right, bottom, left

    Negative values are not rejected; keeping spacing non-negative is up to the caller.
    """

    top: float
    right: float
    bottom: float
    left: float

    def __init__(self, *values: float):
        if len(values) > 4:
            raise TypeError(f"SpacingRectangle takes at most 4 values ({len(values)} given)")
        vals = [float(v) for v in values] or [0.0]
        if len(vals) == 1:
            self.top = self.right = self.bottom = self.left = vals[0]
        elif len(vals) == 2:
            self.top = self.bottom = vals[0]
            self.left = self.right = vals[1]
        elif len(vals) == 3:
            self.top = vals[0]
            self.left = self.right = vals[1]
            self.bottom = vals[2]
        else:
            self.top, self.right, self.bottom, self.left = vals

    @property
    def total_horizontal(self) -> float:
        return self.left + self.right

    @property
    def total_vertical(self) -> float:
        return self.top + self.bottom

    @property
    def merged_horizontal(self) -> float:
        return max(self.left, self.right)

    @property
    def merged_vertical(self) -> float:
        return max(self.top, self.bottom)

    def clone(self) -> "SpacingRectangle":
        return SpacingRectangle(self.top, self.right, self.bottom, self.left)


def outer_from_inner(inner: Optional[float], padding_total: float, stroke_width: float) -> Optional[float]:
    if inner is None:
        return None
    return inner + padding_total + 2 * stroke_width


def inner_from_outer(outer: Optional[float], padding_total: float, stroke_width: float) -> Optional[float]:
    if outer is None:
        return None
    return outer - padding_total - 2 * stroke_width


@dataclass
class Box:
    """Rectangle with inner size, margin, padding and a centred stroke.

    inner_width / inner_height may be None while a box is built outside-in
    through the outer_width / outer_height setters; derived sizes are None
    until both parts are known.
    """

    inner_width: Optional[float] = None
    inner_height: Optional[float] = None
    margin: SpacingRectangle = field(default_factory=SpacingRectangle)
    padding: SpacingRectangle = field(default_factory=SpacingRectangle)
    stroke_width: float = 0.0

    def __post_init__(self):
        for name in ("inner_width", "inner_height"):
            v = getattr(self, name)
            if v is not None and v < 0:
                raise ValueError(f"{name} must be >= 0 (got {v})")

    @property
    def outer_width(self) -> Optional[float]:
        return outer_from_inner(self.inner_width, self.padding.total_horizontal, self.stroke_width)

    @outer_width.setter
    def outer_width(self, value: float) -> None:
        self.inner_width = inner_from_outer(value, self.padding.total_horizontal, self.stroke_width)

    @property
    def outer_height(self) -> Optional[float]:
        return outer_from_inner(self.inner_height, self.padding.total_vertical, self.stroke_width)

    @outer_height.setter
    def outer_height(self, value: float) -> None:
        self.inner_height = inner_from_outer(value, self.padding.total_vertical, self.stroke_width)

    @property
    def svg_width(self) -> Optional[float]:
        # Width of an SVG rect whose centred stroke exactly fills outer_width.
        if self.inner_width is None:
            return None
        return self.inner_width + self.padding.total_horizontal + self.stroke_width

    @property
    def svg_height(self) -> Optional[float]:
        if self.inner_height is None:
            return None
        return self.inner_height + self.padding.total_vertical + self.stroke_width

    @property
    def inner_origin(self) -> Point:
        return (self.stroke_width + self.padding.left, self.stroke_width + self.padding.top)

    @property
    def inner_end(self) -> Optional[Point]:
        if self.inner_width is None or self.inner_height is None:
            return None
        x0, y0 = self.inner_origin
        return (x0 + self.inner_width, y0 + self.inner_height)

    def clone(self) -> "Box":
        # copy.copy skips __post_init__, so a box shrunk below zero by a setter still clones.
        out = copy.copy(self)
        out.margin = self.margin.clone()
        out.padding = self.padding.clone()
        return out
