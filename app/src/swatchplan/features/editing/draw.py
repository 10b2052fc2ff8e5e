from __future__ import annotations

from typing import Optional, Tuple

from ...core.model import BoundingBox, Point, bounding_box, shoelace_area

WallMask = Tuple[Point, ...]

MIN_POLYGON_POINTS: int = 3


def draw_on_click(mask: WallMask, point: Point) -> WallMask:
    # No closing gesture; points keep being appended while drawing
    return tuple(mask) + (point,)


def is_polygon_defined(mask: WallMask) -> bool:
    return len(mask) >= MIN_POLYGON_POINTS


def wall_area(mask: WallMask) -> float:
    """Area of the wall polygon in squared normalized units (0.0 when undefined)."""
    if not is_polygon_defined(mask):
        return 0.0
    return shoelace_area(mask)


def wall_bounds(mask: WallMask) -> Optional[BoundingBox]:
    return bounding_box(mask)
