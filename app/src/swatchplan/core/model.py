from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Sequence


@dataclass(frozen=True)
class Point:
    """Position as a fraction of image width (x) and height (y)."""
    x: float
    y: float

    @classmethod
    def from_pixels(cls, px: float, py: float, width: float, height: float) -> "Point":
        return cls(px / width, py / height)

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Point":
        return cls(float(data['x']), float(data['y']))

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}


@dataclass(frozen=True)
class CalibrationData:
    p1: Optional[Point] = None
    p2: Optional[Point] = None
    real_world_value_cm: float = 0.0

    def with_points(self, p1: Optional[Point], p2: Optional[Point]) -> "CalibrationData":
        return replace(self, p1=p1, p2=p2)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CalibrationData":
        if not data:
            return cls()
        p1 = data.get('p1')
        p2 = data.get('p2')
        return cls(
            p1=Point.from_dict(p1) if p1 else None,
            p2=Point.from_dict(p2) if p2 else None,
            real_world_value_cm=float(data.get('realWorldValueCm') or 0.0),
        )

    def to_dict(self) -> dict:
        return {
            'p1': self.p1.to_dict() if self.p1 else None,
            'p2': self.p2.to_dict() if self.p2 else None,
            'realWorldValueCm': self.real_world_value_cm,
        }


class SwatchType(str, Enum):
    INDIVIDUAL = 'INDIVIDUAL'
    PANORAMA = 'PANORAMA'


@dataclass(frozen=True)
class IndividualRollSpec:
    width_cm: float = 53.0
    length_m: float = 10.0

    @property
    def roll_area_m2(self) -> float:
        return (self.width_cm / 100.0) * self.length_m

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "IndividualRollSpec":
        if not data:
            return cls()
        return cls(
            width_cm=float(data.get('widthCm', cls.width_cm)),
            length_m=float(data.get('lengthM', cls.length_m)),
        )


@dataclass(frozen=True)
class PanoramaSpec:
    roll_width_cm: float = 70.0
    total_rolls: int = 7
    design_height_cm: float = 325.0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PanoramaSpec":
        if not data:
            return cls()
        return cls(
            roll_width_cm=float(data.get('rollWidthCm', cls.roll_width_cm)),
            total_rolls=int(data.get('totalRolls', cls.total_rolls)),
            design_height_cm=float(data.get('designHeightCm', cls.design_height_cm)),
        )


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class EstimateResult:
    area_m2: float
    width_cm: float
    height_cm: float
    rolls_required: int

    def to_dict(self) -> Dict[str, str | int]:
        return {
            'area': f"{self.area_m2:.2f}",
            'width': f"{self.width_cm:.1f}",
            'height': f"{self.height_cm:.1f}",
            'rolls': self.rolls_required,
        }


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def shoelace_area(points: Sequence[Point]) -> float:
    """Return the absolute area of a polygon using the shoelace formula."""
    if len(points) < 3:
        return 0.0
    area = 0.0
    n = len(points)
    for i in range(n):
        p = points[i]
        q = points[(i + 1) % n]
        area += p.x * q.y - q.x * p.y
    return abs(area) / 2.0


def bounding_box(points: Sequence[Point]) -> Optional[BoundingBox]:
    if not points:
        return None
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return BoundingBox(min(xs), max(xs), min(ys), max(ys))
