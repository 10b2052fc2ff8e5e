from __future__ import annotations

import math
from typing import Optional, Union

from ...core.model import (
    CalibrationData,
    EstimateResult,
    IndividualRollSpec,
    PanoramaSpec,
    SwatchType,
)
from ..editing.draw import WallMask, is_polygon_defined, wall_area, wall_bounds
from ..scale.scale import scale_factor

# Fixed 10% allowance for pattern matching and trim
WASTAGE_FACTOR = 1.10
CM2_PER_M2 = 10000.0

ProductSpec = Union[IndividualRollSpec, PanoramaSpec]


def _ceil_or_none(count: float) -> Optional[int]:
    if not math.isfinite(count):
        return None
    return math.ceil(count)


def rolls_for_panorama(width_cm: float, spec: PanoramaSpec) -> Optional[int]:
    """Rolls needed to span the wall horizontally; the mural height is not used."""
    if not spec.roll_width_cm > 0:
        return None
    return _ceil_or_none(width_cm / spec.roll_width_cm)


def rolls_for_individual(area_m2: float, spec: IndividualRollSpec) -> Optional[int]:
    roll_area = spec.roll_area_m2
    if not roll_area > 0:
        return None
    return _ceil_or_none((area_m2 * WASTAGE_FACTOR) / roll_area)


def estimate(calibration: CalibrationData, wall_mask: WallMask, swatch_type: SwatchType,
             active_spec: ProductSpec) -> Optional[EstimateResult]:
    """Derive wall area, extents and roll count from the calibration and wall polygon.

    Returns None whenever the inputs can't support an estimate: no usable
    calibration segment, fewer than three wall points, a roll spec with
    no positive size, or measurements too large to represent.
    """
    cm_per_unit = scale_factor(calibration)
    if cm_per_unit is None or not is_polygon_defined(wall_mask):
        return None

    area_cm2 = wall_area(wall_mask) * cm_per_unit * cm_per_unit
    area_m2 = area_cm2 / CM2_PER_M2

    bounds = wall_bounds(wall_mask)
    width_cm = bounds.width * cm_per_unit
    height_cm = bounds.height * cm_per_unit
    if not all(math.isfinite(v) for v in (area_m2, width_cm, height_cm)):
        return None

    if SwatchType(swatch_type) is SwatchType.PANORAMA:
        if not isinstance(active_spec, PanoramaSpec):
            raise TypeError("PANORAMA estimates need a PanoramaSpec")
        rolls = rolls_for_panorama(width_cm, active_spec)
    else:
        if not isinstance(active_spec, IndividualRollSpec):
            raise TypeError("INDIVIDUAL estimates need an IndividualRollSpec")
        rolls = rolls_for_individual(area_m2, active_spec)
    if rolls is None:
        return None

    return EstimateResult(
        area_m2=round(area_m2, 2),
        width_cm=round(width_cm, 1),
        height_cm=round(height_cm, 1),
        rolls_required=rolls,
    )
