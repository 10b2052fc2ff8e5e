from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Optional

from ...core.model import CalibrationData, Point, distance

# One-click reference lengths in centimetres
CALIBRATION_PRESETS: Dict[str, float] = {
    'A4 height': 29.7,
    'Door height': 210.0,
    'Door width': 80.0,
}


def scale_factor(calibration: CalibrationData) -> Optional[float]:
    """Return centimetres per normalized unit, or None if the segment can't define one.

    Physical length is normalized distance multiplied by this factor.
    """
    if calibration.p1 is None or calibration.p2 is None:
        return None
    value = calibration.real_world_value_cm
    if not math.isfinite(value) or value <= 0:
        return None
    dist = distance(calibration.p1, calibration.p2)
    if not dist > 0:
        return None
    factor = value / dist
    # Subnormal segments overflow to inf
    if not math.isfinite(factor):
        return None
    return factor


def calibration_on_click(calibration: CalibrationData, point: Point) -> CalibrationData:
    # A click with no open segment starts a new one and drops any completed segment
    if calibration.p1 is None or calibration.p2 is not None:
        return calibration.with_points(point, None)
    return calibration.with_points(calibration.p1, point)


def set_real_world_value(calibration: CalibrationData, value_cm: float) -> CalibrationData:
    return replace(calibration, real_world_value_cm=float(value_cm))


def apply_preset(calibration: CalibrationData, name: str) -> CalibrationData:
    return set_real_world_value(calibration, CALIBRATION_PRESETS[name])
