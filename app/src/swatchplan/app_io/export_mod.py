from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..core.session import WorkspaceSession

logger = logging.getLogger(__name__)

CSV_HEADER = 'swatch_type,scale_cm_per_unit,area_m2,width_cm,height_cm,rolls_required\n'


def format_csv(session: "WorkspaceSession") -> Optional[str]:
    """Return the current estimate as CSV text, or None if there is nothing to export."""
    result = session.estimate
    if result is None:
        return None
    row = result.to_dict()
    scale = session.scale_factor
    return CSV_HEADER + (
        f'{session.swatch_type.value},{scale:.4f},'
        f'{row["area"]},{row["width"]},{row["height"]},{row["rolls"]}\n'
    )


def export_csv(session: "WorkspaceSession", path: str) -> bool:
    csv_str = format_csv(session)
    if csv_str is None:
        logger.warning("No estimate to export; calibrate and draw at least three wall points first.")
        return False
    with open(path, 'w', encoding='utf-8') as f:
        f.write(csv_str)
    logger.info("Estimate exported to %s", path)
    return True
