from __future__ import annotations

"""
Unified facade that re-exports feature functions from the modular packages.
"""

# Scale
from ..features.scale.scale import (
    CALIBRATION_PRESETS as scale_presets,
    scale_factor as scale_factor,
    calibration_on_click as scale_on_canvas_click,
    set_real_world_value as scale_set_length,
    apply_preset as scale_apply_preset,
)

# Draw
from ..features.editing.draw import (
    draw_on_click as draw_on_canvas_click,
    is_polygon_defined as draw_is_defined,
    wall_area as draw_area,
    wall_bounds as draw_bounds,
)

# Rolls
from ..features.panels.rolls import (
    estimate as rolls_estimate,
    rolls_for_individual as rolls_individual,
    rolls_for_panorama as rolls_panorama,
)

# Compositing
from ..features.render.composite import (
    build_composite_request as render_build_request,
    create_gemini_client as render_create_client,
    render_wallpaper as render_run,
)

# File I/O + export
from ..file_io import (
    load_image as file_load_image,
    load_config as file_load_config,
    save_config as file_save_config,
)
from ..app_io.export_mod import export_csv as export_csv
