"""
Workspace session: the mutable state behind one wallpaper planning session.

The session owns the tool mode and turns pointer events into new calibration
and wall-mask values. Everything derived from those values (scale factor,
estimate, compositing request) is recomputed from the current snapshot on
every read.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from .errors import CredentialResetRequired, MissingImagesError, RenderError, RenderInProgressError
from .model import CalibrationData, EstimateResult, IndividualRollSpec, PanoramaSpec, Point, SwatchType
from ..config import DEFAULT_CONFIG, individual_spec_from_config, panorama_spec_from_config
from ..features.editing.draw import WallMask, draw_on_click
from ..features.panels.rolls import ProductSpec, estimate
from ..features.render.composite import CompositeRequest, build_composite_request, render_wallpaper
from ..features.scale.scale import apply_preset, calibration_on_click, scale_factor, set_real_world_value
from ..file_io import EncodedImage

logger = logging.getLogger(__name__)


class ToolMode(str, Enum):
    IDLE = 'IDLE'
    CALIBRATE = 'CALIBRATE'
    SELECT_WALL = 'SELECT_WALL'


class WorkspaceSession:
    """Calibration, wall mask, product choice and render state for one room photo."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config: Dict[str, Any] = config if config is not None else dict(DEFAULT_CONFIG)
        self.mode = ToolMode.IDLE
        self.calibration = CalibrationData()
        self.wall_mask: WallMask = ()
        self.swatch_type = SwatchType.INDIVIDUAL
        self.individual_spec: IndividualRollSpec = individual_spec_from_config(self.config)
        self.panorama_spec: PanoramaSpec = panorama_spec_from_config(self.config)
        self.room_image: Optional[EncodedImage] = None
        self.swatch_image: Optional[EncodedImage] = None
        self.rendered_result: Optional[EncodedImage] = None
        self.error_message: Optional[str] = None
        self.is_rendering = False
        self.api_key: Optional[str] = None
        self.has_credentials = True

    # ----- mode transitions -----

    def _toggle(self, mode: ToolMode) -> ToolMode:
        self.mode = ToolMode.IDLE if self.mode is mode else mode
        logger.debug("Tool mode -> %s", self.mode.value)
        return self.mode

    def toggle_calibrate(self) -> ToolMode:
        return self._toggle(ToolMode.CALIBRATE)

    def toggle_select_wall(self) -> ToolMode:
        return self._toggle(ToolMode.SELECT_WALL)

    # ----- pointer input -----

    def on_pointer_down(self, point: Point) -> bool:
        """Apply a click at ``point`` for the current mode. Return True if handled."""
        if self.mode is ToolMode.CALIBRATE:
            self.calibration = calibration_on_click(self.calibration, point)
            return True
        if self.mode is ToolMode.SELECT_WALL:
            self.wall_mask = draw_on_click(self.wall_mask, point)
            return True
        return False

    def on_pointer_down_px(self, px: float, py: float, width: float, height: float) -> bool:
        if width <= 0 or height <= 0:
            return False
        return self.on_pointer_down(Point.from_pixels(px, py, width, height))

    # ----- model edits outside the pointer flow -----

    def set_real_world_value(self, value_cm: float) -> None:
        self.calibration = set_real_world_value(self.calibration, value_cm)

    def set_calibration_preset(self, name: str) -> None:
        self.calibration = apply_preset(self.calibration, name)

    def set_swatch_type(self, swatch_type: Union[SwatchType, str]) -> None:
        self.swatch_type = SwatchType(swatch_type)

    def update_individual_spec(self, **changes: float) -> None:
        self.individual_spec = replace(self.individual_spec, **changes)

    def update_panorama_spec(self, **changes: float) -> None:
        self.panorama_spec = replace(self.panorama_spec, **changes)

    def clear_wall_mask(self) -> None:
        self.wall_mask = ()

    def reset(self) -> None:
        """Drop calibration points, wall mask and render output; keep images, specs and length."""
        self.mode = ToolMode.IDLE
        self.calibration = self.calibration.with_points(None, None)
        self.wall_mask = ()
        self.rendered_result = None
        self.error_message = None

    def set_room_image(self, image: EncodedImage) -> None:
        self.room_image = image
        self.rendered_result = None

    def set_swatch_image(self, image: EncodedImage) -> None:
        self.swatch_image = image
        self.rendered_result = None

    # ----- derived values -----

    @property
    def active_spec(self) -> ProductSpec:
        if self.swatch_type is SwatchType.PANORAMA:
            return self.panorama_spec
        return self.individual_spec

    @property
    def scale_factor(self) -> Optional[float]:
        return scale_factor(self.calibration)

    @property
    def estimate(self) -> Optional[EstimateResult]:
        return estimate(self.calibration, self.wall_mask, self.swatch_type, self.active_spec)

    # ----- compositing -----

    def select_credentials(self, api_key: Optional[str] = None) -> None:
        self.api_key = api_key
        self.has_credentials = True

    def build_render_request(self) -> CompositeRequest:
        if self.room_image is None or self.swatch_image is None:
            raise MissingImagesError("Please upload both a room photo and a wallpaper swatch.")
        return build_composite_request(
            self.room_image,
            self.swatch_image,
            self.calibration,
            self.wall_mask,
            self.swatch_type,
            self.panorama_spec,
            self.config,
        )

    def render(self, client_factory: Callable[[Optional[str]], Any]) -> EncodedImage:
        """Run one compositing request; failures land in ``error_message`` and are re-raised.

        ``client_factory`` receives the selected API key (or None) and returns
        a client exposing ``models.generate_content``.
        """
        if not self.has_credentials:
            raise CredentialResetRequired("API Key reset required. Please select your key again.")
        if self.is_rendering:
            raise RenderInProgressError("A render is already in progress.")
        request = self.build_render_request()

        self.is_rendering = True
        self.error_message = None
        try:
            result = render_wallpaper(client_factory(self.api_key), request)
        except CredentialResetRequired as e:
            self.has_credentials = False
            self.error_message = str(e)
            raise
        except RenderError as e:
            self.error_message = str(e)
            raise
        except Exception as e:
            # Client construction failures surface with their own message
            logger.error("Compositing client failed: %s", e)
            self.error_message = str(e)
            raise RenderError(str(e)) from e
        finally:
            self.is_rendering = False
        self.rendered_result = result
        return result
