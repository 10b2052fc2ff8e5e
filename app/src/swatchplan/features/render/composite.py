"""
Compositing request builder and client for the generative image service.

The room photo, the swatch and a natural-language instruction block are sent
to a Gemini image model, which returns the room with the wallpaper applied.
Only request construction and response/error mapping live here; the service
itself is a black box.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from ...config import DEFAULT_CONFIG, get_api_key
from ...core.errors import CredentialResetRequired, NoImageReturnedError, RenderError
from ...core.model import CalibrationData, PanoramaSpec, Point, SwatchType
from ...file_io import EncodedImage

logger = logging.getLogger(__name__)

# Upstream message meaning the selected key/project is no longer valid
ENTITY_NOT_FOUND_MESSAGE = "Requested entity was not found"

PRIMARY_WALL_PROMPT = "Wallpaper the primary wall surface accurately."
POLYGON_GUIDE_PROMPT = (
    "The wallpaper must be applied strictly within the polygon guide provided by the user "
    "(rough guide). This might be a partial wall, for example stopping at a dado rail or skirting."
)


@dataclass(frozen=True)
class CompositeRequest:
    prompt: str
    room: EncodedImage
    swatch: EncodedImage
    model: str = DEFAULT_CONFIG['model']
    aspect_ratio: str = DEFAULT_CONFIG['aspect_ratio']
    image_size: str = DEFAULT_CONFIG['image_size']


def build_calibration_info(calibration: CalibrationData, swatch_type: SwatchType) -> str:
    subject = "standard repeat pattern" if SwatchType(swatch_type) is SwatchType.INDIVIDUAL else "mural"
    return (
        "The user indicated that the line drawn covers a real-world length of "
        f"{calibration.real_world_value_cm:g} cm. Use this to scale the {subject} correctly."
    )


def build_mask_prompt(wall_mask: Sequence[Point]) -> str:
    # Any guide point at all switches to the polygon instruction
    return POLYGON_GUIDE_PROMPT if len(wall_mask) > 0 else PRIMARY_WALL_PROMPT


def build_instructions(swatch_type: SwatchType, panorama: Optional[PanoramaSpec] = None) -> str:
    if SwatchType(swatch_type) is SwatchType.INDIVIDUAL:
        return (
            "1. SEAMLESS TILING: The swatch represents exactly 1m x 1m. You MUST tile it "
            "repeatedly across the wall. Do NOT stretch the image."
        )
    spec = panorama or PanoramaSpec()
    return "\n".join([
        f"1. PANORAMA MURAL MAPPING: The provided swatch is a complete mural consisting of "
        f"{spec.total_rolls} rolls.",
        f"2. DIMENSIONS: Each roll is {spec.roll_width_cm:g}cm wide. The design height is "
        f"{spec.design_height_cm:g}cm.",
        "3. PLACEMENT: Do NOT tile this image like a small sample. Instead, map the mural across "
        "the wall, scaling it so the height of the mural matches the height of the wall "
        f"(accounting for the {spec.design_height_cm:g}cm reference).",
    ])


def build_prompt(calibration_info: str, mask_prompt: str, instructions: str) -> str:
    return "\n".join([
        "You are a professional architectural visualizer specializing in high-end bespoke wallpaper.",
        "TASK: Apply the provided wallpaper image onto the designated walls in the room photo.",
        "",
        "CONSTRAINTS:",
        instructions,
        "4. PERSPECTIVE: Align the pattern to the perspective and depth of the walls. Ensure "
        "linear perspective foreshortening is physically accurate.",
        f"5. SCALE: {calibration_info} Use this to ensure the pattern/mural is rendered at the "
        "correct physical scale.",
        "6. OCCLUSION: Preserve all foreground objects (furniture, plants, lamps, persons). The "
        "wallpaper should only appear on the surfaces of the wall \"behind\" these objects.",
        "7. LIGHTING: Blend the wallpaper with the existing room lighting, including shadows "
        "and highlights.",
        "",
        f"TARGET AREA: {mask_prompt}",
        "",
        "Return the final high-fidelity composite image.",
    ])


def build_composite_request(room: EncodedImage, swatch: EncodedImage, calibration: CalibrationData,
                            wall_mask: Sequence[Point], swatch_type: SwatchType,
                            panorama: Optional[PanoramaSpec] = None,
                            config: Optional[dict] = None) -> CompositeRequest:
    cfg = config or DEFAULT_CONFIG
    prompt = build_prompt(
        build_calibration_info(calibration, swatch_type),
        build_mask_prompt(wall_mask),
        build_instructions(swatch_type, panorama),
    )
    return CompositeRequest(
        prompt=prompt,
        room=room,
        swatch=swatch,
        model=cfg.get('model', DEFAULT_CONFIG['model']),
        aspect_ratio=cfg.get('aspect_ratio', DEFAULT_CONFIG['aspect_ratio']),
        image_size=cfg.get('image_size', DEFAULT_CONFIG['image_size']),
    )


def create_gemini_client(api_key: Optional[str] = None) -> genai.Client:
    """Create a Gemini client, reading the key from the environment if not given."""
    return genai.Client(api_key=api_key or get_api_key())


def extract_image_from_response(response: Any) -> Optional[EncodedImage]:
    """Return the first inline image in the response, or None."""
    for cand in getattr(response, "candidates", None) or []:
        content = getattr(cand, "content", None)
        if content is None:
            continue
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return EncodedImage(inline.data, inline.mime_type or 'image/png')
    return None


def _is_entity_not_found(exc: Exception) -> bool:
    # Other 404s (e.g. an unknown model name) stay generic failures
    return ENTITY_NOT_FOUND_MESSAGE in str(exc)


def render_wallpaper(client: Any, request: CompositeRequest) -> EncodedImage:
    """Send ``request`` to the compositing model and return the composite image.

    Raises CredentialResetRequired when the service reports the entity as not
    found, NoImageReturnedError when it answers without image data and
    RenderError for any other failure.
    """
    logger.info("Requesting composite from %s (%s, %s)",
                request.model, request.aspect_ratio, request.image_size)
    contents = [
        types.Part.from_text(text=request.prompt),
        types.Part.from_bytes(data=request.room.data, mime_type=request.room.mime_type),
        types.Part.from_bytes(data=request.swatch.data, mime_type=request.swatch.mime_type),
    ]
    config = types.GenerateContentConfig(
        response_modalities=["IMAGE", "TEXT"],
        image_config=types.ImageConfig(
            aspect_ratio=request.aspect_ratio,
            image_size=request.image_size,
        ),
    )
    try:
        response = client.models.generate_content(
            model=request.model,
            contents=contents,
            config=config,
        )
    except Exception as e:
        if _is_entity_not_found(e):
            logger.warning("Compositing service rejected the credentials: %s", e)
            raise CredentialResetRequired(
                "API Key reset required. Please select your key again."
            ) from e
        logger.error("Compositing request failed: %s", e)
        raise RenderError(str(e)) from e

    image = extract_image_from_response(response)
    if image is None:
        logger.error("Compositing response contained no image data")
        raise NoImageReturnedError("No image data returned from AI.")
    logger.info("Composite received (%s, %d bytes)", image.mime_type, len(image.data))
    return image
