from __future__ import annotations

import copy
import os
from typing import Any, Dict, Optional

from .core.errors import CredentialResetRequired
from .core.model import IndividualRollSpec, PanoramaSpec

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

DEFAULT_CONFIG: Dict[str, Any] = {
    'model': 'gemini-3-pro-image-preview',
    'aspect_ratio': '16:9',
    'image_size': '1K',
    'individual_roll': {'width_cm': 53.0, 'length_m': 10.0},
    'panorama': {'roll_width_cm': 70.0, 'total_rolls': 7, 'design_height_cm': 325.0},
    'host': '',
    'port': 8000,
    'log_level': 'INFO',
}


def merge_config(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the defaults with ``overrides`` applied; nested sections merge one level deep."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(cfg.get(key), dict):
            cfg[key].update(value)
        else:
            cfg[key] = value
    return cfg


def individual_spec_from_config(cfg: Dict[str, Any]) -> IndividualRollSpec:
    section = cfg.get('individual_roll', {})
    return IndividualRollSpec(
        width_cm=float(section.get('width_cm', IndividualRollSpec.width_cm)),
        length_m=float(section.get('length_m', IndividualRollSpec.length_m)),
    )


def panorama_spec_from_config(cfg: Dict[str, Any]) -> PanoramaSpec:
    section = cfg.get('panorama', {})
    return PanoramaSpec(
        roll_width_cm=float(section.get('roll_width_cm', PanoramaSpec.roll_width_cm)),
        total_rolls=int(section.get('total_rolls', PanoramaSpec.total_rolls)),
        design_height_cm=float(section.get('design_height_cm', PanoramaSpec.design_height_cm)),
    )


def get_api_key(environ: Optional[Dict[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = env.get(name)
        if value:
            return value
    raise CredentialResetRequired(
        "API key is missing. Set GEMINI_API_KEY (or API_KEY) and select your key again."
    )
