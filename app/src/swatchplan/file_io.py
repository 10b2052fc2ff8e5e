from __future__ import annotations

import base64
import io
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Union

from PIL import Image, UnidentifiedImageError

from .config import merge_config

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

_FORMAT_MIME_TYPES = {
    'PNG': 'image/png',
    'JPEG': 'image/jpeg',
    'WEBP': 'image/webp',
    'GIF': 'image/gif',
    'BMP': 'image/bmp',
}


@dataclass(frozen=True)
class EncodedImage:
    """Encoded image bytes tagged with their MIME type."""
    data: bytes
    mime_type: str = 'image/png'

    def to_data_url(self) -> str:
        payload = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type};base64,{payload}"

    @classmethod
    def from_data_url(cls, url: str) -> "EncodedImage":
        header, sep, payload = url.partition(',')
        if not sep or not header.startswith('data:') or ';base64' not in header:
            raise ValueError("Expected a base64 data URL")
        mime_type = header[len('data:'):].split(';', 1)[0] or 'image/png'
        try:
            data = base64.b64decode(payload, validate=True)
        except ValueError as e:
            raise ValueError(f"Invalid base64 image payload: {e}") from e
        return cls(data=data, mime_type=mime_type)

    def open(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data))


def encode_image(img: Image.Image) -> EncodedImage:
    """Encode a Pillow Image as PNG."""
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return EncodedImage(buffer.getvalue(), 'image/png')


def decode_image_bytes(data: bytes) -> EncodedImage:
    """Check that ``data`` is an image Pillow can read and tag it with its MIME type."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Not a readable image: {e}") from e
    mime_type = _FORMAT_MIME_TYPES.get(fmt or '')
    if mime_type is None:
        # Re-encode formats the compositing service may not accept
        with Image.open(io.BytesIO(data)) as img:
            return encode_image(img.convert('RGBA'))
    return EncodedImage(data, mime_type)


def load_image(path: PathLike) -> EncodedImage:
    with open(path, 'rb') as f:
        data = f.read()
    image = decode_image_bytes(data)
    logger.info("Loaded %s (%s, %d bytes)", path, image.mime_type, len(image.data))
    return image


def load_config(path: PathLike) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            cfg = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to load configuration {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ValueError(f"Configuration {path} must be a JSON object")
    logger.info("Configuration loaded from %s", path)
    return merge_config(cfg)


def save_config(cfg: Dict[str, Any], path: PathLike) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, indent=2)
    logger.info("Configuration saved to %s", path)
