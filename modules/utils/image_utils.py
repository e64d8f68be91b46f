"""Helpers for base64 images returned by the image commands."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Any, Dict, List

from PIL import Image

from modules.services.redaction import IMAGE_DATA_REMOVED, REDACTION_RULES


def decode_base64_image(data: str) -> Image.Image:
    """Decode a base64 PNG payload into a Pillow image."""
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 image data: {exc}") from exc
    image = Image.open(io.BytesIO(raw))
    image.load()
    return image


def extract_images(command: str, result: Dict[str, Any]) -> Dict[str, Image.Image]:
    """Return the decoded images of a ``hidden``/``rgb`` result keyed by field."""
    images: Dict[str, Image.Image] = {}
    for name in REDACTION_RULES.get(command, ()):
        data = result.get(name)
        if not data or data == IMAGE_DATA_REMOVED:
            continue
        images[name] = decode_base64_image(data)
    return images


def save_result_images(command: str, result: Dict[str, Any], output_dir: Path, stem: str) -> List[Path]:
    """Write every image of a result to ``<output_dir>/<stem>-<field>.png``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: List[Path] = []
    for name, image in extract_images(command, result).items():
        path = output_dir / f"{stem}-{name}.png"
        image.save(path, format="PNG")
        saved.append(path)
    return saved
