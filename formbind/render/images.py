"""Resolve image references found in bound documents into bytes."""

from __future__ import annotations

import base64
import binascii
import io
from collections.abc import Callable
from urllib.parse import unquote

from PIL import Image, UnidentifiedImageError

from formbind.utils.errors import ExportFailedError

ImageLoader = Callable[[str], bytes | None]


def load_image_bytes(reference: str, image_loader: ImageLoader | None, *, stage: str) -> bytes | None:
    """Return raw bytes for ``reference`` or ``None`` when it cannot be fetched.

    ``data:`` references are decoded inline; anything else goes through
    ``image_loader`` with percent-encoding undone.
    """

    if reference.startswith("data:"):
        header, _, payload = reference.partition(",")
        if ";base64" not in header:
            raise ExportFailedError("Only base64 data references are supported", stage=stage)
        try:
            return base64.b64decode(unquote(payload), validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ExportFailedError(f"Invalid embedded image data: {exc}", stage=stage) from exc

    if image_loader is None:
        return None
    return image_loader(unquote(reference))


def open_image(data: bytes, *, stage: str) -> Image.Image:
    """Decode ``data`` into an RGBA image."""

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ExportFailedError(f"Cannot decode embedded image: {exc}", stage=stage) from exc
    return image.convert("RGBA")
