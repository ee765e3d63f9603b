"""Adapters that turn a drawing widget or a file into a stable image reference.

Both adapters are single-shot: no retries, no cancellation. A failure
raises and leaves the caller's field unset.
"""

from __future__ import annotations

import base64
import io
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from PIL import Image, ImageChops, UnidentifiedImageError

from formbind.config.models import UploadSettings
from formbind.utils.errors import CaptureFailedError, UploadFailedError

logger = logging.getLogger("formbind.engine")

SignatureSource = Callable[[], Awaitable[bytes | None]]

REFERENCE_KEYS = ("url", "cloudinary_url", "secure_url")


class SignatureCaptureAdapter:
    """Wrap a drawing surface that yields PNG bytes when the user confirms."""

    def __init__(self, source: SignatureSource) -> None:
        self._source = source

    async def capture(self) -> str:
        raw = await self._source()
        if not raw:
            raise CaptureFailedError("Signature surface returned no image")

        try:
            with Image.open(io.BytesIO(raw)) as image:
                image.load()
                flattened = _flatten(image)
        except (UnidentifiedImageError, OSError) as exc:
            raise CaptureFailedError(f"Signature is not a readable image: {exc}") from exc

        background = Image.new("RGB", flattened.size, "white")
        if ImageChops.difference(flattened, background).getbbox() is None:
            raise CaptureFailedError("Signature is blank")

        buffer = io.BytesIO()
        flattened.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"


class ImageUploadAdapter:
    """Post a file to the remote image store and return its public URL."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        upload_url: str,
        *,
        field_name: str = "file",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._client = client
        self._upload_url = upload_url
        self._field_name = field_name
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: UploadSettings) -> ImageUploadAdapter:
        if settings.url is None:
            raise ValueError("Upload URL is not configured")
        return cls(
            client,
            str(settings.url),
            field_name=settings.field_name,
            timeout_seconds=settings.timeout_seconds,
        )

    async def upload(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        files = {self._field_name: (filename, content, content_type or "application/octet-stream")}
        try:
            response = await self._client.post(
                self._upload_url,
                files=files,
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise UploadFailedError(f"Upload request failed: {exc}") from exc

        payload = _json_or_empty(response)
        if response.status_code >= 400:
            message = payload.get("message") or payload.get("error") or response.reason_phrase
            raise UploadFailedError(
                f"Upload failed: {message}",
                status_code=response.status_code,
            )

        for key in REFERENCE_KEYS:
            reference = payload.get(key)
            if isinstance(reference, str) and reference:
                logger.info("image uploaded: filename=%s status=%s", filename, response.status_code)
                return reference

        raise UploadFailedError(
            "Upload response carried no image reference",
            status_code=response.status_code,
        )


def _flatten(image: Image.Image) -> Image.Image:
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, "white")
    return Image.alpha_composite(background, rgba).convert("RGB")


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
