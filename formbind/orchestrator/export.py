"""Export coordinator: typeset -> rasterise -> paginate -> encode."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Literal

from formbind.binding.document import Document
from formbind.config.models import ExportSettings
from formbind.render.docx_writer import build_docx, docx_bytes
from formbind.render.images import ImageLoader
from formbind.render.models import ExportArtifact
from formbind.render.raster import pages_to_pdf, paginate, rasterize
from formbind.render.typeset import typeset
from formbind.utils.errors import ExportFailedError

logger = logging.getLogger("formbind.engine")

ExportFormat = Literal["pdf", "docx"]

MEDIA_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_STEM_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def export_document(
    doc: Document | str,
    settings: ExportSettings | None = None,
    fmt: ExportFormat = "pdf",
    filename_stem: str | None = None,
    image_loader: ImageLoader | None = None,
) -> ExportArtifact:
    """Render the current text of ``doc`` into a paginated artifact.

    Export reads the document and never changes it; it is not gated by
    validation, so documents with unfilled placeholders export as-is.
    """

    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")

    effective = settings or ExportSettings()
    text = doc.text if isinstance(doc, Document) else doc
    filename = export_filename(filename_stem, fmt)

    try:
        blocks = typeset(text)
    except Exception as exc:  # noqa: BLE001
        raise ExportFailedError(f"Typesetting failed: {exc}", stage="typeset") from exc

    if fmt == "docx":
        content = _guarded("docx", lambda: docx_bytes(build_docx(blocks, effective, image_loader)))
        page_count = 0
    else:
        raster = _guarded("rasterize", lambda: rasterize(blocks, effective, image_loader))
        pages = _guarded("paginate", lambda: paginate(raster, effective))
        content = _guarded("encode", lambda: pages_to_pdf(pages, effective.dpi))
        page_count = len(pages)

    logger.info(
        "document exported: format=%s filename=%s pages=%s bytes=%s",
        fmt,
        filename,
        page_count,
        len(content),
    )
    return ExportArtifact(
        content=content,
        filename=filename,
        media_type=MEDIA_TYPES[fmt],
        page_count=page_count,
    )


async def export_document_async(
    doc: Document | str,
    settings: ExportSettings | None = None,
    fmt: ExportFormat = "pdf",
    filename_stem: str | None = None,
    image_loader: ImageLoader | None = None,
) -> ExportArtifact:
    """Run :func:`export_document` in a worker thread."""

    return await asyncio.to_thread(export_document, doc, settings, fmt, filename_stem, image_loader)


def export_filename(stem: str | None, fmt: str) -> str:
    cleaned = _STEM_UNSAFE_RE.sub("-", stem or "").strip("-.")
    if not cleaned:
        return f"form-entry.{fmt}"
    return f"form-entry-{cleaned}.{fmt}"


def _guarded(stage: str, step):
    try:
        return step()
    except ExportFailedError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ExportFailedError(f"Export failed during {stage}: {exc}", stage=stage) from exc
