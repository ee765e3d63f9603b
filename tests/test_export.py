from __future__ import annotations

import base64
import io

import pytest
from docx import Document as load_docx
from PIL import Image

from formbind.binding.binder import bind
from formbind.binding.document import Document
from formbind.config.models import ExportSettings
from formbind.orchestrator.export import export_document, export_document_async, export_filename
from formbind.render.raster import paginate, rasterize
from formbind.render.typeset import typeset
from formbind.schema.models import TemplateKind
from formbind.schema.registry import field_by_key
from formbind.templates.blanks import load_blank_template
from formbind.utils.docx_xml import get_cell_shading
from formbind.utils.errors import ExportFailedError


def _settings() -> ExportSettings:
    return ExportSettings(dpi=72, margin_px=24, font_size=12)


def _png_data_url(color: str = "black") -> str:
    image = Image.new("RGBA", (60, 20), (255, 255, 255, 0))
    image.paste(Image.new("RGBA", (40, 4), color), (10, 8))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _signed_meeting() -> Document:
    doc = Document.from_text(load_blank_template(TemplateKind.TOOLBOX_MEETING))
    doc = bind(doc, field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_supervisor_name"), "J. Tan")
    doc = bind(doc, field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_subject_1"), True)
    return bind(
        doc,
        field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_supervisor_signature"),
        _png_data_url(),
    )


@pytest.mark.parametrize(
    ("raster_height", "expected_pages"),
    [(10, 1), (100, 1), (101, 2), (200, 2), (201, 3)],
)
def test_paginate_appends_pages_while_height_remains(raster_height: int, expected_pages: int) -> None:
    settings = ExportSettings(page_width_mm=100, page_height_mm=100)
    raster = Image.new("RGB", (100, raster_height), "black")

    pages = paginate(raster, settings)

    assert len(pages) == expected_pages
    assert all(page.size == (100, 100) for page in pages)


def test_last_page_is_padded_with_white() -> None:
    settings = ExportSettings(page_width_mm=100, page_height_mm=100)
    raster = Image.new("RGB", (100, 150), "black")

    last = paginate(raster, settings)[-1]

    assert last.getpixel((50, 10)) == (0, 0, 0)
    assert last.getpixel((50, 90)) == (255, 255, 255)


def test_rasterize_uses_page_width_and_grows_with_content() -> None:
    settings = _settings()
    short = rasterize(typeset("# Title"), settings)
    long = rasterize(typeset(load_blank_template(TemplateKind.TOOLBOX_MEETING)), settings)

    assert short.width == settings.page_width_px
    assert long.width == settings.page_width_px
    assert long.height > short.height


def test_pdf_export_of_bound_document() -> None:
    doc = _signed_meeting()

    artifact = export_document(doc, _settings(), filename_stem="42")

    assert artifact.content.startswith(b"%PDF")
    assert artifact.filename == "form-entry-42.pdf"
    assert artifact.media_type == "application/pdf"
    assert artifact.page_count >= 1


def test_export_is_not_gated_by_unfilled_placeholders() -> None:
    artifact = export_document(load_blank_template(TemplateKind.PERMIT_TO_WORK), _settings())

    assert artifact.content.startswith(b"%PDF")
    assert artifact.filename == "form-entry.pdf"


def test_docx_export_writes_tables_with_highlighting() -> None:
    settings = _settings()

    artifact = export_document(_signed_meeting(), settings, fmt="docx", filename_stem="7")

    assert artifact.filename == "form-entry-7.docx"
    assert artifact.content.startswith(b"PK")
    document = load_docx(io.BytesIO(artifact.content))
    assert len(document.tables) == 4
    header_table = document.tables[0]
    filled = [
        get_cell_shading(cell)
        for row in header_table.rows
        for cell in row.cells
    ]
    assert settings.empty_cell_color.lstrip("#").upper() in filled
    assert len(document.inline_shapes) == 1


def test_corrupt_embedded_image_fails_export() -> None:
    doc = Document.from_text("| **Signature** | ![Sig](data:image/png;base64,bm90IGFuIGltYWdl) |")

    with pytest.raises(ExportFailedError) as excinfo:
        export_document(doc, _settings())

    assert excinfo.value.stage == "rasterize"


def test_remote_image_references_use_loader_or_placeholder() -> None:
    text = "![Photo](https://img.example/site.png)"
    requested: list[str] = []

    def loader(reference: str) -> bytes | None:
        requested.append(reference)
        return None

    artifact = export_document(text, _settings(), image_loader=loader)

    assert requested == ["https://img.example/site.png"]
    assert artifact.page_count == 1


def test_unsupported_format_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_document("x", _settings(), fmt="html")  # type: ignore[arg-type]


def test_export_filename_strips_unsafe_characters() -> None:
    assert export_filename("sub/42 final", "pdf") == "form-entry-sub-42-final.pdf"
    assert export_filename("", "docx") == "form-entry.docx"


@pytest.mark.anyio
async def test_async_export_matches_sync_export() -> None:
    text = "# Toolbox Meeting\n\nShort body."

    artifact = await export_document_async(text, _settings())

    assert artifact.content.startswith(b"%PDF")
    assert artifact.page_count == 1
