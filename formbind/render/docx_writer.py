"""Word export of typeset blocks via python-docx."""

from __future__ import annotations

import io
from collections.abc import Sequence

from docx import Document
from docx.document import Document as DocxDocument
from docx.shared import Mm, Pt, RGBColor

from formbind.config.models import ExportSettings
from formbind.render.images import ImageLoader, load_image_bytes, open_image
from formbind.render.models import Block, Cell, Heading, Inline, Paragraph, Table
from formbind.utils.docx_xml import set_cell_shading, set_run_fonts_and_size

DOCX_FONT = "Arial"
DOCX_FONT_SIZE_PT = 10

_CHECKBOX_TEXT = {True: "☑", False: "☐"}


def build_docx(
    blocks: Sequence[Block],
    settings: ExportSettings,
    image_loader: ImageLoader | None = None,
) -> DocxDocument:
    """Write ``blocks`` into a new Word document sized to the export page."""

    document = Document()
    section = document.sections[0]
    section.page_width = Mm(settings.page_width_mm)
    section.page_height = Mm(settings.page_height_mm)

    for block in blocks:
        if isinstance(block, Heading):
            document.add_heading(block.text, level=min(max(block.level, 1), 9))
        elif isinstance(block, Paragraph):
            paragraph = document.add_paragraph()
            _write_inlines(paragraph, block.inlines, settings, image_loader)
        elif isinstance(block, Table):
            _write_table(document, block, settings, image_loader)
    return document


def docx_bytes(document: DocxDocument) -> bytes:
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _write_table(
    document: DocxDocument,
    table: Table,
    settings: ExportSettings,
    image_loader: ImageLoader | None,
) -> None:
    columns = table.column_count
    if columns == 0:
        return

    has_header = any(cell.inlines for cell in table.header)
    rows: list[tuple[tuple[Cell, ...], bool]] = []
    if has_header:
        rows.append((table.header, True))
    rows.extend((row, False) for row in table.rows)
    if not rows:
        return

    docx_table = document.add_table(rows=len(rows), cols=columns)
    docx_table.style = "Table Grid"
    for row_index, (cells, is_header) in enumerate(rows):
        for column in range(columns):
            cell = cells[column] if column < len(cells) else Cell(inlines=())
            target = docx_table.cell(row_index, column)
            paragraph = target.paragraphs[0]
            inlines = cell.inlines
            if is_header:
                inlines = tuple(
                    Inline(text=i.text, bold=True, checkbox=i.checkbox) if i.image_ref is None else i
                    for i in inlines
                )
            _write_inlines(paragraph, inlines, settings, image_loader)

            if is_header:
                set_cell_shading(target, settings.header_cell_color)
            elif cell.state == "filled":
                set_cell_shading(target, settings.filled_cell_color)
            elif cell.state == "empty":
                set_cell_shading(target, settings.empty_cell_color)
    document.add_paragraph()


def _write_inlines(
    paragraph,
    inlines: Sequence[Inline],
    settings: ExportSettings,
    image_loader: ImageLoader | None,
) -> None:
    for inline in inlines:
        if inline.image_ref is not None:
            data = _image_bytes(inline.image_ref, image_loader)
            if data is None:
                run = paragraph.add_run(f"[{inline.image_alt or 'image'}]")
                set_run_fonts_and_size(run, DOCX_FONT, DOCX_FONT_SIZE_PT)
                run.italic = True
                continue
            height_pt = settings.image_max_height_px * 72 / settings.dpi
            paragraph.add_run().add_picture(io.BytesIO(data), height=Pt(height_pt))
            continue

        text = _CHECKBOX_TEXT[inline.checkbox] if inline.checkbox is not None else inline.text
        run = paragraph.add_run(text)
        set_run_fonts_and_size(run, DOCX_FONT, DOCX_FONT_SIZE_PT)
        run.bold = inline.bold or None
        run.font.color.rgb = RGBColor.from_string(settings.text_color.lstrip("#").upper())


def _image_bytes(reference: str, image_loader: ImageLoader | None) -> bytes | None:
    data = load_image_bytes(reference, image_loader, stage="docx")
    if data is None:
        return None

    # python-docx only embeds a few formats; normalise everything to PNG.
    buffer = io.BytesIO()
    open_image(data, stage="docx").save(buffer, format="PNG")
    return buffer.getvalue()
