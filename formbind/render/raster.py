"""Rasterise typeset blocks with Pillow and paginate the raster.

Layout produces a display list first so the canvas can be allocated at its
final height; painting then replays the list. Pagination slices the raster
into pages of the configured aspect ratio, appending continuation pages
while raster height remains and padding the last page with white.
"""

from __future__ import annotations

import io
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from formbind.config.models import ExportSettings
from formbind.render.images import ImageLoader, load_image_bytes, open_image
from formbind.render.models import Block, Cell, Heading, Inline, Paragraph, Table
from formbind.utils.errors import ExportFailedError

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont

_WORD_RE = re.compile(r"\S+\s*|\s+")
_HEADING_SCALE_STEP = 0.15


@dataclass
class _Op:
    kind: str
    box: tuple[int, int, int, int]
    payload: Any = None
    font: Font | None = None
    fill: str | None = None
    outline: str | None = None


@dataclass
class _Item:
    width: int
    height: int
    text: str | None = None
    font: Font | None = None
    image: Image.Image | None = None
    checkbox: bool | None = None
    placeholder: str | None = None


@dataclass
class _Layout:
    ops: list[_Op] = field(default_factory=list)
    height: int = 0


class Rasterizer:
    """Lay out and paint blocks onto a page-width canvas."""

    def __init__(self, settings: ExportSettings, image_loader: ImageLoader | None = None) -> None:
        self._settings = settings
        self._image_loader = image_loader
        self._regular = _load_font(settings.font_path, settings.font_size)
        self._bold = (
            _load_font(settings.bold_font_path, settings.font_size)
            if settings.bold_font_path
            else self._regular
        )
        self._fake_bold = settings.bold_font_path is None
        self._measure = ImageDraw.Draw(Image.new("RGB", (1, 1), "white"))
        self._line_height = self._text_height(self._regular)

    def rasterize(self, blocks: Sequence[Block]) -> Image.Image:
        width = self._settings.page_width_px
        margin = self._settings.margin_px
        content_width = width - 2 * margin
        if content_width <= 0:
            raise ExportFailedError("Margins leave no room for content", stage="layout")

        layout = _Layout()
        y = margin
        for block in blocks:
            if isinstance(block, Heading):
                y = self._layout_heading(layout, block, margin, y, content_width)
            elif isinstance(block, Paragraph):
                height = self._flow(layout, block.inlines, margin, y, content_width)
                y += height + self._line_height // 2
            elif isinstance(block, Table):
                y = self._layout_table(layout, block, margin, y, content_width)
        layout.height = max(y + margin, margin * 2 + 1)

        canvas = Image.new("RGB", (width, layout.height), "white")
        self._paint(canvas, layout.ops)
        return canvas

    def _layout_heading(
        self, layout: _Layout, block: Heading, x: int, y: int, width: int
    ) -> int:
        scale = max(1.0, self._settings.heading_scale - _HEADING_SCALE_STEP * (block.level - 1))
        size = round(self._settings.font_size * scale)
        font = _load_font(self._settings.bold_font_path or self._settings.font_path, size)
        height = self._flow(layout, (Inline(text=block.text, bold=True),), x, y, width, font=font)
        return y + height + self._line_height // 2

    def _layout_table(self, layout: _Layout, table: Table, x: int, y: int, width: int) -> int:
        columns = table.column_count
        if columns == 0:
            return y

        column_width = width // columns
        padding = self._settings.cell_padding_px
        rows: list[tuple[tuple[Cell, ...], bool]] = []
        if any(cell.inlines for cell in table.header):
            rows.append((table.header, True))
        rows.extend((row, False) for row in table.rows)

        for cells, is_header in rows:
            cell_layouts: list[_Layout] = []
            row_height = self._line_height + 2 * padding
            for index in range(columns):
                cell = cells[index] if index < len(cells) else Cell(inlines=())
                inlines = tuple(
                    Inline(text=i.text, bold=True, checkbox=i.checkbox)
                    if is_header and i.image_ref is None
                    else i
                    for i in cell.inlines
                )
                cell_layout = _Layout()
                cell_layout.height = self._flow(
                    cell_layout,
                    inlines,
                    x + index * column_width + padding,
                    y + padding,
                    column_width - 2 * padding,
                )
                cell_layouts.append(cell_layout)
                row_height = max(row_height, cell_layout.height + 2 * padding)

            for index in range(columns):
                cell = cells[index] if index < len(cells) else Cell(inlines=())
                left = x + index * column_width
                box = (left, y, left + column_width, y + row_height)
                layout.ops.append(
                    _Op(
                        "rect",
                        box,
                        fill=self._cell_fill(cell, is_header),
                        outline=self._settings.border_color,
                    )
                )
                layout.ops.extend(cell_layouts[index].ops)
            y += row_height

        return y + self._line_height

    def _cell_fill(self, cell: Cell, is_header: bool) -> str:
        if is_header:
            return self._settings.header_cell_color
        if cell.state == "filled":
            return self._settings.filled_cell_color
        if cell.state == "empty":
            return self._settings.empty_cell_color
        return "white"

    def _flow(
        self,
        layout: _Layout,
        inlines: Sequence[Inline],
        x0: int,
        y0: int,
        width: int,
        *,
        font: Font | None = None,
    ) -> int:
        """Lay inline items left to right, wrapping at ``width``; return used height."""

        items = [item for inline in inlines for item in self._items(inline, width, font)]
        if not items:
            return self._line_height

        x, y = x0, y0
        line: list[tuple[int, _Item]] = []
        total = 0

        def close_line() -> int:
            height = max([self._line_height, *(item.height for _, item in line)])
            for left, item in line:
                layout.ops.append(self._item_op(item, left, y))
            line.clear()
            return height

        for item in items:
            if line and x + item.width > x0 + width:
                line_height = close_line()
                y += line_height
                total += line_height
                x = x0
                if item.text is not None and not item.text.strip():
                    continue
            line.append((x, item))
            x += item.width

        total += close_line()
        return total

    def _items(self, inline: Inline, width: int, font: Font | None) -> list[_Item]:
        if inline.checkbox is not None:
            size = max(8, int(self._line_height * 0.7))
            return [_Item(width=size + 6, height=self._line_height, checkbox=inline.checkbox)]

        if inline.image_ref is not None:
            image = self._load_image(inline.image_ref)
            max_height = self._settings.image_max_height_px
            if image is None:
                label = inline.image_alt or "image"
                return [
                    _Item(
                        width=min(width, int(self._measure.textlength(label, font=self._regular)) + 16),
                        height=max(self._line_height, max_height // 2),
                        placeholder=label,
                    )
                ]
            image.thumbnail((max(width, 1), max_height))
            return [_Item(width=image.width, height=image.height, image=image)]

        chosen = font or (self._bold if inline.bold else self._regular)
        return [
            _Item(
                width=int(self._measure.textlength(token, font=chosen)),
                height=self._text_height(chosen),
                text=token,
                font=chosen,
            )
            for token in _WORD_RE.findall(inline.text)
        ]

    def _item_op(self, item: _Item, x: int, y: int) -> _Op:
        box = (x, y, x + item.width, y + item.height)
        if item.checkbox is not None:
            return _Op("checkbox", box, payload=item.checkbox)
        if item.image is not None:
            return _Op("image", box, payload=item.image)
        if item.placeholder is not None:
            return _Op("placeholder", box, payload=item.placeholder, font=self._regular)
        return _Op("text", box, payload=item.text, font=item.font)

    def _paint(self, canvas: Image.Image, ops: list[_Op]) -> None:
        draw = ImageDraw.Draw(canvas)
        color = self._settings.text_color
        for op in ops:
            left, top = op.box[0], op.box[1]
            if op.kind == "rect":
                draw.rectangle(op.box, fill=op.fill, outline=op.outline)
            elif op.kind == "text":
                stroke = 1 if self._fake_bold and op.font is not self._regular else 0
                draw.text((left, top), op.payload, font=op.font, fill=color, stroke_width=stroke, stroke_fill=color)
            elif op.kind == "image":
                canvas.paste(op.payload, (left, top), op.payload)
            elif op.kind == "placeholder":
                draw.rectangle(op.box, outline="#9ca3af")
                draw.text((left + 8, top + 4), op.payload, font=op.font, fill="#6b7280")
            elif op.kind == "checkbox":
                size = max(8, int(self._line_height * 0.7))
                square = (left + 2, top + 2, left + 2 + size, top + 2 + size)
                draw.rectangle(square, outline=color, width=2)
                if op.payload:
                    draw.line((square[0] + 2, square[1] + 2, square[2] - 2, square[3] - 2), fill=color, width=2)
                    draw.line((square[0] + 2, square[3] - 2, square[2] - 2, square[1] + 2), fill=color, width=2)

    def _load_image(self, reference: str) -> Image.Image | None:
        data = load_image_bytes(reference, self._image_loader, stage="rasterize")
        if data is None:
            return None
        return open_image(data, stage="rasterize")

    def _text_height(self, font: Font) -> int:
        bbox = self._measure.textbbox((0, 0), "Ag", font=font)
        return int((bbox[3] - bbox[1]) * 1.6) + 2


def rasterize(
    blocks: Sequence[Block],
    settings: ExportSettings,
    image_loader: ImageLoader | None = None,
) -> Image.Image:
    """Paint ``blocks`` onto one page-width canvas of unbounded height."""

    return Rasterizer(settings, image_loader).rasterize(blocks)


def paginate(raster: Image.Image, settings: ExportSettings) -> list[Image.Image]:
    """Slice ``raster`` into fixed-size pages of the configured aspect ratio."""

    page_height = round(raster.width * settings.page_height_mm / settings.page_width_mm)
    pages: list[Image.Image] = []
    offset = 0
    while True:
        page = Image.new("RGB", (raster.width, page_height), "white")
        bottom = min(offset + page_height, raster.height)
        page.paste(raster.crop((0, offset, raster.width, bottom)), (0, 0))
        pages.append(page)
        offset += page_height
        if offset >= raster.height:
            break
    return pages


def pages_to_pdf(pages: Sequence[Image.Image], dpi: int) -> bytes:
    """Encode raster pages as one multi-page PDF."""

    if not pages:
        raise ExportFailedError("No pages to encode", stage="encode")
    buffer = io.BytesIO()
    first, *rest = pages
    first.save(buffer, format="PDF", save_all=True, append_images=rest, resolution=float(dpi))
    return buffer.getvalue()


def _load_font(path: str | None, size: int) -> Font:
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as exc:
            raise ExportFailedError(f"Cannot load font {path}: {exc}", stage="layout") from exc
    return ImageFont.load_default(size=size)
