"""Typesetting rules shared by the on-screen preview and every export format.

Supported Markdown subset (what the templates are authored in):
- ``#`` headings, blank-line separated paragraphs, pipe tables
- inline ``**bold**``, backtick spans, ``![alt](ref)`` images, ``\\`` escapes

Table cells holding an unresolved blank placeholder are tagged ``empty``;
other body cells are tagged ``filled``, matching the preview highlighting.
"""

from __future__ import annotations

import re

from formbind.render.models import Block, Cell, CellState, Heading, Inline, Paragraph, Table

_HEADING_RE = re.compile(r"^(?P<marks>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
_SEPARATOR_RE = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_INLINE_RE = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\((?P<ref>[^)\s]*)\)"
    r"|\*\*(?P<bold>.+?)\*\*"
    r"|`(?P<code>[^`]*)`"
)
_ESCAPE_RE = re.compile(r"\\([\\`*_|\[\]()#!.])")
_EMPTY_CELL_RE = re.compile(r"`[_\s]{4,}`")
_HOLLOW_CELL_RE = re.compile(r"`\s*`")

_CHECKBOX_GLYPHS = {"☐": False, "☑": True}


def typeset(text: str) -> list[Block]:
    """Split Markdown ``text`` into render blocks."""

    blocks: list[Block] = []
    paragraph_lines: list[str] = []
    table_lines: list[str] = []

    def flush_paragraph() -> None:
        if paragraph_lines:
            blocks.append(Paragraph(inlines=parse_inlines(" ".join(paragraph_lines))))
            paragraph_lines.clear()

    def flush_table() -> None:
        if table_lines:
            blocks.append(_build_table(table_lines))
            table_lines.clear()

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if line.startswith("|"):
            flush_paragraph()
            table_lines.append(line)
            continue
        flush_table()

        if not line:
            flush_paragraph()
            continue

        heading = _HEADING_RE.match(line)
        if heading is not None:
            flush_paragraph()
            blocks.append(
                Heading(level=len(heading.group("marks")), text=_unescape(heading.group("text")))
            )
            continue

        paragraph_lines.append(line)

    flush_paragraph()
    flush_table()
    return blocks


def parse_inlines(source: str) -> tuple[Inline, ...]:
    """Parse inline markup into text, bold, checkbox and image runs."""

    inlines: list[Inline] = []
    cursor = 0
    for match in _INLINE_RE.finditer(source):
        if match.start() > cursor:
            inlines.append(Inline(text=_unescape(source[cursor : match.start()])))
        cursor = match.end()

        if match.group("ref") is not None:
            inlines.append(Inline(image_ref=match.group("ref"), image_alt=match.group("alt")))
        elif match.group("bold") is not None:
            inlines.append(Inline(text=_unescape(match.group("bold")), bold=True))
        else:
            code = match.group("code")
            if code in _CHECKBOX_GLYPHS:
                inlines.append(Inline(text=code, checkbox=_CHECKBOX_GLYPHS[code]))
            else:
                inlines.append(Inline(text=code))

    if cursor < len(source):
        inlines.append(Inline(text=_unescape(source[cursor:])))
    return tuple(inline for inline in inlines if inline.text or inline.image_ref is not None)


def cell_state(raw: str) -> CellState:
    """Highlight state of a body cell from its Markdown source."""

    if _EMPTY_CELL_RE.search(raw) or _HOLLOW_CELL_RE.search(raw):
        return "empty"
    return "filled"


def _build_table(lines: list[str]) -> Table:
    rows = [_split_cells(line) for line in lines if not _SEPARATOR_RE.match(line)]
    if not rows:
        return Table(header=())
    header_sources, *body_sources = rows
    header = tuple(Cell(inlines=parse_inlines(source)) for source in header_sources)
    body = tuple(
        tuple(Cell(inlines=parse_inlines(source), state=cell_state(source)) for source in row)
        for row in body_sources
    )
    return Table(header=header, rows=body)


def _split_cells(line: str) -> list[str]:
    inner = line.strip()
    if inner.startswith("|"):
        inner = inner[1:]
    if inner.endswith("|") and not inner.endswith("\\|"):
        inner = inner[:-1]
    return [cell.strip() for cell in _CELL_SPLIT_RE.split(inner)]


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(r"\1", text)
