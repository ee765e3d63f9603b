"""Render-side models: line diffs, typeset blocks and export artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict

DiffKind = Literal["unchanged", "added", "modified"]
CellState = Literal["filled", "empty", "plain"]


@dataclass(frozen=True)
class DiffLine:
    """Positional classification of one line of the current text."""

    index: int
    kind: DiffKind
    content: str

    @property
    def has_changes(self) -> bool:
        return self.kind != "unchanged"


@dataclass(frozen=True)
class Inline:
    """Run of text or an embedded image inside a block."""

    text: str = ""
    bold: bool = False
    image_ref: str | None = None
    image_alt: str | None = None
    checkbox: bool | None = None


@dataclass(frozen=True)
class Cell:
    inlines: tuple[Inline, ...]
    state: CellState = "plain"

    @property
    def plain_text(self) -> str:
        return "".join(inline.text for inline in self.inlines)


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Paragraph:
    inlines: tuple[Inline, ...]


@dataclass(frozen=True)
class Table:
    header: tuple[Cell, ...]
    rows: tuple[tuple[Cell, ...], ...] = field(default=())

    @property
    def column_count(self) -> int:
        widths = [len(self.header), *(len(row) for row in self.rows)]
        return max(widths) if widths else 0


Block = Heading | Paragraph | Table


class ExportArtifact(BaseModel):
    """Paginated export bytes and the filename suggested to the caller."""

    model_config = ConfigDict(extra="forbid")

    content: bytes
    filename: str
    media_type: str
    page_count: int
