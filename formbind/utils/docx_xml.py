"""Raw OOXML helpers for the Word export.

Cell shading and run fonts are set here so the writer never touches XML.
"""

from __future__ import annotations

from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt
from docx.table import _Cell
from docx.text.run import Run


def set_cell_shading(cell: _Cell, fill_hex: str) -> None:
    """Set a solid background fill on ``cell`` (``#rrggbb`` or ``rrggbb``)."""

    tc_pr = cell._tc.get_or_add_tcPr()
    shading = tc_pr.find(qn("w:shd"))
    if shading is None:
        shading = OxmlElement("w:shd")
        tc_pr.append(shading)

    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), fill_hex.lstrip("#").upper())


def get_cell_shading(cell: _Cell) -> str | None:
    """Return the direct fill of ``cell`` as upper-case hex, if present."""

    tc_pr = cell._tc.tcPr
    if tc_pr is None:
        return None
    shading = tc_pr.find(qn("w:shd"))
    if shading is None:
        return None
    return shading.get(qn("w:fill"))


def set_run_fonts_and_size(run: Run, latin_font: str, size_pt: int) -> None:
    """Set direct run latin fonts and font size."""

    run.font.name = latin_font
    run.font.size = Pt(size_pt)

    r_pr = run._r.get_or_add_rPr()
    r_fonts = r_pr.rFonts
    if r_fonts is None:
        r_fonts = OxmlElement("w:rFonts")
        r_pr.append(r_fonts)

    r_fonts.set(qn("w:ascii"), latin_font)
    r_fonts.set(qn("w:hAnsi"), latin_font)
