"""Blank Markdown templates shipped for each known template kind."""

from __future__ import annotations

from pathlib import Path

from formbind.schema.models import TemplateKind
from formbind.utils.errors import UnknownTemplateKindError

_BLANK_DIR = Path(__file__).with_name("blank")


def blank_template_path(kind: TemplateKind) -> Path:
    if kind is TemplateKind.UNKNOWN:
        raise UnknownTemplateKindError(kind)
    return _BLANK_DIR / f"{kind.value.lower()}.md"


def load_blank_template(kind: TemplateKind | str) -> str:
    """Return the blank template text for ``kind``."""

    try:
        resolved = TemplateKind(kind)
    except ValueError as exc:
        raise UnknownTemplateKindError(kind) from exc
    return blank_template_path(resolved).read_text(encoding="utf-8")
