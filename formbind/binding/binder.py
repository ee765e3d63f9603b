"""Binder: fold one field value into document text and the value map.

Rules:
- The value map is always updated, even when the field cannot be located.
- Text is rendered from value-map entries only, so replaying a persisted
  value map against the original text reproduces the bound text.
- ``None`` unsets a field: its entries are removed and its region goes back
  to what the original text held there.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from typing import Any

from formbind.binding.document import Document
from formbind.schema.models import (
    CHECKED_GLYPH,
    UNCHECKED_GLYPH,
    FieldDefinition,
    ValueMap,
    ValueType,
)
from formbind.schema.roster import Worker
from formbind.templates.locator import locate, splice

logger = logging.getLogger("formbind.engine")

_HOURS_MARK_RE = re.compile(r"(hrs)\.", re.IGNORECASE)
_HOURS_SUFFIX_RE = re.compile(r"\s*hrs\.?\s*$", re.IGNORECASE)

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on", "checked", "y"})


def bind(doc: Document, field: FieldDefinition, value: Any) -> Document:
    """Return a new document with ``value`` bound to ``field``."""

    values = dict(doc.values)
    for key in field.value_keys():
        values.pop(key, None)
    if value is not None:
        values.update(expand_value(field, value))

    text = _apply(doc.text, doc.original_text, field, values)
    return Document(original_text=doc.original_text, text=text, values=values)


def expand_value(field: FieldDefinition, value: Any) -> ValueMap:
    """Compute the value-map writes for one logical edit of ``field``."""

    if field.value_type is ValueType.CHECKBOX:
        return {field.key: _as_bool(value)}

    if field.value_type is ValueType.PERSON_ROW:
        worker = _as_worker(value)
        name_key, id_key, company_key = field.sibling_keys()
        return {
            field.key: worker.id,
            name_key: worker.full_name,
            id_key: worker.identifier,
            company_key: worker.company or "",
        }

    return {field.key: _as_text(value)}


def render_value(field: FieldDefinition, values: Mapping[str, Any]) -> str | None:
    """Render ``field`` from value-map entries; ``None`` when the field is unset."""

    if field.key not in values:
        return None
    value = values[field.key]

    if field.value_type is ValueType.CHECKBOX:
        return CHECKED_GLYPH if _as_bool(value) else UNCHECKED_GLYPH

    if field.value_type.is_image:
        if not value:
            return field.blank
        return _image_markdown(field.label, str(value))

    if field.value_type is ValueType.PERSON_ROW:
        cells = []
        for key in field.sibling_keys():
            cell = sanitize_text(str(values.get(key) or ""))
            cells.append(cell or field.blank)
        return " | ".join(cells)

    text = _as_text(value) if value is not None else ""
    if field.value_type is ValueType.TIME:
        # the template already prints the unit after the value
        text = _HOURS_SUFFIX_RE.sub("", text)
    rendered = sanitize_text(text)
    return rendered or field.blank


def replay(original_text: str, fields: Iterable[FieldDefinition], values: Mapping[str, Any]) -> str:
    """Re-apply every set field of ``values`` to ``original_text``."""

    text = original_text
    for field in fields:
        if field.key in values:
            text = _apply(text, original_text, field, values)
    return text


def sanitize_text(value: str) -> str:
    """Make a literal safe to splice into a table cell or labelled line."""

    cleaned = " ".join(value.splitlines())
    cleaned = cleaned.replace("|", "/").replace("`", "'").replace("*", "\\*")
    cleaned = _HOURS_MARK_RE.sub(r"\1\\.", cleaned)
    return cleaned.strip()


def _apply(text: str, original_text: str, field: FieldDefinition, values: Mapping[str, Any]) -> str:
    span = locate(text, field)
    if span is None:
        logger.debug("field not locatable, value kept in value map: %s", field.key)
        return text

    rendered = render_value(field, values)
    if rendered is None:
        rendered = _original_region(original_text, field)
    return splice(text, span, rendered)


def _original_region(original_text: str, field: FieldDefinition) -> str:
    span = locate(original_text, field)
    if span is None:
        return field.blank
    return span.slice(original_text)


def _image_markdown(label: str, reference: str) -> str:
    safe_label = label.replace("[", "(").replace("]", ")")
    safe_reference = (
        "%20".join(reference.split()).replace("(", "%28").replace(")", "%29")
    )
    return f"![{safe_label}]({safe_reference})"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value)


def _as_worker(value: Any) -> Worker:
    if isinstance(value, Worker):
        return value
    if isinstance(value, Mapping):
        return Worker.model_validate(value)
    raise TypeError(
        "person rows take a Worker or a worker mapping; resolve ids through the roster first"
    )
