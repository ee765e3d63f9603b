"""Pattern locator: find the value region a field owns in document text.

Rules:
- The value region starts one space after the field's anchor.
- When the rule has a scope, the anchor is searched only after the scope match.
- The shape of the value region depends on the value type, so a region stays
  locatable after it has been bound (a glyph flip, an embedded image, or a
  literal value up to the next delimiter).
- A missing anchor is NotFound (``None``), never an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from formbind.schema.models import FieldDefinition, LocatorRule, ValueType

_FLAGS = re.IGNORECASE | re.MULTILINE

# Scalar regions end at the next cell delimiter, the next bold label or end of line.
_DEFAULT_UNTIL = r"(?=[ ]\||[ ]\*\*|[ ]*$)"
_SCALAR_VALUE = r"(?P<value>[^\n]*?)"
_CHECKBOX_VALUE = r"(?P<value>`[☐☑]`)"
_IMAGE_VALUE = r"(?P<value>`[^`\n]*`|!\[[^\]\n]*\]\([^)\s]*\))"
_PERSON_ROW_VALUE = r"(?P<value>[^|\n]*\|[^|\n]*\|[^|\n]*?)(?=[ ]\|[ ]*$)"


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` inside document text."""

    start: int
    end: int

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


def locate(text: str, field: FieldDefinition) -> Span | None:
    """Return the span of ``field``'s value region, or ``None`` when absent."""

    rule = field.locator
    if rule is None:
        return None

    position = 0
    if rule.scope is not None:
        scope_match = _compile_scope(rule.scope).search(text)
        if scope_match is None:
            return None
        position = scope_match.end()

    match = _compile_rule(rule, field.value_type).search(text, position)
    if match is None:
        return None
    return Span(match.start("value"), match.end("value"))


def splice(text: str, span: Span, replacement: str) -> str:
    """Replace ``span`` in ``text`` with ``replacement``."""

    return text[: span.start] + replacement + text[span.end :]


@lru_cache(maxsize=None)
def _compile_scope(scope: str) -> re.Pattern[str]:
    return re.compile(scope, _FLAGS | re.DOTALL)


@lru_cache(maxsize=None)
def _compile_rule(rule: LocatorRule, value_type: ValueType) -> re.Pattern[str]:
    if value_type is ValueType.CHECKBOX:
        value_pattern = _CHECKBOX_VALUE
    elif value_type.is_image:
        value_pattern = _IMAGE_VALUE
    elif value_type is ValueType.PERSON_ROW:
        value_pattern = _PERSON_ROW_VALUE
    else:
        value_pattern = _SCALAR_VALUE + (rule.until or _DEFAULT_UNTIL)
    return re.compile(f"(?:{rule.anchor})[ ]{value_pattern}", _FLAGS)
