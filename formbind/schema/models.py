"""Data models for template kinds and field definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

# Blank tokens as authored in the templates; an empty value renders back to these.
BLANK_TOKEN = "`____________________________`"
SHORT_BLANK_TOKEN = "`______`"
CELL_BLANK_TOKEN = "`____________`"

CHECKED_GLYPH = "`☑`"
UNCHECKED_GLYPH = "`☐`"

ValueMap = dict[str, Any]
OptionsSource = Literal["jobs", "locations", "workers"]


class TemplateKind(str, Enum):
    """Layout family of a document, fixed once classification succeeds."""

    TOOLBOX_MEETING = "TOOLBOX_MEETING"
    VIDEO_SURVEILLANCE_CHECKLIST = "VIDEO_SURVEILLANCE_CHECKLIST"
    WORK_AT_HEIGHT_PERMIT = "WORK_AT_HEIGHT_PERMIT"
    PERMIT_TO_WORK = "PERMIT_TO_WORK"
    UNKNOWN = "UNKNOWN"


class ValueType(str, Enum):
    """How a field's value is rendered and stored."""

    SHORT_TEXT = "short_text"
    DATE = "date"
    TIME = "time"
    SINGLE_SELECT = "single_select"
    CHECKBOX = "checkbox"
    SIGNATURE = "signature"
    IMAGE = "image"
    PERSON_ROW = "person_row"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_TYPES

    @property
    def is_image(self) -> bool:
        return self in (ValueType.SIGNATURE, ValueType.IMAGE)


_SCALAR_TYPES = frozenset(
    {ValueType.SHORT_TEXT, ValueType.DATE, ValueType.TIME, ValueType.SINGLE_SELECT}
)


@dataclass(frozen=True)
class LocatorRule:
    """Where a field's value region sits in document text.

    ``anchor`` is a regex matched immediately before the value region (one
    space separates them). ``scope`` must match first; the anchor is searched
    only after it. ``until`` is a lookahead closing scalar value regions.
    """

    anchor: str
    scope: str | None = None
    until: str | None = None


@dataclass(frozen=True)
class FieldOption:
    """One selectable choice of a single-select field."""

    value: str
    label: str


@dataclass(frozen=True)
class FieldDefinition:
    """One fillable slot of a template kind."""

    key: str
    label: str
    value_type: ValueType
    required: bool = False
    options: tuple[FieldOption, ...] = ()
    options_source: OptionsSource | None = None
    locator: LocatorRule | None = None
    blank: str = BLANK_TOKEN
    sibling_suffixes: tuple[str, ...] = field(default=())

    def sibling_keys(self) -> list[str]:
        """Derived value-map keys written alongside ``key`` (person rows only)."""

        return [f"{self.key}_{suffix}" for suffix in self.sibling_suffixes]

    def value_keys(self) -> list[str]:
        return [self.key, *self.sibling_keys()]
