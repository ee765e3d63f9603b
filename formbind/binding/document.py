"""Document buffer and persisted submission models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formbind.schema.models import ValueMap


@dataclass(frozen=True)
class Document:
    """Rendered template text plus the snapshot it was loaded from.

    Instances are replaced, not mutated: the binder returns a new document
    for every edit so the previous state stays valid if a later step fails.
    """

    original_text: str
    text: str
    values: ValueMap = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, values: ValueMap | None = None) -> Document:
        return cls(original_text=text, text=text, values=dict(values or {}))


class Submission(BaseModel):
    """Canonical persisted form: document text and value map, loaded verbatim."""

    model_config = ConfigDict(extra="forbid")

    document_text: str
    value_map: dict[str, Any] = Field(default_factory=dict)
    submission_id: str | None = None
    template_name: str | None = None
