"""Presence-only validation of a value map against a field schema."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from formbind.schema.models import FieldDefinition
from formbind.validate.models import ValidationIssue, ValidationReport


def validate(schema: Iterable[FieldDefinition], values: Mapping[str, Any]) -> ValidationReport:
    """Report every required field whose value is absent or empty.

    Empty means ``None``, ``""`` or ``False``. Formats (dates, times) are not
    checked.
    """

    issues = [
        ValidationIssue(
            field_key=field.key,
            label=field.label,
            message=f"{field.label} is required",
        )
        for field in schema
        if field.required and _is_empty(values.get(field.key))
    ]
    return ValidationReport.from_issues(issues)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value is False
