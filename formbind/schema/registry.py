"""Field schema registry: template kind -> ordered field definitions."""

from __future__ import annotations

import dataclasses

from formbind.schema.models import FieldDefinition, TemplateKind
from formbind.schema.roster import Roster
from formbind.schema.specs import FIELD_SPECS
from formbind.templates.blanks import blank_template_path
from formbind.templates.classifier import classification_order
from formbind.utils.errors import UnknownFieldError, UnknownTemplateKindError


def resolve_kind(kind: TemplateKind | str) -> TemplateKind:
    """Coerce ``kind`` into the closed enumeration or fail."""

    if isinstance(kind, TemplateKind):
        return kind
    try:
        return TemplateKind(kind)
    except ValueError as exc:
        raise UnknownTemplateKindError(kind) from exc


def fields_for(kind: TemplateKind | str, roster: Roster | None = None) -> list[FieldDefinition]:
    """Return the field definitions of ``kind`` in registry order.

    ``UNKNOWN`` yields an empty list. With a roster, fields with an options source are
    returned with their options filled from the matching roster list.
    """

    resolved = resolve_kind(kind)
    fields = list(FIELD_SPECS[resolved])
    if roster is None:
        return fields
    return [_with_options(field, roster) for field in fields]


def field_by_key(kind: TemplateKind | str, key: str, roster: Roster | None = None) -> FieldDefinition:
    resolved = resolve_kind(kind)
    for field in fields_for(resolved, roster):
        if field.key == key:
            return field
    raise UnknownFieldError(key, kind=resolved.value)


def list_template_kinds() -> list[TemplateKind]:
    """Known kinds in classifier priority order (``UNKNOWN`` excluded)."""

    return classification_order()


def _with_options(field: FieldDefinition, roster: Roster) -> FieldDefinition:
    if field.options_source is None:
        return field
    return dataclasses.replace(field, options=roster.options_for(field.options_source))


def _assert_registry_alignment() -> None:
    """Fail fast when specs, classifier and blank templates diverge."""

    known = set(classification_order())
    spec_kinds = set(FIELD_SPECS) - {TemplateKind.UNKNOWN}
    if known != spec_kinds:
        raise RuntimeError(
            "Field specs must cover exactly the classifier kinds: "
            f"specs={sorted(k.value for k in spec_kinds)}, "
            f"classifier={sorted(k.value for k in known)}"
        )

    for kind in spec_kinds:
        keys = [field.key for field in FIELD_SPECS[kind]]
        if len(keys) != len(set(keys)):
            raise RuntimeError(f"Duplicate field keys in {kind.value}")
        if not blank_template_path(kind).is_file():
            raise RuntimeError(f"Missing blank template for {kind.value}")


_assert_registry_alignment()
