from __future__ import annotations

import pytest

from formbind.schema.models import (
    BLANK_TOKEN,
    CELL_BLANK_TOKEN,
    SHORT_BLANK_TOKEN,
    UNCHECKED_GLYPH,
    FieldDefinition,
    LocatorRule,
    TemplateKind,
    ValueType,
)
from formbind.schema.registry import field_by_key, fields_for, list_template_kinds
from formbind.templates.blanks import load_blank_template
from formbind.templates.locator import Span, locate, splice


@pytest.mark.parametrize("kind", list_template_kinds())
def test_every_registry_field_is_locatable_in_its_blank_template(kind: TemplateKind) -> None:
    text = load_blank_template(kind)

    for field in fields_for(kind):
        span = locate(text, field)
        assert span is not None, field.key


@pytest.mark.parametrize("kind", list_template_kinds())
def test_spans_of_distinct_fields_do_not_overlap(kind: TemplateKind) -> None:
    text = load_blank_template(kind)
    located = [(locate(text, field), field.key) for field in fields_for(kind)]
    spans = sorted(located, key=lambda item: (item[0].start, item[0].end))

    for (left, left_key), (right, right_key) in zip(spans, spans[1:]):
        assert left.end <= right.start, (left_key, right_key)


def test_scalar_span_covers_placeholder_token() -> None:
    text = load_blank_template(TemplateKind.TOOLBOX_MEETING)
    field = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_date_meeting")

    span = locate(text, field)

    assert span is not None
    assert span.slice(text) == BLANK_TOKEN


def test_time_fields_stop_before_hours_suffix() -> None:
    text = load_blank_template(TemplateKind.TOOLBOX_MEETING)
    time_from = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_time_from")
    time_to = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_time_to")

    from_span = locate(text, time_from)
    to_span = locate(text, time_to)

    assert from_span is not None and to_span is not None
    assert from_span.slice(text) == SHORT_BLANK_TOKEN
    assert to_span.slice(text) == SHORT_BLANK_TOKEN
    assert from_span.end < to_span.start


def test_checkbox_span_is_the_glyph() -> None:
    text = load_blank_template(TemplateKind.TOOLBOX_MEETING)
    field = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_subject_20")

    span = locate(text, field)

    assert span is not None
    assert span.slice(text) == UNCHECKED_GLYPH
    assert "Dos & Don'ts" in text[span.start - 20 : span.start]


def test_person_row_span_covers_three_cells() -> None:
    text = load_blank_template(TemplateKind.TOOLBOX_MEETING)
    field = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_employee_1")

    span = locate(text, field)

    assert span is not None
    assert span.slice(text) == " | ".join([CELL_BLANK_TOKEN] * 3)


def test_scoped_field_ignores_matches_before_scope() -> None:
    text = load_blank_template(TemplateKind.PERMIT_TO_WORK)
    s1 = field_by_key(TemplateKind.PERMIT_TO_WORK, "ptw_s1_name")
    s3 = field_by_key(TemplateKind.PERMIT_TO_WORK, "ptw_s3_name")

    s1_span = locate(text, s1)
    s3_span = locate(text, s3)

    assert s1_span is not None and s3_span is not None
    assert s1_span.start < text.index("## Section 2") < text.index("## Section 3") < s3_span.start


def test_scope_can_span_several_lines() -> None:
    field = FieldDefinition(
        key="second_name",
        label="Name",
        value_type=ValueType.SHORT_TEXT,
        locator=LocatorRule(anchor=r"\*\*Name:\*\*", scope=r"^## Part A.*?^## Part B"),
    )
    text = "**Name:** first\n## Part A\nnotes\n## Part B\n**Name:** second\n"

    span = locate(text, field)

    assert span is not None
    assert span.slice(text) == "second"


def test_image_span_matches_embedded_reference() -> None:
    field = FieldDefinition(
        key="sig",
        label="Signature",
        value_type=ValueType.SIGNATURE,
        locator=LocatorRule(anchor=r"\*\*Signature\*\* \|"),
    )
    text = "| **Signature** | ![Signature](https://img.example/a.png) |"

    span = locate(text, field)

    assert span is not None
    assert span.slice(text) == "![Signature](https://img.example/a.png)"


def test_missing_anchor_is_not_found() -> None:
    field = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_supervisor_name")

    assert locate("# Toolbox meeting\n\nNo tables here.", field) is None


def test_missing_scope_is_not_found() -> None:
    field = field_by_key(TemplateKind.TOOLBOX_MEETING, "tbm_employee_3")

    assert locate("| 3 | `_` | `_` | `_` |", field) is None


def test_field_without_locator_is_not_found() -> None:
    field = FieldDefinition(key="free", label="Free", value_type=ValueType.SHORT_TEXT)

    assert locate("anything", field) is None


def test_splice_replaces_span_only() -> None:
    assert splice("abc-def", Span(3, 4), "+++") == "abc+++def"
