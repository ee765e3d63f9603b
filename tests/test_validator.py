from __future__ import annotations

from formbind.schema.models import FieldDefinition, TemplateKind, ValueType
from formbind.schema.registry import fields_for
from formbind.validate.validator import validate


def _schema() -> list[FieldDefinition]:
    return [
        FieldDefinition(key=f"f{index}", label=f"Field {index}", value_type=ValueType.SHORT_TEXT, required=True)
        for index in range(1, 6)
    ] + [FieldDefinition(key="optional", label="Optional", value_type=ValueType.SHORT_TEXT)]


def test_two_of_five_required_unset_yields_two_issues() -> None:
    values = {"f1": "a", "f2": "b", "f4": "d"}

    report = validate(_schema(), values)

    assert report.passed is False
    assert report.missing_count == 2
    assert report.missing_keys == ["f3", "f5"]
    assert [issue.message for issue in report.issues] == ["Field 3 is required", "Field 5 is required"]


def test_all_required_set_passes() -> None:
    report = validate(_schema(), {f"f{index}": "x" for index in range(1, 6)})

    assert report.passed is True
    assert report.issues == []


def test_empty_string_false_and_none_count_as_missing() -> None:
    values = {"f1": "", "f2": False, "f3": None, "f4": 0, "f5": "ok"}

    report = validate(_schema(), values)

    assert report.missing_keys == ["f1", "f2", "f3"]


def test_presence_only_no_format_checks() -> None:
    schema = [FieldDefinition(key="d", label="Date", value_type=ValueType.DATE, required=True)]

    assert validate(schema, {"d": "not a date"}).passed is True


def test_toolbox_meeting_required_fields_in_registry_order() -> None:
    report = validate(fields_for(TemplateKind.TOOLBOX_MEETING), {"tbm_date_meeting": "2024-05-01"})

    assert report.missing_keys == [
        "tbm_project_title",
        "tbm_time_from",
        "tbm_time_to",
        "tbm_supervisor_name",
        "tbm_supervisor_signature",
        "tbm_supervisor_designation",
        "tbm_supervisor_date",
    ]


def test_unknown_kind_always_passes() -> None:
    assert validate(fields_for(TemplateKind.UNKNOWN), {}).passed is True
