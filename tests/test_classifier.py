from __future__ import annotations

import pytest

from formbind.schema.models import TemplateKind
from formbind.schema.registry import fields_for
from formbind.templates.blanks import load_blank_template
from formbind.templates.classifier import KeywordClassifier, KeywordRule, classify


def test_toolbox_meeting_phrase_classifies_case_insensitively() -> None:
    assert classify("Minutes of the TOOLBOX MEETING held on site") is TemplateKind.TOOLBOX_MEETING


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Video Surveillance System daily check", TemplateKind.VIDEO_SURVEILLANCE_CHECKLIST),
        ("VSS serial numbers", TemplateKind.VIDEO_SURVEILLANCE_CHECKLIST),
        ("List of working-at-height personnel", TemplateKind.WORK_AT_HEIGHT_PERMIT),
        ("Authorised work at height personnel", TemplateKind.WORK_AT_HEIGHT_PERMIT),
        ("Permit to Work at Height", TemplateKind.PERMIT_TO_WORK),
    ],
)
def test_signature_phrases(text: str, expected: TemplateKind) -> None:
    assert classify(text) is expected


def test_first_match_wins_when_several_phrases_are_present() -> None:
    text = "Permit to work at height, discussed at the toolbox meeting"

    assert classify(text) is TemplateKind.TOOLBOX_MEETING


def test_reordered_rules_change_the_result() -> None:
    text = "Permit to work at height, discussed at the toolbox meeting"
    reordered = KeywordClassifier(
        [
            KeywordRule(TemplateKind.PERMIT_TO_WORK, ("permit to work at height",)),
            KeywordRule(TemplateKind.TOOLBOX_MEETING, ("toolbox meeting",)),
        ]
    )

    assert reordered.classify(text) is TemplateKind.PERMIT_TO_WORK


def test_unrecognised_text_is_unknown_and_has_no_fields() -> None:
    kind = classify("# Site Diary\n\nWeather: fine")

    assert kind is TemplateKind.UNKNOWN
    assert fields_for(kind) == []


def test_classification_is_repeatable() -> None:
    text = load_blank_template(TemplateKind.PERMIT_TO_WORK)

    assert {classify(text) for _ in range(5)} == {TemplateKind.PERMIT_TO_WORK}


@pytest.mark.parametrize(
    "kind",
    [
        TemplateKind.TOOLBOX_MEETING,
        TemplateKind.VIDEO_SURVEILLANCE_CHECKLIST,
        TemplateKind.WORK_AT_HEIGHT_PERMIT,
        TemplateKind.PERMIT_TO_WORK,
    ],
)
def test_bundled_blank_templates_classify_as_their_kind(kind: TemplateKind) -> None:
    assert classify(load_blank_template(kind)) is kind
