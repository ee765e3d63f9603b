"""Keyword-priority template classifier.

Rules are evaluated in a fixed order and the first kind whose signature
phrase appears anywhere in the text wins. A document containing phrases of
more than one kind is resolved by this order, not reported as ambiguous.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from formbind.schema.models import TemplateKind


class Classifier(Protocol):
    """Protocol for anything that maps raw document text to a template kind."""

    def classify(self, text: str) -> TemplateKind:
        """Return the template kind of ``text``."""


@dataclass(frozen=True)
class KeywordRule:
    kind: TemplateKind
    phrases: tuple[str, ...]


DEFAULT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(TemplateKind.TOOLBOX_MEETING, ("toolbox meeting",)),
    KeywordRule(
        TemplateKind.VIDEO_SURVEILLANCE_CHECKLIST,
        ("video surveillance system", "vss"),
    ),
    KeywordRule(
        TemplateKind.WORK_AT_HEIGHT_PERMIT,
        ("working-at-height personnel", "work at height personnel"),
    ),
    KeywordRule(TemplateKind.PERMIT_TO_WORK, ("permit to work at height",)),
)


class KeywordClassifier:
    """First-match, case-insensitive substring classifier."""

    def __init__(self, rules: Sequence[KeywordRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(
            KeywordRule(rule.kind, tuple(phrase.lower() for phrase in rule.phrases))
            for rule in rules
        )

    @property
    def kinds(self) -> list[TemplateKind]:
        return [rule.kind for rule in self._rules]

    def classify(self, text: str) -> TemplateKind:
        lowered = text.lower()
        for rule in self._rules:
            if any(phrase in lowered for phrase in rule.phrases):
                return rule.kind
        return TemplateKind.UNKNOWN


_DEFAULT_CLASSIFIER = KeywordClassifier()


def classify(text: str) -> TemplateKind:
    """Classify ``text`` with the default keyword rules."""

    return _DEFAULT_CLASSIFIER.classify(text)


def classification_order() -> list[TemplateKind]:
    """Known kinds in the order the default classifier checks them."""

    return _DEFAULT_CLASSIFIER.kinds
