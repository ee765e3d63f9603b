"""Validation report models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationIssue(BaseModel):
    """One unmet requirement."""

    model_config = ConfigDict(extra="forbid")

    field_key: str
    label: str
    reason: Literal["missing_required"] = "missing_required"
    message: str


class ValidationReport(BaseModel):
    """Derived completeness report; gates saving in the host UI, never raised.

    Rules:
    - passed == (missing_count == 0)
    - issues follow registry order
    """

    model_config = ConfigDict(extra="forbid")

    passed: bool
    missing_count: int
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationReport:
        return cls(passed=not issues, missing_count=len(issues), issues=issues)

    @property
    def missing_keys(self) -> list[str]:
        return [issue.field_key for issue in self.issues]
