"""Pydantic models for proposed resume improvements."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class AcceptanceState(str, Enum):
    UNDECIDED = "undecided"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ValidationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


class SuggestionType(str, Enum):
    IMPROVE_SUMMARY = "improve-summary"
    ADD_MISSING_SKILLS = "add-missing-skills"
    ALIGN_EXPERIENCE = "align-experience"
    CHANGE_DESIGNATION = "change-designation"
    IMPROVE_CERTIFICATIONS = "improve-certifications"
    IMPROVE_PROJECTS = "improve-projects"
    IMPROVE_HIGHLIGHTS = "improve-highlights"
    ENHANCE_ALL = "enhance-all"


def normalize_list(value: Any) -> list[str]:
    """Coerce a string, list or None into a trimmed list without blanks."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = [value]
    result = []
    for item in items:
        if item is None:
            continue
        text = item.strip() if isinstance(item, str) else str(item).strip()
        if text:
            result.append(text)
    return result


class JobAlignmentValidation(BaseModel):
    """Verdict of the job-alignment check run against a suggestion."""

    status: ValidationStatus = ValidationStatus.UNKNOWN
    matched_keywords: list[str] = []
    reason: str = ""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class SummarySegment(BaseModel):
    """One section-level slice of an edit: what was added/removed and why."""

    section: str = ""
    added: list[str] = []
    removed: list[str] = []
    reasons: list[str] = []

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if "reasons" not in data and "reason" in data:
                data["reasons"] = data.pop("reason")
            if not data.get("section"):
                data["section"] = data.get("label") or data.get("key") or ""
        return data

    @field_validator("added", "removed", "reasons", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        return normalize_list(value)


class ImprovementSuggestion(BaseModel):
    """A proposed, not-yet-applied edit to the resume."""

    id: str
    type: str  # SuggestionType value; unknown types are tolerated
    title: str = ""
    before_excerpt: str = ""
    after_excerpt: str = ""
    explanation: str = ""
    updated_resume: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    summary_segments: list[SummarySegment] = []
    acceptance: AcceptanceState = AcceptanceState.UNDECIDED
    validation: JobAlignmentValidation | None = None
    rescore_summary: dict[str, Any] | None = None
    score_delta: float | None = None
    rescore_pending: bool = False
    rescore_error: str | None = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @property
    def validation_failed(self) -> bool:
        return self.validation is not None and self.validation.status == ValidationStatus.FAILED
