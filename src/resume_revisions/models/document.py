"""Pydantic models for the live resume state, snapshots and rescore payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from resume_revisions.models.changelog import ChangeLogEntry


class SelectionProbability(BaseModel):
    before: float | None = None
    after: float | None = None
    factors: list[str] = []


class ScoreBreakdownItem(BaseModel):
    category: str
    score: float
    rating_label: str = ""
    tip: str = ""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class MatchResult(BaseModel):
    """The scoring service's view of how the resume matches the job."""

    overall_score: float | None = None
    covered_skills: list[str] = []
    missing_skills: list[str] = []
    selection_probability: SelectionProbability | None = None
    extra: dict[str, Any] = {}

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class DocumentState(BaseModel):
    """Current resume text plus everything derived from scoring it."""

    text: str = ""
    match: MatchResult = Field(default_factory=MatchResult)
    score_breakdown: list[ScoreBreakdownItem] = []
    skills: list[str] = []


class ResumeHistorySnapshot(BaseModel):
    """Full state captured immediately before a suggestion is applied."""

    id: str
    document: DocumentState
    change_log: list[ChangeLogEntry] = []
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    retired: bool = False


class JobContext(BaseModel):
    job_id: str
    job_description: str = ""
    job_skills: list[str] = []


class RescoreResult(BaseModel):
    """Normalized response from the rescore service."""

    overall_score: float
    score_breakdown: list[ScoreBreakdownItem] = []
    covered_skills: list[str] = []
    missing_skills: list[str] = []
    selection_probability: SelectionProbability | None = None
    delta: float | None = None  # reported by the service, preferred when present

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    def delta_from(self, baseline: float | None) -> float | None:
        if self.delta is not None:
            return self.delta
        if baseline is None:
            return None
        return self.overall_score - baseline

    def summary_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"score_breakdown"})


@dataclass
class RescoreJob:
    """A queued request to rescore one applied suggestion."""

    id: str
    updated_text: str
    baseline_score: float | None
    previous_missing_skills: list[str] = field(default_factory=list)
