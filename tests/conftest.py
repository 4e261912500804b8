"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from resume_revisions.changelog.persistence import ChangeLogPersistenceAdapter
from resume_revisions.clients.rescore_client import RescoreClient
from resume_revisions.errors import ChangeLogStoreError
from resume_revisions.models.changelog import ChangeLogEntry
from resume_revisions.models.document import (
    DocumentState,
    JobContext,
    MatchResult,
    RescoreResult,
    ScoreBreakdownItem,
)
from resume_revisions.models.suggestion import (
    ImprovementSuggestion,
    JobAlignmentValidation,
    SummarySegment,
    ValidationStatus,
)
from resume_revisions.pipeline.gate import ConcurrencyGate
from resume_revisions.pipeline.lifecycle import SuggestionLifecycleManager


class FakeChangeLogStore:
    """In-memory ChangeLogStore. Set ``fail_write``/``fail_remove`` to simulate outages."""

    def __init__(self):
        self.entries: dict[str, list[ChangeLogEntry]] = {}
        self.fail_write = False
        self.fail_remove = False
        self.fail_load = False
        self.calls: list[tuple[str, str]] = []

    def _snapshot(self, job_id: str) -> list[ChangeLogEntry]:
        return [e.model_copy(deep=True) for e in self.entries.get(job_id, [])]

    async def write(self, job_id, entry):
        self.calls.append(("write", entry.id))
        if self.fail_write:
            raise ChangeLogStoreError("store unavailable")
        log = self.entries.setdefault(job_id, [])
        for index, existing in enumerate(log):
            if existing.id == entry.id:
                log[index] = entry.model_copy(deep=True)
                break
        else:
            log.append(entry.model_copy(deep=True))
        return self._snapshot(job_id)

    async def remove(self, job_id, entry_id):
        self.calls.append(("remove", entry_id))
        if self.fail_remove:
            raise ChangeLogStoreError("store unavailable")
        for entry in self.entries.get(job_id, []):
            if entry.id == entry_id:
                entry.reverted = True
        return self._snapshot(job_id)

    async def load(self, job_id):
        self.calls.append(("load", job_id))
        if self.fail_load:
            raise ChangeLogStoreError("store unavailable")
        return self._snapshot(job_id)


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
Backend Developer

Skills: Java, Spring Boot, MySQL

Experience:
- Built REST APIs serving 1M requests/day
- Cut query latency by 40% with index tuning
"""


@pytest.fixture
def job_context() -> JobContext:
    return JobContext(
        job_id="job-1",
        job_description="Backend engineer. Python, SQL and Docker required.",
        job_skills=["Python", "SQL", "Docker"],
    )


@pytest.fixture
def sample_document(sample_resume_text) -> DocumentState:
    return DocumentState(
        text=sample_resume_text,
        match=MatchResult(
            overall_score=70,
            covered_skills=["Java"],
            missing_skills=["Python", "SQL", "Docker"],
        ),
        score_breakdown=[ScoreBreakdownItem(category="Keyword Match", score=60)],
        skills=["Java", "Spring Boot"],
    )


@pytest.fixture
def skills_suggestion(sample_resume_text) -> ImprovementSuggestion:
    return ImprovementSuggestion(
        id="s1",
        type="add-missing-skills",
        title="Add missing skills",
        before_excerpt="Skills: Java, Spring Boot, MySQL",
        after_excerpt="Skills: Python, SQL, Spring Boot, MySQL",
        explanation="Surface the JD's core stack.",
        updated_resume=sample_resume_text.replace("Java, Spring Boot", "Python, SQL, Spring Boot"),
        confidence=0.8,
        summary_segments=[
            SummarySegment(
                section="Skills",
                added=["Python", "SQL"],
                removed=["Java"],
                reasons=["Matches the JD stack"],
            )
        ],
        validation=JobAlignmentValidation(status=ValidationStatus.PASSED, matched_keywords=["Python"]),
    )


@pytest.fixture
def designation_suggestion(sample_resume_text) -> ImprovementSuggestion:
    return ImprovementSuggestion(
        id="s2",
        type="change-designation",
        title="Align title",
        before_excerpt="Backend Developer",
        after_excerpt="Backend Engineer",
        explanation="Mirror the JD role name.",
        updated_resume=sample_resume_text.replace("Backend Developer", "Backend Engineer"),
        summary_segments=[
            SummarySegment(section="Designation", added=["Backend Engineer"], removed=["Backend Developer"])
        ],
    )


@pytest.fixture
def failed_suggestion() -> ImprovementSuggestion:
    return ImprovementSuggestion(
        id="s3",
        type="align-experience",
        title="Rewrite experience",
        before_excerpt="Built REST APIs",
        after_excerpt="Built Kubernetes operators",
        validation=JobAlignmentValidation(
            status=ValidationStatus.FAILED,
            reason="Introduces skills not present in the resume",
        ),
    )


@pytest.fixture
def rescore_result() -> RescoreResult:
    return RescoreResult(
        overall_score=74,
        score_breakdown=[ScoreBreakdownItem(category="Keyword Match", score=78)],
        covered_skills=["Python", "SQL"],
        missing_skills=["Docker"],
    )


@pytest.fixture
def mock_rescorer(rescore_result) -> RescoreClient:
    """Create a mock rescore client."""
    client = AsyncMock(spec=RescoreClient)
    client.rescore = AsyncMock(return_value=rescore_result)
    return client


@pytest.fixture
def fake_store() -> FakeChangeLogStore:
    return FakeChangeLogStore()


@pytest.fixture
def make_manager(sample_document, job_context, mock_rescorer, fake_store):
    """Factory: build a lifecycle manager over the given suggestions."""

    def _make(suggestions, *, document=None, on_change=None):
        return SuggestionLifecycleManager(
            suggestions,
            document or sample_document,
            gate=ConcurrencyGate(mock_rescorer, job_context),
            persistence=ChangeLogPersistenceAdapter(fake_store, job_context.job_id),
            on_change=on_change,
        )

    return _make
