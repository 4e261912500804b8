"""Data models for the improvement lifecycle."""

from resume_revisions.models.artifact import OutputArtifact, RetentionPriority
from resume_revisions.models.changelog import (
    AggregatedCategory,
    AggregatedSummary,
    CategoryChangelog,
    ChangeLogEntry,
    ChangeType,
    Highlight,
    ItemChangeKind,
    ItemizedChange,
    SectionTouch,
    SummaryTotals,
)
from resume_revisions.models.document import (
    DocumentState,
    JobContext,
    MatchResult,
    RescoreJob,
    RescoreResult,
    ResumeHistorySnapshot,
    ScoreBreakdownItem,
    SelectionProbability,
)
from resume_revisions.models.suggestion import (
    AcceptanceState,
    ImprovementSuggestion,
    JobAlignmentValidation,
    SuggestionType,
    SummarySegment,
    ValidationStatus,
)

__all__ = [
    "AcceptanceState",
    "AggregatedCategory",
    "AggregatedSummary",
    "CategoryChangelog",
    "ChangeLogEntry",
    "ChangeType",
    "DocumentState",
    "Highlight",
    "ImprovementSuggestion",
    "ItemChangeKind",
    "ItemizedChange",
    "JobAlignmentValidation",
    "JobContext",
    "MatchResult",
    "OutputArtifact",
    "RescoreJob",
    "RescoreResult",
    "ResumeHistorySnapshot",
    "RetentionPriority",
    "ScoreBreakdownItem",
    "SectionTouch",
    "SelectionProbability",
    "SuggestionType",
    "SummarySegment",
    "SummaryTotals",
    "ValidationStatus",
]
