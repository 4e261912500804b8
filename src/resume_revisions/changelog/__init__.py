"""Change-log categorization, aggregation and persistence."""

from resume_revisions.changelog.engine import ChangeCategorizationEngine, itemize_segments
from resume_revisions.changelog.persistence import ChangeLogPersistenceAdapter, ChangeLogStore
from resume_revisions.changelog.summary import build_aggregated_summary

__all__ = [
    "ChangeCategorizationEngine",
    "ChangeLogPersistenceAdapter",
    "ChangeLogStore",
    "build_aggregated_summary",
    "itemize_segments",
]
