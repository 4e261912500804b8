"""Pydantic models for the persisted change log and its aggregated summary."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from resume_revisions.models.suggestion import SummarySegment


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    REPHRASED = "rephrased"
    FIXED = "fixed"


class ItemChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    REPLACED = "replaced"


class ItemizedChange(BaseModel):
    item: str
    kind: ItemChangeKind
    reasons: list[str] = []


class CategoryChangelog(BaseModel):
    """Changes grouped by semantic category rather than resume section."""

    key: str
    label: str
    description: str = ""
    added: list[str] = []
    removed: list[str] = []
    reasons: list[str] = []


class ChangeLogEntry(BaseModel):
    """Audit record of one accepted improvement.

    The id is shared with the originating suggestion and its history
    snapshot. Entries are flagged on revert, never deleted.
    """

    id: str
    title: str = ""
    label: ChangeType = ChangeType.REPHRASED
    detail: str = ""
    before: str = ""
    after: str = ""
    suggestion_type: str = ""
    summary_segments: list[SummarySegment] = []
    added_items: list[str] = []
    removed_items: list[str] = []
    itemized_changes: list[ItemizedChange] = []
    category_changelog: list[CategoryChangelog] = []
    section_counts: dict[str, int] = {}
    score_delta: float | None = None
    accepted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reverted: bool = False
    reverted_at: datetime | None = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


# --- Aggregated summary ---


class AggregatedCategory(BaseModel):
    key: str
    label: str
    description: str = ""
    added: list[str] = []
    removed: list[str] = []
    reasons: list[str] = []

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed)


class Highlight(BaseModel):
    key: str  # "<category>:<type>"
    category: str
    label: str
    type: str  # "added" | "removed" | "changed" | "reasons"
    items: list[str]

    @property
    def count(self) -> int:
        return len(self.items)


class SummaryTotals(BaseModel):
    entries: int = 0
    categories: int = 0
    highlights: int = 0
    added_items: int = 0
    removed_items: int = 0


class SectionTouch(BaseModel):
    section: str
    count: int


class AggregatedSummary(BaseModel):
    categories: list[AggregatedCategory] = []
    highlights: list[Highlight] = []
    totals: SummaryTotals = Field(default_factory=SummaryTotals)
    interview_prep: str = ""
    sections_touched: list[SectionTouch] = []
