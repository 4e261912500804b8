"""Turn an accepted suggestion into an itemized, categorized change-log entry."""

from __future__ import annotations

import logging
from collections import Counter

from resume_revisions.changelog.categories import (
    CATEGORY_ORDER,
    DESIGNATION_REASON,
    FIXED_SUGGESTION_TYPES,
    PRIMARY_CATEGORY_BY_SUGGESTION,
    RELATED_CATEGORIES_BY_SUGGESTION,
    CategoryBucket,
    canonical_suggestion_type,
    resolve_section_categories,
    score_delta_reason,
)
from resume_revisions.models.changelog import (
    CategoryChangelog,
    ChangeLogEntry,
    ChangeType,
    ItemChangeKind,
    ItemizedChange,
)
from resume_revisions.models.suggestion import (
    ImprovementSuggestion,
    SuggestionType,
    SummarySegment,
    normalize_list,
)

logger = logging.getLogger(__name__)

REPLACEMENT_ARROW = "→"


def classify_change(before: str, after: str, suggestion_type: str) -> ChangeType:
    """Pick the change label from which excerpts are present."""
    before = (before or "").strip()
    after = (after or "").strip()
    if not before and after:
        return ChangeType.ADDED
    if before and not after:
        return ChangeType.REMOVED
    if before and after and before != after:
        if canonical_suggestion_type(suggestion_type) in FIXED_SUGGESTION_TYPES:
            return ChangeType.FIXED
        return ChangeType.REPHRASED
    return ChangeType.REPHRASED


def itemize_segments(segments: list[SummarySegment]) -> list[ItemizedChange]:
    """Pair removed/added items by position within each segment.

    The first ``min(len(added), len(removed))`` items become ``replaced``
    changes ("old → new"); leftovers stay plain additions or removals.
    """
    changes: list[ItemizedChange] = []
    seen: set[tuple[str, ItemChangeKind]] = set()

    def _push(item: str, kind: ItemChangeKind, reasons: list[str]) -> None:
        if (item, kind) in seen:
            return
        seen.add((item, kind))
        changes.append(ItemizedChange(item=item, kind=kind, reasons=list(reasons)))

    for segment in segments:
        added, removed = segment.added, segment.removed
        pairs = min(len(added), len(removed))
        for index in range(pairs):
            _push(f"{removed[index]} {REPLACEMENT_ARROW} {added[index]}", ItemChangeKind.REPLACED, segment.reasons)
        for item in added[pairs:]:
            _push(item, ItemChangeKind.ADDED, segment.reasons)
        for item in removed[pairs:]:
            _push(item, ItemChangeKind.REMOVED, segment.reasons)
    return changes


def _union(lists: list[list[str]]) -> list[str]:
    merged: dict[str, None] = {}
    for items in lists:
        for item in items:
            merged.setdefault(item, None)
    return list(merged)


def build_category_changelog(
    *,
    segments: list[SummarySegment],
    detail: str = "",
    added_items: list[str] | None = None,
    removed_items: list[str] | None = None,
    itemized_changes: list[ItemizedChange] | None = None,
    before: str = "",
    after: str = "",
    score_delta: float | None = None,
    suggestion_type: str = "",
) -> list[CategoryChangelog]:
    """Group an edit's added/removed items and rationale by semantic category."""
    detail = (detail or "").strip()
    buckets: dict[str, CategoryBucket] = {}

    def _bucket(key: str) -> CategoryBucket | None:
        if key not in buckets:
            bucket = CategoryBucket.for_key(key)
            if bucket is None:
                return None
            buckets[key] = bucket
        return buckets[key]

    for segment in segments:
        categories = resolve_section_categories(segment.section)
        if not categories:
            logger.debug("No category matched section label %r", segment.section)
            continue
        reasons = segment.reasons or ([detail] if detail else [])
        for key in categories:
            bucket = _bucket(key)
            bucket.add_items(bucket.added, segment.added)
            bucket.add_items(bucket.removed, segment.removed)
            bucket.add_reasons(reasons)

    suggestion_key = canonical_suggestion_type(suggestion_type)
    primary = PRIMARY_CATEGORY_BY_SUGGESTION.get(suggestion_key)
    related = RELATED_CATEGORIES_BY_SUGGESTION.get(suggestion_key, [])

    if primary:
        bucket = _bucket(primary)
        bucket.add_items(bucket.added, normalize_list(added_items))
        bucket.add_items(bucket.removed, normalize_list(removed_items))
        if not bucket.reasons and detail:
            bucket.add_reasons([detail])

    fallback = primary or (related[0] if related else None)
    if itemized_changes and fallback:
        bucket = _bucket(fallback)
        for change in itemized_changes:
            bucket.add_reasons(change.reasons)

    before_text = (before or "").strip()
    after_text = (after or "").strip()
    if (
        suggestion_key == SuggestionType.CHANGE_DESIGNATION.value
        and before_text
        and after_text
        and before_text != after_text
    ):
        bucket = _bucket("designation")
        bucket.add_reasons([DESIGNATION_REASON])
        bucket.add_items(bucket.added, [after_text])
        bucket.add_items(bucket.removed, [before_text])

    if suggestion_key == SuggestionType.ENHANCE_ALL.value and detail:
        for key in related:
            _bucket(key).add_reasons([detail])

    for key in related:
        bucket = _bucket(key)
        if not bucket.reasons and detail:
            bucket.add_reasons([detail])

    if detail:
        ats = _bucket("ats")
        if not ats.reasons:
            ats.add_reasons([detail])

    if score_delta is not None and "ats" in buckets:
        buckets["ats"].reasons.setdefault(score_delta_reason(score_delta), None)

    return [
        buckets[key].finalize()
        for key in CATEGORY_ORDER
        if key in buckets and not buckets[key].is_empty()
    ]


class ChangeCategorizationEngine:
    """Builds change-log entries from suggestions.

    Pure: no I/O and no state between calls.
    """

    def build_entry(self, suggestion: ImprovementSuggestion) -> ChangeLogEntry:
        segments = [segment.model_copy(deep=True) for segment in suggestion.summary_segments]
        added_items = _union([s.added for s in segments])
        removed_items = _union([s.removed for s in segments])
        itemized = itemize_segments(segments)
        section_counts = dict(Counter(s.section for s in segments if s.section))

        category_changelog = build_category_changelog(
            segments=segments,
            detail=suggestion.explanation,
            added_items=added_items,
            removed_items=removed_items,
            itemized_changes=itemized,
            before=suggestion.before_excerpt,
            after=suggestion.after_excerpt,
            score_delta=suggestion.score_delta,
            suggestion_type=suggestion.type,
        )

        return ChangeLogEntry(
            id=suggestion.id,
            title=suggestion.title,
            label=classify_change(suggestion.before_excerpt, suggestion.after_excerpt, suggestion.type),
            detail=suggestion.explanation,
            before=suggestion.before_excerpt,
            after=suggestion.after_excerpt,
            suggestion_type=canonical_suggestion_type(suggestion.type),
            summary_segments=segments,
            added_items=added_items,
            removed_items=removed_items,
            itemized_changes=itemized,
            category_changelog=category_changelog,
            section_counts=section_counts,
            score_delta=suggestion.score_delta,
        )

    def refresh_entry(self, entry: ChangeLogEntry, score_delta: float | None) -> ChangeLogEntry:
        """Return a copy of ``entry`` carrying ``score_delta`` and its rationale."""
        updated = entry.model_copy(deep=True)
        updated.score_delta = score_delta
        updated.category_changelog = self.categorize(updated)
        return updated

    @staticmethod
    def categorize(entry: ChangeLogEntry) -> list[CategoryChangelog]:
        return build_category_changelog(
            segments=entry.summary_segments,
            detail=entry.detail,
            added_items=entry.added_items,
            removed_items=entry.removed_items,
            itemized_changes=entry.itemized_changes,
            before=entry.before,
            after=entry.after,
            score_delta=entry.score_delta,
            suggestion_type=entry.suggestion_type,
        )
