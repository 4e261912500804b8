"""Aggregate accepted change-log entries into a single display summary."""

from __future__ import annotations

import re
from collections import Counter

from resume_revisions.changelog.categories import CATEGORY_METADATA, CATEGORY_ORDER
from resume_revisions.changelog.engine import REPLACEMENT_ARROW, ChangeCategorizationEngine
from resume_revisions.models.changelog import (
    AggregatedCategory,
    AggregatedSummary,
    CategoryChangelog,
    ChangeLogEntry,
    Highlight,
    SectionTouch,
    SummaryTotals,
)

HIGHLIGHT_LABEL_OVERRIDES: dict[str, dict[str, str]] = {
    "designation": {"changed": "Designation changed"},
    "ats": {"reasons": "ATS rationale"},
}

# Categories whose rationale is surfaced as its own highlight.
REASON_HIGHLIGHT_CATEGORIES = ("ats",)

GENERIC_INTERVIEW_PREP = (
    "Interview prep: walk through each accepted change and be ready to back it "
    "with a concrete example from your experience."
)


class _Collector:
    """Ordered, case-insensitive de-duplicating list."""

    def __init__(self) -> None:
        self.items: list[str] = []
        self._seen: set[str] = set()

    def extend(self, values: list[str]) -> None:
        for value in values:
            text = (value or "").strip()
            if not text or text.lower() in self._seen:
                continue
            self._seen.add(text.lower())
            self.items.append(text)


class _Bucket:
    def __init__(self, key: str, label: str, description: str) -> None:
        self.key = key
        self.label = label
        self.description = description
        self.added = _Collector()
        self.removed = _Collector()
        self.reasons = _Collector()


def _resolve_key(category: CategoryChangelog) -> str:
    key = (category.key or "").strip().lower()
    if key in CATEGORY_METADATA:
        return key
    label = (category.label or "").strip()
    if label:
        for meta_key, meta in CATEGORY_METADATA.items():
            if meta["label"].lower() == label.lower():
                return meta_key
        return re.sub(r"[^a-z0-9]+", "_", label.lower()) or "general"
    return key or "general"


def _resolve_label(category: CategoryChangelog, key: str) -> str:
    meta = CATEGORY_METADATA.get(key)
    if meta:
        return meta["label"]
    if category.label.strip():
        return category.label.strip()
    return key.replace("_", " ").title()


def _highlight_label(category_key: str, kind: str, base_label: str) -> str:
    override = HIGHLIGHT_LABEL_OVERRIDES.get(category_key, {}).get(kind)
    if override:
        return override
    noun = "rationale" if kind == "reasons" else kind
    return f"{base_label} {noun}"


def _designation_transitions(category: AggregatedCategory) -> list[str]:
    collector = _Collector()
    for before, after in zip(category.removed, category.added):
        if before and after:
            collector.extend([f"{before} {REPLACEMENT_ARROW} {after}"])
    return collector.items


def _highlight(category: AggregatedCategory, kind: str, items: list[str]) -> Highlight:
    return Highlight(
        key=f"{category.key}:{kind}",
        category=category.key,
        label=_highlight_label(category.key, kind, category.label),
        type=kind,
        items=list(items),
    )


def build_highlights(categories: list[AggregatedCategory]) -> list[Highlight]:
    highlights: list[Highlight] = []
    for category in categories:
        if category.key == "designation":
            transitions = _designation_transitions(category)
            if transitions:
                highlights.append(_highlight(category, "changed", transitions))
            elif category.added:
                highlights.append(_highlight(category, "added", category.added))
            if category.removed:
                highlights.append(_highlight(category, "removed", category.removed))
            continue

        if category.added:
            highlights.append(_highlight(category, "added", category.added))
        if category.removed:
            highlights.append(_highlight(category, "removed", category.removed))
        if category.reasons and category.key in REASON_HIGHLIGHT_CATEGORIES:
            highlights.append(_highlight(category, "reasons", category.reasons))
    return highlights


def _join_human(items: list[str]) -> str:
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + f" and {items[-1]}"


def build_interview_prep(categories: list[AggregatedCategory], max_skills: int = 3) -> str:
    """Suggest which newly added skills to rehearse, or a generic reminder."""
    skills = next((c for c in categories if c.key == "skills"), None)
    if skills is None or not skills.added:
        return GENERIC_INTERVIEW_PREP
    listed = skills.added[:max_skills]
    return (
        f"Interview prep: be ready to discuss {_join_human(listed)} "
        "with concrete examples from your projects."
    )


def build_sections_touched(entries: list[ChangeLogEntry]) -> list[SectionTouch]:
    counts: Counter[str] = Counter()
    for entry in entries:
        if entry.section_counts:
            counts.update(entry.section_counts)
        else:
            counts.update(s.section for s in entry.summary_segments if s.section)
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0].lower()))
    return [SectionTouch(section=section, count=count) for section, count in ordered]


def build_aggregated_summary(
    entries: list[ChangeLogEntry],
    *,
    max_interview_skills: int = 3,
) -> AggregatedSummary:
    """Fold every non-reverted entry into one summary.

    Deterministic for a given entry list; reverted entries contribute nothing.
    """
    active = [entry for entry in entries if entry is not None and not entry.reverted]
    buckets: dict[str, _Bucket] = {}

    for entry in active:
        categories = entry.category_changelog or ChangeCategorizationEngine.categorize(entry)
        for category in categories:
            key = _resolve_key(category)
            bucket = buckets.get(key)
            if bucket is None:
                meta = CATEGORY_METADATA.get(key, {})
                bucket = _Bucket(
                    key,
                    _resolve_label(category, key),
                    meta.get("description") or category.description.strip(),
                )
                buckets[key] = bucket
            elif not bucket.description and category.description.strip():
                bucket.description = category.description.strip()
            bucket.added.extend(category.added)
            bucket.removed.extend(category.removed)
            bucket.reasons.extend(category.reasons)

    ordered_keys = [k for k in CATEGORY_ORDER if k in buckets]
    ordered_keys += [k for k in buckets if k not in CATEGORY_ORDER]

    categories: list[AggregatedCategory] = []
    for key in ordered_keys:
        bucket = buckets[key]
        if not (bucket.added.items or bucket.removed.items or bucket.reasons.items):
            continue
        categories.append(
            AggregatedCategory(
                key=bucket.key,
                label=bucket.label,
                description=bucket.description,
                added=bucket.added.items,
                removed=bucket.removed.items,
                reasons=bucket.reasons.items,
            )
        )

    highlights = build_highlights(categories)
    totals = SummaryTotals(
        entries=len(active),
        categories=len(categories),
        highlights=len(highlights),
        added_items=sum(len(c.added) for c in categories),
        removed_items=sum(len(c.removed) for c in categories),
    )

    return AggregatedSummary(
        categories=categories,
        highlights=highlights,
        totals=totals,
        interview_prep=build_interview_prep(categories, max_interview_skills),
        sections_touched=build_sections_touched(active),
    )
