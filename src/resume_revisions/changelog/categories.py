"""Category tables used to bucket resume edits.

Section labels on summary segments are free text ("Professional Summary",
"Core Skills & Keywords", ...). They are mapped to a fixed set of semantic
categories with ordered keyword patterns. A label can match several
categories.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from resume_revisions.models.changelog import CategoryChangelog
from resume_revisions.models.suggestion import SuggestionType

CATEGORY_METADATA: dict[str, dict[str, str]] = {
    "ats": {
        "label": "ATS",
        "description": "Score movement and JD alignment rationale.",
    },
    "skills": {
        "label": "Skills",
        "description": "Keyword coverage surfaced across the resume.",
    },
    "designation": {
        "label": "Designation",
        "description": "Visible job titles aligned to the target role.",
    },
    "tasks": {
        "label": "Tasks",
        "description": "Experience bullets, responsibilities, and project highlights.",
    },
    "highlights": {
        "label": "Highlights",
        "description": "Headline wins and summary messaging that were refreshed.",
    },
    "certs": {
        "label": "Certifications",
        "description": "Credentials emphasised for the JD.",
    },
}

CATEGORY_ORDER: list[str] = ["ats", "skills", "designation", "tasks", "highlights", "certs"]

SECTION_CATEGORY_MATCHERS: list[tuple[tuple[str, ...], re.Pattern[str]]] = [
    (("skills",), re.compile(r"skill|keyword", re.I)),
    (("designation",), re.compile(r"designation|title|headline|position", re.I)),
    (("tasks",), re.compile(r"experience|project|responsibilit|task|achievement|impact", re.I)),
    (("highlights",), re.compile(r"highlight|summary|profile|overview", re.I)),
    (("certs",), re.compile(r"cert|badge|accredit", re.I)),
    (
        ("ats",),
        re.compile(r"ats|layout|readability|candidatescore|impact metric|probability|quality", re.I),
    ),
]

PRIMARY_CATEGORY_BY_SUGGESTION: dict[str, str] = {
    SuggestionType.IMPROVE_SUMMARY.value: "highlights",
    SuggestionType.ADD_MISSING_SKILLS.value: "skills",
    SuggestionType.ALIGN_EXPERIENCE.value: "tasks",
    SuggestionType.CHANGE_DESIGNATION.value: "designation",
    SuggestionType.IMPROVE_CERTIFICATIONS.value: "certs",
    SuggestionType.IMPROVE_PROJECTS.value: "tasks",
    SuggestionType.IMPROVE_HIGHLIGHTS.value: "highlights",
}

RELATED_CATEGORIES_BY_SUGGESTION: dict[str, list[str]] = {
    SuggestionType.IMPROVE_SUMMARY.value: ["ats", "highlights"],
    SuggestionType.ADD_MISSING_SKILLS.value: ["ats", "skills"],
    SuggestionType.ALIGN_EXPERIENCE.value: ["ats", "tasks", "highlights"],
    SuggestionType.CHANGE_DESIGNATION.value: ["ats", "designation"],
    SuggestionType.IMPROVE_CERTIFICATIONS.value: ["ats", "certs", "skills"],
    SuggestionType.IMPROVE_PROJECTS.value: ["ats", "tasks", "highlights"],
    SuggestionType.IMPROVE_HIGHLIGHTS.value: ["ats", "highlights"],
    SuggestionType.ENHANCE_ALL.value: list(CATEGORY_ORDER),
}

# Suggestion types whose in-place edits count as corrections ("fixed")
# rather than rewording ("rephrased").
FIXED_SUGGESTION_TYPES: frozenset[str] = frozenset({
    SuggestionType.CHANGE_DESIGNATION.value,
    SuggestionType.IMPROVE_CERTIFICATIONS.value,
})

DESIGNATION_REASON = "Updated your visible title to align with the JD role name."
STABLE_SCORE_REASON = "Confirmed the ATS score stayed stable after the change."


def resolve_section_categories(section_label: str) -> list[str]:
    """Return the category keys a free-text section label maps to, in table order."""
    if not section_label:
        return []
    matched: list[str] = []
    for keys, pattern in SECTION_CATEGORY_MATCHERS:
        if pattern.search(section_label):
            for key in keys:
                if key not in matched:
                    matched.append(key)
    return matched


def score_delta_reason(score_delta: float) -> str:
    if score_delta == 0:
        return STABLE_SCORE_REASON
    rounded = round(score_delta)
    prefix = "+" if rounded > 0 else ""
    return f"Score impact: {prefix}{rounded} pts versus the baseline upload."


@dataclass
class CategoryBucket:
    """Mutable accumulator for one category while an entry is being built.

    The three collections are dicts used as insertion-ordered sets, so
    duplicates are suppressed by exact (case-sensitive) string identity.
    """

    key: str
    label: str
    description: str
    added: dict[str, None] = field(default_factory=dict)
    removed: dict[str, None] = field(default_factory=dict)
    reasons: dict[str, None] = field(default_factory=dict)

    @classmethod
    def for_key(cls, key: str) -> CategoryBucket | None:
        meta = CATEGORY_METADATA.get(key)
        if meta is None:
            return None
        return cls(key=key, label=meta["label"], description=meta["description"])

    def add_items(self, target: dict[str, None], items: list[str]) -> None:
        for item in items:
            if item:
                target.setdefault(item, None)

    def add_reasons(self, reasons: list[str]) -> None:
        # Rationale lines that differ only in case are near-duplicates.
        seen = {r.lower() for r in self.reasons}
        for reason in reasons:
            if reason and reason.lower() not in seen:
                self.reasons[reason] = None
                seen.add(reason.lower())

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.reasons)

    def finalize(self) -> CategoryChangelog:
        return CategoryChangelog(
            key=self.key,
            label=self.label,
            description=self.description,
            added=list(self.added),
            removed=list(self.removed),
            reasons=list(self.reasons),
        )


# Short category names accepted in place of the full suggestion type ids.
SUGGESTION_TYPE_ALIASES: dict[str, str] = {
    "summary": SuggestionType.IMPROVE_SUMMARY.value,
    "skills": SuggestionType.ADD_MISSING_SKILLS.value,
    "experience": SuggestionType.ALIGN_EXPERIENCE.value,
    "designation": SuggestionType.CHANGE_DESIGNATION.value,
    "certifications": SuggestionType.IMPROVE_CERTIFICATIONS.value,
    "projects": SuggestionType.IMPROVE_PROJECTS.value,
    "highlights": SuggestionType.IMPROVE_HIGHLIGHTS.value,
    "all": SuggestionType.ENHANCE_ALL.value,
}


def canonical_suggestion_type(value: str | None) -> str:
    key = (value or "").strip()
    return SUGGESTION_TYPE_ALIASES.get(key.lower(), key)
