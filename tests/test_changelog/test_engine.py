"""Tests for change-log entry construction and categorization."""

from __future__ import annotations

from resume_revisions.changelog.categories import (
    DESIGNATION_REASON,
    STABLE_SCORE_REASON,
    canonical_suggestion_type,
    resolve_section_categories,
    score_delta_reason,
)
from resume_revisions.changelog.engine import (
    ChangeCategorizationEngine,
    build_category_changelog,
    classify_change,
    itemize_segments,
)
from resume_revisions.models.changelog import ChangeType, ItemChangeKind
from resume_revisions.models.suggestion import SummarySegment


class TestClassifyChange:
    def test_added(self):
        assert classify_change("", "New bullet", "align-experience") == ChangeType.ADDED

    def test_removed(self):
        assert classify_change("Old bullet", "  ", "align-experience") == ChangeType.REMOVED

    def test_rephrased(self):
        assert classify_change("Led team", "Led a team of 5", "improve-summary") == ChangeType.REPHRASED

    def test_fixed_for_designation(self):
        assert classify_change("Dev", "Engineer", "change-designation") == ChangeType.FIXED

    def test_fixed_via_alias(self):
        assert classify_change("AWS", "AWS SAA", "certifications") == ChangeType.FIXED

    def test_identical_defaults_to_rephrased(self):
        assert classify_change("same", "same", "change-designation") == ChangeType.REPHRASED


class TestItemizeSegments:
    def test_pairs_by_position(self):
        changes = itemize_segments([
            SummarySegment(section="Skills", added=["Python", "SQL"], removed=["Java"], reasons=["JD stack"])
        ])

        assert [(c.item, c.kind) for c in changes] == [
            ("Java → Python", ItemChangeKind.REPLACED),
            ("SQL", ItemChangeKind.ADDED),
        ]
        assert changes[0].reasons == ["JD stack"]

    def test_leftover_removals(self):
        changes = itemize_segments([SummarySegment(added=["Go"], removed=["C", "Perl"])])
        assert [(c.item, c.kind) for c in changes] == [
            ("C → Go", ItemChangeKind.REPLACED),
            ("Perl", ItemChangeKind.REMOVED),
        ]

    def test_dedupes_across_segments(self):
        segment = SummarySegment(section="Skills", added=["Docker"])
        changes = itemize_segments([segment, segment.model_copy()])
        assert len(changes) == 1

    def test_empty(self):
        assert itemize_segments([]) == []


class TestCategories:
    def test_section_label_matching(self):
        assert resolve_section_categories("Core Skills & Keywords") == ["skills"]
        assert resolve_section_categories("Professional Summary") == ["highlights"]
        assert resolve_section_categories("Work Experience") == ["tasks"]
        assert resolve_section_categories("Certifications") == ["certs"]
        assert resolve_section_categories("") == []

    def test_label_can_match_several(self):
        assert resolve_section_categories("Project Highlights") == ["tasks", "highlights"]

    def test_score_delta_reason(self):
        assert score_delta_reason(4) == "Score impact: +4 pts versus the baseline upload."
        assert score_delta_reason(-2.4) == "Score impact: -2 pts versus the baseline upload."
        assert score_delta_reason(0) == STABLE_SCORE_REASON

    def test_canonical_type(self):
        assert canonical_suggestion_type("skills") == "add-missing-skills"
        assert canonical_suggestion_type("improve-summary") == "improve-summary"
        assert canonical_suggestion_type(None) == ""


class TestBuildCategoryChangelog:
    def test_skills_segment(self):
        result = build_category_changelog(
            segments=[SummarySegment(section="Skills", added=["Python"], removed=["Java"], reasons=["JD stack"])],
            detail="Surface the stack.",
            suggestion_type="add-missing-skills",
        )
        keys = [c.key for c in result]
        assert keys == ["ats", "skills"]
        skills = result[1]
        assert skills.added == ["Python"]
        assert skills.removed == ["Java"]
        assert skills.reasons == ["JD stack"]
        assert result[0].reasons == ["Surface the stack."]

    def test_designation_change(self):
        result = build_category_changelog(
            segments=[],
            before="Backend Developer",
            after="Backend Engineer",
            suggestion_type="change-designation",
        )
        designation = next(c for c in result if c.key == "designation")
        assert designation.added == ["Backend Engineer"]
        assert designation.removed == ["Backend Developer"]
        assert DESIGNATION_REASON in designation.reasons

    def test_enhance_all_spreads_detail(self):
        result = build_category_changelog(segments=[], detail="Full rewrite.", suggestion_type="enhance-all")
        assert [c.key for c in result] == ["ats", "skills", "designation", "tasks", "highlights", "certs"]
        assert all(c.reasons == ["Full rewrite."] for c in result)

    def test_case_insensitive_reason_dedupe(self):
        result = build_category_changelog(
            segments=[
                SummarySegment(section="Skills", added=["Go"], reasons=["Matches JD"]),
                SummarySegment(section="Skills", added=["Rust"], reasons=["matches jd"]),
            ],
            suggestion_type="add-missing-skills",
        )
        skills = next(c for c in result if c.key == "skills")
        assert skills.reasons == ["Matches JD"]
        assert skills.added == ["Go", "Rust"]

    def test_unknown_section_and_type_yield_nothing(self):
        assert build_category_changelog(
            segments=[SummarySegment(section="Hobbies", added=["Chess"])],
            suggestion_type="something-new",
        ) == []

    def test_score_delta_only_with_ats_bucket(self):
        result = build_category_changelog(segments=[], detail="Reworded.", score_delta=3,
                                          suggestion_type="improve-summary")
        ats = result[0]
        assert ats.key == "ats"
        assert ats.reasons[-1] == "Score impact: +3 pts versus the baseline upload."


class TestChangeCategorizationEngine:
    def test_build_entry(self, skills_suggestion):
        entry = ChangeCategorizationEngine().build_entry(skills_suggestion)

        assert entry.id == "s1"
        assert entry.label == ChangeType.REPHRASED
        assert entry.added_items == ["Python", "SQL"]
        assert entry.removed_items == ["Java"]
        assert entry.section_counts == {"Skills": 1}
        assert [c.item for c in entry.itemized_changes] == ["Java → Python", "SQL"]
        assert [c.key for c in entry.category_changelog] == ["ats", "skills"]
        assert entry.score_delta is None
        assert not entry.reverted

    def test_build_entry_is_pure(self, skills_suggestion):
        engine = ChangeCategorizationEngine()
        first = engine.build_entry(skills_suggestion)
        second = engine.build_entry(skills_suggestion)
        assert first.model_dump(exclude={"accepted_at"}) == second.model_dump(exclude={"accepted_at"})

    def test_refresh_entry_adds_score_reason(self, skills_suggestion):
        engine = ChangeCategorizationEngine()
        entry = engine.build_entry(skills_suggestion)

        refreshed = engine.refresh_entry(entry, 4)

        assert entry.score_delta is None
        assert refreshed.score_delta == 4
        ats = next(c for c in refreshed.category_changelog if c.key == "ats")
        assert "Score impact: +4 pts versus the baseline upload." in ats.reasons

    def test_alias_type_is_canonicalized(self, skills_suggestion):
        suggestion = skills_suggestion.model_copy(update={"type": "skills"})
        entry = ChangeCategorizationEngine().build_entry(suggestion)
        assert entry.suggestion_type == "add-missing-skills"
