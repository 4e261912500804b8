"""Tests for output artifact normalization and de-duplication."""

from resume_revisions.artifacts.normalizer import (
    dedupe_output_files,
    is_excluded,
    normalize_and_dedupe,
    normalize_output_files,
)
from resume_revisions.models.artifact import OutputArtifact, RetentionPriority


class TestNormalizeOutputFiles:
    def test_empty_inputs(self):
        assert normalize_output_files(None) == []
        assert normalize_output_files([]) == []
        assert normalize_output_files({}) == []

    def test_bare_url(self):
        result = normalize_output_files("https://cdn.test/resume.pdf")
        assert [(a.type, a.url) for a in result] == [("file_1", "https://cdn.test/resume.pdf")]

    def test_list_of_strings_gets_positional_types(self):
        result = normalize_output_files(["https://a", "https://b"])
        assert [a.type for a in result] == ["file_1", "file_2"]

    def test_mapping_keys_become_types(self):
        result = normalize_output_files({
            "resume": "https://a",
            "cover_letter": {"downloadUrl": "https://b", "expiresAt": 1700000000000},
        })
        assert [(a.type, a.url) for a in result] == [("resume", "https://a"), ("cover_letter", "https://b")]
        assert result[1].expires_at == "2023-11-14T22:13:20+00:00"

    def test_object_fields(self):
        result = normalize_output_files([{
            "type": "resume",
            "signedUrl": "https://a",
            "storageKey": "k/1",
            "template": "modern",
            "createdAt": "2024-05-01T10:00:00Z",
        }])
        artifact = result[0]
        assert artifact.url == "https://a"
        assert artifact.storage_key == "k/1"
        assert artifact.template == {"id": "modern"}
        assert artifact.generated_at.year == 2024

    def test_out_of_range_timestamp_ignored(self):
        result = normalize_output_files([{"type": "resume", "url": "https://a", "generatedAt": 10**20}])
        assert result[0].url == "https://a"
        assert result[0].generated_at is None

    def test_urls_list_expands(self):
        result = normalize_output_files([{"type": "resume", "urls": ["https://a", " ", "https://b"]}])
        assert [a.url for a in result] == ["https://a", "https://b"]

    def test_missing_url_dropped_by_default(self):
        assert normalize_output_files([{"type": "resume"}]) == []

    def test_missing_url_kept_when_asked(self):
        result = normalize_output_files([{"type": "resume"}], keep_missing=True)
        assert result[0].missing_url
        assert result[0].url is None

    def test_priority_resolution(self):
        result = normalize_output_files([
            {"type": "a", "url": "u1", "userSelected": True},
            {"type": "b", "url": "u2", "source": "auto"},
            {"type": "c", "url": "u3"},
            {"type": "d", "url": "u4", "priority": 0},
        ])
        assert [a.priority for a in result] == [
            RetentionPriority.USER_SELECTED,
            RetentionPriority.AUTO_GENERATED,
            RetentionPriority.OTHER,
            RetentionPriority.USER_SELECTED,
        ]


class TestDedupe:
    def test_user_selected_beats_newer_auto_generated(self):
        result = normalize_and_dedupe([
            {"type": "resume", "url": "https://auto", "autoGenerated": True, "generatedAt": "2024-02-01T00:00:00Z"},
            {"type": "resume", "url": "https://mine", "userSelected": True, "generatedAt": "2024-01-01T00:00:00Z"},
        ])
        assert [a.url for a in result] == ["https://mine"]

    def test_newest_wins_within_priority(self):
        result = normalize_and_dedupe([
            {"type": "resume", "url": "https://new", "generatedAt": "2024-03-01T00:00:00Z"},
            {"type": "resume", "url": "https://old", "generatedAt": "2024-01-01T00:00:00Z"},
        ])
        assert result[0].url == "https://new"

    def test_later_position_breaks_ties(self):
        result = normalize_and_dedupe([
            {"type": "resume", "url": "https://first"},
            {"type": "resume", "url": "https://second"},
        ])
        assert result[0].url == "https://second"

    def test_real_url_beats_missing(self):
        result = normalize_and_dedupe(
            [
                {"type": "resume", "userSelected": True},
                {"type": "resume", "url": "https://ok"},
            ],
            keep_missing=True,
        )
        assert result[0].url == "https://ok"

    def test_keeps_first_appearance_type_order(self):
        result = normalize_and_dedupe([
            {"type": "cover", "url": "c1"},
            {"type": "resume", "url": "r1"},
            {"type": "cover", "url": "c2"},
        ])
        assert [a.type for a in result] == ["cover", "resume"]

    def test_excluded_flags(self):
        result = normalize_and_dedupe([
            {"type": "resume", "url": "https://test", "isTest": True, "userSelected": True},
            {"type": "resume", "url": "https://preview", "metadata": {"preview": True}},
            {"type": "resume", "url": "https://stale", "status": "Stale"},
            {"type": "resume", "url": "https://real"},
        ])
        assert [a.url for a in result] == ["https://real"]

    def test_custom_flags(self):
        artifact = OutputArtifact(type="resume", url="u", metadata={"draft": True})
        assert not is_excluded(artifact)
        assert dedupe_output_files([artifact], excluded_flags=("draft",)) == []
