"""Tests for config loading."""

import pytest

from resume_revisions.config import AppConfig, ChangeLogConfig, RescoreConfig, load_config


class TestConfig:
    def test_defaults(self):
        config = AppConfig()
        assert config.rescore.endpoint == "/api/rescore-improvement"
        assert config.changelog.backend == "sqlite"
        assert config.summary.max_interview_skills == 3

    def test_load_config_defaults(self, tmp_path, monkeypatch):
        """Loading from non-existent path returns defaults."""
        monkeypatch.delenv("RESCORE_API_URL", raising=False)
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.rescore.base_url == "http://localhost:3000"

    def test_load_config_from_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CHANGELOG_API_URL", raising=False)
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "changelog:\n  backend: http\n  base_url: https://api.example.com\nsummary:\n  max_interview_skills: 5\n"
        )
        config = load_config(yaml_path)
        assert config.changelog.backend == "http"
        assert config.changelog.base_url == "https://api.example.com"
        assert config.summary.max_interview_skills == 5
        # Defaults for unspecified
        assert config.rescore.timeout == 60

    def test_env_overrides_base_urls(self, tmp_path, monkeypatch):
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text("rescore:\n  base_url: http://from-file\n")
        monkeypatch.setenv("RESCORE_API_URL", "http://from-env")
        monkeypatch.setenv("CHANGELOG_API_URL", "http://changelog-env")

        config = load_config(yaml_path)
        assert config.rescore.base_url == "http://from-env"
        assert config.changelog.base_url == "http://changelog-env"

    def test_changelog_resolved_path(self):
        changelog = ChangeLogConfig(db_path="~/test.db")
        resolved = changelog.resolved_db_path
        assert "~" not in str(resolved)

    def test_frozen_config(self):
        config = RescoreConfig()
        with pytest.raises(AttributeError):
            config.timeout = 5
