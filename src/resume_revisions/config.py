"""Application configuration loaded from config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value!r}")


@dataclass(frozen=True)
class RescoreConfig:
    base_url: str = "http://localhost:3000"
    endpoint: str = "/api/rescore-improvement"
    timeout: int = 60

    def __post_init__(self) -> None:
        _check_range("timeout", self.timeout, 1, 600)


@dataclass(frozen=True)
class ChangeLogConfig:
    backend: str = "sqlite"  # "sqlite" | "http"
    db_path: str = "~/.resume-revisions/changelog.db"
    base_url: str = "http://localhost:3000"
    endpoint: str = "/api/change-log"
    max_retries: int = 3
    timeout: int = 30
    retention_days: int = 30

    def __post_init__(self) -> None:
        if self.backend not in ("sqlite", "http"):
            raise ValueError(f"backend must be 'sqlite' or 'http', got {self.backend!r}")
        _check_range("max_retries", self.max_retries, 1, 10)
        _check_range("timeout", self.timeout, 1, 600)
        _check_range("retention_days", self.retention_days, 1, 365)

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


@dataclass(frozen=True)
class SummaryConfig:
    max_interview_skills: int = 3

    def __post_init__(self) -> None:
        _check_range("max_interview_skills", self.max_interview_skills, 1, 20)


@dataclass(frozen=True)
class AppConfig:
    rescore: RescoreConfig = field(default_factory=RescoreConfig)
    changelog: ChangeLogConfig = field(default_factory=ChangeLogConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults.

    ``RESCORE_API_URL`` and ``CHANGELOG_API_URL`` override the base URLs
    from the file.
    """
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    rescore_raw = dict(raw.get("rescore", {}))
    changelog_raw = dict(raw.get("changelog", {}))
    if os.environ.get("RESCORE_API_URL"):
        rescore_raw["base_url"] = os.environ["RESCORE_API_URL"]
    if os.environ.get("CHANGELOG_API_URL"):
        changelog_raw["base_url"] = os.environ["CHANGELOG_API_URL"]

    return AppConfig(
        rescore=RescoreConfig(**rescore_raw),
        changelog=ChangeLogConfig(**changelog_raw),
        summary=SummaryConfig(**raw.get("summary", {})),
    )
