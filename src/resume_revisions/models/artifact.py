"""Pydantic models for generated output documents."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel


class RetentionPriority(IntEnum):
    USER_SELECTED = 0
    AUTO_GENERATED = 1
    OTHER = 2


class OutputArtifact(BaseModel):
    type: str
    url: str | None = None
    expires_at: str | None = None  # ISO-8601
    storage_key: str | None = None
    template: dict[str, Any] = {}
    priority: RetentionPriority = RetentionPriority.OTHER
    generated_at: datetime | None = None
    missing_url: bool = False
    position: int = 0
    metadata: dict[str, Any] = {}
