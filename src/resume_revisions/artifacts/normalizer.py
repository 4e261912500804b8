"""Normalize and de-duplicate generated document descriptors.

The document generator answers in several shapes: a bare URL, a list of
URLs or objects, or a mapping of ``{type: descriptor}``. Everything is
flattened into ``OutputArtifact`` records, then reduced to one artifact
per type.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from resume_revisions.models.artifact import OutputArtifact, RetentionPriority

logger = logging.getLogger(__name__)

URL_KEYS = ("url", "downloadUrl", "download_url", "href", "link", "signedUrl", "signed_url")
TYPE_KEYS = ("type", "name", "label")
STORAGE_KEYS = ("storageKey", "storage_key", "key")
TEMPLATE_KEYS = ("template", "templateMeta", "templateMetadata", "template_metadata")
TIMESTAMP_KEYS = ("generatedAt", "generated_at", "createdAt", "created_at", "timestamp", "updatedAt")

DEFAULT_EXCLUDED_FLAGS = ("test", "preview", "stale", "archived")


def _first_string(source: dict, keys: Iterable[str]) -> str:
    for key in keys:
        value = source.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _to_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug("Ignoring out-of-range timestamp %r", value)
            return None
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _normalize_expiry(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    dt = _to_datetime(value)
    return dt.isoformat() if dt else None


def _resolve_priority(entry: dict) -> RetentionPriority:
    explicit = entry.get("priority", entry.get("retentionPriority"))
    if isinstance(explicit, int) and not isinstance(explicit, bool):
        try:
            return RetentionPriority(explicit)
        except ValueError:
            logger.debug("Ignoring out-of-range priority %r", explicit)
    if entry.get("userSelected") or entry.get("user_selected"):
        return RetentionPriority.USER_SELECTED
    if entry.get("autoGenerated") or entry.get("auto_generated") or entry.get("source") == "auto":
        return RetentionPriority.AUTO_GENERATED
    return RetentionPriority.OTHER


def _template_metadata(entry: dict) -> dict:
    for key in TEMPLATE_KEYS:
        value = entry.get(key)
        if isinstance(value, dict):
            return dict(value)
        if isinstance(value, str) and value.strip():
            return {"id": value.strip()}
    return {}


def _from_mapping(entry: dict, index: int, fallback_type: str, keep_missing: bool) -> list[OutputArtifact]:
    artifact_type = _first_string(entry, TYPE_KEYS) or fallback_type or f"file_{index + 1}"
    urls = [_first_string(entry, URL_KEYS)]
    if not urls[0] and isinstance(entry.get("urls"), list):
        urls = [u.strip() for u in entry["urls"] if isinstance(u, str) and u.strip()]

    common = dict(
        type=artifact_type,
        expires_at=_normalize_expiry(entry.get("expiresAt", entry.get("expires_at"))),
        storage_key=_first_string(entry, STORAGE_KEYS) or None,
        template=_template_metadata(entry),
        priority=_resolve_priority(entry),
        generated_at=next(
            (dt for dt in (_to_datetime(entry.get(k)) for k in TIMESTAMP_KEYS) if dt), None
        ),
        position=index,
        metadata=dict(entry),
    )

    if not any(urls):
        if keep_missing:
            return [OutputArtifact(url=None, missing_url=True, **common)]
        logger.debug("Dropping %s artifact without a URL", artifact_type)
        return []
    return [OutputArtifact(url=url, **common) for url in urls if url]


def _normalize_entry(entry: Any, index: int, fallback_type: str, keep_missing: bool) -> list[OutputArtifact]:
    if entry is None:
        return []
    if isinstance(entry, str):
        url = entry.strip()
        if not url:
            return []
        return [OutputArtifact(type=fallback_type or f"file_{index + 1}", url=url, position=index)]
    if isinstance(entry, (list, tuple)):
        artifacts: list[OutputArtifact] = []
        for item in entry:
            for artifact in _normalize_entry(item, index, fallback_type, keep_missing):
                artifacts.append(artifact)
        return artifacts
    if isinstance(entry, dict):
        return _from_mapping(entry, index, fallback_type, keep_missing)
    return []


def normalize_output_files(raw: Any, *, keep_missing: bool = False) -> list[OutputArtifact]:
    """Flatten any supported descriptor shape into a list of artifacts.

    With ``keep_missing`` entries that have no URL are returned with
    ``missing_url=True`` instead of being dropped.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        return _normalize_entry(raw, 0, "file_1", keep_missing)
    if isinstance(raw, (list, tuple)):
        artifacts: list[OutputArtifact] = []
        for index, entry in enumerate(raw):
            artifacts.extend(_normalize_entry(entry, index, "", keep_missing))
        return artifacts
    if isinstance(raw, dict):
        artifacts = []
        for index, (key, value) in enumerate(raw.items()):
            fallback = key.strip() if isinstance(key, str) else ""
            artifacts.extend(_normalize_entry(value, index, fallback, keep_missing))
        return artifacts
    return []


def is_excluded(artifact: OutputArtifact, flags: Iterable[str] = DEFAULT_EXCLUDED_FLAGS) -> bool:
    """True when metadata marks the artifact as test/preview/stale/archived."""
    sources = [artifact.metadata]
    nested = artifact.metadata.get("metadata")
    if isinstance(nested, dict):
        sources.append(nested)
    for source in sources:
        for flag in flags:
            if source.get(flag) or source.get(f"is{flag.capitalize()}") or source.get(f"is_{flag}"):
                return True
        status = source.get("status") or source.get("state")
        if isinstance(status, str) and status.strip().lower() in flags:
            return True
    return False


def _rank(artifact: OutputArtifact) -> tuple:
    # Lower sorts first: real URLs, then priority, then newest, then latest position.
    timestamp = artifact.generated_at.timestamp() if artifact.generated_at else float("-inf")
    return (artifact.missing_url, int(artifact.priority), -timestamp, -artifact.position)


def dedupe_output_files(
    artifacts: list[OutputArtifact],
    *,
    excluded_flags: Iterable[str] = DEFAULT_EXCLUDED_FLAGS,
) -> list[OutputArtifact]:
    """Keep the best artifact per type, in order of each type's first appearance."""
    flags = tuple(excluded_flags)
    best: dict[str, OutputArtifact] = {}
    for artifact in artifacts:
        if is_excluded(artifact, flags):
            logger.debug("Excluding %s artifact at position %d", artifact.type, artifact.position)
            continue
        current = best.get(artifact.type)
        if current is None or _rank(artifact) < _rank(current):
            best[artifact.type] = artifact
    return list(best.values())


def normalize_and_dedupe(
    raw: Any,
    *,
    keep_missing: bool = False,
    excluded_flags: Iterable[str] = DEFAULT_EXCLUDED_FLAGS,
) -> list[OutputArtifact]:
    return dedupe_output_files(
        normalize_output_files(raw, keep_missing=keep_missing),
        excluded_flags=excluded_flags,
    )
