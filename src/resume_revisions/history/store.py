"""In-memory store of pre-accept snapshots, keyed by suggestion id."""

from __future__ import annotations

import logging

from resume_revisions.errors import SnapshotMissing
from resume_revisions.models.document import ResumeHistorySnapshot

logger = logging.getLogger(__name__)


class VersionedHistoryStore:
    """Holds one snapshot per accepted suggestion.

    Snapshots are deep-copied going in and coming out, so mutating the live
    document after ``save`` can never change what ``restore`` returns.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, ResumeHistorySnapshot] = {}

    def save(self, snapshot_id: str, snapshot: ResumeHistorySnapshot) -> None:
        """Store a snapshot; an existing one for the id is overwritten."""
        if snapshot_id in self._snapshots:
            logger.debug("Overwriting snapshot %s", snapshot_id)
            del self._snapshots[snapshot_id]
        stored = snapshot.model_copy(deep=True)
        stored.id = snapshot_id
        stored.retired = False
        self._snapshots[snapshot_id] = stored

    def restore(self, snapshot_id: str) -> ResumeHistorySnapshot:
        snapshot = self._snapshots.get(snapshot_id)
        if snapshot is None:
            raise SnapshotMissing(
                f"No history snapshot for {snapshot_id}",
                suggestion_id=snapshot_id,
            )
        return snapshot.model_copy(deep=True)

    def retire(self, snapshot_id: str) -> None:
        """Mark a consumed snapshot as retired. It stays available for display."""
        snapshot = self._snapshots.get(snapshot_id)
        if snapshot is not None:
            snapshot.retired = True

    def forget(self, snapshot_id: str) -> bool:
        return self._snapshots.pop(snapshot_id, None) is not None

    def has(self, snapshot_id: str) -> bool:
        return snapshot_id in self._snapshots

    def snapshots(self) -> list[ResumeHistorySnapshot]:
        return [s.model_copy(deep=True) for s in self._snapshots.values()]

    def __len__(self) -> int:
        return len(self._snapshots)
