"""I/O boundary between the lifecycle manager and the change-log store."""

from __future__ import annotations

import logging
from typing import Protocol

from resume_revisions.errors import PersistenceFailed
from resume_revisions.models.changelog import ChangeLogEntry

logger = logging.getLogger(__name__)


class ChangeLogStore(Protocol):
    """Remote (or local) owner of the authoritative change log.

    Every call returns the full list after the call's effect.
    """

    async def write(self, job_id: str, entry: ChangeLogEntry) -> list[ChangeLogEntry]: ...

    async def remove(self, job_id: str, entry_id: str) -> list[ChangeLogEntry]: ...

    async def load(self, job_id: str) -> list[ChangeLogEntry]: ...


class ChangeLogPersistenceAdapter:
    """Wraps a ChangeLogStore for one job.

    Never touches caller state: callers roll back their own optimistic
    updates when a call raises ``PersistenceFailed``, and adopt the returned
    list verbatim on success.
    """

    def __init__(self, store: ChangeLogStore, job_id: str):
        self.store = store
        self.job_id = job_id

    async def write(self, entry: ChangeLogEntry, *, phase: str = "persist") -> list[ChangeLogEntry]:
        try:
            return await self.store.write(self.job_id, entry)
        except Exception as exc:
            logger.error("Change-log write failed for %s", entry.id, exc_info=True)
            raise PersistenceFailed(
                f"Could not save change log entry {entry.id}: {exc}",
                suggestion_id=entry.id,
                phase=phase,
            ) from exc

    async def remove(self, entry_id: str, *, phase: str = "persist") -> list[ChangeLogEntry]:
        try:
            return await self.store.remove(self.job_id, entry_id)
        except Exception as exc:
            logger.error("Change-log removal failed for %s", entry_id, exc_info=True)
            raise PersistenceFailed(
                f"Could not remove change log entry {entry_id}: {exc}",
                suggestion_id=entry_id,
                phase=phase,
            ) from exc

    async def load(self) -> list[ChangeLogEntry]:
        try:
            return await self.store.load(self.job_id)
        except Exception as exc:
            logger.error("Change-log load failed for job %s", self.job_id, exc_info=True)
            raise PersistenceFailed(
                f"Could not load change log for job {self.job_id}: {exc}",
                phase="persist",
            ) from exc
