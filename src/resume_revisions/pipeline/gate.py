"""Single-flight gate that serializes rescore jobs."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from resume_revisions.clients.rescore_client import RescoreService
from resume_revisions.errors import RescoreBusy, RescoreFailed
from resume_revisions.models.document import JobContext, RescoreJob, RescoreResult

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[RescoreJob, RescoreResult, float | None], Awaitable[None]]
FailureHandler = Callable[[RescoreJob, RescoreFailed], Awaitable[None]]


@dataclass
class DrainReport:
    """Outcome of one ``drain`` call."""

    completed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class ConcurrencyGate:
    """A lock flag plus a FIFO queue of rescore jobs.

    Jobs run strictly in enqueue order and never overlap. A failed job is
    dropped from the queue and reported; it is not retried.
    """

    def __init__(self, rescorer: RescoreService, job_context: JobContext):
        self.rescorer = rescorer
        self.job_context = job_context
        self._queue: deque[RescoreJob] = deque()
        self._locked = False
        self.current_job_id: str | None = None
        self.on_job_start: Callable[[RescoreJob], None] | None = None
        self.on_job_end: Callable[[RescoreJob], None] | None = None

    @property
    def is_locked(self) -> bool:
        return self._locked

    def __len__(self) -> int:
        return len(self._queue)

    def pending_ids(self) -> list[str]:
        return [job.id for job in self._queue]

    def enqueue(self, job: RescoreJob) -> None:
        """Queue a job. Processing only starts on ``drain``."""
        self._queue.append(job)
        logger.debug("Queued rescore for %s (queue=%d)", job.id, len(self._queue))

    def remove(self, job_id: str) -> int:
        """Drop queued, not-yet-started jobs for ``job_id``."""
        before = len(self._queue)
        self._queue = deque(job for job in self._queue if job.id != job_id)
        removed = before - len(self._queue)
        if removed:
            logger.debug("Removed %d queued rescore job(s) for %s", removed, job_id)
        return removed

    async def drain(self, on_success: SuccessHandler, on_failure: FailureHandler) -> DrainReport:
        """Process queued jobs one at a time until the queue is empty.

        Raises ``RescoreBusy`` if another drain is already running.
        """
        if self._locked:
            raise RescoreBusy(
                "A score refresh is already running. Please wait for it to finish.",
                suggestion_id=self.current_job_id,
            )

        self._locked = True
        report = DrainReport()
        try:
            while self._queue:
                job = self._queue.popleft()
                self.current_job_id = job.id
                if self.on_job_start:
                    self.on_job_start(job)
                try:
                    try:
                        result = await self.rescorer.rescore(
                            job.updated_text,
                            self.job_context,
                            job.baseline_score,
                            list(job.previous_missing_skills),
                        )
                    except RescoreFailed as exc:
                        exc.suggestion_id = job.id
                        logger.warning("Rescore failed for %s: %s", job.id, exc.message)
                        report.failed[job.id] = exc.message
                        await on_failure(job, exc)
                        continue

                    delta = result.delta_from(job.baseline_score)
                    await on_success(job, result, delta)
                    report.completed.append(job.id)
                finally:
                    self.current_job_id = None
                    if self.on_job_end:
                        self.on_job_end(job)
        finally:
            self._locked = False
        return report
