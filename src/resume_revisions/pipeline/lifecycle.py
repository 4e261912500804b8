"""Accept / reject / revert orchestration for improvement suggestions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from resume_revisions.changelog.engine import ChangeCategorizationEngine
from resume_revisions.changelog.persistence import ChangeLogPersistenceAdapter
from resume_revisions.changelog.summary import build_aggregated_summary
from resume_revisions.errors import (
    InvalidTransition,
    PersistenceFailed,
    RescoreBusy,
    RescoreFailed,
    SuggestionNotFound,
    ValidationRejected,
)
from resume_revisions.history.store import VersionedHistoryStore
from resume_revisions.models.changelog import AggregatedSummary, ChangeLogEntry
from resume_revisions.models.document import (
    DocumentState,
    MatchResult,
    RescoreJob,
    RescoreResult,
    ResumeHistorySnapshot,
)
from resume_revisions.models.suggestion import AcceptanceState, ImprovementSuggestion
from resume_revisions.pipeline.gate import ConcurrencyGate, DrainReport

logger = logging.getLogger(__name__)


@dataclass
class AcceptAllResult:
    accepted: list[str] = field(default_factory=list)


class SuggestionLifecycleManager:
    """Owns the suggestion list and the current resume state.

    All in-memory transitions for an action happen before its first await,
    so a suspended rescore never sees a half-applied accept.
    """

    def __init__(
        self,
        suggestions: list[ImprovementSuggestion],
        document: DocumentState,
        *,
        gate: ConcurrencyGate,
        persistence: ChangeLogPersistenceAdapter,
        history: VersionedHistoryStore | None = None,
        engine: ChangeCategorizationEngine | None = None,
        change_log: list[ChangeLogEntry] | None = None,
        on_change: Callable[[str, str], None] | None = None,
        max_interview_skills: int = 3,
    ):
        self._suggestions = [s.model_copy(deep=True) for s in suggestions]
        self._by_id = {s.id: s for s in self._suggestions}
        self._document = document.model_copy(deep=True)
        self._change_log = [e.model_copy(deep=True) for e in change_log or []]
        self.gate = gate
        self.persistence = persistence
        self.history = history or VersionedHistoryStore()
        self.engine = engine or ChangeCategorizationEngine()
        self.on_change = on_change
        self.max_interview_skills = max_interview_skills

    # --- read-only projections ---

    @property
    def suggestions(self) -> list[ImprovementSuggestion]:
        return [s.model_copy(deep=True) for s in self._suggestions]

    @property
    def document(self) -> DocumentState:
        return self._document.model_copy(deep=True)

    @property
    def change_log(self) -> list[ChangeLogEntry]:
        return [e.model_copy(deep=True) for e in self._change_log]

    def get(self, suggestion_id: str) -> ImprovementSuggestion:
        return self._find(suggestion_id, "read").model_copy(deep=True)

    def summary(self) -> AggregatedSummary:
        return build_aggregated_summary(
            self._change_log, max_interview_skills=self.max_interview_skills
        )

    def busy_flags(self) -> dict[str, dict]:
        return {
            s.id: {"pending": s.rescore_pending, "error": s.rescore_error}
            for s in self._suggestions
        }

    def history_snapshots(self) -> list[ResumeHistorySnapshot]:
        return self.history.snapshots()

    # --- actions ---

    async def load_change_log(self) -> list[ChangeLogEntry]:
        """Replace the local cache with the store's copy."""
        self._change_log = await self.persistence.load()
        self._notify("change_log_loaded", "")
        return self.change_log

    async def accept(self, suggestion_id: str) -> ImprovementSuggestion:
        suggestion = self._find(suggestion_id, "accept")
        if suggestion.acceptance != AcceptanceState.UNDECIDED:
            raise InvalidTransition(
                f"Suggestion {suggestion_id} is already {suggestion.acceptance.value}",
                suggestion_id=suggestion_id,
                phase="accept",
            )
        if suggestion.validation_failed:
            reason = suggestion.validation.reason
            raise ValidationRejected(
                f"Suggestion {suggestion_id} does not align with the job: {reason}",
                reason=reason,
                suggestion_id=suggestion_id,
                phase="accept",
            )

        baseline_score = self._document.match.overall_score
        missing_skills = list(self._document.match.missing_skills)
        self.history.save(
            suggestion_id,
            ResumeHistorySnapshot(
                id=suggestion_id,
                document=self._document,
                change_log=self._change_log,
            ),
        )

        suggestion.acceptance = AcceptanceState.ACCEPTED
        suggestion.rescore_pending = True
        suggestion.rescore_error = None
        suggestion.score_delta = None
        if suggestion.updated_resume:
            self._document = self._document.model_copy(update={"text": suggestion.updated_resume})

        entry = self.engine.build_entry(suggestion)
        self._change_log.append(entry)
        self.gate.enqueue(
            RescoreJob(
                id=suggestion_id,
                updated_text=self._document.text,
                baseline_score=baseline_score,
                previous_missing_skills=missing_skills,
            )
        )
        self._notify("accepted", suggestion_id)
        logger.info("Accepted suggestion %s (%s)", suggestion_id, entry.label.value)

        try:
            self._change_log = await self.persistence.write(entry, phase="accept")
        except PersistenceFailed:
            # The edit stays applied; only the audit record is dropped.
            self._change_log = [e for e in self._change_log if e is not entry]
            self._notify("change_log_rollback", suggestion_id)
            try:
                await self._drain()
            except RescoreBusy:
                logger.info("Rescore for %s left queued behind a running drain", suggestion_id)
            raise

        await self._drain()
        return suggestion.model_copy(deep=True)

    async def reject(self, suggestion_id: str) -> ImprovementSuggestion:
        suggestion = self._find(suggestion_id, "reject")
        if suggestion.acceptance == AcceptanceState.ACCEPTED:
            await self.revert(suggestion_id)
        suggestion.acceptance = AcceptanceState.REJECTED
        self._notify("rejected", suggestion_id)
        return suggestion.model_copy(deep=True)

    async def revert(self, suggestion_id: str) -> ImprovementSuggestion:
        """Undo an accepted suggestion.

        Persistence is confirmed before any local state changes, so a failed
        revert leaves everything as it was and can be retried.
        """
        suggestion = self._find(suggestion_id, "revert")
        if suggestion.acceptance != AcceptanceState.ACCEPTED:
            raise InvalidTransition(
                f"Suggestion {suggestion_id} is not accepted",
                suggestion_id=suggestion_id,
                phase="revert",
            )
        snapshot = self.history.restore(suggestion_id)
        if snapshot.retired:
            raise InvalidTransition(
                f"Snapshot for {suggestion_id} was already used",
                suggestion_id=suggestion_id,
                phase="revert",
            )

        index = self._entry_index(suggestion_id)
        previous = self._change_log[index] if index is not None else None
        flagged = None
        if previous is not None:
            flagged = previous.model_copy(deep=True)
            flagged.reverted = True
            flagged.reverted_at = datetime.now(timezone.utc)
            self._change_log[index] = flagged

        try:
            authoritative = await self.persistence.remove(suggestion_id, phase="revert")
        except PersistenceFailed:
            if previous is not None:
                current = self._entry_index(suggestion_id)
                if current is not None:
                    self._change_log[current] = previous
            self._notify("change_log_rollback", suggestion_id)
            raise

        self._document = snapshot.document
        self._change_log = (
            _keep_flagged_entry(authoritative, flagged, index) if flagged is not None else authoritative
        )
        self.gate.remove(suggestion_id)
        suggestion.acceptance = AcceptanceState.REJECTED
        suggestion.score_delta = None
        suggestion.rescore_pending = False
        suggestion.rescore_error = None
        suggestion.rescore_summary = None
        self.history.retire(suggestion_id)
        self._notify("reverted", suggestion_id)
        logger.info("Reverted suggestion %s", suggestion_id)
        return suggestion.model_copy(deep=True)

    async def accept_all(self) -> AcceptAllResult:
        """Accept every undecided suggestion in order, one at a time.

        Stops at the first failure, including a suggestion that failed job
        alignment. The error propagates and later suggestions stay untouched;
        suggestions accepted before it keep their state.
        """
        result = AcceptAllResult()
        for suggestion in list(self._suggestions):
            if suggestion.acceptance != AcceptanceState.UNDECIDED:
                continue
            await self.accept(suggestion.id)
            result.accepted.append(suggestion.id)
        return result

    async def retry_rescore(self, suggestion_id: str) -> ImprovementSuggestion:
        """Queue a fresh rescore for an accepted suggestion whose rescore failed."""
        suggestion = self._find(suggestion_id, "rescore")
        if suggestion.acceptance != AcceptanceState.ACCEPTED:
            raise InvalidTransition(
                f"Suggestion {suggestion_id} is not accepted",
                suggestion_id=suggestion_id,
                phase="rescore",
            )
        snapshot = self.history.restore(suggestion_id)
        suggestion.rescore_pending = True
        suggestion.rescore_error = None
        self.gate.enqueue(
            RescoreJob(
                id=suggestion_id,
                updated_text=self._document.text,
                baseline_score=snapshot.document.match.overall_score,
                previous_missing_skills=list(snapshot.document.match.missing_skills),
            )
        )
        self._notify("rescore_queued", suggestion_id)
        await self._drain()
        return suggestion.model_copy(deep=True)

    async def refresh_scores(self) -> DrainReport:
        """Drain any queued rescore jobs."""
        return await self._drain()

    # --- rescore handlers ---

    async def _drain(self) -> DrainReport:
        return await self.gate.drain(self._on_rescore_success, self._on_rescore_failure)

    async def _on_rescore_success(
        self, job: RescoreJob, result: RescoreResult, delta: float | None
    ) -> None:
        suggestion = self._by_id.get(job.id)
        if suggestion is None or suggestion.acceptance != AcceptanceState.ACCEPTED:
            logger.info("Ignoring rescore result for %s: no longer accepted", job.id)
            return

        suggestion.score_delta = delta
        suggestion.rescore_pending = False
        suggestion.rescore_error = None
        suggestion.rescore_summary = result.summary_payload()

        current = self._document
        skills = list(dict.fromkeys([*current.skills, *result.covered_skills]))
        self._document = DocumentState(
            text=current.text,
            match=MatchResult(
                overall_score=result.overall_score,
                covered_skills=result.covered_skills,
                missing_skills=result.missing_skills,
                selection_probability=result.selection_probability,
                extra=current.match.extra,
            ),
            score_breakdown=result.score_breakdown or current.score_breakdown,
            skills=skills,
        )
        self._notify("rescored", job.id)

        index = self._entry_index(job.id)
        if index is None or self._change_log[index].reverted:
            return
        previous = self._change_log[index]
        self._change_log[index] = self.engine.refresh_entry(previous, delta)
        try:
            authoritative = await self.persistence.write(self._change_log[index], phase="rescore")
        except PersistenceFailed as exc:
            current_index = self._entry_index(job.id)
            if current_index is not None:
                self._change_log[current_index] = previous
            suggestion.rescore_error = exc.message
            self._notify("change_log_rollback", job.id)
            return
        if suggestion.acceptance == AcceptanceState.ACCEPTED:
            self._change_log = authoritative

    async def _on_rescore_failure(self, job: RescoreJob, error: RescoreFailed) -> None:
        suggestion = self._by_id.get(job.id)
        if suggestion is None or suggestion.acceptance != AcceptanceState.ACCEPTED:
            logger.info("Ignoring rescore failure for %s: no longer accepted", job.id)
            return
        suggestion.rescore_pending = False
        suggestion.rescore_error = error.message
        self._notify("rescore_failed", job.id)

    # --- helpers ---

    def _find(self, suggestion_id: str, phase: str) -> ImprovementSuggestion:
        suggestion = self._by_id.get(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFound(
                f"Unknown suggestion {suggestion_id}",
                suggestion_id=suggestion_id,
                phase=phase,
            )
        return suggestion

    def _entry_index(self, entry_id: str) -> int | None:
        for index, entry in enumerate(self._change_log):
            if entry.id == entry_id:
                return index
        return None

    def _notify(self, event: str, suggestion_id: str) -> None:
        if self.on_change:
            self.on_change(event, suggestion_id)


def _keep_flagged_entry(
    entries: list[ChangeLogEntry], flagged: ChangeLogEntry, index: int
) -> list[ChangeLogEntry]:
    """Make sure a reverted entry stays in the log, flagged, whatever the store returned."""
    for position, entry in enumerate(entries):
        if entry.id == flagged.id:
            if entry.reverted:
                return entries
            logger.warning("Store returned %s without the revert flag; keeping local copy", flagged.id)
            return [*entries[:position], flagged, *entries[position + 1:]]
    logger.warning("Store dropped reverted entry %s; keeping local copy", flagged.id)
    return [*entries[:index], flagged, *entries[index:]]
