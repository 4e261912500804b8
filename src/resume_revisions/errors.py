"""Error taxonomy for the improvement lifecycle.

Every error carries the suggestion id and the phase it was raised in so
callers can render a stage-specific message. ``retryable`` tells the UI
whether offering a "try again" action makes sense.
"""

from __future__ import annotations


class RevisionError(Exception):
    """Base class for lifecycle errors."""

    retryable: bool = False
    default_phase: str = "accept"

    def __init__(
        self,
        message: str,
        *,
        suggestion_id: str | None = None,
        phase: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.suggestion_id = suggestion_id
        self.phase = phase or self.default_phase

    def to_dict(self) -> dict:
        return {
            "code": type(self).__name__,
            "message": self.message,
            "suggestion_id": self.suggestion_id,
            "phase": self.phase,
            "retryable": self.retryable,
        }


class SuggestionNotFound(RevisionError):
    """No suggestion with the given id is loaded."""


class InvalidTransition(RevisionError):
    """The requested action is not allowed from the current acceptance state."""


class ValidationRejected(RevisionError):
    """The suggestion failed the job-alignment check and cannot be accepted."""

    def __init__(self, message: str, *, reason: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason


class SnapshotMissing(RevisionError):
    """No history snapshot exists for the id.

    The history store and the suggestion list have desynchronised.
    """

    default_phase = "revert"


class RescoreBusy(RevisionError):
    """The rescore gate is already draining; retry once it finishes."""

    retryable = True
    default_phase = "rescore"


class RescoreFailed(RevisionError):
    """The scoring service failed. The text edit stays applied."""

    retryable = True
    default_phase = "rescore"


class PersistenceFailed(RevisionError):
    """A change-log write or removal failed; local state was rolled back."""

    retryable = True
    default_phase = "persist"


class ChangeLogStoreError(Exception):
    """Raised by change-log store backends when a call does not succeed."""

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.code = code
