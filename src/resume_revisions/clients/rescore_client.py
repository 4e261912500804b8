"""HTTP client for the resume rescoring service."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from resume_revisions.errors import RescoreFailed
from resume_revisions.models.document import (
    JobContext,
    RescoreResult,
    ScoreBreakdownItem,
    SelectionProbability,
)

logger = logging.getLogger(__name__)


class RescoreService(Protocol):
    async def rescore(
        self,
        document_text: str,
        job_context: JobContext,
        baseline_score: float | None,
        previous_missing_skills: list[str],
    ) -> RescoreResult: ...


def parse_rescore_response(data: dict[str, Any]) -> RescoreResult:
    """Map the service's JSON body onto a RescoreResult."""
    overall = data.get("enhancedScore")
    if overall is None:
        overall = data.get("score")
    if overall is None:
        raise ValueError("Rescore response has no score")

    breakdown = [
        ScoreBreakdownItem.model_validate(item)
        for item in data.get("atsSubScores") or data.get("table") or []
        if isinstance(item, dict) and "category" in item and "score" in item
    ]

    selection = None
    if any(k in data for k in ("selectionProbabilityBefore", "selectionProbabilityAfter")):
        selection = SelectionProbability(
            before=data.get("selectionProbabilityBefore"),
            after=data.get("selectionProbabilityAfter"),
            factors=[
                f if isinstance(f, str) else str(f.get("label") or f.get("message") or f)
                for f in data.get("selectionProbabilityFactors") or []
            ],
        )

    delta = data.get("scoreDelta")
    return RescoreResult(
        overall_score=float(overall),
        score_breakdown=breakdown,
        covered_skills=list(data.get("coveredSkills") or []),
        missing_skills=list(data.get("missingSkills") or []),
        selection_probability=selection,
        delta=float(delta) if isinstance(delta, (int, float)) else None,
    )


class RescoreClient:
    """Async client for ``POST /api/rescore-improvement``.

    Calls are never retried here: a failed rescore is reported to the user,
    who decides whether to try again.
    """

    def __init__(
        self,
        base_url: str,
        *,
        endpoint: str = "/api/rescore-improvement",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = endpoint
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def rescore(
        self,
        document_text: str,
        job_context: JobContext,
        baseline_score: float | None,
        previous_missing_skills: list[str],
    ) -> RescoreResult:
        payload = {
            "jobId": job_context.job_id,
            "resumeText": document_text,
            "jobDescriptionText": job_context.job_description,
            "jobSkills": job_context.job_skills,
            "previousMissingSkills": previous_missing_skills,
            "baselineScore": baseline_score,
        }
        logger.debug("Rescore request: job=%s, %d chars", job_context.job_id, len(document_text))
        try:
            response = await self.client.post(self.endpoint, json=payload)
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("response body is not a JSON object")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Rescore request failed", exc_info=True)
            raise RescoreFailed(f"Rescore request failed: {exc}") from exc

        if response.is_error or not data.get("success", False):
            error = data.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            message = message or data.get("message") or f"HTTP {response.status_code}"
            logger.warning("Rescore rejected: %s", message)
            raise RescoreFailed(f"Rescore failed: {message}")

        try:
            return parse_rescore_response(data)
        except ValueError as exc:
            raise RescoreFailed(f"Malformed rescore response: {exc}") from exc

    async def aclose(self) -> None:
        await self.client.aclose()
