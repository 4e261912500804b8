"""Change-log store backed by the remote change-log API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from resume_revisions.errors import ChangeLogStoreError
from resume_revisions.models.changelog import ChangeLogEntry

logger = logging.getLogger(__name__)


def _parse_envelope(response: httpx.Response) -> list[ChangeLogEntry]:
    """Unwrap ``{"success": ..., "changeLog": [...], "error": {...}}``."""
    try:
        data: Any = response.json()
    except ValueError as exc:
        raise ChangeLogStoreError(
            f"Change log API returned non-JSON (HTTP {response.status_code})"
        ) from exc
    if not isinstance(data, dict):
        raise ChangeLogStoreError("Change log API returned an unexpected body")

    if response.is_error or not data.get("success", False):
        error = data.get("error") or {}
        if isinstance(error, dict):
            message = error.get("message") or f"HTTP {response.status_code}"
            code = error.get("code")
        else:
            message, code = str(error), None
        raise ChangeLogStoreError(message, code=code)

    return [ChangeLogEntry.model_validate(item) for item in data.get("changeLog") or []]


class HTTPChangeLogStore:
    """Async client for the change-log API.

    Every operation is a ``POST`` to a single endpoint whose body names the
    job and the action (``write``, ``revert`` or ``load``).

    Transport errors are retried with exponential backoff; an explicit
    error response from the API is not.
    """

    def __init__(
        self,
        base_url: str,
        *,
        endpoint: str = "/api/change-log",
        timeout: float = 30.0,
        max_retries: int = 3,
        client: httpx.AsyncClient | None = None,
    ):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.endpoint = endpoint
        self.max_retries = max_retries

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async def _send() -> httpx.Response:
            return await self.client.request(method, url, **kwargs)

        try:
            return await _send()
        except httpx.HTTPError as exc:
            logger.error("Change log request failed: %s %s", method, url, exc_info=True)
            raise ChangeLogStoreError(f"Change log API unreachable: {exc}") from exc

    async def _post(self, job_id: str, action: str, **fields: Any) -> list[ChangeLogEntry]:
        response = await self._request(
            "POST", self.endpoint, json={"jobId": job_id, "action": action, **fields}
        )
        return _parse_envelope(response)

    async def write(self, job_id: str, entry: ChangeLogEntry) -> list[ChangeLogEntry]:
        return await self._post(job_id, "write", entry=entry.model_dump(mode="json", by_alias=True))

    async def remove(self, job_id: str, entry_id: str) -> list[ChangeLogEntry]:
        return await self._post(job_id, "revert", entryId=entry_id)

    async def load(self, job_id: str) -> list[ChangeLogEntry]:
        return await self._post(job_id, "load")

    async def aclose(self) -> None:
        await self.client.aclose()
