"""
EverArt REST client.

Endpoints:
  POST {base}/models/{model_id}/generations   create generation(s)
  GET  {base}/generations/{id}                 fetch one generation

Provider statuses:
  STARTING, PROCESSING          -> still running
  SUCCEEDED                     -> completed (image_url set)
  FAILED, CANCELED              -> permanent failure

Invariants:
- API key is sent as a Bearer header and never logged
- Every request has a timeout
- Retry-After waits are capped at max_retry_after_s
- Never raises - all errors return Outcome(status="error")
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .base import TEXT_TO_IMAGE, RemoteClient
from .http_errors import (
    AUTH_STATUSES,
    PERMANENT_STATUSES,
    RATE_LIMIT_STATUS,
    failure_from_response,
    network_failure,
)
from .types import ErrorKind, GenerationFailure, GenerationJob, JobState, Outcome, SubmitOptions

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.everart.ai/v1"
DEFAULT_MAX_RETRY_AFTER_S = 120.0

_STATE_BY_STATUS = {
    "STARTING": JobState.POLLING,
    "PROCESSING": JobState.POLLING,
    "SUCCEEDED": JobState.COMPLETED,
    "FAILED": JobState.FAILED,
    "CANCELED": JobState.FAILED,
}


def job_from_payload(payload: Dict[str, Any], model_id: str = "") -> GenerationJob:
    """Map one provider generation object onto a GenerationJob."""
    raw_status = str(payload.get("status") or "STARTING").upper()
    state = _STATE_BY_STATUS.get(raw_status, JobState.POLLING)
    return GenerationJob(
        job_id=str(payload.get("id", "")),
        model_id=str(payload.get("model_id") or model_id),
        state=state,
        image_url=payload.get("image_url") or None,
        raw_status=raw_status,
        failure_reason=payload.get("failure_reason") or payload.get("error"),
    )


class EverArtRemoteClient(RemoteClient):
    """
    Async EverArt client.

    Usage:
        client = EverArtRemoteClient(api_key="...")
        jobs = await client.submit("5000", "A landscape")
        done = await client.poll(jobs.value[0].job_id)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_retry_after_s: float = DEFAULT_MAX_RETRY_AFTER_S,
    ):
        if not api_key:
            raise ValueError("EverArt API key is required")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retry_after_s = max_retry_after_s
        self._sleep = sleep

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def submit(
        self,
        model_id: str,
        prompt: str,
        mode: str = TEXT_TO_IMAGE,
        options: Optional[SubmitOptions] = None,
    ) -> Outcome[List[GenerationJob]]:
        options = options or SubmitOptions()
        payload = {
            "prompt": prompt,
            "type": mode,
            "image_count": options.count,
            "height": options.height,
            "width": options.width,
            **options.extra_model_flags,
        }
        url = f"{self.base_url}/models/{model_id}/generations"
        logger.info("Submitting generation: model=%s count=%d", model_id, options.count)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            return Outcome.failure(network_failure(e, "Failed to connect to EverArt API"))

        if not response.is_success:
            return Outcome.failure(failure_from_response(response, "API error"))

        try:
            data = response.json()
        except ValueError:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message="EverArt returned a non-JSON response to generation create",
                details={"body": response.text[:500]},
            ))

        generations = data.get("generations") if isinstance(data, dict) else data
        if not isinstance(generations, list) or not generations:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message="EverArt did not return any generation handles",
                details={"body": data},
            ))

        jobs = [job_from_payload(g, model_id) for g in generations if isinstance(g, dict)]
        jobs = [j for j in jobs if j.job_id]
        if not jobs:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message="EverArt generation handles carry no id",
                details={"body": data},
            ))
        logger.info("Generation submitted: %s", ", ".join(j.job_id for j in jobs))
        return Outcome.success(jobs)

    async def poll(
        self,
        job_id: str,
        max_attempts: int = 30,
        interval_s: float = 3.0,
    ) -> Outcome[GenerationJob]:
        url = f"{self.base_url}/generations/{job_id}"
        last_status: Optional[str] = None

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(1, max_attempts + 1):
                delay = interval_s
                try:
                    response = await client.get(url, headers=self._headers())
                except httpx.HTTPError as e:
                    logger.warning("Poll %d/%d for %s failed: %s", attempt, max_attempts, job_id, type(e).__name__)
                    response = None

                if response is not None and response.is_success:
                    try:
                        data = response.json()
                    except ValueError:
                        data = None
                    payload = data.get("generation", data) if isinstance(data, dict) else None
                    if isinstance(payload, dict):
                        job = job_from_payload(payload)
                        job.job_id = job.job_id or job_id
                        last_status = job.raw_status
                        if job.state == JobState.COMPLETED:
                            return Outcome.success(job)
                        if job.state == JobState.FAILED:
                            return Outcome.failure(GenerationFailure(
                                kind=ErrorKind.API,
                                message=f"Generation {job_id} ended with status {job.raw_status}",
                                details={"job_id": job_id, "status": job.raw_status,
                                         "reason": job.failure_reason},
                            ))
                        logger.debug("Job %s status=%s (%d/%d)", job_id, job.raw_status, attempt, max_attempts)
                elif response is not None:
                    status = response.status_code
                    if status in AUTH_STATUSES or status in PERMANENT_STATUSES:
                        return Outcome.failure(failure_from_response(response, "Polling failed"))
                    if status == RATE_LIMIT_STATUS:
                        hint = failure_from_response(response, "Polling rate limited").retry_after_s
                        if hint is not None:
                            delay = min(hint, self.max_retry_after_s)
                    logger.warning("Poll %d/%d for %s returned HTTP %d", attempt, max_attempts, job_id, status)

                if attempt < max_attempts:
                    await self._sleep(delay)

        return Outcome.failure(GenerationFailure(
            kind=ErrorKind.API,
            message=f"Generation {job_id} did not complete after {max_attempts} polls",
            details={"reason": "poll_timeout", "job_id": job_id, "last_status": last_status},
            attempts=max_attempts,
        ))
