"""
Artifact download.

One GET per attempt, handed to the RetryExecutor. data: URIs are decoded
locally without a network round-trip.
"""

import base64
import binascii
import logging
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx

from generation.http_errors import RATE_LIMIT_STATUS, network_failure, parse_retry_after
from generation.types import ErrorKind, GenerationFailure, Outcome

from .retry import RetryExecutor, RetryPolicy
from .types import ImageFormat, ResolvedArtifact

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_S = 30.0
DEFAULT_RATE_LIMIT_WAIT_S = 5.0


def sniff_format(data: bytes, content_type: Optional[str] = None) -> Optional[ImageFormat]:
    """Infer the artifact's encoding from magic bytes, then content type."""
    head = data[:512]
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return ImageFormat.PNG
    if head.startswith(b"\xff\xd8\xff"):
        return ImageFormat.JPEG
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return ImageFormat.WEBP
    if b"<svg" in head.lower():
        return ImageFormat.VECTOR
    if content_type:
        media = content_type.split(";", 1)[0].strip().lower()
        for fmt in ImageFormat:
            if fmt.mime_type == media:
                return fmt
    return None


def decode_data_uri(uri: str) -> Outcome[ResolvedArtifact]:
    header, sep, payload = uri[5:].partition(",")
    if not sep:
        return Outcome.failure(GenerationFailure(
            kind=ErrorKind.NETWORK,
            message="Malformed data URI",
        ))
    content_type = header.split(";", 1)[0] or None
    try:
        if header.endswith(";base64"):
            data = base64.b64decode(payload, validate=True)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        return Outcome.failure(GenerationFailure(
            kind=ErrorKind.NETWORK,
            message=f"Malformed data URI payload: {e}",
        ))
    return Outcome.success(ResolvedArtifact(
        data=data,
        source_format=sniff_format(data, content_type),
        content_type=content_type,
        url="data:",
    ))


class ArtifactFetcher:
    """Downloads completed artifacts with a per-request timeout and retries."""

    def __init__(
        self,
        executor: RetryExecutor,
        policy: RetryPolicy = RetryPolicy(),
        timeout: float = DEFAULT_FETCH_TIMEOUT_S,
    ):
        self._executor = executor
        self.policy = policy
        self.timeout = timeout

    async def fetch(self, url: str) -> Outcome[ResolvedArtifact]:
        if url.startswith("data:"):
            return decode_data_uri(url)
        return await self._executor.run(lambda: self._fetch_once(url), self.policy, label="Image download")

    async def _fetch_once(self, url: str) -> Outcome[ResolvedArtifact]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            return Outcome.failure(network_failure(e, "Failed to fetch image"))

        if response.status_code == RATE_LIMIT_STATUS:
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message="Rate limited while fetching image",
                status_code=response.status_code,
                retry_after_s=retry_after if retry_after is not None else DEFAULT_RATE_LIMIT_WAIT_S,
                retryable=True,
            ))

        if not response.is_success:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.NETWORK,
                message=f"Failed to fetch image: {response.reason_phrase} ({response.status_code})",
                details={"status": response.status_code, "reason": response.reason_phrase},
                status_code=response.status_code,
                retryable=True,
            ))

        data = response.content
        if not data:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.NETWORK,
                message="Failed to fetch image: empty response body",
                details={"status": response.status_code, "reason": "empty body"},
                status_code=response.status_code,
                retryable=True,
            ))

        content_type = response.headers.get("content-type")
        logger.debug("Fetched %d bytes (%s)", len(data), content_type)
        return Outcome.success(ResolvedArtifact(
            data=data,
            source_format=sniff_format(data, content_type),
            content_type=content_type,
            url=url,
        ))
