"""
HTTP status -> GenerationFailure classification.

Failures are tagged where the response is observed so callers never have
to re-derive the kind from message text.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

import httpx

from .types import ErrorKind, GenerationFailure

AUTH_STATUSES = {401, 403}
PERMANENT_STATUSES = {400, 404, 405, 410, 422}
RATE_LIMIT_STATUS = 429
TRANSIENT_CLIENT_STATUSES = {408, 425}


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header (delta-seconds or HTTP-date) into seconds."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def _response_details(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        body = response.text[:500]
    return {"status": response.status_code, "reason": response.reason_phrase, "body": body}


def failure_from_response(
    response: httpx.Response,
    context: str,
    default_retry_after_s: Optional[float] = None,
) -> GenerationFailure:
    """Classify a non-2xx provider response."""
    status = response.status_code
    details = _response_details(response)
    body = details.get("body")
    remote_message = body.get("message") if isinstance(body, dict) else None

    if status in AUTH_STATUSES:
        return GenerationFailure(
            kind=ErrorKind.AUTHENTICATION,
            message="Authentication failed. Please check your API key.",
            details=details,
            status_code=status,
        )
    if status == RATE_LIMIT_STATUS:
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        return GenerationFailure(
            kind=ErrorKind.API,
            message="Rate limit exceeded. Please try again later.",
            details=details,
            status_code=status,
            retry_after_s=retry_after if retry_after is not None else default_retry_after_s,
            retryable=True,
        )
    return GenerationFailure(
        kind=ErrorKind.API,
        message=f"{context}: {remote_message or response.reason_phrase or 'HTTP ' + str(status)} ({status})",
        details=details,
        status_code=status,
        retryable=status >= 500 or status in TRANSIENT_CLIENT_STATUSES,
    )


def network_failure(exc: Exception, context: str) -> GenerationFailure:
    """Transport-level failure (connect error, timeout, protocol error)."""
    reason = "timeout" if isinstance(exc, httpx.TimeoutException) else type(exc).__name__
    return GenerationFailure(
        kind=ErrorKind.NETWORK,
        message=f"{context}: network error ({reason})",
        details={"reason": reason, "error": str(exc)},
        retryable=True,
    )
