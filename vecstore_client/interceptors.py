"""Call interceptors: authentication metadata and retry on rate limiting.

An invoker is a callable ``invoker(method, request, metadata)`` returning the
reply. An interceptor is a callable
``interceptor(method, request, invoker, *, metadata=...)`` that wraps it.
"""

from __future__ import annotations

import base64
import time
from typing import Any, Callable, Iterable, Sequence

Metadata = Sequence[tuple[str, str]]
Invoker = Callable[[str, Any, Metadata], Any]
BackoffFunc = Callable[[int], float]

RATE_LIMIT_ERROR_CODE = 49

MAX_BACKOFF = 60.0


def authentication_metadata(
    metadata: Iterable[tuple[str, str]], username: str, password: str
) -> list[tuple[str, str]]:
    """Return the metadata with a base64 ``authorization`` entry appended."""
    value = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return [*metadata, ("authorization", value)]


def create_authentication_interceptor(username: str, password: str):
    """Create an interceptor that adds credentials to every call."""

    def interceptor(method: str, request: Any, invoker: Invoker, *, metadata: Metadata = ()):
        return invoker(method, request, authentication_metadata(metadata, username, password))

    return interceptor


def get_result_status(reply: Any) -> Any:
    """Return the status carried by a reply, the reply itself if it is a status, or None."""
    if reply is None:
        return None
    if hasattr(reply, "error_code"):
        return reply
    status = getattr(reply, "status", None)
    if status is not None and hasattr(status, "error_code"):
        return status
    return None


def wait_retry_backoff(attempt: int, backoff: BackoffFunc, deadline: float | None = None) -> float:
    """Sleep before a retry attempt and return the time waited, in seconds.

    ``deadline`` is a ``time.monotonic()`` instant; TimeoutError is raised if
    the wait would pass it.
    """
    wait = backoff(attempt) if attempt > 0 else 0.0
    if wait > 0:
        wait = min(wait, MAX_BACKOFF)
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining < wait:
                if remaining > 0:
                    time.sleep(remaining)
                raise TimeoutError("deadline exceeded")
        time.sleep(wait)
    return wait


def _is_rate_limited(reply: Any) -> bool:
    status = get_result_status(reply)
    if status is None:
        return False
    try:
        return int(status.error_code) == RATE_LIMIT_ERROR_CODE
    except (TypeError, ValueError):
        return False


def retry_on_rate_limit_interceptor(max_retry: int, backoff: BackoffFunc):
    """Create an interceptor that repeats calls answered with a rate-limit status."""

    def interceptor(
        method: str,
        request: Any,
        invoker: Invoker,
        *,
        metadata: Metadata = (),
        deadline: float | None = None,
        retry_on_rate_limit: bool = True,
    ):
        if max_retry == 0:
            return invoker(method, request, metadata)
        reply = None
        for attempt in range(max_retry):
            wait_retry_backoff(attempt, backoff, deadline)
            reply = invoker(method, request, metadata)
            if retry_on_rate_limit and _is_rate_limited(reply):
                continue
            return reply
        return reply

    return interceptor