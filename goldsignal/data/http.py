"""Shared async HTTP helper with exponential-backoff retry."""

import asyncio
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger("goldsignal")

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


async def request_with_retry(
    method: str,
    url: str,
    *,
    headers: Optional[dict[str, str]] = None,
    params: Optional[dict[str, Any]] = None,
    json: Optional[dict[str, Any]] = None,
    timeout: float = 8.0,
    max_retries: int = 3,
    base_delay: float = 0.5,
) -> httpx.Response:
    """Execute an HTTP request with exponential-backoff retry.

    Retries on transient statuses (408, 429, 500, 502, 503, 504) and
    transport errors.  Non-retryable error statuses are raised
    immediately as ``httpx.HTTPStatusError``.

    Args:
        method: ``"get"`` or ``"post"``.
        url: Absolute URL.
        headers: Request headers.
        params: Query parameters (GET).
        json: JSON body (POST).
        timeout: Per-attempt timeout in seconds.
        max_retries: Total number of attempts.
        base_delay: First backoff delay in seconds; doubles each attempt.

    Raises:
        httpx.HTTPError: After the last attempt fails.
    """
    last_exc: Optional[Exception] = None
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            async with httpx.AsyncClient() as client:
                if method == "post":
                    resp = await client.post(
                        url, headers=headers, json=json, timeout=timeout,
                    )
                else:
                    resp = await client.get(
                        url, headers=headers, params=params, timeout=timeout,
                    )

            if resp.status_code in RETRYABLE_STATUS_CODES:
                last_exc = httpx.HTTPStatusError(
                    f"Server error '{resp.status_code}'",
                    request=resp.request,
                    response=resp,
                )
                if attempt + 1 < attempts:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        "%s %s returned %d — retry %d/%d in %.1fs",
                        method.upper(), url, resp.status_code,
                        attempt + 1, attempts, delay,
                    )
                    await asyncio.sleep(delay)
                continue

            resp.raise_for_status()
            return resp

        except httpx.TransportError as exc:
            last_exc = exc
            if attempt + 1 < attempts:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    "%s %s transport error (%s) — retry %d/%d in %.1fs",
                    method.upper(), url, exc,
                    attempt + 1, attempts, delay,
                )
                await asyncio.sleep(delay)

    raise last_exc  # type: ignore[misc]
