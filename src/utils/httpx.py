"""Shared HTTP client helpers for the upstream JSON APIs."""

import logging
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.utils.config import HTTP_TIMEOUT_SECONDS, HTTP_USER_AGENT
from src.utils.logger import httpx_logger

# Disable verbose httpx logging to prevent spam
logging.getLogger("httpx").setLevel(logging.WARNING)

DEFAULT_HEADERS = {
    "User-Agent": HTTP_USER_AGENT,
    "Accept": "application/json",
}


def create_http_client(**kwargs) -> httpx.AsyncClient:
    """Build the process-wide client. The caller owns it and must close it."""
    limits = httpx.Limits(
        max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0
    )
    kwargs.setdefault("headers", DEFAULT_HEADERS)
    kwargs.setdefault("timeout", httpx.Timeout(HTTP_TIMEOUT_SECONDS))
    kwargs.setdefault("limits", limits)
    kwargs.setdefault("follow_redirects", True)
    return httpx.AsyncClient(**kwargs)


def _is_retryable(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are retried; 4xx responses are final."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def _log_retry(retry_state):
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    httpx_logger.warning(
        f"⚠️ Retrying upstream request (attempt {retry_state.attempt_number}): {exc}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(min=0.5, max=4),
    retry=retry_if_exception(_is_retryable),
    before_sleep=_log_retry,
    reraise=True,
)
async def fetch_json(
    client: httpx.AsyncClient, url: str, params: Optional[dict] = None
) -> Any:
    """GET a URL and decode its JSON body, raising httpx errors on failure."""
    response = await client.get(url, params=params)
    response.raise_for_status()
    return response.json()
