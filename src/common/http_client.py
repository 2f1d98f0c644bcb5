"""Registry HTTP access with timeouts, retries and DEBUG traces.

``RegistryFetcher`` is the capability the version resolver depends on. Tests
substitute any object with an async ``fetch_json(uri)`` method.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from common.errors import RegistryError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from constants import Constants

logger = logging.getLogger(__name__)


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = Constants.REQUEST_TIMEOUT,
    retries: int = Constants.HTTP_RETRY_MAX,
    base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
    session: Optional[requests.Session] = None,
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries on transient failures.

    Timeouts, connection errors and 5xx responses are retried with exponential
    backoff. Returns ``(status_code, headers, text)``; status 0 means every
    attempt failed before a response arrived.
    """
    safe_target = safe_url(url)
    getter = session.get if session is not None else requests.get
    last_exception = None
    last_response: Optional[Tuple[int, Dict[str, str], str]] = None

    for attempt in range(retries):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )
                response = getter(url, timeout=timeout, headers=headers)
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug(
                    "HTTP timeout",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="timeout",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug(
                    "HTTP request exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
            else:
                result = (response.status_code, dict(response.headers), response.text)
                if response.status_code < 500:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "HTTP response ok",
                            extra=extra_context(
                                event="http_response",
                                component="http_client",
                                action="GET",
                                outcome="success",
                                status_code=response.status_code,
                                duration_ms=t.duration_ms(),
                                target=safe_target
                            )
                        )
                    return result
                last_response = result
                last_exception = f"HTTP {response.status_code}"

        if attempt + 1 < retries:
            time.sleep(base_delay * (2 ** attempt))

    logger.warning("GET %s failed after %d attempts: %s", safe_target, retries, last_exception)
    if last_response is not None:
        return last_response
    return 0, {}, f"Request failed after {retries} attempts: {last_exception}"


def get_json(url: str, **kwargs: Any) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse the JSON body, whatever the status.

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, **kwargs)
    if status_code == 0 or not text:
        return status_code, response_headers, None
    try:
        return status_code, response_headers, json.loads(text)
    except json.JSONDecodeError:
        logger.debug(
            "JSON decode error",
            extra=extra_context(
                event="parse",
                component="http_client",
                action="get_json",
                outcome="json_decode_error",
                status_code=status_code,
                target=safe_url(url)
            )
        )
        return status_code, response_headers, None


class RegistryFetcher:
    """Fetches registry documents as JSON, retrying transient failures."""

    def __init__(
        self,
        timeout: float = Constants.REQUEST_TIMEOUT,
        retries: int = Constants.HTTP_RETRY_MAX,
        base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC,
    ):
        self._timeout = timeout
        self._retries = retries
        self._base_delay = base_delay
        self._headers = {"Accept": "application/json"}

    @classmethod
    def from_config(cls, config: Any) -> "RegistryFetcher":
        return cls(
            timeout=config.request_timeout,
            retries=config.retry_max,
            base_delay=config.retry_base_delay,
        )

    def fetch(self, uri: str) -> Any:
        """GET ``uri`` and return its JSON body.

        Not-found responses keep their body (npm answers ``{"error": "Not found"}``),
        an unparsable or empty body becomes ``{}``. Connection failures and
        persistent 5xx raise :class:`RegistryError`.
        """
        status, _, data = get_json(
            uri,
            headers=self._headers,
            timeout=self._timeout,
            retries=self._retries,
            base_delay=self._base_delay,
        )
        if status == 0:
            raise RegistryError(f"Could not reach registry at {safe_url(uri)}")
        if status >= 500:
            raise RegistryError(f"Registry returned HTTP {status} for {safe_url(uri)}")
        if data is None:
            logger.warning("Couldn't decode JSON from %s, treating as empty.", safe_url(uri))
            return {}
        return data

    async def fetch_json(self, uri: str) -> Any:
        """Async form of :meth:`fetch`; the blocking request runs in a worker thread."""
        return await asyncio.to_thread(self.fetch, uri)
