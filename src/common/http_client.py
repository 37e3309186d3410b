"""Shared async HTTP helper used by the registry client.

Encapsulates request/timeout error handling so callers receive a plain
``(status, headers, text)`` tuple instead of aiohttp exceptions. Retries are
not performed here; the resolver retries whole lookup rounds instead.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


async def async_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> Tuple[int, Dict[str, str], str]:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        headers: Optional request headers.
        timeout: Total request timeout in seconds; defaults to
            ``Constants.REQUEST_TIMEOUT``.
        session: Optional shared session. When omitted a short-lived session
            is opened for this request only.

    Returns:
        Tuple of (status_code, headers_dict, body_text). Transport failures
        are reported as status 0 with the error description as body.
    """
    safe_target = safe_url(url)
    client_timeout = aiohttp.ClientTimeout(
        total=timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    )

    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                ),
            )
        try:
            if session is not None:
                status, response_headers, text = await _fetch(session, url, headers, client_timeout)
            else:
                async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
                    status, response_headers, text = await _fetch(
                        own_session, url, headers, client_timeout
                    )
        except asyncio.TimeoutError:
            logger.warning(
                "HTTP timeout",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="timeout",
                    target=safe_target,
                ),
            )
            return 0, {}, f"Request timed out after {client_timeout.total} seconds"
        except aiohttp.ClientError as exc:
            logger.warning(
                "HTTP request exception",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="request_exception",
                    target=safe_target,
                ),
            )
            return 0, {}, f"Request failed: {exc}"

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        return status, response_headers, text


async def _fetch(
    session: aiohttp.ClientSession,
    url: str,
    headers: Optional[Dict[str, str]],
    timeout: aiohttp.ClientTimeout,
) -> Tuple[int, Dict[str, str], str]:
    async with session.get(url, headers=headers, timeout=timeout) as response:
        text = await response.text(errors="replace")
        return response.status, dict(response.headers), text
