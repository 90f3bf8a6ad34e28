"""
GitHub API call wrapper

Single place where HTTP error statuses are mapped onto authorization policy.
Every permission lookup goes through ``execute_api_call`` so the fail-closed
rules are applied the same way everywhere:

- 403 / 404: the caller cannot confirm the permission. Either a handler
  supplied by the caller decides, or the call yields ``False``.
- 429 (or a 403 that GitHub marks as rate limiting): always raised.
- Anything else: raised with the operation name attached.

403 and 404 are deliberately treated the same; telling them apart would reveal
whether a private repository exists.
"""

import logging
from typing import Any, Awaitable, Callable, Literal, Optional, TypeVar, Union

import httpx

from authgate.core.constants import (
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)
from authgate.core.exceptions import ApiCallError, GitHubAPIError, RateLimitedError
from authgate.core.metrics import external_api_rate_limit_hits_total

logger = logging.getLogger(__name__)

T = TypeVar("T")

ApiResult = Union[T, Literal[False]]
ErrorHandler = Callable[[Exception], Any]


def _status_of(error: Exception) -> Optional[int]:
    if isinstance(error, GitHubAPIError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return getattr(error, "status_code", None)


def _headers_of(error: Exception) -> dict:
    if isinstance(error, GitHubAPIError):
        return error.headers
    if isinstance(error, httpx.HTTPStatusError):
        return {k.lower(): v for k, v in error.response.headers.items()}
    return {}


def _message_of(error: Exception) -> str:
    if isinstance(error, GitHubAPIError):
        return error.message
    return str(error) or error.__class__.__name__


def is_rate_limited(error: Exception) -> bool:
    """True when the error is GitHub's primary or secondary rate limit response."""
    status = _status_of(error)
    if status == HTTP_STATUS_TOO_MANY_REQUESTS:
        return True
    if status == HTTP_STATUS_FORBIDDEN:
        headers = _headers_of(error)
        if headers.get("x-ratelimit-remaining") == "0":
            return True
        if "retry-after" in headers:
            return True
    return False


async def execute_api_call(
    operation: Callable[[], Awaitable[T]],
    operation_name: str,
    on_access_denied: Optional[ErrorHandler] = None,
    on_not_found: Optional[ErrorHandler] = None,
) -> ApiResult:
    """
    Execute a GitHub API call with standardized error handling.

    Args:
        operation: Zero-argument coroutine factory performing the call
        operation_name: Human-readable name used in logs and error messages
        on_access_denied: Optional handler for 403 responses
        on_not_found: Optional handler for 404 responses

    Returns:
        The operation result, or ``False`` when access was denied / not found
        and no handler overrode that outcome.

    Raises:
        RateLimitedError: GitHub rate limited the call
        ApiCallError: Any other failure (status, transport, timeout)
    """
    try:
        return await operation()
    except Exception as e:
        status = _status_of(e)
        message = _message_of(e)

        if is_rate_limited(e):
            external_api_rate_limit_hits_total.labels(service="GitHub API").inc()
            msg = f"Rate limited: {message}"
            logger.error(msg)
            raise RateLimitedError(msg, status_code=status) from e

        if status in (HTTP_STATUS_FORBIDDEN, HTTP_STATUS_NOT_FOUND):
            handler = on_access_denied if status == HTTP_STATUS_FORBIDDEN else on_not_found
            if handler is not None:
                return handler(e)
            logger.warning(f"{operation_name} failed ({status}): {message}")
            return False

        msg = f"Failed to {operation_name}: {message}"
        logger.error(msg)
        raise ApiCallError(msg, status_code=status) from e
