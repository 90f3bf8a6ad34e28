"""
Retry helper

Small async retry-with-backoff combinator. It knows nothing about permissions;
callers decide which exceptions are worth another attempt.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 8.0,
    backoff_factor: float = 2.0,
    jitter: bool = False,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    operation_name: Optional[str] = None,
) -> T:
    """
    Await ``operation()`` until it succeeds or ``max_attempts`` is exhausted.

    The delay starts at ``initial_delay`` and is multiplied by ``backoff_factor``
    after every failed attempt, capped at ``max_delay``. With ``jitter`` the
    sleep is drawn uniformly from ``[0, delay]``.

    Only exceptions matching ``retry_on`` (and accepted by ``retry_if``, when
    given) are retried; anything else and the last failure are re-raised
    unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    name = operation_name or getattr(operation, "__name__", "operation")
    delay = initial_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if retry_if is not None and not retry_if(e):
                logger.warning(f"{name} failed with a non-retryable error: {e}")
                raise
            if attempt >= max_attempts:
                logger.error(f"{name} failed after {max_attempts} attempts: {e}")
                raise

            wait_time = random.uniform(0, delay) if jitter else delay
            logger.warning(
                f"{name} failed (attempt {attempt}/{max_attempts}): {e}. "
                f"Retrying in {wait_time:.2f}s"
            )
            await asyncio.sleep(wait_time)
            delay = min(delay * backoff_factor, max_delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{name} exhausted retries without a result")
