"""Retry helper for transient data-source failures."""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from matchcore.config import settings
from matchcore.utils.errors import AuthError, NotFoundError, ValidationError, handle_error
from matchcore.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Not transient: repeating the call cannot change the outcome.
NON_RETRYABLE_ERRORS = (AuthError, ValidationError, NotFoundError)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
) -> T:
    """
    Run an async operation, retrying transient failures with exponential backoff.

    The operation is attempted once plus up to ``max_retries`` more times,
    sleeping ``delay * 2**attempt`` seconds between attempts. It must be safe
    to repeat.

    Args:
        operation (Callable[[], Awaitable[T]]): Zero-argument coroutine factory.
        max_retries (Optional[int]): Retries after the first attempt. Defaults to ``settings.RETRY_MAX_ATTEMPTS``.
        delay (Optional[float]): Base delay in seconds. Defaults to ``settings.RETRY_BASE_DELAY``.

    Returns:
        T: The operation's result.

    Raises:
        MatchCoreError: The last failure, normalized by ``handle_error``.
    """
    retries = settings.RETRY_MAX_ATTEMPTS if max_retries is None else max_retries
    base_delay = settings.RETRY_BASE_DELAY if delay is None else delay

    attempt = 0
    while True:
        try:
            return await operation()
        except NON_RETRYABLE_ERRORS:
            raise
        except Exception as e:
            if attempt >= retries:
                logger.warning("Retries exhausted", attempts=attempt + 1, error=str(e))
                normalized = handle_error(e)
                if normalized is e:
                    raise
                raise normalized from e

            wait = base_delay * (2**attempt)
            logger.info("Retrying after transient failure", attempt=attempt + 1, wait=wait, error=str(e))
            await asyncio.sleep(wait)
            attempt += 1
