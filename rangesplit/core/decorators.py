import asyncio
import logging
from functools import wraps
from typing import Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)


def async_retry(max_retries: int = 3, delay: float = 1.0,
                retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                retry_if: Optional[Callable[[BaseException], bool]] = None):
    """Decorator for async retry logic with exponential backoff.

    Only exceptions listed in ``retry_on`` are retried, and of those only
    the ones ``retry_if`` accepts when it is given; anything else,
    including cancellation, propagates immediately.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if retry_if is not None and not retry_if(e):
                        raise
                    last_exception = e
                    if attempt < max_retries - 1:
                        logger.debug(f"{func.__qualname__} failed (attempt {attempt + 1}/{max_retries}): {e}")
                        await asyncio.sleep(delay * (2 ** attempt))  # Exponential backoff
                    continue
            raise last_exception
        return wrapper
    return decorator
