import asyncio
import functools
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core import config
from core.exceptions import StoreUnavailableError

T = TypeVar("T")

TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


def is_transient(error: BaseException) -> bool:
    return isinstance(error, TRANSIENT_ERRORS)


def with_store_retry(
    func: Optional[Callable[..., Awaitable[T]]] = None,
    *,
    max_retries: Optional[int] = None,
    delay_seconds: Optional[float] = None,
):
    """
    Wrap an async store call with a bounded retry on transient errors.

    Attempt ``n`` waits ``delay_seconds * (n - 1)`` before running. Errors that
    are not transient propagate on the first failure; once the attempts are
    exhausted a StoreUnavailableError is raised.

    Usable bare (``@with_store_retry``) or with overrides
    (``@with_store_retry(max_retries=1)``).
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = max_retries if max_retries is not None else config.STORE_MAX_RETRIES
            delay = delay_seconds if delay_seconds is not None else config.STORE_RETRY_DELAY_SECONDS
            retries = max(1, retries)

            last_error: Optional[BaseException] = None
            for attempt in range(1, retries + 1):
                if attempt > 1:
                    await asyncio.sleep(delay * (attempt - 1))
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    if not is_transient(e):
                        raise
                    last_error = e
                    # A failed flush leaves the session unusable until rolled back
                    for arg in args:
                        if isinstance(arg, AsyncSession):
                            await arg.rollback()
                    logger.warning(
                        f"Store operation {fn.__name__} failed "
                        f"(attempt {attempt}/{retries}): {e}"
                    )

            logger.error(f"Store operation {fn.__name__} gave up after {retries} attempts")
            raise StoreUnavailableError(fn.__name__, last_error)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
