"""
Bounded retry for read paths that hit transient database failures.

Write paths must not use this: retrying a booking insert without
re-validating availability could create duplicate bookings.
"""

import functools
import logging
import time
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from core.config import STORE_READ_RETRIES, STORE_RETRY_BACKOFF_SECONDS
from core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _rollback_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
    db = kwargs.get("db") or (args[0] if args else None)
    if isinstance(db, Session):
        db.rollback()


def retry_on_transient_store_error(max_retries: int = STORE_READ_RETRIES, base_delay: float = STORE_RETRY_BACKOFF_SECONDS) -> Callable[[F], F]:
    """
    Decorator retrying a read operation on connection loss or timeout.

    ``OperationalError`` and ``TransientStoreError`` are retried with
    exponential backoff. When retries are exhausted the failure surfaces as
    ``TransientStoreError`` so the HTTP layer can answer with a retryable 503.

    Args:
        max_retries: Maximum number of retry attempts after the first call
        base_delay: Base delay in seconds (exponential backoff)
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (OperationalError, TransientStoreError) as e:
                    _rollback_session(args, kwargs)
                    if attempt >= max_retries:
                        logger.error(f"Store unavailable in {func.__name__} after {attempt + 1} attempts: {e}")
                        raise TransientStoreError(
                            "El servicio no está disponible momentáneamente. Intentá de nuevo en unos segundos."
                        ) from e
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Transient store error in {func.__name__} (attempt {attempt + 1}/{max_retries + 1}), "
                        f"retrying in {delay:.2f} seconds: {e}"
                    )
                    time.sleep(delay)
            raise AssertionError("unreachable")
        return wrapper  # type: ignore
    return decorator
