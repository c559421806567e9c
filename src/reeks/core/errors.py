from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from .log import get_logger

F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger("reeks.errors")


class CollectionError(Exception):
    """Base class for all exceptions raised by the reeks library.

    Catching this type is guaranteed to catch everything a collection
    operation can raise, except `NotImplementedError` from `sliding`.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class UnexpectedCollectionError(CollectionError):
    """Wraps any exception that is not one of the library's own errors."""

    pass


class NumberOverflowError(UnexpectedCollectionError):
    """Raised when a guarded counter or sum would exceed the configured limit."""

    pass


class NumberUnderflowError(UnexpectedCollectionError):
    """Raised when a guarded sum would fall below the negative limit."""

    pass


class ItemNotFoundError(CollectionError):
    """Raised when a required match was absent."""

    pass


class MultipleItemsFoundError(CollectionError):
    """Raised when exactly one match was required but more were found."""

    pass


class InvalidTypeError(CollectionError):
    """Raised when an item fails the runtime type check of an operation."""

    pass


def wrap_error(error: Exception) -> CollectionError:
    """
    Returns `error` unchanged if it is a library error, otherwise an
    `UnexpectedCollectionError` carrying it as cause.
    """
    if isinstance(error, CollectionError):
        return error
    logger.warning("item_error", error=str(error), error_type=type(error).__name__)
    return UnexpectedCollectionError(f'Unexpected error "{error}" occurred', error)


def translate_errors(func: F) -> F:
    """
    Decorator that applies the library's error boundary to a terminal
    operation. Works for both plain functions and coroutine functions.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except CollectionError:
                raise
            except Exception as e:
                raise wrap_error(e) from e

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except CollectionError:
            raise
        except Exception as e:
            raise wrap_error(e) from e

    return wrapper  # type: ignore[return-value]
