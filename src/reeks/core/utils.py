import inspect
from collections.abc import AsyncIterator, Iterator
from typing import Any, Callable, Union

from typeguard import TypeCheckError, check_type

from .errors import InvalidTypeError, NumberOverflowError, NumberUnderflowError
from .log import get_logger

logger = get_logger("reeks.utils")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Marks an omitted seed or default, since None is a valid value for both.
MISSING: Any = _Missing()

Number = Union[int, float]


def positional_arity(func: Callable[..., Any]) -> int:
    """
    Counts the leading arguments a callback is handed.

    Only positional parameters without a default count, so `sum` or `round`
    never receive the index as `start` or `ndigits`. A callable whose
    positional parameters are all optional, or that only takes `*args`
    (`print`), receives the item alone. If no signature can be read (some
    builtins), one argument is assumed.
    """
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError):
        return 1

    required = 0
    accepts_positional = False
    for param in sig.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            accepts_positional = True
        elif param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            accepts_positional = True
            if param.default is param.empty:
                required += 1
    if required == 0 and accepts_positional:
        return 1
    return required


class Callback:
    """
    A user-supplied function together with the number of leading arguments
    it accepts. Operators always pass the full argument list, e.g.
    `(item, index, collection)`, and a callback written as `lambda x: ...`
    receives only the first one.
    """

    __slots__ = ("func", "arity")

    def __init__(self, func: Callable[..., Any]):
        if isinstance(func, Callback):
            func = func.func
        if not callable(func):
            raise TypeError(f"Expected a callable, got {type(func).__name__}")
        self.func = func
        self.arity = positional_arity(func)

    def __call__(self, *args: Any) -> Any:
        return self.func(*args[: self.arity])

    def __repr__(self) -> str:
        name = getattr(self.func, "__name__", repr(self.func))
        return f"{type(self).__name__}({name})"


class Predicate(Callback):
    """`(item, index, collection) -> bool`"""


class Mapper(Callback):
    """`(item, index, collection) -> value`"""


class Reducer(Callback):
    """`(accumulator, item, index, collection) -> accumulator`"""


class Modifier(Callback):
    """`(collection) -> value`, used by `when`, `pipe` and `tap`."""


def match_all(*_: Any) -> bool:
    return True


def identity(item: Any, *_: Any) -> Any:
    return item


async def resolve(value: Any) -> Any:
    """Awaits `value` if it is awaitable, so async stages accept plain callbacks."""
    if inspect.isawaitable(value):
        return await value
    return value


def resolve_default(default: Any) -> Any:
    """Calls a lazy default; plain values are returned as is."""
    if callable(default):
        return default()
    return default


def is_nested_sequence(value: Any, asynchronous: bool = False) -> bool:
    """
    Tells whether `collapse` should flatten `value`. Strings, bytes and
    mappings are iterable but are treated as single items. Async iterables
    only count when flattening from async code.
    """
    if isinstance(value, (str, bytes, bytearray, dict)):
        return False
    return hasattr(value, "__iter__") or (asynchronous and hasattr(value, "__aiter__"))


def is_single_use(data: Any) -> bool:
    return isinstance(data, (Iterator, AsyncIterator))


def is_repeatable(data: Any) -> bool:
    """Collections report their own flag; other iterables are judged by type."""
    return bool(getattr(data, "repeatable", not is_single_use(data)))


def _ensure_type(item: Any, expected: Any, name: str) -> Any:
    if isinstance(item, bool):
        raise InvalidTypeError(f"Item type is invalid must be {name}")
    try:
        check_type(item, expected)
    except TypeCheckError as e:
        raise InvalidTypeError(f"Item type is invalid must be {name}", e) from e
    return item


def ensure_number(item: Any) -> Number:
    return _ensure_type(item, Number, "number")


def ensure_bigint(item: Any) -> int:
    if isinstance(item, float):
        raise InvalidTypeError("Item type is invalid must be bigint")
    return _ensure_type(item, int, "bigint")


def ensure_string(item: Any) -> str:
    return _ensure_type(item, str, "string")


def check_index(index: int, settings: Any, what: str = "Index") -> None:
    """Raises `NumberOverflowError` when a guarded counter reaches its limit."""
    if settings.throw_on_number_limit and index >= settings.index_limit:
        logger.warning("number_limit_reached", counter=what, limit=settings.index_limit)
        raise NumberOverflowError(f"{what} has overflowed")


def add_guarded(total: Number, item: Number, settings: Any, what: str = "Sum") -> Number:
    """
    Adds `item` to `total`, checking the configured magnitude limit first
    when the guard is enabled.
    """
    if settings.throw_on_number_limit:
        limit = settings.number_limit
        if total >= 0 and limit - total < item:
            logger.warning("number_limit_reached", counter=what, limit=limit)
            raise NumberOverflowError(f"{what} has overflowed")
        if total < 0 and -limit - total > item:
            logger.warning("number_limit_reached", counter=what, limit=-limit)
            raise NumberUnderflowError(f"{what} has underflowed")
    return total + item


def truncated_div(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(dividend) // abs(divisor)
    if (dividend < 0) != (divisor < 0):
        return -quotient
    return quotient
