"""
Sources are the roots of every pipeline. They wrap the original data without
copying it and state whether it can be traversed more than once.
"""
from __future__ import annotations

import inspect
from contextlib import aclosing
from typing import Any, AsyncIterator, Generic, Iterator, TypeVar

from .errors import InvalidTypeError
from .utils import is_single_use

T = TypeVar("T")


def _describe(data: Any) -> str:
    return type(data).__name__


class Source(Generic[T]):
    """
    The root of a synchronous pipeline.

    A source is one of three kinds:

    - ``iterable``: a re-iterable object such as a list, tuple or range.
      Repeatable.
    - ``factory``: a zero-argument callable, typically a generator function,
      called once per traversal. Repeatable.
    - ``iterator``: a generator object or any other iterator. Single-use; a
      second traversal yields whatever the first one left behind.

    Attributes:
        kind: One of 'iterable', 'factory' or 'iterator'.
        repeatable: Whether every traversal starts from the beginning.
    """

    def __init__(self, data: Any):
        if isinstance(data, Source):
            self._data = data._data
            self.kind = data.kind
            self.repeatable = data.repeatable
            return

        self._data = data
        if hasattr(data, "__iter__"):
            if is_single_use(data):
                self.kind = "iterator"
                self.repeatable = False
            else:
                self.kind = "iterable"
                # Another collection may itself sit on a single-use source.
                self.repeatable = bool(getattr(data, "repeatable", True))
        elif callable(data):
            self.kind = "factory"
            self.repeatable = True
        else:
            raise InvalidTypeError(f"Cannot create a source from '{_describe(data)}'")

    def __iter__(self) -> Iterator[T]:
        if self.kind == "factory":
            return iter(self._data())
        return iter(self._data)

    def __repr__(self) -> str:
        return f"Source(kind='{self.kind}', data={_describe(self._data)})"


class AsyncSource(Generic[T]):
    """
    The root of an asynchronous pipeline.

    Accepts async iterables, async generator objects, plain iterables and
    factories returning any of those (or an awaitable of one). The same
    three kinds and the same `repeatable` contract as `Source` apply, except
    that a single-use async generator is closed when a traversal stops early.
    """

    def __init__(self, data: Any):
        if isinstance(data, (AsyncSource, Source)):
            self._data = data._data
            self.kind = data.kind
            self.repeatable = data.repeatable
            return

        self._data = data
        if hasattr(data, "__aiter__") or hasattr(data, "__iter__"):
            if is_single_use(data):
                self.kind = "iterator"
                self.repeatable = False
            else:
                self.kind = "iterable"
                self.repeatable = bool(getattr(data, "repeatable", True))
        elif callable(data):
            self.kind = "factory"
            self.repeatable = True
        else:
            raise InvalidTypeError(f"Cannot create an async source from '{_describe(data)}'")

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        data = self._data
        if self.kind == "factory":
            data = data()
            if inspect.isawaitable(data):
                data = await data

        async with aclosing(iterate_any(data)) as items:
            async for item in items:
                yield item

    def __repr__(self) -> str:
        return f"AsyncSource(kind='{self.kind}', data={_describe(self._data)})"


async def iterate_any(data: Any) -> AsyncIterator[Any]:
    """
    Iterates a sync or async iterable from async code. An async iterator that
    supports `aclose` is closed when the caller stops early.
    """
    if not hasattr(data, "__aiter__"):
        for item in data:
            yield item
        return

    iterator = data.__aiter__()
    try:
        async for item in iterator:
            yield item
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
