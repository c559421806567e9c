"""
Positional stages: take, skip and their predicate-driven variants, plus
insert_before and insert_after.

The `*_while` operators are the `*_until` stages with the predicate's answer
negated (`negate=True`), so no wrapping closure is needed.
"""
from __future__ import annotations

from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Iterable, Iterator

from ..core.source import iterate_any
from ..core.stage import AsyncStage, Stage
from ..core.utils import Predicate, resolve


class TakeStage(Stage):
    """
    Yields the first `limit` items. A negative limit is relative to the end
    (`size + limit`), which needs the upstream's size first.
    """

    name = "take"

    def __init__(self, collection, limit: int):
        super().__init__(collection)
        self.limit = limit

    def _iterate(self) -> Iterator[Any]:
        items: Iterable[Any] = self.collection
        limit = self.limit
        if limit < 0:
            items, size = self.sized_upstream()
            limit = size + limit
        if limit <= 0:
            return
        for index, item in self.indexed(items):
            yield item
            if index + 1 >= limit:
                return


class TakeUntilStage(Stage):
    """Yields items up to, and excluding, the first match."""

    name = "take_until"

    def __init__(self, collection, predicate: Callable[..., Any], negate: bool = False):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.negate = negate

    def _iterate(self) -> Iterator[Any]:
        for index, item in self.indexed():
            if bool(self.predicate(item, index, self.collection)) != self.negate:
                return
            yield item


class SkipStage(Stage):
    """Skips the first `offset` items; a negative offset keeps the last ones."""

    name = "skip"

    def __init__(self, collection, offset: int):
        super().__init__(collection)
        self.offset = offset

    def _iterate(self) -> Iterator[Any]:
        items: Iterable[Any] = self.collection
        offset = self.offset
        if offset < 0:
            items, size = self.sized_upstream()
            offset = size + offset
        for index, item in self.indexed(items):
            if index >= offset:
                yield item


class SkipUntilStage(Stage):
    """Yields items starting at, and including, the first match."""

    name = "skip_until"

    def __init__(self, collection, predicate: Callable[..., Any], negate: bool = False):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.negate = negate

    def _iterate(self) -> Iterator[Any]:
        matched = False
        for index, item in self.indexed():
            if not matched:
                matched = bool(self.predicate(item, index, self.collection)) != self.negate
            if matched:
                yield item


class InsertBeforeStage(Stage):
    """Splices `items` right before the first match. No match, no insertion."""

    name = "insert_before"

    def __init__(self, collection, predicate: Callable[..., Any], items: Iterable[Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.items = items

    def _iterate(self) -> Iterator[Any]:
        matched = False
        for index, item in self.indexed():
            if not matched and self.predicate(item, index, self.collection):
                yield from self.items
                matched = True
            yield item


class InsertAfterStage(Stage):
    """Splices `items` right after the first match. No match, no insertion."""

    name = "insert_after"

    def __init__(self, collection, predicate: Callable[..., Any], items: Iterable[Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.items = items

    def _iterate(self) -> Iterator[Any]:
        matched = False
        for index, item in self.indexed():
            yield item
            if not matched and self.predicate(item, index, self.collection):
                yield from self.items
                matched = True


class AsyncTakeStage(AsyncStage):
    name = "take"

    def __init__(self, collection, limit: int):
        super().__init__(collection)
        self.limit = limit

    async def _iterate(self) -> AsyncIterator[Any]:
        items: Any = self.collection
        limit = self.limit
        if limit < 0:
            items, size = await self.sized_upstream()
            limit = size + limit
        if limit <= 0:
            return
        async with aclosing(self.indexed(items)) as indexed:
            async for index, item in indexed:
                yield item
                if index + 1 >= limit:
                    return


class AsyncTakeUntilStage(AsyncStage):
    name = "take_until"

    def __init__(self, collection, predicate: Callable[..., Any], negate: bool = False):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.negate = negate

    async def _iterate(self) -> AsyncIterator[Any]:
        async with aclosing(self.indexed()) as indexed:
            async for index, item in indexed:
                matched = await resolve(self.predicate(item, index, self.collection))
                if bool(matched) != self.negate:
                    return
                yield item


class AsyncSkipStage(AsyncStage):
    name = "skip"

    def __init__(self, collection, offset: int):
        super().__init__(collection)
        self.offset = offset

    async def _iterate(self) -> AsyncIterator[Any]:
        items: Any = self.collection
        offset = self.offset
        if offset < 0:
            items, size = await self.sized_upstream()
            offset = size + offset
        async for index, item in self.indexed(items):
            if index >= offset:
                yield item


class AsyncSkipUntilStage(AsyncStage):
    name = "skip_until"

    def __init__(self, collection, predicate: Callable[..., Any], negate: bool = False):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.negate = negate

    async def _iterate(self) -> AsyncIterator[Any]:
        matched = False
        async for index, item in self.indexed():
            if not matched:
                answer = await resolve(self.predicate(item, index, self.collection))
                matched = bool(answer) != self.negate
            if matched:
                yield item


class AsyncInsertBeforeStage(AsyncStage):
    name = "insert_before"

    def __init__(self, collection, predicate: Callable[..., Any], items: Any):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.items = items

    async def _iterate(self) -> AsyncIterator[Any]:
        matched = False
        async for index, item in self.indexed():
            if not matched and await resolve(self.predicate(item, index, self.collection)):
                async for inserted in iterate_any(self.items):
                    yield inserted
                matched = True
            yield item


class AsyncInsertAfterStage(AsyncStage):
    name = "insert_after"

    def __init__(self, collection, predicate: Callable[..., Any], items: Any):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.items = items

    async def _iterate(self) -> AsyncIterator[Any]:
        matched = False
        async for index, item in self.indexed():
            yield item
            if not matched and await resolve(self.predicate(item, index, self.collection)):
                async for inserted in iterate_any(self.items):
                    yield inserted
                matched = True
