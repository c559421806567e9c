"""
Structural stages: merging (prepend/append), zip, sort, reverse, the
conditional `when` family and tap.
"""
from __future__ import annotations

import functools
from typing import Any, AsyncIterator, Callable, Iterable, Iterator, List, Optional, Union

from ..core.source import iterate_any
from ..core.stage import AsyncStage, Stage
from ..core.utils import Modifier, is_repeatable, resolve


def _sort_key(comparator: Optional[Callable[[Any, Any], Any]], key: Optional[Callable[[Any], Any]]):
    if comparator is not None:
        return functools.cmp_to_key(comparator)
    return key


class MergeStage(Stage):
    """Yields everything from `first`, then everything from `second`."""

    name = "merge"

    def __init__(self, collection, first: Iterable[Any], second: Iterable[Any]):
        super().__init__(collection)
        self.first = first
        self.second = second

    @property
    def repeatable(self) -> bool:
        return is_repeatable(self.first) and is_repeatable(self.second)

    def _iterate(self) -> Iterator[Any]:
        yield from self.first
        yield from self.second


class ZipStage(Stage):
    """Pairs items positionally and stops with the shorter side."""

    name = "zip"

    def __init__(self, collection, other: Iterable[Any]):
        super().__init__(collection)
        self.other = other

    @property
    def repeatable(self) -> bool:
        return self.collection.repeatable and is_repeatable(self.other)

    def _iterate(self) -> Iterator[Any]:
        yield from zip(self.collection, self.other)


class SortStage(Stage):
    """Materializes the upstream, then yields it sorted."""

    name = "sort"

    def __init__(
        self,
        collection,
        comparator: Optional[Callable[[Any, Any], Any]] = None,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ):
        super().__init__(collection)
        self.key = _sort_key(comparator, key)
        self.reverse = reverse

    def _iterate(self) -> Iterator[Any]:
        yield from sorted(self.collection, key=self.key, reverse=self.reverse)


class ReverseStage(Stage):
    """
    Reverses the upstream block by block: every chunk of `chunk_size` items
    is reversed on its own, and the chunks are emitted last to first.
    """

    name = "reverse"

    def __init__(self, collection, chunk_size: Optional[int] = None):
        super().__init__(collection)
        self.chunk_size = chunk_size or self.settings.chunk_size

    def _iterate(self) -> Iterator[Any]:
        blocks: List[List[Any]] = []
        for chunk in self.collection.chunk(self.chunk_size):
            blocks.append(chunk.to_list()[::-1])
        for block in reversed(blocks):
            yield from block


class WhenStage(Stage):
    """
    Applies `modifier` to the whole collection when the condition holds.

    The condition is either a plain bool or a function of the collection,
    evaluated only when this stage is iterated. A single-use upstream is
    buffered first so the condition can inspect it without consuming it.
    """

    name = "when"

    def __init__(
        self,
        collection,
        condition: Union[bool, Callable[[Any], bool]],
        modifier: Callable[..., Any],
        negate: bool = False,
    ):
        super().__init__(collection)
        self.condition = Modifier(condition) if callable(condition) else condition
        self.modifier = Modifier(modifier)
        self.negate = negate

    def _iterate(self) -> Iterator[Any]:
        collection = self.collection
        if callable(self.condition) and not self.repeatable:
            collection = self.group(list(collection))
            self.logger.debug("single_use_source_buffered")
        holds = self.condition(collection) if callable(self.condition) else self.condition
        if bool(holds) != self.negate:
            yield from self.modifier(collection)
        else:
            yield from collection


class TapStage(Stage):
    """Calls `callback` with the collection, then passes it through unchanged."""

    name = "tap"

    def __init__(self, collection, callback: Callable[..., Any]):
        super().__init__(collection)
        self.callback = Modifier(callback)

    def _iterate(self) -> Iterator[Any]:
        self.callback(self.collection)
        yield from self.collection


class AsyncMergeStage(AsyncStage):
    name = "merge"

    def __init__(self, collection, first: Any, second: Any):
        super().__init__(collection)
        self.first = first
        self.second = second

    @property
    def repeatable(self) -> bool:
        return is_repeatable(self.first) and is_repeatable(self.second)

    async def _iterate(self) -> AsyncIterator[Any]:
        async for item in iterate_any(self.first):
            yield item
        async for item in iterate_any(self.second):
            yield item


class AsyncZipStage(AsyncStage):
    """Pulls one item from each side per step; either side may be sync."""

    name = "zip"

    def __init__(self, collection, other: Any):
        super().__init__(collection)
        self.other = other

    @property
    def repeatable(self) -> bool:
        return self.collection.repeatable and is_repeatable(self.other)

    async def _iterate(self) -> AsyncIterator[Any]:
        left = iterate_any(self.collection)
        right = iterate_any(self.other)
        try:
            while True:
                try:
                    item_a = await left.__anext__()
                    item_b = await right.__anext__()
                except StopAsyncIteration:
                    return
                yield item_a, item_b
        finally:
            await left.aclose()
            await right.aclose()


class AsyncSortStage(AsyncStage):
    name = "sort"

    def __init__(
        self,
        collection,
        comparator: Optional[Callable[[Any, Any], Any]] = None,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ):
        super().__init__(collection)
        self.key = _sort_key(comparator, key)
        self.reverse = reverse

    async def _iterate(self) -> AsyncIterator[Any]:
        items = await self.collection.to_list()
        for item in sorted(items, key=self.key, reverse=self.reverse):
            yield item


class AsyncReverseStage(AsyncStage):
    name = "reverse"

    def __init__(self, collection, chunk_size: Optional[int] = None):
        super().__init__(collection)
        self.chunk_size = chunk_size or self.settings.chunk_size

    async def _iterate(self) -> AsyncIterator[Any]:
        blocks: List[List[Any]] = []
        async for chunk in self.collection.chunk(self.chunk_size):
            blocks.append((await chunk.to_list())[::-1])
        for block in reversed(blocks):
            for item in block:
                yield item


class AsyncWhenStage(AsyncStage):
    """The condition and the modifier may both be coroutine functions."""

    name = "when"

    def __init__(
        self,
        collection,
        condition: Union[bool, Callable[[Any], Any]],
        modifier: Callable[..., Any],
        negate: bool = False,
    ):
        super().__init__(collection)
        self.condition = Modifier(condition) if callable(condition) else condition
        self.modifier = Modifier(modifier)
        self.negate = negate

    async def _iterate(self) -> AsyncIterator[Any]:
        collection = self.collection
        if callable(self.condition) and not self.repeatable:
            collection = self.group(await collection.to_list())
            self.logger.debug("single_use_source_buffered")
        if callable(self.condition):
            holds = await resolve(self.condition(collection))
        else:
            holds = self.condition
        source = collection
        if bool(holds) != self.negate:
            source = await resolve(self.modifier(collection))
        async for item in iterate_any(source):
            yield item


class AsyncTapStage(AsyncStage):
    name = "tap"

    def __init__(self, collection, callback: Callable[..., Any]):
        super().__init__(collection)
        self.callback = Modifier(callback)

    async def _iterate(self) -> AsyncIterator[Any]:
        await resolve(self.callback(self.collection))
        async for item in iterate_any(self.collection):
            yield item
