"""
Stateless per-item stages: filter, map, flat_map, update and collapse.

Each stage pulls one item at a time from the collection it was created from
and counts every pulled item, whether or not it is passed on.
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Iterator

from ..core.source import iterate_any
from ..core.stage import AsyncStage, Stage
from ..core.utils import Mapper, Predicate, is_nested_sequence, resolve


class FilterStage(Stage):
    """Yields the items for which the predicate returns a truthy value."""

    name = "filter"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    def _iterate(self) -> Iterator[Any]:
        for index, item in self.indexed():
            if self.predicate(item, index, self.collection):
                yield item


class MapStage(Stage):
    name = "map"

    def __init__(self, collection, mapper: Callable[..., Any]):
        super().__init__(collection)
        self.mapper = Mapper(mapper)

    def _iterate(self) -> Iterator[Any]:
        for index, item in self.indexed():
            yield self.mapper(item, index, self.collection)


class FlatMapStage(Stage):
    """Splices the finite iterable returned by the mapper into the output."""

    name = "flat_map"

    def __init__(self, collection, mapper: Callable[..., Any]):
        super().__init__(collection)
        self.mapper = Mapper(mapper)

    def _iterate(self) -> Iterator[Any]:
        for index, item in self.indexed():
            yield from self.mapper(item, index, self.collection)


class UpdateStage(Stage):
    """Maps the items that pass the predicate and passes the others through."""

    name = "update"

    def __init__(self, collection, predicate: Callable[..., Any], mapper: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.mapper = Mapper(mapper)

    def _iterate(self) -> Iterator[Any]:
        for index, item in self.indexed():
            if self.predicate(item, index, self.collection):
                yield self.mapper(item, index, self.collection)
            else:
                yield item


class CollapseStage(Stage):
    """Flattens one level of nesting; non-sequence items pass unchanged."""

    name = "collapse"

    def _iterate(self) -> Iterator[Any]:
        for item in self.collection:
            if is_nested_sequence(item):
                yield from item
            else:
                yield item


class AsyncFilterStage(AsyncStage):
    name = "filter"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    async def _iterate(self) -> AsyncIterator[Any]:
        async for index, item in self.indexed():
            if await resolve(self.predicate(item, index, self.collection)):
                yield item


class AsyncMapStage(AsyncStage):
    name = "map"

    def __init__(self, collection, mapper: Callable[..., Any]):
        super().__init__(collection)
        self.mapper = Mapper(mapper)

    async def _iterate(self) -> AsyncIterator[Any]:
        async for index, item in self.indexed():
            yield await resolve(self.mapper(item, index, self.collection))


class AsyncFlatMapStage(AsyncStage):
    """The mapper may return a sync or an async iterable."""

    name = "flat_map"

    def __init__(self, collection, mapper: Callable[..., Any]):
        super().__init__(collection)
        self.mapper = Mapper(mapper)

    async def _iterate(self) -> AsyncIterator[Any]:
        async for index, item in self.indexed():
            nested = await resolve(self.mapper(item, index, self.collection))
            async for nested_item in iterate_any(nested):
                yield nested_item


class AsyncUpdateStage(AsyncStage):
    name = "update"

    def __init__(self, collection, predicate: Callable[..., Any], mapper: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)
        self.mapper = Mapper(mapper)

    async def _iterate(self) -> AsyncIterator[Any]:
        async for index, item in self.indexed():
            if await resolve(self.predicate(item, index, self.collection)):
                yield await resolve(self.mapper(item, index, self.collection))
            else:
                yield item


class AsyncCollapseStage(AsyncStage):
    name = "collapse"

    async def _iterate(self) -> AsyncIterator[Any]:
        async for item in iterate_any(self.collection):
            if is_nested_sequence(item, asynchronous=True):
                async for nested_item in iterate_any(item):
                    yield nested_item
            else:
                yield item
