"""
Windowing and partitioning stages: chunk, chunk_while, split, partition,
group_by, count_by and unique.

Groups are handed downstream as collections of the same kind as the one the
operator was invoked on, each wrapping a list local to the traversal.
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Tuple

from ..core.source import iterate_any
from ..core.stage import AsyncStage, Stage
from ..core.utils import Mapper, Predicate, identity, resolve


def split_sizes(size: int, amount: int) -> List[int]:
    """
    Sizes of `amount` contiguous groups covering `size` items. The remainder
    goes one item at a time to the earliest groups.

    >>> split_sizes(11, 3)
    [4, 4, 3]
    """
    base, rest = divmod(size, amount)
    return [base + 1 if i < rest else base for i in range(amount)]


class KeyTable:
    """
    An insertion-ordered mapping that also accepts unhashable keys such as
    lists and dicts. Hashable keys are looked up in a dict; the others are
    compared with `==` against the unhashable keys seen so far.
    """

    def __init__(self):
        self._hashed: Dict[Any, List[Any]] = {}
        self._unhashed: List[List[Any]] = []
        self._entries: List[List[Any]] = []

    def _find(self, key: Any) -> Optional[List[Any]]:
        try:
            return self._hashed.get(key)
        except TypeError:
            for entry in self._unhashed:
                if entry[0] == key:
                    return entry
            return None

    def __contains__(self, key: Any) -> bool:
        return self._find(key) is not None

    def get(self, key: Any, default: Any = None) -> Any:
        entry = self._find(key)
        return default if entry is None else entry[1]

    def __setitem__(self, key: Any, value: Any) -> None:
        entry = self._find(key)
        if entry is not None:
            entry[1] = value
            return
        entry = [key, value]
        try:
            self._hashed[key] = entry
        except TypeError:
            self._unhashed.append(entry)
        self._entries.append(entry)

    def setdefault(self, key: Any, default: Any) -> Any:
        entry = self._find(key)
        if entry is None:
            self[key] = default
            return default
        return entry[1]

    def items(self) -> Iterator[Tuple[Any, Any]]:
        for key, value in self._entries:
            yield key, value


class ChunkStage(Stage):
    """Groups consecutive items into chunks of `size`; the last may be shorter."""

    name = "chunk"

    def __init__(self, collection, size: int):
        super().__init__(collection)
        self.size = size

    def _iterate(self) -> Iterator[Any]:
        chunk: List[Any] = []
        for item in self.collection:
            chunk.append(item)
            if len(chunk) >= self.size:
                yield self.group(chunk)
                chunk = []
        if chunk:
            yield self.group(chunk)


class ChunkWhileStage(Stage):
    """
    Starts a new chunk whenever the predicate, called with the chunk built so
    far as its third argument, returns False. The first item is never tested.
    The trailing chunk is always emitted, so empty input gives one empty chunk.
    """

    name = "chunk_while"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    def _iterate(self) -> Iterator[Any]:
        chunk: List[Any] = []
        for index, item in self.indexed():
            if index == 0 or self.predicate(item, index, self.group(chunk)):
                chunk.append(item)
            else:
                yield self.group(chunk)
                chunk = [item]
        yield self.group(chunk)


class SplitStage(Stage):
    """Divides the items into exactly `amount` contiguous groups."""

    name = "split"

    def __init__(self, collection, amount: int):
        super().__init__(collection)
        self.amount = amount

    def _iterate(self) -> Iterator[Any]:
        items, size = self.sized_upstream()
        iterator = iter(items)
        for chunk_size in split_sizes(size, self.amount):
            chunk = []
            for _ in range(chunk_size):
                chunk.append(next(iterator))
            yield self.group(chunk)


class PartitionStage(Stage):
    """Yields exactly two groups: the matching items, then the rest."""

    name = "partition"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    def _iterate(self) -> Iterator[Any]:
        matched: List[Any] = []
        rest: List[Any] = []
        for index, item in self.indexed():
            if self.predicate(item, index, self.collection):
                matched.append(item)
            else:
                rest.append(item)
        yield self.group(matched)
        yield self.group(rest)


class GroupByStage(Stage):
    """
    Buckets items by a derived key, keeping first-seen key order, and yields
    `(key, group)` records.
    """

    name = "group_by"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    def _iterate(self) -> Iterator[Any]:
        buckets = KeyTable()
        for index, item in self.indexed():
            key = self.mapper(item, index, self.collection)
            buckets.setdefault(key, []).append(item)
        for key, items in buckets.items():
            yield key, self.group(items)


class CountByStage(Stage):
    name = "count_by"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    def _iterate(self) -> Iterator[Any]:
        counts = KeyTable()
        for index, item in self.indexed():
            key = self.mapper(item, index, self.collection)
            counts[key] = counts.get(key, 0) + 1
        yield from counts.items()


class UniqueStage(Stage):
    """Yields each item the first time its derived key is seen."""

    name = "unique"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    def _iterate(self) -> Iterator[Any]:
        seen = KeyTable()
        for index, item in self.indexed():
            key = self.mapper(item, index, self.collection)
            if key not in seen:
                seen[key] = True
                yield item


class AsyncChunkStage(AsyncStage):
    name = "chunk"

    def __init__(self, collection, size: int):
        super().__init__(collection)
        self.size = size

    async def _iterate(self) -> AsyncIterator[Any]:
        chunk: List[Any] = []
        async for item in iterate_any(self.collection):
            chunk.append(item)
            if len(chunk) >= self.size:
                yield self.group(chunk)
                chunk = []
        if chunk:
            yield self.group(chunk)


class AsyncChunkWhileStage(AsyncStage):
    name = "chunk_while"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    async def _iterate(self) -> AsyncIterator[Any]:
        chunk: List[Any] = []
        async for index, item in self.indexed():
            if index == 0 or await resolve(self.predicate(item, index, self.group(chunk))):
                chunk.append(item)
            else:
                yield self.group(chunk)
                chunk = [item]
        yield self.group(chunk)


class AsyncSplitStage(AsyncStage):
    name = "split"

    def __init__(self, collection, amount: int):
        super().__init__(collection)
        self.amount = amount

    async def _iterate(self) -> AsyncIterator[Any]:
        items, size = await self.sized_upstream()
        iterator = iterate_any(items)
        try:
            for chunk_size in split_sizes(size, self.amount):
                chunk = []
                for _ in range(chunk_size):
                    chunk.append(await iterator.__anext__())
                yield self.group(chunk)
        finally:
            await iterator.aclose()


class AsyncPartitionStage(AsyncStage):
    name = "partition"

    def __init__(self, collection, predicate: Callable[..., Any]):
        super().__init__(collection)
        self.predicate = Predicate(predicate)

    async def _iterate(self) -> AsyncIterator[Any]:
        matched: List[Any] = []
        rest: List[Any] = []
        async for index, item in self.indexed():
            if await resolve(self.predicate(item, index, self.collection)):
                matched.append(item)
            else:
                rest.append(item)
        yield self.group(matched)
        yield self.group(rest)


class AsyncGroupByStage(AsyncStage):
    name = "group_by"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    async def _iterate(self) -> AsyncIterator[Any]:
        buckets = KeyTable()
        async for index, item in self.indexed():
            key = await resolve(self.mapper(item, index, self.collection))
            buckets.setdefault(key, []).append(item)
        for key, items in buckets.items():
            yield key, self.group(items)


class AsyncCountByStage(AsyncStage):
    name = "count_by"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    async def _iterate(self) -> AsyncIterator[Any]:
        counts = KeyTable()
        async for index, item in self.indexed():
            key = await resolve(self.mapper(item, index, self.collection))
            counts[key] = counts.get(key, 0) + 1
        for record in counts.items():
            yield record


class AsyncUniqueStage(AsyncStage):
    name = "unique"

    def __init__(self, collection, mapper: Optional[Callable[..., Any]] = None):
        super().__init__(collection)
        self.mapper = Mapper(mapper or identity)

    async def _iterate(self) -> AsyncIterator[Any]:
        seen = KeyTable()
        async for index, item in self.indexed():
            key = await resolve(self.mapper(item, index, self.collection))
            if key not in seen:
                seen[key] = True
                yield item
