"""
This module defines the `AsyncCollection` class, the asynchronous lazy
pipeline.

It mirrors `Collection` operator for operator. Operators still return a new
collection immediately; every terminal operation is a coroutine. Callbacks may
be plain functions or coroutine functions, and only one pull is in flight per
traversal.
"""
from __future__ import annotations

import operator
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Generic, List, Optional, Tuple, TypeVar, Union

from ..components.aggregate import (
    BIGINT,
    NUMBER,
    ExtremumAccumulator,
    SumAccumulator,
    median_of,
    percentage_of,
)
from ..components.composition import (
    AsyncMergeStage,
    AsyncReverseStage,
    AsyncSortStage,
    AsyncTapStage,
    AsyncWhenStage,
    AsyncZipStage,
)
from ..components.positional import (
    AsyncInsertAfterStage,
    AsyncInsertBeforeStage,
    AsyncSkipStage,
    AsyncSkipUntilStage,
    AsyncTakeStage,
    AsyncTakeUntilStage,
)
from ..components.transform import (
    AsyncCollapseStage,
    AsyncFilterStage,
    AsyncFlatMapStage,
    AsyncMapStage,
    AsyncUpdateStage,
)
from ..components.windowing import (
    AsyncChunkStage,
    AsyncChunkWhileStage,
    AsyncCountByStage,
    AsyncGroupByStage,
    AsyncPartitionStage,
    AsyncSplitStage,
    AsyncUniqueStage,
)
from ..config import DEFAULT_SETTINGS, CollectionSettings, load_config
from .errors import (
    CollectionError,
    InvalidTypeError,
    ItemNotFoundError,
    MultipleItemsFoundError,
    translate_errors,
    wrap_error,
)
from .log import get_logger
from .source import AsyncSource, iterate_any
from .stage import AsyncStage
from .utils import (
    MISSING,
    Callback,
    Modifier,
    Predicate,
    Reducer,
    check_index,
    ensure_string,
    match_all,
    resolve,
    resolve_default,
)

T = TypeVar("T")

logger = get_logger("reeks.async_collection")


class AsyncCollection(Generic[T]):
    """A lazy, chainable sequence whose items may arrive asynchronously.

    Example:
        >>> async def numbers():
        ...     for i in range(4):
        ...         yield i
        >>> await AsyncCollection(numbers).map(lambda x: x * 2).to_list()
        [0, 2, 4, 6]

    Attributes:
        settings: The pipeline-wide `CollectionSettings`.
    """

    def __init__(self, data: Any = None, *, settings: Optional[CollectionSettings] = None):
        """Initializes a new AsyncCollection.

        Args:
            data: An async iterable, an async generator object, a sync
                iterable, or a zero-argument factory returning any of these
                (a coroutine resolving to one is accepted too).
            settings: Pipeline-wide settings, see `Collection`.
        """
        if settings is None:
            settings = data.settings if isinstance(data, (AsyncCollection, AsyncStage)) else DEFAULT_SETTINGS
        self.settings = settings

        if isinstance(data, (AsyncSource, AsyncStage)):
            self._node = data
        else:
            self._node = AsyncSource([] if data is None else data)
            logger.debug("collection_created", kind=self._node.kind, repeatable=self._node.repeatable)

    @classmethod
    def from_config(cls, data: Any = None, path: Optional[str] = None) -> "AsyncCollection[T]":
        return cls(data, settings=CollectionSettings.from_config(load_config(path)))

    def with_settings(self, **changes: Any) -> "AsyncCollection[T]":
        return type(self)(self._node, settings=self.settings.evolve(**changes))

    @property
    def repeatable(self) -> bool:
        return self._node.repeatable

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        try:
            async with aclosing(iterate_any(self._node)) as items:
                async for item in items:
                    yield item
        except CollectionError:
            raise
        except Exception as e:
            raise wrap_error(e) from e

    def __repr__(self) -> str:
        return f"AsyncCollection({self._node!r})"

    def _chain(self, stage: AsyncStage) -> "AsyncCollection[Any]":
        return type(self)(stage, settings=self.settings)

    async def _indexed(self) -> AsyncIterator[Tuple[int, T]]:
        index = 0
        async with aclosing(self._iterate()) as items:
            async for item in items:
                check_index(index, self.settings)
                yield index, item
                index += 1

    def iterator(self) -> AsyncIterator[T]:
        return self.__aiter__()

    # --- Transforms ---

    def filter(self, predicate: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncFilterStage(self, predicate))

    def map(self, mapper: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncMapStage(self, mapper))

    def flat_map(self, mapper: Callable[..., Any]) -> "AsyncCollection[Any]":
        """The mapper may return a sync or an async iterable."""
        return self._chain(AsyncFlatMapStage(self, mapper))

    def update(self, predicate: Callable[..., Any], mapper: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncUpdateStage(self, predicate, mapper))

    def collapse(self) -> "AsyncCollection[Any]":
        return self._chain(AsyncCollapseStage(self))

    # --- Windowing and grouping ---

    def chunk(self, size: int) -> "AsyncCollection[AsyncCollection[T]]":
        return self._chain(AsyncChunkStage(self, size))

    def chunk_while(self, predicate: Callable[..., Any]) -> "AsyncCollection[AsyncCollection[T]]":
        return self._chain(AsyncChunkWhileStage(self, predicate))

    def split(self, amount: int) -> "AsyncCollection[AsyncCollection[T]]":
        return self._chain(AsyncSplitStage(self, amount))

    def partition(self, predicate: Callable[..., Any]) -> "AsyncCollection[AsyncCollection[T]]":
        return self._chain(AsyncPartitionStage(self, predicate))

    def sliding(self, size: int, step: Optional[int] = None) -> "AsyncCollection[AsyncCollection[T]]":
        raise NotImplementedError("Method not implemented")

    def group_by(self, mapper: Optional[Callable[..., Any]] = None) -> "AsyncCollection[Tuple[Any, AsyncCollection[T]]]":
        return self._chain(AsyncGroupByStage(self, mapper))

    def count_by(self, mapper: Optional[Callable[..., Any]] = None) -> "AsyncCollection[Tuple[Any, int]]":
        return self._chain(AsyncCountByStage(self, mapper))

    def unique(self, mapper: Optional[Callable[..., Any]] = None) -> "AsyncCollection[T]":
        return self._chain(AsyncUniqueStage(self, mapper))

    # --- Positional ---

    def take(self, limit: int) -> "AsyncCollection[T]":
        return self._chain(AsyncTakeStage(self, limit))

    def take_until(self, predicate: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncTakeUntilStage(self, predicate))

    def take_while(self, predicate: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncTakeUntilStage(self, predicate, negate=True))

    def skip(self, offset: int) -> "AsyncCollection[T]":
        return self._chain(AsyncSkipStage(self, offset))

    def skip_until(self, predicate: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncSkipUntilStage(self, predicate))

    def skip_while(self, predicate: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncSkipUntilStage(self, predicate, negate=True))

    def page(self, page: int, page_size: int) -> "AsyncCollection[T]":
        if page < 0:
            return self.skip(page * page_size).take(page_size)
        return self.skip((page - 1) * page_size).take(page_size)

    def nth(self, step: int) -> "AsyncCollection[T]":
        return self.filter(lambda _item, index: index % step == 0)

    def insert_before(self, predicate: Callable[..., Any], items: Any) -> "AsyncCollection[Any]":
        return self._chain(AsyncInsertBeforeStage(self, predicate, items))

    def insert_after(self, predicate: Callable[..., Any], items: Any) -> "AsyncCollection[Any]":
        return self._chain(AsyncInsertAfterStage(self, predicate, items))

    # --- Composition ---

    def prepend(self, items: Any) -> "AsyncCollection[Any]":
        return self._chain(AsyncMergeStage(self, items, self))

    def append(self, items: Any) -> "AsyncCollection[Any]":
        return self._chain(AsyncMergeStage(self, self, items))

    def zip(self, other: Any) -> "AsyncCollection[Tuple[T, Any]]":
        """`other` may be a sync or an async iterable."""
        return self._chain(AsyncZipStage(self, other))

    def sort(
        self,
        comparator: Optional[Callable[[Any, Any], Any]] = None,
        *,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ) -> "AsyncCollection[T]":
        return self._chain(AsyncSortStage(self, comparator, key=key, reverse=reverse))

    def reverse(self, chunk_size: Optional[int] = None) -> "AsyncCollection[T]":
        return self._chain(AsyncReverseStage(self, chunk_size))

    def when(self, condition: Union[bool, Callable[..., Any]], callback: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncWhenStage(self, condition, callback))

    def when_not(self, condition: Union[bool, Callable[..., Any]], callback: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncWhenStage(self, condition, callback, negate=True))

    def when_empty(self, callback: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncWhenStage(self, type(self).empty, callback))

    def when_not_empty(self, callback: Callable[..., Any]) -> "AsyncCollection[Any]":
        return self._chain(AsyncWhenStage(self, type(self).empty, callback, negate=True))

    def tap(self, callback: Callable[..., Any]) -> "AsyncCollection[T]":
        return self._chain(AsyncTapStage(self, callback))

    @translate_errors
    async def pipe(self, callback: Callable[..., Any]) -> Any:
        """Calls `callback(collection)` and returns its (awaited) result."""
        return await resolve(Modifier(callback)(self))

    # --- Reduction and aggregation ---

    @translate_errors
    async def reduce(self, reducer: Callable[..., Any], initial: Any = MISSING) -> Any:
        """Folds the items from left to right, see `Collection.reduce`."""
        reducer = Reducer(reducer)
        async with aclosing(self._iterate()) as items:
            accumulator = initial
            if initial is MISSING:
                try:
                    accumulator = await items.__anext__()
                except StopAsyncIteration:
                    raise InvalidTypeError("Reduce of empty collection must be given an initial value") from None
            index = 0
            async for item in items:
                check_index(index, self.settings)
                accumulator = await resolve(reducer(accumulator, item, index, self))
                index += 1
        return accumulator

    @translate_errors
    async def join(self, separator: str = ",") -> str:
        return await self.map(ensure_string).reduce(lambda text, item: text + separator + item)

    async def _sum(self, kind, what: str = "Sum") -> SumAccumulator:
        accumulator = SumAccumulator(kind, self.settings, what=what)
        async for item in self:
            accumulator.push(item)
        return accumulator

    async def _extremum(self, kind, better: Callable[[Any, Any], bool]) -> Any:
        accumulator = ExtremumAccumulator(kind, better)
        async for item in self:
            accumulator.push(item)
        return accumulator.value

    @translate_errors
    async def sum(self) -> Union[int, float]:
        return (await self._sum(NUMBER)).total

    @translate_errors
    async def average(self) -> float:
        return (await self._sum(NUMBER, what="The sum")).average()

    @translate_errors
    async def median(self) -> Union[int, float]:
        return median_of(await self.to_list(), NUMBER)

    @translate_errors
    async def min(self) -> Union[int, float]:
        return await self._extremum(NUMBER, operator.lt)

    @translate_errors
    async def max(self) -> Union[int, float]:
        return await self._extremum(NUMBER, operator.gt)

    @translate_errors
    async def sum_bigint(self) -> int:
        return (await self._sum(BIGINT)).total

    @translate_errors
    async def average_bigint(self) -> int:
        return (await self._sum(BIGINT)).average()

    @translate_errors
    async def median_bigint(self) -> int:
        return median_of(await self.to_list(), BIGINT)

    @translate_errors
    async def min_bigint(self) -> int:
        return await self._extremum(BIGINT, operator.lt)

    @translate_errors
    async def max_bigint(self) -> int:
        return await self._extremum(BIGINT, operator.gt)

    @translate_errors
    async def percentage(self, predicate: Callable[..., Any]) -> float:
        predicate = Predicate(predicate)
        part = total = 0
        async for index, item in self._indexed():
            if await resolve(predicate(item, index, self)):
                part += 1
            total += 1
        return percentage_of(part, total)

    @translate_errors
    async def some(self, predicate: Callable[..., Any]) -> bool:
        predicate = Predicate(predicate)
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if await resolve(predicate(item, index, self)):
                    return True
        return False

    @translate_errors
    async def every(self, predicate: Callable[..., Any]) -> bool:
        predicate = Predicate(predicate)
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if not await resolve(predicate(item, index, self)):
                    return False
        return True

    # --- Search ---

    @translate_errors
    async def first_or(self, default: Any, predicate: Optional[Callable[..., Any]] = None) -> Any:
        predicate = Predicate(predicate or match_all)
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if await resolve(predicate(item, index, self)):
                    return item
        return await resolve(resolve_default(default))

    async def first(self, predicate: Optional[Callable[..., Any]] = None) -> Optional[T]:
        return await self.first_or(None, predicate)

    async def first_or_fail(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        item = await self.first_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    async def last_or(self, default: Any, predicate: Optional[Callable[..., Any]] = None) -> Any:
        predicate = Predicate(predicate or match_all)
        matched = MISSING
        async for index, item in self._indexed():
            if await resolve(predicate(item, index, self)):
                matched = item
        if matched is MISSING:
            return await resolve(resolve_default(default))
        return matched

    async def last(self, predicate: Optional[Callable[..., Any]] = None) -> Optional[T]:
        return await self.last_or(None, predicate)

    async def last_or_fail(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        item = await self.last_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    async def before_or(self, default: Any, predicate: Callable[..., Any]) -> Any:
        predicate = Predicate(predicate)
        previous = MISSING
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if await resolve(predicate(item, index, self)):
                    if previous is not MISSING:
                        return previous
                    break
                previous = item
        return await resolve(resolve_default(default))

    async def before(self, predicate: Callable[..., Any]) -> Optional[T]:
        return await self.before_or(None, predicate)

    async def before_or_fail(self, predicate: Callable[..., Any]) -> T:
        item = await self.before_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    async def after_or(self, default: Any, predicate: Callable[..., Any]) -> Any:
        predicate = Predicate(predicate)
        matched = False
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if matched:
                    return item
                matched = bool(await resolve(predicate(item, index, self)))
        return await resolve(resolve_default(default))

    async def after(self, predicate: Callable[..., Any]) -> Optional[T]:
        return await self.after_or(None, predicate)

    async def after_or_fail(self, predicate: Callable[..., Any]) -> T:
        item = await self.after_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    async def sole(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        predicate = Predicate(predicate or match_all)
        matched = MISSING
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if await resolve(predicate(item, index, self)):
                    if matched is not MISSING:
                        raise MultipleItemsFoundError("Multiple items were found")
                    matched = item
        if matched is MISSING:
            raise ItemNotFoundError("Item was not found")
        return matched

    @translate_errors
    async def search(self, predicate: Callable[..., Any]) -> int:
        predicate = Predicate(predicate)
        async with aclosing(self._indexed()) as items:
            async for index, item in items:
                if await resolve(predicate(item, index, self)):
                    return index
        return -1

    # --- Consumption ---

    @translate_errors
    async def count(self, predicate: Optional[Callable[..., Any]] = None) -> int:
        predicate = Predicate(predicate or match_all)
        matches = 0
        async for index, item in self._indexed():
            if await resolve(predicate(item, index, self)):
                matches += 1
        return matches

    @translate_errors
    async def size(self) -> int:
        size = 0
        async for _ in self:
            check_index(size, self.settings, what="Size")
            size += 1
        return size

    @translate_errors
    async def empty(self) -> bool:
        async with aclosing(self._iterate()) as items:
            async for _ in items:
                return False
        return True

    async def not_empty(self) -> bool:
        return not await self.empty()

    @translate_errors
    async def for_each(self, callback: Callable[..., Any]) -> None:
        callback = Callback(callback)
        async for index, item in self._indexed():
            await resolve(callback(item, index, self))

    @translate_errors
    async def to_list(self) -> List[T]:
        return [item async for item in self]
