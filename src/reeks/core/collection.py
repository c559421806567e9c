"""
This module defines the `Collection` class, the synchronous lazy pipeline.

A Collection wraps exactly one node: either a `Source` or an operator `Stage`
holding the collection it was created from. Operator methods return a new
Collection immediately and do no work; terminal methods iterate the chain and
return a concrete value. Every traversal re-runs the chain from its source.
"""
from __future__ import annotations

import operator
from typing import Any, Callable, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from ..components.aggregate import (
    BIGINT,
    NUMBER,
    ExtremumAccumulator,
    SumAccumulator,
    median_of,
    percentage_of,
)
from ..components.composition import MergeStage, ReverseStage, SortStage, TapStage, WhenStage, ZipStage
from ..components.positional import (
    InsertAfterStage,
    InsertBeforeStage,
    SkipStage,
    SkipUntilStage,
    TakeStage,
    TakeUntilStage,
)
from ..components.transform import CollapseStage, FilterStage, FlatMapStage, MapStage, UpdateStage
from ..components.windowing import (
    ChunkStage,
    ChunkWhileStage,
    CountByStage,
    GroupByStage,
    PartitionStage,
    SplitStage,
    UniqueStage,
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
from .source import Source
from .stage import Stage
from .utils import (
    MISSING,
    Callback,
    Modifier,
    Predicate,
    Reducer,
    check_index,
    ensure_string,
    match_all,
    resolve_default,
)

T = TypeVar("T")

logger = get_logger("reeks.collection")


class Collection(Generic[T]):
    """A lazy, chainable sequence.

    Example:
        >>> Collection([1, 2, 3, 4]).filter(lambda x: x % 2 == 0).map(lambda x: str(x)).join()
        '2,4'

    Attributes:
        settings: The pipeline-wide `CollectionSettings`, inherited by every
            collection derived from this one.
    """

    def __init__(self, data: Any = None, *, settings: Optional[CollectionSettings] = None):
        """Initializes a new Collection.

        Args:
            data: A re-iterable (list, tuple, range, another collection), a
                single-use iterator such as a generator object, or a
                zero-argument factory such as a generator function. Defaults
                to an empty sequence.
            settings: Pipeline-wide settings. Defaults to the settings of
                `data` when it is a collection, otherwise `DEFAULT_SETTINGS`.
        """
        if settings is None:
            settings = data.settings if isinstance(data, (Collection, Stage)) else DEFAULT_SETTINGS
        self.settings = settings

        if isinstance(data, (Source, Stage)):
            self._node = data
        else:
            self._node = Source([] if data is None else data)
            logger.debug("collection_created", kind=self._node.kind, repeatable=self._node.repeatable)

    @classmethod
    def from_config(cls, data: Any = None, path: Optional[str] = None) -> "Collection[T]":
        """Creates a collection whose settings come from a YAML config file."""
        return cls(data, settings=CollectionSettings.from_config(load_config(path)))

    def with_settings(self, **changes: Any) -> "Collection[T]":
        """
        Returns the same chain with modified settings. Only stages added to
        the returned collection see the change.
        """
        return type(self)(self._node, settings=self.settings.evolve(**changes))

    @property
    def repeatable(self) -> bool:
        """Whether every traversal of this chain starts from the beginning."""
        return self._node.repeatable

    def __iter__(self) -> Iterator[T]:
        try:
            yield from self._node
        except CollectionError:
            raise
        except Exception as e:
            raise wrap_error(e) from e

    def __repr__(self) -> str:
        return f"Collection({self._node!r})"

    def _chain(self, stage: Stage) -> "Collection[Any]":
        return type(self)(stage, settings=self.settings)

    def _indexed(self) -> Iterator[Tuple[int, T]]:
        for index, item in enumerate(self):
            check_index(index, self.settings)
            yield index, item

    def iterator(self) -> Iterator[T]:
        return iter(self)

    # --- Transforms ---

    def filter(self, predicate: Callable[..., Any]) -> "Collection[T]":
        """Keeps the items for which `predicate(item, index, collection)` is truthy."""
        return self._chain(FilterStage(self, predicate))

    def map(self, mapper: Callable[..., Any]) -> "Collection[Any]":
        return self._chain(MapStage(self, mapper))

    def flat_map(self, mapper: Callable[..., Iterable[Any]]) -> "Collection[Any]":
        return self._chain(FlatMapStage(self, mapper))

    def update(self, predicate: Callable[..., Any], mapper: Callable[..., Any]) -> "Collection[Any]":
        """Maps the matching items and passes every other item through."""
        return self._chain(UpdateStage(self, predicate, mapper))

    def collapse(self) -> "Collection[Any]":
        return self._chain(CollapseStage(self))

    # --- Windowing and grouping ---

    def chunk(self, size: int) -> "Collection[Collection[T]]":
        return self._chain(ChunkStage(self, size))

    def chunk_while(self, predicate: Callable[..., Any]) -> "Collection[Collection[T]]":
        """
        Groups consecutive items while `predicate(item, index, group)` holds,
        where `group` is the chunk accumulated so far.
        """
        return self._chain(ChunkWhileStage(self, predicate))

    def split(self, amount: int) -> "Collection[Collection[T]]":
        return self._chain(SplitStage(self, amount))

    def partition(self, predicate: Callable[..., Any]) -> "Collection[Collection[T]]":
        return self._chain(PartitionStage(self, predicate))

    def sliding(self, size: int, step: Optional[int] = None) -> "Collection[Collection[T]]":
        raise NotImplementedError("Method not implemented")

    def group_by(self, mapper: Optional[Callable[..., Any]] = None) -> "Collection[Tuple[Any, Collection[T]]]":
        return self._chain(GroupByStage(self, mapper))

    def count_by(self, mapper: Optional[Callable[..., Any]] = None) -> "Collection[Tuple[Any, int]]":
        return self._chain(CountByStage(self, mapper))

    def unique(self, mapper: Optional[Callable[..., Any]] = None) -> "Collection[T]":
        return self._chain(UniqueStage(self, mapper))

    # --- Positional ---

    def take(self, limit: int) -> "Collection[T]":
        """Takes the first `limit` items; a negative limit drops that many from the end."""
        return self._chain(TakeStage(self, limit))

    def take_until(self, predicate: Callable[..., Any]) -> "Collection[T]":
        return self._chain(TakeUntilStage(self, predicate))

    def take_while(self, predicate: Callable[..., Any]) -> "Collection[T]":
        return self._chain(TakeUntilStage(self, predicate, negate=True))

    def skip(self, offset: int) -> "Collection[T]":
        """Skips the first `offset` items; a negative offset keeps that many from the end."""
        return self._chain(SkipStage(self, offset))

    def skip_until(self, predicate: Callable[..., Any]) -> "Collection[T]":
        return self._chain(SkipUntilStage(self, predicate))

    def skip_while(self, predicate: Callable[..., Any]) -> "Collection[T]":
        return self._chain(SkipUntilStage(self, predicate, negate=True))

    def page(self, page: int, page_size: int) -> "Collection[T]":
        """
        Returns one page of `page_size` items. Pages are numbered from 1; a
        negative page counts from the end, so -1 is the last `page_size` items.
        """
        if page < 0:
            return self.skip(page * page_size).take(page_size)
        return self.skip((page - 1) * page_size).take(page_size)

    def nth(self, step: int) -> "Collection[T]":
        """Keeps the items at positions 0, step, 2 * step and so on."""
        return self.filter(lambda _item, index: index % step == 0)

    def insert_before(self, predicate: Callable[..., Any], items: Iterable[Any]) -> "Collection[Any]":
        return self._chain(InsertBeforeStage(self, predicate, items))

    def insert_after(self, predicate: Callable[..., Any], items: Iterable[Any]) -> "Collection[Any]":
        return self._chain(InsertAfterStage(self, predicate, items))

    # --- Composition ---

    def prepend(self, items: Iterable[Any]) -> "Collection[Any]":
        return self._chain(MergeStage(self, items, self))

    def append(self, items: Iterable[Any]) -> "Collection[Any]":
        return self._chain(MergeStage(self, self, items))

    def zip(self, other: Iterable[Any]) -> "Collection[Tuple[T, Any]]":
        """Pairs items positionally, stopping at the end of the shorter side."""
        return self._chain(ZipStage(self, other))

    def sort(
        self,
        comparator: Optional[Callable[[Any, Any], Any]] = None,
        *,
        key: Optional[Callable[[Any], Any]] = None,
        reverse: bool = False,
    ) -> "Collection[T]":
        """Sorts by natural order, a two-argument `comparator`, or a `key` function."""
        return self._chain(SortStage(self, comparator, key=key, reverse=reverse))

    def reverse(self, chunk_size: Optional[int] = None) -> "Collection[T]":
        return self._chain(ReverseStage(self, chunk_size))

    def when(self, condition: Union[bool, Callable[..., Any]], callback: Callable[..., Any]) -> "Collection[Any]":
        """
        Applies `callback(collection)` when `condition` holds. A callable
        condition receives the collection and is evaluated on iteration.
        """
        return self._chain(WhenStage(self, condition, callback))

    def when_not(self, condition: Union[bool, Callable[..., Any]], callback: Callable[..., Any]) -> "Collection[Any]":
        return self._chain(WhenStage(self, condition, callback, negate=True))

    def when_empty(self, callback: Callable[..., Any]) -> "Collection[Any]":
        return self._chain(WhenStage(self, type(self).empty, callback))

    def when_not_empty(self, callback: Callable[..., Any]) -> "Collection[Any]":
        return self._chain(WhenStage(self, type(self).empty, callback, negate=True))

    def tap(self, callback: Callable[..., Any]) -> "Collection[T]":
        return self._chain(TapStage(self, callback))

    @translate_errors
    def pipe(self, callback: Callable[..., Any]) -> Any:
        """Calls `callback(collection)` right away and returns its result."""
        return Modifier(callback)(self)

    # --- Reduction and aggregation ---

    @translate_errors
    def reduce(self, reducer: Callable[..., Any], initial: Any = MISSING) -> Any:
        """Folds the items from left to right.

        Args:
            reducer: Called as `reducer(accumulator, item, index, collection)`.
            initial: The seed. Without one, the first item seeds the fold and
                the index counter starts at 0 on the second item.

        Raises:
            InvalidTypeError: If the collection is empty and no seed is given.
        """
        reducer = Reducer(reducer)
        iterator = iter(self)
        accumulator = initial
        if initial is MISSING:
            try:
                accumulator = next(iterator)
            except StopIteration:
                raise InvalidTypeError("Reduce of empty collection must be given an initial value") from None
        for index, item in enumerate(iterator):
            check_index(index, self.settings)
            accumulator = reducer(accumulator, item, index, self)
        return accumulator

    @translate_errors
    def join(self, separator: str = ",") -> str:
        """Concatenates string items with `separator`. Raises `InvalidTypeError` on other items."""
        return self.map(ensure_string).reduce(lambda text, item: text + separator + item)

    @translate_errors
    def sum(self) -> Union[int, float]:
        accumulator = SumAccumulator(NUMBER, self.settings)
        for item in self:
            accumulator.push(item)
        return accumulator.total

    @translate_errors
    def average(self) -> float:
        accumulator = SumAccumulator(NUMBER, self.settings, what="The sum")
        for item in self:
            accumulator.push(item)
        return accumulator.average()

    @translate_errors
    def median(self) -> Union[int, float]:
        return median_of(self.to_list(), NUMBER)

    @translate_errors
    def min(self) -> Union[int, float]:
        accumulator = ExtremumAccumulator(NUMBER, operator.lt)
        for item in self:
            accumulator.push(item)
        return accumulator.value

    @translate_errors
    def max(self) -> Union[int, float]:
        accumulator = ExtremumAccumulator(NUMBER, operator.gt)
        for item in self:
            accumulator.push(item)
        return accumulator.value

    @translate_errors
    def sum_bigint(self) -> int:
        accumulator = SumAccumulator(BIGINT, self.settings)
        for item in self:
            accumulator.push(item)
        return accumulator.total

    @translate_errors
    def average_bigint(self) -> int:
        """Integer average, truncated toward zero."""
        accumulator = SumAccumulator(BIGINT, self.settings)
        for item in self:
            accumulator.push(item)
        return accumulator.average()

    @translate_errors
    def median_bigint(self) -> int:
        return median_of(self.to_list(), BIGINT)

    @translate_errors
    def min_bigint(self) -> int:
        accumulator = ExtremumAccumulator(BIGINT, operator.lt)
        for item in self:
            accumulator.push(item)
        return accumulator.value

    @translate_errors
    def max_bigint(self) -> int:
        accumulator = ExtremumAccumulator(BIGINT, operator.gt)
        for item in self:
            accumulator.push(item)
        return accumulator.value

    @translate_errors
    def percentage(self, predicate: Callable[..., Any]) -> float:
        """Share of the items matching `predicate`, from 0 to 100."""
        predicate = Predicate(predicate)
        part = total = 0
        for index, item in self._indexed():
            if predicate(item, index, self):
                part += 1
            total += 1
        return percentage_of(part, total)

    @translate_errors
    def some(self, predicate: Callable[..., Any]) -> bool:
        predicate = Predicate(predicate)
        for index, item in self._indexed():
            if predicate(item, index, self):
                return True
        return False

    @translate_errors
    def every(self, predicate: Callable[..., Any]) -> bool:
        predicate = Predicate(predicate)
        for index, item in self._indexed():
            if not predicate(item, index, self):
                return False
        return True

    # --- Search ---

    @translate_errors
    def first_or(self, default: Any, predicate: Optional[Callable[..., Any]] = None) -> Any:
        """
        Returns the first item matching `predicate` (any item by default),
        otherwise `default`. A callable default is called to produce the value.
        """
        predicate = Predicate(predicate or match_all)
        for index, item in self._indexed():
            if predicate(item, index, self):
                return item
        return resolve_default(default)

    def first(self, predicate: Optional[Callable[..., Any]] = None) -> Optional[T]:
        return self.first_or(None, predicate)

    def first_or_fail(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        item = self.first_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    def last_or(self, default: Any, predicate: Optional[Callable[..., Any]] = None) -> Any:
        predicate = Predicate(predicate or match_all)
        matched = MISSING
        for index, item in self._indexed():
            if predicate(item, index, self):
                matched = item
        if matched is MISSING:
            return resolve_default(default)
        return matched

    def last(self, predicate: Optional[Callable[..., Any]] = None) -> Optional[T]:
        return self.last_or(None, predicate)

    def last_or_fail(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        item = self.last_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    def before_or(self, default: Any, predicate: Callable[..., Any]) -> Any:
        """
        Returns the item right before the first match. When nothing matches,
        or the first match is the first item, `default` is returned.
        """
        predicate = Predicate(predicate)
        previous = MISSING
        for index, item in self._indexed():
            if predicate(item, index, self):
                if previous is MISSING:
                    break
                return previous
            previous = item
        return resolve_default(default)

    def before(self, predicate: Callable[..., Any]) -> Optional[T]:
        return self.before_or(None, predicate)

    def before_or_fail(self, predicate: Callable[..., Any]) -> T:
        item = self.before_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    def after_or(self, default: Any, predicate: Callable[..., Any]) -> Any:
        """Returns the item right after the first match, otherwise `default`."""
        predicate = Predicate(predicate)
        matched = False
        for index, item in self._indexed():
            if matched:
                return item
            matched = bool(predicate(item, index, self))
        return resolve_default(default)

    def after(self, predicate: Callable[..., Any]) -> Optional[T]:
        return self.after_or(None, predicate)

    def after_or_fail(self, predicate: Callable[..., Any]) -> T:
        item = self.after_or(MISSING, predicate)
        if item is MISSING:
            raise ItemNotFoundError("Item was not found")
        return item

    @translate_errors
    def sole(self, predicate: Optional[Callable[..., Any]] = None) -> T:
        """
        Returns the only matching item.

        Raises:
            ItemNotFoundError: If nothing matches.
            MultipleItemsFoundError: As soon as a second match is seen.
        """
        predicate = Predicate(predicate or match_all)
        matched = MISSING
        for index, item in self._indexed():
            if predicate(item, index, self):
                if matched is not MISSING:
                    raise MultipleItemsFoundError("Multiple items were found")
                matched = item
        if matched is MISSING:
            raise ItemNotFoundError("Item was not found")
        return matched

    @translate_errors
    def search(self, predicate: Callable[..., Any]) -> int:
        """Returns the index of the first match, or -1."""
        predicate = Predicate(predicate)
        for index, item in self._indexed():
            if predicate(item, index, self):
                return index
        return -1

    # --- Consumption ---

    @translate_errors
    def count(self, predicate: Optional[Callable[..., Any]] = None) -> int:
        predicate = Predicate(predicate or match_all)
        matches = 0
        for index, item in self._indexed():
            if predicate(item, index, self):
                matches += 1
        return matches

    @translate_errors
    def size(self) -> int:
        size = 0
        for _ in self:
            check_index(size, self.settings, what="Size")
            size += 1
        return size

    @translate_errors
    def empty(self) -> bool:
        for _ in self:
            return False
        return True

    def not_empty(self) -> bool:
        return not self.empty()

    @translate_errors
    def for_each(self, callback: Callable[..., Any]) -> None:
        callback = Callback(callback)
        for index, item in self._indexed():
            callback(item, index, self)

    @translate_errors
    def to_list(self) -> List[T]:
        return list(self)
