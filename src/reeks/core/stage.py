"""
This module defines the `Stage` and `AsyncStage` base classes.

A stage is one link of a pipeline: it holds the collection it was created
from (never a copy of its items) plus the configuration of a single
transformation, and produces its output one item at a time when iterated.
Stages never cache results; every traversal re-runs the chain from the source.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable, Iterator, List, Optional, Tuple

from .errors import CollectionError, wrap_error
from .log import get_logger
from .source import iterate_any
from .utils import check_index

if TYPE_CHECKING:
    from .async_collection import AsyncCollection
    from .collection import Collection


class Stage(ABC):
    """Base class for synchronous operator stages.

    Subclasses implement `_iterate`. Iteration goes through `_run`, which
    applies the library's error boundary and logs the stream's lifecycle.

    Attributes:
        collection: The collection the operator was invoked on. It is also
            the third argument handed to per-item callbacks.
        settings: The pipeline-wide settings inherited from `collection`.
    """

    name = "stage"

    def __init__(self, collection: "Collection"):
        self.collection = collection
        self.settings = collection.settings
        self.logger = get_logger(f"reeks.stage.{self.name}")

    @property
    def repeatable(self) -> bool:
        return self.collection.repeatable

    def __iter__(self) -> Iterator[Any]:
        return self._run()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}')"

    def _run(self) -> Iterator[Any]:
        self.logger.debug("stream_started")
        items_out = 0
        start_time = time.perf_counter()
        try:
            for item in self._iterate():
                items_out += 1
                yield item
        except CollectionError:
            raise
        except Exception as e:
            raise wrap_error(e) from e
        finally:
            self.logger.debug(
                "stream_finished",
                items_out=items_out,
                duration=round(time.perf_counter() - start_time, 4),
            )

    @abstractmethod
    def _iterate(self) -> Iterator[Any]:
        raise NotImplementedError

    def indexed(self, iterable: Optional[Iterable[Any]] = None) -> Iterator[Tuple[int, Any]]:
        """
        Pairs every item pulled from upstream with this stage's own index
        counter, which starts at 0 and is guarded by the settings.
        """
        index = 0
        for item in self.collection if iterable is None else iterable:
            check_index(index, self.settings)
            yield index, item
            index += 1

    def sized_upstream(self) -> Tuple[Iterable[Any], int]:
        """
        Returns an iterable over the upstream items and their count. A
        repeatable upstream is counted in a first pass; a single-use one is
        buffered for the length of this traversal.
        """
        if self.repeatable:
            return self.collection, self.collection.size()
        items = list(self.collection)
        self.logger.debug("single_use_source_buffered", items=len(items))
        return items, len(items)

    def group(self, items: List[Any]) -> "Collection":
        """Wraps `items` in a collection of the same kind and settings."""
        return type(self.collection)(items, settings=self.settings)


class AsyncStage(ABC):
    """Base class for asynchronous operator stages.

    Mirrors `Stage`; `_iterate` is an async generator, and callbacks may be
    plain functions or coroutine functions.
    """

    name = "stage"

    def __init__(self, collection: "AsyncCollection"):
        self.collection = collection
        self.settings = collection.settings
        self.logger = get_logger(f"reeks.stage.async.{self.name}")

    @property
    def repeatable(self) -> bool:
        return self.collection.repeatable

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._run()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}')"

    async def _run(self) -> AsyncIterator[Any]:
        self.logger.debug("stream_started")
        items_out = 0
        start_time = time.perf_counter()
        try:
            async with aclosing(self._iterate()) as items:
                async for item in items:
                    items_out += 1
                    yield item
        except CollectionError:
            raise
        except Exception as e:
            raise wrap_error(e) from e
        finally:
            self.logger.debug(
                "stream_finished",
                items_out=items_out,
                duration=round(time.perf_counter() - start_time, 4),
            )

    @abstractmethod
    def _iterate(self) -> AsyncIterator[Any]:
        raise NotImplementedError

    async def indexed(self, iterable: Optional[Any] = None) -> AsyncIterator[Tuple[int, Any]]:
        index = 0
        async for item in iterate_any(self.collection if iterable is None else iterable):
            check_index(index, self.settings)
            yield index, item
            index += 1

    async def sized_upstream(self) -> Tuple[Any, int]:
        if self.repeatable:
            return self.collection, await self.collection.size()
        items = await self.collection.to_list()
        self.logger.debug("single_use_source_buffered", items=len(items))
        return items, len(items)

    def group(self, items: List[Any]) -> "AsyncCollection":
        return type(self.collection)(items, settings=self.settings)
