"""
This module provides the running accumulators behind the numeric terminal
operations (`sum`, `average`, `median`, `min`, `max` and their `*_bigint`
counterparts).

The accumulators hold no reference to a collection; they are fed one item at
a time, so the sync and async collections drive the same arithmetic from a
plain `for` or an `async for` loop.
"""
from __future__ import annotations

from typing import Any, Callable, List

from ..config import CollectionSettings
from ..core.utils import Number, add_guarded, check_index, ensure_bigint, ensure_number, truncated_div


class NumberKind:
    """
    The element type a numeric operation requires and how it divides.

    Args:
        ensure: Returns the item unchanged or raises `InvalidTypeError`.
        divide: The division used by averages and even-length medians.
        guarded: Whether sums of this kind honour the number limit.
    """

    def __init__(self, ensure: Callable[[Any], Any], divide: Callable[[Any, Any], Any], guarded: bool):
        self.ensure = ensure
        self.divide = divide
        self.guarded = guarded


def _true_div(dividend: Number, divisor: Number) -> Number:
    return dividend / divisor


NUMBER = NumberKind(ensure_number, _true_div, guarded=True)
# Python ints never overflow, so only the type check applies.
BIGINT = NumberKind(ensure_bigint, truncated_div, guarded=False)


class SumAccumulator:
    """Keeps a running total and count for `sum` and `average`."""

    def __init__(self, kind: NumberKind, settings: CollectionSettings, what: str = "Sum"):
        self.kind = kind
        self.settings = settings
        self.what = what
        self.total: Any = 0
        self.count = 0

    def push(self, item: Any) -> None:
        item = self.kind.ensure(item)
        check_index(self.count, self.settings, what="Size")
        if self.kind.guarded:
            self.total = add_guarded(self.total, item, self.settings, what=self.what)
        else:
            self.total = self.total + item
        self.count += 1

    def average(self) -> Any:
        return self.kind.divide(self.total, self.count)


class ExtremumAccumulator:
    """
    Running minimum or maximum.

    The running value starts at zero, and a zero running value is always
    replaced by the next item. After that it only changes on a strictly
    better item. Consequently an input whose extremum is zero reports the
    item that follows it instead, and a `max` over negative items that are
    interleaved with a zero can differ from the true maximum.
    """

    def __init__(self, kind: NumberKind, better: Callable[[Any, Any], bool]):
        self.kind = kind
        self.better = better
        self.value: Any = 0

    def push(self, item: Any) -> None:
        item = self.kind.ensure(item)
        if self.value == 0 or self.better(item, self.value):
            self.value = item


def median_of(items: List[Any], kind: NumberKind) -> Any:
    """
    The central item of `items`, or the mean of the two central items for an
    even length. Every item is type checked first; an empty list gives 0.
    """
    for item in items:
        kind.ensure(item)
    size = len(items)
    if size == 0:
        return 0
    middle = size // 2
    if size % 2 == 0:
        return kind.divide(items[middle - 1] + items[middle], 2)
    return items[middle]


def percentage_of(part: int, total: int) -> float:
    if total == 0:
        return 0
    return part / total * 100
