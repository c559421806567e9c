import pytest

from reeks import Collection, UnexpectedCollectionError


# --- prepend / append ---


def test_prepend_and_append():
    collection = Collection([2, 3])
    assert collection.prepend([0, 1]).to_list() == [0, 1, 2, 3]
    assert collection.append([4]).to_list() == [2, 3, 4]


def test_append_another_collection():
    assert Collection([1]).append(Collection([2]).map(lambda x: x * 10)).to_list() == [1, 20]


def test_append_is_lazy_and_does_not_copy():
    tail = [3]
    collection = Collection([1]).append(tail)
    tail.append(4)
    assert collection.to_list() == [1, 3, 4]


# --- zip ---


def test_zip_truncates_to_the_shorter_side():
    assert Collection(["a", "b", "c"]).zip([1, 2, 3, 4]).to_list() == [("a", 1), ("b", 2), ("c", 3)]
    assert Collection([1, 2, 3, 4]).zip(["a", "b", "c"]).to_list() == [(1, "a"), (2, "b"), (3, "c")]


def test_zip_with_empty():
    assert Collection([1, 2]).zip([]).to_list() == []


# --- sort ---


def test_sort_natural_order():
    assert Collection([3, 1, 2]).sort().to_list() == [1, 2, 3]


def test_sort_with_comparator():
    assert Collection([3, 1, 2]).sort(lambda a, b: b - a).to_list() == [3, 2, 1]


def test_sort_with_key_and_reverse():
    words = Collection(["ccc", "a", "bb"])
    assert words.sort(key=len).to_list() == ["a", "bb", "ccc"]
    assert words.sort(key=len, reverse=True).to_list() == ["ccc", "bb", "a"]


def test_sort_does_not_touch_the_source():
    data = [2, 1]
    Collection(data).sort().to_list()
    assert data == [2, 1]


def test_sort_incomparable_items_raise_unexpected_error():
    with pytest.raises(UnexpectedCollectionError):
        Collection([1, "a"]).sort().to_list()


# --- reverse ---


@pytest.mark.parametrize("chunk_size", [None, 1, 2, 3, 100])
def test_reverse(chunk_size):
    assert Collection(range(10)).reverse(chunk_size).to_list() == list(range(9, -1, -1))


def test_reverse_uses_the_configured_chunk_size():
    collection = Collection(range(5)).with_settings(chunk_size=2).reverse()
    assert collection.to_list() == [4, 3, 2, 1, 0]


def test_reverse_empty():
    assert Collection([]).reverse().to_list() == []


# --- when / when_not / when_empty / when_not_empty ---


def test_when_with_bool():
    double = lambda c: c.map(lambda x: x * 2)
    assert Collection([1, 2]).when(True, double).to_list() == [2, 4]
    assert Collection([1, 2]).when(False, double).to_list() == [1, 2]
    assert Collection([1, 2]).when_not(False, double).to_list() == [2, 4]


def test_when_with_callable_condition():
    collection = Collection([1, 2, 3]).when(lambda c: c.size() > 2, lambda c: c.take(1))
    assert collection.to_list() == [1]


def test_when_with_zero_argument_condition():
    flags = {"on": True}
    collection = Collection([1, 2]).when(lambda: flags["on"], lambda c: c.take(1))
    assert collection.to_list() == [1]
    flags["on"] = False
    assert collection.to_list() == [1, 2]


def test_when_empty():
    fallback = lambda c: c.append(["empty"])
    assert Collection([]).when_empty(fallback).to_list() == ["empty"]
    assert Collection([1]).when_empty(fallback).to_list() == [1]


def test_when_not_empty():
    mark = lambda c: c.prepend(["items:"])
    assert Collection([1]).when_not_empty(mark).to_list() == ["items:", 1]
    assert Collection([]).when_not_empty(mark).to_list() == []


def test_when_condition_is_evaluated_on_each_traversal():
    data = []
    collection = Collection(data).when_empty(lambda c: c.append([0]))
    assert collection.to_list() == [0]
    data.append(5)
    assert collection.to_list() == [5]


# --- pipe / tap ---


def test_pipe_returns_the_callback_result_immediately():
    calls = []

    def summarize(collection):
        calls.append(collection)
        return collection.sum()

    collection = Collection([1, 2, 3])
    assert collection.pipe(summarize) == 6
    assert calls == [collection]


def test_pipe_wraps_foreign_errors():
    with pytest.raises(UnexpectedCollectionError):
        Collection([1]).pipe(lambda c: 1 / 0)


def test_tap_passes_items_through_unchanged():
    seen = []
    collection = Collection([1, 2]).tap(lambda c: seen.append(c.to_list())).map(lambda x: x + 1)
    assert seen == []
    assert collection.to_list() == [2, 3]
    assert seen == [[1, 2]]


def test_tap_return_value_is_ignored():
    assert Collection([1, 2]).tap(lambda c: c.map(lambda x: 0)).to_list() == [1, 2]
