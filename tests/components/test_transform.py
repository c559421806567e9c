import pytest

from reeks import Collection


class Recorder:
    """Counts calls and remembers the arguments a callback received."""

    def __init__(self, result=True):
        self.calls = []
        self.result = result

    def __call__(self, item, index, collection):
        self.calls.append((item, index, collection))
        return self.result if not callable(self.result) else self.result(item)


# --- Laziness ---


@pytest.mark.parametrize(
    "build",
    [
        lambda c, f: c.filter(f),
        lambda c, f: c.map(f),
        lambda c, f: c.flat_map(lambda x: [f(x, 0, c)]),
        lambda c, f: c.update(f, f),
        lambda c, f: c.take_until(f),
        lambda c, f: c.skip_while(f),
        lambda c, f: c.chunk_while(f),
        lambda c, f: c.partition(f),
        lambda c, f: c.group_by(f),
        lambda c, f: c.unique(f),
        lambda c, f: c.insert_before(f, [0]),
        lambda c, f: c.when(lambda col: f(None, 0, col), lambda col: col),
        lambda c, f: c.tap(lambda col: f(None, 0, col)),
    ],
)
def test_operators_do_not_call_callbacks_until_consumed(build):
    recorder = Recorder()
    collection = build(Collection([1, 2, 3]), recorder)
    assert recorder.calls == []
    collection.to_list()
    assert recorder.calls != []


def test_generator_source_is_not_pulled_before_a_terminal_operation():
    pulled = []

    def source():
        for i in range(3):
            pulled.append(i)
            yield i

    collection = Collection(source).map(lambda x: x * 2).filter(lambda x: x > 0)
    assert pulled == []
    assert collection.to_list() == [2, 4]
    assert pulled == [0, 1, 2]


# --- filter ---


def test_filter_index_fidelity():
    recorder = Recorder(result=False)
    Collection(["a", "bc", "c", "a", "d", "a"]).filter(recorder).to_list()
    assert [index for _, index, _ in recorder.calls] == [0, 1, 2, 3, 4, 5]


def test_filter_receives_the_collection_it_was_called_on():
    recorder = Recorder()
    collection = Collection([1, 2])
    collection.filter(recorder).to_list()
    assert all(received is collection for _, _, received in recorder.calls)


def test_filter_keeps_matching_items():
    assert Collection(range(10)).filter(lambda x: x % 3 == 0).to_list() == [0, 3, 6, 9]


def test_chained_filters_count_their_own_indexes():
    seen = []
    Collection(range(6)).filter(lambda x: x % 2 == 0).filter(lambda x, i: seen.append(i) or True).to_list()
    assert seen == [0, 1, 2]


# --- map / flat_map / update ---


def test_map_with_index():
    assert Collection(["a", "b"]).map(lambda item, index: f"{index}{item}").to_list() == ["0a", "1b"]


def test_map_with_builtins_taking_optional_arguments():
    assert Collection([[1, 2], [3], [4]]).map(sum).to_list() == [3, 3, 4]
    assert Collection([1.26, 2.55, 3.777]).map(round).to_list() == [1, 3, 4]


def test_for_each_with_varargs_callback_receives_only_the_item():
    seen = []
    Collection(["a", "b"]).for_each(lambda *args: seen.append(args))
    assert seen == [("a",), ("b",)]


def test_flat_map_splices_sub_sequences():
    result = Collection(["ab", "c"]).flat_map(lambda text: list(text)).to_list()
    assert result == ["a", "b", "c"]


def test_flat_map_with_empty_results():
    assert Collection([1, 2]).flat_map(lambda x: []).to_list() == []


def test_update_maps_only_matching_items():
    result = Collection([1, "a", 2, "b"]).update(lambda x: isinstance(x, str), lambda x: x.upper()).to_list()
    assert result == [1, "A", 2, "B"]


# --- collapse ---


def test_collapse_flattens_one_level():
    result = Collection([[1, 2], [3, [4]], 5, (6,)]).collapse().to_list()
    assert result == [1, 2, 3, [4], 5, 6]


def test_collapse_keeps_strings_and_mappings_whole():
    result = Collection(["ab", {"k": 1}, b"xy"]).collapse().to_list()
    assert result == ["ab", {"k": 1}, b"xy"]


def test_collapse_flattens_collections():
    result = Collection([Collection([1, 2]), 3]).collapse().to_list()
    assert result == [1, 2, 3]


# --- Idempotence ---


@pytest.mark.parametrize(
    "terminal",
    [
        lambda c: c.to_list(),
        lambda c: c.sum(),
        lambda c: c.first(),
        lambda c: c.last(),
        lambda c: c.size(),
        lambda c: c.median(),
    ],
)
def test_terminal_operations_are_idempotent(terminal):
    collection = Collection(lambda: iter([3, 1, 2])).map(lambda x: x * 10)
    assert terminal(collection) == terminal(collection)


def test_iterator_returns_a_fresh_iterator():
    collection = Collection([1, 2]).map(lambda x: x + 1)
    iterator = collection.iterator()
    assert next(iterator) == 2
    assert list(collection.iterator()) == [2, 3]
