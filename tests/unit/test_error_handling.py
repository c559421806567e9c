import pytest

from reeks import (
    Collection,
    CollectionError,
    CollectionSettings,
    InvalidTypeError,
    ItemNotFoundError,
    MultipleItemsFoundError,
    NumberOverflowError,
    NumberUnderflowError,
    UnexpectedCollectionError,
)
from reeks.core.errors import translate_errors, wrap_error


class MyException(Exception):
    pass


def failing_mapper(x):
    if x == 2:
        raise MyException("I failed on 2!")
    return x


def failing_source():
    yield 1
    raise MyException("source broke")


# --- Taxonomy ---


@pytest.mark.parametrize(
    "error_type",
    [
        UnexpectedCollectionError,
        NumberOverflowError,
        NumberUnderflowError,
        ItemNotFoundError,
        MultipleItemsFoundError,
        InvalidTypeError,
    ],
)
def test_every_library_error_is_a_collection_error(error_type):
    assert issubclass(error_type, CollectionError)


def test_number_errors_are_unexpected_errors():
    assert issubclass(NumberOverflowError, UnexpectedCollectionError)
    assert issubclass(NumberUnderflowError, UnexpectedCollectionError)


def test_error_keeps_message_and_cause():
    cause = ValueError("bad")
    error = UnexpectedCollectionError("wrapped", cause)
    assert error.message == "wrapped"
    assert error.cause is cause
    assert str(error) == "wrapped"


# --- wrap_error / translate_errors ---


def test_wrap_error_passes_library_errors_through():
    error = ItemNotFoundError("missing")
    assert wrap_error(error) is error


def test_wrap_error_wraps_foreign_errors():
    cause = KeyError("k")
    wrapped = wrap_error(cause)
    assert type(wrapped) is UnexpectedCollectionError
    assert wrapped.cause is cause


def test_translate_errors_sync():
    @translate_errors
    def boom():
        raise MyException("boom")

    with pytest.raises(UnexpectedCollectionError) as info:
        boom()
    assert isinstance(info.value.__cause__, MyException)
    assert isinstance(info.value.cause, MyException)


@pytest.mark.asyncio
async def test_translate_errors_async():
    @translate_errors
    async def boom():
        raise MyException("boom")

    with pytest.raises(UnexpectedCollectionError) as info:
        await boom()
    assert isinstance(info.value.cause, MyException)


# --- The boundary on collections ---


def test_callback_error_is_wrapped_once():
    collection = Collection([1, 2, 3]).map(failing_mapper).filter(lambda x: True).map(lambda x: x)
    with pytest.raises(UnexpectedCollectionError) as info:
        collection.to_list()
    assert isinstance(info.value.cause, MyException)
    assert not isinstance(info.value.cause, CollectionError)


def test_source_error_is_wrapped():
    with pytest.raises(UnexpectedCollectionError) as info:
        Collection(failing_source).to_list()
    assert isinstance(info.value.cause, MyException)


def test_library_error_from_callback_propagates_unchanged():
    def strict(x):
        raise ItemNotFoundError("nope")

    with pytest.raises(ItemNotFoundError):
        Collection([1]).map(strict).to_list()


def test_terminal_callback_error_is_wrapped():
    with pytest.raises(UnexpectedCollectionError):
        Collection([1, 2, 3]).some(lambda x: 1 / 0)


def test_catching_the_root_error_catches_everything():
    operations = [
        lambda: Collection([1, "a"]).sum(),
        lambda: Collection([]).first_or_fail(),
        lambda: Collection([1, 1]).sole(lambda x: x == 1),
        lambda: Collection([1, 2]).map(failing_mapper).to_list(),
        lambda: Collection([]).reduce(lambda a, b: a + b),
    ]
    for operation in operations:
        with pytest.raises(CollectionError):
            operation()


def test_sliding_raises_not_implemented_immediately():
    with pytest.raises(NotImplementedError):
        Collection([1, 2, 3]).sliding(2)


def test_iterating_directly_applies_the_boundary():
    with pytest.raises(UnexpectedCollectionError):
        list(Collection([1, 2, 3]).map(failing_mapper))


# --- Overflow guards ---


def test_index_overflow_when_guard_enabled():
    settings = CollectionSettings(throw_on_number_limit=True, index_limit=3)
    collection = Collection(range(10), settings=settings).map(lambda x: x)
    with pytest.raises(NumberOverflowError):
        collection.to_list()


def test_index_limit_ignored_when_guard_disabled():
    settings = CollectionSettings(index_limit=3)
    assert Collection(range(10), settings=settings).map(lambda x: x).size() == 10


def test_index_guard_allows_exactly_limit_items():
    settings = CollectionSettings(throw_on_number_limit=True, index_limit=3)
    assert Collection([1, 2, 3], settings=settings).filter(lambda x: True).to_list() == [1, 2, 3]


def test_sum_overflow():
    settings = CollectionSettings(throw_on_number_limit=True, number_limit=10)
    with pytest.raises(NumberOverflowError):
        Collection([4, 4, 4], settings=settings).sum()


def test_sum_within_limit():
    settings = CollectionSettings(throw_on_number_limit=True, number_limit=10)
    assert Collection([4, 4, 2], settings=settings).sum() == 10


def test_sum_underflow():
    settings = CollectionSettings(throw_on_number_limit=True, number_limit=10)
    with pytest.raises(NumberUnderflowError):
        Collection([-6, -6], settings=settings).sum()


def test_average_overflow():
    settings = CollectionSettings(throw_on_number_limit=True, number_limit=10)
    with pytest.raises(NumberOverflowError):
        Collection([9, 9], settings=settings).average()


def test_overflow_is_catchable_as_unexpected():
    settings = CollectionSettings(throw_on_number_limit=True, number_limit=1)
    with pytest.raises(UnexpectedCollectionError):
        Collection([1, 1], settings=settings).sum()
