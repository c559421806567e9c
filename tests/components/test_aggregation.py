import pytest

from reeks import Collection, InvalidTypeError, UnexpectedCollectionError


# --- reduce ---


def test_reduce_with_seed():
    assert Collection([1, 2, 3]).reduce(lambda total, item: total + item, 10) == 16


def test_reduce_without_seed_uses_the_first_item():
    assert Collection([1, 2, 3]).reduce(lambda total, item: total + item) == 6


def test_reduce_without_seed_numbers_the_second_item_zero():
    indexes = []

    def reducer(total, item, index):
        indexes.append(index)
        return total + item

    Collection([10, 20, 30]).reduce(reducer)
    assert indexes == [0, 1]


def test_reduce_with_seed_numbers_from_the_first_item():
    indexes = []
    Collection([10, 20]).reduce(lambda total, item, index: indexes.append(index) or total, 0)
    assert indexes == [0, 1]


def test_reduce_of_empty_without_seed_raises_invalid_type():
    with pytest.raises(InvalidTypeError):
        Collection([]).reduce(lambda total, item: total + item)


def test_reduce_of_empty_with_seed_returns_the_seed():
    assert Collection([]).reduce(lambda total, item: total + item, 5) == 5


def test_reduce_accepts_none_as_seed():
    assert Collection([1]).reduce(lambda total, item: (total, item), None) == (None, 1)


def test_reduce_over_a_single_use_source_consumes_it_once():
    assert Collection(iter([1, 2, 3])).reduce(lambda total, item: total * item) == 6


# --- join ---


def test_join_default_separator():
    assert Collection(["a", "b", "c"]).join() == "a,b,c"


def test_join_custom_separator():
    assert Collection(["a", "b", "c"]).join("_#_") == "a_#_b_#_c"


def test_join_single_item():
    assert Collection(["a"]).join() == "a"


@pytest.mark.parametrize("items", [["a", 1], [1, "a"]])
def test_join_rejects_non_strings(items):
    with pytest.raises(InvalidTypeError):
        Collection(items).join()


# --- sum / average ---


def test_sum():
    assert Collection([1, 2, 3.5]).sum() == 6.5
    assert Collection([]).sum() == 0


def test_sum_rejects_non_numbers():
    with pytest.raises(InvalidTypeError):
        Collection([1, "2"]).sum()


def test_sum_rejects_bools():
    with pytest.raises(InvalidTypeError):
        Collection([1, True]).sum()


def test_average():
    assert Collection([1, 2, 3, 4]).average() == 2.5


def test_average_of_empty_raises_unexpected_error():
    with pytest.raises(UnexpectedCollectionError) as info:
        Collection([]).average()
    assert isinstance(info.value.cause, ZeroDivisionError)


# --- median ---


def test_median_odd():
    assert Collection([1, 5, 3]).median() == 5


def test_median_even():
    assert Collection([1, 2, 3, 4]).median() == 2.5


def test_median_empty_is_zero():
    assert Collection([]).median() == 0


def test_median_checks_every_item():
    with pytest.raises(InvalidTypeError):
        Collection([1, 2, "x"]).median()


# --- min / max ---


def test_min_and_max():
    assert Collection([3, 1, 2]).min() == 1
    assert Collection([3, 1, 2]).max() == 3


def test_min_and_max_of_empty_are_zero():
    assert Collection([]).min() == 0
    assert Collection([]).max() == 0


def test_all_negative_max_starts_from_the_first_item():
    assert Collection([-3, -1, -2]).max() == -1


def test_zero_running_value_is_replaced_by_the_next_item():
    assert Collection([5, 0, 7, 3]).min() == 3
    assert Collection([-5, 0, -7]).max() == -7


def test_min_rejects_non_numbers():
    with pytest.raises(InvalidTypeError):
        Collection([1, None]).min()


# --- bigint counterparts ---


def test_sum_bigint():
    big = 2**80
    assert Collection([big, big]).sum_bigint() == 2**81


def test_bigint_operations_reject_floats():
    with pytest.raises(InvalidTypeError):
        Collection([1, 2.0]).sum_bigint()


def test_average_bigint_truncates_toward_zero():
    assert Collection([1, 2]).average_bigint() == 1
    assert Collection([-1, -2]).average_bigint() == -1


def test_median_bigint():
    assert Collection([1, 2, 3, 4]).median_bigint() == 2
    assert Collection([]).median_bigint() == 0


def test_min_and_max_bigint():
    assert Collection([4, 2, 9]).min_bigint() == 2
    assert Collection([4, 2, 9]).max_bigint() == 9


# --- percentage / some / every ---


def test_percentage():
    assert Collection([1, 2, 3, 4]).percentage(lambda x: x > 3) == 25


def test_percentage_of_empty_is_zero():
    assert Collection([]).percentage(lambda x: True) == 0


def test_some_stops_at_the_first_match():
    seen = []
    assert Collection([1, 2, 3]).some(lambda x: seen.append(x) or x == 2) is True
    assert seen == [1, 2]
    assert Collection([1, 2, 3]).some(lambda x: x > 5) is False


def test_every_stops_at_the_first_failure():
    seen = []
    assert Collection([1, 2, 3]).every(lambda x: seen.append(x) or x < 2) is False
    assert seen == [1, 2]
    assert Collection([1, 2, 3]).every(lambda x: x > 0) is True
    assert Collection([]).every(lambda x: False) is True
