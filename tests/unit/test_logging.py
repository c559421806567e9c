import pytest
from structlog.testing import capture_logs

from reeks import AsyncCollection, Collection, CollectionSettings, NumberOverflowError, UnexpectedCollectionError
from reeks.core.log import get_logger


def events(logs, name):
    return [entry for entry in logs if entry["event"] == name]


def test_get_logger_returns_a_bound_logger():
    logger = get_logger("reeks.test")
    assert hasattr(logger, "info")
    assert hasattr(logger, "bind")


def test_collection_created_is_logged():
    with capture_logs() as logs:
        Collection([1, 2])
    created = events(logs, "collection_created")
    assert created[0]["kind"] == "iterable"
    assert created[0]["repeatable"] is True
    assert created[0]["log_level"] == "debug"


def test_stage_stream_lifecycle_is_logged():
    with capture_logs() as logs:
        Collection([1, 2, 3]).filter(lambda x: x > 1).to_list()
    assert len(events(logs, "stream_started")) == 1
    finished = events(logs, "stream_finished")
    assert finished[0]["items_out"] == 2
    assert "duration" in finished[0]


def test_constructing_operators_logs_no_stream_events():
    with capture_logs() as logs:
        Collection([1, 2, 3]).map(lambda x: x).filter(lambda x: True)
    assert events(logs, "stream_started") == []


def test_wrapped_error_is_logged_as_warning():
    with capture_logs() as logs:
        with pytest.raises(UnexpectedCollectionError):
            Collection([1]).map(lambda x: x / 0).to_list()
    errors = events(logs, "item_error")
    assert len(errors) == 1
    assert errors[0]["log_level"] == "warning"
    assert errors[0]["error_type"] == "ZeroDivisionError"


def test_number_limit_reached_is_logged():
    settings = CollectionSettings(throw_on_number_limit=True, index_limit=1)
    with capture_logs() as logs:
        with pytest.raises(NumberOverflowError):
            Collection([1, 2], settings=settings).map(lambda x: x).to_list()
    reached = events(logs, "number_limit_reached")
    assert reached[0]["counter"] == "Index"
    assert reached[0]["limit"] == 1


def test_single_use_buffering_is_logged():
    with capture_logs() as logs:
        Collection(iter([1, 2, 3])).take(-1).to_list()
    assert len(events(logs, "single_use_source_buffered")) == 1


@pytest.mark.asyncio
async def test_async_stage_lifecycle_is_logged():
    with capture_logs() as logs:
        await AsyncCollection([1, 2, 3]).map(lambda x: x * 2).to_list()
    finished = events(logs, "stream_finished")
    assert finished[0]["items_out"] == 3
