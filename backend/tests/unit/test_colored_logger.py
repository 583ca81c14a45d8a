"""Unit tests for the search pipeline logger."""

import logging

import pytest

from app.infrastructure.logging.colored_logger import PipelineLogger, SearchStage


def test_stage_traces_are_debug_only(caplog):
    plog = PipelineLogger("tests.pipeline")

    with caplog.at_level(logging.INFO, logger="tests.pipeline"):
        plog.step(SearchStage.CACHE, "Cache hit", key="abc")
    assert caplog.records == []

    with caplog.at_level(logging.DEBUG, logger="tests.pipeline"):
        plog.step(SearchStage.CACHE, "Cache hit", key="abc")
    assert "[CACHE]" in caplog.text
    assert "key=abc" in caplog.text


def test_timed_step_logs_failure_and_reraises(caplog):
    plog = PipelineLogger("tests.pipeline")

    with caplog.at_level(logging.INFO, logger="tests.pipeline"):
        with pytest.raises(ConnectionError):
            with plog.timed_step(SearchStage.EXECUTE, "Querying store"):
                raise ConnectionError("password=hunter2")

    (record,) = caplog.records
    assert record.levelno == logging.ERROR
    assert "[EXECUTE]" in record.getMessage()
    assert "Querying store failed after" in record.getMessage()
    assert "ConnectionError" in record.getMessage()
    assert "hunter2" not in record.getMessage()


def test_step_complete_is_info(caplog):
    plog = PipelineLogger("tests.pipeline")

    with caplog.at_level(logging.INFO, logger="tests.pipeline"):
        plog.step_complete(SearchStage.COMPLETE, "Search finished", total=3)

    assert "Search finished" in caplog.text
    assert "total=3" in caplog.text
