"""Logging setup tests"""

import logging

import pytest
from loguru import logger

from pairstats.core.logging import batch_context, get_logger, resolve_level


@pytest.fixture
def captured():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG", format="{message}")
    try:
        yield records
    finally:
        logger.remove(sink_id)


@pytest.mark.parametrize(
    "raw, expected",
    [("debug", "DEBUG"), (" warn ", "WARNING"), ("fatal", "CRITICAL"), ("verbose", "INFO"), (None, "INFO")],
)
def test_resolve_level(raw, expected):
    assert resolve_level(raw) == expected


def test_batch_context_tags_records(captured):
    log = get_logger("services.pipeline")
    with batch_context("pairstats", 100, 105):
        log.info("inside")
    log.info("outside")

    inside, outside = captured
    assert inside["extra"]["blocks"] == "100-105"
    assert inside["extra"]["processor"] == "pairstats"
    assert inside["extra"]["name"] == "services.pipeline"
    assert outside["extra"]["blocks"] == "-"


def test_stdlib_records_are_intercepted(captured):
    logging.getLogger("alembic").warning("migrating")

    [record] = captured
    assert record["message"] == "migrating"
    assert record["level"].name == "WARNING"
    assert record["extra"]["name"] == "alembic"
