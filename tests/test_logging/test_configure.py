import io
import json

import pytest
import structlog

from runwatch.config import LoggingConfig
from runwatch.exceptions import ConfigurationError
from runwatch.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_format_writes_one_object_per_event():
    stream = io.StringIO()
    configure_logging(LoggingConfig(level="INFO", format="json"), stream=stream)

    get_logger("runwatch.test").info("Specs changed", project="abc123")

    record = json.loads(stream.getvalue().strip())
    assert record["event"] == "Specs changed"
    assert record["project"] == "abc123"
    assert record["level"] == "info"
    assert "timestamp" in record


def test_level_filters_lower_events():
    stream = io.StringIO()
    configure_logging(LoggingConfig(level="warning", format="json"), stream=stream)
    logger = get_logger("runwatch.test")

    logger.debug("Polling for specs")
    logger.info("Watching runs")
    logger.warning("cloudProjectBySlug invalidation failed")

    lines = stream.getvalue().strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["cloudProjectBySlug invalidation failed"]


def test_console_format_is_the_default():
    stream = io.StringIO()
    configure_logging(stream=stream)

    get_logger("runwatch.test").info("Watching runs")

    assert "Watching runs" in stream.getvalue()


@pytest.mark.parametrize(
    "config",
    [LoggingConfig(level="LOUD"), LoggingConfig(format="xml")],
)
def test_unknown_level_or_format_is_a_configuration_error(config):
    with pytest.raises(ConfigurationError):
        configure_logging(config, stream=io.StringIO())
