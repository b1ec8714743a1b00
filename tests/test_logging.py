import json
import logging
import sys

import pytest
import structlog

from fleetplane.core.errors import ConfigurationError
from fleetplane.logging import configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logging.basicConfig(level=logging.WARNING, stream=sys.__stderr__, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def test_json_logs_go_to_stderr(capsys):
    configure_logging("WARNING", json_logs=True)
    logger = structlog.get_logger("fleetplane.tests")

    logger.info("dropped_below_level")
    logger.warning("work_timed_out", work_id="work-1")

    captured = capsys.readouterr()
    assert captured.out == ""
    lines = [json.loads(line) for line in captured.err.splitlines() if line.strip()]
    assert [line["event"] for line in lines] == ["work_timed_out"]
    assert lines[0]["level"] == "warning"
    assert lines[0]["work_id"] == "work-1"
    assert "timestamp" in lines[0]


def test_console_logs_go_to_stderr(capsys):
    configure_logging(logging.DEBUG, json_logs=False)

    structlog.get_logger("fleetplane.tests").debug("poll_tick", attempt=2)

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "poll_tick" in captured.err
    assert "attempt" in captured.err


def test_unknown_level_is_configuration_error():
    with pytest.raises(ConfigurationError) as excinfo:
        configure_logging("bogus")

    assert "bogus" in excinfo.value.message
    assert "DEBUG" in excinfo.value.details["choices"]


@pytest.mark.parametrize(
    "level, expected",
    [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        ("CRITICAL", logging.CRITICAL),
        (logging.ERROR, logging.ERROR),
    ],
)
def test_resolve_level(level, expected):
    assert resolve_level(level) == expected
