from __future__ import annotations

import json
import logging

import pytest
import structlog

from photovault.logging import configure_logging


@pytest.fixture()
def processors():
    configure_logging()
    yield structlog.get_config()["processors"]
    structlog.reset_defaults()


def test_exceptions_rendered_into_json(processors) -> None:
    assert structlog.processors.format_exc_info in processors
    logger = logging.getLogger("photovault.storage.delivery")

    try:
        raise OSError("disk went away")
    except OSError:
        event = {"event": "objects.delivery.stream_failed", "object": "abc", "exc_info": True}
        for processor in processors:
            event = processor(logger, "error", event)

    payload = json.loads(event)
    assert payload["event"] == "objects.delivery.stream_failed"
    assert payload["level"] == "error"
    assert payload["logger"] == "photovault.storage.delivery"
    assert "OSError: disk went away" in payload["exception"]
