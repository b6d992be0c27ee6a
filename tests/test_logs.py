from __future__ import annotations

import json
import logging

import pytest

from apibinding import configure_logging
from apibinding._logs import REDACTED_PLACEHOLDER, get_logger, redact_sensitive


def test_redact_sensitive_keys() -> None:
    event = redact_sensitive(
        None,
        "info",
        {
            "event": "binding.created",
            "access_token": "abc",
            "Authorization": "Bearer abc",
            "client_secret": "s",
            "base_url": "https://api.example.com",
        },
    )
    assert event["event"] == "binding.created"
    assert event["access_token"] == REDACTED_PLACEHOLDER
    assert event["Authorization"] == REDACTED_PLACEHOLDER
    assert event["client_secret"] == REDACTED_PLACEHOLDER
    assert event["base_url"] == "https://api.example.com"


def test_configure_logging_renders_json(capsys: pytest.CaptureFixture[str]) -> None:
    package_logger = logging.getLogger("apibinding")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    try:
        configure_logging(log_format="json", log_level="DEBUG", force=True)
        get_logger("apibinding.test").debug("factory.lookup", registration_id="facebook", token="nope")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "factory.lookup"
        assert record["registration_id"] == "facebook"
        assert record["token"] == REDACTED_PLACEHOLDER
        assert record["level"] == "debug"
    finally:
        package_logger.handlers[:] = saved[0]
        package_logger.setLevel(saved[1])
        package_logger.propagate = saved[2]


def test_unconfigured_logger_drops_debug(capsys: pytest.CaptureFixture[str]) -> None:
    get_logger("apibinding.quiet.unconfigured").debug("binding.request")
    assert capsys.readouterr().out == ""
