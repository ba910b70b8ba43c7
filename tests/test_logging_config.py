"""
Tests for the logging setup: formatter output and credential redaction.
"""

import io
import json
import logging

import pytest

from uploader.logging_config import (
    JsonFormatter,
    TextFormatter,
    configure_logging,
    get_logger,
    redact,
)


def _record(**extra):
    record = logging.makeLogRecord({
        "name": "uploader.test",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": "Merged config options: applied=%s",
        "args": (["path"],),
    })
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_redact_masks_only_sensitive_fields():
    assert redact("s3_secret", "hunter2") == "***"
    assert redact("aws_access_key_id", "AKIA") == "***"
    assert redact("s3_bucket", "uploads") == "uploads"


def test_json_formatter_payload_and_redaction():
    output = JsonFormatter(service="uploader").format(_record(s3_secret="hunter2", s3_bucket="uploads"))
    payload = json.loads(output)

    assert payload["service"] == "uploader"
    assert payload["level"] == "INFO"
    assert payload["message"] == "Merged config options: applied=['path']"
    assert payload["context"] == {"s3_secret": "***", "s3_bucket": "uploads"}


def test_text_formatter_appends_sorted_extras():
    output = TextFormatter(service="uploader").format(_record(s3_key="AKIA", option_source="EnvOptionSource"))

    assert "service=uploader" in output
    assert "message=Merged config options: applied=['path']" in output
    assert output.endswith("option_source='EnvOptionSource' s3_key='***'")


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


def test_configure_logging_installs_single_handler(monkeypatch, restore_root_logger):
    monkeypatch.setenv("LOG_JSON", "true")
    stream = io.StringIO()

    configure_logging(level="debug", service="uploader.test", stream=stream)
    get_logger("uploader.test").debug("Set config s3 key", extra={"s3_key": "AKIA"})

    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.level == logging.DEBUG
    payload = json.loads(stream.getvalue().strip())
    assert payload["service"] == "uploader.test"
    assert payload["context"] == {"s3_key": "***"}


def test_configure_logging_unknown_level_falls_back_to_info(monkeypatch, restore_root_logger):
    monkeypatch.delenv("LOG_JSON", raising=False)
    stream = io.StringIO()

    configure_logging(level="chatty", stream=stream)

    assert restore_root_logger.level == logging.INFO
    assert isinstance(restore_root_logger.handlers[0].formatter, TextFormatter)


def test_configure_logging_defaults_to_stderr(capsys, monkeypatch, restore_root_logger):
    """stdout stays free for pipeline output."""
    monkeypatch.delenv("LOG_JSON", raising=False)

    configure_logging(level="info")
    get_logger("uploader.test").info("Merged config options: applied=%s", [])

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Merged config options: applied=[]" in captured.err
