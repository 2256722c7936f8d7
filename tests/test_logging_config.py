"""Tests for log masking and logger setup."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def make_record(msg, args=()):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


def test_masks_locator_ids():
    record = make_record("Opening http://app.test/?id=abc123&x=1")
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "Opening http://app.test/?id=***MASKED***&x=1"


def test_masks_storage_keys_in_args():
    record = make_record("Removing %s", ("airdrop_k3j4h5",))
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "Removing airdrop_***MASKED***"


def test_shortens_data_urls():
    record = make_record("payload data:text/plain;base64,YWJjZA== stored")
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "payload data:text/plain;base64,<8 chars> stored"


def test_leaves_plain_messages_alone():
    record = make_record("Resource cache installed successfully")
    assert SensitiveDataFilter().filter(record) is True
    assert record.getMessage() == "Resource cache installed successfully"


def test_setup_logging_is_idempotent():
    logger = setup_logging("airdrop-test-component", log_level="DEBUG")
    again = setup_logging("airdrop-test-component", log_level="DEBUG")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert isinstance(logger.handlers[0].filters[0], SensitiveDataFilter)
