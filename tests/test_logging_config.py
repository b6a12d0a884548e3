"""Unit tests for logging setup and masking."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def _record(msg, args=()):
    return logging.LogRecord('test', logging.INFO, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:

    def test_masks_authorization_header(self):
        record = _record("headers={'authorization': 'Bearer abc123'}")
        SensitiveDataFilter().filter(record)
        assert 'abc123' not in record.msg
        assert '***MASKED***' in record.msg

    def test_masks_token_in_args(self):
        record = _record('bridged %s', ('/bridge/x?token=s3cret&a=1',))
        SensitiveDataFilter().filter(record)
        assert 's3cret' not in record.args[0]
        assert 'a=1' in record.args[0]

    def test_leaves_plain_messages(self):
        record = _record('Stored upload 1700000000000-a.txt (3 bytes)')
        SensitiveDataFilter().filter(record)
        assert record.msg == 'Stored upload 1700000000000-a.txt (3 bytes)'


class TestSetupLogging:

    def test_single_handler(self):
        logger = setup_logging('dropserver-test-component', log_level='debug')
        assert logger.level == logging.DEBUG

        again = setup_logging('dropserver-test-component', log_level='warning')

        assert logger is again
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False
