"""Tests for logging configuration."""

import logging

from app.utils.logging import QUIET_LOGGERS, StructuredFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="app.services.subject_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Subject %s created",
        args=("MATH101",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_includes_extras():
    formatter = StructuredFormatter()

    output = formatter.format(_record(subject_id=3, specialist_ids=[1, 2]))

    assert 'level="INFO"' in output
    assert 'service="lms-subjects"' in output
    assert 'message="Subject MATH101 created"' in output
    assert 'subject_id="3"' in output
    assert 'specialist_ids="1,2"' in output


def test_structured_formatter_escapes_quotes():
    output = StructuredFormatter().format(_record(error='bad "value"'))

    assert 'error="bad \\"value\\""' in output


def test_setup_logging_caps_third_party_loggers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        setup_logging()

        assert len(root.handlers) == 1
        for name, level in QUIET_LOGGERS.items():
            assert logging.getLogger(name).level == level
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
