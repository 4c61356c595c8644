import json
import logging
import sys

from shared.logging.json import CustomJsonFormatter, SensitiveDataFilter
from shared.logging.logger import get_logger, is_configured


def _record(msg="snapshot_reduced", exc_info=None, **extra):
    record = logging.LogRecord("svc", logging.WARNING, __file__, 10, msg, (), exc_info)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_formatter_emits_core_fields_and_extras():
    fmt = CustomJsonFormatter("traffic-monitor", "testing", ["secret"])
    data = json.loads(fmt.format(_record(series=4, api_secret="s3cr3t")))
    assert data["level"] == "WARNING"
    assert data["logger"] == "svc"
    assert data["message"] == "snapshot_reduced"
    assert data["service"] == "traffic-monitor"
    assert data["environment"] == "testing"
    assert data["series"] == 4
    assert data["api_secret"] == "[REDACTED]"
    assert "args" not in data
    assert "msg" not in data


def test_formatter_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        exc_info = sys.exc_info()
    fmt = CustomJsonFormatter("svc", "production", [])
    data = json.loads(fmt.format(_record(exc_info=exc_info)))
    assert data["exception"]["type"] == "RuntimeError"
    assert data["exception"]["message"] == "boom"
    assert data["exception"]["stack"]


def test_sensitive_filter_recurses():
    out = SensitiveDataFilter(["token"]).filter(
        {"auth": {"Token": "abc", "user": "u"}, "n": 1}
    )
    assert out == {"auth": {"Token": "[REDACTED]", "user": "u"}, "n": 1}


def test_shared_get_logger_marks_configured():
    logger = get_logger("shared.test")
    assert logger.propagate is True
    assert is_configured()
