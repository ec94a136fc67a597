import json
import logging

from dove_platform.logging_config import JsonFormatter, configure_logging


def test_json_formatter_includes_extras():
    record = logging.LogRecord("dove.manager", logging.WARNING, __file__, 10, "cache set failed", None, None)
    record.short_code = "abc123"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "dove.manager"
    assert payload["message"] == "cache set failed"
    assert payload["short_code"] == "abc123"
    assert payload["timestamp"].endswith("Z")


def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
