import json
import logging

from certchain_app.logging_config import JsonFormatter, configure_logging


def _record(**extra):
    record = logging.LogRecord("certchain_app.app", logging.INFO, __file__, 1, "GET %s -> %s",
                               ("/health", 200), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_fields():
    line = JsonFormatter().format(_record(request_id="abc", route="/health", status=200))
    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "certchain_app.app"
    assert payload["msg"] == "GET /health -> 200"
    assert payload["request_id"] == "abc"
    assert payload["route"] == "/health"
    assert payload["status"] == 200
    assert "remote_addr" not in payload


def test_configure_logging_writes_json_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "certchain.log"
    try:
        configure_logging("warning", str(log_file))
        assert root.level == logging.WARNING
        logging.getLogger("certchain_app.test").warning("ledger offline")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)

    payload = json.loads(log_file.read_text().splitlines()[-1])
    assert payload["msg"] == "ledger offline"
    assert payload["level"] == "WARNING"
