import json
import logging

from worklog.core.logging import JsonFormatter


def _record(**extra):
    record = logging.LogRecord("worklog.test", logging.INFO, __file__, 10, "entry %s", ("started",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_message_and_extras():
    line = JsonFormatter().format(_record(entry_id="e-1", user_id="u-1"))
    payload = json.loads(line)

    assert payload["message"] == "entry started"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "worklog.test"
    assert payload["service"] == "worklog"
    assert payload["extra"] == {"entry_id": "e-1", "user_id": "u-1"}


def test_json_formatter_omits_empty_extra():
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
    assert "exc_info" not in payload
