"""Unit tests for the JSON log line serializer."""
import json
from datetime import UTC, datetime
from types import SimpleNamespace

from fileguard.core.config import settings
from fileguard.core.log import log_serializer


def make_record(message="Check /site: starting", extra=None, exception=None) -> dict:
    return {
        "time": datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=UTC),
        "level": SimpleNamespace(name="INFO"),
        "name": "fileguard.core.runner",
        "message": message,
        "extra": extra or {},
        "exception": exception,
    }


class TestLogSerializer:
    def test_run_context_fields(self):
        line = json.loads(log_serializer(make_record(extra={"run_id": "01HX", "check_root": "/site"})))
        assert line == {
            "asctime": "2024-05-01 12:30:45,123",
            "levelname": "INFO",
            "name": "fileguard.core.runner",
            "message": "Check /site: starting",
            "run_id": "01HX",
            "check_root": "/site",
        }

    def test_outside_a_run_context_is_omitted(self):
        line = json.loads(log_serializer(make_record()))
        assert "run_id" not in line
        assert "check_root" not in line
        assert "correlation_id" not in line

    def test_long_message_is_truncated(self):
        line = json.loads(log_serializer(make_record(message="x" * (settings.LOG_MESSAGE_MAX_LEN + 50))))
        assert len(line["message"]) == settings.LOG_MESSAGE_MAX_LEN
        assert line["message"].endswith("...")

    def test_exception_is_summarized(self):
        exc = SimpleNamespace(type=PermissionError, value=PermissionError("denied"), traceback=None)
        line = json.loads(log_serializer(make_record(exception=exc)))
        assert line["exception"] == "PermissionError: denied"
