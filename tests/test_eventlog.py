"""Tests for the JSON Lines event log."""

import json
import tempfile
from pathlib import Path

from workspace_mcp.eventlog import EventLog, _sanitize_arguments, preview


def read_records(log_path: Path) -> list[dict]:
    return [json.loads(line) for line in log_path.read_text().splitlines()]


class TestSanitizeArguments:
    """Tests for argument redaction."""

    def test_redacts_sensitive_keys(self):
        """Should redact values whose key looks like a secret."""
        sanitized = _sanitize_arguments({"query": "weather", "api_key": "abc", "Password": "hunter2"})

        assert sanitized == {"query": "weather", "api_key": "[REDACTED]", "Password": "[REDACTED]"}

    def test_redacts_nested_values(self):
        """Should redact inside nested dicts and lists."""
        sanitized = _sanitize_arguments({"items": [{"auth_token": "t", "name": "a"}], "opts": {"secret": 1}})

        assert sanitized == {"items": [{"auth_token": "[REDACTED]", "name": "a"}], "opts": {"secret": "[REDACTED]"}}

    def test_leaves_non_dicts_alone(self):
        """Should return scalars unchanged."""
        assert _sanitize_arguments("plain") == "plain"
        assert _sanitize_arguments(None) is None

    def test_does_not_mutate_input(self):
        """Should return a copy."""
        arguments = {"token": "keep-me"}
        _sanitize_arguments(arguments)
        assert arguments == {"token": "keep-me"}


class TestPreview:
    """Tests for payload previews."""

    def test_short_text_unchanged(self):
        """Should keep text within the limit."""
        assert preview("short", 10) == "short"

    def test_truncates_long_text(self):
        """Should cut at the limit and mark the cut."""
        assert preview("abcdefghij", 4) == "abcd..."

    def test_decodes_bytes(self):
        """Should accept raw bytes."""
        assert preview(b"\xffok", 10) == "�ok"


class TestEventLog:
    """Tests for EventLog."""

    def test_disabled_without_path(self):
        """Should be a no-op without a log path."""
        log = EventLog()

        assert not log.enabled
        log.log_server("started", "/w", 1234)
        log.close()

    def test_creates_log_directory_if_missing(self):
        """Should create the parent directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "subdir" / "events.jsonl"
            log = EventLog(log_path)

            assert log_path.parent.exists()
            assert log.enabled
            log.close()

    def test_records_are_json_lines(self):
        """Should write one JSON object per line with a timestamp."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "events.jsonl"
            with EventLog(log_path) as log:
                log.log_server("started", "/work/project", 4000)
                log.log_connection("connected", 1, peer="('127.0.0.1', 5000)")

            records = read_records(log_path)

        assert [r["type"] for r in records] == ["server", "connection"]
        assert records[0]["workspace"] == "/work/project"
        assert records[0]["port"] == 4000
        assert records[1]["peer"] == "('127.0.0.1', 5000)"
        assert all(r["timestamp"].endswith("Z") for r in records)

    def test_message_payload_is_truncated(self):
        """Should keep only a preview of message payloads."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "events.jsonl"
            with EventLog(log_path, preview_chars=8) as log:
                log.log_message("recv", 3, '{"jsonrpc":"2.0","id":1}')

            (record,) = read_records(log_path)

        assert record["direction"] == "recv"
        assert record["session_id"] == 3
        assert record["payload"] == '{"jsonrp...'

    def test_tool_call_arguments_are_sanitized(self):
        """Should never write secrets to the log."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "events.jsonl"
            with EventLog(log_path) as log:
                log.log_tool_call(7, "deploy", {"target": "prod", "token": "s3cr3t"})
                log.log_tool_result(7, "success", 12.5)

            content = log_path.read_text()
            call, result = read_records(log_path)

        assert "s3cr3t" not in content
        assert call["arguments"] == {"target": "prod", "token": "[REDACTED]"}
        assert result == {
            "type": "tool_result",
            "request_id": 7,
            "result_status": "success",
            "execution_time_ms": 12.5,
            "timestamp": result["timestamp"],
        }

    def test_appends_to_existing_file(self):
        """Should keep earlier records."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "events.jsonl"
            with EventLog(log_path) as log:
                log.log_server("started", "/a", 1)
            with EventLog(log_path) as log:
                log.log_server("stopped", "/a", 1)

            assert [r["event"] for r in read_records(log_path)] == ["started", "stopped"]

    def test_writes_after_close_are_ignored(self):
        """Should not fail when used after close."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "events.jsonl"
            log = EventLog(log_path)
            log.close()
            log.log_server("started", "/a", 1)

            assert log_path.read_text() == ""
