"""Tests for audit logging functionality."""

import re
from pathlib import Path

from reading_queue import audit as ops
from reading_queue.audit import AuditLogger


class TestAuditLogger:
    """Test cases for AuditLogger class."""

    def test_creates_file_if_not_exists(self, tmp_path: Path) -> None:
        """Test that audit logger creates the log file if it doesn't exist."""
        log_path = tmp_path / "audit.log"
        assert not log_path.exists()

        logger = AuditLogger(log_path)
        logger.log("TEST", key="value")

        assert log_path.exists()

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Test that audit logger creates parent directories if needed."""
        log_path = tmp_path / "nested" / "dir" / "audit.log"
        assert not log_path.parent.exists()

        logger = AuditLogger(log_path)
        logger.log("TEST", key="value")

        assert log_path.exists()

    def test_appends_without_overwriting(self, tmp_path: Path) -> None:
        """Test that multiple log calls append rather than overwrite."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log(ops.QUEUE_CREATE, queue="Daily")
        logger.log(ops.ITEM_ADD, queue="Daily")
        logger.log(ops.NEXT, queue="Daily")

        lines = log_path.read_text().strip().split("\n")

        assert len(lines) == 3
        assert "[QUEUE_CREATE]" in lines[0]
        assert "[ITEM_ADD]" in lines[1]
        assert "[NEXT]" in lines[2]

    def test_correct_format_with_timestamp(self, tmp_path: Path) -> None:
        """Test that log format matches: ISO8601_TIMESTAMP [OPERATION] key=value."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log(ops.ITEM_ADD, queue="IncrementalReading/Daily.irqueue.json", type="note")

        content = log_path.read_text().strip()
        pattern = (
            r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z "
            r"\[ITEM_ADD\] queue=IncrementalReading/Daily\.irqueue\.json type=note$"
        )
        assert re.match(pattern, content), f"Log line doesn't match expected format: {content}"

    def test_values_with_spaces_are_quoted(self, tmp_path: Path) -> None:
        """Queue names with spaces stay one field."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log(ops.QUEUE_DELETE, queue="IncrementalReading/Deep Work.irqueue.json")

        assert 'queue="IncrementalReading/Deep Work.irqueue.json"' in log_path.read_text()

    def test_quotes_are_escaped(self, tmp_path: Path) -> None:
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log("TEST", name='say "hi"')

        assert 'name="say \\"hi\\""' in log_path.read_text()

    def test_none_values_excluded(self, tmp_path: Path) -> None:
        """Test that None values are excluded from log output."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log("TEST", present="yes", absent=None)

        content = log_path.read_text().strip()
        assert "present=yes" in content
        assert "absent" not in content

    def test_numeric_and_boolean_values(self, tmp_path: Path) -> None:
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log(ops.QUEUE_SAVE, items=3, scroll=1.5, ok=True)

        content = log_path.read_text().strip()
        assert "items=3 scroll=1.5 ok=True" in content

    def test_empty_kwargs(self, tmp_path: Path) -> None:
        """Test logging with no key-value pairs."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log("TEST")

        content = log_path.read_text().strip()
        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[TEST\]$"
        assert re.match(pattern, content), f"Log line doesn't match expected format: {content}"

    def test_timestamp_is_utc(self, tmp_path: Path) -> None:
        """Test that timestamp ends with Z indicating UTC."""
        log_path = tmp_path / "audit.log"
        logger = AuditLogger(log_path)

        logger.log("TEST", key="value")

        timestamp = log_path.read_text().strip().split(" [")[0]
        assert timestamp.endswith("Z"), f"Timestamp should end with Z (UTC): {timestamp}"
