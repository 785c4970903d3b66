"""Append-only audit trail of queue changes."""

from datetime import datetime, timezone
from pathlib import Path

QUEUE_CREATE = "QUEUE_CREATE"
QUEUE_SAVE = "QUEUE_SAVE"
QUEUE_DELETE = "QUEUE_DELETE"
ITEM_ADD = "ITEM_ADD"
ITEM_UPDATE = "ITEM_UPDATE"
ITEM_REMOVE = "ITEM_REMOVE"
NEXT = "NEXT"
DISMISS = "DISMISS"


class AuditLogger:
    """Writes one line per queue change to an audit file.

    Line format: ISO8601_TIMESTAMP [OPERATION] key1=value1 key2=value2
    Example: 2026-10-18T08:55:00Z [ITEM_ADD] queue=IncrementalReading/Daily.irqueue.json item=item_1760777700123_0a1b2c3d4e5f
    """

    def __init__(self, log_path: Path) -> None:
        """Initialize the audit logger with the path of the audit file."""
        self.log_path = log_path

    @staticmethod
    def _format_value(value: str | int | float | bool) -> str:
        text = str(value)
        if any(char.isspace() for char in text) or '"' in text:
            escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            return f'"{escaped}"'
        return text

    def log(self, operation: str, **fields: str | int | float | bool | None) -> None:
        """Append an audit entry.

        Args:
            operation: One of the operation constants in this module.
            **fields: Key-value pairs for the entry. ``None`` values are
                      dropped; values with whitespace or quotes are quoted.
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        pairs = [
            f"{key}={self._format_value(value)}"
            for key, value in fields.items()
            if value is not None
        ]
        line = f"{timestamp} [{operation}]"
        if pairs:
            line = f"{line} {' '.join(pairs)}"

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
