"""Human-editable queue encoding: a key/value header and a markdown table.

Layout::

    ---
    schemaVersion: 1
    id: queue_1760777700123_0a1b2c3d4e5f
    name: Daily
    scheduler: simple
    createdAt: "2026-10-18T08:55:00.123Z"
    updatedAt: "2026-10-18T08:55:00.123Z"
    ---

    | id | type | target | cursorLine | cursorCh | scrollTop | createdAt | updatedAt |
    | --- | --- | --- | --- | --- | --- | --- | --- |
    | item_... | block | notes/a.md#^blk1 | 4 | 2 | 200 | ... | ... |

Decoding is forgiving so that a hand-edited file still loads: unknown
columns are ignored, missing header fields get fresh defaults and broken
rows are skipped. Only a document without any table fails to decode.

Inside a cell a backslash escapes "\\", "|", newlines and tabs, and spaces at
the edges of a value are written as "\\s" so that the padding around cells
can be trimmed. A backslash that starts no known escape is kept as is.
"""

import logging
import math
import re
from typing import Any, assert_never

from ..errors import DecodeError
from ..models.queue import (
    QUEUE_SCHEMA_VERSION,
    BlockQueueItem,
    NoteQueueItem,
    QueueState,
    create_id,
    now_iso,
)

logger = logging.getLogger(__name__)

EXTENSION = ".irqueue.md"

HEADER_SEPARATOR = "---"
HEADER_KEYS = ("schemaVersion", "id", "name", "scheduler", "createdAt", "updatedAt")
COLUMNS = ("id", "type", "target", "cursorLine", "cursorCh", "scrollTop", "createdAt", "updatedAt")

BLOCK_TARGET_PATTERN = re.compile(r"^(.+)#\^([A-Za-z0-9_-]+)\Z")
ALIGNMENT_ROW_PATTERN = re.compile(r"^\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?$")

# Header values are quoted when they contain whitespace or one of ": # -".
# Quotes, backslashes and empty values are quoted too, or they would not survive a reload.
_NEEDS_QUOTES = re.compile(r'[\s:#\-"\\]')

_QUOTED_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_QUOTED_UNESCAPES = {"\\": "\\", '"': '"', "n": "\n", "r": "\r", "t": "\t"}

_CELL_ESCAPES = {"\\": "\\\\", "|": "\\|", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
_CELL_UNESCAPES = {"\\": "\\", "|": "|", "n": "\n", "r": "\r", "t": "\t", "s": " "}

_CELL_PADDING = " \t"


def _unescape(text: str, table: dict[str, str]) -> str:
    """Reverse backslash escapes; unknown escapes and a trailing backslash stay literal."""
    out: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text) and text[i + 1] in table:
            out.append(table[text[i + 1]])
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def quote_header_value(value: str) -> str:
    """Quote a header value if it would not read back verbatim."""
    if value and not _NEEDS_QUOTES.search(value):
        return value
    escaped = "".join(_QUOTED_ESCAPES.get(char, char) for char in value)
    return f'"{escaped}"'


def unquote_header_value(raw: str) -> str:
    """Inverse of :func:`quote_header_value`; bare values are only trimmed."""
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return _unescape(raw[1:-1], _QUOTED_UNESCAPES)
    return raw


def escape_cell(value: str) -> str:
    """Escape a table cell so pipes, newlines and edge spaces survive a reload."""
    stripped = value.strip(" ")
    if not stripped:
        return "\\s" * len(value)

    leading = len(value) - len(value.lstrip(" "))
    trailing = len(value) - len(value.rstrip(" "))
    body = "".join(_CELL_ESCAPES.get(char, char) for char in stripped)
    return "\\s" * leading + body + "\\s" * trailing


def unescape_cell(raw: str) -> str:
    """Trim cell padding and reverse :func:`escape_cell`."""
    return _unescape(raw.strip(_CELL_PADDING), _CELL_UNESCAPES)


def split_row(line: str) -> list[str]:
    """Split a pipe-delimited row into unescaped cells."""
    text = line.strip()
    if text.startswith("|"):
        text = text[1:]

    cells: list[str] = []
    buf: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            buf.append(text[i : i + 2])
            i += 2
            continue
        if char == "|":
            cells.append("".join(buf))
            buf = []
            i += 1
            continue
        buf.append(char)
        i += 1

    # A row without a closing pipe still carries its last cell.
    tail = "".join(buf)
    if tail.strip(_CELL_PADDING):
        cells.append(tail)

    return [unescape_cell(cell) for cell in cells]


def _format_row(cells: list[str] | tuple[str, ...]) -> str:
    return "| " + " | ".join(escape_cell(cell) for cell in cells) + " |"


def _format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _item_cells(item: NoteQueueItem | BlockQueueItem) -> list[str]:
    match item:
        case NoteQueueItem():
            target = item.file_path
        case BlockQueueItem():
            target = f"{item.file_path}#^{item.block_id}"
        case _:
            assert_never(item)

    position = item.reading_position
    cursor = position.cursor
    return [
        item.id,
        item.type,
        target,
        str(cursor.line) if cursor is not None else "",
        str(cursor.ch) if cursor is not None else "",
        _format_number(position.scroll_top) if position.scroll_top is not None else "",
        item.created_at,
        item.updated_at,
    ]


def encode(state: QueueState) -> str:
    """Serialize a queue state as a header block followed by a markdown table."""
    metadata = state.metadata
    header = {
        "schemaVersion": str(state.schema_version),
        "id": metadata.id,
        "name": metadata.name,
        "scheduler": metadata.scheduler.kind,
        "createdAt": metadata.created_at,
        "updatedAt": metadata.updated_at,
    }

    lines = [HEADER_SEPARATOR]
    lines.extend(f"{key}: {quote_header_value(header[key])}" for key in HEADER_KEYS)
    lines.append(HEADER_SEPARATOR)
    lines.append("")
    lines.append(_format_row(COLUMNS))
    lines.append("| " + " | ".join("---" for _ in COLUMNS) + " |")
    lines.extend(_format_row(_item_cells(item)) for item in state.items)
    return "\n".join(lines) + "\n"


def _split_header(lines: list[str]) -> tuple[dict[str, str], list[str]]:
    """Separate the ``---`` header block from the body. A missing header is empty."""
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1

    if start >= len(lines) or lines[start].strip() != HEADER_SEPARATOR:
        return {}, lines

    header: dict[str, str] = {}
    for index in range(start + 1, len(lines)):
        line = lines[index]
        if line.strip() == HEADER_SEPARATOR:
            return header, lines[index + 1 :]
        key, sep, value = line.partition(":")
        if sep and key.strip():
            header[key.strip()] = unquote_header_value(value)

    # Unterminated header: treat everything after the opening separator as header.
    return header, []


def _parse_int(raw: str) -> int | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_number(raw: str) -> float | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _row_to_item(row: dict[str, str], now: str) -> dict[str, Any] | None:
    item_type = row.get("type", "").strip().lower()
    target = row.get("target", "")

    if not target:
        return None

    if not item_type:
        item_type = "block" if BLOCK_TARGET_PATTERN.match(target) else "note"

    item: dict[str, Any] = {"id": row.get("id") or create_id("item"), "type": item_type}
    if item_type == "block":
        match = BLOCK_TARGET_PATTERN.match(target)
        if match is None:
            return None
        item["filePath"] = match.group(1)
        item["blockId"] = match.group(2)
    elif item_type == "note":
        item["filePath"] = target
    else:
        return None

    line = _parse_int(row.get("cursorLine", ""))
    ch = _parse_int(row.get("cursorCh", ""))
    item["createdAt"] = row.get("createdAt") or now
    item["updatedAt"] = row.get("updatedAt") or now
    item["readingPosition"] = {
        "cursor": {"line": line, "ch": ch} if line is not None and ch is not None else None,
        "scrollTop": _parse_number(row.get("scrollTop", "")),
    }
    return item


def _parse_schema_version(raw: str | None) -> Any:
    if raw is None or not raw.strip():
        return QUEUE_SCHEMA_VERSION
    try:
        return int(raw)
    except ValueError:
        # Left as text so the validator reports it.
        return raw


def decode(text: str) -> dict[str, Any]:
    """
    Parse a header + table document into plain queue state data.

    Raises:
        DecodeError: If the document has fewer than two table lines.
    """
    header, body = _split_header(text.splitlines())

    table_lines = [line for line in body if line.strip().startswith("|")]
    if len(table_lines) < 2:
        raise DecodeError("No queue table found (expected a header row and an alignment row)")

    columns = split_row(table_lines[0])
    rows = table_lines[1:]
    if rows and ALIGNMENT_ROW_PATTERN.match(rows[0].strip()):
        rows = rows[1:]

    now = now_iso()
    items: list[dict[str, Any]] = []
    for number, line in enumerate(rows, start=1):
        cells = split_row(line)
        row = {name: cells[i] if i < len(cells) else "" for i, name in enumerate(columns)}
        item = _row_to_item(row, now)
        if item is None:
            logger.warning("Skipping unreadable queue row %d: %s", number, line.strip())
            continue
        items.append(item)

    return {
        "schemaVersion": _parse_schema_version(header.get("schemaVersion")),
        "metadata": {
            "id": header.get("id") or create_id("queue"),
            "name": header.get("name", ""),
            "scheduler": {"kind": header.get("scheduler") or "simple"},
            "createdAt": header.get("createdAt") or now,
            "updatedAt": header.get("updatedAt") or now,
        },
        "items": items,
    }
