"""Queue document encodings.

Each format module exposes ``EXTENSION``, ``encode(state) -> str`` and
``decode(text) -> data`` (raising ``DecodeError``). Decoded data is plain
and untrusted: callers gate it through the queue state validator.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..models.queue import QueueState
from . import json_format, markdown_table


@dataclass(frozen=True)
class QueueFormat:
    """A named encoding and the file extension that selects it."""

    name: str
    extension: str
    encode: Callable[[QueueState], str]
    decode: Callable[[str], Any]
    # Completes "Queue file is {description}: <path>" in decode failure notices
    description: str


FORMATS: dict[str, QueueFormat] = {
    "json": QueueFormat(
        name="json",
        extension=json_format.EXTENSION,
        encode=json_format.encode,
        decode=json_format.decode,
        description="not valid JSON",
    ),
    "markdown": QueueFormat(
        name="markdown",
        extension=markdown_table.EXTENSION,
        encode=markdown_table.encode,
        decode=markdown_table.decode,
        description="not a valid queue table",
    ),
}


def get_format(name: str) -> QueueFormat:
    """Look up a format by name (``json`` or ``markdown``)."""
    try:
        return FORMATS[name]
    except KeyError:
        raise ValueError(
            f"Unknown queue format: {name} (expected one of {', '.join(FORMATS)})"
        ) from None


def format_for_path(path: str) -> QueueFormat | None:
    """Pick the format whose extension ``path`` carries."""
    for queue_format in FORMATS.values():
        if path.endswith(queue_format.extension):
            return queue_format
    return None


__all__ = ["FORMATS", "QueueFormat", "format_for_path", "get_format"]
