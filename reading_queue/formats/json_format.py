"""Structured queue encoding: the whole state as indented JSON."""

import json
from typing import Any

from ..errors import DecodeError
from ..models.queue import QueueState

EXTENSION = ".irqueue.json"


def encode(state: QueueState) -> str:
    """Serialize a queue state as indented JSON with on-disk keys."""
    return json.dumps(state.to_document(), indent=2, ensure_ascii=False)


def decode(text: str) -> Any:
    """Parse JSON text into plain data. Shape checks are left to the validator."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e
