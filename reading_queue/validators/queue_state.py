"""Queue state validation against the bundled JSON Schema."""

import json
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

from ..models.queue import QueueState

# Path to the queue state schema shipped with the package
SCHEMA_PATH = Path(__file__).parent.parent / "contracts" / "queue_state.schema.json"

# The schema pattern ends in "$", which Python also lets match before a final newline
BLOCK_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


@lru_cache(maxsize=1)
def _load_schema() -> dict:
    """Load the queue state JSON schema."""
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def _is_finite(scroll_top: Any) -> bool:
    if scroll_top is None:
        return True
    try:
        return math.isfinite(scroll_top)
    except OverflowError:
        # An integer too large for a float
        return False


def validate_queue_state(value: Any) -> tuple[bool, list[str]]:
    """
    Validate plain parsed data as a persisted queue state.

    The schema covers shape, literals and item variants. Finite scroll
    offsets, exact block ids and unique item ids are checked afterwards
    since JSON Schema cannot express them.

    Args:
        value: Data produced by a decoder (untrusted, possibly hand-edited).

    Returns:
        A tuple of (is_valid, list_of_errors). Never raises.
    """
    errors: list[str] = []

    try:
        schema = _load_schema()
        jsonschema.validate(instance=value, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path)
        if location:
            errors.append(f"Schema validation error at {location}: {e.message}")
        else:
            errors.append(f"Schema validation error: {e.message}")
        return (False, errors)
    except FileNotFoundError:
        return (False, [f"Schema file not found: {SCHEMA_PATH}"])
    except json.JSONDecodeError as e:
        return (False, [f"Schema JSON decode error: {e}"])

    seen: set[str] = set()
    for index, item in enumerate(value["items"]):
        if not _is_finite(item["readingPosition"]["scrollTop"]):
            errors.append(f"items/{index}: scrollTop must be a finite number")

        if item["type"] == "block" and not BLOCK_ID_RE.fullmatch(item["blockId"]):
            errors.append(f"items/{index}: blockId must be letters, digits, '_' or '-'")

        if item["id"] in seen:
            errors.append(f"items/{index}: duplicate item id {item['id']}")
        seen.add(item["id"])

    return (len(errors) == 0, errors)


def is_queue_state(value: Any) -> bool:
    """True if ``value`` is a legal persisted queue state."""
    is_valid, _ = validate_queue_state(value)
    return is_valid


def parse_queue_state(value: Any) -> QueueState | None:
    """Gate ``value`` through the validator and build the model, or return None."""
    if not is_queue_state(value):
        return None
    return QueueState.model_validate(value)
