"""Structural validators for persisted queue data."""

from .queue_state import is_queue_state, parse_queue_state, validate_queue_state

__all__ = ["is_queue_state", "parse_queue_state", "validate_queue_state"]
