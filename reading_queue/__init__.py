"""Incremental reading queues persisted as files in a notes vault."""

from .errors import DecodeError, FolderBlockedError, QueueError, VaultError
from .models.queue import (
    BlockQueueItem,
    CursorPosition,
    NoteQueueItem,
    QueueState,
    ReadingPosition,
    create_block_queue_item,
    create_note_queue_item,
    create_queue_state,
    item_label,
    with_reading_position,
)
from .scheduler import SimpleScheduler, scheduler_for
from .session import ReadingSession
from .store import QueueStore, normalize_path
from .vault import LocalVault

__version__ = "0.1.0"

__all__ = [
    "BlockQueueItem",
    "CursorPosition",
    "DecodeError",
    "FolderBlockedError",
    "LocalVault",
    "NoteQueueItem",
    "QueueError",
    "QueueState",
    "QueueStore",
    "ReadingPosition",
    "ReadingSession",
    "SimpleScheduler",
    "VaultError",
    "create_block_queue_item",
    "create_note_queue_item",
    "create_queue_state",
    "item_label",
    "normalize_path",
    "scheduler_for",
    "with_reading_position",
]
