"""Queue data models for incremental reading."""

import time
import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal, TypeVar, assert_never

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

QUEUE_SCHEMA_VERSION = 1

# pydantic matches this with its Rust engine, where "$" is the very end of the text.
BLOCK_ID_PATTERN = r"^[A-Za-z0-9_-]+$"

SchedulerKind = Literal["simple"]


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def create_id(prefix: str) -> str:
    """Build an opaque id such as ``item_1760777700123_0a1b2c3d4e5f``."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}"


class QueueModel(BaseModel):
    """Base model: snake_case attributes, camelCase on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CursorPosition(QueueModel):
    """Editor cursor location (zero-based line and column)."""

    line: int
    ch: int


class ReadingPosition(QueueModel):
    """Where the reader left an item. ``None`` means nothing was saved."""

    cursor: CursorPosition | None = None
    scroll_top: float | None = None


class SchedulerConfig(QueueModel):
    """Which rotation algorithm a queue uses."""

    kind: SchedulerKind = "simple"


class QueueMetadata(QueueModel):
    """Identity and bookkeeping of a queue."""

    id: str
    name: str
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    created_at: str
    updated_at: str


class _QueueItemFields(QueueModel):
    id: str
    file_path: str = Field(min_length=1)
    created_at: str
    updated_at: str
    reading_position: ReadingPosition = Field(default_factory=ReadingPosition)


class NoteQueueItem(_QueueItemFields):
    """A whole note, identified by its path."""

    type: Literal["note"] = "note"


class BlockQueueItem(_QueueItemFields):
    """An anchored block (``path#^blockId``) inside a note."""

    type: Literal["block"] = "block"
    block_id: str = Field(pattern=BLOCK_ID_PATTERN)


QueueItem = Annotated[NoteQueueItem | BlockQueueItem, Field(discriminator="type")]

ItemT = TypeVar("ItemT", NoteQueueItem, BlockQueueItem)


class QueueState(QueueModel):
    """Root persisted aggregate. Item order is the rotation order."""

    schema_version: int = QUEUE_SCHEMA_VERSION
    metadata: QueueMetadata
    items: list[QueueItem] = Field(default_factory=list)

    def to_document(self) -> dict:
        """Plain-data form with on-disk (camelCase) keys."""
        return self.model_dump(by_alias=True, mode="json")


def create_queue_state(name: str, scheduler: SchedulerConfig | None = None) -> QueueState:
    """Create an empty queue with a fresh id."""
    now = now_iso()
    return QueueState(
        schema_version=QUEUE_SCHEMA_VERSION,
        metadata=QueueMetadata(
            id=create_id("queue"),
            name=name,
            scheduler=scheduler if scheduler is not None else SchedulerConfig(),
            created_at=now,
            updated_at=now,
        ),
        items=[],
    )


def create_note_queue_item(file_path: str) -> NoteQueueItem:
    """Create a note item with no saved reading position."""
    now = now_iso()
    return NoteQueueItem(
        id=create_id("item"),
        file_path=file_path,
        created_at=now,
        updated_at=now,
        reading_position=ReadingPosition(),
    )


def create_block_queue_item(file_path: str, block_id: str) -> BlockQueueItem:
    """Create a block item with no saved reading position."""
    now = now_iso()
    return BlockQueueItem(
        id=create_id("item"),
        file_path=file_path,
        block_id=block_id,
        created_at=now,
        updated_at=now,
        reading_position=ReadingPosition(),
    )


def with_reading_position(
    item: ItemT, reading_position: ReadingPosition
) -> ItemT:
    """Return a copy of ``item`` carrying ``reading_position``; the input is untouched."""
    return item.model_copy(
        update={
            "reading_position": reading_position.model_copy(deep=True),
            "updated_at": now_iso(),
        }
    )


def item_label(item: NoteQueueItem | BlockQueueItem) -> str:
    """Link text for an item: ``path`` or ``path#^blockId``."""
    match item:
        case NoteQueueItem():
            return item.file_path
        case BlockQueueItem():
            return f"{item.file_path}#^{item.block_id}"
        case _:
            assert_never(item)
