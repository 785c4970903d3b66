"""Tests for queue models and factories."""

import re

import pytest
from pydantic import ValidationError

from reading_queue.models.queue import (
    BlockQueueItem,
    CursorPosition,
    NoteQueueItem,
    QueueState,
    ReadingPosition,
    create_block_queue_item,
    create_id,
    create_note_queue_item,
    create_queue_state,
    item_label,
    now_iso,
    with_reading_position,
)

ISO_MS_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestFactories:
    """Tests for the create_* factories."""

    def test_create_queue_state_is_empty(self):
        """A new queue has schema version 1, no items and equal timestamps."""
        state = create_queue_state("Daily")
        assert state.schema_version == 1
        assert state.items == []
        assert state.metadata.name == "Daily"
        assert state.metadata.scheduler.kind == "simple"
        assert state.metadata.created_at == state.metadata.updated_at
        assert state.metadata.id.startswith("queue_")

    def test_create_note_item(self):
        """Note items start without a saved reading position."""
        item = create_note_queue_item("notes/a.md")
        assert item.type == "note"
        assert item.file_path == "notes/a.md"
        assert item.reading_position.cursor is None
        assert item.reading_position.scroll_top is None
        assert item.id.startswith("item_")
        assert item.created_at == item.updated_at

    def test_create_block_item(self):
        """Block items carry their anchor id."""
        item = create_block_queue_item("notes/b.md", "x1")
        assert item.type == "block"
        assert item.file_path == "notes/b.md"
        assert item.block_id == "x1"
        assert item.reading_position == ReadingPosition()

    @pytest.mark.parametrize("block_id", ["", "has space", "blk1\n", "a#b"])
    def test_block_item_rejects_bad_anchor(self, block_id):
        with pytest.raises(ValidationError):
            create_block_queue_item("notes/b.md", block_id)

    def test_item_rejects_empty_path(self):
        with pytest.raises(ValidationError):
            create_note_queue_item("")

    def test_ids_are_unique(self):
        """10 000 ids in a row never collide."""
        ids = {create_id("item") for _ in range(10_000)}
        assert len(ids) == 10_000

    def test_now_iso_has_milliseconds_and_z(self):
        assert ISO_MS_PATTERN.match(now_iso())


class TestWithReadingPosition:
    """Tests for with_reading_position()."""

    def test_returns_copy_with_position(self):
        """The input item is left untouched."""
        item = create_note_queue_item("a.md")
        position = ReadingPosition(cursor=CursorPosition(line=3, ch=1), scroll_top=42.0)

        updated = with_reading_position(item, position)

        assert updated is not item
        assert updated.reading_position == position
        assert item.reading_position.cursor is None
        assert updated.id == item.id
        assert updated.updated_at >= item.updated_at

    def test_position_is_deep_copied(self):
        """Mutating the passed position later does not leak into the item."""
        position = ReadingPosition(cursor=CursorPosition(line=3, ch=1), scroll_top=None)
        updated = with_reading_position(create_note_queue_item("a.md"), position)

        position.cursor.line = 99

        assert updated.reading_position.cursor.line == 3

    def test_keeps_variant(self):
        item = create_block_queue_item("b.md", "x1")
        updated = with_reading_position(item, ReadingPosition(scroll_top=10.0))
        assert isinstance(updated, BlockQueueItem)
        assert updated.block_id == "x1"


class TestItemLabel:
    """Tests for item_label()."""

    def test_note_label_is_path(self):
        assert item_label(create_note_queue_item("notes/a.md")) == "notes/a.md"

    def test_block_label_has_anchor(self):
        assert item_label(create_block_queue_item("notes/a.md", "blk1")) == "notes/a.md#^blk1"


class TestDocumentForm:
    """Tests for the on-disk (camelCase) form."""

    def test_document_uses_camel_case(self, sample_state):
        document = sample_state.to_document()
        assert set(document) == {"schemaVersion", "metadata", "items"}
        assert "createdAt" in document["metadata"]
        note, block = document["items"]
        assert note["filePath"] == "notes/a.md"
        assert "blockId" not in note
        assert block["blockId"] == "blk1"
        assert block["readingPosition"] == {"cursor": {"line": 4, "ch": 2}, "scrollTop": 200.0}

    def test_document_validates_back_to_variants(self, sample_state):
        """The type tag selects the item model."""
        restored = QueueState.model_validate(sample_state.to_document())
        assert isinstance(restored.items[0], NoteQueueItem)
        assert isinstance(restored.items[1], BlockQueueItem)
        assert restored == sample_state
