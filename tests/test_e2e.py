"""End-to-end tests for a reading queue.

Tests the complete flow: create -> add -> next -> dismiss -> reload,
against a real directory vault in both encodings, with the audit trail
checked at the end.
"""

from pathlib import Path

import pytest

from reading_queue.audit import AuditLogger
from reading_queue.models.queue import (
    BlockQueueItem,
    NoteQueueItem,
    create_block_queue_item,
    create_note_queue_item,
)
from reading_queue.scheduler import scheduler_for
from reading_queue.store import QueueStore
from reading_queue.vault import LocalVault
from fakes import CollectingNotifier


class TestDailyScenario:
    """Create "Daily", add a note and a block, rotate, dismiss, reload."""

    @pytest.mark.parametrize("queue_format", ["json", "markdown"])
    def test_daily_scenario(self, tmp_path: Path, queue_format: str) -> None:
        vault_dir = tmp_path / "vault"
        vault_dir.mkdir()
        audit_log_path = tmp_path / "audit.log"
        notifier = CollectingNotifier()
        store = QueueStore(
            LocalVault(vault_dir),
            notifier,
            queue_format=queue_format,
            audit=AuditLogger(audit_log_path),
        )

        # ===== STEP 1: Create the queue =====
        assert store.create_queue("Daily") is not None

        # ===== STEP 2: Add a note and a block =====
        p1 = create_note_queue_item("a.md")
        p2 = create_block_queue_item("b.md", "x1")
        assert store.add_item("Daily", p1) is not None
        state = store.add_item("Daily", p2)
        assert [item.id for item in state.items] == [p1.id, p2.id]

        # ===== STEP 3: Rotate; the block becomes current =====
        scheduler = scheduler_for(state)
        current = scheduler.next(state)
        assert current.id == p2.id
        assert store.save_queue("Daily", state)

        # ===== STEP 4: Dismiss the block; only the note remains =====
        removed = scheduler.dismiss_current(state)
        assert removed.id == p2.id
        assert store.save_queue("Daily", state)

        # ===== STEP 5: Reload from disk =====
        reloaded = store.load_queue("Daily")
        assert reloaded is not None
        assert len(reloaded.items) == 1
        only = reloaded.items[0]
        assert isinstance(only, NoteQueueItem)
        assert not isinstance(only, BlockQueueItem)
        assert only.id == p1.id
        assert only.file_path == "a.md"

        # ===== STEP 6: Check the audit trail =====
        operations = [
            line.split("[", 1)[1].split("]", 1)[0]
            for line in audit_log_path.read_text().splitlines()
        ]
        assert operations == ["QUEUE_CREATE", "ITEM_ADD", "ITEM_ADD", "QUEUE_SAVE", "QUEUE_SAVE"]
        assert notifier.messages == []
