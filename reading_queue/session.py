"""Reading session: the active queue plus open / next / dismiss / add flows.

This is the glue between a QueueStore and a host editor. It keeps the
"active queue" pointer in a small JSON settings file, captures the reader's
position before rotating, and restores it when an item is opened again.
"""

import json
import logging
import random
import re
import string
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ValidationError

from . import audit as ops
from .errors import VaultError
from .models.queue import (
    BlockQueueItem,
    NoteQueueItem,
    QueueState,
    ReadingPosition,
    create_block_queue_item,
    create_note_queue_item,
    item_label,
    now_iso,
)
from .ports import FileHandle, Workspace
from .scheduler import scheduler_for
from .store import QueueStore, normalize_path

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_NAME = "default"

# A trailing " ^blockId" anchor at the end of a line
BLOCK_ANCHOR_PATTERN = re.compile(r"\s\^([A-Za-z0-9_-]+)\s*$")
BLOCK_ID_ALPHABET = string.ascii_lowercase + string.digits
BLOCK_ID_LENGTH = 7


class SessionSettings(BaseModel):
    """Persisted session state."""

    queue_folder: str | None = None
    active_queue_path: str | None = None


def load_session_settings(path: Path) -> SessionSettings:
    """Load session settings. Returns defaults if the file is missing or unreadable."""
    if not path.exists():
        return SessionSettings()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return SessionSettings.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring unreadable session settings %s: %s", path, e)
        return SessionSettings()


def save_session_settings(path: Path, settings: SessionSettings) -> None:
    """Save session settings with indent=2."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.model_dump(mode="json"), f, indent=2)


@dataclass
class QueueStatus:
    """What a status bar shows for the active queue."""

    queue_name: str
    item_count: int
    current_label: str

    def text(self) -> str:
        return f"IR | {self.queue_name} | {self.item_count} | {self.current_label}"


def extract_block_id(line_text: str) -> str | None:
    """Return the ``^blockId`` anchor at the end of a line, if any."""
    match = BLOCK_ANCHOR_PATTERN.search(line_text)
    return match.group(1) if match else None


def create_block_id(length: int = BLOCK_ID_LENGTH) -> str:
    return "".join(random.choices(BLOCK_ID_ALPHABET, k=length))


class ReadingSession:
    """Drive one reader's pass over the active queue."""

    def __init__(self, store: QueueStore, workspace: Workspace, settings_path: Path) -> None:
        self.store = store
        self.workspace = workspace
        self.notifier = store.notifier
        self.settings_path = settings_path
        self.settings = load_session_settings(settings_path)

    # ---- active queue ----

    def set_active_queue_path(self, queue_path: str) -> None:
        self.settings.queue_folder = self.store.queue_folder
        self.settings.active_queue_path = normalize_path(queue_path)
        save_session_settings(self.settings_path, self.settings)

    def ensure_active_queue_path(self) -> str | None:
        """
        Return the active queue path, falling back to the default queue.

        The default queue is created when it does not exist yet. An active
        path saved under a different queue folder is not reused.
        """
        active = self.settings.active_queue_path
        saved_folder = self.settings.queue_folder
        if saved_folder is not None and normalize_path(saved_folder) != self.store.queue_folder:
            logger.info("Ignoring active queue %s saved for folder %s", active, saved_folder)
            active = None

        if active and self.store.queue_exists(active):
            return active

        default_path = self.store.resolve_queue_path(DEFAULT_QUEUE_NAME)
        if not self.store.queue_exists(default_path):
            if self.store.create_queue(DEFAULT_QUEUE_NAME) is None:
                return None

        self.set_active_queue_path(default_path)
        return default_path

    def load_active_queue(self) -> tuple[str, QueueState] | None:
        queue_path = self.ensure_active_queue_path()
        if queue_path is None:
            return None

        state = self.store.load_queue(queue_path)
        if state is None:
            return None
        return queue_path, state

    def create_queue(self, name: str) -> QueueState | None:
        """Create a queue and make it active."""
        name = name.strip()
        if not name:
            self.notifier.notify("Queue name cannot be empty.")
            return None

        created = self.store.create_queue(name)
        if created is None:
            return None

        self.set_active_queue_path(self.store.resolve_queue_path(name))
        self.notifier.notify(f"Created queue: {created.metadata.name}")
        return created

    def use_queue(self, name: str) -> bool:
        """Make an existing queue active."""
        queue_path = self.store.resolve_queue_path(name)
        if not self.store.queue_exists(queue_path):
            self.notifier.notify(f"Queue file not found: {queue_path}")
            return False

        self.set_active_queue_path(queue_path)
        self.notifier.notify(f"Loaded queue: {self.store.get_queue_display_name(queue_path)}")
        return True

    # ---- repetition flow ----

    def open_current(self) -> NoteQueueItem | BlockQueueItem | None:
        loaded = self.load_active_queue()
        if loaded is None:
            return None

        _, state = loaded
        current = scheduler_for(state).current(state)
        if current is None:
            self.notifier.notify("Queue is empty.")
            return None

        self._open_item(current)
        return current

    def next_repetition(
        self, captured: ReadingPosition | None = None
    ) -> NoteQueueItem | BlockQueueItem | None:
        """
        Save where the reader is in the current item, rotate, open the next one.

        ``captured`` overrides the position read from the active editor view.
        """
        loaded = self.load_active_queue()
        if loaded is None:
            return None

        queue_path, state = loaded
        scheduler = scheduler_for(state)
        current = scheduler.current(state)
        if current is None:
            self.notifier.notify("Queue is empty.")
            return None

        position = captured if captured is not None else self._capture_position(current)
        if position is not None:
            now = now_iso()
            current.reading_position = position
            current.updated_at = now
            state.metadata.updated_at = now

        upcoming = scheduler.next(state)
        if not self.store.save_queue(queue_path, state):
            return None

        if self.store.audit is not None:
            self.store.audit.log(ops.NEXT, queue=queue_path, left=current.id, current=upcoming.id)

        self._open_item(upcoming)
        return upcoming

    def dismiss_current(self) -> NoteQueueItem | BlockQueueItem | None:
        """Drop the current item for good and open whatever is next."""
        loaded = self.load_active_queue()
        if loaded is None:
            return None

        queue_path, state = loaded
        scheduler = scheduler_for(state)
        removed = scheduler.dismiss_current(state)
        if removed is None:
            self.notifier.notify("Queue is empty.")
            return None

        if not self.store.save_queue(queue_path, state):
            return None

        if self.store.audit is not None:
            self.store.audit.log(ops.DISMISS, queue=queue_path, item=removed.id)

        upcoming = scheduler.current(state)
        if upcoming is not None:
            self._open_item(upcoming)
        else:
            self.notifier.notify("Dismissed current repetition. Queue is now empty.")
        return removed

    # ---- adding ----

    def add_note(self, file_path: str) -> QueueState | None:
        loaded = self.load_active_queue()
        if loaded is None:
            return None

        queue_path, state = loaded
        normalized = normalize_path(file_path)
        duplicate = any(
            isinstance(item, NoteQueueItem) and normalize_path(item.file_path) == normalized
            for item in state.items
        )
        if duplicate:
            self.notifier.notify("Note already exists in queue.")
            return None

        added = self.store.add_item(queue_path, create_note_queue_item(normalized))
        if added is not None:
            self.notifier.notify(f"Added note to queue: {normalized}")
        return added

    def add_block(self, file_path: str, line: int) -> QueueState | None:
        """Queue the block on ``line`` of a note, anchoring it with ``^id`` if needed."""
        normalized = normalize_path(file_path)
        block_id = self.ensure_block_reference(normalized, line)
        if block_id is None:
            self.notifier.notify("Failed to create block reference.")
            return None

        loaded = self.load_active_queue()
        if loaded is None:
            return None

        queue_path, state = loaded
        duplicate = any(
            isinstance(item, BlockQueueItem)
            and normalize_path(item.file_path) == normalized
            and item.block_id == block_id
            for item in state.items
        )
        if duplicate:
            self.notifier.notify("Block already exists in queue.")
            return None

        added = self.store.add_item(queue_path, create_block_queue_item(normalized, block_id))
        if added is not None:
            self.notifier.notify(f"Added block to queue: {normalized}#^{block_id}")
        return added

    def ensure_block_reference(self, file_path: str, line: int) -> str | None:
        """Return the anchor on ``line`` of the note, appending a new one if it has none."""
        vault = self.store.vault
        try:
            content = vault.read(file_path)
        except VaultError as e:
            logger.info("Cannot read %s for block reference: %s", file_path, e)
            return None

        lines = re.split(r"\r?\n", content)
        if line < 0 or line >= len(lines):
            return None

        existing = extract_block_id(lines[line])
        if existing:
            return existing

        block_id = create_block_id()
        lines[line] = f"{lines[line]} ^{block_id}"
        try:
            vault.modify(FileHandle(file_path), "\n".join(lines))
        except VaultError as e:
            logger.info("Cannot write block reference to %s: %s", file_path, e)
            return None
        return block_id

    # ---- status ----

    def status(self) -> QueueStatus:
        loaded = self.load_active_queue()
        if loaded is None:
            return QueueStatus(queue_name="None", item_count=0, current_label="None")

        queue_path, state = loaded
        current = scheduler_for(state).current(state)
        return QueueStatus(
            queue_name=self.store.get_queue_display_name(queue_path),
            item_count=len(state.items),
            current_label=item_label(current) if current is not None else "None",
        )

    def status_text(self) -> str:
        return self.status().text()

    # ---- editor glue ----

    def _open_item(self, item: NoteQueueItem | BlockQueueItem) -> None:
        view = self.workspace.open_link(item_label(item))
        if view is None:
            return

        position = item.reading_position
        if position.cursor is not None:
            view.set_cursor(position.cursor)
        if position.scroll_top is not None:
            view.scroll_to(position.scroll_top)
        view.focus()

    def _capture_position(self, current: NoteQueueItem | BlockQueueItem) -> ReadingPosition | None:
        """Read cursor and scroll from the active view if it shows the current item's note."""
        view = self.workspace.active_view()
        if view is None or view.file_path is None:
            return None

        if normalize_path(view.file_path) != normalize_path(current.file_path):
            return None

        cursor = view.get_cursor()
        return ReadingPosition(
            cursor=cursor.model_copy(),
            scroll_top=view.get_scroll_top(),
        )
