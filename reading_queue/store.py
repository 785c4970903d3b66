"""Queue store: maps queue names to vault files and persists queue states."""

import logging
import re
import unicodedata
from collections.abc import Callable

from . import audit as ops
from .audit import AuditLogger
from .errors import DecodeError, FolderBlockedError, VaultError
from .formats import QueueFormat, get_format
from .models.queue import (
    BlockQueueItem,
    NoteQueueItem,
    QueueState,
    SchedulerConfig,
    create_queue_state,
    now_iso,
)
from .ports import EntryKind, FileHandle, FileStore, Notifier
from .validators.queue_state import validate_queue_state

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_FOLDER = "IncrementalReading"

ItemTransform = Callable[[NoteQueueItem | BlockQueueItem], NoteQueueItem | BlockQueueItem]


def normalize_path(path: str) -> str:
    """Normalize a vault path: ``/`` separators, no duplicate, leading or trailing slashes."""
    text = unicodedata.normalize("NFC", path)
    text = text.replace("\u00a0", " ").replace("\u202f", " ")
    text = re.sub(r"[\\/]+", "/", text)
    while text.startswith("./"):
        text = text[2:]
    text = text.strip("/")
    return text or "/"


class QueueStore:
    """
    Queue persistence on top of a FileStore.

    A queue is identified by its normalized path under the queue folder,
    so there is no separate registry to keep in sync. Expected failures
    (missing file, bad content, conflicts, I/O errors) are reported through
    the notifier and turn into a ``None``/``False`` return. Only a plain file
    blocking a needed folder raises (``FolderBlockedError``).

    No locking: two writers racing on the same queue resolve as last write wins.
    """

    def __init__(
        self,
        vault: FileStore,
        notifier: Notifier,
        queue_folder: str = DEFAULT_QUEUE_FOLDER,
        *,
        queue_format: str = "json",
        audit: AuditLogger | None = None,
    ) -> None:
        self.vault = vault
        self.notifier = notifier
        self.queue_folder = normalize_path(queue_folder)
        self.format: QueueFormat = get_format(queue_format)
        self.audit = audit

    @property
    def extension(self) -> str:
        return self.format.extension

    def _audit(self, operation: str, **fields: str | int | None) -> None:
        if self.audit is not None:
            self.audit.log(operation, **fields)

    def _in_queue_folder(self, path: str) -> bool:
        return path == self.queue_folder or path.startswith(f"{self.queue_folder}/")

    @staticmethod
    def _climbs_out(path: str) -> bool:
        return ".." in path.split("/")

    def _queue_path(self, queue_name_or_path: str) -> str | None:
        """Resolve a queue path, refusing one with a ``..`` segment."""
        queue_path = self.resolve_queue_path(queue_name_or_path)
        if self._climbs_out(queue_path):
            self.notifier.notify(f"Queue path escapes the queue folder: {queue_path}")
            return None
        return queue_path

    # ---- naming ----

    def resolve_queue_path(self, queue_name_or_path: str) -> str:
        """Resolve a bare name or a path to the queue file path inside the queue folder."""
        normalized = normalize_path(queue_name_or_path)
        if not normalized.endswith(self.extension):
            normalized = f"{normalized}{self.extension}"

        if self._in_queue_folder(normalized):
            return normalized
        return normalize_path(f"{self.queue_folder}/{normalized}")

    def get_queue_display_name(self, queue_path: str) -> str:
        """Strip the queue folder prefix and the extension."""
        normalized = normalize_path(queue_path)
        prefix = f"{self.queue_folder}/"
        relative = normalized[len(prefix) :] if normalized.startswith(prefix) else normalized
        if relative.endswith(self.extension):
            return relative[: -len(self.extension)]
        return relative

    @staticmethod
    def _queue_name_from_path(queue_path: str, extension: str) -> str:
        file_name = normalize_path(queue_path).split("/")[-1]
        if file_name.endswith(extension):
            return file_name[: -len(extension)]
        return file_name

    # ---- queue files ----

    def queue_exists(self, queue_name_or_path: str) -> bool:
        """True if the resolved path names an existing file (not a folder)."""
        queue_path = self.resolve_queue_path(queue_name_or_path)
        if self._climbs_out(queue_path):
            return False
        return self.vault.exists(queue_path) is EntryKind.FILE

    def list_queue_paths(self) -> list[str]:
        """All queue files under the queue folder, sorted ascending."""
        paths = [
            normalize_path(handle.path)
            for handle in self.vault.list_all_files()
        ]
        return sorted(
            path
            for path in paths
            if path.endswith(self.extension) and self._in_queue_folder(path)
        )

    def create_queue(
        self, queue_name_or_path: str, scheduler: SchedulerConfig | None = None
    ) -> QueueState | None:
        """Create and persist an empty queue. Existing files or folders are left alone."""
        queue_path = self._queue_path(queue_name_or_path)
        if queue_path is None:
            return None
        existing = self.vault.exists(queue_path)

        if existing is EntryKind.FILE:
            self.notifier.notify(f"Queue already exists: {queue_path}")
            return None

        if existing is EntryKind.FOLDER:
            self.notifier.notify(f"Queue path points to a folder: {queue_path}")
            return None

        state = create_queue_state(
            self._queue_name_from_path(queue_path, self.extension), scheduler
        )
        try:
            self._ensure_parent_folders(queue_path)
            self.vault.create(queue_path, self.format.encode(state))
        except VaultError as e:
            logger.info("Create failed for %s: %s", queue_path, e)
            self.notifier.notify(f"Failed to write queue file: {queue_path}")
            return None

        logger.info("Created queue %s id=%s", queue_path, state.metadata.id)
        self._audit(ops.QUEUE_CREATE, queue=queue_path, id=state.metadata.id)
        return state

    def load_queue(self, queue_name_or_path: str) -> QueueState | None:
        """Read, decode and validate a queue. Each failure has its own notice."""
        queue_path = self._queue_path(queue_name_or_path)
        if queue_path is None:
            return None

        if self.vault.exists(queue_path) is not EntryKind.FILE:
            self.notifier.notify(f"Queue file not found: {queue_path}")
            return None

        try:
            raw = self.vault.read(queue_path)
        except VaultError as e:
            logger.info("Read failed for %s: %s", queue_path, e)
            self.notifier.notify(f"Failed to read queue file: {queue_path}")
            return None

        try:
            parsed = self.format.decode(raw)
        except DecodeError as e:
            logger.info("Decode failed for %s: %s", queue_path, e)
            self.notifier.notify(f"Queue file is {self.format.description}: {queue_path}")
            return None

        is_valid, errors = validate_queue_state(parsed)
        if not is_valid:
            logger.info("Invalid queue %s: %s", queue_path, "; ".join(errors))
            self.notifier.notify(f"Queue file has invalid schema: {queue_path} ({errors[0]})")
            return None

        return QueueState.model_validate(parsed)

    def save_queue(self, queue_name_or_path: str, state: QueueState) -> bool:
        """Write ``state``, overwriting an existing file. A folder in the way fails."""
        queue_path = self._queue_path(queue_name_or_path)
        if queue_path is None:
            return False
        saved = self._persist(queue_path, state)
        if saved:
            self._audit(ops.QUEUE_SAVE, queue=queue_path, items=len(state.items))
        return saved

    def delete_queue(self, queue_name_or_path: str) -> bool:
        queue_path = self._queue_path(queue_name_or_path)
        if queue_path is None:
            return False

        if self.vault.exists(queue_path) is not EntryKind.FILE:
            self.notifier.notify(f"Queue file not found: {queue_path}")
            return False

        try:
            self.vault.delete(FileHandle(queue_path))
        except VaultError as e:
            logger.info("Delete failed for %s: %s", queue_path, e)
            self.notifier.notify(f"Failed to delete queue file: {queue_path}")
            return False

        logger.info("Deleted queue %s", queue_path)
        self._audit(ops.QUEUE_DELETE, queue=queue_path)
        return True

    # ---- items ----

    def add_item(
        self, queue_name_or_path: str, item: NoteQueueItem | BlockQueueItem
    ) -> QueueState | None:
        """Append ``item`` unless its id is already queued."""
        queue = self.load_queue(queue_name_or_path)
        if queue is None:
            return None

        if any(existing.id == item.id for existing in queue.items):
            self.notifier.notify(f"Queue item already exists: {item.id}")
            return None

        now = now_iso()
        queue.items.append(item.model_copy(update={"updated_at": now}, deep=True))
        queue.metadata.updated_at = now

        queue_path = self.resolve_queue_path(queue_name_or_path)
        if not self._persist(queue_path, queue):
            return None
        self._audit(ops.ITEM_ADD, queue=queue_path, item=item.id, type=item.type)
        return queue

    def update_item(
        self, queue_name_or_path: str, item_id: str, transform: ItemTransform
    ) -> QueueState | None:
        """Replace an item with ``transform(item)``. The transform must keep the id."""
        queue = self.load_queue(queue_name_or_path)
        if queue is None:
            return None

        index = next((i for i, item in enumerate(queue.items) if item.id == item_id), None)
        if index is None:
            self.notifier.notify(f"Queue item not found: {item_id}")
            return None

        updated = transform(queue.items[index])
        if updated.id != item_id:
            self.notifier.notify(f"Queue item update changed id: {item_id} -> {updated.id}")
            return None

        now = now_iso()
        queue.items[index] = updated.model_copy(update={"updated_at": now})
        queue.metadata.updated_at = now

        queue_path = self.resolve_queue_path(queue_name_or_path)
        if not self._persist(queue_path, queue):
            return None
        self._audit(ops.ITEM_UPDATE, queue=queue_path, item=item_id)
        return queue

    def remove_item(self, queue_name_or_path: str, item_id: str) -> QueueState | None:
        queue = self.load_queue(queue_name_or_path)
        if queue is None:
            return None

        remaining = [item for item in queue.items if item.id != item_id]
        if len(remaining) == len(queue.items):
            self.notifier.notify(f"Queue item not found: {item_id}")
            return None

        queue.items = remaining
        queue.metadata.updated_at = now_iso()

        queue_path = self.resolve_queue_path(queue_name_or_path)
        if not self._persist(queue_path, queue):
            return None
        self._audit(ops.ITEM_REMOVE, queue=queue_path, item=item_id)
        return queue

    # ---- low-level helpers ----

    def _persist(self, queue_path: str, state: QueueState) -> bool:
        is_valid, errors = validate_queue_state(state.to_document())
        if not is_valid:
            logger.info("Refusing to save invalid queue %s: %s", queue_path, "; ".join(errors))
            self.notifier.notify(f"Queue state is invalid: {queue_path} ({errors[0]})")
            return False

        serialized = self.format.encode(state)
        try:
            self._ensure_parent_folders(queue_path)
            existing = self.vault.exists(queue_path)

            if existing is EntryKind.FOLDER:
                self.notifier.notify(f"Cannot save queue to folder path: {queue_path}")
                return False

            if existing is EntryKind.FILE:
                self.vault.modify(FileHandle(queue_path), serialized)
            else:
                self.vault.create(queue_path, serialized)
        except VaultError as e:
            logger.info("Write failed for %s: %s", queue_path, e)
            self.notifier.notify(f"Failed to write queue file: {queue_path}")
            return False

        logger.debug("Saved queue %s items=%d", queue_path, len(state.items))
        return True

    def _ensure_parent_folders(self, file_path: str) -> None:
        """Create each missing parent folder in turn."""
        segments = normalize_path(file_path).split("/")[:-1]

        current = ""
        for segment in segments:
            current = f"{current}/{segment}" if current else segment
            existing = self.vault.exists(current)

            if existing is EntryKind.FOLDER:
                continue
            if existing is EntryKind.FILE:
                raise FolderBlockedError(current)

            self.vault.create_folder(current)
