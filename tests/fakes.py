"""In-memory stand-ins for the host ports."""

from dataclasses import dataclass, field

from reading_queue.errors import VaultError
from reading_queue.models.queue import CursorPosition
from reading_queue.ports import EntryKind, FileHandle


class InMemoryVault:
    """FileStore over dicts. Parents must exist, like on a real disk."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.folders: set[str] = set()
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()

    def seed(self, path: str, text: str) -> None:
        """Put a file in place, creating its parent folders."""
        parts = path.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            self.folders.add("/".join(parts[:i]))
        self.files[path] = text

    def _check_parent(self, path: str) -> None:
        parent = path.rpartition("/")[0]
        if parent and parent not in self.folders:
            raise VaultError(f"Parent folder missing: {parent}")

    def exists(self, path: str) -> EntryKind:
        if path in self.files:
            return EntryKind.FILE
        if path in self.folders:
            return EntryKind.FOLDER
        return EntryKind.NONE

    def read(self, path: str) -> str:
        if path in self.fail_reads:
            raise VaultError(f"Simulated read failure: {path}")
        try:
            return self.files[path]
        except KeyError:
            raise VaultError(f"File missing: {path}") from None

    def create(self, path: str, text: str) -> FileHandle:
        if path in self.fail_writes:
            raise VaultError(f"Simulated write failure: {path}")
        if self.exists(path) is not EntryKind.NONE:
            raise VaultError(f"Path already exists: {path}")
        self._check_parent(path)
        self.files[path] = text
        return FileHandle(path)

    def modify(self, handle: FileHandle, text: str) -> None:
        if handle.path in self.fail_writes:
            raise VaultError(f"Simulated write failure: {handle.path}")
        if handle.path not in self.files:
            raise VaultError(f"File missing: {handle.path}")
        self.files[handle.path] = text

    def delete(self, handle: FileHandle) -> None:
        if handle.path not in self.files:
            raise VaultError(f"File missing: {handle.path}")
        del self.files[handle.path]

    def create_folder(self, path: str) -> None:
        if self.exists(path) is not EntryKind.NONE:
            raise VaultError(f"Path already exists: {path}")
        self._check_parent(path)
        self.folders.add(path)

    def list_all_files(self) -> list[FileHandle]:
        return [FileHandle(path) for path in self.files]


class CollectingNotifier:
    """Keep every notice for assertions."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def has(self, prefix: str) -> bool:
        return any(message.startswith(prefix) for message in self.messages)


@dataclass
class FakeEditorView:
    file_path: str | None
    cursor: CursorPosition = field(default_factory=lambda: CursorPosition(line=0, ch=0))
    scroll_top: float = 0.0
    calls: list[tuple] = field(default_factory=list)

    def get_cursor(self) -> CursorPosition:
        return self.cursor

    def set_cursor(self, cursor: CursorPosition) -> None:
        self.cursor = cursor
        self.calls.append(("set_cursor", cursor.line, cursor.ch))

    def get_scroll_top(self) -> float:
        return self.scroll_top

    def scroll_to(self, top: float) -> None:
        self.scroll_top = top
        self.calls.append(("scroll_to", top))

    def focus(self) -> None:
        self.calls.append(("focus",))


class FakeWorkspace:
    """Opening a link replaces the active view with a fresh one on that note."""

    def __init__(self) -> None:
        self.active: FakeEditorView | None = None
        self.opened: list[str] = []

    def active_view(self) -> FakeEditorView | None:
        return self.active

    def open_link(self, label: str) -> FakeEditorView | None:
        self.opened.append(label)
        self.active = FakeEditorView(file_path=label.split("#^", 1)[0])
        return self.active
