"""
Ports (interfaces) consumed by the reading queue.

The store and the session depend on these Protocols instead of a concrete
host: a directory on disk, an in-memory fake in tests, or an editor
integration can stand behind them.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from .models.queue import CursorPosition


class EntryKind(StrEnum):
    """What a vault path currently names."""

    FILE = "file"
    FOLDER = "folder"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class FileHandle:
    """A file known to the file store, addressed by its vault-relative path."""

    path: str


class FileStore(Protocol):
    """
    Host file system. Paths are vault-relative and use ``/``.

    Every method raises ``VaultError`` when the underlying I/O fails.
    """

    def exists(self, path: str) -> EntryKind: ...

    def read(self, path: str) -> str: ...

    def create(self, path: str, text: str) -> FileHandle:
        """Create a new file; fails if anything already exists at ``path``."""
        ...

    def modify(self, handle: FileHandle, text: str) -> None: ...

    def delete(self, handle: FileHandle) -> None: ...

    def create_folder(self, path: str) -> None:
        """Create a single folder; fails if anything already exists at ``path``."""
        ...

    def list_all_files(self) -> list[FileHandle]: ...


class Notifier(Protocol):
    """Fire-and-forget sink for user-facing messages."""

    def notify(self, message: str) -> None: ...


class EditorView(Protocol):
    """An open note in the host editor."""

    @property
    def file_path(self) -> str | None: ...

    def get_cursor(self) -> CursorPosition: ...

    def set_cursor(self, cursor: CursorPosition) -> None: ...

    def get_scroll_top(self) -> float: ...

    def scroll_to(self, top: float) -> None: ...

    def focus(self) -> None: ...


class Workspace(Protocol):
    """Navigation surface: which note is showing, and how to open another."""

    def active_view(self) -> EditorView | None: ...

    def open_link(self, label: str) -> EditorView | None:
        """Open ``path`` or ``path#^blockId`` and return the view showing it."""
        ...
