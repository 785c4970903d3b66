"""Exception types raised by the reading queue core."""


class QueueError(Exception):
    """Base class for reading queue errors."""


class VaultError(QueueError):
    """Raised by a file store when a read, write, create or delete fails."""


class DecodeError(QueueError):
    """Raised when a queue document cannot be decoded."""


class FolderBlockedError(QueueError):
    """Raised when a plain file sits where a queue folder must be created."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot create folder because file exists at {path}")
        self.path = path
