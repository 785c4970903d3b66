"""File store backed by a directory tree on the local disk."""

import logging
import os
from pathlib import Path

from .errors import VaultError
from .ports import EntryKind, FileHandle

logger = logging.getLogger(__name__)


class LocalVault:
    """
    Map vault-relative ``/`` paths onto a root directory.

    Writes go through a temporary sibling file and ``os.replace`` so a
    crash never leaves a half-written queue behind. Paths that resolve
    outside the root are refused with ``VaultError``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _abs(self, path: str) -> Path:
        target = self.root.joinpath(*[part for part in path.split("/") if part])
        if not target.resolve().is_relative_to(self.root.resolve()):
            raise VaultError(f"Path is outside the vault: {path}")
        return target

    def exists(self, path: str) -> EntryKind:
        try:
            target = self._abs(path)
        except VaultError:
            return EntryKind.NONE
        if target.is_file():
            return EntryKind.FILE
        if target.is_dir():
            return EntryKind.FOLDER
        return EntryKind.NONE

    def read(self, path: str) -> str:
        try:
            return self._abs(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise VaultError(f"Cannot read {path}: {e}") from e

    def create(self, path: str, text: str) -> FileHandle:
        target = self._abs(path)
        try:
            with open(target, "x", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError as e:
            raise VaultError(f"Path already exists: {path}") from e
        except OSError as e:
            raise VaultError(f"Cannot create {path}: {e}") from e
        logger.debug("Created %s", path)
        return FileHandle(path)

    def modify(self, handle: FileHandle, text: str) -> None:
        target = self._abs(handle.path)
        if not target.is_file():
            raise VaultError(f"File missing: {handle.path}")

        tmp_path = target.with_name(f".{target.name}.tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, target)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise VaultError(f"Cannot write {handle.path}: {e}") from e
        logger.debug("Modified %s", handle.path)

    def delete(self, handle: FileHandle) -> None:
        try:
            self._abs(handle.path).unlink()
        except OSError as e:
            raise VaultError(f"Cannot delete {handle.path}: {e}") from e
        logger.debug("Deleted %s", handle.path)

    def create_folder(self, path: str) -> None:
        try:
            self._abs(path).mkdir()
        except FileExistsError as e:
            raise VaultError(f"Path already exists: {path}") from e
        except OSError as e:
            raise VaultError(f"Cannot create folder {path}: {e}") from e
        logger.debug("Created folder %s", path)

    def list_all_files(self) -> list[FileHandle]:
        if not self.root.is_dir():
            return []
        return [
            FileHandle(candidate.relative_to(self.root).as_posix())
            for candidate in self.root.rglob("*")
            if candidate.is_file()
        ]
