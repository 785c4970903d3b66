"""Pytest fixtures for reading queue tests."""

from pathlib import Path

import pytest

from reading_queue.audit import AuditLogger
from reading_queue.models.queue import (
    CursorPosition,
    QueueState,
    ReadingPosition,
    create_block_queue_item,
    create_note_queue_item,
    create_queue_state,
)
from reading_queue.session import ReadingSession
from reading_queue.store import QueueStore
from fakes import CollectingNotifier, FakeWorkspace, InMemoryVault


@pytest.fixture
def vault() -> InMemoryVault:
    return InMemoryVault()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def audit_path(tmp_path: Path) -> Path:
    return tmp_path / "audit.log"


@pytest.fixture
def store(vault, notifier, audit_path) -> QueueStore:
    """JSON-backed store over the in-memory vault."""
    return QueueStore(vault, notifier, audit=AuditLogger(audit_path))


@pytest.fixture
def markdown_store(vault, notifier) -> QueueStore:
    """Markdown-table-backed store over the in-memory vault."""
    return QueueStore(vault, notifier, queue_format="markdown")


@pytest.fixture(params=["json", "markdown"])
def any_store(request, vault, notifier) -> QueueStore:
    """The same store in each encoding."""
    return QueueStore(vault, notifier, queue_format=request.param)


@pytest.fixture
def workspace() -> FakeWorkspace:
    return FakeWorkspace()


@pytest.fixture
def session(store, workspace, tmp_path: Path) -> ReadingSession:
    return ReadingSession(store, workspace, tmp_path / "state" / "session.json")


@pytest.fixture
def sample_state() -> QueueState:
    """A queue holding one note and one positioned block."""
    state = create_queue_state("Daily")
    note = create_note_queue_item("notes/a.md")
    block = create_block_queue_item("notes/b.md", "blk1")
    block.reading_position = ReadingPosition(
        cursor=CursorPosition(line=4, ch=2), scroll_top=200.0
    )
    state.items = [note, block]
    return state


@pytest.fixture
def valid_document(sample_state) -> dict:
    """Plain on-disk form of ``sample_state``."""
    return sample_state.to_document()
