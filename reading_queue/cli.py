"""Command line front end: ``irqueue``.

Every subcommand works on a vault directory. Opening an item just prints its
link label, since there is no editor attached to a terminal.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from .audit import AuditLogger
from .config import Settings, get_settings
from .errors import FolderBlockedError
from .formats import FORMATS
from .logging_setup import setup_logging
from .models.queue import CursorPosition, ReadingPosition, item_label
from .notify import ConsoleNotifier, LoggingNotifier
from .ports import EditorView
from .session import ReadingSession
from .store import QueueStore
from .vault import LocalVault

logger = logging.getLogger(__name__)

NOTICE_TARGETS = ("console", "log")


class ConsoleWorkspace:
    """Workspace without an editor: links are printed, never opened."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream
        self.opened: list[str] = []

    def active_view(self) -> EditorView | None:
        return None

    def open_link(self, label: str) -> EditorView | None:
        self.opened.append(label)
        print(label, file=self.stream or sys.stdout)
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irqueue",
        description="Incremental reading queues stored in a notes vault",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Vault directory (default: $IRQUEUE_VAULT_DIR or the current directory)",
    )
    parser.add_argument(
        "--folder",
        default=None,
        help="Queue folder inside the vault (default: IncrementalReading)",
    )
    parser.add_argument(
        "--format",
        choices=sorted(FORMATS),
        default=None,
        help="Queue file encoding (default: json)",
    )
    parser.add_argument(
        "--audit-log",
        type=Path,
        default=None,
        help="Append queue changes to this audit file (optional)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Console log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write full debug logs to this file (optional)",
    )
    parser.add_argument(
        "--notices",
        choices=NOTICE_TARGETS,
        default=None,
        help="Print notices to stderr or send them to the log (default: console)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create", help="Create a queue and make it active")
    p.add_argument("name")

    sub.add_parser("list", help="List queues in the queue folder")

    p = sub.add_parser("use", help="Make an existing queue active")
    p.add_argument("name")

    sub.add_parser("status", help="Print the status line of the active queue")
    sub.add_parser("current", help="Open the current item")

    p = sub.add_parser("next", help="Save the reading position and move to the next item")
    p.add_argument("--line", type=int, default=None, help="Cursor line where reading stopped")
    p.add_argument("--ch", type=int, default=None, help="Cursor column where reading stopped")
    p.add_argument("--scroll", type=float, default=None, help="Scroll offset where reading stopped")

    sub.add_parser("dismiss", help="Remove the current item from the queue")

    p = sub.add_parser("add-note", help="Queue a whole note")
    p.add_argument("path")

    p = sub.add_parser("add-block", help="Queue one block of a note, anchoring it if needed")
    p.add_argument("path")
    p.add_argument("line", type=int, help="Zero-based line number of the block")

    p = sub.add_parser("remove", help="Remove an item by id")
    p.add_argument("item_id")
    p.add_argument("--queue", default=None, help="Queue name (default: the active queue)")

    p = sub.add_parser("delete", help="Delete a queue file")
    p.add_argument("name")

    p = sub.add_parser("show", help="Print the items of a queue in rotation order")
    p.add_argument("name", nargs="?", default=None)

    p = sub.add_parser("convert", help="Re-encode a queue in another format")
    p.add_argument("name")
    p.add_argument("--to", dest="target_format", required=True, choices=sorted(FORMATS))
    p.add_argument("--force", action="store_true", help="Overwrite an existing target file")

    return parser


def _resolve_level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)


def _captured_position(args: argparse.Namespace) -> ReadingPosition | None:
    if args.line is None and args.scroll is None:
        return None
    cursor = None
    if args.line is not None:
        cursor = CursorPosition(line=args.line, ch=args.ch if args.ch is not None else 0)
    return ReadingPosition(cursor=cursor, scroll_top=args.scroll)


def _format_position(position: ReadingPosition) -> str:
    parts = []
    if position.cursor is not None:
        parts.append(f"line={position.cursor.line} ch={position.cursor.ch}")
    if position.scroll_top is not None:
        parts.append(f"scroll={position.scroll_top:g}")
    return " ".join(parts) if parts else "-"


class _App:
    """Objects shared by the subcommand handlers."""

    def __init__(self, args: argparse.Namespace, settings: Settings) -> None:
        vault_dir = args.vault if args.vault is not None else settings.vault_dir
        audit_path = args.audit_log if args.audit_log is not None else settings.audit_log
        state_file = settings.state_file
        if not state_file.is_absolute():
            state_file = vault_dir / state_file

        notices = args.notices or settings.notices
        self.notifier = LoggingNotifier(logging.INFO) if notices == "log" else ConsoleNotifier()
        self.vault = LocalVault(vault_dir)
        self.audit = AuditLogger(audit_path) if audit_path is not None else None
        self.queue_folder = args.folder or settings.queue_folder
        self.store = QueueStore(
            self.vault,
            self.notifier,
            self.queue_folder,
            queue_format=args.format or settings.queue_format,
            audit=self.audit,
        )
        self.workspace = ConsoleWorkspace()
        self.session = ReadingSession(self.store, self.workspace, state_file)

    def store_for(self, queue_format: str) -> QueueStore:
        return QueueStore(
            self.vault, self.notifier, self.queue_folder, queue_format=queue_format, audit=self.audit
        )


def _ok(result: object) -> int:
    return 1 if result is None or result is False else 0


def _cmd_create(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.create_queue(args.name))


def _cmd_list(app: _App, args: argparse.Namespace) -> int:
    active = app.session.settings.active_queue_path
    for path in app.store.list_queue_paths():
        marker = "*" if path == active else " "
        print(f"{marker} {app.store.get_queue_display_name(path)}")
    return 0


def _cmd_use(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.use_queue(args.name))


def _cmd_status(app: _App, args: argparse.Namespace) -> int:
    print(app.session.status_text())
    return 0


def _cmd_current(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.open_current())


def _cmd_next(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.next_repetition(_captured_position(args)))


def _cmd_dismiss(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.dismiss_current())


def _cmd_add_note(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.add_note(args.path))


def _cmd_add_block(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.session.add_block(args.path, args.line))


def _cmd_remove(app: _App, args: argparse.Namespace) -> int:
    queue_path = args.queue or app.session.ensure_active_queue_path()
    if queue_path is None:
        return 1
    return _ok(app.store.remove_item(queue_path, args.item_id))


def _cmd_delete(app: _App, args: argparse.Namespace) -> int:
    return _ok(app.store.delete_queue(args.name))


def _cmd_show(app: _App, args: argparse.Namespace) -> int:
    queue_path = args.name or app.session.ensure_active_queue_path()
    if queue_path is None:
        return 1
    state = app.store.load_queue(queue_path)
    if state is None:
        return 1

    print(f"{state.metadata.name} ({len(state.items)} items, scheduler={state.metadata.scheduler.kind})")
    for index, item in enumerate(state.items):
        print(f"{index:>3}  {item.id}  {item.type:<5}  {item_label(item)}  {_format_position(item.reading_position)}")
    return 0


def _cmd_convert(app: _App, args: argparse.Namespace) -> int:
    state = app.store.load_queue(args.name)
    if state is None:
        return 1

    target = app.store_for(args.target_format)
    target_path = target.resolve_queue_path(app.store.get_queue_display_name(args.name))
    if target.queue_exists(target_path) and not args.force:
        app.notifier.notify(f"Queue already exists: {target_path}")
        return 1

    if not target.save_queue(target_path, state):
        return 1
    print(target_path)
    return 0


COMMANDS = {
    "create": _cmd_create,
    "list": _cmd_list,
    "use": _cmd_use,
    "status": _cmd_status,
    "current": _cmd_current,
    "next": _cmd_next,
    "dismiss": _cmd_dismiss,
    "add-note": _cmd_add_note,
    "add-block": _cmd_add_block,
    "remove": _cmd_remove,
    "delete": _cmd_delete,
    "show": _cmd_show,
    "convert": _cmd_convert,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for irqueue."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(
        console_level=_resolve_level(args.log_level or settings.log_level),
        log_file=args.log_file if args.log_file is not None else settings.log_file,
    )

    app = _App(args, settings)
    logger.debug("Running %s", args.command)
    try:
        return COMMANDS[args.command](app, args)
    except FolderBlockedError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
