#!/usr/bin/env python3
"""Check the queue schema contract and every queue file under a folder."""

import argparse
import json
import sys
from pathlib import Path

import jsonschema

from reading_queue.errors import DecodeError
from reading_queue.formats import format_for_path
from reading_queue.validators.queue_state import SCHEMA_PATH, validate_queue_state


def load_schema(path: Path) -> dict:
    data = json.loads(path.read_text(encoding="utf-8"))
    jsonschema.Draft7Validator.check_schema(data)
    return data


def lint_file(path: Path) -> list[str]:
    queue_format = format_for_path(path.name)
    if queue_format is None:
        return []

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return [f"{path}: cannot read: {e}"]

    try:
        data = queue_format.decode(text)
    except DecodeError as e:
        return [f"{path}: {queue_format.description}: {e}"]

    is_valid, errors = validate_queue_state(data)
    if is_valid:
        return []
    return [f"{path}: {error}" for error in errors]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Lint incremental reading queue files")
    parser.add_argument(
        "folder",
        type=Path,
        nargs="?",
        default=None,
        help="Folder to scan for *.irqueue.json / *.irqueue.md files (optional)",
    )
    args = parser.parse_args(argv)

    print("== Queue Lint ==")

    if not SCHEMA_PATH.exists():
        print(f"ERROR: schema not found: {SCHEMA_PATH}")
        return 2

    try:
        load_schema(SCHEMA_PATH)
    except (json.JSONDecodeError, jsonschema.SchemaError) as e:
        print(f"ERROR: schema is broken: {e}")
        return 2
    print(f"Schema OK: {SCHEMA_PATH}")

    if args.folder is None:
        return 0

    if not args.folder.is_dir():
        print(f"ERROR: folder not found: {args.folder}")
        return 2

    checked = 0
    errors: list[str] = []
    for path in sorted(args.folder.rglob("*")):
        if not path.is_file() or format_for_path(path.name) is None:
            continue
        checked += 1
        errors.extend(lint_file(path))

    if errors:
        print("\nQueue file errors:")
        for err in errors:
            print(f"- {err}")
    else:
        print("\nQueue file checks: OK")

    print(f"\nFiles checked: {checked}")
    print(f"Total errors: {len(errors)}")
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
