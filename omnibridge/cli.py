"""omnibridge.cli

Command-line entrypoint for the OmniFocus automation bridge.

Entry points
- `omnibridge.cli:main` (console script `omnibridge`)
- `python3 -m omnibridge ...` (delegates to this module)

Subcommands
- `batch-add INPUT`: create a batch of tasks/projects (JSON array), honoring
  `tempId` / `parentTempId` hierarchy inside the batch.
- `batch-remove INPUT`: remove a batch of `{id?, name?, itemType}` entries.
- `remove --type T (--id ID | --name NAME)`
- `edit --type T (--id ID | --name NAME) --changes JSON`
- `move --type T (--id ID | --name NAME) --to JSON`

`INPUT` and the JSON-valued flags are read the same way:
- `-` reads all of stdin;
- a path naming an existing file is read as UTF-8;
- anything else is treated as the literal JSON text.
Malformed JSON is reported through argparse (exit status 2).

Flags shared by every subcommand
- `--dry-run`: use the in-memory stub backend; OmniFocus is never contacted.
- `--osascript <exe>`: script runner executable (default: `$OMNIBRIDGE_OSASCRIPT` or
  `osascript`).
- `--timeout <seconds>`: per-script timeout (default: `$OMNIBRIDGE_TIMEOUT`, else none).

Output
The JSON result is printed to stdout with `indent=2`; progress lines go to stderr with the
`[omnibridge]` prefix. The exit status is 0 when the result's `success` is true and 1
otherwise.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any

from .bridge import BridgeConfig, OmniBridge
from .items import ItemType
from .resolve import IdentifierQuery


def _read_input(arg: str) -> str:
    if arg == "-":
        return Path("/dev/stdin").read_text(encoding="utf-8")
    p = Path(arg)
    try:
        is_file = p.is_file()
    except OSError:
        # Long literal JSON can exceed the platform's file name limit.
        is_file = False
    if is_file:
        return p.read_text(encoding="utf-8")
    return arg


def _load_json(parser: argparse.ArgumentParser, arg: str, *, what: str) -> Any:
    text = _read_input(arg)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        parser.error(f"{what} is not valid JSON: {e}")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the in-memory stub backend. Does not contact OmniFocus.",
    )
    p.add_argument(
        "--osascript",
        default=None,
        help="Script runner executable (default: $OMNIBRIDGE_OSASCRIPT or osascript).",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-script timeout in seconds (default: $OMNIBRIDGE_TIMEOUT, else none).",
    )


def _add_target(p: argparse.ArgumentParser) -> None:
    p.add_argument("--type", dest="item_type", required=True, choices=[t.value for t in ItemType])
    p.add_argument("--id", default=None, help="Item id (authoritative).")
    p.add_argument("--name", default=None, help="Item name (exact, case-sensitive; may need disambiguation).")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="omnibridge", description="Structured automation bridge for OmniFocus.")
    sub = p.add_subparsers(dest="command", required=True)

    batch_add = sub.add_parser("batch-add", help="Create tasks/projects in one batch.")
    batch_add.add_argument("input", help="JSON array of items: a filepath, a literal string, or '-' for stdin.")
    _add_common(batch_add)

    batch_remove = sub.add_parser("batch-remove", help="Remove tasks/projects in one batch.")
    batch_remove.add_argument("input", help="JSON array of {id?, name?, itemType}: a filepath, a literal, or '-'.")
    _add_common(batch_remove)

    remove = sub.add_parser("remove", help="Remove one task or project.")
    _add_target(remove)
    _add_common(remove)

    edit = sub.add_parser("edit", help="Edit one task or project.")
    _add_target(edit)
    edit.add_argument("--changes", required=True, help='JSON object of edits, e.g. \'{"newName": "x"}\'.')
    _add_common(edit)

    move = sub.add_parser("move", help="Move one task or project.")
    _add_target(move)
    move.add_argument("--to", dest="destination", required=True, help='JSON object, e.g. \'{"projectId": "abc"}\'.')
    _add_common(move)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))

    try:
        cfg = BridgeConfig.from_env(dry_run=bool(args.dry_run))
    except ValueError as e:
        parser.error(str(e))
    if args.osascript:
        cfg = dataclasses.replace(cfg, osascript=args.osascript)
    if args.timeout is not None:
        if args.timeout <= 0:
            parser.error("--timeout must be positive")
        cfg = dataclasses.replace(cfg, timeout=args.timeout)

    bridge = OmniBridge(cfg)
    if args.dry_run:
        print("[omnibridge] dry run: using stub backend", file=sys.stderr)

    if args.command == "batch-add":
        result = bridge.batch_add(_load_json(parser, args.input, what="batch input"))
    elif args.command == "batch-remove":
        result = bridge.batch_remove(_load_json(parser, args.input, what="batch input"))
    else:
        query = IdentifierQuery(id=args.id or None, name=args.name or None)
        if args.command == "remove":
            result = bridge.remove(query, item_type=args.item_type)
        elif args.command == "edit":
            changes = _load_json(parser, args.changes, what="--changes")
            if not isinstance(changes, dict):
                parser.error("--changes must be a JSON object")
            result = bridge.edit(query, item_type=args.item_type, changes=changes)
        else:
            destination = _load_json(parser, args.destination, what="--to")
            if not isinstance(destination, dict):
                parser.error("--to must be a JSON object")
            result = bridge.move(query, item_type=args.item_type, destination=destination)

    sys.stdout.write(json.dumps(result, indent=2) + "\n")
    sys.stdout.flush()
    return 0 if result.get("success") else 1
