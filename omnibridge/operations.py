"""Single-item edit / remove / move.

Every operation follows the same three steps:

1. Validate the request itself (item type, edit keys, destination). Problems are reported as
   `{"success": false, "error": ...}` before anything is looked up.
2. Resolve the target with `resolve.resolve` over `backend.lookup_candidates(item_type)`.
   Not-found, unidentified and ambiguous targets are returned in the shared resolver shape
   (`resolve.failure_payload`), so `DISAMBIGUATION_REQUIRED` plus `matchingIds` looks the
   same no matter which operation produced it.
3. Act on the resolved real id through the backend.

Exceptions from the backend (script runner failures, malformed output) are converted to
`{"success": false, "error": <message>}` here; nothing propagates to the caller.

`remove_item_outcome` also returns the `ErrorKind` behind a validation or resolver failure
(`None` for backend failures) so batch removal can report a code per position.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from typing import Any

from .backends import AutomationBackend
from .items import ErrorKind, ItemType, OperationResult, parse_item_type
from .resolve import Entity, IdentifierQuery, Resolved, failure_payload, resolve
from .scripts import destination_problem, edit_problem


def _invalid(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


def _resolve_target(
    query: IdentifierQuery, item_type: ItemType, backend: AutomationBackend
) -> Entity | tuple[dict[str, Any], ErrorKind | None]:
    try:
        candidates = backend.lookup_candidates(item_type)
    except Exception as exc:
        return _invalid(f"Failed to look up {item_type.value}s: {str(exc) or 'Unknown error'}"), None
    resolution = resolve(query, candidates, item_type=item_type)
    if isinstance(resolution, Resolved):
        return resolution.entity
    return failure_payload(resolution), resolution.kind


def _run(
    op: str,
    query: IdentifierQuery,
    item_type: ItemType | str,
    backend: AutomationBackend,
    action: Callable[[ItemType, Entity], OperationResult],
    problem: Callable[[ItemType], str | None] | None = None,
) -> tuple[dict[str, Any], ErrorKind | None]:
    """Return the payload plus the error kind of a validation or resolver failure."""
    kind = parse_item_type(item_type)
    if kind is None:
        return _invalid(f"Unsupported itemType '{item_type}'; expected 'task' or 'project'"), ErrorKind.VALIDATION
    if problem is not None:
        reason = problem(kind)
        if reason is not None:
            return _invalid(reason), ErrorKind.VALIDATION

    target = _resolve_target(query, kind, backend)
    if not isinstance(target, Entity):
        print(f"[omnibridge] {op} {kind.value}: {target[0]['error']}", file=sys.stderr)
        return target

    try:
        res = action(kind, target)
    except Exception as exc:
        print(f"[omnibridge] {op} {kind.value} id={target.id} failed: {exc}", file=sys.stderr)
        return _invalid(str(exc) or "Unknown error"), None
    if not res.success:
        return _invalid(res.error or "Unknown error"), None

    print(f"[omnibridge] {op} {kind.value} id={target.id}", file=sys.stderr)
    return {"success": True, "id": res.id or target.id, "name": res.name or target.name}, None


def remove_item_outcome(
    query: IdentifierQuery, *, item_type: ItemType | str, backend: AutomationBackend
) -> tuple[dict[str, Any], ErrorKind | None]:
    return _run("remove", query, item_type, backend, lambda kind, t: backend.remove_item(kind, t.id))


def remove_item(query: IdentifierQuery, *, item_type: ItemType | str, backend: AutomationBackend) -> dict[str, Any]:
    return remove_item_outcome(query, item_type=item_type, backend=backend)[0]


def edit_item(
    query: IdentifierQuery,
    *,
    item_type: ItemType | str,
    changes: Mapping[str, Any],
    backend: AutomationBackend,
) -> dict[str, Any]:
    changed: list[str] = []

    def action(kind: ItemType, target: Entity) -> OperationResult:
        res = backend.edit_item(kind, target.id, changes)
        changed.extend(res.changed)
        return res

    payload, _kind = _run("edit", query, item_type, backend, action, lambda kind: edit_problem(kind, changes))
    if payload.get("success"):
        payload["changedProperties"] = ", ".join(changed)
    return payload


def move_item(
    query: IdentifierQuery,
    *,
    item_type: ItemType | str,
    destination: Mapping[str, Any],
    backend: AutomationBackend,
) -> dict[str, Any]:
    payload, _kind = _run(
        "move",
        query,
        item_type,
        backend,
        lambda kind, t: backend.move_item(kind, t.id, destination),
        lambda kind: destination_problem(kind, destination),
    )
    return payload
