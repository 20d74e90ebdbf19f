"""omnibridge.backends

The batch engine and the single-item operations talk to the task manager only through the
small `AutomationBackend` protocol defined here, so orchestration logic stays independent of
how scripts are built and executed.

Protocol
- `create_task(name, properties) -> CreateResult`
- `create_project(name, properties) -> CreateResult`
  Create one item. An explicit failure is reported as `CreateResult(error=...)`; a backend
  may also raise, and callers treat both identically.
- `lookup_candidates(item_type) -> list[Entity]`
  Snapshot of `{id, name}` for every item of that type; input to `resolve.resolve`.
- `edit_item(item_type, item_id, changes) -> OperationResult`
- `remove_item(item_type, item_id) -> OperationResult`
- `move_item(item_type, item_id, destination) -> OperationResult`
  Act on an item that has already been resolved to a real id.

Implementations
- `OmniFocusBackend`: renders an OmniJS script (`omnibridge.scripts`) and runs it with
  `run_omnijs` (`omnibridge.script_exec`). Script payloads are normalized here:
  - `{"success": true, ...}` becomes a successful result;
  - `{"success": false, "error": ...}` and the JXA wrapper's bare `{"error": ...}` become
    failures carrying the message verbatim;
  - anything else (non-object output, missing id) raises `ValueError`.
  Process-level failures (`RuntimeError` from `run_omnijs`) propagate to the caller.
- `StubBackend`: deterministic in-memory implementation used by `--dry-run`. It hands out
  `stub-1`, `stub-2`, ... ids, records every call, and serves what it created as lookup
  candidates, so edit/remove/move can be exercised against a batch created in the same run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from .items import CreateResult, ItemType, OperationResult
from .resolve import Entity
from .script_exec import run_omnijs
from .scripts import (
    create_project_script,
    create_task_script,
    edit_item_script,
    list_entities_script,
    move_item_script,
    remove_item_script,
)


class AutomationBackend(Protocol):
    def create_task(self, name: str, properties: Mapping[str, Any]) -> CreateResult: ...

    def create_project(self, name: str, properties: Mapping[str, Any]) -> CreateResult: ...

    def lookup_candidates(self, item_type: ItemType) -> list[Entity]: ...

    def edit_item(self, item_type: ItemType, item_id: str, changes: Mapping[str, Any]) -> OperationResult: ...

    def remove_item(self, item_type: ItemType, item_id: str) -> OperationResult: ...

    def move_item(self, item_type: ItemType, item_id: str, destination: Mapping[str, Any]) -> OperationResult: ...


class OmniFocusBackend:
    def __init__(self, *, executable: str = "osascript", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def _run(self, script: str) -> dict[str, Any]:
        payload = run_omnijs(script, executable=self.executable, timeout=self.timeout)
        if not isinstance(payload, dict):
            raise ValueError(f"OmniFocus returned non-object output: {payload!r}")
        if "success" not in payload and "error" in payload:
            return {"success": False, "error": str(payload["error"])}
        return payload

    def _create(self, script: str) -> CreateResult:
        payload = self._run(script)
        if not payload.get("success"):
            return CreateResult(error=str(payload.get("error") or "Unknown error"))
        real_id = payload.get("id")
        if not isinstance(real_id, str) or not real_id:
            raise ValueError("OmniFocus reported success without an item id")
        return CreateResult(id=real_id)

    def create_task(self, name: str, properties: Mapping[str, Any]) -> CreateResult:
        return self._create(create_task_script(name, properties))

    def create_project(self, name: str, properties: Mapping[str, Any]) -> CreateResult:
        return self._create(create_project_script(name, properties))

    def lookup_candidates(self, item_type: ItemType) -> list[Entity]:
        payload = self._run(list_entities_script(item_type))
        if not payload.get("success"):
            raise RuntimeError(str(payload.get("error") or f"Failed to list {ItemType(item_type).value}s"))
        items = payload.get("items")
        if not isinstance(items, list):
            raise ValueError("OmniFocus list output missing required field: items[]")
        out: list[Entity] = []
        for it in items:
            if isinstance(it, dict) and it.get("id") is not None:
                out.append(Entity(id=str(it["id"]), name=str(it.get("name") or "")))
        return out

    def _operation(self, script: str) -> OperationResult:
        payload = self._run(script)
        if not payload.get("success"):
            return OperationResult(success=False, error=str(payload.get("error") or "Unknown error"))
        changed = payload.get("changed") or []
        return OperationResult(
            success=True,
            id=(str(payload["id"]) if payload.get("id") is not None else None),
            name=(str(payload["name"]) if payload.get("name") is not None else None),
            changed=[str(c) for c in changed] if isinstance(changed, list) else [],
        )

    def edit_item(self, item_type: ItemType, item_id: str, changes: Mapping[str, Any]) -> OperationResult:
        return self._operation(edit_item_script(item_type, item_id, changes))

    def remove_item(self, item_type: ItemType, item_id: str) -> OperationResult:
        return self._operation(remove_item_script(item_type, item_id))

    def move_item(self, item_type: ItemType, item_id: str, destination: Mapping[str, Any]) -> OperationResult:
        return self._operation(move_item_script(item_type, item_id, destination))


@dataclass
class _StubItem:
    item_type: ItemType
    id: str
    name: str
    properties: dict[str, Any] = field(default_factory=dict)


class StubBackend:
    """In-memory backend for `--dry-run`."""

    def __init__(self) -> None:
        self._next = 0
        self.items: dict[str, _StubItem] = {}
        self.calls: list[tuple[str, Any]] = []

    def _create(self, item_type: ItemType, name: str, properties: Mapping[str, Any]) -> CreateResult:
        self._next += 1
        real_id = f"stub-{self._next}"
        self.items[real_id] = _StubItem(item_type=item_type, id=real_id, name=name, properties=dict(properties))
        return CreateResult(id=real_id)

    def create_task(self, name: str, properties: Mapping[str, Any]) -> CreateResult:
        self.calls.append(("create_task", name))
        return self._create(ItemType.TASK, name, properties)

    def create_project(self, name: str, properties: Mapping[str, Any]) -> CreateResult:
        self.calls.append(("create_project", name))
        return self._create(ItemType.PROJECT, name, properties)

    def lookup_candidates(self, item_type: ItemType) -> list[Entity]:
        self.calls.append(("lookup_candidates", ItemType(item_type).value))
        return [Entity(id=i.id, name=i.name) for i in self.items.values() if i.item_type == item_type]

    def _get(self, item_type: ItemType, item_id: str) -> _StubItem | None:
        item = self.items.get(item_id)
        if item is None or item.item_type != item_type:
            return None
        return item

    def edit_item(self, item_type: ItemType, item_id: str, changes: Mapping[str, Any]) -> OperationResult:
        self.calls.append(("edit_item", item_id))
        item = self._get(item_type, item_id)
        if item is None:
            return OperationResult(success=False, error=f"{ItemType(item_type).value.capitalize()} '{item_id}' not found")
        if "newName" in changes:
            item.name = str(changes["newName"])
        item.properties.update(changes)
        return OperationResult(success=True, id=item.id, name=item.name, changed=list(changes))

    def remove_item(self, item_type: ItemType, item_id: str) -> OperationResult:
        self.calls.append(("remove_item", item_id))
        item = self._get(item_type, item_id)
        if item is None:
            return OperationResult(success=False, error=f"{ItemType(item_type).value.capitalize()} '{item_id}' not found")
        del self.items[item_id]
        return OperationResult(success=True, id=item.id, name=item.name)

    def move_item(self, item_type: ItemType, item_id: str, destination: Mapping[str, Any]) -> OperationResult:
        self.calls.append(("move_item", item_id))
        item = self._get(item_type, item_id)
        if item is None:
            return OperationResult(success=False, error=f"{ItemType(item_type).value.capitalize()} '{item_id}' not found")
        item.properties["destination"] = dict(destination)
        return OperationResult(success=True, id=item.id, name=item.name)
