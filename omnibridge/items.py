"""omnibridge.items

Request and result shapes shared by the batch engine, the single-item operations and
the backends.

Caller-facing request shape (one element of a `batch-add` array)
- `type` / `itemType` (string): "task" or "project".
- `name` (string, required): must be non-empty after trimming.
- `tempId` (string, optional): batch-scoped handle other items may use as their parent.
- `parentTempId` (string, optional): the `tempId` of another item in the same batch.
- `hierarchyLevel` (int, optional): informational hint; never used for ordering.
- any other key (`note`, `dueDate`, `deferDate`, `flagged`, `estimatedMinutes`, `tags`,
  `projectName`, `folderName`, `sequential`, ...) is collected into
  `BatchItemRequest.properties` and forwarded verbatim to the creation script.

Parsing is forgiving in the same way for every mapping: identifiers are coerced to `str`,
blank optional strings become `None`, and nothing is rejected at parse time.
`BatchItemRequest.problem()` is the single place where per-item validity is decided, so the
batch engine can report a bad item at its own position instead of failing the whole call.

Result shapes
- `BatchItemResult.to_dict()`:
  - success: `{"success": true, "id": "<real id>"}`, plus `"name"` for batch removal
  - failure: `{"success": false, "error": "<message>", "code": "<ErrorKind>"}`, plus
    `"matchingIds"` when a name was ambiguous
- `BatchResult.to_dict()`: `{"success": bool, "results": [...]}` plus `"error"` only for
  whole-batch validation failures (in which case `results` is empty).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ItemType(str, Enum):
    TASK = "task"
    PROJECT = "project"


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
    CYCLE = "CYCLE_DETECTED"
    DEPENDENCY_FAILED = "DEPENDENCY_FAILED"
    CREATION_FAILED = "CREATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    DISAMBIGUATION = "DISAMBIGUATION_REQUIRED"


_KNOWN_KEYS = {"type", "itemType", "name", "tempId", "parentTempId", "hierarchyLevel"}


def parse_item_type(v: Any) -> ItemType | None:
    if isinstance(v, ItemType):
        return v
    try:
        return ItemType(str(v))
    except ValueError:
        return None


def _opt_str(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v)
    return s if s.strip() else None


@dataclass
class BatchItemRequest:
    item_type: str
    name: str
    temp_id: str | None = None
    parent_temp_id: str | None = None
    hierarchy_level: int | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Keep the plain string value so comparisons and log lines behave the same either way.
        if isinstance(self.item_type, ItemType):
            self.item_type = self.item_type.value

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "BatchItemRequest":
        known: dict[str, Any] = {}
        properties: dict[str, Any] = {}
        for k, v in d.items():
            if k in _KNOWN_KEYS:
                known[k] = v
            else:
                properties[k] = v

        raw_type = known.get("itemType", known.get("type"))
        item_type = parse_item_type(raw_type)
        level = known.get("hierarchyLevel")
        try:
            hierarchy_level = int(level) if level is not None else None
        except (TypeError, ValueError):
            hierarchy_level = None

        return BatchItemRequest(
            item_type=(item_type.value if item_type is not None else str(raw_type or "")),
            name=str(known.get("name") or ""),
            temp_id=_opt_str(known.get("tempId")),
            parent_temp_id=_opt_str(known.get("parentTempId")),
            hierarchy_level=hierarchy_level,
            properties=properties,
        )

    def problem(self) -> str | None:
        """Return why this request cannot be dispatched, or None when it is valid."""
        if parse_item_type(self.item_type) is None:
            return f"Unsupported itemType '{self.item_type}'; expected 'task' or 'project'"
        if not self.name.strip():
            return "Item name must be a non-empty string"
        if self.item_type == ItemType.PROJECT and self.parent_temp_id is not None:
            return "Projects cannot be nested under another batch item; remove parentTempId"
        return None


@dataclass(frozen=True)
class BatchItemResult:
    success: bool
    id: str | None = None
    error: str | None = None
    kind: ErrorKind | None = None
    name: str | None = None
    matching_ids: list[str] = field(default_factory=list)

    @staticmethod
    def succeeded(real_id: str, *, name: str | None = None) -> "BatchItemResult":
        return BatchItemResult(success=True, id=real_id, name=name)

    @staticmethod
    def failed(kind: ErrorKind | None, message: str, *, matching_ids: list[str] | None = None) -> "BatchItemResult":
        return BatchItemResult(success=False, error=message, kind=kind, matching_ids=list(matching_ids or []))

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            d: dict[str, Any] = {"success": True, "id": self.id}
            if self.name is not None:
                d["name"] = self.name
            return d
        d = {"success": False, "error": self.error or "Unknown error"}
        if self.kind is not None:
            d["code"] = self.kind.value
        if self.matching_ids:
            d["matchingIds"] = list(self.matching_ids)
        return d


@dataclass(frozen=True)
class BatchResult:
    success: bool
    results: list[BatchItemResult]
    error: str | None = None

    @staticmethod
    def invalid(message: str) -> "BatchResult":
        return BatchResult(success=False, results=[], error=message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"success": self.success, "results": [r.to_dict() for r in self.results]}
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class CreateResult:
    """Outcome of one external creation call."""

    id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.id is not None and self.error is None


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one external edit/remove/move call on an already-resolved item."""

    success: bool
    id: str | None = None
    name: str | None = None
    error: str | None = None
    changed: list[str] = field(default_factory=list)
