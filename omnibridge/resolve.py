"""Identifier resolution shared by every single-item operation.

Callers identify an existing task or project with `{id?, name?}`:

- `id` is authoritative. When it is present only an exact identifier match counts; a
  miss is `NotFound` even if `name` would have matched something.
- `name` is the fallback: a case-sensitive exact comparison against every candidate. One
  match resolves, none is `NotFound`, more than one is `Disambiguation` carrying every
  matching id (in candidate order) so the caller can retry by id.
- Neither present is `Unidentified`, a validation failure distinct from `NotFound`.

Empty strings count as absent. The candidate snapshot comes from the backend
(`lookup_candidates(item_type)`); resolution itself is a pure function over it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .items import ErrorKind, ItemType


@dataclass(frozen=True)
class IdentifierQuery:
    id: str | None = None
    name: str | None = None

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "IdentifierQuery":
        raw_id = d.get("id")
        raw_name = d.get("name")
        return IdentifierQuery(
            id=str(raw_id) if raw_id else None,
            name=str(raw_name) if raw_name else None,
        )


@dataclass(frozen=True)
class Entity:
    id: str
    name: str


@dataclass(frozen=True)
class Resolved:
    entity: Entity


@dataclass(frozen=True)
class NotFound:
    message: str
    kind: ErrorKind = ErrorKind.NOT_FOUND


@dataclass(frozen=True)
class Disambiguation:
    message: str
    matching_ids: list[str] = field(default_factory=list)
    kind: ErrorKind = ErrorKind.DISAMBIGUATION


@dataclass(frozen=True)
class Unidentified:
    message: str
    kind: ErrorKind = ErrorKind.VALIDATION


Resolution = Union[Resolved, NotFound, Disambiguation, Unidentified]


def _label(item_type: ItemType | str) -> str:
    return item_type.value if isinstance(item_type, ItemType) else str(item_type)


def resolve(query: IdentifierQuery, candidates: Iterable[Entity], *, item_type: ItemType | str) -> Resolution:
    label = _label(item_type)
    if query.id:
        for c in candidates:
            if c.id == query.id:
                return Resolved(entity=c)
        return NotFound(message=f"{label.capitalize()} '{query.id}' not found")

    if query.name:
        matches = [c for c in candidates if c.name == query.name]
        if not matches:
            return NotFound(message=f"{label.capitalize()} '{query.name}' not found")
        if len(matches) == 1:
            return Resolved(entity=matches[0])
        return Disambiguation(
            message=(
                f"Ambiguous {label} name '{query.name}'. Found {len(matches)} matches. "
                "Please specify by ID."
            ),
            matching_ids=[m.id for m in matches],
        )

    return Unidentified(message=f"Either id or name must be provided to identify the {label}")


def failure_payload(resolution: NotFound | Disambiguation | Unidentified) -> dict[str, Any]:
    """Caller-facing failure shape, identical for every operation embedding the resolver."""
    d: dict[str, Any] = {"success": False, "error": resolution.message}
    if isinstance(resolution, Disambiguation):
        d["code"] = resolution.kind.value
        d["matchingIds"] = list(resolution.matching_ids)
    return d
