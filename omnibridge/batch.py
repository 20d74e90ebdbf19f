"""Batch hierarchical creation.

`batch_add_items()` accepts an ordered list of heterogeneous create requests. Some requests
name another request in the same batch as their parent through a caller-chosen `tempId`,
because the parent's real id does not exist until the task manager creates it.

Pipeline (one call, nothing shared with other calls)
1. Whole-batch validation: the input must be a non-empty array of objects with unique
   `tempId`s. Failing here returns `success=false`, an `error`, empty `results`, and makes no
   external call.
2. Graph (`dag.build_graph`) and cycles (`dag.find_cyclic`): positions on a cycle, and
   everything below one, fail with CYCLE_DETECTED even when they are also malformed.
3. Per-item validation (`BatchItemRequest.problem()`): a bad item fails at its own position.
   It still declares its tempId, so anything parented on it cascades.
4. Unknown references: a `parentTempId` naming no declared tempId fails that position alone.
5. Schedule (`dag.schedule`): parents strictly before children, ties by input order.
6. Dispatch, strictly sequential: a position whose parent failed fails with
   DEPENDENCY_FAILED and is never sent. Otherwise the parent's real id is taken from the
   per-call `TempIdRegistry` and written into the properties as the containment target, and
   exactly one external creation call is made. Any failure, explicit or raised, is recorded
   verbatim and the batch continues.
7. Aggregate: one result per input position, in input order. `success` is true iff at least
   one position succeeded.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from typing import Any

from .backends import AutomationBackend
from .dag import build_graph, duplicate_temp_ids, find_cyclic, schedule
from .items import BatchItemRequest, BatchItemResult, BatchResult, ErrorKind, ItemType, parse_item_type
from .operations import remove_item_outcome
from .resolve import IdentifierQuery

# Containment keys a creation script understands; the resolved parent replaces all of them.
_CONTAINMENT_KEYS = ("parentTaskId", "parentTaskName", "projectId", "projectName")


class TempIdRegistry:
    """tempId -> real id, populated only by successful creations within one batch call."""

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}

    def register(self, temp_id: str, real_id: str) -> None:
        self._ids[temp_id] = real_id

    def resolve(self, temp_id: str) -> str | None:
        return self._ids.get(temp_id)

    def __contains__(self, temp_id: object) -> bool:
        return temp_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


def _validate_batch(items: object, *, entry_types: tuple[type, ...] = (Mapping, BatchItemRequest)) -> str | None:
    if not isinstance(items, (list, tuple)):
        return "items must be an array"
    if not items:
        return "items cannot be empty"
    for idx, raw in enumerate(items):
        if not isinstance(raw, entry_types):
            return f"items[{idx}] must be an object"
    return None


def _summarize(results: list[BatchItemResult]) -> BatchResult:
    return BatchResult(success=any(r.success for r in results), results=results)


def _error_message(exc: BaseException) -> str:
    return str(exc) or "Unknown error"


def _with_parent(request: BatchItemRequest, parent: BatchItemRequest, parent_id: str) -> dict[str, Any]:
    props = {k: v for k, v in request.properties.items() if k not in _CONTAINMENT_KEYS}
    if parent.item_type == ItemType.PROJECT:
        props["projectId"] = parent_id
    else:
        props["parentTaskId"] = parent_id
    return props


def _create(request: BatchItemRequest, properties: dict[str, Any], backend: AutomationBackend) -> BatchItemResult:
    try:
        if request.item_type == ItemType.PROJECT:
            created = backend.create_project(request.name, properties)
        else:
            created = backend.create_task(request.name, properties)
    except Exception as exc:
        return BatchItemResult.failed(ErrorKind.CREATION_FAILED, _error_message(exc))
    if not created.ok:
        return BatchItemResult.failed(ErrorKind.CREATION_FAILED, created.error or "Unknown error")
    return BatchItemResult.succeeded(str(created.id))


def batch_add_items(items: object, *, backend: AutomationBackend) -> BatchResult:
    problem = _validate_batch(items)
    if problem is not None:
        return BatchResult.invalid(problem)
    assert isinstance(items, (list, tuple))

    requests = [r if isinstance(r, BatchItemRequest) else BatchItemRequest.from_dict(r) for r in items]

    dupes = duplicate_temp_ids(requests)
    if dupes:
        detail = "; ".join(f"'{tid}' at positions {positions}" for tid, positions in sorted(dupes.items()))
        return BatchResult.invalid(f"Duplicate tempId declarations: {detail}")

    outcomes: list[BatchItemResult | None] = [None] * len(requests)

    # Cycle membership outranks every per-item problem.
    graph = build_graph(requests)
    cyclic = find_cyclic(graph)
    for idx in sorted(cyclic):
        label = requests[idx].temp_id or requests[idx].parent_temp_id
        outcomes[idx] = BatchItemResult.failed(
            ErrorKind.CYCLE,
            f"Cycle detected involving tempId '{label}' (position {idx})",
        )

    invalid = 0
    for idx, req in enumerate(requests):
        if outcomes[idx] is not None:
            continue
        reason = req.problem()
        if reason is not None:
            outcomes[idx] = BatchItemResult.failed(ErrorKind.VALIDATION, reason)
            invalid += 1

    for idx, ref in graph.unknown_refs.items():
        if outcomes[idx] is None:
            outcomes[idx] = BatchItemResult.failed(ErrorKind.UNKNOWN_REFERENCE, f"Unknown parentTempId '{ref}'")

    pre_failed = [i for i, o in enumerate(outcomes) if o is not None]
    print(
        f"[omnibridge] batch: items={len(requests)} invalid={invalid}"
        f" unknown_refs={len(graph.unknown_refs)} cyclic={len(cyclic)}",
        file=sys.stderr,
    )

    registry = TempIdRegistry()
    for idx in schedule(graph, exclude=pre_failed):
        outcomes[idx] = _dispatch(idx, requests, graph.parents, outcomes, registry, backend)

    results = [o if o is not None else BatchItemResult.failed(ErrorKind.CREATION_FAILED, "Item was not processed") for o in outcomes]
    summary = _summarize(results)
    ok = sum(1 for r in results if r.success)
    print(f"[omnibridge] batch done: succeeded={ok} failed={len(results) - ok}", file=sys.stderr)
    return summary


def _dispatch(
    idx: int,
    requests: Sequence[BatchItemRequest],
    parents: Sequence[int | None],
    outcomes: Sequence[BatchItemResult | None],
    registry: TempIdRegistry,
    backend: AutomationBackend,
) -> BatchItemResult:
    req = requests[idx]
    properties = dict(req.properties)

    parent_idx = parents[idx]
    if parent_idx is not None:
        parent_outcome = outcomes[parent_idx]
        parent = requests[parent_idx]
        parent_id = registry.resolve(parent.temp_id) if parent.temp_id is not None else None
        if parent_outcome is None or not parent_outcome.success or parent_id is None:
            cause = parent_outcome.error if parent_outcome is not None else "not processed"
            print(f"[omnibridge] skip {req.item_type} index={idx}: parent index={parent_idx} failed", file=sys.stderr)
            return BatchItemResult.failed(
                ErrorKind.DEPENDENCY_FAILED,
                f"Parent item '{parent.temp_id}' (position {parent_idx}) failed: {cause}",
            )
        properties = _with_parent(req, parent, parent_id)

    result = _create(req, properties, backend)
    if result.success:
        print(f"[omnibridge] create {req.item_type} index={idx} -> {result.id}", file=sys.stderr)
        if req.temp_id is not None and result.id is not None:
            registry.register(req.temp_id, result.id)
    else:
        print(f"[omnibridge] create {req.item_type} index={idx} failed: {result.error}", file=sys.stderr)
    return result


def batch_remove_items(items: object, *, backend: AutomationBackend) -> BatchResult:
    """Remove each `{id?, name?, itemType}` entry, reporting per-position outcomes."""
    problem = _validate_batch(items, entry_types=(Mapping,))
    if problem is not None:
        return BatchResult.invalid(problem)
    assert isinstance(items, (list, tuple))

    results: list[BatchItemResult] = []
    for idx, raw in enumerate(items):
        raw_type = raw.get("itemType", raw.get("type"))
        item_type = parse_item_type(raw_type)
        if item_type is None:
            results.append(BatchItemResult.failed(ErrorKind.VALIDATION, f"Unsupported itemType '{raw_type}'"))
            continue
        payload, kind = remove_item_outcome(IdentifierQuery.from_dict(raw), item_type=item_type, backend=backend)
        if payload.get("success"):
            name = payload.get("name")
            results.append(BatchItemResult.succeeded(str(payload.get("id")), name=(str(name) if name is not None else None)))
        else:
            results.append(
                BatchItemResult.failed(
                    kind,
                    str(payload.get("error") or "Unknown error"),
                    matching_ids=[str(i) for i in payload.get("matchingIds") or []],
                )
            )
        print(f"[omnibridge] remove index={idx} success={results[-1].success}", file=sys.stderr)
    return _summarize(results)
