"""Parent graph utilities for the batch creation engine.

A batch is a list of `BatchItemRequest`s. Items refer to each other only through
`tempId` / `parentTempId`, so every item has at most one parent and the graph is built over
*positions* (indices into the batch), never over names or real identifiers.

Graph construction (`build_graph`)
- Every request that declares a `tempId` is indexed by it. If a tempId is declared more than
  once the last declaration wins here; callers are expected to reject such batches first
  (see `duplicate_temp_ids`).
- A `parentTempId` that names no declared tempId is recorded in `unknown_refs` and produces no
  edge. A known one produces the edge `parent -> child`.
- Self-reference (`parentTempId == tempId` on the same request) is simply an edge from a
  position to itself and is reported by `find_cyclic` like any other cycle.

Cycle closure (`find_cyclic`)
- Three-colour depth-first traversal (white/gray/black) over parent->child adjacency. A back
  edge to a gray node closes a cycle; every node on the gray path from that node to the
  current one is cyclic.
- Every node reachable from a cyclic node is cyclic too: its parent chain can never resolve.

Scheduling (`schedule`)
- Kahn-style readiness: a position is ready when it has no parent, when its parent is in
  `exclude` (already completed, as a failure), or when its parent has already been emitted.
- Ties are broken by the smallest input index, so the order is deterministic and does not
  depend on traversal order.
- If positions remain but none is ready, `RuntimeError` is raised instead of looping. With
  every cyclic position in `exclude` this cannot happen.
"""

from __future__ import annotations

import heapq
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from .items import BatchItemRequest

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass
class DependencyGraph:
    parents: list[int | None]
    unknown_refs: dict[int, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.parents)

    def children(self, position: int) -> list[int]:
        return [i for i, p in enumerate(self.parents) if p == position]

    def adjacency(self) -> list[list[int]]:
        adj: list[list[int]] = [[] for _ in self.parents]
        for child, parent in enumerate(self.parents):
            if parent is not None:
                adj[parent].append(child)
        return adj


def duplicate_temp_ids(requests: Sequence[BatchItemRequest]) -> dict[str, list[int]]:
    seen: dict[str, list[int]] = {}
    for idx, req in enumerate(requests):
        if req.temp_id is not None:
            seen.setdefault(req.temp_id, []).append(idx)
    return {tid: positions for tid, positions in seen.items() if len(positions) > 1}


def build_graph(requests: Sequence[BatchItemRequest]) -> DependencyGraph:
    by_temp_id: dict[str, int] = {}
    for idx, req in enumerate(requests):
        if req.temp_id is not None:
            by_temp_id[req.temp_id] = idx

    parents: list[int | None] = []
    unknown: dict[int, str] = {}
    for idx, req in enumerate(requests):
        ref = req.parent_temp_id
        if ref is None:
            parents.append(None)
        elif ref in by_temp_id:
            parents.append(by_temp_id[ref])
        else:
            parents.append(None)
            unknown[idx] = ref
    return DependencyGraph(parents=parents, unknown_refs=unknown)


def find_cyclic(graph: DependencyGraph) -> set[int]:
    """Return every position on a cycle or downstream of one."""
    adj = graph.adjacency()
    color = [_WHITE] * len(graph)
    on_cycle: set[int] = set()

    for start in range(len(graph)):
        if color[start] != _WHITE:
            continue
        # Explicit stack of (node, next child offset); `path` mirrors the gray nodes in order.
        stack: list[tuple[int, int]] = [(start, 0)]
        path: list[int] = [start]
        color[start] = _GRAY
        while stack:
            node, offset = stack[-1]
            if offset >= len(adj[node]):
                stack.pop()
                path.pop()
                color[node] = _BLACK
                continue
            stack[-1] = (node, offset + 1)
            nxt = adj[node][offset]
            if color[nxt] == _GRAY:
                on_cycle.update(path[path.index(nxt):])
            elif color[nxt] == _WHITE:
                color[nxt] = _GRAY
                stack.append((nxt, 0))
                path.append(nxt)

    cyclic = set(on_cycle)
    frontier = sorted(on_cycle)
    while frontier:
        node = frontier.pop()
        for child in adj[node]:
            if child not in cyclic:
                cyclic.add(child)
                frontier.append(child)
    return cyclic


def schedule(graph: DependencyGraph, *, exclude: Collection[int] = ()) -> list[int]:
    """Order the non-excluded positions so every child follows its parent."""
    excluded = set(exclude)
    adj = graph.adjacency()
    remaining = {i for i in range(len(graph)) if i not in excluded}

    ready: list[int] = []
    for idx in sorted(remaining):
        parent = graph.parents[idx]
        if parent is None or parent in excluded:
            heapq.heappush(ready, idx)

    order: list[int] = []
    while ready:
        idx = heapq.heappop(ready)
        order.append(idx)
        remaining.discard(idx)
        for child in adj[idx]:
            if child in remaining:
                heapq.heappush(ready, child)

    if remaining:
        stuck = sorted(remaining)
        raise RuntimeError(f"No schedulable items; unresolved parent cycle among positions: {stuck}")
    return order
