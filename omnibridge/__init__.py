"""omnibridge: a structured automation bridge for OmniFocus.

Callers describe what they want as JSON-shaped requests; omnibridge turns each request into
an Omni Automation (OmniJS) script, runs it inside OmniFocus through `osascript`, and
returns a normalized `{"success": ..., ...}` result (`omnibridge.cli:main`, runnable via
`python -m omnibridge`).

What omnibridge provides
- Batch hierarchical creation (`omnibridge.batch.batch_add_items`): an ordered list of task
  and project requests where items may name another item of the same batch as their parent
  through a caller-chosen `tempId`. The batch is turned into a parent graph, cycles are
  detected, parents are created before children, and real ids are substituted as they become
  known. Every input position gets exactly one result, in input order.
- Single-item edit / remove / move (`omnibridge.operations`) with a shared identifier
  protocol (`omnibridge.resolve`): `id` is authoritative, `name` is an exact, case-sensitive
  fallback, and ambiguous names yield `DISAMBIGUATION_REQUIRED` with every matching id.
- A backend protocol (`omnibridge.backends`) with the real OmniFocus implementation and an
  in-memory stub used by `--dry-run`.

Important invariants and conventions
- One failing item never aborts a batch; only malformed batch input is rejected as a whole.
- External calls are issued strictly one at a time; a child is never sent before its
  parent's real id is known.
- The tempId registry lives for a single batch call and is never shared.
- Concurrent batch calls against the same OmniFocus instance are not coordinated.

Key exports from this module
- `__version__`: the package version string. (`__all__` is intentionally limited to this.)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
