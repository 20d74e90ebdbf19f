"""Configuration and the caller-facing facade.

`OmniBridge` is what the CLI (and any embedding program) talks to. It owns exactly one
backend, picked from `BridgeConfig`:

- `dry_run=True`: `StubBackend`, no external process is ever started;
- otherwise: `OmniFocusBackend` running `cfg.osascript` with `cfg.timeout`.

Every method returns a JSON-ready dict, so callers can print results unchanged.

Environment
- `OMNIBRIDGE_OSASCRIPT`: executable used to run scripts (default `osascript`).
- `OMNIBRIDGE_TIMEOUT`: per-script timeout in seconds; unset or empty means no timeout.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .backends import AutomationBackend, OmniFocusBackend, StubBackend
from .batch import batch_add_items, batch_remove_items
from .items import ItemType
from .operations import edit_item, move_item, remove_item
from .resolve import IdentifierQuery


@dataclass(frozen=True)
class BridgeConfig:
    osascript: str = "osascript"
    timeout: float | None = None
    dry_run: bool = False

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None, *, dry_run: bool = False) -> "BridgeConfig":
        env = os.environ if env is None else env
        raw_timeout = (env.get("OMNIBRIDGE_TIMEOUT") or "").strip()
        timeout: float | None = None
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ValueError(f"OMNIBRIDGE_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from e
            if timeout <= 0:
                raise ValueError("OMNIBRIDGE_TIMEOUT must be positive")
        return BridgeConfig(
            osascript=(env.get("OMNIBRIDGE_OSASCRIPT") or "osascript"),
            timeout=timeout,
            dry_run=dry_run,
        )


class OmniBridge:
    def __init__(self, cfg: BridgeConfig, *, backend: AutomationBackend | None = None) -> None:
        self.cfg = cfg
        if backend is not None:
            self.backend = backend
        elif cfg.dry_run:
            self.backend = StubBackend()
        else:
            self.backend = OmniFocusBackend(executable=cfg.osascript, timeout=cfg.timeout)

    def batch_add(self, items: object) -> dict[str, Any]:
        return batch_add_items(items, backend=self.backend).to_dict()

    def batch_remove(self, items: object) -> dict[str, Any]:
        return batch_remove_items(items, backend=self.backend).to_dict()

    def remove(self, query: IdentifierQuery, *, item_type: ItemType | str) -> dict[str, Any]:
        return remove_item(query, item_type=item_type, backend=self.backend)

    def edit(self, query: IdentifierQuery, *, item_type: ItemType | str, changes: Mapping[str, Any]) -> dict[str, Any]:
        return edit_item(query, item_type=item_type, changes=changes, backend=self.backend)

    def move(
        self,
        query: IdentifierQuery,
        *,
        item_type: ItemType | str,
        destination: Mapping[str, Any],
    ) -> dict[str, Any]:
        return move_item(query, item_type=item_type, destination=destination, backend=self.backend)
