from __future__ import annotations

import pytest

from omnibridge.backends import OmniFocusBackend, StubBackend
from omnibridge.bridge import BridgeConfig, OmniBridge
from omnibridge.resolve import IdentifierQuery


def test_from_env_defaults() -> None:
    assert BridgeConfig.from_env({}) == BridgeConfig(osascript="osascript", timeout=None, dry_run=False)


def test_from_env_reads_overrides() -> None:
    cfg = BridgeConfig.from_env({"OMNIBRIDGE_OSASCRIPT": "/opt/osa", "OMNIBRIDGE_TIMEOUT": " 12.5 "}, dry_run=True)

    assert cfg == BridgeConfig(osascript="/opt/osa", timeout=12.5, dry_run=True)


@pytest.mark.parametrize("raw,fragment", [("soon", "number of seconds"), ("0", "positive"), ("-3", "positive")])
def test_from_env_rejects_bad_timeout(raw: str, fragment: str) -> None:
    with pytest.raises(ValueError, match=fragment):
        BridgeConfig.from_env({"OMNIBRIDGE_TIMEOUT": raw})


def test_backend_selection() -> None:
    assert isinstance(OmniBridge(BridgeConfig(dry_run=True)).backend, StubBackend)

    real = OmniBridge(BridgeConfig(osascript="osa", timeout=3.0)).backend
    assert isinstance(real, OmniFocusBackend)
    assert (real.executable, real.timeout) == ("osa", 3.0)


def test_dry_run_batch_then_single_item_operations() -> None:
    bridge = OmniBridge(BridgeConfig(dry_run=True))

    added = bridge.batch_add(
        [
            {"type": "project", "name": "Launch", "tempId": "p"},
            {"type": "task", "name": "Kickoff", "tempId": "k", "parentTempId": "p"},
            {"type": "task", "name": "Agenda", "parentTempId": "k"},
        ]
    )

    assert added == {
        "success": True,
        "results": [
            {"success": True, "id": "stub-1"},
            {"success": True, "id": "stub-2"},
            {"success": True, "id": "stub-3"},
        ],
    }

    edited = bridge.edit(IdentifierQuery(name="Agenda"), item_type="task", changes={"newFlagged": True})
    assert edited == {"success": True, "id": "stub-3", "name": "Agenda", "changedProperties": "newFlagged"}

    moved = bridge.move(IdentifierQuery(id="stub-3"), item_type="task", destination={"inbox": True})
    assert moved["success"] is True

    removed = bridge.remove(IdentifierQuery(name="Kickoff"), item_type="task")
    assert removed == {"success": True, "id": "stub-2", "name": "Kickoff"}

    batch_removed = bridge.batch_remove([{"id": "stub-1", "itemType": "project"}, {"name": "Kickoff", "itemType": "task"}])
    assert batch_removed["success"] is True
    assert batch_removed["results"][0] == {"success": True, "id": "stub-1", "name": "Launch"}
    assert batch_removed["results"][1] == {"success": False, "error": "Task 'Kickoff' not found", "code": "NOT_FOUND"}
