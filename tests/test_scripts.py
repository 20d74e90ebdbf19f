from __future__ import annotations

import json

import pytest

import omnibridge.scripts as scripts
from omnibridge.items import ItemType


def _params(script: str) -> dict[str, object]:
    line = next(l for l in script.splitlines() if l.strip().startswith("var params = "))
    return json.loads(line.strip()[len("var params = ") : -1])


def test_create_task_script_embeds_params_as_json() -> None:
    script = scripts.create_task_script('He said "hi" `now` ${x}', {"parentTaskId": "abc", "tags": ["Work"]})

    assert _params(script) == {"name": 'He said "hi" `now` ${x}', "props": {"parentTaskId": "abc", "tags": ["Work"]}}
    assert "__BODY__" not in script and "__COMMON__" not in script and "__OMNIBRIDGE_PARAMS__" not in script
    assert "new Task(params.name, position)" in script
    assert "Task.byIdentifier(params.props.parentTaskId)" in script


def test_create_project_script_supports_folder_placement() -> None:
    script = scripts.create_project_script("Launch", {"folderName": "Work", "sequential": True})

    assert _params(script)["props"] == {"folderName": "Work", "sequential": True}
    assert "new Project(params.name, position)" in script
    assert "flattenedFolders" in script


def test_list_and_remove_scripts_carry_item_type() -> None:
    assert _params(scripts.list_entities_script(ItemType.PROJECT)) == {"itemType": "project"}
    remove = scripts.remove_item_script(ItemType.TASK, "id-1")
    assert _params(remove) == {"id": "id-1", "itemType": "task"}
    assert "deleteObject(item)" in remove


def test_move_script_embeds_destination() -> None:
    script = scripts.move_item_script(ItemType.TASK, "id-1", {"projectName": "Home"})

    assert _params(script)["destination"] == {"projectName": "Home"}
    assert "moveTasks" in script


def test_edit_script_only_touches_requested_fields() -> None:
    script = scripts.edit_item_script(ItemType.TASK, "id-1", {"newName": "x", "newStatus": "completed"})

    assert 'params.changes["newName"]' in script
    assert 'params.changes["newStatus"]' in script
    assert "markComplete" in script
    assert 'params.changes["newNote"]' not in script


def test_edit_script_rejects_unknown_field() -> None:
    with pytest.raises(ValueError, match="Unsupported edit field for project: newPlannedDate"):
        scripts.edit_item_script(ItemType.PROJECT, "p", {"newPlannedDate": "2024-01-01"})


@pytest.mark.parametrize(
    "item_type,changes,fragment",
    [
        (ItemType.TASK, {}, "At least one change"),
        (ItemType.TASK, {"newSequential": True}, "Unsupported edit field(s) for task: newSequential"),
        (ItemType.PROJECT, {"newStatus": "completed"}, "Invalid newStatus 'completed'"),
        (ItemType.TASK, {"addTags": "Work"}, "addTags must be an array of strings"),
        (ItemType.TASK, {"removeTags": ["ok", 3]}, "removeTags must be an array of strings"),
    ],
)
def test_edit_problem(item_type: ItemType, changes: dict[str, object], fragment: str) -> None:
    problem = scripts.edit_problem(item_type, changes)

    assert problem is not None
    assert fragment in problem


def test_edit_problem_accepts_valid_changes() -> None:
    assert scripts.edit_problem(ItemType.PROJECT, {"newStatus": "onHold", "addTags": ["a"]}) is None


def test_destination_problem() -> None:
    assert "A destination must be provided" in (scripts.destination_problem(ItemType.TASK, {}) or "")
    assert "Exactly one destination" in (
        scripts.destination_problem(ItemType.TASK, {"projectId": "p", "parentTaskId": "t"}) or ""
    )
    assert "folderId" in (scripts.destination_problem(ItemType.TASK, {"folderId": "f"}) or "")
    assert scripts.destination_problem(ItemType.PROJECT, {"root": True}) is None
    assert scripts.destination_problem(ItemType.TASK, {"inbox": True, "projectId": None}) is None
