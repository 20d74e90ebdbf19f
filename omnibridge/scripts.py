"""OmniJS script generation.

Every generator returns a self-contained Omni Automation script (an IIFE) that reports back
with `JSON.stringify({success: ..., ...})`. Parameters are never spliced into script text
field by field: they are serialized once with `json.dumps` and embedded as a single object
literal (`var params = {...};`), which is valid JavaScript and needs no extra escaping.

Script payload contract (what `omnibridge.backends.OmniFocusBackend` expects back)
- create:  `{"success": true, "id": "...", "name": "...", "placement": "..."}`
- list:    `{"success": true, "items": [{"id": "...", "name": "..."}, ...]}`
- edit:    `{"success": true, "id": "...", "name": "...", "changed": ["name", ...]}`
- remove / move: `{"success": true, "id": "...", "name": "..."}`
- any failure: `{"success": false, "error": "..."}`
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .items import ItemType

_PARAMS_PLACEHOLDER = "__OMNIBRIDGE_PARAMS__"

_IIFE = """(function() {
  try {
    var params = __OMNIBRIDGE_PARAMS__;
    var fail = function(msg) { return JSON.stringify({ success: false, error: msg }); };
    var byName = function(collection, name) {
      var found = [];
      collection.forEach(function(x) { if (x.name === name) { found.push(x); } });
      return found;
    };
__BODY__
  } catch (e) {
    var msg = (e && typeof e.message === 'string') ? e.message : String(e);
    return JSON.stringify({ success: false, error: msg });
  }
})();"""

_APPLY_COMMON_PROPS = """
    if (typeof params.props.note === 'string') { item.note = params.props.note; }
    if (params.props.dueDate) { item.dueDate = new Date(params.props.dueDate); }
    if (params.props.deferDate) { item.deferDate = new Date(params.props.deferDate); }
    if (typeof params.props.flagged === 'boolean') { item.flagged = params.props.flagged; }
    if (typeof params.props.estimatedMinutes === 'number') { item.estimatedMinutes = params.props.estimatedMinutes; }
    (params.props.tags || []).forEach(function(tagName) {
      var tag = flattenedTags.byName(tagName) || new Tag(tagName);
      item.addTag(tag);
    });"""

_CREATE_TASK_BODY = """
    var position = inbox.ending;
    var placement = 'inbox';
    var matches;
    if (params.props.parentTaskId) {
      var parent = Task.byIdentifier(params.props.parentTaskId);
      if (!parent) { return fail("Parent task '" + params.props.parentTaskId + "' not found"); }
      position = parent.ending;
      placement = 'parent';
    } else if (params.props.parentTaskName) {
      matches = byName(flattenedTasks, params.props.parentTaskName);
      if (matches.length !== 1) { return fail("Parent task '" + params.props.parentTaskName + "' not found or ambiguous"); }
      position = matches[0].ending;
      placement = 'parent';
    } else if (params.props.projectId) {
      var project = Project.byIdentifier(params.props.projectId);
      if (!project) { return fail("Project '" + params.props.projectId + "' not found"); }
      position = project.ending;
      placement = 'project';
    } else if (params.props.projectName) {
      matches = byName(flattenedProjects, params.props.projectName);
      if (matches.length !== 1) { return fail("Project '" + params.props.projectName + "' not found or ambiguous"); }
      position = matches[0].ending;
      placement = 'project';
    }
    var item = new Task(params.name, position);
    if (params.props.plannedDate) { item.plannedDate = new Date(params.props.plannedDate); }
__COMMON__
    return JSON.stringify({ success: true, id: item.id.primaryKey, name: item.name, placement: placement });"""

_CREATE_PROJECT_BODY = """
    var position = library.ending;
    var placement = 'root';
    if (params.props.folderId) {
      var folder = Folder.byIdentifier(params.props.folderId);
      if (!folder) { return fail("Folder '" + params.props.folderId + "' not found"); }
      position = folder.ending;
      placement = 'folder';
    } else if (params.props.folderName) {
      var matches = byName(flattenedFolders, params.props.folderName);
      if (matches.length !== 1) { return fail("Folder '" + params.props.folderName + "' not found or ambiguous"); }
      position = matches[0].ending;
      placement = 'folder';
    }
    var item = new Project(params.name, position);
    if (typeof params.props.sequential === 'boolean') { item.sequential = params.props.sequential; }
__COMMON__
    return JSON.stringify({ success: true, id: item.id.primaryKey, name: item.name, placement: placement });"""

_LIST_BODY = """
    var source = params.itemType === 'project' ? flattenedProjects : flattenedTasks;
    var items = [];
    source.forEach(function(x) { items.push({ id: x.id.primaryKey, name: x.name }); });
    return JSON.stringify({ success: true, items: items });"""

_FIND_BY_ID = """
    var item = params.itemType === 'project' ? Project.byIdentifier(params.id) : Task.byIdentifier(params.id);
    if (!item) { return fail((params.itemType === 'project' ? 'Project' : 'Task') + " '" + params.id + "' not found"); }"""

_REMOVE_BODY = (
    _FIND_BY_ID
    + """
    var removedName = item.name;
    deleteObject(item);
    return JSON.stringify({ success: true, id: params.id, name: removedName });"""
)

_MOVE_BODY = (
    _FIND_BY_ID
    + """
    var dest = params.destination;
    var target = null;
    var matches;
    if (params.itemType === 'project') {
      if (dest.folderId) {
        target = Folder.byIdentifier(dest.folderId);
        if (!target) { return fail("Folder '" + dest.folderId + "' not found"); }
      } else if (dest.folderName) {
        matches = byName(flattenedFolders, dest.folderName);
        if (matches.length !== 1) { return fail("Folder '" + dest.folderName + "' not found or ambiguous"); }
        target = matches[0];
      }
      moveSections([item], target ? target.ending : library.ending);
    } else {
      if (dest.parentTaskId) {
        target = Task.byIdentifier(dest.parentTaskId);
        if (!target) { return fail("Parent task '" + dest.parentTaskId + "' not found"); }
      } else if (dest.projectId) {
        target = Project.byIdentifier(dest.projectId);
        if (!target) { return fail("Project '" + dest.projectId + "' not found"); }
      } else if (dest.projectName) {
        matches = byName(flattenedProjects, dest.projectName);
        if (matches.length !== 1) { return fail("Project '" + dest.projectName + "' not found or ambiguous"); }
        target = matches[0];
      }
      moveTasks([item], target ? target.ending : inbox.ending);
    }
    return JSON.stringify({ success: true, id: params.id, name: item.name });"""
)

_DATE = "(v ? new Date(v) : null)"

# Edit keys per item type: key -> (assignment using `v`, changed-property label).
_COMMON_EDITS: dict[str, tuple[str, str]] = {
    "newName": ("item.name = v;", "name"),
    "newNote": ("item.note = v;", "note"),
    "newFlagged": ("item.flagged = v;", "flagged"),
    "newDueDate": (f"item.dueDate = {_DATE};", "due date"),
    "newDeferDate": (f"item.deferDate = {_DATE};", "defer date"),
    "newEstimatedMinutes": ("item.estimatedMinutes = v;", "estimated minutes"),
    "addTags": (
        "v.forEach(function(n) { item.addTag(flattenedTags.byName(n) || new Tag(n)); });",
        "tags (added)",
    ),
    "removeTags": (
        "v.forEach(function(n) { var t = flattenedTags.byName(n); if (t) { item.removeTag(t); } });",
        "tags (removed)",
    ),
}

EDITABLE_FIELDS: dict[ItemType, dict[str, tuple[str, str]]] = {
    ItemType.TASK: {
        **_COMMON_EDITS,
        "newPlannedDate": (f"item.plannedDate = {_DATE};", "planned date"),
        "newStatus": (
            "if (v === 'completed') { item.markComplete(); }"
            " else if (v === 'dropped') { item.drop(false); }"
            " else { item.markIncomplete(); }",
            "status",
        ),
    },
    ItemType.PROJECT: {
        **_COMMON_EDITS,
        "newSequential": ("item.sequential = v;", "sequential"),
        "newStatus": (
            "item.status = Project.Status[{active: 'Active', onHold: 'OnHold', done: 'Done', dropped: 'Dropped'}[v]];",
            "status",
        ),
    },
}

STATUS_VALUES: dict[ItemType, frozenset[str]] = {
    ItemType.TASK: frozenset({"completed", "dropped", "incomplete"}),
    ItemType.PROJECT: frozenset({"active", "onHold", "done", "dropped"}),
}

DESTINATION_KEYS: dict[ItemType, frozenset[str]] = {
    ItemType.TASK: frozenset({"parentTaskId", "projectId", "projectName", "inbox"}),
    ItemType.PROJECT: frozenset({"folderId", "folderName", "root"}),
}


def _render(body: str, params: Mapping[str, Any]) -> str:
    script = _IIFE.replace("__BODY__", body.replace("__COMMON__", _APPLY_COMMON_PROPS))
    return script.replace(_PARAMS_PLACEHOLDER, json.dumps(dict(params), sort_keys=True))


def create_task_script(name: str, properties: Mapping[str, Any]) -> str:
    return _render(_CREATE_TASK_BODY, {"name": name, "props": dict(properties)})


def create_project_script(name: str, properties: Mapping[str, Any]) -> str:
    return _render(_CREATE_PROJECT_BODY, {"name": name, "props": dict(properties)})


def list_entities_script(item_type: ItemType) -> str:
    return _render(_LIST_BODY, {"itemType": ItemType(item_type).value})


def remove_item_script(item_type: ItemType, item_id: str) -> str:
    return _render(_REMOVE_BODY, {"itemType": ItemType(item_type).value, "id": item_id})


def move_item_script(item_type: ItemType, item_id: str, destination: Mapping[str, Any]) -> str:
    return _render(
        _MOVE_BODY,
        {"itemType": ItemType(item_type).value, "id": item_id, "destination": dict(destination)},
    )


def edit_item_script(item_type: ItemType, item_id: str, changes: Mapping[str, Any]) -> str:
    """Build an edit script with one guarded assignment per requested change.

    Unknown keys raise `ValueError`; call `edit_problem()` first to report them politely.
    """
    table = EDITABLE_FIELDS[ItemType(item_type)]
    lines = [_FIND_BY_ID, "    var changed = [];", "    var v;"]
    for key in changes:
        if key not in table:
            raise ValueError(f"Unsupported edit field for {ItemType(item_type).value}: {key}")
        assign, label = table[key]
        lines.append(f"    v = params.changes[{json.dumps(key)}]; {assign} changed.push({json.dumps(label)});")
    lines.append("    return JSON.stringify({ success: true, id: params.id, name: item.name, changed: changed });")
    return _render(
        "\n".join(lines),
        {"itemType": ItemType(item_type).value, "id": item_id, "changes": dict(changes)},
    )


def edit_problem(item_type: ItemType, changes: Mapping[str, Any]) -> str | None:
    if not changes:
        return "At least one change must be provided"
    table = EDITABLE_FIELDS[ItemType(item_type)]
    unknown = sorted(k for k in changes if k not in table)
    if unknown:
        return f"Unsupported edit field(s) for {ItemType(item_type).value}: {', '.join(unknown)}"
    status = changes.get("newStatus")
    if status is not None and status not in STATUS_VALUES[ItemType(item_type)]:
        allowed = ", ".join(sorted(STATUS_VALUES[ItemType(item_type)]))
        return f"Invalid newStatus '{status}'; expected one of: {allowed}"
    for key in ("addTags", "removeTags"):
        tags = changes.get(key)
        if tags is not None and (not isinstance(tags, list) or any(not isinstance(t, str) for t in tags)):
            return f"{key} must be an array of strings"
    return None


def destination_problem(item_type: ItemType, destination: Mapping[str, Any]) -> str | None:
    allowed = DESTINATION_KEYS[ItemType(item_type)]
    given = [k for k, v in destination.items() if v not in (None, "", False)]
    if not given:
        return f"A destination must be provided; expected one of: {', '.join(sorted(allowed))}"
    unknown = sorted(k for k in given if k not in allowed)
    if unknown:
        return f"Unsupported destination field(s) for {ItemType(item_type).value}: {', '.join(unknown)}"
    if len(given) > 1:
        return f"Exactly one destination may be provided, got: {', '.join(sorted(given))}"
    return None
