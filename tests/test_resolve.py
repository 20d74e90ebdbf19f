from __future__ import annotations

from omnibridge.items import ItemType
from omnibridge.resolve import (
    Disambiguation,
    Entity,
    IdentifierQuery,
    NotFound,
    Resolved,
    Unidentified,
    failure_payload,
    resolve,
)

CANDIDATES = [
    Entity(id="a1", name="Alpha"),
    Entity(id="b1", name="Beta"),
    Entity(id="b2", name="Beta"),
    Entity(id="g1", name="gamma"),
]


def test_id_match_wins() -> None:
    res = resolve(IdentifierQuery(id="b2"), CANDIDATES, item_type=ItemType.TASK)

    assert res == Resolved(entity=Entity(id="b2", name="Beta"))


def test_id_shadows_name_even_when_id_is_missing() -> None:
    res = resolve(IdentifierQuery(id="zzz", name="Alpha"), CANDIDATES, item_type=ItemType.TASK)

    assert isinstance(res, NotFound)
    assert res.message == "Task 'zzz' not found"


def test_unique_name_resolves() -> None:
    res = resolve(IdentifierQuery(name="Alpha"), CANDIDATES, item_type=ItemType.PROJECT)

    assert isinstance(res, Resolved)
    assert res.entity.id == "a1"


def test_name_match_is_case_sensitive() -> None:
    res = resolve(IdentifierQuery(name="Gamma"), CANDIDATES, item_type=ItemType.PROJECT)

    assert isinstance(res, NotFound)
    assert res.message == "Project 'Gamma' not found"


def test_ambiguous_name_lists_every_match_in_order() -> None:
    res = resolve(IdentifierQuery(name="Beta"), CANDIDATES, item_type=ItemType.TASK)

    assert isinstance(res, Disambiguation)
    assert res.matching_ids == ["b1", "b2"]
    assert res.message == "Ambiguous task name 'Beta'. Found 2 matches. Please specify by ID."


def test_neither_identifier_is_unidentified() -> None:
    res = resolve(IdentifierQuery.from_dict({"id": "", "name": ""}), CANDIDATES, item_type=ItemType.TASK)

    assert isinstance(res, Unidentified)
    assert res.message == "Either id or name must be provided to identify the task"


def test_failure_payload_adds_code_only_for_disambiguation() -> None:
    amb = resolve(IdentifierQuery(name="Beta"), CANDIDATES, item_type=ItemType.TASK)
    missing = resolve(IdentifierQuery(name="Nope"), CANDIDATES, item_type=ItemType.TASK)

    assert failure_payload(amb) == {
        "success": False,
        "error": "Ambiguous task name 'Beta'. Found 2 matches. Please specify by ID.",
        "code": "DISAMBIGUATION_REQUIRED",
        "matchingIds": ["b1", "b2"],
    }
    assert failure_payload(missing) == {"success": False, "error": "Task 'Nope' not found"}


def test_query_from_dict_coerces_ids() -> None:
    assert IdentifierQuery.from_dict({"id": 42}) == IdentifierQuery(id="42", name=None)
