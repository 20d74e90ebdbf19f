from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

import omnibridge.cli as cli


def test_build_parser_batch_add_defaults() -> None:
    args = cli.build_parser().parse_args(["batch-add", "items.json"])

    assert args.command == "batch-add"
    assert args.input == "items.json"
    assert args.dry_run is False
    assert args.osascript is None
    assert args.timeout is None


def test_build_parser_target_flags() -> None:
    args = cli.build_parser().parse_args(
        ["move", "--type", "project", "--name", "Launch", "--to", '{"folderName": "Work"}', "--timeout", "5"]
    )

    assert args.item_type == "project"
    assert args.name == "Launch"
    assert args.id is None
    assert args.destination == '{"folderName": "Work"}'
    assert args.timeout == 5.0


def test_build_parser_rejects_unknown_item_type() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["remove", "--type", "folder", "--id", "x"])


def test_read_input_from_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_read_text(self: Path, encoding: str = "utf-8") -> str:
        assert encoding == "utf-8"
        assert str(self) == "/dev/stdin"
        return "[]"

    monkeypatch.setattr(cli.Path, "read_text", fake_read_text, raising=False)

    assert cli._read_input("-") == "[]"


def test_read_input_from_existing_file(tmp_path: Path) -> None:
    f = tmp_path / "items.json"
    f.write_text('[{"type": "task", "name": "x"}]', encoding="utf-8")

    assert cli._read_input(str(f)) == '[{"type": "task", "name": "x"}]'


def test_read_input_treats_non_file_as_literal(tmp_path: Path) -> None:
    literal = str(tmp_path / "not-a-file")
    assert cli._read_input(literal) == literal

    long_literal = json.dumps([{"type": "task", "name": "x" * 400}])
    assert cli._read_input(long_literal) == long_literal


def _run(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, Any, str]:
    rc = cli.main(argv)
    captured = capsys.readouterr()
    return rc, json.loads(captured.out), captured.err


def test_main_dry_run_batch_add(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)
    items = [
        {"type": "task", "name": "Parent", "tempId": "p"},
        {"type": "task", "name": "Child", "parentTempId": "p"},
    ]

    rc, out, err = _run(capsys, ["batch-add", json.dumps(items), "--dry-run"])

    assert rc == 0
    assert out == {"success": True, "results": [{"success": True, "id": "stub-1"}, {"success": True, "id": "stub-2"}]}
    assert "[omnibridge] dry run" in err


def test_main_returns_one_when_batch_rejected(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)

    rc, out, _err = _run(capsys, ["batch-add", "[]", "--dry-run"])

    assert rc == 1
    assert out == {"success": False, "results": [], "error": "items cannot be empty"}


def test_main_remove_not_found_exit_code(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)

    rc, out, _err = _run(capsys, ["remove", "--type", "task", "--name", "Nothing", "--dry-run"])

    assert rc == 1
    assert out == {"success": False, "error": "Task 'Nothing' not found"}


def test_main_invalid_json_is_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)

    with pytest.raises(SystemExit) as exc:
        cli.main(["batch-add", "{not json", "--dry-run"])

    assert exc.value.code == 2


def test_main_edit_requires_object(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)

    with pytest.raises(SystemExit) as exc:
        cli.main(["edit", "--type", "task", "--id", "x", "--changes", "[1]", "--dry-run"])

    assert exc.value.code == 2


def test_main_rejects_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OMNIBRIDGE_TIMEOUT", raising=False)

    with pytest.raises(SystemExit) as exc:
        cli.main(["remove", "--type", "task", "--id", "x", "--timeout", "0"])

    assert exc.value.code == 2


def test_main_bad_env_timeout_is_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMNIBRIDGE_TIMEOUT", "later")

    with pytest.raises(SystemExit) as exc:
        cli.main(["remove", "--type", "task", "--id", "x", "--dry-run"])

    assert exc.value.code == 2


def test_main_non_dry_run_wires_config_overrides(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("OMNIBRIDGE_OSASCRIPT", "/env/osascript")
    monkeypatch.setenv("OMNIBRIDGE_TIMEOUT", "30")

    captured: dict[str, Any] = {}

    class FakeBridge:
        def __init__(self, cfg: Any) -> None:
            captured["cfg"] = cfg

        def move(self, query: Any, *, item_type: str, destination: dict[str, Any]) -> dict[str, Any]:
            captured["move"] = (query, item_type, destination)
            return {"success": True, "id": "t1", "name": "T"}

    monkeypatch.setattr(cli, "OmniBridge", FakeBridge)

    rc, out, _err = _run(
        capsys,
        ["move", "--type", "task", "--id", "t1", "--to", '{"projectId": "p1"}', "--osascript", "/cli/osa"],
    )

    assert rc == 0
    assert out == {"success": True, "id": "t1", "name": "T"}
    cfg = captured["cfg"]
    assert cfg.osascript == "/cli/osa"
    assert cfg.timeout == 30.0
    assert cfg.dry_run is False
    query, item_type, destination = captured["move"]
    assert (query.id, query.name) == ("t1", None)
    assert item_type == "task"
    assert destination == {"projectId": "p1"}
