"""Smoke tests for the album-collab command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from album_collab.cli import ConsoleConfirmation, ConsolePrompt, main
from album_collab.io.workbook import AlbumWorkbook


def _run(path: Path, *args: str) -> None:
    main(["--workbook", str(path), *args])


def test_init_then_back(tmp_path: Path) -> None:
    path = tmp_path / "collab.xlsx"

    _run(path, "init", "Alice", "Bob", "Carol")
    _run(path, "back")

    roster = AlbumWorkbook.open(path).load_roster()
    assert roster.submitters == ["Alice", "Bob", "Carol"]
    assert roster.current == 2


def test_init_refuses_to_overwrite(tmp_path: Path) -> None:
    path = tmp_path / "collab.xlsx"
    _run(path, "init", "Alice")

    with pytest.raises(SystemExit) as excinfo:
        _run(path, "init", "Bob")
    assert excinfo.value.code == 1

    _run(path, "init", "--force", "Bob")
    assert AlbumWorkbook.open(path).load_roster().submitters == ["Bob"]


def test_missing_workbook_exits_with_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(tmp_path / "missing.xlsx", "calculate")
    assert excinfo.value.code == 1


def test_generate_with_yes(tmp_path: Path) -> None:
    path = tmp_path / "collab.xlsx"
    _run(path, "init", "Alice", "Bob", "Carol", "Dan")

    _run(path, "--yes", "generate")

    roster = AlbumWorkbook.open(path).load_roster()
    assert sorted(roster.submitters) == ["Alice", "Bob", "Carol", "Dan"]


def test_submit_and_calculate(tmp_path: Path) -> None:
    path = tmp_path / "collab.xlsx"
    _run(path, "init", "Alice", "Bob")
    workbook = AlbumWorkbook.open(path)
    workbook.add_response_sheet("Kid A", "Radiohead")
    workbook.save()

    responses = tmp_path / "responses.jsonl"
    scores = {
        "Authentic": 5,
        "Adventurous": 4,
        "Accurate": 4,
        "Artistic": 5,
        "Attention-grabbing": 3,
        "Overall": 9,
    }
    responses.write_text(
        json.dumps({"title": "Kid A", "artist": "Radiohead", "scores": scores}) + "\n",
        encoding="utf-8",
    )

    _run(path, "submit", str(responses))
    _run(path, "calculate")

    count, columns = AlbumWorkbook.open(path).response_count_and_values("Kid A", "Radiohead")
    assert count == 1
    assert columns[-1] == [9]


def test_console_prompt_end_of_input_cancels(monkeypatch: pytest.MonkeyPatch) -> None:
    def raise_eof(_prompt: str) -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", raise_eof)

    assert ConsolePrompt().ask("Title?") is None
    assert ConsoleConfirmation().ask("Generate a new order?") is False
    assert ConsoleConfirmation(assume_yes=True).ask("Generate a new order?") is True


def test_console_confirmation_answers(monkeypatch: pytest.MonkeyPatch) -> None:
    answers = iter(["y", "No", " YES "])
    monkeypatch.setattr("builtins.input", lambda _prompt: next(answers))

    confirm = ConsoleConfirmation()
    assert [confirm.ask("?"), confirm.ask("?"), confirm.ask("?")] == [True, False, True]
