"""End-to-end tests for the menu actions against a real workbook."""

from __future__ import annotations

import json
import random
from datetime import date
from pathlib import Path

import pytest

from album_collab import actions
from album_collab.domain.errors import InvalidState, ResolutionFailure, UserCancelled
from album_collab.domain.models import TBD, AlbumInfo, AlbumRecord, SummaryTable
from album_collab.io.responses_jsonl import FormResponse, iter_responses
from album_collab.io.workbook import AlbumWorkbook, WorkbookFormProvisioner
from album_collab.schedule.rotation import Roster

TODAY = date(2024, 1, 20)
KID_A = AlbumInfo(title="Kid A", artist="Radiohead", url="https://open.spotify.com/album/x")


class Confirm:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked = 0

    def ask(self, question: str) -> bool:
        self.asked += 1
        return self.answer


class ScriptedPrompt:
    def __init__(self, answers: list[str | None]) -> None:
        self.answers = list(answers)
        self.alerts: list[str] = []

    def ask(self, message: str) -> str | None:
        return self.answers.pop(0)

    def alert(self, message: str) -> None:
        self.alerts.append(message)


class StaticResolver:
    def __init__(self, info: AlbumInfo) -> None:
        self.info = info

    def resolve(self, identifier: str) -> AlbumInfo:
        return self.info


def _scores(authentic: int, overall: int) -> dict[str, int]:
    return {
        "Authentic": authentic,
        "Adventurous": 3,
        "Accurate": 3,
        "Artistic": 3,
        "Attention-grabbing": 3,
        "Overall": overall,
    }


@pytest.fixture
def path(tmp_path: Path) -> Path:
    path = tmp_path / "collab.xlsx"
    AlbumWorkbook.initialize(path, ["Alice", "Bob", "Carol"]).save()
    return path


def _next(path: Path, answers: list[str | None], info: AlbumInfo = KID_A, confirm=None):
    workbook = AlbumWorkbook.open(path)
    return actions.next_submitter(
        workbook,
        confirm or Confirm(),
        ScriptedPrompt(answers),
        StaticResolver(info),
        WorkbookFormProvisioner(workbook, "https://forms.test"),
        rng=random.Random(3),
        today=TODAY,
    )


def test_next_moves_turn_and_creates_album(path: Path) -> None:
    current = _next(path, ["spotify:album:x", ""])

    assert current.submitter == "Bob"
    assert current.due_date == "2/3/24"

    workbook = AlbumWorkbook.open(path)
    assert workbook.load_roster().current == 1
    (row,) = workbook.load_summary().rows
    assert row.key == ("Kid A", "Radiohead")
    assert row.submitter == "Bob"
    assert row.form_url == "https://forms.test/kid-a-radiohead"
    assert row.response_count == 0
    assert row.averages == [TBD] * 6
    assert workbook.load_current_album() == current
    assert "Kid A — Radiohead" in workbook.sheet_names


def test_cancelled_album_keeps_new_turn(path: Path) -> None:
    with pytest.raises(UserCancelled):
        _next(path, [None])

    workbook = AlbumWorkbook.open(path)
    assert workbook.load_roster().current == 1
    assert len(workbook.load_summary()) == 0
    assert workbook.load_current_album() is None


def test_next_wraps_and_regenerates_order(path: Path) -> None:
    workbook = AlbumWorkbook.open(path)
    workbook.save_roster(Roster(submitters=["Alice", "Bob", "Carol"], current=2))
    workbook.save()
    confirm = Confirm()

    current = _next(path, ["spotify:album:x", ""], confirm=confirm)

    roster = AlbumWorkbook.open(path).load_roster()
    assert confirm.asked == 1
    assert roster.current == 0
    assert sorted(roster.submitters) == ["Alice", "Bob", "Carol"]
    assert current.submitter == roster.submitters[0]


def test_back_moves_turn_without_regenerating(path: Path) -> None:
    confirm = Confirm()

    submitter = actions.previous_submitter(AlbumWorkbook.open(path), confirm)

    assert submitter == "Carol"
    roster = AlbumWorkbook.open(path).load_roster()
    assert roster.current == 2
    assert roster.submitters == ["Alice", "Bob", "Carol"]
    assert confirm.asked == 0


def test_back_without_marker_fails(path: Path) -> None:
    workbook = AlbumWorkbook.open(path)
    workbook.save_roster(Roster(submitters=["Alice", "Bob", "Carol"], current=None))

    with pytest.raises(InvalidState):
        actions.previous_submitter(workbook, Confirm())


def test_generate_declined_changes_nothing(path: Path) -> None:
    assert actions.generate_order(AlbumWorkbook.open(path), Confirm(False)) is False
    assert AlbumWorkbook.open(path).load_roster().submitters == ["Alice", "Bob", "Carol"]


def test_generate_confirmed_saves_permutation(path: Path) -> None:
    workbook = AlbumWorkbook.open(path)

    assert actions.generate_order(workbook, Confirm(), rng=random.Random(5)) is True

    roster = AlbumWorkbook.open(path).load_roster()
    assert sorted(roster.submitters) == ["Alice", "Bob", "Carol"]
    assert roster.current == 0


def test_submit_records_responses_and_recalculates(path: Path) -> None:
    _next(path, ["spotify:album:x", ""])
    responses = [
        FormResponse("Kid A", "Radiohead", _scores(5, 8)),
        FormResponse("Kid A", "Radiohead", _scores(4, 9)),
        FormResponse("Kid A", "Radiohead", _scores(4, 10)),
        FormResponse("Kid A", "Radiohead", _scores(9, 10)),  # out of bounds
    ]

    recorded = actions.submit_responses(AlbumWorkbook.open(path), responses)

    assert recorded == 3
    (row,) = AlbumWorkbook.open(path).load_summary().rows
    assert row.response_count == 3
    assert row.averages == ["4.3", "3.0", "3.0", "3.0", "3.0", "9.0"]


def test_submit_for_unknown_album_saves_nothing(path: Path) -> None:
    _next(path, ["spotify:album:x", ""])
    responses = [
        FormResponse("Kid A", "Radiohead", _scores(5, 8)),
        FormResponse("Blue", "Joni Mitchell", _scores(5, 8)),
    ]

    with pytest.raises(ResolutionFailure):
        actions.submit_responses(AlbumWorkbook.open(path), responses)

    count, _ = AlbumWorkbook.open(path).response_count_and_values("Kid A", "Radiohead")
    assert count == 0


def test_calculate_fails_on_missing_response_sheet(path: Path) -> None:
    workbook = AlbumWorkbook.open(path)
    orphan = AlbumRecord(added=TODAY, title="Blue", artist="Joni Mitchell", submitter="Bob")
    workbook.save_summary(SummaryTable(rows=[orphan]))

    with pytest.raises(ResolutionFailure):
        actions.calculate_summary(workbook)


def test_open_recalculates(path: Path) -> None:
    _next(path, ["spotify:album:x", ""])
    workbook = AlbumWorkbook.open(path)
    workbook.append_response("Kid A", "Radiohead", _scores(5, 10))
    workbook.save()

    table = actions.open_workbook(AlbumWorkbook.open(path))

    assert table.rows[0].response_count == 1
    assert table.rows[0].averages[0] == "5.0"
    assert table.rows[0].averages[-1] == "10"


def test_submit_accepts_utc_timestamps(path: Path, tmp_path: Path) -> None:
    _next(path, ["spotify:album:x", ""])
    export = tmp_path / "responses.jsonl"
    export.write_text(
        json.dumps(
            {
                "title": "Kid A",
                "artist": "Radiohead",
                "scores": _scores(4, 8),
                "submitted_at": "2024-05-01T10:00:00Z",
            }
        )
        + "\n",
        encoding="utf-8",
    )

    recorded = actions.submit_responses(AlbumWorkbook.open(path), iter_responses(export))

    assert recorded == 1
    (row,) = AlbumWorkbook.open(path).load_summary().rows
    assert row.response_count == 1
    assert row.averages[-1] == "8.0"


def test_back_twice_after_next_keeps_single_marker(path: Path) -> None:
    _next(path, ["spotify:album:x", ""])

    assert actions.previous_submitter(AlbumWorkbook.open(path), Confirm()) == "Alice"
    assert actions.previous_submitter(AlbumWorkbook.open(path), Confirm()) == "Carol"
    assert AlbumWorkbook.open(path).load_roster().current == 2
