"""Tests for reading exported form responses."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from album_collab.io.responses_jsonl import iter_responses, response_from_raw


def test_response_from_raw() -> None:
    response = response_from_raw(
        {
            "title": "Kid A",
            "artist": "Radiohead",
            "scores": {"Overall": 9},
            "analysis": "Cold and lovely.",
            "submitted_at": "2024-01-25T18:30:00",
        }
    )

    assert response.title == "Kid A"
    assert response.scores == {"Overall": 9}
    assert response.favorite_songs == ""
    assert response.submitted_at == datetime(2024, 1, 25, 18, 30)


def test_response_from_raw_rejects_bad_scores() -> None:
    with pytest.raises(ValueError):
        response_from_raw({"title": "Kid A", "artist": "Radiohead", "scores": [1, 2]})


def test_iter_responses_skips_invalid_lines(tmp_path: Path) -> None:
    path = tmp_path / "responses.jsonl"
    lines = [
        json.dumps({"title": "Kid A", "artist": "Radiohead", "scores": {"Overall": 9}}),
        "",
        "{not json",
        json.dumps(["a", "list"]),
        json.dumps({"artist": "Radiohead"}),
        json.dumps({"title": "Blue", "artist": "Joni Mitchell", "submitted_at": "nope"}),
        json.dumps({"title": "Blue", "artist": "Joni Mitchell"}),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    responses = list(iter_responses(path))

    assert [(r.title, r.artist) for r in responses] == [
        ("Kid A", "Radiohead"),
        ("Blue", "Joni Mitchell"),
    ]


@pytest.mark.parametrize("stamp", ["2024-05-01T10:00:00+00:00", "2024-05-01T10:00:00Z"])
def test_timezone_aware_timestamps_become_naive_local(stamp: str) -> None:
    response = response_from_raw(
        {"title": "Kid A", "artist": "Radiohead", "submitted_at": stamp}
    )

    expected = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc).astimezone()
    assert response.submitted_at is not None
    assert response.submitted_at.tzinfo is None
    assert response.submitted_at == expected.replace(tzinfo=None)


def test_non_string_timestamp_is_rejected() -> None:
    with pytest.raises(ValueError):
        response_from_raw(
            {"title": "Kid A", "artist": "Radiohead", "submitted_at": 1714557600}
        )


def test_iter_responses_skips_epoch_timestamps(tmp_path: Path) -> None:
    path = tmp_path / "responses.jsonl"
    lines = [
        json.dumps({"title": "Kid A", "artist": "Radiohead", "submitted_at": 1714557600}),
        json.dumps({"title": "Blue", "artist": "Joni Mitchell"}),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    assert [r.title for r in iter_responses(path)] == ["Blue"]
