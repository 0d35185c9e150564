# album_collab/io/responses_jsonl.py

"""Read exported form responses from JSONL, one response per line."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FormResponse:
    """A single submitted review for an album."""

    title: str
    artist: str
    scores: dict[str, Any] = field(default_factory=dict)
    favorite_songs: str = ""
    analysis: str = ""
    submitted_at: datetime | None = None


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into naive local time."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        msg = f"submitted_at must be an ISO-8601 string, got {value!r}."
        raise ValueError(msg)

    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def response_from_raw(raw: dict[str, Any]) -> FormResponse:
    """Convert a raw JSON dict into a FormResponse.

    Raises:
        KeyError: if title or artist is missing.
        ValueError: if scores is not an object or the timestamp is malformed.
    """
    scores = raw.get("scores", {})
    if not isinstance(scores, dict):
        msg = "scores must be a JSON object."
        raise ValueError(msg)

    return FormResponse(
        title=str(raw["title"]),
        artist=str(raw["artist"]),
        scores=dict(scores),
        favorite_songs=raw.get("favorite_songs") or "",
        analysis=raw.get("analysis") or "",
        submitted_at=_parse_timestamp(raw.get("submitted_at")),
    )


def iter_responses(path: Path) -> Iterator[FormResponse]:
    """Iterate over responses in a JSONL file.

    Empty lines are skipped; invalid lines are logged and skipped.
    """
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning(
                    "Skipping invalid JSON line %d in %s: %s",
                    line_number,
                    path,
                    exc,
                )
                continue
            if not isinstance(obj, dict):
                logger.warning("Skipping non-object line %d in %s.", line_number, path)
                continue
            try:
                yield response_from_raw(obj)
            except (KeyError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed response on line %d in %s: %s",
                    line_number,
                    path,
                    exc,
                )
