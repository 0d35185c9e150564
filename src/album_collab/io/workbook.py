# album_collab/io/workbook.py

"""Workbook-backed storage for the schedule, the summary and album responses.

The workbook mirrors the layout of the shared spreadsheet the group works in:

- ``Schedule``: column B holds the ``->`` turn marker, column D the names.
- ``Summary``: one row per album, derived columns after ``Responses``.
- ``Current Album``: labels in column B, values in column C.
- one response sheet per album, named ``"<title> — <artist>"``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from openpyxl.worksheet.worksheet import Worksheet

from album_collab.domain.errors import DuplicateAlbum, InvalidState, ResolutionFailure
from album_collab.domain.models import (
    CRITERIA,
    TBD,
    TEXT_QUESTIONS,
    Album,
    AlbumRecord,
    CurrentAlbum,
    FormHandle,
    SummaryTable,
    formatted_name,
)
from album_collab.schedule.rotation import Roster

logger = logging.getLogger(__name__)

SCHEDULE_SHEET = "Schedule"
SUMMARY_SHEET = "Summary"
CURRENT_ALBUM_SHEET = "Current Album"
RESERVED_SHEETS = (SCHEDULE_SHEET, SUMMARY_SHEET, CURRENT_ALBUM_SHEET)

MARKER = "->"
MARKER_COLUMN = 2  # B
NAME_COLUMN = 4  # D
FIRST_DATA_ROW = 2

SUMMARY_HEADER = (
    "Date",
    "Title",
    "Artist",
    "Submitter",
    "Form",
    "Spotify",
    "Responses",
    *(criterion.name for criterion in CRITERIA),
)
RESPONSE_HEADER = ("Timestamp", *(c.name for c in CRITERIA), *TEXT_QUESTIONS)
CURRENT_ALBUM_LABELS = ("Album", "Submitter", "Form", "Spotify", "Due")

DATE_FORMAT = "mmmm d, yyyy"
TIMESTAMP_FORMAT = "mmmm d, yyyy h:mm am/pm"

_MAX_SHEET_TITLE = 31
_INVALID_TITLE_CHARS = re.compile(r"[\\/*?:\[\]]")


def response_sheet_title(title: str, artist: str) -> str:
    """Sheet title for an album's responses, within Excel's naming rules."""
    name = _INVALID_TITLE_CHARS.sub("-", formatted_name(title, artist))
    return name[:_MAX_SHEET_TITLE]


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class AlbumWorkbook:
    """Read and write the album-collab workbook.

    Every action loads the workbook once, mutates in memory and calls
    :meth:`save` once at the end.
    """

    def __init__(self, path: Path, workbook: Workbook) -> None:
        self.path = path
        self._wb = workbook

    @classmethod
    def open(cls, path: Path | str) -> "AlbumWorkbook":
        path = Path(path)
        if not path.exists():
            msg = f"Workbook not found: {path}. Run 'album-collab init' first."
            raise FileNotFoundError(msg)
        return cls(path, load_workbook(path))

    @classmethod
    def initialize(cls, path: Path | str, submitters: Sequence[str]) -> "AlbumWorkbook":
        """Create a new workbook with the given roster, first submitter marked."""
        path = Path(path)
        if not submitters:
            msg = "At least one submitter is required."
            raise ValueError(msg)

        wb = Workbook()
        schedule = wb.active
        schedule.title = SCHEDULE_SHEET
        schedule.cell(row=1, column=MARKER_COLUMN, value="Turn")
        schedule.cell(row=1, column=NAME_COLUMN, value="Submitter")

        summary = wb.create_sheet(SUMMARY_SHEET)
        summary.append(list(SUMMARY_HEADER))

        current = wb.create_sheet(CURRENT_ALBUM_SHEET)
        for offset, label in enumerate(CURRENT_ALBUM_LABELS):
            current.cell(row=FIRST_DATA_ROW + offset, column=2, value=label)

        workbook = cls(path, wb)
        workbook.save_roster(Roster(submitters=list(submitters), current=0))
        logger.info("Initialized %s with %d submitters.", path, len(submitters))
        return workbook

    @property
    def sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._wb.save(self.path)
        logger.debug("Saved workbook %s.", self.path)

    def _sheet(self, name: str) -> Worksheet:
        if name not in self._wb.sheetnames:
            msg = f"Workbook {self.path} has no '{name}' sheet."
            raise InvalidState(msg)
        return self._wb[name]

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def load_roster(self) -> Roster:
        """Read submitters and the turn marker from the Schedule sheet.

        Raises:
            InvalidState: if more than one row carries the marker.
        """
        sheet = self._sheet(SCHEDULE_SHEET)
        names: list[str] = []
        marked: list[int] = []

        for row in sheet.iter_rows(
            min_row=FIRST_DATA_ROW,
            min_col=MARKER_COLUMN,
            max_col=NAME_COLUMN,
            values_only=True,
        ):
            marker, name = row[0], row[NAME_COLUMN - MARKER_COLUMN]
            if not name:
                break
            if _text(marker).strip() == MARKER:
                marked.append(len(names))
            names.append(str(name))

        if len(marked) > 1:
            msg = f"The schedule marks {len(marked)} submitters as current."
            raise InvalidState(msg)

        return Roster(submitters=names, current=marked[0] if marked else None)

    def save_roster(self, roster: Roster) -> None:
        """Write the full marker/name range back to the Schedule sheet."""
        sheet = self._sheet(SCHEDULE_SHEET)
        for index, name in enumerate(roster.submitters):
            row = FIRST_DATA_ROW + index
            marker = MARKER if index == roster.current else None
            # cell(value=None) leaves the old value in place; assign directly.
            sheet.cell(row=row, column=MARKER_COLUMN).value = marker
            sheet.cell(row=row, column=NAME_COLUMN).value = name

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def load_summary(self) -> SummaryTable:
        sheet = self._sheet(SUMMARY_SHEET)
        width = len(SUMMARY_HEADER)
        table = SummaryTable()

        for row in sheet.iter_rows(
            min_row=FIRST_DATA_ROW, max_col=width, values_only=True
        ):
            values = list(row) + [None] * (width - len(row))
            added, title, artist, submitter, form_url, spotify_url, count = values[:7]
            if title is None and artist is None:
                continue

            averages = [TBD if v is None else _text(v) for v in values[7:width]]
            table.rows.append(
                AlbumRecord(
                    added=_as_date(added),
                    title=_text(title),
                    artist=_text(artist),
                    submitter=_text(submitter),
                    form_url=_text(form_url),
                    spotify_url=_text(spotify_url),
                    response_count=int(count or 0),
                    averages=averages,
                )
            )

        return table

    def save_summary(self, table: SummaryTable) -> None:
        """Rewrite every summary row from ``table``."""
        sheet = self._sheet(SUMMARY_SHEET)
        if sheet.max_row >= FIRST_DATA_ROW:
            sheet.delete_rows(FIRST_DATA_ROW, sheet.max_row - FIRST_DATA_ROW + 1)

        for index, record in enumerate(table, start=FIRST_DATA_ROW):
            values = [
                record.added,
                record.title,
                record.artist,
                record.submitter,
                record.form_url,
                record.spotify_url,
                record.response_count,
                *record.averages,
            ]
            for column, value in enumerate(values, start=1):
                sheet.cell(row=index, column=column).value = value
            sheet.cell(row=index, column=1).number_format = DATE_FORMAT

    # ------------------------------------------------------------------
    # Current album
    # ------------------------------------------------------------------

    def save_current_album(self, current: CurrentAlbum) -> None:
        sheet = self._sheet(CURRENT_ALBUM_SHEET)
        values = (
            current.name,
            current.submitter,
            current.form_url,
            current.spotify_url,
            current.due_date,
        )
        for offset, value in enumerate(values):
            sheet.cell(row=FIRST_DATA_ROW + offset, column=3).value = value

    def load_current_album(self) -> CurrentAlbum | None:
        sheet = self._sheet(CURRENT_ALBUM_SHEET)
        values = [
            _text(sheet.cell(row=FIRST_DATA_ROW + offset, column=3).value)
            for offset in range(len(CURRENT_ALBUM_LABELS))
        ]
        if not values[0]:
            return None
        return CurrentAlbum(*values)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def _existing_sheet_name(self, name: str) -> str | None:
        # Sheet names are case-insensitive.
        wanted = name.casefold()
        for existing in self._wb.sheetnames:
            if existing.casefold() == wanted:
                return existing
        return None

    def add_response_sheet(self, title: str, artist: str) -> str:
        name = response_sheet_title(title, artist)
        existing = self._existing_sheet_name(name)
        if existing is not None:
            msg = f"A sheet named '{existing}' already exists."
            raise DuplicateAlbum(msg)

        # New sheets go to the end of the workbook.
        sheet = self._wb.create_sheet(name)
        sheet.append(list(RESPONSE_HEADER))
        for criterion, cell in zip(CRITERIA, sheet[1][1:]):
            if criterion.help_text:
                cell.comment = Comment(criterion.help_text, "album-collab")
        logger.debug("Created response sheet '%s'.", name)
        return name

    def _response_sheet(self, title: str, artist: str) -> Worksheet:
        name = self._existing_sheet_name(response_sheet_title(title, artist))
        if name is None or name in RESERVED_SHEETS:
            raise ResolutionFailure(title, artist)
        return self._wb[name]

    def response_count_and_values(
        self, title: str, artist: str
    ) -> tuple[int, list[list[Any]]]:
        """Number of responses and, per criterion, the submitted values."""
        sheet = self._response_sheet(title, artist)
        count = sheet.max_row - 1
        columns: list[list[Any]] = [[] for _ in CRITERIA]
        if count < 1:
            return 0, columns

        for row in sheet.iter_rows(
            min_row=FIRST_DATA_ROW,
            max_row=sheet.max_row,
            min_col=2,
            max_col=1 + len(CRITERIA),
            values_only=True,
        ):
            for column, value in zip(columns, row):
                column.append(value)

        return count, columns

    def append_response(
        self,
        title: str,
        artist: str,
        scores: Mapping[str, Any],
        *,
        favorite_songs: str = "",
        analysis: str = "",
        submitted_at: datetime | None = None,
    ) -> None:
        """Record one form response for an album.

        Raises:
            ResolutionFailure: if the album has no response sheet.
            ValueError: if a score is missing, unknown or out of bounds.
        """
        sheet = self._response_sheet(title, artist)
        values = validate_scores(scores)
        timestamp = submitted_at or datetime.now()
        if timestamp.tzinfo is not None:
            # Excel datetimes are naive; store local time.
            timestamp = timestamp.astimezone().replace(tzinfo=None)
        sheet.append([timestamp, *values, favorite_songs, analysis])
        sheet.cell(row=sheet.max_row, column=1).number_format = TIMESTAMP_FORMAT
        logger.debug("Recorded a response for %s.", formatted_name(title, artist))


def validate_scores(scores: Mapping[str, Any]) -> list[int | float]:
    """Return scores in criterion order, checking names and bounds."""
    known = {criterion.name for criterion in CRITERIA}
    unknown = sorted(set(scores) - known)
    if unknown:
        msg = f"Unknown criteria: {', '.join(unknown)}."
        raise ValueError(msg)

    values: list[int | float] = []
    for criterion in CRITERIA:
        if criterion.name not in scores:
            msg = f"Missing score for {criterion.name}."
            raise ValueError(msg)
        value = scores[criterion.name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"Score for {criterion.name} must be a number, got {value!r}."
            raise ValueError(msg)
        if not criterion.low <= value <= criterion.high:
            msg = (
                f"Score for {criterion.name} must be between {criterion.low} "
                f"and {criterion.high}, got {value}."
            )
            raise ValueError(msg)
        values.append(value)
    return values


class WorkbookFormProvisioner:
    """Provision review forms as response sheets in the workbook."""

    def __init__(self, workbook: AlbumWorkbook, base_url: str) -> None:
        self._workbook = workbook
        self._base_url = base_url.rstrip("/")

    def create(self, album: Album) -> FormHandle:
        name = self._workbook.add_response_sheet(album.title, album.artist)
        return FormHandle(name=name, slug=_slugify(album.formatted_name))

    def publish(self, handle: FormHandle) -> str:
        return f"{self._base_url}/{handle.slug}"


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "album"

