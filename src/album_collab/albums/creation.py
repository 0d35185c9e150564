# album_collab/albums/creation.py

"""Set up a new album review cycle: gather info, provision the form, track it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

from album_collab.domain.errors import DuplicateAlbum, ExternalLookupFailure, UserCancelled
from album_collab.domain.models import (
    Album,
    AlbumRecord,
    CurrentAlbum,
    FormHandle,
    SummaryTable,
)
from album_collab.metadata.spotify_client import AlbumInfoResolver

logger = logging.getLogger(__name__)

LOOKUP_FAILED_MESSAGE = "Unable to fetch album data."
REQUIRED_MESSAGE = "This field is required."


class TextPrompt(Protocol):
    def ask(self, message: str) -> str | None:
        """Return the entered text, or None if the prompt was cancelled."""
        ...

    def alert(self, message: str) -> None: ...


class FormProvisioner(Protocol):
    def create(self, album: Album) -> FormHandle: ...

    def publish(self, handle: FormHandle) -> str: ...


@dataclass(frozen=True, slots=True)
class Question:
    message: str
    field: str
    required: bool = False


SUBMITTER = Question("Enter the name of the album's submitter.", "submitter", required=True)
SPOTIFY_URI = Question(
    "Enter the album's Spotify URI. Leave blank to enter the details by hand.",
    "spotify_uri",
)
MANUAL_DETAILS = (
    Question("Enter the album's title.", "title", required=True),
    Question("Enter the album's artist.", "artist", required=True),
    Question("Enter the album's Spotify URL.", "spotify_url"),
)
DUE_DATE = Question(
    "Enter the due date for reviews. Leave blank to default to {days} days from today.",
    "due_date",
)


def format_due_date(day: date) -> str:
    """Format a date as M/D/YY."""
    return f"{day.month}/{day.day}/{day.year % 100:02d}"


def default_due_date(today: date, days: int) -> str:
    return format_due_date(today + timedelta(days=days))


def _ask_all(prompt: TextPrompt, album: Album, questions: tuple[Question, ...]) -> None:
    """Ask each question in order, storing answers on ``album``.

    Required questions are asked again until answered. Stops at the first
    cancelled prompt by raising UserCancelled.
    """
    for question in questions:
        while True:
            answer = prompt.ask(question.message)
            if answer is None:
                msg = f"Cancelled while entering {question.field}."
                raise UserCancelled(msg)
            answer = answer.strip()
            if answer or not question.required:
                break
            prompt.alert(REQUIRED_MESSAGE)
        setattr(album, question.field, answer)


def prompt_album_info(
    prompt: TextPrompt,
    resolver: AlbumInfoResolver,
    submitter: str | None = None,
    *,
    today: date | None = None,
    review_days: int = 14,
) -> Album:
    """Collect everything needed to start a review cycle for an album.

    The submitter is asked for only when the rotation did not supply one.
    A Spotify identifier is resolved through ``resolver``; a blank answer or
    a failed lookup falls back to entering title, artist and URL by hand.

    Raises:
        UserCancelled: if any prompt is cancelled.
    """
    album = Album()

    if submitter:
        album.submitter = submitter
    else:
        _ask_all(prompt, album, (SUBMITTER,))

    _ask_all(prompt, album, (SPOTIFY_URI,))
    if album.spotify_uri:
        try:
            info = resolver.resolve(album.spotify_uri)
        except ExternalLookupFailure as exc:
            logger.warning("Album lookup failed for %s: %s", album.spotify_uri, exc)
            info = None
    else:
        info = None

    if info is None:
        prompt.alert(LOOKUP_FAILED_MESSAGE)
        _ask_all(prompt, album, MANUAL_DETAILS)
    else:
        album.title = info.title
        album.artist = info.artist
        album.spotify_url = info.url

    due = Question(DUE_DATE.message.format(days=review_days), DUE_DATE.field)
    _ask_all(prompt, album, (due,))
    if not album.due_date:
        album.due_date = default_due_date(today or date.today(), review_days)

    logger.info(
        "Collected album %s submitted by %s (due %s).",
        album.formatted_name,
        album.submitter,
        album.due_date,
    )
    return album


def create_album(
    album: Album,
    provisioner: FormProvisioner,
    table: SummaryTable,
    *,
    today: date | None = None,
) -> CurrentAlbum:
    """Provision the album's form and append it to the summary table.

    Raises:
        ValueError: if the title or artist is blank.
        DuplicateAlbum: if the album is already tracked.
    """
    if not album.title.strip() or not album.artist.strip():
        msg = "An album needs both a title and an artist."
        raise ValueError(msg)

    if table.find(album.title, album.artist) is not None:
        msg = f"{album.formatted_name} is already in the summary."
        raise DuplicateAlbum(msg)

    handle = provisioner.create(album)
    form_url = provisioner.publish(handle)

    table.rows.append(
        AlbumRecord(
            added=today or date.today(),
            title=album.title,
            artist=album.artist,
            submitter=album.submitter,
            form_url=form_url,
            spotify_url=album.spotify_url,
        )
    )
    logger.info("Added %s to the summary (form: %s).", album.formatted_name, form_url)

    return CurrentAlbum(
        name=album.formatted_name,
        submitter=album.submitter,
        form_url=form_url,
        spotify_url=album.spotify_url,
        due_date=album.due_date,
    )

