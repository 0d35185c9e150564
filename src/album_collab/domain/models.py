# album_collab/domain/models.py

"""Core domain models for the album rotation and its review summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

TBD = "TBD"


@dataclass(frozen=True, slots=True)
class Criterion:
    """A numeric question on the review form."""

    name: str
    help_text: str
    low: int = 1
    high: int = 5


CRITERIA: tuple[Criterion, ...] = (
    Criterion(
        "Authentic",
        "Emotions are real, genuine and truthful; creating good music for the "
        "sake of the music itself.",
    ),
    Criterion(
        "Adventurous",
        "The artist/band looks for new ways to express what they feel and have "
        "to communicate; the surprise element, the creativity, the musical vision.",
    ),
    Criterion(
        "Accurate",
        'A "Yes, that\'s it!" reaction; the translation of feelings through the '
        "mastery of an instrument.",
    ),
    Criterion(
        "Artistic",
        "The more cerebral aspect of music; a concept which leads to structure, "
        "balance, length, interplay, selection of instruments, etc.",
    ),
    Criterion(
        "Attention-grabbing",
        "Music should require some effort from the listener, but it should also "
        "include a factor of entertainment; keeps the listener's attention.",
    ),
    Criterion("Overall", "", low=1, high=10),
)

# Free-text questions that follow the criteria on every form.
TEXT_QUESTIONS: tuple[str, ...] = ("Favorite song(s)", "Analysis")


def formatted_name(title: str, artist: str) -> str:
    """Display name of an album, also used as its response sheet name."""
    return f"{title} — {artist}"


@dataclass(slots=True)
class Album:
    """An album being set up for a review cycle."""

    title: str = ""
    artist: str = ""
    submitter: str = ""
    spotify_uri: str = ""
    spotify_url: str = ""
    due_date: str = ""

    @property
    def formatted_name(self) -> str:
        return formatted_name(self.title, self.artist)


@dataclass(slots=True)
class AlbumInfo:
    """Canonical album metadata returned by a catalog lookup."""

    title: str
    artist: str
    url: str


@dataclass(slots=True)
class AlbumRecord:
    """One row of the summary table."""

    added: date | None
    title: str
    artist: str
    submitter: str
    form_url: str = ""
    spotify_url: str = ""
    response_count: int = 0
    averages: list[str] = field(default_factory=lambda: [TBD] * len(CRITERIA))

    @property
    def key(self) -> tuple[str, str]:
        return (self.title, self.artist)


@dataclass(slots=True)
class SummaryTable:
    """Album records in the order their review cycles started."""

    rows: list[AlbumRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def find(self, title: str, artist: str) -> AlbumRecord | None:
        for row in self.rows:
            if row.key == (title, artist):
                return row
        return None


@dataclass(slots=True)
class CurrentAlbum:
    """What the "Current Album" sheet shows."""

    name: str
    submitter: str
    form_url: str
    spotify_url: str
    due_date: str = ""


@dataclass(slots=True)
class FormHandle:
    """A provisioned review form."""

    name: str
    slug: str
