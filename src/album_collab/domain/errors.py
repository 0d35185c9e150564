# album_collab/domain/errors.py

"""Exception hierarchy shared by the rotation, summary and album flows."""

from __future__ import annotations


class AlbumCollabError(Exception):
    """Base class for all album-collab errors."""


class InvalidState(AlbumCollabError):
    """The schedule has no current marker (or an inconsistent one)."""


class ResolutionFailure(AlbumCollabError):
    """A summary row does not map to any response collection."""

    def __init__(self, title: str, artist: str) -> None:
        self.title = title
        self.artist = artist
        super().__init__(f"No responses found for {title} — {artist}.")


class ScoreFormatError(AlbumCollabError):
    """A response contains a score that is not a number."""


class DuplicateAlbum(AlbumCollabError):
    """An album with the same title and artist is already tracked."""


class ExternalLookupFailure(AlbumCollabError):
    """The album metadata lookup failed or returned nothing."""


class UserCancelled(AlbumCollabError):
    """The user declined a confirmation or abandoned a prompt.

    Not an error condition: no state has been mutated.
    """
