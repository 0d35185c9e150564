# src/album_collab/metadata/spotify_client.py

from __future__ import annotations

import logging
import random
import re
import time
from typing import Any, Protocol

import httpx

from album_collab.domain.errors import ExternalLookupFailure
from album_collab.domain.models import AlbumInfo

logger = logging.getLogger(__name__)


TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 2

# Refresh the token this many seconds before Spotify says it expires.
_TOKEN_EXPIRY_MARGIN = 30.0

_ALBUM_URL_RE = re.compile(r"open\.spotify\.com/(?:intl-[a-z-]+/)?album/([A-Za-z0-9]+)")
_ALBUM_ID_RE = re.compile(r"^[A-Za-z0-9]+$")


class AlbumInfoResolver(Protocol):
    def resolve(self, identifier: str) -> AlbumInfo: ...


def parse_album_id(identifier: str) -> str | None:
    """Extract the album ID from a Spotify URI, album URL or bare ID.

    >>> parse_album_id("spotify:album:4LH4d3cOWNNsVw41Gqt2kv")
    '4LH4d3cOWNNsVw41Gqt2kv'
    """
    text = identifier.strip()
    if not text:
        return None

    if match := _ALBUM_URL_RE.search(text):
        return match.group(1)

    # URIs look like "spotify:album:<id>"; take the last segment.
    candidate = text.split(":")[-1]
    if _ALBUM_ID_RE.match(candidate):
        return candidate
    return None


class SpotifyAlbumResolver:
    """Resolve Spotify album identifiers via the Web API.

    Uses the client-credentials flow; the access token is cached until
    shortly before it expires.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if max_retries < 0:
            msg = "max_retries must be non-negative."
            raise ValueError(msg)

        self._client_id = client_id
        self._client_secret = client_secret
        self._max_retries = max_retries
        self._token: str | None = None
        self._token_expires_at = 0.0

        self._client = httpx.Client(
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "SpotifyAlbumResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def resolve(self, identifier: str) -> AlbumInfo:
        """Look up title, primary artist and canonical URL for an album.

        Raises:
            ExternalLookupFailure: if the identifier is unusable, credentials
                are missing, or the album cannot be fetched.
        """
        album_id = parse_album_id(identifier)
        if album_id is None:
            msg = f"Not a Spotify album identifier: {identifier!r}"
            raise ExternalLookupFailure(msg)

        if not self.has_credentials:
            msg = "Spotify credentials are not configured."
            raise ExternalLookupFailure(msg)

        token = self._access_token()
        data = self._request(
            "GET",
            f"{API_BASE_URL}/albums/{album_id}",
            headers={"Authorization": f"Bearer {token}"},
        )
        info = _album_info_from_payload(data)

        logger.debug(
            "Resolved Spotify album %s to %s — %s.",
            album_id,
            info.title,
            info.artist,
        )
        return info

    def _access_token(self) -> str:
        if self._token is not None and time.monotonic() < self._token_expires_at:
            return self._token

        assert self._client_id is not None and self._client_secret is not None
        data = self._request(
            "POST",
            TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self._client_id, self._client_secret),
        )

        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            msg = "Spotify token response did not contain an access token."
            raise ExternalLookupFailure(msg)

        expires_in = data.get("expires_in", 3600)
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError):
            lifetime = 3600.0

        self._token = token
        self._token_expires_at = time.monotonic() + max(0.0, lifetime - _TOKEN_EXPIRY_MARGIN)
        logger.debug("Fetched a new Spotify access token (expires in %ss).", lifetime)
        return token

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request, retrying 5xx responses and network errors."""
        for attempt in range(1, self._max_retries + 2):
            try:
                response = self._client.request(method, url, **kwargs)

                if response.status_code == 404:
                    msg = f"Spotify returned 404 for {url}."
                    raise ExternalLookupFailure(msg)

                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if 500 <= status < 600 and attempt <= self._max_retries:
                    logger.warning(
                        "Spotify server error (status=%s, attempt=%s/%s). Retrying...",
                        status,
                        attempt,
                        self._max_retries,
                    )
                    _sleep_backoff(attempt)
                    continue

                msg = f"Spotify request failed with status {status}."
                raise ExternalLookupFailure(msg) from exc
            except httpx.RequestError as exc:
                if attempt <= self._max_retries:
                    logger.warning(
                        "Spotify request error (attempt=%s/%s): %s. Retrying...",
                        attempt,
                        self._max_retries,
                        exc,
                    )
                    _sleep_backoff(attempt)
                    continue

                msg = f"Spotify request error after {attempt} attempts: {exc}"
                raise ExternalLookupFailure(msg) from exc
            except ValueError as exc:
                msg = "Spotify returned a response that is not JSON."
                raise ExternalLookupFailure(msg) from exc

            if not isinstance(payload, dict):
                msg = "Spotify returned an unexpected payload."
                raise ExternalLookupFailure(msg)
            return payload

        # Shouldn't be reached, but keeps mypy happy.
        msg = "Spotify request did not complete."
        raise ExternalLookupFailure(msg)


def _album_info_from_payload(data: dict[str, Any]) -> AlbumInfo:
    try:
        title = data["name"]
        artist = data["artists"][0]["name"]
        url = data["external_urls"]["spotify"]
    except (KeyError, IndexError, TypeError) as exc:
        msg = f"Spotify album payload is missing {exc}."
        raise ExternalLookupFailure(msg) from exc

    return AlbumInfo(title=title, artist=artist, url=url)


def _sleep_backoff(attempt: int) -> None:
    """Sleep for a short exponential backoff based on the attempt number."""
    base = 0.5
    max_sleep = 5.0
    delay = min(max_sleep, base * (2 ** (attempt - 1)))
    jitter = random.uniform(0.0, 0.25 * delay)
    time.sleep(delay + jitter)
