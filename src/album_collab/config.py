# album_collab/config.py

"""Shared configuration and environment setup."""

from __future__ import annotations

from dataclasses import dataclass
from os import getenv
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

DEFAULT_WORKBOOK_NAME = "album_collaborative.xlsx"
DEFAULT_FORM_BASE_URL = "https://forms.example.com/album-collab"
DEFAULT_REVIEW_DAYS = 14


@dataclass(slots=True)
class Settings:
    """Runtime settings resolved from the environment."""

    workbook_path: Path
    form_base_url: str
    review_days: int
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None


def get_project_root() -> Path:
    """Return the project root directory.

    Prefers ALBUM_COLLAB_PROJECT_ROOT env var. Falls back to current working directory.
    """
    if root := getenv("ALBUM_COLLAB_PROJECT_ROOT"):
        return Path(root).resolve()
    return Path.cwd()


def load_settings() -> Settings:
    """Build Settings from environment variables (and .env, if present)."""
    workbook = getenv("ALBUM_COLLAB_WORKBOOK")
    if workbook:
        workbook_path = Path(workbook)
    else:
        workbook_path = get_project_root() / DEFAULT_WORKBOOK_NAME

    raw_days = getenv("ALBUM_COLLAB_REVIEW_DAYS", str(DEFAULT_REVIEW_DAYS))
    try:
        review_days = int(raw_days)
    except ValueError:
        msg = f"ALBUM_COLLAB_REVIEW_DAYS must be an integer, got {raw_days!r}."
        raise ValueError(msg) from None

    return Settings(
        workbook_path=workbook_path,
        form_base_url=getenv("ALBUM_COLLAB_FORM_BASE_URL", DEFAULT_FORM_BASE_URL),
        review_days=review_days,
        spotify_client_id=getenv("SPOTIFY_CLIENT_ID") or None,
        spotify_client_secret=getenv("SPOTIFY_CLIENT_SECRET") or None,
    )
