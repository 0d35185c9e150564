# album_collab/actions.py

"""Menu actions and the form-submission handler.

Each action is one read-modify-write of the workbook: state is loaded, the
rotation or aggregation runs in memory, and the workbook is saved only if
everything succeeded.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from datetime import date

from album_collab.albums.creation import (
    FormProvisioner,
    TextPrompt,
    create_album,
    prompt_album_info,
)
from album_collab.domain.models import CRITERIA, CurrentAlbum, SummaryTable
from album_collab.io.responses_jsonl import FormResponse
from album_collab.io.workbook import AlbumWorkbook
from album_collab.metadata.spotify_client import AlbumInfoResolver
from album_collab.schedule.rotation import ConfirmationPrompt, RotationController
from album_collab.summary.aggregator import SummaryAggregator

logger = logging.getLogger(__name__)


def _recompute(workbook: AlbumWorkbook, table: SummaryTable) -> SummaryTable:
    return SummaryAggregator(len(CRITERIA)).recompute(table, workbook)


def calculate_summary(workbook: AlbumWorkbook) -> SummaryTable:
    """Recalculate the Summary sheet ("Calculate")."""
    table = _recompute(workbook, workbook.load_summary())
    workbook.save_summary(table)
    workbook.save()
    return table


def open_workbook(workbook: AlbumWorkbook) -> SummaryTable:
    """What happens when the spreadsheet is opened: refresh the summary."""
    return calculate_summary(workbook)


def generate_order(
    workbook: AlbumWorkbook,
    confirm: ConfirmationPrompt,
    *,
    rng: random.Random | None = None,
) -> bool:
    """Shuffle the submitter order after confirmation ("Generate")."""
    roster = workbook.load_roster()
    if not RotationController(roster, confirm, rng=rng).reshuffle():
        return False

    workbook.save_roster(roster)
    workbook.save()
    return True


def previous_submitter(workbook: AlbumWorkbook, confirm: ConfirmationPrompt) -> str:
    """Move the turn marker back one submitter ("Back")."""
    roster = workbook.load_roster()
    submitter = RotationController(roster, confirm).retreat()
    workbook.save_roster(roster)
    workbook.save()
    logger.info("Turn moved back to %s.", submitter)
    return submitter


def new_album(
    workbook: AlbumWorkbook,
    prompt: TextPrompt,
    resolver: AlbumInfoResolver,
    provisioner: FormProvisioner,
    submitter: str | None = None,
    *,
    today: date | None = None,
    review_days: int = 14,
) -> CurrentAlbum:
    """Start a review cycle for a new album ("New Album").

    Raises:
        UserCancelled: if a prompt is cancelled; nothing is saved.
    """
    album = prompt_album_info(
        prompt,
        resolver,
        submitter,
        today=today,
        review_days=review_days,
    )

    table = workbook.load_summary()
    current = create_album(album, provisioner, table, today=today)
    _recompute(workbook, table)

    workbook.save_summary(table)
    workbook.save_current_album(current)
    workbook.save()
    return current


def next_submitter(
    workbook: AlbumWorkbook,
    confirm: ConfirmationPrompt,
    prompt: TextPrompt,
    resolver: AlbumInfoResolver,
    provisioner: FormProvisioner,
    *,
    rng: random.Random | None = None,
    today: date | None = None,
    review_days: int = 14,
) -> CurrentAlbum:
    """Hand the turn to the next submitter and set up their album ("Next").

    The new turn is saved before the album prompts start, so cancelling the
    album leaves the marker on the new submitter.
    """
    roster = workbook.load_roster()
    submitter = RotationController(roster, confirm, rng=rng).advance()
    workbook.save_roster(roster)
    workbook.save()
    logger.info("It is now %s's turn.", submitter)

    return new_album(
        workbook,
        prompt,
        resolver,
        provisioner,
        submitter,
        today=today,
        review_days=review_days,
    )


def submit_responses(
    workbook: AlbumWorkbook,
    responses: Iterable[FormResponse],
) -> int:
    """Record submitted form responses and recalculate the summary.

    Responses with invalid scores are skipped with a warning. A response for
    an album without a response sheet aborts the whole submission.

    Returns:
        The number of responses recorded.
    """
    recorded = 0
    for response in responses:
        try:
            workbook.append_response(
                response.title,
                response.artist,
                response.scores,
                favorite_songs=response.favorite_songs,
                analysis=response.analysis,
                submitted_at=response.submitted_at,
            )
        except ValueError as exc:
            logger.warning(
                "Skipping response for %s — %s: %s",
                response.title,
                response.artist,
                exc,
            )
            continue
        recorded += 1

    logger.info("Recorded %d responses.", recorded)
    calculate_summary(workbook)
    return recorded
