# album_collab/schedule/rotation.py

"""Turn-taking over a fixed roster of submitters."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Protocol

from album_collab.domain.errors import InvalidState

logger = logging.getLogger(__name__)

RESHUFFLE_QUESTION = "Generate a new order?"


class ConfirmationPrompt(Protocol):
    def ask(self, question: str) -> bool: ...


@dataclass(slots=True)
class Roster:
    """Ordered submitters plus the index of whoever's turn it is.

    ``current`` is None until a marker has been placed.
    """

    submitters: list[str] = field(default_factory=list)
    current: int | None = None

    def __post_init__(self) -> None:
        if self.current is not None and not 0 <= self.current < len(self.submitters):
            msg = (
                f"Marker index {self.current} is outside a roster of "
                f"{len(self.submitters)} submitters."
            )
            raise InvalidState(msg)

    def __len__(self) -> int:
        return len(self.submitters)


class RotationController:
    """Advance, retreat and reshuffle a Roster in place.

    Advancing past the last submitter starts a new cycle: the order is
    reshuffled (if confirmed) and the turn goes to whoever is first. Retreating
    past the first submitter wraps to the last one and never reshuffles.
    """

    def __init__(
        self,
        roster: Roster,
        confirm: ConfirmationPrompt,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.roster = roster
        self._confirm = confirm
        self._rng = rng or random.Random()

    def advance(self) -> str:
        """Move the marker forward and return the submitter now up."""
        index = self._require_current() + 1
        self.roster.current = None

        if index == len(self.roster):
            index = 0
            logger.info("Rotation wrapped; starting a new cycle.")
            self.reshuffle()

        self.roster.current = index
        submitter = self.roster.submitters[index]
        logger.debug("Marker advanced to index %s (%s).", index, submitter)
        return submitter

    def retreat(self) -> str:
        """Move the marker back one position and return that submitter."""
        index = self._require_current() - 1
        self.roster.current = None

        if index < 0:
            index = len(self.roster) - 1

        self.roster.current = index
        submitter = self.roster.submitters[index]
        logger.debug("Marker moved back to index %s (%s).", index, submitter)
        return submitter

    def reshuffle(self) -> bool:
        """Shuffle the roster order after confirmation.

        Returns:
            True if the order was regenerated, False if the user declined.
        """
        if not self._confirm.ask(RESHUFFLE_QUESTION):
            logger.info("Reshuffle declined; keeping the current order.")
            return False

        names = self.roster.submitters
        # Fisher-Yates
        for i in range(len(names) - 1, 0, -1):
            j = self._rng.randint(0, i)
            names[i], names[j] = names[j], names[i]

        logger.info("Generated a new order: %s", ", ".join(names))
        return True

    def _require_current(self) -> int:
        current = self.roster.current
        if current is None:
            msg = "No current submitter is marked on the schedule."
            raise InvalidState(msg)
        return current
