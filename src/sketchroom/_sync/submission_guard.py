# Area: Sync
"""
sketchroom._sync.submission_guard — At-most-one submission per round
====================================================================

The timer expiry callback, a manual "done" and a retried network call
can all try to submit the same drawing. The guard lets exactly one
transmit through:

1. The in-flight flag is checked and set before the first ``await``,
   so in a single event loop no second attempt can interleave.
2. A confirmed ``submitted`` state or a successful earlier attempt
   short-circuits.
3. The flag is released when the transmit settles, success or not,
   so a failed attempt can be retried.

A failed attempt leaves the shadow at ``SUBMITTING`` instead of rolling
back to "still drawing".
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .enums import PlayerStatus, SubmissionOutcome, SubmissionPhase
from .models import Room
from .optimistic import Reconciled
from .session import SessionState

logger = logging.getLogger("sketchroom.submission")


@dataclass(frozen=True)
class SubmissionResult:
    outcome: SubmissionOutcome
    error: Optional[BaseException] = None

    @property
    def sent(self) -> bool:
        return self.outcome == SubmissionOutcome.SENT


def confirmed_submitted(room: Optional[Room], player_id: str) -> bool:
    if room is None:
        return False
    state = room.state_of(player_id)
    return state is not None and state.status == PlayerStatus.SUBMITTED


class SubmissionGuard:
    """Serializes submission attempts for the local player."""

    def __init__(self, session: SessionState) -> None:
        self.session = session

    def has_submitted(self, room: Optional[Room]) -> bool:
        """What the UI shows: confirmed, else the optimistic shadow."""
        confirmed = True if confirmed_submitted(room, self.session.player_id) else None
        optimistic = True if self.session.submission_phase != SubmissionPhase.NONE else None
        return bool(Reconciled(confirmed, optimistic).resolve())

    async def submit(
        self,
        room: Optional[Room],
        transmit: Callable[[], Awaitable[Any]],
        trigger: str = "manual",
    ) -> SubmissionResult:
        """
        Run ``transmit`` unless another attempt is running or already succeeded.

        Args:
            room: Latest confirmed snapshot
            transmit: Coroutine factory performing the store write
            trigger: Label for the log ("timer", "done", "retry", ...)
        """
        session = self.session
        if session.submission_in_flight:
            logger.info("Submission dropped (%s): another attempt is in flight", trigger)
            return SubmissionResult(SubmissionOutcome.DROPPED_IN_FLIGHT)
        session.submission_in_flight = True

        try:
            if confirmed_submitted(room, session.player_id):
                logger.info("Submission skipped (%s): already confirmed", trigger)
                return SubmissionResult(SubmissionOutcome.ALREADY_CONFIRMED)
            if session.submission_phase == SubmissionPhase.SUBMITTED:
                logger.info("Submission skipped (%s): already submitted", trigger)
                return SubmissionResult(SubmissionOutcome.ALREADY_SUBMITTED)

            session.submission_phase = SubmissionPhase.SUBMITTING
            try:
                await transmit()
            except Exception as e:
                logger.warning("Submission failed (%s): %s", trigger, e)
                return SubmissionResult(SubmissionOutcome.FAILED, error=e)

            session.submission_phase = SubmissionPhase.SUBMITTED
            logger.info("Submission sent (%s) for %s", trigger, session.player_id)
            return SubmissionResult(SubmissionOutcome.SENT)
        finally:
            session.submission_in_flight = False
