# plexrpc/detector.py
from dataclasses import dataclass
from typing import Optional

from .models import PlaybackSession, PlayerState
from .tracker import RecordOutcome, SessionTracker


@dataclass(frozen=True)
class Observation:
    outcome: RecordOutcome
    session: Optional[PlaybackSession]

    @property
    def changed(self) -> bool:
        return self.outcome == RecordOutcome.CHANGED

    @property
    def became_idle(self) -> bool:
        return self.outcome == RecordOutcome.BECAME_IDLE


def active_session(session: Optional[PlaybackSession]) -> Optional[PlaybackSession]:
    # An idle player is never shown as an activity.
    if session is None or session.player_state == PlayerState.IDLE:
        return None
    return session


class ChangeDetector:
    def __init__(self, tracker: SessionTracker):
        self.tracker = tracker

    def observe(self, fetched: Optional[PlaybackSession]) -> Observation:
        session = active_session(fetched)
        return Observation(self.tracker.record(session), session)
