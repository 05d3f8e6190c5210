# plexrpc/tracker.py
import time
from enum import Enum
from typing import Callable, Optional

from .debug import debug_log
from .models import EngineState, PlaybackSession, PlayerState

# Plex briefly reports no session between episodes; don't flap presence off.
IDLE_GRACE_SECONDS = 3.0

# Larger than polling jitter, smaller than any deliberate scrub.
SEEK_DRIFT_MS = 3000


class RecordOutcome(Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    IDLE_PENDING = "idle_pending"
    BECAME_IDLE = "became_idle"
    NO_SESSION = "no_session"


def drift_ms(last: PlaybackSession, session: PlaybackSession, seconds_since: float) -> int:
    expected = last.elapsed + int(seconds_since * 1000)
    return abs(session.elapsed - expected)


class SessionTracker:
    """
    Owns the last-known session inside EngineState and decides whether a
    fresh observation is a change worth publishing.
    """

    def __init__(self, state: EngineState, clock: Callable[[], float] = time.monotonic):
        self.state = state
        self._clock = clock

    @property
    def last_session(self) -> Optional[PlaybackSession]:
        return self.state.last_session

    def reset(self) -> None:
        self.state.last_session = None
        self.state.last_published_at = None
        self.state.idle_since = None

    def record(self, session: Optional[PlaybackSession]) -> RecordOutcome:
        now = self._clock()

        if session is None:
            return self._record_absent(now)

        last = self.state.last_session
        self.state.idle_since = None

        changed = last is None or not last.same_media(session)
        if not changed and session.player_state == PlayerState.PLAYING:
            since = now - (self.state.last_published_at if self.state.last_published_at is not None else now)
            drift = drift_ms(last, session, since)
            if drift > SEEK_DRIFT_MS:
                debug_log(f"Detected seek: drift {drift}ms (got {session.elapsed})")
                changed = True

        if not changed:
            return RecordOutcome.UNCHANGED

        self.state.last_session = session
        self.state.last_published_at = now
        return RecordOutcome.CHANGED

    def _record_absent(self, now: float) -> RecordOutcome:
        if self.state.last_session is None:
            return RecordOutcome.NO_SESSION

        if self.state.idle_since is None:
            self.state.idle_since = now
            return RecordOutcome.IDLE_PENDING

        if now - self.state.idle_since < IDLE_GRACE_SECONDS:
            return RecordOutcome.IDLE_PENDING

        debug_log(f"Idle for {now - self.state.idle_since:.1f}s, dropping session")
        self.reset()
        return RecordOutcome.BECAME_IDLE
