# plexrpc/engine.py
import threading
import time
from typing import Callable, Optional

from .debug import debug_log
from .detector import ChangeDetector
from .errors import AuthenticationError, PresenceConnectError, PresenceSyncError
from .models import ConnectionTarget, EngineState, PlaybackSession, PlayerState
from .strategy import FetchDecision, StrategySelector
from .tracker import RecordOutcome, SessionTracker

STATUS_NOT_AUTHENTICATED = "Not authenticated"
STATUS_NO_SERVER = "No server selected"
STATUS_NO_SESSION = "No active session"
STATUS_IDLE_PENDING = "Waiting for idle debounce..."

_STATE_LABELS = {
    PlayerState.PLAYING: "Playing",
    PlayerState.PAUSED: "Paused",
    PlayerState.BUFFERING: "Buffering",
}


def format_status(session: PlaybackSession) -> str:
    return f"{_STATE_LABELS.get(session.player_state, 'Playing')}: {session.title}"


class PresenceEngine:
    """
    Mirrors one user's Plex playback into Discord presence.

    The driver calls tick() on a fixed cadence and must not run two ticks at
    once. reset() may be called from another thread. Network fetches run
    unlocked; everything that touches tracked state or the Discord link holds
    _lock, and a tick that sees a newer epoch drops its result. A publish that
    raced a reset is followed by a clear, so the reset always wins.
    """

    def __init__(self, source, presence, clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.presence = presence
        self.state = EngineState()
        self.tracker = SessionTracker(self.state, clock=clock)
        self.selector = StrategySelector(source)
        self.detector = ChangeDetector(self.tracker)
        self.status = STATUS_NO_SESSION
        self._target: Optional[ConnectionTarget] = None
        self._pending_publish = False
        # Reentrant: a sink callback may itself end up in reset().
        self._lock = threading.RLock()

    @property
    def last_session(self) -> Optional[PlaybackSession]:
        return self.state.last_session

    def _discard(self) -> None:
        self.state.epoch += 1
        self.tracker.reset()
        self._pending_publish = False
        self._drop_subscription()

    def reset(self) -> None:
        """Logout / disconnect: forget everything and take presence down."""
        with self._lock:
            self._discard()
            self._target = None
            self.presence.clear()
            self.status = STATUS_NO_SESSION

    def close(self) -> None:
        with self._lock:
            self.reset()
            self.presence.close()

    def tick(self, target: Optional[ConnectionTarget], is_authenticated: bool) -> str:
        with self._lock:
            if not is_authenticated:
                self._discard()
                self.presence.clear()
                self.status = STATUS_NOT_AUTHENTICATED
                return self.status

            if target is None:
                self._discard()
                self.presence.clear()
                self.status = STATUS_NO_SERVER
                return self.status

            if target != self._target:
                if self._target is not None:
                    debug_log(f"Server changed: {self._target} -> {target}")
                    self._discard()
                self._target = target

            # Connect early so the first publish doesn't pay for the handshake
            if not self.presence.is_connected():
                try:
                    self.presence.connect()
                except PresenceConnectError as e:
                    debug_log(f"Discord connection failed, will retry later: {e}")

            epoch = self.state.epoch

        decision = self.selector.decide(target, self.state)

        with self._lock:
            if epoch != self.state.epoch:
                self._drop_subscription()
                return self.status

            # A running idle timer needs another look even when the socket is quiet
            waiting = self._pending_publish or self.state.idle_since is not None
            if decision == FetchDecision.SKIP_FETCH and not waiting:
                return self.status

        try:
            fetched = self.source.fetch_session(target)
        except AuthenticationError:
            with self._lock:
                if epoch == self.state.epoch:
                    self._discard()
                    self.presence.clear()
                    self.status = STATUS_NOT_AUTHENTICATED
            raise

        with self._lock:
            if epoch != self.state.epoch:
                debug_log("Discarding fetch result from before reset")
                return self.status

            return self._apply(self.detector.observe(fetched), epoch)

    def _drop_subscription(self) -> None:
        channel, self.state.subscription = self.state.subscription, None
        if channel is not None:
            channel.close()

    def _apply(self, observation, epoch: int) -> str:
        outcome = observation.outcome

        if outcome == RecordOutcome.IDLE_PENDING:
            self.status = STATUS_IDLE_PENDING
            return self.status

        if outcome in (RecordOutcome.BECAME_IDLE, RecordOutcome.NO_SESSION):
            if outcome == RecordOutcome.BECAME_IDLE:
                self.presence.clear()
            self._pending_publish = False
            self.status = STATUS_NO_SESSION
            return self.status

        session = observation.session
        self.status = format_status(session)

        if outcome == RecordOutcome.CHANGED or self._pending_publish:
            try:
                self.presence.publish(session)
            except PresenceSyncError:
                if epoch == self.state.epoch:
                    self._pending_publish = True
                raise
            finally:
                if epoch != self.state.epoch:
                    debug_log("Reset during publish, clearing again")
                    self.presence.clear()

            if epoch != self.state.epoch:
                return self.status
            self._pending_publish = False

        return self.status
