# plexrpc/strategy.py
from enum import Enum

from .debug import debug_log
from .errors import PushChannelError
from .models import ConnectionTarget, EngineState


class FetchDecision(Enum):
    FETCH_NOW = "fetch_now"
    SKIP_FETCH = "skip_fetch"


class StrategySelector:
    """
    Owned servers are polled every tick. Shared servers are watched through the
    notification websocket so we don't hammer someone else's server; polling
    is only the fallback while the socket can't be opened.
    """

    def __init__(self, source):
        self.source = source

    def decide(self, target: ConnectionTarget, state: EngineState) -> FetchDecision:
        decision = FetchDecision.FETCH_NOW if target.owned else self._decide_shared(target, state)

        # Never wait on a push signal for the very first observation.
        if state.last_session is None:
            return FetchDecision.FETCH_NOW
        return decision

    def _decide_shared(self, target: ConnectionTarget, state: EngineState) -> FetchDecision:
        channel = state.subscription

        if channel is None:
            try:
                state.subscription = self.source.open_notifications(target)
            except PushChannelError as e:
                print(f"[Plex] Notification socket failed: {e}. Falling back to polling.")
                debug_log(f"Notification socket failed for {target}: {e}")
            return FetchDecision.FETCH_NOW

        signalled = channel.drain()
        if channel.closed:
            print("[Plex] Notification socket closed, reconnecting next tick.")
            channel.close()
            state.subscription = None
            return FetchDecision.FETCH_NOW

        return FetchDecision.FETCH_NOW if signalled else FetchDecision.SKIP_FETCH
