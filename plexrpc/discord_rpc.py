#plexrpc/discord_rpc.py
import time
from enum import Enum
from typing import Callable, Optional

from pypresence import Presence
from pypresence.types import ActivityType

from .debug import debug_log
from .errors import PresenceConnectError, PresencePublishError
from .models import MediaKind, PlaybackSession, PlayerState


# APP ID
APP_CLIENT_ID = "1464540148707496009"

MAX_CONNECT_ATTEMPTS = 3
CONNECT_BACKOFF_SECONDS = 0.5
CONNECT_COOLDOWN_SECONDS = 2.0

_STATE_ICONS = {
    PlayerState.PAUSED: ("pause-circle", "Paused"),
    PlayerState.BUFFERING: ("sand-clock", "Buffering"),
    PlayerState.IDLE: ("sleep-mode", "Idle"),
}


def _describe(session: PlaybackSession):
    """Returns (details, state) text for the activity card."""
    kind = session.media_kind

    if kind == MediaKind.EPISODE:
        if session.parent_index is not None and session.index is not None:
            details = f"S{session.parent_index}·E{session.index} — {session.title}"
        else:
            details = session.title
        return details, session.grandparent_title or ""

    if kind == MediaKind.MOVIE:
        return session.title, ""

    if kind == MediaKind.TRACK:
        return session.title, session.grandparent_title or ""

    details = " - ".join(t for t in (session.grandparent_title, session.parent_title) if t)
    return details, session.title


def build_activity(session: PlaybackSession, now: float) -> dict:
    details, state = _describe(session)

    payload = {
        "activity_type": ActivityType.LISTENING if session.media_kind == MediaKind.TRACK else ActivityType.WATCHING,
    }
    if details:
        payload["details"] = details[:128]
    if state:
        payload["state"] = state[:128]

    if session.thumbnail:
        payload["large_image"] = session.thumbnail
        payload["large_text"] = session.title[:128]

    icon = _STATE_ICONS.get(session.player_state)
    if icon:
        payload["small_image"], payload["small_text"] = icon

    # Discord renders the countdown itself from start/end
    if session.player_state == PlayerState.PLAYING:
        now_s = int(now)
        payload["start"] = max(now_s - session.elapsed // 1000, 0)
        payload["end"] = now_s + max(session.duration - session.elapsed, 0) // 1000

    return payload


class DiscordPresenceSink:
    """Thin pypresence wrapper: one Presence per established link."""

    def __init__(self, client_id: str = APP_CLIENT_ID):
        self.client_id = client_id
        self._rpc: Optional[Presence] = None

    def establish(self) -> None:
        self.close()
        rpc = Presence(self.client_id)
        rpc.connect()
        self._rpc = rpc

        user = getattr(rpc, "user", None) or {}
        name = user.get("username")
        print(f"[RPC] Connected as {name}" if name else "[RPC] Connected")

    def set(self, payload: dict) -> None:
        if self._rpc is None:
            raise PresencePublishError("No Discord client available")
        self._rpc.update(**payload)

    def clear(self) -> None:
        if self._rpc is not None:
            self._rpc.clear()

    def is_live(self) -> bool:
        return self._rpc is not None

    def close(self) -> None:
        rpc, self._rpc = self._rpc, None
        if rpc is None:
            return
        try:
            rpc.close()
        except Exception as e:
            debug_log(f"Discord close failed: {e}")


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class PresenceManager:
    """
    Connection lifecycle for the Discord link.

    Fresh connections are rate limited by CONNECT_COOLDOWN_SECONDS so a
    closed Discord isn't hammered every tick. A publish that fails on a live
    link gets one forced reconnect (no cooldown) and one retry.
    """

    def __init__(
        self,
        sink,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sink = sink
        self.state = ConnectionState.DISCONNECTED
        self.last_attempt_at: Optional[float] = None
        self.cooldown = CONNECT_COOLDOWN_SECONDS
        self.reconnects = 0
        self._clock = clock
        self._wall_clock = wall_clock
        self._sleep = sleep

    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED and self.sink.is_live()

    def connect(self) -> None:
        if self.is_connected():
            return

        now = self._clock()
        if self.last_attempt_at is not None and now - self.last_attempt_at < self.cooldown:
            raise PresenceConnectError("Too soon to reconnect, waiting for cooldown")

        self._establish()

    def _establish(self) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.last_attempt_at = self._clock()

        for attempt in range(1, MAX_CONNECT_ATTEMPTS + 1):
            try:
                self.sink.establish()
            except Exception as e:
                debug_log(f"Discord connection attempt {attempt} failed: {e}")
                if attempt == MAX_CONNECT_ATTEMPTS:
                    raise PresenceConnectError(
                        f"Failed to connect to Discord after {MAX_CONNECT_ATTEMPTS} attempts: {e}. Is Discord running?"
                    ) from e
                self._sleep(CONNECT_BACKOFF_SECONDS * attempt)
                continue

            debug_log(f"Connected to Discord on attempt {attempt}")
            self.state = ConnectionState.CONNECTED
            return

    def _force_reconnect(self) -> None:
        self.reconnects += 1
        self.sink.close()
        self._establish()

    def publish(self, session: PlaybackSession) -> None:
        if not self.is_connected():
            self.connect()

        payload = build_activity(session, self._wall_clock())
        debug_log(f"Updating presence: {payload}")

        try:
            self.sink.set(payload)
            return
        except Exception as e:
            debug_log(f"Failed to set activity, reconnecting: {e}")

        try:
            self._force_reconnect()
            self.sink.set(payload)
        except Exception as e:
            raise PresencePublishError(f"Failed to set activity after reconnect: {e}") from e

    def clear(self) -> None:
        # Best-effort: never blocks the caller's state transition.
        try:
            if not self.is_connected():
                self.connect()
            self.sink.clear()
            return
        except PresenceConnectError as e:
            debug_log(f"Clear skipped, Discord unavailable: {e}")
            return
        except Exception as e:
            debug_log(f"Failed to clear activity, reconnecting: {e}")

        try:
            self._force_reconnect()
            self.sink.clear()
        except Exception as e:
            debug_log(f"Clear after reconnect failed: {e}")

    def close(self) -> None:
        self.sink.close()
        self.state = ConnectionState.DISCONNECTED
