from __future__ import annotations

from collections import deque

import pytest

from plexrpc.discord_rpc import PresenceManager
from plexrpc.errors import PushChannelError
from plexrpc.models import MediaKind, PlaybackSession, PlayerState


WALL_NOW = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSink:
    """Stands in for the Discord IPC link."""

    def __init__(self) -> None:
        self.live = False
        self.establish_failures = 0
        self.set_failures = 0
        self.clear_failures = 0
        self.establish_calls = 0
        self.payloads: list[dict] = []
        self.clears = 0
        self.events: list[str] = []
        self.on_set = None

    def establish(self) -> None:
        self.establish_calls += 1
        if self.establish_failures:
            self.establish_failures -= 1
            raise ConnectionRefusedError("discord not running")
        self.live = True

    def set(self, payload: dict) -> None:
        if self.on_set:
            self.on_set()
        if self.set_failures:
            self.set_failures -= 1
            raise BrokenPipeError("pipe closed")
        self.payloads.append(payload)
        self.events.append("set")

    def clear(self) -> None:
        if self.clear_failures:
            self.clear_failures -= 1
            raise BrokenPipeError("pipe closed")
        self.clears += 1
        self.events.append("clear")

    def is_live(self) -> bool:
        return self.live

    def close(self) -> None:
        self.live = False


class FakeChannel:
    def __init__(self, signals: int = 0, closed: bool = False) -> None:
        self.signals = signals
        self.closed = closed
        self.close_calls = 0

    def drain(self) -> bool:
        received = self.signals > 0
        self.signals = 0
        return received

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True


class FakeSource:
    """Remote state source returning queued results (sessions, None or exceptions)."""

    def __init__(self) -> None:
        self.results: deque = deque()
        self.channels: deque = deque()
        self.fetches = 0
        self.opens = 0
        self.on_fetch = None

    def fetch_session(self, target):
        self.fetches += 1
        if self.on_fetch:
            self.on_fetch()
        result = self.results.popleft() if self.results else None
        if isinstance(result, Exception):
            raise result
        return result

    def open_notifications(self, target):
        self.opens += 1
        channel = self.channels.popleft() if self.channels else PushChannelError("refused")
        if isinstance(channel, Exception):
            raise channel
        return channel


def episode(elapsed: int = 0, state: PlayerState = PlayerState.PLAYING, title: str = "Episode 3") -> PlaybackSession:
    return PlaybackSession(
        title=title,
        player_state=state,
        media_kind=MediaKind.EPISODE,
        duration=1_800_000,
        elapsed=elapsed,
        index=3,
        parent_index=1,
        parent_title="Season 1",
        grandparent_title="The Show",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def manager(sink: FakeSink, clock: FakeClock, sleeps: list) -> PresenceManager:
    return PresenceManager(sink, clock=clock, wall_clock=lambda: WALL_NOW, sleep=sleeps.append)
