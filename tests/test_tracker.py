from __future__ import annotations

from conftest import episode

from plexrpc.models import EngineState, PlayerState
from plexrpc.tracker import IDLE_GRACE_SECONDS, RecordOutcome, SessionTracker


def _tracker(clock) -> SessionTracker:
    return SessionTracker(EngineState(), clock=clock)


def test_first_session_is_a_change(clock) -> None:
    tracker = _tracker(clock)

    assert tracker.record(episode()) == RecordOutcome.CHANGED
    assert tracker.last_session == episode()
    assert tracker.state.last_published_at == clock.now


def test_identical_sessions_advancing_with_wall_clock_are_unchanged(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode(elapsed=0))
    published_at = tracker.state.last_published_at

    for step in range(1, 6):
        clock.advance(3)
        assert tracker.record(episode(elapsed=step * 3000 + 250)) == RecordOutcome.UNCHANGED

    # unchanged leaves the reference point alone
    assert tracker.state.last_published_at == published_at
    assert tracker.last_session.elapsed == 0


def test_large_seek_is_a_change(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode(elapsed=60_000))

    clock.advance(1)
    assert tracker.record(episode(elapsed=61_000 + 10_000)) == RecordOutcome.CHANGED
    assert tracker.last_session.elapsed == 71_000


def test_small_jump_is_jitter(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode(elapsed=60_000))

    clock.advance(1)
    assert tracker.record(episode(elapsed=61_000 + 1_000)) == RecordOutcome.UNCHANGED


def test_drift_ignored_while_paused(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode(elapsed=5_000, state=PlayerState.PAUSED))

    clock.advance(30)
    assert tracker.record(episode(elapsed=5_000, state=PlayerState.PAUSED)) == RecordOutcome.UNCHANGED


def test_state_change_is_a_change(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode())

    clock.advance(1)
    assert tracker.record(episode(elapsed=1_000, state=PlayerState.PAUSED)) == RecordOutcome.CHANGED


def test_idle_debounce_keeps_session_within_grace(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode())

    outcomes = []
    for _ in range(3):
        clock.advance(0.9)
        outcomes.append(tracker.record(None))

    assert outcomes == [RecordOutcome.IDLE_PENDING] * 3
    assert tracker.last_session is not None


def test_idle_clears_once_after_grace(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode())

    assert tracker.record(None) == RecordOutcome.IDLE_PENDING
    clock.advance(IDLE_GRACE_SECONDS)
    assert tracker.record(None) == RecordOutcome.BECAME_IDLE
    assert tracker.last_session is None

    clock.advance(IDLE_GRACE_SECONDS)
    assert tracker.record(None) == RecordOutcome.NO_SESSION


def test_session_returning_during_grace_cancels_idle_timer(clock) -> None:
    tracker = _tracker(clock)
    tracker.record(episode(elapsed=0))

    clock.advance(1)
    tracker.record(None)
    clock.advance(1)
    assert tracker.record(episode(elapsed=2_000)) == RecordOutcome.UNCHANGED
    assert tracker.state.idle_since is None

    clock.advance(1)
    assert tracker.record(None) == RecordOutcome.IDLE_PENDING


def test_nothing_tracked_reports_no_session(clock) -> None:
    assert _tracker(clock).record(None) == RecordOutcome.NO_SESSION
