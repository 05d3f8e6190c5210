# ui/worker.py
import threading
from dataclasses import asdict

from PySide6.QtCore import QThread, Signal

from plexrpc.debug import debug_log
from plexrpc.engine import STATUS_NOT_AUTHENTICATED, PresenceEngine
from plexrpc.errors import PresenceSyncError


class MonitorWorker(QThread):
    status = Signal(str)
    now_playing = Signal(dict)   # PlaybackSession fields, {} when idle

    def __init__(self, engine: PresenceEngine, config, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.config = config
        self.poll_seconds = config.poll_seconds
        self._running = True
        self._paused = False
        self._reset_requested = False
        self._wake = threading.Event()

    def stop(self):
        self._running = False
        self._wake.set()

    def disconnect_presence(self):
        # The reset runs on this thread between ticks, never beside one.
        self._paused = True
        self._reset_requested = True
        self._wake.set()

    def resume(self):
        self._paused = False
        self._wake.set()

    def _tick(self):
        try:
            msg = self.engine.tick(self.config.target(), self.config.is_authenticated())
        except PresenceSyncError as e:
            msg = f"Update failed: {e}"
            debug_log(f"Tick failed: {e}")

        self.status.emit(msg)
        session = self.engine.last_session
        if session is None:
            self.now_playing.emit({})
            return

        d = asdict(session)
        d["player_state"] = session.player_state.value
        d["media_kind"] = session.media_kind.value
        self.now_playing.emit(d)

    def run(self):
        if not self.config.is_authenticated():
            self.status.emit(f"{STATUS_NOT_AUTHENTICATED}: set PLEX_TOKEN and PLEX_USERNAME")

        while self._running:
            if self._reset_requested:
                self._reset_requested = False
                self.engine.reset()
                self.status.emit("Disconnected")
                self.now_playing.emit({})
            elif not self._paused:
                self._tick()

            self._wake.wait(self.poll_seconds)
            self._wake.clear()

        self.engine.close()
