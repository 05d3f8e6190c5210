# plexrpc/notifications.py
import queue
import threading
from typing import Callable, Iterable, Optional

from .debug import debug_log

SIGNAL_BUFFER = 10


class NotificationChannel:
    """
    Turns a message stream (the Plex notification websocket) into opaque
    "something changed" signals.

    A daemon thread reads the stream and buffers one signal per message in a
    bounded queue. The engine drains it without blocking once per tick. When
    the stream ends or errors the channel marks itself closed.
    """

    def __init__(
        self,
        messages: Iterable,
        on_close: Optional[Callable[[], None]] = None,
        maxsize: int = SIGNAL_BUFFER,
    ):
        self._messages = messages
        self._on_close = on_close
        self._signals: "queue.Queue[None]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._thread = threading.Thread(target=self._read, name="plex-notifications", daemon=True)

    def start(self) -> "NotificationChannel":
        self._thread.start()
        return self

    def _read(self) -> None:
        try:
            for _ in self._messages:
                if self._closed.is_set():
                    break
                try:
                    self._signals.put_nowait(None)
                except queue.Full:
                    # A single buffered signal already forces a refresh
                    pass
        except Exception as e:
            debug_log(f"Notification stream failed: {e}")
        finally:
            self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def drain(self) -> bool:
        received = False
        while True:
            try:
                self._signals.get_nowait()
            except queue.Empty:
                return received
            received = True

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def close(self) -> None:
        self._closed.set()
        if self._on_close is None:
            return
        try:
            self._on_close()
        except Exception as e:
            debug_log(f"Notification socket close failed: {e}")
