# plexrpc/debug.py
import os
import threading
import time
from pathlib import Path


_DEBUG = os.getenv("PLEX_RPC_DEBUG") == "1"
_LOG_PATH = Path(__file__).resolve().parents[1] / "plex_rpc_debug.log"

# The monitor loop and the notification reader both write here.
_lock = threading.Lock()


def debug_log(message: str) -> None:
    if not _DEBUG:
        return

    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    thread = threading.current_thread().name
    line = f"[{ts}] [{thread}] {message}\n"

    with _lock:
        try:
            with _LOG_PATH.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError:
            pass

        print(f"[DEBUG] {message}")
