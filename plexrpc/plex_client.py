# plexrpc/plex_client.py
import time
import urllib.parse
from typing import List, Optional

import requests
from websockets.sync.client import connect as ws_connect

from .debug import debug_log
from .errors import AuthenticationError, FetchError, PushChannelError
from .models import ConnectionTarget, MediaKind, PlaybackSession, PlayerState
from .notifications import NotificationChannel

PLEX_TV_API = "https://plex.tv/api/v2"
PRODUCT = "Plex Discord RPC"
VERSION = "1.0.0"

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1
REQUEST_TIMEOUT = 10

_PLAYER_STATES = {
    "playing": PlayerState.PLAYING,
    "paused": PlayerState.PAUSED,
    "buffering": PlayerState.BUFFERING,
}

_MEDIA_KINDS = {
    "episode": MediaKind.EPISODE,
    "movie": MediaKind.MOVIE,
    "track": MediaKind.TRACK,
}

# Which of the user's sessions wins when several clients are open.
_STATE_PRIORITY = ("playing", "buffering", "paused")


def _to_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_session(item: dict, thumbnail: Optional[str] = None) -> PlaybackSession:
    return PlaybackSession(
        title=item.get("title", "") or "",
        player_state=_PLAYER_STATES.get((item.get("Player") or {}).get("state", ""), PlayerState.IDLE),
        media_kind=_MEDIA_KINDS.get(item.get("type", ""), MediaKind.UNKNOWN),
        duration=_to_int(item.get("duration")) or 0,
        elapsed=_to_int(item.get("viewOffset")) or 0,
        index=_to_int(item.get("index")),
        parent_index=_to_int(item.get("parentIndex")),
        parent_title=item.get("parentTitle"),
        grandparent_title=item.get("grandparentTitle"),
        thumbnail=thumbnail,
    )


def pick_user_session(metadata: list, username: str) -> Optional[dict]:
    mine = [m for m in metadata if (m.get("User") or {}).get("title") == username]
    for state in _STATE_PRIORITY:
        for item in mine:
            if (item.get("Player") or {}).get("state") == state:
                return item
    return None


class PlexClient:
    """
    Talks to plex.tv and to a single Plex Media Server on behalf of one user.
    Network errors surface as FetchError / PushChannelError.
    """

    def __init__(self, token: str, username: str, client_id: str, session: Optional[requests.Session] = None, sleep=time.sleep):
        self.token = token
        self.username = username
        self.client_id = client_id
        self._http = session or requests.Session()
        self._sleep = sleep

    def _headers(self) -> dict:
        return {
            "X-Plex-Token": self.token,
            "X-Plex-Client-Identifier": self.client_id,
            "X-Plex-Product": PRODUCT,
            "X-Plex-Version": VERSION,
            "Accept": "application/json",
        }

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        retries = 0
        while True:
            try:
                r = self._http.get(url, params=params, headers=self._headers(), timeout=REQUEST_TIMEOUT)
                if r.status_code < 500 or retries >= MAX_RETRIES:
                    break
                debug_log(f"GET {url} -> {r.status_code}, retrying")
            except requests.RequestException as e:
                if retries >= MAX_RETRIES:
                    raise FetchError(f"Network error: {e}") from e
                debug_log(f"GET {url} failed: {e}, retrying")

            retries += 1
            self._sleep(RETRY_DELAY_SECONDS * retries)

        if r.status_code == 401:
            raise AuthenticationError("Plex rejected the auth token")
        if not r.ok:
            raise FetchError(f"Plex API error: {r.status_code}")
        return r

    def _json(self, r: requests.Response):
        try:
            return r.json()
        except ValueError as e:
            raise FetchError(f"Invalid response from Plex: {e}") from e

    def fetch_username(self) -> str:
        data = self._json(self._get(f"{PLEX_TV_API}/user"))
        return data.get("username", "")

    def get_servers(self) -> List[ConnectionTarget]:
        resources = self._json(self._get(f"{PLEX_TV_API}/resources", params={"includeHttps": "1", "includeRelay": "1"}))

        servers = []
        for r in resources or []:
            connections = r.get("connections") or []
            if not connections:
                continue
            conn = next((c for c in connections if c.get("local")), connections[0])
            port = _to_int(conn.get("port"))
            if not conn.get("address") or port is None:
                continue
            servers.append(
                ConnectionTarget(
                    address=conn["address"],
                    port=port,
                    owned=bool(r.get("owned")),
                    name=r.get("name", ""),
                )
            )
        return servers

    def _thumbnail_url(self, target: ConnectionTarget, item: dict) -> Optional[str]:
        thumb = item.get("thumb") or item.get("grandparentThumb")
        if not thumb:
            return None
        token = urllib.parse.quote(self.token)
        return f"http://{target.address}:{target.port}/{thumb.lstrip('/')}?X-Plex-Token={token}"

    def fetch_session(self, target: ConnectionTarget) -> Optional[PlaybackSession]:
        data = self._json(self._get(f"http://{target.address}:{target.port}/status/sessions"))
        metadata = (data.get("MediaContainer") or {}).get("Metadata") or []

        item = pick_user_session(metadata, self.username)
        if item is None:
            return None
        return parse_session(item, self._thumbnail_url(target, item))

    def open_notifications(self, target: ConnectionTarget) -> NotificationChannel:
        token = urllib.parse.quote(self.token)
        url = f"ws://{target.address}:{target.port}/:/websockets/notifications?X-Plex-Token={token}"
        try:
            ws = ws_connect(url, open_timeout=REQUEST_TIMEOUT)
        except Exception as e:
            raise PushChannelError(f"WebSocket connection failed: {e}") from e

        debug_log(f"Notification socket open for {target}")
        return NotificationChannel(ws, on_close=ws.close).start()
