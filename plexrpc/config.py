# plexrpc/config.py
import os
import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from .discord_rpc import APP_CLIENT_ID
from .errors import ConfigError
from .models import ConnectionTarget

DEFAULT_PORT = 32400
DEFAULT_POLL_SECONDS = 3.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    auth_token: Optional[str] = None
    username: Optional[str] = None
    client_id: str = ""
    server_name: str = ""
    server_address: Optional[str] = None
    server_port: Optional[int] = None
    is_owned: bool = False
    poll_seconds: float = DEFAULT_POLL_SECONDS
    discord_app_id: str = APP_CLIENT_ID

    def is_authenticated(self) -> bool:
        return bool(self.auth_token) and bool(self.username)

    def target(self) -> Optional[ConnectionTarget]:
        if not self.server_address or self.server_port is None:
            return None
        return ConnectionTarget(
            address=self.server_address,
            port=self.server_port,
            owned=self.is_owned,
            name=self.server_name,
        )


def _number(env: Mapping[str, str], key: str, cast, default):
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if env is None else env

    address = (env.get("PLEX_SERVER_ADDRESS") or "").strip() or None
    port = _number(env, "PLEX_SERVER_PORT", int, DEFAULT_PORT if address else None)
    poll = _number(env, "PLEX_POLL_SECONDS", float, DEFAULT_POLL_SECONDS)
    if poll <= 0:
        raise ConfigError("PLEX_POLL_SECONDS must be positive")

    return AppConfig(
        auth_token=env.get("PLEX_TOKEN") or None,
        username=env.get("PLEX_USERNAME") or None,
        client_id=env.get("PLEX_CLIENT_ID") or str(uuid.uuid4()),
        server_name=env.get("PLEX_SERVER_NAME", ""),
        server_address=address,
        server_port=port,
        is_owned=(env.get("PLEX_SERVER_OWNED") or "").strip().lower() in _TRUTHY,
        poll_seconds=poll,
        discord_app_id=env.get("DISCORD_APP_ID") or APP_CLIENT_ID,
    )
