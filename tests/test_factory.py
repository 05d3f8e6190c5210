from __future__ import annotations

from plexrpc.config import load_config
from plexrpc.discord_rpc import DiscordPresenceSink, PresenceManager
from plexrpc.engine import PresenceEngine
from plexrpc.factory import build_engine
from plexrpc.plex_client import PlexClient


def test_build_engine_wires_plex_and_discord() -> None:
    config = load_config(
        {
            "PLEX_TOKEN": "abc",
            "PLEX_USERNAME": "viewer",
            "PLEX_CLIENT_ID": "client-1",
            "DISCORD_APP_ID": "42",
        }
    )

    engine = build_engine(config)

    assert isinstance(engine, PresenceEngine)
    assert isinstance(engine.source, PlexClient)
    assert engine.source.token == "abc"
    assert engine.source.username == "viewer"
    assert isinstance(engine.presence, PresenceManager)
    assert isinstance(engine.presence.sink, DiscordPresenceSink)
    assert engine.presence.sink.client_id == "42"
    assert not engine.presence.is_connected()


def test_build_engine_without_credentials() -> None:
    engine = build_engine(load_config({}))

    assert engine.source.token == ""
    assert engine.source.username == ""
