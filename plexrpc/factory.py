# plexrpc/factory.py
from .config import AppConfig
from .discord_rpc import DiscordPresenceSink, PresenceManager
from .engine import PresenceEngine
from .plex_client import PlexClient


def build_engine(config: AppConfig) -> PresenceEngine:
    plex = PlexClient(config.auth_token or "", config.username or "", config.client_id)
    presence = PresenceManager(DiscordPresenceSink(config.discord_app_id))
    return PresenceEngine(plex, presence)
