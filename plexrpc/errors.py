# plexrpc/errors.py


class PresenceSyncError(Exception):
    pass


class ConfigError(PresenceSyncError):
    pass


class FetchError(PresenceSyncError):
    """Plex could not be reached or refused the request."""


class AuthenticationError(FetchError):
    """The Plex token was rejected; tracked state must be dropped."""


class PushChannelError(PresenceSyncError):
    pass


class PresenceConnectError(PresenceSyncError):
    """Discord is not reachable (usually: not running)."""


class PresencePublishError(PresenceSyncError):
    pass
