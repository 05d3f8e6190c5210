# plexrpc/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class PlayerState(Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    BUFFERING = "buffering"
    IDLE = "idle"


class MediaKind(Enum):
    EPISODE = "episode"
    MOVIE = "movie"
    TRACK = "track"
    UNKNOWN = "unknown"
    IDLE = "idle"


@dataclass(frozen=True)
class PlaybackSession:
    title: str
    player_state: PlayerState
    media_kind: MediaKind
    duration: int = 0  # ms
    elapsed: int = 0  # ms
    index: Optional[int] = None
    parent_index: Optional[int] = None
    parent_title: Optional[str] = None
    grandparent_title: Optional[str] = None
    thumbnail: Optional[str] = None

    def same_media(self, other: "PlaybackSession") -> bool:
        return (
            self.title == other.title
            and self.player_state == other.player_state
            and self.media_kind == other.media_kind
        )


@dataclass(frozen=True)
class ConnectionTarget:
    address: str
    port: int
    owned: bool = False
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.name} ({self.address}:{self.port})" if self.name else f"{self.address}:{self.port}"


@dataclass
class EngineState:
    last_session: Optional[PlaybackSession] = None
    last_published_at: Optional[float] = None
    idle_since: Optional[float] = None
    subscription: Optional[Any] = None  # NotificationChannel
    epoch: int = 0
