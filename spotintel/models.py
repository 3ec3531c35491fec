"""
Typed entities built from Web API JSON.

Every parse_* function is total: missing or malformed optional fields get
a defined fallback, and only a missing identity makes an item unusable
(the parser then returns None and the caller skips it).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

SIMILARITY_TYPES = ("genre", "artist", "popularity", "user_pattern", "similar_artists")


@dataclass(frozen=True)
class Artist:
    id: str
    name: str
    genres: Tuple[str, ...] = ()
    followers: int = 0
    popularity: int = 0


@dataclass(frozen=True)
class Album:
    id: str
    name: str
    release_date: Optional[str] = None
    total_tracks: int = 0
    track_ids: Tuple[str, ...] = ()

    @property
    def release_year(self) -> Optional[int]:
        return parse_release_year(self.release_date)


@dataclass(frozen=True)
class Track:
    id: str
    name: str
    artists: Tuple[Artist, ...] = ()
    album: Optional[Album] = None
    duration_ms: int = 0
    explicit: bool = False
    popularity: Optional[int] = None

    @property
    def artist_names(self) -> List[str]:
        return [a.name for a in self.artists]


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    description: str = ""
    owner_id: str = ""
    owner_name: str = "Unknown User"
    followers: int = 0
    track_total: int = 0


@dataclass(frozen=True)
class GenreCount:
    genre: str
    count: int
    percentage: int


@dataclass(frozen=True)
class ListeningPatterns:
    average_track_length: int = 210000
    explicit_content_ratio: int = 0
    recent_vs_old: str = "mixed"


@dataclass(frozen=True)
class MusicInsights:
    top_genres: Tuple[GenreCount, ...] = ()
    artist_diversity: float = 0.0
    popularity_bias: str = "mixed"
    discovery_rate: int = 0
    listening_patterns: ListeningPatterns = field(default_factory=ListeningPatterns)
    top_artists: Tuple[str, ...] = ()
    analyzed_tracks: int = 0

    @property
    def genre_labels(self) -> List[str]:
        return [g.genre for g in self.top_genres]


@dataclass(frozen=True)
class PlaylistRecommendation:
    playlist: Playlist
    score: float
    reasons: Tuple[str, ...]
    matching_genres: Tuple[str, ...]
    similarity_type: str

    @property
    def id(self) -> str:
        return self.playlist.id

    @property
    def followers(self) -> int:
        return self.playlist.followers


@dataclass(frozen=True)
class ArtistRecommendation:
    artist: Artist
    score: float
    reasons: Tuple[str, ...]
    matching_genres: Tuple[str, ...]
    similarity_type: str

    @property
    def id(self) -> str:
        return self.artist.id

    @property
    def followers(self) -> int:
        return self.artist.followers


@dataclass(frozen=True)
class UserMusicProfile:
    insights: MusicInsights
    recommendations: Tuple[PlaylistRecommendation, ...]
    artist_recommendations: Tuple[ArtistRecommendation, ...]
    last_updated: str


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------

def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return default
    return default


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _followers_total(data: Dict[str, Any]) -> int:
    followers = data.get("followers")
    if isinstance(followers, dict):
        return _as_int(followers.get("total"))
    return _as_int(followers)


def parse_release_year(release_date: Optional[str]) -> Optional[int]:
    """'1999-04-01', '1999-04' and '1999' all give 1999."""
    if not release_date or not isinstance(release_date, str):
        return None
    head = release_date.split("-")[0].strip()
    if len(head) == 4 and head.isdigit():
        return int(head)
    return None


def parse_artist(data: Any) -> Optional[Artist]:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    genres = data.get("genres") or []
    return Artist(
        id=str(data["id"]),
        name=_as_str(data.get("name"), "Unknown Artist"),
        genres=tuple(g for g in genres if isinstance(g, str) and g),
        followers=_followers_total(data),
        popularity=_as_int(data.get("popularity")),
    )


def parse_album(data: Any) -> Optional[Album]:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    tracks = data.get("tracks") if isinstance(data.get("tracks"), dict) else {}
    track_ids = tuple(
        str(t["id"]) for t in (tracks.get("items") or []) if isinstance(t, dict) and t.get("id")
    )
    return Album(
        id=str(data["id"]),
        name=_as_str(data.get("name"), "Unknown Album"),
        release_date=data.get("release_date") if isinstance(data.get("release_date"), str) else None,
        total_tracks=_as_int(data.get("total_tracks"), _as_int(tracks.get("total"))),
        track_ids=track_ids,
    )


def parse_track(data: Any, album: Optional[Album] = None) -> Optional[Track]:
    """Parse a full or simplified track object.

    Local files and podcast episodes are not tracks for our purposes.
    `album` is used when the payload carries none (album track listings).
    """
    if not isinstance(data, dict) or not data.get("id"):
        return None
    if data.get("is_local") or data.get("type", "track") != "track":
        return None
    artists = tuple(a for a in (parse_artist(x) for x in data.get("artists") or []) if a)
    popularity = data.get("popularity")
    return Track(
        id=str(data["id"]),
        name=_as_str(data.get("name"), "Unknown Track"),
        artists=artists,
        album=parse_album(data.get("album")) or album,
        duration_ms=_as_int(data.get("duration_ms")),
        explicit=bool(data.get("explicit", False)),
        popularity=_as_int(popularity) if isinstance(popularity, (int, float)) else None,
    )


def parse_playlist(data: Any) -> Optional[Playlist]:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    owner = data.get("owner") if isinstance(data.get("owner"), dict) else {}
    tracks = data.get("tracks") if isinstance(data.get("tracks"), dict) else {}
    return Playlist(
        id=str(data["id"]),
        name=_as_str(data.get("name"), "Unknown Playlist"),
        description=_as_str(data.get("description")),
        owner_id=_as_str(owner.get("id")),
        owner_name=_as_str(owner.get("display_name")) or "Unknown User",
        followers=_followers_total(data),
        track_total=_as_int(tracks.get("total")),
    )
