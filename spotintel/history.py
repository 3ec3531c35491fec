"""
Listening-history aggregation.

Pulls every history source for the current user, follows pagination
cursors up to per-source caps, and merges all tracks into one
identity-deduplicated catalog. Only top tracks are required; any other
source that fails contributes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .client import ApiError, SpotifyDataClient
from .config import IntelligenceConfig
from .models import (
    Artist,
    Playlist,
    Track,
    parse_album,
    parse_artist,
    parse_playlist,
    parse_track,
)
from .utils import fan_out, log, verbose_log

PAGE_LIMIT = 50
PLAYLIST_PAGE_LIMIT = 100


class RequiredSourceError(Exception):
    """A source the profile cannot be built without could not be fetched."""

    def __init__(self, source: str, error: ApiError):
        super().__init__(f"{source}: {error}")
        self.source = source
        self.error = error


def merge_tracks(*sources: Iterable[Track]) -> List[Track]:
    """Concatenate sources keeping the first occurrence of each track id."""
    seen = set()
    merged: List[Track] = []
    for source in sources:
        for track in source:
            if track.id in seen:
                continue
            seen.add(track.id)
            merged.append(track)
    return merged


@dataclass
class ListeningHistory:
    top_tracks: List[Track] = field(default_factory=list)
    recent_tracks: List[Track] = field(default_factory=list)
    saved_tracks: List[Track] = field(default_factory=list)
    playlist_tracks: List[Track] = field(default_factory=list)
    album_tracks: List[Track] = field(default_factory=list)
    playlists: List[Playlist] = field(default_factory=list)
    followed_artists: List[Artist] = field(default_factory=list)

    def catalog(self) -> List[Track]:
        """Every track exactly once, in source order."""
        return merge_tracks(
            self.top_tracks,
            self.recent_tracks,
            self.saved_tracks,
            self.playlist_tracks,
            self.album_tracks,
        )


def _parse_tracks(items: Iterable[Any], key: Optional[str] = "track") -> List[Track]:
    tracks = []
    for item in items:
        data = item.get(key) if key and isinstance(item, dict) else item
        track = parse_track(data)
        if track is not None:
            tracks.append(track)
    return tracks


class HistoryAggregator:
    def __init__(self, client: SpotifyDataClient, config: Optional[IntelligenceConfig] = None):
        self.client = client
        self.config = config or IntelligenceConfig()

    # -------------------------
    # Pagination
    # -------------------------
    def _paginate(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        cap: Optional[int] = None,
        container: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[ApiError]]:
        """Collect `items` across pages.

        Returns the first-page error when the source cannot be read at all.
        A failure on a later page just ends pagination with what was
        collected so far.
        """
        page, error = self.client.request(endpoint, params)
        if error is not None:
            return [], error

        items: List[Dict[str, Any]] = []
        while page:
            if container:
                page = page.get(container) or {}
            items.extend(x for x in page.get("items") or [] if x is not None)
            if cap is not None and len(items) >= cap:
                return items[:cap], None
            page, error = self.client.next_page(page)
            if error is not None:
                verbose_log(f"  {endpoint}: stopped after {len(items)} items ({error})")
                break
        return items, None

    def _optional(self, label: str, items: List[Any], error: Optional[ApiError]) -> List[Any]:
        if error is not None:
            log(f"⚠️  Could not fetch {label}: {error}")
            return []
        return items

    # -------------------------
    # Sources
    # -------------------------
    def top_tracks(self) -> List[Track]:
        cap = self.config.top_tracks_limit
        items, error = self._paginate(
            "me/top/tracks",
            {"limit": min(PAGE_LIMIT, cap), "time_range": "medium_term"},
            cap=cap,
        )
        if error is not None:
            log(f"❌ Could not fetch top tracks: {error}")
            raise RequiredSourceError("top tracks", error)
        return _parse_tracks(items, key=None)

    def recent_tracks(self) -> List[Track]:
        cap = self.config.recent_tracks_limit
        items, error = self._paginate(
            "me/player/recently-played", {"limit": min(PAGE_LIMIT, cap)}, cap=cap
        )
        return _parse_tracks(self._optional("recently played", items, error))

    def saved_tracks(self) -> List[Track]:
        cap = self.config.saved_tracks_limit
        items, error = self._paginate("me/tracks", {"limit": min(PAGE_LIMIT, cap)}, cap=cap)
        return _parse_tracks(self._optional("saved tracks", items, error))

    def playlists(self) -> List[Playlist]:
        cap = self.config.max_playlists
        items, error = self._paginate("me/playlists", {"limit": min(PAGE_LIMIT, cap)}, cap=cap)
        parsed = (parse_playlist(x) for x in self._optional("playlists", items, error))
        return [p for p in parsed if p is not None]

    def _tracks_of_playlist(self, playlist: Playlist) -> List[Track]:
        cap = self.config.playlist_tracks_limit
        items, error = self._paginate(
            f"playlists/{playlist.id}/tracks",
            {"limit": min(PLAYLIST_PAGE_LIMIT, cap)},
            cap=cap,
        )
        if error is not None:
            verbose_log(f"  Skipping playlist {playlist.name!r}: {error}")
            return []
        return _parse_tracks(items)

    def playlist_tracks(self, playlists: List[Playlist]) -> List[Track]:
        with tqdm(
            total=len(playlists),
            desc="Fetching playlist tracks",
            unit="pl",
            disable=not self.config.progress,
        ) as pbar:
            per_playlist = fan_out(
                self._tracks_of_playlist,
                playlists,
                batch_size=self.config.batch_size,
                on_batch=pbar.update,
            )
        return [t for tracks in per_playlist for t in tracks]

    def _tracks_of_album(self, album_data: Dict[str, Any]) -> List[Track]:
        """Embedded first page plus any further pages. Tracks inherit the album."""
        album = parse_album(album_data)
        if album is None:
            return []
        page = album_data.get("tracks") if isinstance(album_data.get("tracks"), dict) else {}
        raw = list(page.get("items") or [])
        while True:
            page, error = self.client.next_page(page)
            if error is not None:
                verbose_log(f"  Album {album.name!r}: stopped after {len(raw)} tracks ({error})")
                break
            if page is None:
                break
            raw.extend(page.get("items") or [])
        return [t for t in (parse_track(x, album=album) for x in raw) if t is not None]

    def album_tracks(self) -> List[Track]:
        cap = self.config.max_albums
        items, error = self._paginate("me/albums", {"limit": min(PAGE_LIMIT, cap)}, cap=cap)
        albums = [
            x["album"] for x in self._optional("saved albums", items, error)
            if isinstance(x, dict) and isinstance(x.get("album"), dict)
        ]
        with tqdm(
            total=len(albums),
            desc="Fetching album tracks",
            unit="album",
            disable=not self.config.progress,
        ) as pbar:
            per_album = fan_out(
                self._tracks_of_album,
                albums,
                batch_size=self.config.batch_size,
                on_batch=pbar.update,
            )
        return [t for tracks in per_album for t in tracks]

    def followed_artists(self) -> List[Artist]:
        cap = self.config.followed_artists_limit
        items, error = self._paginate(
            "me/following",
            {"type": "artist", "limit": min(PAGE_LIMIT, cap)},
            cap=cap,
            container="artists",
        )
        parsed = (parse_artist(x) for x in self._optional("followed artists", items, error))
        return [a for a in parsed if a is not None]

    # -------------------------
    # Everything
    # -------------------------
    def aggregate(self) -> ListeningHistory:
        """Fetch every source. Raises RequiredSourceError if top tracks fail."""
        top = self.top_tracks()
        recent = self.recent_tracks()
        saved = self.saved_tracks()
        playlists = self.playlists()
        history = ListeningHistory(
            top_tracks=top,
            recent_tracks=recent,
            saved_tracks=saved,
            playlist_tracks=self.playlist_tracks(playlists),
            album_tracks=self.album_tracks(),
            playlists=playlists,
            followed_artists=self.followed_artists(),
        )
        log(
            f"📚 History: {len(top)} top, {len(recent)} recent, {len(saved)} saved, "
            f"{len(history.playlist_tracks)} from {len(playlists)} playlists, "
            f"{len(history.album_tracks)} from albums, "
            f"{len(history.followed_artists)} followed artists"
        )
        return history
