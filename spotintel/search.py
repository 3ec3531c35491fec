"""
Candidate search.

Each strategy issues catalog searches, enriches a bounded number of hits
with real follower counts (search results omit them), drops what the user
already has, and returns scored recommendations. A strategy whose
searches fail returns an empty list.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .client import SpotifyDataClient
from .config import IntelligenceConfig
from .genre_inference import primary_genre_for_artist
from .genres import EXPLORATION_GENRES, contains_genre
from .history import ListeningHistory
from .models import (
    Artist,
    ArtistRecommendation,
    MusicInsights,
    Playlist,
    PlaylistRecommendation,
    parse_artist,
    parse_playlist,
)
from .scoring import build_artist_recommendation, build_playlist_recommendation
from .utils import fan_out, verbose_log

DEFAULT_GENRE = "pop"
DEFAULT_SEED_ARTISTS = ["Taylor Swift", "The Weeknd", "Dua Lipa"]
SERENDIPITY_GENRES_PER_RUN = 2


def genre_queries(genre: str) -> List[str]:
    """Tag query first, then plain-text fallbacks."""
    return [f'genre:"{genre}"', f"{genre} music", f"best {genre}"]


def seed_artists(history: ListeningHistory, count: int = 4) -> List[Artist]:
    """Followed artists, else the most frequent catalog artists, else a fixed list."""
    if history.followed_artists:
        return history.followed_artists[:count]

    counts: Counter = Counter()
    by_id: Dict[str, Artist] = {}
    for track in history.catalog():
        for artist in track.artists:
            counts[artist.id] += 1
            by_id.setdefault(artist.id, artist)
    if counts:
        return [by_id[artist_id] for artist_id, _ in counts.most_common(count)]

    return [Artist(id="", name=name) for name in DEFAULT_SEED_ARTISTS[:count]]


def unexplored_genres(user_genres: Sequence[str], existing: Iterable[Sequence[str]]) -> List[str]:
    taken = list(user_genres) + [g for genres in existing for g in genres]
    return [g for g in EXPLORATION_GENRES if not contains_genre(taken, g)]


class CandidateSearch:
    def __init__(
        self,
        client: SpotifyDataClient,
        config: Optional[IntelligenceConfig] = None,
        user_id: str = "",
        owned_playlist_ids: Iterable[str] = (),
        excluded_artist_ids: Iterable[str] = (),
    ):
        self.client = client
        self.config = config or IntelligenceConfig()
        self.user_id = user_id
        self.owned_playlist_ids = set(owned_playlist_ids)
        self.excluded_artist_ids = {a for a in excluded_artist_ids if a}

    # -------------------------
    # Raw search + enrichment
    # -------------------------
    def _search(self, query: str, kind: str) -> List[Dict[str, Any]]:
        data, error = self.client.request(
            "search", {"q": query, "type": kind, "limit": self.config.search_limit}
        )
        if error is not None:
            verbose_log(f"  search {kind} {query!r} failed: {error}")
            return []
        container = data.get(f"{kind}s") or {}
        return [x for x in container.get("items") or [] if x]

    def _playlist_followers(self, playlist: Playlist) -> Playlist:
        data, error = self.client.request(f"playlists/{playlist.id}", {"fields": "followers.total"})
        if error is not None:
            return playlist
        detail = parse_playlist({"id": playlist.id, **data})
        return replace(playlist, followers=detail.followers)

    def _artist_details(self, artist: Artist) -> Artist:
        data, error = self.client.request(f"artists/{artist.id}")
        if error is not None:
            return artist
        detail = parse_artist({"id": artist.id, **data})
        return replace(
            artist,
            followers=detail.followers,
            popularity=detail.popularity or artist.popularity,
            genres=detail.genres or artist.genres,
        )

    def search_playlists(self, query: str) -> List[Playlist]:
        """Search, drop the user's own playlists, enrich the first few with followers."""
        playlists = []
        for item in self._search(query, "playlist"):
            playlist = parse_playlist(item)
            if playlist is None or playlist.id in self.owned_playlist_ids:
                continue
            if self.user_id and playlist.owner_id == self.user_id:
                continue
            playlists.append(playlist)
        return fan_out(
            self._playlist_followers,
            playlists[: self.config.enrich_limit],
            batch_size=self.config.batch_size,
        )

    def search_artists(self, query: str) -> List[Artist]:
        artists = []
        for item in self._search(query, "artist"):
            artist = parse_artist(item)
            if artist is None or artist.id in self.excluded_artist_ids:
                continue
            artists.append(artist)
        return fan_out(
            self._artist_details,
            artists[: self.config.enrich_limit],
            batch_size=self.config.batch_size,
        )

    # -------------------------
    # Playlist strategies
    # -------------------------
    def _playlist_recs(
        self,
        playlists: Sequence[Playlist],
        term: str,
        similarity_type: str,
        matching: Sequence[str] = (),
    ) -> List[PlaylistRecommendation]:
        recs = (build_playlist_recommendation(p, term, similarity_type, matching) for p in playlists)
        return [r for r in recs if r is not None]

    def playlists_by_genre(self, genre: Optional[str]) -> List[PlaylistRecommendation]:
        genre = genre or DEFAULT_GENRE
        for query in genre_queries(genre):
            playlists = self.search_playlists(query)
            if playlists:
                return self._playlist_recs(playlists, genre, "genre", [genre])
        verbose_log(f"  No playlists for any query variant of {genre!r}")
        return []

    def _playlists_for_artist(self, name: str) -> List[PlaylistRecommendation]:
        return self._playlist_recs(self.search_playlists(name), name, "artist")

    def playlists_by_artists(self, seeds: Sequence[Artist]) -> List[PlaylistRecommendation]:
        per_seed = fan_out(
            self._playlists_for_artist,
            [s.name for s in seeds],
            batch_size=self.config.batch_size,
        )
        return [r for recs in per_seed for r in recs]

    def serendipity_playlists(
        self,
        insights: MusicInsights,
        existing: Sequence[PlaylistRecommendation],
    ) -> List[PlaylistRecommendation]:
        genres = unexplored_genres(insights.genre_labels, (r.matching_genres for r in existing))
        recs: List[PlaylistRecommendation] = []
        for genre in genres[:SERENDIPITY_GENRES_PER_RUN]:
            playlists = self.search_playlists(genre_queries(genre)[0])
            recs.extend(self._playlist_recs(playlists, genre, "user_pattern", [genre]))
        return recs

    # -------------------------
    # Artist strategies
    # -------------------------
    def _artist_recs(
        self,
        artists: Sequence[Artist],
        insights: MusicInsights,
        similarity_type: str,
        seed: Optional[str] = None,
        search_genre: Optional[str] = None,
    ) -> List[ArtistRecommendation]:
        recs = (
            build_artist_recommendation(
                a, insights.genre_labels, insights.popularity_bias, similarity_type, seed, search_genre
            )
            for a in artists
        )
        return [r for r in recs if r is not None]

    def artists_by_genre(self, genre: Optional[str], insights: MusicInsights) -> List[ArtistRecommendation]:
        genre = genre or DEFAULT_GENRE
        artists = self.search_artists(genre_queries(genre)[0])
        return self._artist_recs(artists, insights, "genre", search_genre=genre)

    def similar_artists(self, seeds: Sequence[Artist], insights: MusicInsights) -> List[ArtistRecommendation]:
        """Artists sharing each seed's genre tag.

        Genre-tag search stands in for a relatedness signal. Seeds are
        searched one after another with a pacing gap.
        """
        recs: List[ArtistRecommendation] = []
        fallback = insights.genre_labels[0] if insights.top_genres else None
        for i, seed in enumerate(seeds):
            genre = (seed.genres[0] if seed.genres else primary_genre_for_artist(seed)) or fallback
            if not genre:
                continue
            if i > 0 and self.config.similar_artist_delay > 0:
                time.sleep(self.config.similar_artist_delay)
            artists = self.search_artists(f'genre:"{genre}"')
            recs.extend(
                self._artist_recs(artists, insights, "similar_artists", seed=seed.name, search_genre=genre)
            )
        return recs

    def serendipity_artists(
        self,
        insights: MusicInsights,
        existing: Sequence[ArtistRecommendation],
    ) -> List[ArtistRecommendation]:
        genres = unexplored_genres(insights.genre_labels, (r.matching_genres for r in existing))
        recs: List[ArtistRecommendation] = []
        for genre in genres[:SERENDIPITY_GENRES_PER_RUN]:
            artists = self.search_artists(genre_queries(genre)[0])
            recs.extend(self._artist_recs(artists, insights, "user_pattern", search_genre=genre))
        return recs
