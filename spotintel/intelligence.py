"""
Music intelligence: the one entry point callers use.

    intel = MusicIntelligence(SpotifyDataClient.from_token(token))
    profile = intel.generate_profile(user)

Pipeline: aggregate history -> build insights -> search candidates
(strategies run concurrently) -> score and rank -> cache.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from .analysis import build_insights
from .cache import ProfileCache
from .client import SpotifyDataClient
from .config import IntelligenceConfig
from .history import HistoryAggregator, RequiredSourceError
from .models import UserMusicProfile
from .scoring import dedupe, rank_artists, rank_playlists
from .search import CandidateSearch, seed_artists
from .utils import fan_out, log

ANALYSIS_FAILED = "Unable to analyze your music preferences"


class ProfileGenerationError(RuntimeError):
    """Raised when the required listening data cannot be fetched."""

    def __init__(self, message: str = ANALYSIS_FAILED):
        super().__init__(message)


def user_id_of(user: Any) -> str:
    """Accepts a user id, a user JSON object or anything with an `id` attribute."""
    if user is None:
        return ""
    if isinstance(user, str):
        return user
    if isinstance(user, dict):
        return str(user.get("id") or "")
    return str(getattr(user, "id", "") or "")


class MusicIntelligence:
    def __init__(
        self,
        client: SpotifyDataClient,
        config: Optional[IntelligenceConfig] = None,
        cache: Optional[ProfileCache] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.config = config or IntelligenceConfig()
        self._clock = clock
        self.cache = cache or ProfileCache(
            version=self.config.cache_version,
            ttl_seconds=self.config.cache_ttl_seconds,
            clock=clock,
        )

    @classmethod
    def from_token(
        cls,
        token: str,
        base_url: Optional[str] = None,
        config: Optional[IntelligenceConfig] = None,
        **kwargs,
    ) -> "MusicIntelligence":
        """Build from a bearer token. Tuning comes from the environment unless `config` is given."""
        config = config or IntelligenceConfig.from_env()
        client = SpotifyDataClient.from_token(
            token,
            base_url=base_url,
            request_delay=config.request_delay,
            max_in_flight=config.batch_size,
        )
        return cls(client, config, **kwargs)

    def generate_profile(self, user: Any) -> UserMusicProfile:
        """Build (or return the cached) profile for `user`.

        Raises:
            ProfileGenerationError: top tracks could not be fetched
        """
        user_id = user_id_of(user)
        cached = self.cache.get(user_id)
        if cached is not None:
            log("♻️  Using cached music profile")
            return cached

        log("🎧 Analyzing listening history...")
        try:
            history = HistoryAggregator(self.client, self.config).aggregate()
        except RequiredSourceError as e:
            log(f"❌ {ANALYSIS_FAILED}: {e}")
            raise ProfileGenerationError() from e
        except Exception as e:
            log(f"❌ {ANALYSIS_FAILED}: unexpected {type(e).__name__}: {e}")
            raise ProfileGenerationError() from e

        catalog = history.catalog()
        insights = build_insights(catalog)
        log(
            f"📊 {insights.analyzed_tracks} unique tracks, "
            f"top genres: {', '.join(insights.genre_labels[:3]) or 'none'}"
        )

        seeds = seed_artists(history, self.config.seed_artist_count)
        search = CandidateSearch(
            self.client,
            self.config,
            user_id=user_id,
            owned_playlist_ids=[p.id for p in history.playlists],
            excluded_artist_ids=[a.id for a in history.followed_artists] + [a.id for a in seeds],
        )
        top_genre = insights.genre_labels[0] if insights.top_genres else None

        log("🔎 Searching for recommendations...")
        strategies: List[Callable[[], list]] = [
            lambda: search.playlists_by_genre(top_genre),
            lambda: search.playlists_by_artists(seeds),
            lambda: search.artists_by_genre(top_genre, insights),
            lambda: search.similar_artists(seeds, insights),
        ]
        by_genre, by_artist, artists_by_genre, similar = fan_out(
            lambda strategy: strategy(), strategies, batch_size=self.config.batch_size
        )

        playlist_candidates = by_genre + by_artist
        if len(dedupe(playlist_candidates)) < self.config.serendipity_threshold:
            playlist_candidates += search.serendipity_playlists(insights, playlist_candidates)

        artist_candidates = artists_by_genre + similar
        if len(dedupe(artist_candidates)) < self.config.serendipity_threshold:
            artist_candidates += search.serendipity_artists(insights, artist_candidates)

        profile = UserMusicProfile(
            insights=insights,
            recommendations=tuple(rank_playlists(
                playlist_candidates,
                limit=self.config.max_playlist_recommendations,
                quota=self.config.genre_quota,
            )),
            artist_recommendations=tuple(rank_artists(
                artist_candidates,
                limit=self.config.max_artist_recommendations,
                quota=self.config.genre_quota,
            )),
            last_updated=datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat(),
        )
        log(
            f"✅ Profile ready: {len(profile.recommendations)} playlists, "
            f"{len(profile.artist_recommendations)} artists"
        )
        self.cache.put(user_id, profile)
        return profile
