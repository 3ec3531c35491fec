"""
Configuration for the music intelligence pipeline.

Every knob has a default; environment variables only override tuning
values. The bearer credential and API base URL always come from the caller.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

ENV_PREFIX = "SPOTINTEL_"

# Bump to invalidate every cached profile after a behaviour change
CACHE_VERSION = "3.1"


def parse_str_env(name: str, default: str) -> str:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def parse_int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def parse_float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def parse_bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class IntelligenceConfig:
    # ------------------------------------------------------------------
    # History aggregation caps
    # ------------------------------------------------------------------
    top_tracks_limit: int = 50
    recent_tracks_limit: int = 50
    saved_tracks_limit: int = 1000
    max_playlists: int = 50
    playlist_tracks_limit: int = 500
    max_albums: int = 50
    followed_artists_limit: int = 200
    batch_size: int = 5

    # ------------------------------------------------------------------
    # Candidate search
    # ------------------------------------------------------------------
    search_limit: int = 20
    enrich_limit: int = 10
    seed_artist_count: int = 4
    serendipity_threshold: int = 15
    similar_artist_delay: float = 0.12

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    max_playlist_recommendations: int = 24
    max_artist_recommendations: int = 12
    genre_quota: int = 3

    # ------------------------------------------------------------------
    # Cache / transport
    # ------------------------------------------------------------------
    cache_ttl_seconds: float = 30 * 60
    cache_version: str = CACHE_VERSION
    request_delay: float = 0.0
    progress: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "IntelligenceConfig":
        """Build a config from SPOTINTEL_* overrides (and SPOTIFY_API_DELAY).

        Loads a .env file first when one exists at the project root.
        """
        env_path = env_file or PROJECT_ROOT / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        d = cls()
        p = ENV_PREFIX
        return cls(
            top_tracks_limit=parse_int_env(p + "TOP_TRACKS_LIMIT", d.top_tracks_limit),
            recent_tracks_limit=parse_int_env(p + "RECENT_TRACKS_LIMIT", d.recent_tracks_limit),
            saved_tracks_limit=parse_int_env(p + "SAVED_TRACKS_LIMIT", d.saved_tracks_limit),
            max_playlists=parse_int_env(p + "MAX_PLAYLISTS", d.max_playlists),
            playlist_tracks_limit=parse_int_env(p + "PLAYLIST_TRACKS_LIMIT", d.playlist_tracks_limit),
            max_albums=parse_int_env(p + "MAX_ALBUMS", d.max_albums),
            followed_artists_limit=parse_int_env(p + "FOLLOWED_ARTISTS_LIMIT", d.followed_artists_limit),
            batch_size=parse_int_env(p + "BATCH_SIZE", d.batch_size),
            search_limit=parse_int_env(p + "SEARCH_LIMIT", d.search_limit),
            enrich_limit=parse_int_env(p + "ENRICH_LIMIT", d.enrich_limit),
            seed_artist_count=parse_int_env(p + "SEED_ARTIST_COUNT", d.seed_artist_count),
            serendipity_threshold=parse_int_env(p + "SERENDIPITY_THRESHOLD", d.serendipity_threshold),
            similar_artist_delay=parse_float_env(p + "SIMILAR_ARTIST_DELAY", d.similar_artist_delay),
            max_playlist_recommendations=parse_int_env(p + "MAX_PLAYLISTS_OUT", d.max_playlist_recommendations),
            max_artist_recommendations=parse_int_env(p + "MAX_ARTISTS_OUT", d.max_artist_recommendations),
            genre_quota=parse_int_env(p + "GENRE_QUOTA", d.genre_quota),
            cache_ttl_seconds=parse_float_env(p + "CACHE_TTL_SECONDS", d.cache_ttl_seconds),
            cache_version=parse_str_env(p + "CACHE_VERSION", d.cache_version),
            request_delay=parse_float_env("SPOTIFY_API_DELAY", d.request_delay),
            progress=parse_bool_env(p + "PROGRESS", d.progress),
        )
