"""
Spotintel - listening-history analysis and recommendations on the Spotify Web API.

Turns a user's library into genre insights and ranked playlist / artist
recommendations.

Usage:
    from spotintel import MusicIntelligence, SpotifyDataClient

    intel = MusicIntelligence(SpotifyDataClient.from_token(token))
    profile = intel.generate_profile(user)

    profile.insights.top_genres
    profile.recommendations
    profile.artist_recommendations
"""

from .client import SpotifyDataClient, ApiError
from .config import IntelligenceConfig, CACHE_VERSION
from .cache import ProfileCache, CacheEntry
from .history import HistoryAggregator, ListeningHistory, RequiredSourceError, merge_tracks
from .genres import genres_match, is_language_restricted
from .genre_inference import (
    classify,
    classify_track,
    pick_primary_genre,
    primary_genre_for_track,
    primary_genre_for_artist,
)
from .analysis import build_insights
from .search import CandidateSearch
from .scoring import score_playlist, score_artist, rank_playlists, rank_artists
from .intelligence import MusicIntelligence, ProfileGenerationError
from .models import (
    Artist,
    Album,
    Track,
    Playlist,
    GenreCount,
    ListeningPatterns,
    MusicInsights,
    PlaylistRecommendation,
    ArtistRecommendation,
    UserMusicProfile,
)
from .utils import set_log_function, set_verbose

__version__ = "1.0.0"

__all__ = [
    # Entry point
    "MusicIntelligence",
    "ProfileGenerationError",
    # Client
    "SpotifyDataClient",
    "ApiError",
    # Configuration
    "IntelligenceConfig",
    "CACHE_VERSION",
    "ProfileCache",
    "CacheEntry",
    # History
    "HistoryAggregator",
    "ListeningHistory",
    "RequiredSourceError",
    "merge_tracks",
    # Genre classification
    "genres_match",
    "is_language_restricted",
    "classify",
    "classify_track",
    "pick_primary_genre",
    "primary_genre_for_track",
    "primary_genre_for_artist",
    # Analysis / ranking
    "build_insights",
    "CandidateSearch",
    "score_playlist",
    "score_artist",
    "rank_playlists",
    "rank_artists",
    # Models
    "Artist",
    "Album",
    "Track",
    "Playlist",
    "GenreCount",
    "ListeningPatterns",
    "MusicInsights",
    "PlaylistRecommendation",
    "ArtistRecommendation",
    "UserMusicProfile",
    # Logging
    "set_log_function",
    "set_verbose",
]
