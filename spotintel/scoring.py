"""
Scoring and ranking of recommendation candidates.

Playlists are scored from text relevance, follower-derived quality and
content depth; artists from genre match, popularity, follower tier and
the user's popularity bias. Ranked lists are deduplicated, diversified by
genre and ordered by score with a follower-count tie zone.
"""

from collections import Counter
from dataclasses import replace
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence, TypeVar, Union

import numpy as np

from .genres import is_language_restricted, matching_genres
from .models import (
    Artist,
    ArtistRecommendation,
    Playlist,
    PlaylistRecommendation,
)
from .utils import format_count

Recommendation = Union[PlaylistRecommendation, ArtistRecommendation]
R = TypeVar("R", PlaylistRecommendation, ArtistRecommendation)

# Playlist formula weights
TEXT_WEIGHT = 0.40
QUALITY_WEIGHT = 0.35
DEPTH_WEIGHT = 0.25

MIN_PLAYLIST_SCORE = 30
MIN_PLAYLIST_FOLLOWERS = 100

MIN_ARTIST_FOLLOWERS = 100_000
MIN_ARTIST_POPULARITY = 50

# (threshold, bonus), highest first
FOLLOWER_TIERS = [
    (10_000_000, 20),
    (5_000_000, 15),
    (1_000_000, 10),
    (500_000, 7),
    (100_000, 5),
]

# Scores closer than this are ordered by followers instead
SCORE_TIE_ZONE = 5
REPEATED_GENRE_PENALTY = 0.9
MAX_REASONS = 3


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


# ----------------------------------------------------------------------
# Playlist scoring
# ----------------------------------------------------------------------

def text_relevance(term: str, name: str, description: str = "") -> float:
    """100 for a name hit, 70 for a description hit, else a word-overlap fraction."""
    term_lower = (term or "").lower().strip()
    if not term_lower:
        return 0.0
    name_lower = (name or "").lower()
    description_lower = (description or "").lower()
    if term_lower in name_lower:
        return 100.0
    if term_lower in description_lower:
        return 70.0

    words = [w for w in term_lower.split() if len(w) > 2]
    if not words:
        return 0.0
    combined = f"{name_lower} {description_lower}"
    found = sum(1 for w in words if w in combined)
    return 50.0 * found / len(words)


def quality_score(followers: int) -> float:
    """Logarithmic follower score: 10M followers is full marks."""
    return min(100.0, float(np.log10(max(followers, 0) + 1)) / 7 * 100)


def depth_score(track_total: int) -> float:
    if 20 <= track_total <= 100:
        return 100.0
    if 10 <= track_total <= 150:
        return 70.0
    if track_total >= 5:
        return 40.0
    return 0.0


def score_playlist(playlist: Playlist, term: str) -> float:
    score = (
        TEXT_WEIGHT * text_relevance(term, playlist.name, playlist.description)
        + QUALITY_WEIGHT * quality_score(playlist.followers)
        + DEPTH_WEIGHT * depth_score(playlist.track_total)
    )
    return clamp(score)


def keep_playlist(score: float, followers: int) -> bool:
    return score >= MIN_PLAYLIST_SCORE and followers >= MIN_PLAYLIST_FOLLOWERS


def playlist_reasons(playlist: Playlist, term: str, similarity_type: str) -> List[str]:
    if similarity_type == "artist":
        reasons = [f"Features music like {term}"]
    elif similarity_type == "user_pattern":
        reasons = [f"Discover new {term} music"]
    else:
        reasons = [f"Matches your {term} music taste"]
    if playlist.followers >= 1000:
        reasons.append(f"{format_count(playlist.followers)} followers")
    if 20 <= playlist.track_total <= 100:
        reasons.append(f"Well-curated ({playlist.track_total} tracks)")
    return reasons[:MAX_REASONS]


def build_playlist_recommendation(
    playlist: Playlist,
    term: str,
    similarity_type: str,
    genres: Sequence[str] = (),
) -> Optional[PlaylistRecommendation]:
    """Score a candidate. None when it falls below the quality bar."""
    score = score_playlist(playlist, term)
    if not keep_playlist(score, playlist.followers):
        return None
    return PlaylistRecommendation(
        playlist=playlist,
        score=score,
        reasons=tuple(playlist_reasons(playlist, term, similarity_type)),
        matching_genres=tuple(genres),
        similarity_type=similarity_type,
    )


# ----------------------------------------------------------------------
# Artist scoring
# ----------------------------------------------------------------------

def follower_tier_bonus(followers: int) -> int:
    for threshold, bonus in FOLLOWER_TIERS:
        if followers >= threshold:
            return bonus
    return 0


def bias_adjustment(popularity_bias: str, popularity: int) -> int:
    if popularity_bias == "mainstream":
        return 10 if popularity > 50 else 0
    if popularity_bias == "underground":
        return 10 if popularity < 70 else -10
    return 0


def score_artist(artist: Artist, match_count: int, popularity_bias: str = "mixed") -> float:
    score = (
        30
        + min(20, match_count * 10)
        + min(30, artist.popularity * 0.3)
        + follower_tier_bonus(artist.followers)
        + bias_adjustment(popularity_bias, artist.popularity)
    )
    return clamp(score)


def keep_artist(artist: Artist, user_genres: Sequence[str] = ()) -> bool:
    """Audience floor plus the language restriction on the artist's tags."""
    if artist.followers < MIN_ARTIST_FOLLOWERS or artist.popularity < MIN_ARTIST_POPULARITY:
        return False
    return not any(is_language_restricted(tag, user_genres) for tag in artist.genres)


def artist_reasons(artist: Artist, matching: Sequence[str], seed: Optional[str], similarity_type: str) -> List[str]:
    reasons = []
    if similarity_type == "similar_artists" and seed:
        reasons.append(f"Similar to {seed}")
    if matching:
        reasons.append(f"Matches your {matching[0]} taste")
    elif similarity_type == "user_pattern":
        reasons.append("Something new to explore")
    if artist.followers >= 1000:
        reasons.append(f"{format_count(artist.followers)} followers")
    if artist.popularity > 70:
        reasons.append("Popular right now")
    return reasons[:MAX_REASONS]


def build_artist_recommendation(
    artist: Artist,
    user_genres: Sequence[str],
    popularity_bias: str,
    similarity_type: str,
    seed: Optional[str] = None,
    search_genre: Optional[str] = None,
) -> Optional[ArtistRecommendation]:
    if not keep_artist(artist, user_genres):
        return None
    matching = matching_genres(artist.genres, user_genres)
    score = score_artist(artist, len(matching), popularity_bias)
    # The searched genre still groups the artist for diversity
    genres = matching or ([search_genre] if search_genre else [])
    return ArtistRecommendation(
        artist=artist,
        score=score,
        reasons=tuple(artist_reasons(artist, matching, seed, similarity_type)),
        matching_genres=tuple(genres),
        similarity_type=similarity_type,
    )


# ----------------------------------------------------------------------
# Ranking
# ----------------------------------------------------------------------

def dedupe(recs: Sequence[R]) -> List[R]:
    """One entry per id, keeping the higher score (first seen on equal scores)."""
    best: Dict[str, R] = {}
    for rec in recs:
        current = best.get(rec.id)
        if current is None or rec.score > current.score:
            best[rec.id] = rec
    return list(best.values())


def compare(a: Recommendation, b: Recommendation) -> int:
    """Score first when the gap exceeds the tie zone, else followers.

    Not transitive (80/100 followers, 76/9K, 72/10M cycle), so ties across
    the zone resolve by input order. sorted() stays deterministic.
    """
    diff = b.score - a.score
    if abs(diff) > SCORE_TIE_ZONE:
        return 1 if diff > 0 else -1
    if a.followers != b.followers:
        return 1 if b.followers > a.followers else -1
    if diff:
        return 1 if diff > 0 else -1
    return 0


def sort_recommendations(recs: Sequence[R]) -> List[R]:
    return sorted(recs, key=cmp_to_key(compare))


def primary_matching_genre(rec: Recommendation) -> Optional[str]:
    return rec.matching_genres[0].lower() if rec.matching_genres else None


def penalize_repeated_genres(recs: Sequence[PlaylistRecommendation], quota: int = 3) -> List[PlaylistRecommendation]:
    """Multiply by 0.9 once a genre already has `quota` earlier entries, then re-sort."""
    seen: Counter = Counter()
    adjusted = []
    for rec in sorted(recs, key=lambda r: r.score, reverse=True):
        genre = primary_matching_genre(rec)
        if genre is not None:
            if seen[genre] >= quota:
                rec = replace(rec, score=rec.score * REPEATED_GENRE_PENALTY)
            seen[genre] += 1
        adjusted.append(rec)
    return sort_recommendations(adjusted)


def enforce_genre_quota(recs: Sequence[ArtistRecommendation], quota: int = 3) -> List[ArtistRecommendation]:
    """Admit at most `quota` per primary genre, then append the leftovers in order."""
    admitted: List[ArtistRecommendation] = []
    leftovers: List[ArtistRecommendation] = []
    counts: Counter = Counter()
    for rec in sorted(recs, key=lambda r: r.score, reverse=True):
        genre = primary_matching_genre(rec)
        if genre is None or counts[genre] < quota:
            admitted.append(rec)
            if genre is not None:
                counts[genre] += 1
        else:
            leftovers.append(rec)
    return admitted + leftovers


def rank_playlists(
    recs: Sequence[PlaylistRecommendation],
    limit: int = 24,
    quota: int = 3,
) -> List[PlaylistRecommendation]:
    return penalize_repeated_genres(dedupe(recs), quota)[:limit]


def rank_artists(
    recs: Sequence[ArtistRecommendation],
    limit: int = 12,
    quota: int = 3,
) -> List[ArtistRecommendation]:
    diversified = enforce_genre_quota(dedupe(recs), quota)
    first_pass = diversified[:limit]
    return sort_recommendations(first_pass)
