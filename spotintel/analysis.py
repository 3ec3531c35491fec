"""
Insight building: reduce a deduplicated catalog to aggregate statistics.
"""

from datetime import date
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .genre_inference import primary_genre_for_track
from .models import GenreCount, ListeningPatterns, MusicInsights, Track
from .utils import verbose_log

TOP_GENRE_COUNT = 10
TOP_ARTIST_COUNT = 5
DEFAULT_TRACK_LENGTH_MS = 210000

MAINSTREAM_THRESHOLD = 70
UNDERGROUND_THRESHOLD = 40


def _percent(part: float, total: float) -> int:
    """Rounded percentage, halves rounded up."""
    if total <= 0:
        return 0
    return int(np.floor(part / total * 100 + 0.5))


def tracks_frame(tracks: Sequence[Track], current_year: Optional[int] = None) -> pd.DataFrame:
    """One row per track with the columns the insight statistics need."""
    rows = []
    for t in tracks:
        rows.append({
            "track_id": t.id,
            "primary_genre": primary_genre_for_track(t, current_year),
            "popularity": t.popularity,
            "explicit": t.explicit,
            "duration_ms": t.duration_ms,
            "release_year": t.album.release_year if t.album else None,
        })
    columns = ["track_id", "primary_genre", "popularity", "explicit", "duration_ms", "release_year"]
    return pd.DataFrame(rows, columns=columns)


def track_artists_frame(tracks: Sequence[Track]) -> pd.DataFrame:
    rows = [
        {"track_id": t.id, "artist_id": a.id, "artist_name": a.name}
        for t in tracks
        for a in t.artists
    ]
    return pd.DataFrame(rows, columns=["track_id", "artist_id", "artist_name"])


def top_genres(df: pd.DataFrame, limit: int = TOP_GENRE_COUNT) -> List[GenreCount]:
    """Genres by track count. Each track counts toward at most one genre."""
    total = len(df)
    genres = df["primary_genre"].dropna()
    if genres.empty:
        return []
    # First-seen order among equal counts
    counts = genres.value_counts(sort=False).sort_values(ascending=False, kind="stable")
    return [
        GenreCount(genre=str(genre), count=int(count), percentage=_percent(count, total))
        for genre, count in counts.head(limit).items()
    ]


def popularity_bias(df: pd.DataFrame) -> str:
    scores = pd.to_numeric(df["popularity"], errors="coerce").dropna()
    if scores.empty:
        return "mixed"
    avg = float(np.mean(scores))
    if avg > MAINSTREAM_THRESHOLD:
        return "mainstream"
    if avg < UNDERGROUND_THRESHOLD:
        return "underground"
    return "mixed"


def era_preference(df: pd.DataFrame, current_year: int) -> str:
    years = pd.to_numeric(df["release_year"], errors="coerce").dropna()
    if years.empty:
        return "mixed"
    if (years >= current_year - 3).mean() > 0.5:
        return "recent"
    if (years < 2000).mean() > 0.5:
        return "classic"
    return "mixed"


def build_insights(tracks: Sequence[Track], current_year: Optional[int] = None) -> MusicInsights:
    """Aggregate statistics over a catalog.

    `tracks` is expected to be deduplicated already (see
    ListeningHistory.catalog); duplicate ids are dropped again here so a
    track can never be counted twice.

    Args:
        tracks: Catalog tracks
        current_year: Reference year for era buckets (defaults to today)

    Returns:
        MusicInsights. An empty catalog gives the default insight object.
    """
    if current_year is None:
        current_year = date.today().year

    df = tracks_frame(tracks, current_year).drop_duplicates(subset="track_id", keep="first")
    total = len(df)
    if total == 0:
        return MusicInsights()

    artists = track_artists_frame(tracks)
    artists = artists[artists["track_id"].isin(df["track_id"])].drop_duplicates(
        subset=["track_id", "artist_id"]
    )
    unique_artists = artists["artist_id"].nunique()

    top_artists = (
        artists["artist_name"].value_counts(sort=False)
        .sort_values(ascending=False, kind="stable")
        .head(TOP_ARTIST_COUNT)
    )

    genres = top_genres(df)
    verbose_log(f"Top genres: {[(g.genre, g.count) for g in genres]}")

    return MusicInsights(
        top_genres=tuple(genres),
        artist_diversity=min(unique_artists / total, 1.0),
        popularity_bias=popularity_bias(df),
        discovery_rate=min(_percent(unique_artists, total), 100),
        listening_patterns=ListeningPatterns(
            average_track_length=int(np.floor(df["duration_ms"].mean() + 0.5)),
            explicit_content_ratio=_percent(int(df["explicit"].sum()), total),
            recent_vs_old=era_preference(df, current_year),
        ),
        top_artists=tuple(str(name) for name in top_artists.index),
        analyzed_tracks=total,
    )
