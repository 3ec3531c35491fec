"""
Heuristic genre inference.

The catalog API gives no genre per track, and artist genre tags are often
missing, so genres are inferred from several independent detectors:
1. Artist genre tags (when present)
2. Artist-name patterns
3. Track-name keywords
4. Context: album name and release-year bucket

All detected labels are unioned in that order and exactly one primary
genre is picked with the priority table in `genres.py`.

Every function here is pure: no I/O, no clock unless one is passed in.
"""

from datetime import date
from typing import Iterable, List, Optional

from .genres import (
    ALBUM_NAME_RULES,
    ARTIST_NAME_RULES,
    GENRE_TAG_RULES,
    TRACK_NAME_RULES,
    genre_priority,
)
from .models import Artist, Track, parse_release_year


def _add(labels: List[str], label: str) -> None:
    if label not in labels:
        labels.append(label)


def detect_tag_genres(tags: Iterable[str]) -> List[str]:
    """Map artist genre tags to classifier labels.

    Each tag maps to the first keyword family that matches it, so
    'korean r&b' is k-pop and 'latin trap' is latin.
    """
    labels: List[str] = []
    for tag in tags:
        if not tag:
            continue
        tag_lower = tag.lower()
        for keywords, label in GENRE_TAG_RULES:
            if any(kw in tag_lower for kw in keywords):
                _add(labels, label)
                break
    return labels


def detect_artist_name_genres(artist_names: Iterable[str]) -> List[str]:
    labels: List[str] = []
    for name in artist_names:
        if not name:
            continue
        name_lower = name.lower()
        for pattern, label in ARTIST_NAME_RULES:
            if pattern.search(name_lower):
                _add(labels, label)
    return labels


def detect_track_name_genres(track_name: Optional[str]) -> List[str]:
    labels: List[str] = []
    if not track_name:
        return labels
    name_lower = track_name.lower()
    for pattern, label in TRACK_NAME_RULES:
        if pattern.search(name_lower):
            _add(labels, label)
    return labels


def release_bucket(year: Optional[int], current_year: int) -> Optional[str]:
    """'vintage' before 1970, 'retro' before 1990, 'contemporary' for the last 2 years."""
    if year is None:
        return None
    if year < 1970:
        return "vintage"
    if year < 1990:
        return "retro"
    if year > current_year - 2:
        return "contemporary"
    return None


def detect_context_genres(
    album_name: Optional[str],
    release_date: Optional[str],
    current_year: Optional[int] = None,
) -> List[str]:
    labels: List[str] = []
    if album_name:
        album_lower = album_name.lower()
        for pattern, label in ALBUM_NAME_RULES:
            if pattern.search(album_lower):
                _add(labels, label)

    if current_year is None:
        current_year = date.today().year
    bucket = release_bucket(parse_release_year(release_date), current_year)
    if bucket:
        _add(labels, bucket)
    return labels


def classify(
    artist_names: Iterable[str],
    track_name: Optional[str] = None,
    album_name: Optional[str] = None,
    release_date: Optional[str] = None,
    artist_tags: Iterable[str] = (),
    current_year: Optional[int] = None,
) -> List[str]:
    """Union of all detector labels, in detection order, without repeats."""
    labels: List[str] = []
    for label in (
        detect_tag_genres(artist_tags)
        + detect_artist_name_genres(artist_names)
        + detect_track_name_genres(track_name)
        + detect_context_genres(album_name, release_date, current_year)
    ):
        _add(labels, label)
    return labels


def pick_primary_genre(labels: Iterable[str]) -> Optional[str]:
    """Highest-priority label. On equal priority the first detected wins."""
    best: Optional[str] = None
    best_priority = -1
    for label in labels:
        priority = genre_priority(label)
        if priority > best_priority:
            best, best_priority = label, priority
    return best


def classify_track(track: Track, current_year: Optional[int] = None) -> List[str]:
    tags: List[str] = []
    for artist in track.artists:
        tags.extend(artist.genres)
    album = track.album
    return classify(
        artist_names=track.artist_names,
        track_name=track.name,
        album_name=album.name if album else None,
        release_date=album.release_date if album else None,
        artist_tags=tags,
        current_year=current_year,
    )


def primary_genre_for_track(track: Track, current_year: Optional[int] = None) -> Optional[str]:
    """Single primary genre of a track, or None when no detector fired.

    Args:
        track: Parsed track
        current_year: Reference year for the release bucket (defaults to today)

    Returns:
        One genre label, never more
    """
    return pick_primary_genre(classify_track(track, current_year))


def primary_genre_for_artist(artist: Artist) -> Optional[str]:
    labels = detect_tag_genres(artist.genres)
    for label in detect_artist_name_genres([artist.name]):
        _add(labels, label)
    return pick_primary_genre(labels)
