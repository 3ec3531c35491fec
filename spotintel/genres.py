"""
Genre vocabulary for the heuristic classifier.

This module contains the keyword families used to spot genres in artist
names, track names, album names and (when present) artist genre tags, the
priority table that picks one primary genre per track, and the strict
matching rules used when comparing genre labels.
"""

import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

# Artist-name patterns, one regex family per genre.
# Order matters: it is the detection order used for tie-breaks.
ARTIST_NAME_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"[가-힣]"), "k-pop"),
    (re.compile(r"[぀-ヿ]"), "j-pop"),
    (re.compile(r"\b(dj|skrillex|deadmau5|tiesto|calvin harris)\b"), "electronic"),
    (re.compile(r"\b(bass|step|trance|house|techno|dubstep)\b"), "electronic"),
    (re.compile(r"(\b(mc|lil|young|big|rapper)\b|\$)"), "hip-hop"),
    (re.compile(r"\b(gang|crew|mob|posse|squad)\b"), "hip-hop"),
    (re.compile(r"\b(band|group|boys|brothers|sisters|collective)"), "rock"),
    (re.compile(r"\b(metal|punk|grunge|indie|alternative)"), "rock"),
    (re.compile(r"\b(orchestra|symphony|philharmonic|ensemble|quartet|trio)"), "classical"),
    (re.compile(r"\b(bach|mozart|beethoven|chopin|classical)"), "classical"),
    (re.compile(r"\b(jazz|swing|bebop|fusion|quintet|sextet)"), "jazz"),
    (re.compile(r"\b(country|bluegrass|nashville|honky|outlaw)"), "country"),
    (re.compile(r"\b(pop|teen|idol|sensation|star)\b"), "pop"),
    (re.compile(r"\b(soul|motown|rhythm|blues|r&b)"), "r&b"),
    (re.compile(r"\b(salsa|merengue|bachata|reggaeton|mariachi|banda)"), "latin"),
    (re.compile(r"\b(choir|gospel|church|christian|praise|worship)"), "gospel"),
]

# Track-name keywords
TRACK_NAME_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"[가-힣]"), "k-pop"),
    (re.compile(r"[぀-ヿ]"), "j-pop"),
    (re.compile(r"\b(remix|mix)\b"), "electronic"),
    (re.compile(r"\b(reggaeton|bachata|cumbia|corrido)\b"), "latin"),
    (re.compile(r"\bfreestyle\b"), "hip-hop"),
    (re.compile(r"\bacoustic\b"), "acoustic"),
    (re.compile(r"\b(live|concert)\b"), "live"),
    (re.compile(r"\binstrumental\b"), "instrumental"),
    (re.compile(r"\bcover\b"), "cover"),
]

# Album-name keywords
ALBUM_NAME_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"\b(greatest hits|anthology|collection|best of)"), "compilation"),
    (re.compile(r"\b(live|concert|acoustic|unplugged)"), "live"),
    (re.compile(r"\b(remix|mixed|dj|dance)"), "electronic"),
    (re.compile(r"\b(classical|symphony|concerto|sonata)"), "classical"),
]

# Artist genre tags (when the API supplies them) -> label.
# Checked in order, first family that matches a tag wins for that tag.
GENRE_TAG_RULES: List[Tuple[List[str], str]] = [
    (["k-pop", "kpop", "k pop", "korean"], "k-pop"),
    (["j-pop", "jpop", "j pop", "japanese", "anime"], "j-pop"),
    (["c-pop", "cpop", "mandopop", "cantopop", "chinese"], "c-pop"),
    (["reggaeton", "urbano latino", "dembow", "perreo"], "reggaeton"),
    (["latin", "salsa", "bachata", "cumbia", "corrido", "banda", "sertanejo", "mariachi"], "latin"),
    (["trap"], "trap"),
    (["hip hop", "hip-hop", "drill", "grime", "boom bap"], "hip-hop"),
    (["rap"], "rap"),
    (["classical", "orchestra", "baroque", "opera", "symphon"], "classical"),
    (["jazz", "bebop", "swing"], "jazz"),
    (["country", "bluegrass", "americana"], "country"),
    (["r&b", "rnb"], "r&b"),
    (["soul", "motown", "funk"], "soul"),
    (["gospel", "worship", "christian"], "gospel"),
    (["blues"], "blues"),
    (["house"], "house"),
    (["techno"], "techno"),
    (["edm", "electro", "dubstep", "trance", "drum and bass", "dnb"], "electronic"),
    (["metal", "metalcore", "deathcore"], "metal"),
    (["punk"], "punk"),
    (["rock", "grunge"], "rock"),
    (["alternative", "alt "], "alternative"),
    (["indie", "bedroom"], "indie"),
    (["pop"], "pop"),
    (["acoustic", "singer-songwriter", "folk"], "acoustic"),
    (["ambient", "drone", "new age"], "ambient"),
]

# Higher wins. Unlisted labels fall back to DEFAULT_PRIORITY.
GENRE_PRIORITY: Dict[str, int] = {
    "k-pop": 100, "j-pop": 100, "c-pop": 100,
    "latin": 90, "reggaeton": 90,
    "hip-hop": 85, "rap": 85, "trap": 85,
    "classical": 85, "jazz": 85,
    "country": 80, "r&b": 80, "soul": 80,
    "gospel": 75, "blues": 75,
    "electronic": 70, "edm": 70, "house": 70, "techno": 70,
    "rock": 65, "metal": 65, "punk": 65, "alternative": 65,
    "indie": 60,
    "pop": 50,
    "acoustic": 40,
    "ambient": 35,
    "instrumental": 30,
    "live": 20, "cover": 20,
    "vintage": 15, "retro": 15,
    "contemporary": 10,
    "compilation": 5,
}
DEFAULT_PRIORITY = 50

# Genres offered for exploration when the user has not touched them
EXPLORATION_GENRES = ["jazz", "classical", "world", "folk", "reggae", "blues", "ambient", "experimental"]

# Language filter: restricted genre family x small-audience language marker
RESTRICTED_GENRE_FAMILY = ["hip hop", "hip-hop", "hiphop", "rap", "trap", "drill"]
SMALL_AUDIENCE_LANGUAGE_MARKERS = [
    "tamil", "telugu", "kannada", "malayalam", "marathi", "odia", "bhojpuri",
    "gujarati", "assamese", "haryanvi", "sinhala", "nepali", "kurdish",
    "pashto", "sindhi", "tulu", "konkani",
]


def genre_priority(label: str) -> int:
    return GENRE_PRIORITY.get(label.lower(), DEFAULT_PRIORITY)


def normalize_genre(label: str) -> str:
    """Lowercase and drop hyphens and whitespace: 'K-Pop' / 'k pop' -> 'kpop'."""
    return re.sub(r"[\s\-]+", "", label.strip().lower())


def genres_match(a: str, b: str) -> bool:
    """Strict genre equality.

    Case-insensitive exact match, or match once hyphens and spaces are
    stripped. Never substring or synonym matching: 'k-pop boy group' is
    not 'k-pop'.
    """
    if not a or not b:
        return False
    if a.strip().lower() == b.strip().lower():
        return True
    return normalize_genre(a) == normalize_genre(b)


def matching_genres(candidates: Iterable[str], targets: Iterable[str]) -> List[str]:
    """Targets (in order, no repeats) strictly matched by any candidate."""
    candidates = [c for c in candidates if c]
    matched: List[str] = []
    for target in targets:
        if any(genres_match(c, target) for c in candidates) and target not in matched:
            matched.append(target)
    return matched


def contains_genre(genres: Iterable[str], genre: str) -> bool:
    return any(genres_match(g, genre) for g in genres)


def _words(text: str) -> List[str]:
    return re.findall(r"[a-z0-9&]+", text.lower())


def is_restricted_family(genre: str) -> bool:
    """True for hip-hop/rap/trap/drill style labels ('hip hop', 'uk drill')."""
    norm = normalize_genre(genre)
    words = _words(genre.replace("-", " "))
    for fam in RESTRICTED_GENRE_FAMILY:
        fam_norm = normalize_genre(fam)
        if norm == fam_norm or fam_norm in words:
            return True
    return "hiphop" in norm


def has_language_marker(genre: str) -> Optional[str]:
    words = _words(genre)
    for marker in SMALL_AUDIENCE_LANGUAGE_MARKERS:
        if marker in words:
            return marker
    return None


def is_language_restricted(genre: str, user_genres: Iterable[str]) -> bool:
    """Suppress e.g. 'tamil hip hop' for a user whose hip hop taste is unrelated.

    Only applies when one of the user's own top genres belongs to the
    restricted family, and only to tags that combine that family with a
    small-audience language marker. 'french hip hop' is never suppressed.
    """
    user_genres = list(user_genres)
    if not any(is_restricted_family(g) for g in user_genres):
        return False
    if not is_restricted_family(genre):
        return False
    marker = has_language_marker(genre)
    if marker is None:
        return False
    # The user's own taste already covers that language
    return not any(marker in _words(g) for g in user_genres)
