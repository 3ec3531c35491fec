import pytest

from spotintel.analysis import build_insights
from spotintel.models import Album, Artist, MusicInsights, Track


def make_track(track_id, artist_name="Someone", artist_id=None, popularity=50,
               explicit=False, duration_ms=200000, album=None, name="Song"):
    artist = Artist(artist_id or f"id-{artist_name}", artist_name)
    return Track(
        id=track_id,
        name=name,
        artists=(artist,),
        album=album,
        duration_ms=duration_ms,
        explicit=explicit,
        popularity=popularity,
    )


def test_empty_catalog_gives_defaults():
    insights = build_insights([], current_year=2026)
    assert insights == MusicInsights()
    assert insights.top_genres == ()
    assert insights.popularity_bias == "mixed"
    assert insights.listening_patterns.average_track_length == 210000


def test_genre_counts_one_genre_per_track():
    tracks = [
        make_track("1", "Lil A"),           # hip-hop
        make_track("2", "Lil B"),           # hip-hop
        make_track("3", "DJ C"),            # electronic
        make_track("4", "Plain"),           # nothing
    ]
    insights = build_insights(tracks, current_year=2026)
    assert [(g.genre, g.count, g.percentage) for g in insights.top_genres] == [
        ("hip-hop", 2, 50),
        ("electronic", 1, 25),
    ]
    assert sum(g.count for g in insights.top_genres) <= len(tracks)


def test_duplicates_are_counted_once():
    track = make_track("1", "Lil A", popularity=90, duration_ms=100000)
    other = make_track("2", "Plain", popularity=10, duration_ms=300000)
    insights = build_insights([track, track, track, other], current_year=2026)
    assert insights.analyzed_tracks == 2
    assert insights.top_genres[0].count == 1
    assert insights.listening_patterns.average_track_length == 200000
    assert insights.popularity_bias == "mixed"


@pytest.mark.parametrize("pops,bias", [([80, 90], "mainstream"), ([10, 30], "underground"), ([40, 70], "mixed")])
def test_popularity_bias(pops, bias):
    tracks = [make_track(str(i), popularity=p) for i, p in enumerate(pops)]
    assert build_insights(tracks, current_year=2026).popularity_bias == bias


def test_missing_popularity_is_mixed():
    tracks = [make_track("1", popularity=None)]
    assert build_insights(tracks, current_year=2026).popularity_bias == "mixed"


def test_diversity_and_discovery():
    tracks = [
        make_track("1", "A"),
        make_track("2", "A"),
        make_track("3", "B"),
        make_track("4", "C"),
    ]
    insights = build_insights(tracks, current_year=2026)
    assert insights.artist_diversity == pytest.approx(0.75)
    assert insights.discovery_rate == 75
    assert insights.top_artists[0] == "A"


def test_diversity_capped_at_one():
    track = Track("1", "Collab", artists=(Artist("a", "A"), Artist("b", "B"), Artist("c", "C")))
    insights = build_insights([track], current_year=2026)
    assert insights.artist_diversity == 1.0
    assert insights.discovery_rate == 100


def test_explicit_ratio_and_length():
    tracks = [
        make_track("1", explicit=True, duration_ms=180000),
        make_track("2", explicit=False, duration_ms=240000),
        make_track("3", explicit=False, duration_ms=240000),
        make_track("4", explicit=True, duration_ms=180000),
    ]
    patterns = build_insights(tracks, current_year=2026).listening_patterns
    assert patterns.explicit_content_ratio == 50
    assert patterns.average_track_length == 210000


def test_era_preference():
    new = Album("n", "New", "2025-01-01")
    old = Album("o", "Old", "1995-01-01")
    recent = [make_track(str(i), album=new) for i in range(3)] + [make_track("x", album=old)]
    classic = [make_track(str(i), album=old) for i in range(3)] + [make_track("y", album=new)]
    assert build_insights(recent, current_year=2026).listening_patterns.recent_vs_old == "recent"
    assert build_insights(classic, current_year=2026).listening_patterns.recent_vs_old == "classic"
    assert build_insights([make_track("z")], current_year=2026).listening_patterns.recent_vs_old == "mixed"


def test_top_genres_limited_to_ten():
    names = [
        "Lil A", "DJ B", "Symphony C", "Jazz D", "Country E", "Soul F",
        "Salsa G", "Gospel H", "Metal I", "Teen J", "방탄",
    ]
    tracks = [make_track(str(i), n) for i, n in enumerate(names)]
    genres = build_insights(tracks, current_year=2026).top_genres
    assert len(genres) == 10
