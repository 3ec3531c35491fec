import math

import pytest

from spotintel.models import Artist, ArtistRecommendation, Playlist, PlaylistRecommendation
from spotintel.scoring import (
    bias_adjustment,
    build_artist_recommendation,
    build_playlist_recommendation,
    compare,
    dedupe,
    depth_score,
    enforce_genre_quota,
    follower_tier_bonus,
    penalize_repeated_genres,
    quality_score,
    rank_artists,
    rank_playlists,
    score_artist,
    score_playlist,
    sort_recommendations,
    text_relevance,
)


def playlist_rec(pid, score, followers=1000, genres=("pop",)):
    return PlaylistRecommendation(
        playlist=Playlist(pid, pid, followers=followers),
        score=score,
        reasons=(),
        matching_genres=tuple(genres),
        similarity_type="genre",
    )


def artist_rec(aid, score, genre, followers=1_000_000):
    return ArtistRecommendation(
        artist=Artist(aid, aid, followers=followers, popularity=60),
        score=score,
        reasons=(),
        matching_genres=(genre,) if genre else (),
        similarity_type="genre",
    )


# ----------------------------------------------------------------------
# Playlist sub-scores
# ----------------------------------------------------------------------

def test_text_relevance_levels():
    assert text_relevance("pop", "Chill Pop Hits") == 100
    assert text_relevance("pop", "Chill Hits", "the best pop songs") == 70
    # "deep" missing, "study" and "beats" found
    assert text_relevance("deep study beats", "Beats to study to", "") == pytest.approx(100 / 3)
    # words of two letters or fewer are ignored
    assert text_relevance("lo fi beats", "Beats to study to", "") == pytest.approx(50.0)
    assert text_relevance("jazz", "Rock Classics", "") == 0


def test_quality_is_logarithmic_and_capped():
    assert quality_score(0) == 0
    assert quality_score(10_000_000) == pytest.approx(100, abs=0.01)
    assert quality_score(500_000_000) == 100
    assert quality_score(50_000) == pytest.approx(math.log10(50_001) / 7 * 100)


@pytest.mark.parametrize("total,expected", [(20, 100), (100, 100), (10, 70), (150, 70), (5, 40), (300, 40), (4, 0)])
def test_depth_score(total, expected):
    assert depth_score(total) == expected


def test_chill_pop_hits_scenario():
    playlist = Playlist("p", "Chill Pop Hits", followers=50_000, track_total=80)
    expected = 0.4 * 100 + 0.35 * (math.log10(50_001) / 7 * 100) + 0.25 * 100
    assert score_playlist(playlist, "pop") == pytest.approx(expected)
    rec = build_playlist_recommendation(playlist, "pop", "genre", ["pop"])
    assert rec is not None
    assert rec.score == pytest.approx(88.49, abs=0.01)
    assert "50K followers" in rec.reasons
    assert len(rec.reasons) <= 3


def test_low_score_or_low_followers_discarded():
    tiny = Playlist("p", "Pop", followers=99, track_total=50)
    assert build_playlist_recommendation(tiny, "pop", "genre") is None
    weak = Playlist("q", "Unrelated", followers=150, track_total=2)
    assert score_playlist(weak, "pop") < 30
    assert build_playlist_recommendation(weak, "pop", "genre") is None


@pytest.mark.parametrize("followers", [0, 1, 99, 10 ** 12])
@pytest.mark.parametrize("tracks", [0, 3, 50, 10 ** 6])
def test_playlist_score_bounds(followers, tracks):
    score = score_playlist(Playlist("p", "x pop x", "pop", followers=followers, track_total=tracks), "pop")
    assert 0 <= score <= 100


# ----------------------------------------------------------------------
# Artist scoring
# ----------------------------------------------------------------------

@pytest.mark.parametrize(
    "followers,bonus",
    [(10_000_000, 20), (5_000_000, 15), (1_000_000, 10), (500_000, 7), (100_000, 5), (99_999, 0)],
)
def test_follower_tiers(followers, bonus):
    assert follower_tier_bonus(followers) == bonus


def test_bias_adjustment():
    assert bias_adjustment("mainstream", 80) == 10
    assert bias_adjustment("mainstream", 60) == 10
    assert bias_adjustment("mainstream", 50) == 0
    assert bias_adjustment("underground", 60) == 10
    assert bias_adjustment("underground", 80) == -10
    assert bias_adjustment("mixed", 99) == 0


def test_artist_score_formula():
    artist = Artist("a", "A", followers=2_000_000, popularity=60)
    # 30 + 10 (one match) + 18 + 10 + 0
    assert score_artist(artist, 1, "mixed") == pytest.approx(68)
    assert score_artist(artist, 1, "mainstream") == pytest.approx(78)


def test_artist_score_capped():
    artist = Artist("a", "A", followers=50_000_000, popularity=100)
    assert score_artist(artist, 5, "mainstream") == 100


def test_artist_filters():
    user = ["hip hop"]
    small = Artist("a", "A", genres=("hip hop",), followers=99_999, popularity=90)
    obscure = Artist("b", "B", genres=("hip hop",), followers=500_000, popularity=49)
    tamil = Artist("c", "C", genres=("tamil hip hop",), followers=5_000_000, popularity=80)
    french = Artist("d", "D", genres=("french hip hop",), followers=5_000_000, popularity=80)
    assert build_artist_recommendation(small, user, "mixed", "genre") is None
    assert build_artist_recommendation(obscure, user, "mixed", "genre") is None
    assert build_artist_recommendation(tamil, user, "mixed", "genre") is None
    assert build_artist_recommendation(french, user, "mixed", "genre") is not None


def test_artist_matching_genres_are_strict():
    artist = Artist("a", "A", genres=("k-pop boy group", "kpop"), followers=1_000_000, popularity=70)
    rec = build_artist_recommendation(artist, ["k-pop", "pop"], "mixed", "genre")
    assert rec.matching_genres == ("k-pop",)


# ----------------------------------------------------------------------
# Ranking
# ----------------------------------------------------------------------

def test_dedupe_keeps_higher_score():
    recs = [playlist_rec("a", 50), playlist_rec("b", 60), playlist_rec("a", 70)]
    out = {r.id: r.score for r in dedupe(recs)}
    assert out == {"a": 70, "b": 60}


def test_ordering_uses_followers_inside_tie_zone():
    high = playlist_rec("high", 80, followers=100)
    close = playlist_rec("close", 76, followers=9000)
    low = playlist_rec("low", 60, followers=10 ** 7)
    assert compare(high, low) < 0
    assert [r.id for r in sort_recommendations([low, high, close])] == ["close", "high", "low"]


def test_tie_zone_cycle_is_stable_for_identical_input():
    a = playlist_rec("a", 80, followers=100)
    b = playlist_rec("b", 76, followers=9000)
    c = playlist_rec("c", 72, followers=10 ** 7)
    # a < c on score, c < b and b < a on followers
    assert compare(a, c) < 0 and compare(c, b) < 0 and compare(b, a) < 0
    first = [r.id for r in sort_recommendations([a, b, c])]
    assert first == [r.id for r in sort_recommendations([a, b, c])]


def test_repeated_genre_penalty():
    recs = [playlist_rec(str(i), 90 - i, followers=1000 - i) for i in range(5)]
    out = {r.id: r.score for r in penalize_repeated_genres(recs)}
    assert out["0"] == 90 and out["2"] == 88
    assert out["3"] == pytest.approx(87 * 0.9)
    assert out["4"] == pytest.approx(86 * 0.9)


def test_artist_genre_quota_first_pass():
    recs = [artist_rec(f"rock{i}", 90 - i, "rock") for i in range(5)]
    recs += [artist_rec("jazz", 50, "jazz")]
    order = [r.id for r in enforce_genre_quota(recs)]
    assert order[:4] == ["rock0", "rock1", "rock2", "jazz"]
    assert order[4:] == ["rock3", "rock4"]


def test_rank_artists_caps_and_diversifies():
    recs = [artist_rec(f"pop{i}", 95 - i, "pop") for i in range(10)]
    recs += [artist_rec(f"rap{i}", 60 - i, "rap") for i in range(10)]
    ranked = rank_artists(recs, limit=6, quota=3)
    assert len(ranked) == 6
    assert sum(1 for r in ranked if r.matching_genres == ("pop",)) == 3


def test_rank_playlists_caps_output():
    recs = [playlist_rec(str(i), 50 + i % 40, genres=(f"g{i % 7}",)) for i in range(40)]
    ranked = rank_playlists(recs, limit=24)
    assert len(ranked) == 24
    assert all(0 <= r.score <= 100 for r in ranked)
