import threading
import time

import pytest

from spotintel.config import IntelligenceConfig, parse_bool_env, parse_int_env
from spotintel.utils import chunks, fan_out, format_count, log, set_verbose, verbose_log


def test_chunks():
    assert list(chunks([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(chunks([], 3)) == []
    with pytest.raises(ValueError):
        list(chunks([1], 0))


def test_fan_out_keeps_submission_order():
    def slow_square(n):
        time.sleep(0.01 * (5 - n % 5))
        return n * n

    assert fan_out(slow_square, range(12), batch_size=5) == [n * n for n in range(12)]


def test_fan_out_bounds_concurrency():
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    def work(_):
        with lock:
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
        time.sleep(0.01)
        with lock:
            state["active"] -= 1

    batches = []
    fan_out(work, range(12), batch_size=5, on_batch=batches.append)
    assert state["peak"] <= 5
    assert batches == [5, 5, 2]


def test_fan_out_empty():
    assert fan_out(lambda x: x, []) == []


@pytest.mark.parametrize(
    "count,text",
    [(950, "950"), (1000, "1K"), (1234, "1.2K"), (50_000, "50K"), (3_000_000, "3M"), (1_250_000, "1.2M")],
)
def test_format_count(count, text):
    assert format_count(count) == text


def test_log_is_timestamped(quiet_logs):
    log("hello")
    assert quiet_logs[-1].endswith("] hello")
    assert quiet_logs[-1].startswith("[")


def test_verbose_log_gated(quiet_logs):
    verbose_log("hidden")
    assert quiet_logs == []
    set_verbose(True)
    verbose_log("shown")
    assert "[VERBOSE] shown" in quiet_logs[-1]


def test_env_parsing(monkeypatch):
    monkeypatch.setenv("SPOTINTEL_TEST_INT", " 42 ")
    monkeypatch.setenv("SPOTINTEL_TEST_BOOL", "yes")
    assert parse_int_env("SPOTINTEL_TEST_INT", 1) == 42
    assert parse_int_env("SPOTINTEL_MISSING", 7) == 7
    assert parse_bool_env("SPOTINTEL_TEST_BOOL", False) is True
    monkeypatch.setenv("SPOTINTEL_TEST_INT", "many")
    with pytest.raises(ValueError):
        parse_int_env("SPOTINTEL_TEST_INT", 1)


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SPOTINTEL_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("SPOTINTEL_MAX_ARTISTS_OUT", "5")
    monkeypatch.setenv("SPOTIFY_API_DELAY", "0.25")
    config = IntelligenceConfig.from_env(env_file=tmp_path / "missing.env")
    assert config.cache_ttl_seconds == 60
    assert config.max_artist_recommendations == 5
    assert config.request_delay == 0.25
    assert config.max_playlist_recommendations == 24


def test_config_reads_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.delenv("SPOTINTEL_SEARCH_LIMIT", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("SPOTINTEL_SEARCH_LIMIT=7\n")
    config = IntelligenceConfig.from_env(env_file=env_file)
    assert config.search_limit == 7
    monkeypatch.delenv("SPOTINTEL_SEARCH_LIMIT", raising=False)
