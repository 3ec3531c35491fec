"""
Shared helpers: timestamped logging, chunking, bounded fan-out and
follower-count formatting.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, TypeVar

from tqdm import tqdm

T = TypeVar("T")
R = TypeVar("R")

# Optional override for log output (e.g. a UI log panel)
_log_fn: Optional[Callable[[str], None]] = None
_verbose = False


def set_log_function(fn: Optional[Callable[[str], None]]) -> None:
    """Redirect log() output. Pass None to restore the default writer."""
    global _log_fn
    _log_fn = fn


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = bool(enabled)


def log(msg: str) -> None:
    """Print message with timestamp.

    Uses tqdm.write() to avoid interfering with progress bars.
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_line = f"[{timestamp}] {msg}"
    if _log_fn:
        _log_fn(log_line)
    else:
        tqdm.write(log_line)


def verbose_log(msg: str) -> None:
    """Log only when verbose mode is enabled."""
    if _verbose:
        log(f"🔍 [VERBOSE] {msg}")


def chunks(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield successive lists of at most `size` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def fan_out(
    fn: Callable[[T], R],
    items: Iterable[T],
    batch_size: int = 5,
    on_batch: Optional[Callable[[int], None]] = None,
) -> List[R]:
    """Run `fn` over `items` in concurrent batches of `batch_size`.

    Each batch is submitted together and fully joined before the next one
    starts, so no more than `batch_size` calls are ever in flight. Results
    come back in submission order regardless of completion order.
    """
    items = list(items)
    results: List[R] = []
    if not items:
        return results

    with ThreadPoolExecutor(max_workers=max(1, batch_size)) as executor:
        for batch in chunks(items, max(1, batch_size)):
            results.extend(executor.map(fn, batch))
            if on_batch:
                on_batch(len(batch))
    return results


def format_count(count: int) -> str:
    """Compact follower count: 950, 1.2K, 3M."""
    if count >= 1_000_000:
        v = count / 1_000_000
        return f"{v:.0f}M" if v.is_integer() else f"{round(v, 1):g}M"
    if count >= 1_000:
        v = count / 1_000
        return f"{v:.0f}K" if v.is_integer() else f"{round(v, 1):g}K"
    return str(count)
