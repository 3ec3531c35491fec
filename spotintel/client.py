"""
Spotintel client - thin result-pair wrapper around the Spotify Web API.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from .utils import verbose_log

DEFAULT_BASE_URL = "https://api.spotify.com/v1/"

AUTH_FAILED = "Authentication failed. Please log in again."
ACCESS_FORBIDDEN = "Access forbidden. Premium account may be required."
RATE_LIMITED = "Rate limit exceeded. Please try again later."
NETWORK_ERROR = "Network error occurred"


@dataclass(frozen=True)
class ApiError:
    """A classified request failure. str() gives the user-facing message."""

    kind: str  # auth | forbidden | rate_limited | http | network
    message: str
    status: Optional[int] = None

    @property
    def retryable(self) -> bool:
        if self.kind in ("rate_limited", "network"):
            return True
        return self.kind == "http" and self.status is not None and self.status >= 500

    def __str__(self) -> str:
        return self.message


def classify_status(status: Optional[int]) -> ApiError:
    if status == 401:
        return ApiError("auth", AUTH_FAILED, 401)
    if status == 403:
        return ApiError("forbidden", ACCESS_FORBIDDEN, 403)
    if status == 429:
        return ApiError("rate_limited", RATE_LIMITED, 429)
    return ApiError("http", f"API request failed: {status}", status)


Result = Tuple[Optional[Dict[str, Any]], Optional[ApiError]]


class SpotifyDataClient:
    """Authenticated GET access to the catalog API.

    Never raises for request failures and never retries: every call
    returns a (data, error) pair and the caller decides what to do.
    """

    def __init__(self, sp: spotipy.Spotify, request_delay: float = 0.0, max_in_flight: int = 5):
        self.sp = sp
        self._request_delay = request_delay
        # Shared by every thread using this client, however fan-outs nest
        self._in_flight = threading.BoundedSemaphore(max(1, max_in_flight))

    # -------------------------
    # Constructors
    # -------------------------
    @classmethod
    def from_token(
        cls,
        token: str,
        base_url: Optional[str] = None,
        request_delay: float = 0.0,
        requests_timeout: int = 30,
        max_in_flight: int = 5,
    ) -> "SpotifyDataClient":
        if not token:
            raise ValueError("A bearer token is required")
        # A plain session has no urllib3 Retry adapter, so 5xx keeps its own
        # status instead of surfacing as spotipy's synthetic 429 "Max Retries".
        sp = spotipy.Spotify(
            auth=token,
            requests_session=requests.Session(),
            requests_timeout=requests_timeout,
        )
        if base_url:
            sp.prefix = base_url if base_url.endswith("/") else base_url + "/"
        return cls(sp=sp, request_delay=request_delay, max_in_flight=max_in_flight)

    # -------------------------
    # Requests
    # -------------------------
    def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Result:
        """GET `endpoint` (relative to the base URL) with query `params`."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        verbose_log(f"GET {endpoint} {query}")
        return self._call(self.sp._get, endpoint, **query)

    def next_page(self, page: Optional[Dict[str, Any]]) -> Result:
        """Follow a page's `next` cursor. Returns (None, None) at the end."""
        if not page or not page.get("next"):
            return None, None
        return self._call(self.sp._get, page["next"])

    def _call(self, fn, *args, **kwargs) -> Result:
        try:
            with self._in_flight:
                data = fn(*args, **kwargs)
        except SpotifyException as e:
            error = classify_status(e.http_status)
            verbose_log(f"  request failed: {error.kind} ({e.http_status})")
            return None, error
        except requests.exceptions.RequestException as e:
            verbose_log(f"  network failure: {e}")
            return None, ApiError("network", NETWORK_ERROR)

        if self._request_delay > 0:
            time.sleep(self._request_delay)
        if data is None:
            data = {}
        return data, None
