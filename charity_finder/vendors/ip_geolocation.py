"""Coarse network-based positioning via an IP geolocation service (ip-api.com compatible)."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

import requests

from charity_finder.core.location import ERROR, POSITION_UNAVAILABLE, LocationOptions
from charity_finder.models import Coordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_REQUEST_TIMEOUT = 10
_EXECUTOR = ThreadPoolExecutor(max_workers=2)


class IpGeolocationError(RuntimeError):
    """Raised when the IP geolocation service cannot place the caller."""


def lookup(url: str, timeout: float = _REQUEST_TIMEOUT) -> Coordinate:
    response = _SESSION.get(url, params={"fields": "status,message,lat,lon"}, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status != "success":
        logger.error("ip lookup failed: status=%s, message=%s", status, payload.get("message"))
        raise IpGeolocationError(payload.get("message") or status or "unknown error")
    try:
        return Coordinate(lat=float(payload["lat"]), lng=float(payload["lon"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise IpGeolocationError(f"malformed lookup payload: {payload}") from exc


class _PendingLookup:
    def __init__(self) -> None:
        self._cleared = threading.Event()
        self.future = None

    @property
    def cleared(self) -> bool:
        return self._cleared.is_set()

    def clear(self) -> None:
        self._cleared.set()
        if self.future is not None:
            self.future.cancel()


class IpGeolocationPlatform:
    """Geolocation platform backed by :func:`lookup`.

    The lookup runs on a worker thread so the event loop awaiting the fix is not
    blocked. The last successful fix is reused while it is younger than
    ``options.max_cached_age_ms``. IP positioning is inherently coarse, so the
    ``high_accuracy`` hint has no effect.
    """

    def __init__(self, url: str, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._url = url
        self._executor = executor or _EXECUTOR
        self._last_fix: Optional[Tuple[Coordinate, float]] = None
        self._lock = threading.Lock()

    def _cached(self, max_age_ms: int) -> Optional[Coordinate]:
        with self._lock:
            if self._last_fix is None:
                return None
            coordinate, fixed_at = self._last_fix
        if (time.monotonic() - fixed_at) * 1000 <= max_age_ms:
            return coordinate
        return None

    def get_current_position(self, on_success, on_error, options: LocationOptions):
        cached = self._cached(options.max_cached_age_ms)
        if cached is not None:
            logger.debug("Reusing cached IP fix %s", cached)
            on_success(cached)
            return None

        pending = _PendingLookup()
        timeout = min(_REQUEST_TIMEOUT, options.timeout_ms / 1000)

        def _run() -> None:
            try:
                coordinate = lookup(self._url, timeout=timeout)
            except IpGeolocationError as exc:
                if not pending.cleared:
                    on_error(POSITION_UNAVAILABLE, str(exc))
                return
            except requests.RequestException as exc:
                if not pending.cleared:
                    on_error(ERROR, str(exc))
                return
            with self._lock:
                self._last_fix = (coordinate, time.monotonic())
            if not pending.cleared:
                on_success(coordinate)

        pending.future = self._executor.submit(_run)
        return pending
