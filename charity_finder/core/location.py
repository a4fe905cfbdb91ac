"""Best-effort resolution of the user's current position.

The provider wraps a platform geolocation capability that reports back through
success/error callbacks (possibly from another thread) and races it against a
timer. Every failure mode is folded into an ``Unavailable`` value so callers can
fall back to a default origin instead of handling exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

from charity_finder.core.config import Settings
from charity_finder.models import Coordinate

logger = logging.getLogger(__name__)

UNSUPPORTED = "unsupported"
PERMISSION_DENIED = "permission_denied"
POSITION_UNAVAILABLE = "position_unavailable"
TIMEOUT = "timeout"
ERROR = "error"


@dataclass(frozen=True)
class LocationOptions:
    timeout_ms: int = 30000
    max_cached_age_ms: int = 300000
    high_accuracy: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocationOptions":
        return cls(
            timeout_ms=settings.location_timeout_ms,
            max_cached_age_ms=settings.location_max_cached_age_ms,
            high_accuracy=settings.location_high_accuracy,
        )


@dataclass(frozen=True)
class Unavailable:
    """No position could be obtained; ``reason`` is one of the module constants."""

    reason: str
    message: str = ""

    def __bool__(self) -> bool:
        return False


LocationResult = Union[Coordinate, Unavailable]
SuccessCallback = Callable[[Coordinate], None]
ErrorCallback = Callable[[str, str], None]


class PositionHandle(Protocol):
    def clear(self) -> None: ...


class GeolocationPlatform(Protocol):
    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: LocationOptions,
    ) -> Optional[PositionHandle]: ...


class StaticPlatform:
    """Platform that always reports the same fix. Useful for kiosks and tests."""

    def __init__(self, coordinate: Coordinate) -> None:
        self._coordinate = coordinate

    def get_current_position(self, on_success, on_error, options):
        on_success(self._coordinate)
        return None


class LocationProvider:
    def __init__(self, platform: Optional[GeolocationPlatform], options: Optional[LocationOptions] = None) -> None:
        self._platform = platform
        self.options = options or LocationOptions()

    async def resolve_current_location(self) -> LocationResult:
        """Make a single attempt to get a fix within ``options.timeout_ms``."""
        if self._platform is None:
            logger.warning("No geolocation capability available.")
            return Unavailable(UNSUPPORTED, "geolocation is not supported on this platform")

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _settle(value: LocationResult) -> None:
            if not future.done():
                future.set_result(value)

        def _deliver(value: LocationResult) -> None:
            try:
                loop.call_soon_threadsafe(_settle, value)
            except RuntimeError:
                logger.debug("Location callback arrived after the event loop closed: %s", value)

        def on_success(coordinate: Coordinate) -> None:
            _deliver(coordinate)

        def on_error(reason: str, message: str = "") -> None:
            _deliver(Unavailable(reason, message))

        handle: Optional[PositionHandle] = None
        try:
            handle = self._platform.get_current_position(on_success, on_error, self.options)
            result = await asyncio.wait_for(future, timeout=self.options.timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.warning("Location fix timed out after %sms.", self.options.timeout_ms)
            return Unavailable(TIMEOUT, f"no fix within {self.options.timeout_ms}ms")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Geolocation platform failed: %s", exc)
            return Unavailable(ERROR, str(exc))
        finally:
            if handle is not None:
                handle.clear()

        if isinstance(result, Unavailable):
            logger.warning("Location unavailable: reason=%s message=%s", result.reason, result.message)
            return result
        if not isinstance(result, Coordinate) or not result.is_valid():
            logger.warning("Platform reported an unusable fix: %r", result)
            return Unavailable(POSITION_UNAVAILABLE, f"invalid fix: {result!r}")

        logger.info("Resolved current location lat=%.4f lng=%.4f", result.lat, result.lng)
        return Coordinate(lat=result.lat, lng=result.lng)
