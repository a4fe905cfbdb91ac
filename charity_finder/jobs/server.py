"""HTTP entrypoint exposing the nearby-charity search (Cloud Run friendly)."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional

from flask import Flask, jsonify, request

from charity_finder.core.catalog import CatalogUnavailableError
from charity_finder.core.config import ConfigError, get_settings
from charity_finder.core.geo import directions_url, map_embed_url
from charity_finder.jobs.find_nearby import run_find_nearby
from charity_finder.models import FoodCategory, InvalidInputError

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

_TRUTHY = {"1", "true", "yes"}

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; only reads settings."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "catalog": settings.catalog,
                "default_radius_miles": settings.default_radius_miles,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/charities/nearby")
def nearby_charities() -> Any:
    """
    List charities near a point, nearest first.
    Optional query params: lat + lng (both or neither), radius (miles),
    category (food category), pickup_only (bool).
    Without lat/lng the server locates itself and falls back to the configured origin.
    """
    args = request.args
    try:
        lat = _optional_float(args.get("lat"), "lat")
        lng = _optional_float(args.get("lng"), "lng")
        radius = _optional_float(args.get("radius"), "radius")
        category = _optional_category(args.get("category"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    if (lat is None) != (lng is None):
        return jsonify({"error": "lat and lng must be provided together"}), 400
    pickup_only = (args.get("pickup_only") or "").lower() in _TRUTHY

    try:
        located = asyncio.run(
            run_find_nearby(lat=lat, lng=lng, radius_miles=radius, category=category, pickup_only=pickup_only)
        )
    except InvalidInputError as exc:
        return jsonify({"error": str(exc)}), 400
    except CatalogUnavailableError as exc:
        logger.error("Nearby search failed: %s", exc)
        return jsonify({"error": "charity catalog unavailable"}), 502
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return jsonify({"error": "server misconfigured"}), 500

    settings = get_settings()
    origin = located.origin
    data = {
        "origin": {"lat": origin.lat, "lng": origin.lng},
        "used_fallback": located.used_fallback,
        "charities": [
            {**charity.to_dict(), "directions_url": directions_url(charity.address)}
            for charity in located.charities
        ],
    }
    if settings.google_api_key:
        data["map_embed_url"] = map_embed_url(origin, settings.google_api_key)
    return jsonify({"data": data}), 200


# ---------- Internals ----------


def _optional_float(raw: Optional[str], name: str) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be numeric") from None


def _optional_category(raw: Optional[str]) -> Optional[FoodCategory]:
    if not raw:
        return None
    try:
        return FoodCategory(raw.strip().lower())
    except ValueError:
        raise ValueError(f"unknown category: {raw}") from None


def main() -> None:
    """Bind on PORT when the platform injects it, WORKER_PORT otherwise."""
    env_port = os.getenv("PORT")
    logger.info("[BOOT] ENV PORT=%s", env_port)

    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
