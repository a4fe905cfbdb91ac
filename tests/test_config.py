import pytest

from charity_finder.core import config

_VARS = (
    "GOOGLE_API_KEY",
    "CHARITY_CATALOG",
    "DEFAULT_RADIUS_MILES",
    "LOCATION_TIMEOUT_MS",
    "LOCATION_MAX_CACHED_AGE_MS",
    "LOCATION_HIGH_ACCURACY",
    "FALLBACK_LAT",
    "FALLBACK_LNG",
    "WORKER_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_get_settings_defaults():
    settings = config.get_settings()

    assert settings.catalog == "static"
    assert settings.default_radius_miles == 25.0
    assert settings.location_timeout_ms == 30000
    assert settings.location_max_cached_age_ms == 300000
    assert settings.location_high_accuracy is True
    assert (settings.fallback_lat, settings.fallback_lng) == (40.7128, -74.0060)
    assert settings.worker_port == 9000


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "abc123")
    monkeypatch.setenv("CHARITY_CATALOG", "Google_Places")
    monkeypatch.setenv("DEFAULT_RADIUS_MILES", "10.5")
    monkeypatch.setenv("LOCATION_TIMEOUT_MS", "500")
    monkeypatch.setenv("LOCATION_HIGH_ACCURACY", "no")
    monkeypatch.setenv("FALLBACK_LAT", "51.5")
    monkeypatch.setenv("FALLBACK_LNG", "-0.12")

    settings = config.get_settings()

    assert settings.google_api_key == "abc123"
    assert settings.catalog == "google_places"
    assert settings.default_radius_miles == 10.5
    assert settings.location_timeout_ms == 500
    assert settings.location_high_accuracy is False
    assert (settings.fallback_lat, settings.fallback_lng) == (51.5, -0.12)


def test_get_settings_is_cached(monkeypatch):
    first = config.get_settings()
    monkeypatch.setenv("DEFAULT_RADIUS_MILES", "3")
    assert config.get_settings() is first


def test_get_settings_warns_when_places_key_missing(monkeypatch, caplog):
    monkeypatch.setenv("CHARITY_CATALOG", "google_places")

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "GOOGLE_API_KEY is not configured" in " ".join(caplog.messages)
    assert settings.google_api_key == ""


@pytest.mark.parametrize(
    "name, value",
    [
        ("DEFAULT_RADIUS_MILES", "far"),
        ("DEFAULT_RADIUS_MILES", "0"),
        ("LOCATION_TIMEOUT_MS", "soon"),
        ("CHARITY_CATALOG", "yellow_pages"),
        ("DEFAULT_RADIUS_MILES", "inf"),
        ("DEFAULT_RADIUS_MILES", "nan"),
        ("FALLBACK_LAT", "91"),
        ("FALLBACK_LNG", "-200"),
    ],
)
def test_get_settings_rejects_bad_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(config.ConfigError):
        config.get_settings()
