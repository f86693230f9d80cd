"""
Tests for settings validation.
"""

import pytest

from query_sync.config import Settings, get_settings


def test_defaults_are_valid():
    settings = Settings()

    assert settings.query_gc_time >= 0
    assert settings.snapshot_ttl > 0


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"query_stale_time": -1},
        {"query_gc_time": -5},
        {"query_retry": -1},
        {"query_retry_delay_base": 10.0, "query_retry_delay_max": 5.0},
        {"snapshot_ttl": 0},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)
