"""Tests for AggregatorSettings."""

import pytest

from app.aggregator.config import AggregatorSettings
from app.aggregator.providers import DEXSCREENER, JUPITER


class TestAggregatorSettings:
    """Unit tests for environment parsing."""

    def test_defaults(self):
        settings = AggregatorSettings.from_env({})

        assert settings.cache_ttl == 30.0
        assert settings.cycle_deadline == 25.0
        assert settings.fetch_timeout == 8.0
        assert settings.fetch_attempts == 3
        assert settings.refresh_interval == 30.0
        assert settings.volatility_threshold == 5.0
        assert settings.broadcast_cap == 10
        assert settings.simulate is False
        assert settings.redis_url is None
        assert settings.provider_urls == {
            "DexScreener": DEXSCREENER.default_url,
            "Jupiter": JUPITER.default_url,
        }

    def test_from_env_matches_dataclass_defaults(self):
        assert AggregatorSettings.from_env({}) == AggregatorSettings()

    def test_overrides(self):
        settings = AggregatorSettings.from_env(
            {
                "AGGREGATOR_CACHE_TTL": "10",
                "AGGREGATOR_FETCH_ATTEMPTS": "5",
                "AGGREGATOR_REFRESH_INTERVAL": "0",
                "AGGREGATOR_VOLATILITY_THRESHOLD": "2.5",
                "REDIS_URL": "redis://cache:6379/1",
                "DEXSCREENER_URL": "http://dex.test/search",
            }
        )

        assert settings.cache_ttl == 10.0
        assert settings.fetch_attempts == 5
        assert settings.refresh_interval == 0.0
        assert settings.volatility_threshold == 2.5
        assert settings.redis_url == "redis://cache:6379/1"
        assert settings.provider_urls["DexScreener"] == "http://dex.test/search"
        assert settings.provider_urls["Jupiter"] == JUPITER.default_url

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_simulate_truthy(self, value):
        assert AggregatorSettings.from_env({"AGGREGATOR_SIMULATE": value}).simulate is True

    @pytest.mark.parametrize("value", ["", "0", "false", "nope"])
    def test_simulate_falsy(self, value):
        assert AggregatorSettings.from_env({"AGGREGATOR_SIMULATE": value}).simulate is False

    def test_blank_values_use_defaults(self):
        settings = AggregatorSettings.from_env({"AGGREGATOR_CACHE_TTL": "  ", "REDIS_URL": " "})
        assert settings.cache_ttl == 30.0
        assert settings.redis_url is None

    def test_invalid_number_names_the_variable(self):
        with pytest.raises(ValueError, match="AGGREGATOR_CACHE_TTL"):
            AggregatorSettings.from_env({"AGGREGATOR_CACHE_TTL": "soon"})

    def test_invalid_integer_names_the_variable(self):
        with pytest.raises(ValueError, match="AGGREGATOR_BROADCAST_CAP"):
            AggregatorSettings.from_env({"AGGREGATOR_BROADCAST_CAP": "2.5"})
