# tests/test_config.py
"""Tests for engine parameters and their validation."""

from datetime import timedelta

import pytest

from telelink.config import DEFAULT_CONFIG, EngineConfig
from telelink.errors import ConfigurationError


class TestDefaults:
    """Documented defaults."""

    def test_default_values(self):
        assert DEFAULT_CONFIG.max_gap == timedelta(minutes=60)
        assert DEFAULT_CONFIG.min_chain_length == 2
        assert DEFAULT_CONFIG.top_n_home_locations == 3
        assert DEFAULT_CONFIG.frequent_contact_min_interactions == 2

    def test_max_gap_accepts_offset_string(self):
        assert EngineConfig(max_gap="90min").max_gap == timedelta(minutes=90)
        assert EngineConfig(max_gap="2h").max_gap == timedelta(hours=2)

    def test_max_gap_accepts_timedelta(self):
        assert EngineConfig(max_gap=timedelta(seconds=30)).max_gap == timedelta(seconds=30)


class TestValidation:
    """Bad parameters are rejected before any processing."""

    @pytest.mark.parametrize("gap", [timedelta(0), timedelta(minutes=-5), "-1min"])
    def test_non_positive_max_gap_rejected(self, gap):
        with pytest.raises(ConfigurationError):
            EngineConfig(max_gap=gap)

    def test_unparsable_max_gap_rejected(self):
        with pytest.raises(ConfigurationError):
            EngineConfig(max_gap="soon")

    @pytest.mark.parametrize("length", [0, -1])
    def test_non_positive_min_chain_length_rejected(self, length):
        with pytest.raises(ConfigurationError):
            EngineConfig(min_chain_length=length)

    def test_non_integer_counts_rejected(self):
        with pytest.raises(ConfigurationError):
            EngineConfig(top_n_home_locations=2.5)
        with pytest.raises(ConfigurationError):
            EngineConfig(frequent_contact_min_interactions=True)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            EngineConfig(min_chain_length=0)


class TestFromEnv:
    """Environment overrides."""

    def test_reads_prefixed_variables(self):
        cfg = EngineConfig.from_env({
            "TELELINK_MAX_GAP": "30min",
            "TELELINK_MIN_CHAIN_LENGTH": "3",
            "TELELINK_TOP_N_HOME_LOCATIONS": "5",
            "TELELINK_FREQUENT_CONTACT_MIN": "4",
        })
        assert cfg.max_gap == timedelta(minutes=30)
        assert cfg.min_chain_length == 3
        assert cfg.top_n_home_locations == 5
        assert cfg.frequent_contact_min_interactions == 4

    def test_missing_variables_fall_back_to_defaults(self):
        assert EngineConfig.from_env({}) == DEFAULT_CONFIG

    def test_bad_integer_rejected(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_env({"TELELINK_MIN_CHAIN_LENGTH": "two"})
