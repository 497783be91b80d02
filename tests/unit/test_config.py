# ABOUTME: Unit tests for tagger configuration defaults, validation, and TOML loading.
# ABOUTME: Validates fail-fast ConfigError on bad weights, thresholds, and unknown keys.

from pathlib import Path

import pytest

from tagmatch.config import (
    ProviderConfig,
    TaggerConfig,
    config_from_dict,
    load_config,
)
from tagmatch.metadata.errors import ConfigError
from tagmatch.metadata.gate import GateConfig
from tagmatch.metadata.types import ProviderSource


class TestTaggerConfigDefaults:
    """Tests for zero-configuration defaults."""

    def test_defaults(self) -> None:
        """Defaults are usable without any config file."""
        config = TaggerConfig()
        assert config.min_score == 0.3
        assert config.auto_accept_score == 0.85
        assert config.max_candidates == 4
        assert config.request_timeout == 10.0
        assert config.max_parallel_tracks == 4
        assert config.priority == [ProviderSource.BEATPORT, ProviderSource.TRAXSOURCE]

    def test_default_gates(self) -> None:
        """Beatport gets the API preset, scraped Traxsource the lower one."""
        beatport, traxsource = TaggerConfig().providers
        assert beatport.gate == GateConfig.for_api()
        assert traxsource.gate == GateConfig.for_scrape()

    def test_listed_provider_without_gate_gets_its_preset(self) -> None:
        config = config_from_dict({"providers": [{"name": "traxsource"}, {"name": "beatport"}]})
        assert config.providers[0].gate.max_concurrent == 3
        assert config.providers[1].gate.max_concurrent == 4

    def test_enabled_providers(self) -> None:
        """Disabled providers are filtered out but keep their priority slot."""
        config = TaggerConfig(
            providers=[
                ProviderConfig(ProviderSource.BEATPORT, enabled=False),
                ProviderConfig(ProviderSource.TRAXSOURCE),
            ]
        )
        assert [p.name for p in config.enabled_providers] == [ProviderSource.TRAXSOURCE]
        assert config.priority == [ProviderSource.BEATPORT, ProviderSource.TRAXSOURCE]


class TestTaggerConfigValidation:
    """Tests for construction-time validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_score": -0.1},
            {"min_score": 1.5},
            {"auto_accept_score": 2.0},
            {"max_candidates": 0},
            {"request_timeout": 0},
            {"max_parallel_tracks": 0},
        ],
    )
    def test_invalid_values_raise(self, kwargs: dict) -> None:
        """Out-of-range values raise ConfigError."""
        with pytest.raises(ConfigError):
            TaggerConfig(**kwargs)

    def test_duplicate_providers_raise(self) -> None:
        """A provider may be listed only once."""
        with pytest.raises(ConfigError, match="only once"):
            TaggerConfig(
                providers=[
                    ProviderConfig(ProviderSource.BEATPORT),
                    ProviderConfig(ProviderSource.BEATPORT),
                ]
            )

    def test_unknown_provider_name_raises(self) -> None:
        """Provider names must be known sources."""
        with pytest.raises(ConfigError, match="unknown provider"):
            ProviderConfig("spotify")  # type: ignore[arg-type]

    def test_provider_name_string_is_coerced(self) -> None:
        """Provider names given as strings become ProviderSource values."""
        assert ProviderConfig("traxsource").name is ProviderSource.TRAXSOURCE  # type: ignore[arg-type]

    def test_config_error_is_value_error(self) -> None:
        """ConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            TaggerConfig(max_candidates=0)


class TestConfigFromDict:
    """Tests for building config from a parsed [tagger] table."""

    def test_empty_table_gives_defaults(self) -> None:
        assert config_from_dict({}) == TaggerConfig()

    def test_full_table(self) -> None:
        """Nested weights, providers, and gates are built."""
        config = config_from_dict(
            {
                "min_score": 0.4,
                "max_candidates": 6,
                "weights": {"title": 0.6, "artist": 0.3, "duration": 0.1},
                "providers": [
                    {"name": "traxsource", "max_results": 5, "gate": {"max_concurrent": 2}},
                    {"name": "beatport", "enabled": False},
                ],
            }
        )
        assert config.min_score == 0.4
        assert config.max_candidates == 6
        assert config.weights.title == 0.6
        assert config.priority == [ProviderSource.TRAXSOURCE, ProviderSource.BEATPORT]
        assert config.providers[0].max_results == 5
        assert config.providers[0].gate == GateConfig(max_concurrent=2)
        assert not config.providers[1].enabled

    def test_bad_weights_raise(self) -> None:
        """Weights not summing to 1.0 fail at load time."""
        with pytest.raises(ConfigError, match="sum to 1.0"):
            config_from_dict({"weights": {"title": 0.5, "artist": 0.2, "duration": 0.2}})

    @pytest.mark.parametrize(
        "table",
        [
            {"colour": "blue"},
            {"weights": {"title": 1.0, "tempo": 0.0}},
            {"providers": [{"name": "beatport", "region": "eu"}]},
            {"providers": [{"name": "beatport", "gate": {"burst": 3}}]},
        ],
    )
    def test_unknown_keys_raise(self, table: dict) -> None:
        """Unknown keys at any level are rejected."""
        with pytest.raises(ConfigError, match="unknown keys"):
            config_from_dict(table)

    def test_missing_provider_name_raises(self) -> None:
        """A provider entry needs a name."""
        with pytest.raises(ConfigError):
            config_from_dict({"providers": [{"enabled": True}]})


class TestLoadConfig:
    """Tests for reading TOML files."""

    def test_reads_toml(self, tmp_path: Path) -> None:
        """A [tagger] table overrides defaults."""
        path = tmp_path / "config.toml"
        path.write_text(
            "[tagger]\n"
            "auto_accept_score = 0.9\n"
            "\n"
            "[tagger.weights]\n"
            "title = 0.4\n"
            "artist = 0.4\n"
            "duration = 0.2\n"
            "\n"
            "[[tagger.providers]]\n"
            'name = "beatport"\n'
            "\n"
            "[tagger.providers.gate]\n"
            "max_concurrent = 1\n"
            "min_delay_ms = 500\n"
        )
        config = load_config(path)
        assert config.auto_accept_score == 0.9
        assert config.weights.artist == 0.4
        assert config.priority == [ProviderSource.BEATPORT]
        assert config.providers[0].gate.min_delay_ms == 500

    def test_file_without_tagger_table_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[other]\nkey = 1\n")
        assert load_config(path) == TaggerConfig()

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[tagger\nmin_score = ")
        with pytest.raises(ConfigError, match="invalid TOML"):
            load_config(path)

    def test_explicit_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.toml")

    def test_missing_default_file_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without a path and without the default file, defaults are used."""
        monkeypatch.setattr("tagmatch.config.DEFAULT_CONFIG_PATH", tmp_path / "nope.toml")
        assert load_config() == TaggerConfig()
