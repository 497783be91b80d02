# ABOUTME: Unit tests for the TrackProvider and DetailProvider protocols and the provider factory.
# ABOUTME: Validates runtime_checkable behavior and config-driven adapter selection.

import logging

import pytest

from tagmatch.config import ProviderConfig, TaggerConfig
from tagmatch.metadata.beatport import BeatportProvider
from tagmatch.metadata.gate import GateConfig
from tagmatch.metadata.orchestrator import create_provider, create_providers
from tagmatch.metadata.provider import DetailProvider, TrackProvider
from tagmatch.metadata.traxsource import TraxsourceProvider
from tagmatch.metadata.types import ProviderSource
from tests.fakes import FakeDetailProvider, FakeHttpClient, FakeProvider


class NotAProvider:
    """Missing required methods; should not satisfy the protocol."""

    @property
    def name(self) -> ProviderSource:
        return ProviderSource.BEATPORT


class TestTrackProviderProtocol:
    """Tests for the provider protocols."""

    def test_valid_implementation_is_instance(self) -> None:
        """A class with name, last_error, and search satisfies TrackProvider."""
        assert isinstance(FakeProvider(ProviderSource.BEATPORT), TrackProvider)

    def test_invalid_implementation_is_not_instance(self) -> None:
        """A class missing search does not satisfy the protocol."""
        assert not isinstance(NotAProvider(), TrackProvider)

    def test_search_only_provider_is_not_detail_provider(self) -> None:
        """Details are an optional capability."""
        assert not isinstance(FakeProvider(ProviderSource.BEATPORT), DetailProvider)
        assert isinstance(FakeDetailProvider(ProviderSource.BEATPORT), DetailProvider)


class TestCreateProvider:
    """Tests for building adapters from configuration."""

    def test_builds_adapter_with_own_gate(self) -> None:
        """Each adapter gets a gate configured from its provider config."""
        gate_config = GateConfig(max_concurrent=2, min_delay_ms=250)
        provider = create_provider(
            ProviderConfig(ProviderSource.TRAXSOURCE, gate=gate_config),
            FakeHttpClient(),
        )
        assert isinstance(provider, TraxsourceProvider)
        assert provider.gate.config == gate_config

    def test_unsupported_source_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Bandcamp is a valid source without an adapter."""
        with caplog.at_level(logging.WARNING, logger="tagmatch.metadata.orchestrator"):
            assert create_provider(ProviderConfig(ProviderSource.BANDCAMP), FakeHttpClient()) is None
        assert "bandcamp" in caplog.text

    def test_create_providers_follows_priority_and_enabled(self) -> None:
        config = TaggerConfig(
            providers=[
                ProviderConfig(ProviderSource.TRAXSOURCE),
                ProviderConfig(ProviderSource.BANDCAMP),
                ProviderConfig(ProviderSource.BEATPORT),
            ]
        )
        providers = create_providers(config, FakeHttpClient())
        assert [type(p) for p in providers] == [TraxsourceProvider, BeatportProvider]

    def test_disabled_providers_are_not_built(self) -> None:
        config = TaggerConfig(
            providers=[
                ProviderConfig(ProviderSource.BEATPORT, enabled=False),
                ProviderConfig(ProviderSource.TRAXSOURCE),
            ]
        )
        assert [p.name for p in create_providers(config, FakeHttpClient())] == [
            ProviderSource.TRAXSOURCE
        ]

    def test_gates_are_not_shared_between_providers(self) -> None:
        beatport, traxsource = create_providers(TaggerConfig(), FakeHttpClient())
        assert beatport.gate is not traxsource.gate
