# ABOUTME: Tagger configuration: enabled providers, priority, limits, weights, and thresholds.
# ABOUTME: Every field has a default; an optional TOML file overrides them and is validated up front.

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from tagmatch.metadata.errors import ConfigError
from tagmatch.metadata.gate import GateConfig
from tagmatch.metadata.scoring import ScoringWeights
from tagmatch.metadata.types import ProviderSource

DEFAULT_CONFIG_PATH = Path.home() / ".tagmatch" / "config.toml"


def _default_gate(source: ProviderSource) -> GateConfig:
    # Traxsource is scraped HTML; Beatport search and details are JSON.
    if source == ProviderSource.TRAXSOURCE:
        return GateConfig.for_scrape()
    return GateConfig.for_api()


@dataclass(frozen=True)
class ProviderConfig:
    """Settings for one catalog provider."""

    name: ProviderSource
    enabled: bool = True
    max_results: int = 10
    gate: GateConfig | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "name", ProviderSource(self.name))
        except ValueError as exc:
            raise ConfigError(f"unknown provider {self.name!r}") from exc
        if self.gate is None:
            object.__setattr__(self, "gate", _default_gate(self.name))
        if self.max_results < 1:
            msg = f"max_results for {self.name.value} must be at least 1"
            raise ConfigError(msg)


def _default_providers() -> list[ProviderConfig]:
    return [
        ProviderConfig(ProviderSource.BEATPORT),
        ProviderConfig(ProviderSource.TRAXSOURCE),
    ]


@dataclass(frozen=True)
class TaggerConfig:
    """Top-level configuration for candidate search and selection.

    The order of ``providers`` is the tie-break priority (first = highest).
    """

    providers: list[ProviderConfig] = field(default_factory=_default_providers)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    min_score: float = 0.3
    auto_accept_score: float = 0.85
    max_candidates: int = 4
    request_timeout: float = 10.0
    max_parallel_tracks: int = 4

    def __post_init__(self) -> None:
        for name in ("min_score", "auto_accept_score"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be between 0.0 and 1.0, got {value}"
                raise ConfigError(msg)
        if self.max_candidates < 1:
            msg = f"max_candidates must be at least 1, got {self.max_candidates}"
            raise ConfigError(msg)
        if self.request_timeout <= 0:
            msg = f"request_timeout must be positive, got {self.request_timeout}"
            raise ConfigError(msg)
        if self.max_parallel_tracks < 1:
            msg = f"max_parallel_tracks must be at least 1, got {self.max_parallel_tracks}"
            raise ConfigError(msg)
        names = [p.name for p in self.providers]
        if len(names) != len(set(names)):
            msg = "each provider may be configured only once"
            raise ConfigError(msg)

    @property
    def enabled_providers(self) -> list[ProviderConfig]:
        return [p for p in self.providers if p.enabled]

    @property
    def priority(self) -> list[ProviderSource]:
        return [p.name for p in self.providers]


def _build(cls: type, table: dict[str, Any], where: str) -> Any:
    """Instantiate a config dataclass from a TOML table, rejecting unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(table) - known
    if unknown:
        msg = f"unknown keys in {where}: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)
    try:
        return cls(**table)
    except TypeError as exc:
        raise ConfigError(f"invalid {where}: {exc}") from exc


def config_from_dict(data: dict[str, Any]) -> TaggerConfig:
    """Build a TaggerConfig from the parsed ``[tagger]`` table."""
    table = dict(data)
    kwargs: dict[str, Any] = {}

    weights = table.pop("weights", None)
    if weights is not None:
        kwargs["weights"] = _build(ScoringWeights, weights, "tagger.weights")

    providers = table.pop("providers", None)
    if providers is not None:
        built = []
        for entry in providers:
            entry = dict(entry)
            gate = entry.pop("gate", None)
            if gate is not None:
                entry["gate"] = _build(GateConfig, gate, "tagger.providers.gate")
            built.append(_build(ProviderConfig, entry, "tagger.providers"))
        kwargs["providers"] = built

    kwargs.update(table)
    return _build(TaggerConfig, kwargs, "tagger")


def load_config(path: Path | None = None) -> TaggerConfig:
    """Load configuration from a TOML file.

    With no path, reads ~/.tagmatch/config.toml if it exists and otherwise
    returns defaults. An explicit path that does not exist is an error.

    Raises:
        ConfigError: On unreadable TOML, unknown keys, or invalid values.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            raise ConfigError(f"config file not found: {config_path}")
        return TaggerConfig()

    try:
        with config_path.open("rb") as fh:
            document = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {config_path}: {exc}") from exc

    return config_from_dict(document.get("tagger", {}))
