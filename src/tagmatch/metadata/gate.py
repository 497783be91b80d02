# ABOUTME: Per-provider rate gate bounding concurrency and spacing of outbound requests.
# ABOUTME: Slows down for a cooldown window after a throttling signal; never retries by itself.

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from tagmatch.metadata.errors import ConfigError, RateLimited

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GateState(str, Enum):
    NORMAL = "normal"
    COOLING_DOWN = "cooling_down"


@dataclass(frozen=True)
class GateConfig:
    """Concurrency and spacing limits for one provider.

    Structured JSON endpoints take more parallel requests than scraped HTML
    pages, which fail more often under load and get the lower preset.
    """

    max_concurrent: int = 4
    min_delay_ms: int = 100
    rate_limit_delay_ms: int = 2000
    cooldown_secs: float = 10.0

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            msg = f"max_concurrent must be at least 1, got {self.max_concurrent}"
            raise ConfigError(msg)
        if self.min_delay_ms < 0 or self.rate_limit_delay_ms < 0:
            msg = "min_delay_ms and rate_limit_delay_ms must be non-negative"
            raise ConfigError(msg)
        if self.cooldown_secs < 0:
            msg = f"cooldown_secs must be non-negative, got {self.cooldown_secs}"
            raise ConfigError(msg)

    @classmethod
    def for_api(cls) -> "GateConfig":
        return cls(max_concurrent=4, min_delay_ms=100, rate_limit_delay_ms=2000)

    @classmethod
    def for_scrape(cls) -> "GateConfig":
        return cls(max_concurrent=3, min_delay_ms=100, rate_limit_delay_ms=2000)


class RateLimitState:
    """Tracks the last throttling signal seen from a provider.

    The cooldown ends lazily: ``should_slow_down`` compares against the clock
    on every call, there is no timer.
    """

    def __init__(
        self,
        cooldown_secs: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cooldown = cooldown_secs
        self._clock = clock
        self._lock = threading.Lock()
        self._last_rate_limit: float | None = None

    def record_rate_limit(self) -> None:
        with self._lock:
            self._last_rate_limit = self._clock()

    def should_slow_down(self) -> bool:
        with self._lock:
            if self._last_rate_limit is None:
                return False
            return self._clock() - self._last_rate_limit < self._cooldown

    @property
    def state(self) -> GateState:
        return GateState.COOLING_DOWN if self.should_slow_down() else GateState.NORMAL

    def reset(self) -> None:
        with self._lock:
            self._last_rate_limit = None


class RateGate:
    """Bounds in-flight requests to one provider and spaces their start times.

    One gate belongs to one provider client and is shared by every search
    running against that provider, so batch parallelism never multiplies the
    per-provider limit.
    """

    def __init__(
        self,
        config: GateConfig | None = None,
        name: str = "provider",
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or GateConfig()
        self._name = name
        self._clock = clock
        self._sleep = sleep
        self._semaphore = threading.BoundedSemaphore(self._config.max_concurrent)
        self._lock = threading.Lock()
        self._next_start = 0.0
        self._in_flight = 0
        self._peak_in_flight = 0
        self.rate_limit = RateLimitState(self._config.cooldown_secs, clock)

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def state(self) -> GateState:
        return self.rate_limit.state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of simultaneous requests observed since creation."""
        return self._peak_in_flight

    def _reserve_delay(self) -> float:
        """Reserve the next start time and return how long to wait for it."""
        min_delay = self._config.min_delay_ms / 1000
        with self._lock:
            now = self._clock()
            start = max(now, self._next_start)
            if self.rate_limit.should_slow_down():
                start += self._config.rate_limit_delay_ms / 1000
            self._next_start = start + min_delay
            return start - now

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold one concurrency slot for the duration of a request."""
        self._semaphore.acquire()
        try:
            delay = self._reserve_delay()
            if delay > 0:
                logger.debug("%s gate waiting %.2fs before request", self._name, delay)
                self._sleep(delay)
            with self._lock:
                self._in_flight += 1
                self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
            try:
                yield
            finally:
                with self._lock:
                    self._in_flight -= 1
        finally:
            self._semaphore.release()

    def call(self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        """Run ``fn`` inside a slot, recording throttling signals.

        RateLimited is re-raised unchanged after the cooldown is armed.
        """
        with self.slot():
            try:
                return fn(*args, **kwargs)
            except RateLimited as exc:
                self.rate_limit.record_rate_limit()
                logger.warning(
                    "%s rate limited (retry after %gs); slowing down for %gs",
                    self._name,
                    exc.retry_after,
                    self._config.cooldown_secs,
                )
                raise

    def reset(self) -> None:
        """Clear throttle state and spacing (used between test runs)."""
        self.rate_limit.reset()
        with self._lock:
            self._next_start = 0.0
