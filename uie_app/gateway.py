"""Fan-out over environmental data providers into one normalised sample."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .airquality import OpenMeteoAirQualityProvider
from .constants import DEFAULT_CREDENTIALS_PATH, DEFAULT_PROVIDER_TIMEOUT
from .earthengine import EarthEngineVegetationProvider
from .models import SAMPLE_FIELDS, SYNTHETIC_SOURCE, DataQuality, EnvironmentalSample, Location
from .nasa import NasaPowerProvider
from .providers import DataProvider, ProviderUnavailable
from .synthetic import synthetic_value
from .weather import OpenMeteoWeatherProvider

# Physical limits; provider values outside them are clamped.
FIELD_LIMITS = {
    "humidity": (0.0, 100.0),
    "cloud_cover": (0.0, 100.0),
    "air_quality_score": (0.0, 100.0),
    "vegetation_fraction": (0.0, 1.0),
    "precipitation": (0.0, math.inf),
    "wind_speed": (0.0, math.inf),
}


class AllProvidersUnavailable(RuntimeError):
    """No provider contributed a single field; the sample is fully synthetic."""


@dataclass(frozen=True)
class ProviderOutcome:
    name: str
    values: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def _usable(value) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _call_provider(provider: DataProvider, location: Location) -> ProviderOutcome:
    """Run one provider with a single immediate retry."""

    error: Optional[str] = None
    for attempt in (1, 2):
        try:
            raw = provider.fetch(location)
        except ProviderUnavailable as exc:
            error = str(exc)
        except Exception as exc:
            # Parsing bugs and client library errors count as a failed attempt too.
            error = f"{type(exc).__name__}: {exc}"
            logger.warning("Unexpected error from provider {}: {}", provider.name, error)
        else:
            values = {}
            for name, value in (raw or {}).items():
                number = _usable(value)
                if name in SAMPLE_FIELDS and number is not None:
                    values[name] = number
            return ProviderOutcome(provider.name, values=values, attempts=attempt)
        if attempt == 1:
            logger.info("Retrying provider {} after failure: {}", provider.name, error)
    return ProviderOutcome(provider.name, error=error, attempts=2)


class DataSourceGateway:
    """Collect an :class:`EnvironmentalSample` from any number of providers.

    Providers run concurrently, each bounded by its own timeout, and the whole
    fan-out is bounded by ``timeout`` (default: twice the slowest provider
    timeout). Fields are taken from the first provider in ``providers`` order
    that supplied them; anything missing is filled with a location-seeded
    synthetic value. The gateway never raises for provider failures.

    Providers still running at the overall deadline are abandoned, not
    stopped. Their worker threads are non-daemon, so the interpreter joins them
    at exit; a provider that ignores its own timeout can delay shutdown even
    though its answer is discarded.
    """

    def __init__(
        self,
        providers: Optional[Sequence[DataProvider]] = None,
        timeout: Optional[float] = None,
        synthetic_only: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.providers: List[DataProvider] = list(providers if providers is not None else default_providers())
        self._timeout = timeout
        self.synthetic_only = synthetic_only
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def timeout(self) -> float:
        if self._timeout is not None:
            return self._timeout
        slowest = max((provider.timeout for provider in self.providers), default=DEFAULT_PROVIDER_TIMEOUT)
        return 2 * slowest

    def gather(self, location: Location) -> List[ProviderOutcome]:
        if self.synthetic_only or not self.providers:
            return []

        executor = ThreadPoolExecutor(max_workers=len(self.providers), thread_name_prefix="uie-provider")
        try:
            futures = {executor.submit(_call_provider, provider, location): provider for provider in self.providers}
            done, _ = wait(futures, timeout=self.timeout)
        finally:
            # Stragglers are abandoned rather than joined.
            executor.shutdown(wait=False, cancel_futures=True)

        outcomes = []
        for future, provider in futures.items():
            if future not in done:
                outcome = ProviderOutcome(provider.name, error=f"no answer within {self.timeout:g}s")
            elif future.exception() is not None:
                exc = future.exception()
                outcome = ProviderOutcome(provider.name, error=f"{type(exc).__name__}: {exc}", attempts=1)
            else:
                outcome = future.result()
            if not outcome.ok:
                logger.warning("Provider {} unavailable: {}", outcome.name, outcome.error)
            outcomes.append(outcome)
        return outcomes

    def _merge(self, outcomes: Sequence[ProviderOutcome]) -> Tuple[Dict[str, float], Dict[str, str]]:
        values: Dict[str, float] = {}
        sources: Dict[str, str] = {}
        for outcome in outcomes:
            for name, value in outcome.values.items():
                if name in values:
                    continue
                low, high = FIELD_LIMITS.get(name, (-math.inf, math.inf))
                values[name] = max(low, min(high, value))
                sources[name] = outcome.name
        if not values:
            failed = ", ".join(outcome.name for outcome in outcomes) or "none configured"
            raise AllProvidersUnavailable(f"no provider returned data (providers: {failed})")
        return values, sources

    def fetch_environmental_sample(self, location: Location) -> EnvironmentalSample:
        try:
            values, sources = self._merge(self.gather(location))
        except AllProvidersUnavailable as exc:
            if not self.synthetic_only:
                logger.warning(
                    "{} for {:.4f},{:.4f}; using a fully synthetic sample",
                    exc,
                    location.latitude,
                    location.longitude,
                )
            values, sources = {}, {}

        missing = [name for name in SAMPLE_FIELDS if name not in values]
        for name in missing:
            values[name] = synthetic_value(location, name)
            sources[name] = SYNTHETIC_SOURCE

        if len(missing) == len(SAMPLE_FIELDS):
            quality = DataQuality.SYNTHETIC
        elif missing:
            quality = DataQuality.ESTIMATED
            logger.warning("Synthetic values substituted for: {}", ", ".join(missing))
        else:
            quality = DataQuality.MEASURED

        return EnvironmentalSample(
            latitude=location.latitude,
            longitude=location.longitude,
            timestamp=self._clock(),
            quality=quality,
            sources=sources,
            **values,
        )


def default_providers(
    timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH,
) -> List[DataProvider]:
    """Providers in precedence order: live readings first, daily means after."""

    return [
        OpenMeteoWeatherProvider(timeout=timeout),
        OpenMeteoAirQualityProvider(timeout=timeout),
        NasaPowerProvider(timeout=timeout),
        EarthEngineVegetationProvider(timeout=timeout, credentials_path=credentials_path),
    ]


__all__ = [
    "AllProvidersUnavailable",
    "DataSourceGateway",
    "ProviderOutcome",
    "default_providers",
]
