"""Common plumbing for the environmental data providers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import requests

from .constants import DEFAULT_PROVIDER_TIMEOUT, DEFAULT_USER_AGENT
from .models import Location

T = TypeVar("T")


class ProviderUnavailable(RuntimeError):
    """Raised when a provider cannot return usable data."""


def get_json(
    url: str,
    params: Mapping[str, Any],
    timeout: float,
    source: str,
) -> Any:
    """GET ``url`` and decode JSON, turning every failure into ProviderUnavailable."""

    try:
        response = requests.get(
            url,
            params=dict(params),
            timeout=timeout,
            headers={"User-Agent": DEFAULT_USER_AGENT},
        )
        response.raise_for_status()
        return response.json()
    except requests.Timeout as exc:
        raise ProviderUnavailable(f"{source} timed out after {timeout}s") from exc
    except requests.RequestException as exc:
        raise ProviderUnavailable(f"{source} request failed: {exc}") from exc
    except ValueError as exc:
        raise ProviderUnavailable(f"{source} returned invalid JSON: {exc}") from exc


def call_with_timeout(func: Callable[..., T], timeout: float, source: str, *args: Any, **kwargs: Any) -> T:
    """Run ``func`` on a worker thread and give up after ``timeout`` seconds.

    For client libraries without a reliable per-request timeout. A call that
    overruns is abandoned and reported as :class:`ProviderUnavailable`.
    """

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="uie-bounded")
    try:
        future = executor.submit(func, *args, **kwargs)
    finally:
        executor.shutdown(wait=False)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout:
        future.cancel()
        raise ProviderUnavailable(f"{source} timed out after {timeout}s") from None


class DataProvider:
    """One external source of sample fields.

    Subclasses set ``name`` and implement :meth:`fetch`, which
    returns a mapping of sample field to value (``None`` when not available)
    or raises :class:`ProviderUnavailable`.
    """

    name = "provider"

    def __init__(self, timeout: float = DEFAULT_PROVIDER_TIMEOUT) -> None:
        self.timeout = timeout

    def fetch(self, location: Location) -> Dict[str, Optional[float]]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout})"


__all__ = ["DataProvider", "ProviderUnavailable", "call_with_timeout", "get_json"]
