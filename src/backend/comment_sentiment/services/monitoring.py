from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Mapping

from pydantic import ValidationError
from statsd import StatsClient

from comment_sentiment.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_STATSD_CLIENT: StatsClient | None = None
_STATSD_RESOLVED = False


def configure(settings: Settings) -> StatsClient | None:
    """Point metric emission at the StatsD endpoint named by ``settings``."""
    global _STATSD_CLIENT, _STATSD_RESOLVED
    _STATSD_RESOLVED = True
    _STATSD_CLIENT = None

    if not settings.statsd_host:
        return None
    try:
        _STATSD_CLIENT = StatsClient(host=settings.statsd_host, port=settings.statsd_port, prefix=settings.statsd_prefix)
    except OSError as exc:
        logger.warning("Unable to initialize StatsD client (%s:%s): %s", settings.statsd_host, settings.statsd_port, exc)
    return _STATSD_CLIENT


def _statsd_client() -> StatsClient | None:
    global _STATSD_RESOLVED
    if _STATSD_RESOLVED:
        return _STATSD_CLIENT

    try:
        settings = get_settings()
    except ValidationError as exc:
        _STATSD_RESOLVED = True
        logger.warning("Metrics disabled; settings failed validation: %s", exc.errors(include_url=False))
        return None
    return configure(settings)


def reset_client() -> None:
    """Forget the resolved StatsD client so the next metric re-reads settings."""
    global _STATSD_CLIENT, _STATSD_RESOLVED
    _STATSD_CLIENT = None
    _STATSD_RESOLVED = False


def _format_tags(tags: Mapping[str, str] | None) -> str:
    if not tags:
        return ""
    return " " + " ".join(f"{key}={value}" for key, value in sorted(tags.items()))


def emit_counter(name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
    client = _statsd_client()
    if client:
        try:
            client.incr(name, value)
        except OSError as exc:
            logger.debug("StatsD counter emit failed for %s: %s", name, exc)
    logger.debug("metric counter %s=%s%s", name, value, _format_tags(tags))


def observe_histogram(name: str, value: float, *, tags: Mapping[str, str] | None = None) -> None:
    client = _statsd_client()
    if client:
        try:
            client.timing(name, value)
        except OSError as exc:
            logger.debug("StatsD histogram emit failed for %s: %s", name, exc)
    logger.debug("metric histogram %s=%.4f%s", name, value, _format_tags(tags))


@contextmanager
def track_latency(name: str, *, tags: Mapping[str, str] | None = None) -> Iterator[None]:
    """Record the wall time of the block in milliseconds, whether or not it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        observe_histogram(name, (time.perf_counter() - start) * 1000.0, tags=tags)
