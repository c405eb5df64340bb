"""Prometheus metrics for SQS operations.

A MetricsCollector holds one counter per MetricFamily, all labelled by
(queue, operation). It is a custom collector: the counters are not registered
anywhere on their own, the collector is registered with a CollectorRegistry
and the registry pulls from it on every scrape.
"""

import logging
from enum import Enum

from prometheus_client import CollectorRegistry, Counter, start_http_server

logger = logging.getLogger(__name__)

LABEL_NAMES = ("queue", "operation")

PREFIX_SEPARATOR = "_"


class MetricFamily(str, Enum):
    """Counter families tracked per (queue, operation)."""

    CALLS = "message_calls"
    DURATION = "message_duration"
    SUCCESS = "message_success"
    FAILURES = "message_failures"
    TRAFFIC_AMOUNT = "message_traffic_amount"
    TRAFFIC_SIZE = "message_traffic_size"


DOCUMENTATION = {
    MetricFamily.CALLS: "Number of calls to the operation",
    MetricFamily.DURATION: "Seconds spent waiting on SQS for the operation",
    MetricFamily.SUCCESS: "Number of calls that SQS answered successfully",
    MetricFamily.FAILURES: "Number of calls that SQS answered with an error",
    MetricFamily.TRAFFIC_AMOUNT: "Number of messages moved by the operation",
    MetricFamily.TRAFFIC_SIZE: "Bytes of message body moved by the operation",
}


def normalize_prefix(prefix: str) -> str:
    """Return the prefix ending with exactly one separator, or "" when empty."""
    if not prefix:
        return ""
    return prefix.rstrip(PREFIX_SEPARATOR) + PREFIX_SEPARATOR


class MetricsCollector:
    """In-memory counters for one service lifetime."""

    def __init__(self, prefix: str = ""):
        self.prefix = normalize_prefix(prefix)
        self._counters = {
            family: Counter(
                f"{self.prefix}{family.value}",
                DOCUMENTATION[family],
                LABEL_NAMES,
                registry=None,
            )
            for family in MetricFamily
        }

    def name(self, family: MetricFamily) -> str:
        """Exported series name for a family (without the _total suffix)."""
        return f"{self.prefix}{family.value}"

    def increment(self, family: MetricFamily, labels: dict[str, str]) -> None:
        self._counters[family].labels(**labels).inc()

    def observe(self, family: MetricFamily, labels: dict[str, str], amount: float) -> None:
        """
        Add an amount to a family.

        Raises:
            ValueError: If amount is negative (counters only go up)
        """
        self._counters[family].labels(**labels).inc(amount)

    def value(self, family: MetricFamily, labels: dict[str, str]) -> float:
        """Current value of a family for a label pair, 0.0 if never touched."""
        total_name = f"{self.name(family)}_total"
        for metric in self._counters[family].collect():
            for sample in metric.samples:
                if sample.name == total_name and sample.labels == labels:
                    return sample.value
        return 0.0

    def describe(self):
        for counter in self._counters.values():
            yield from counter.describe()

    def collect(self):
        for counter in self._counters.values():
            yield from counter.collect()

    def register(self, registry: CollectorRegistry) -> None:
        """
        Register the collector with a registry.

        Raises:
            ValueError: If the registry already exposes one of the series names
        """
        registry.register(self)

    def unregister(self, registry: CollectorRegistry) -> None:
        registry.unregister(self)


def serve_metrics(registry: CollectorRegistry, port: int, addr: str = "0.0.0.0"):
    """
    Expose a registry on an HTTP endpoint for Prometheus scraping.

    Args:
        registry: Registry holding the collectors to expose
        port: Port to bind
        addr: Address to bind

    Returns:
        Tuple of (server, thread) as returned by prometheus_client
    """
    logger.info(f"Serving metrics on http://{addr}:{port}/metrics")
    return start_http_server(port, addr=addr, registry=registry)
