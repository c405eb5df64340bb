"""Configuration, errors and metrics for sqsservice."""

from sqsservice.core.config import SQSServiceConfiguration, load_configuration
from sqsservice.core.metrics import MetricFamily, MetricsCollector

__all__ = ["SQSServiceConfiguration", "load_configuration", "MetricsCollector", "MetricFamily"]
