"""sqsservice - Instrumented SQS service with lifecycle management and Prometheus metrics."""

__version__ = "1.0.0"

from sqsservice.core.config import SQSServiceConfiguration, load_configuration
from sqsservice.core.errors import (
    InvalidConfigurationError,
    QueueNotFoundError,
    ServiceNotRunningError,
    SQSServiceError,
)
from sqsservice.core.metrics import MetricFamily, MetricsCollector
from sqsservice.sqs.service import ServiceState, SQSService

__all__ = [
    "SQSService",
    "ServiceState",
    "SQSServiceConfiguration",
    "load_configuration",
    "MetricsCollector",
    "MetricFamily",
    "SQSServiceError",
    "ServiceNotRunningError",
    "InvalidConfigurationError",
    "QueueNotFoundError",
    "__version__",
]
