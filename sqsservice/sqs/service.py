"""SQS service with lifecycle management and instrumented operations.

NO try-catch blocks around boto3 - exceptions bubble up unchanged. The only
handlers put the previous state back or count a failure, then re-raise.
"""

import logging
import threading
import time
from contextlib import contextmanager
from enum import Enum
from urllib.parse import urlparse

import boto3
from prometheus_client import CollectorRegistry

from sqsservice.core import config as config_module
from sqsservice.core.config import DEFAULT_REGION, SQSServiceConfiguration
from sqsservice.core.errors import InvalidConfigurationError, QueueNotFoundError, ServiceNotRunningError
from sqsservice.core.metrics import MetricFamily, MetricsCollector, normalize_prefix

logger = logging.getLogger(__name__)


class ServiceState(str, Enum):
    """Lifecycle states of an SQSService."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


def body_size(body: str | bytes | None) -> int:
    """Byte length of a message body, 0 when absent."""
    if body is None:
        return 0
    if isinstance(body, str):
        return len(body.encode("utf-8"))
    return len(body)


def queue_name(queue_url: str) -> str:
    """Final path segment of a queue URL."""
    return urlparse(queue_url).path.rstrip("/").rsplit("/", 1)[-1]


class SQSService:
    """Manages the connection to one SQS queue and instruments every operation."""

    def __init__(
        self,
        configuration: SQSServiceConfiguration | None = None,
        registry: CollectorRegistry | None = None,
        name: str = "SQS Service",
    ):
        self.name = name
        self.registry = registry
        self._lock = threading.Lock()
        self._state = ServiceState.STOPPED
        self._client = None
        self._configuration = configuration or SQSServiceConfiguration()
        self._collector = MetricsCollector(self._configuration.metric_prefix)
        self._reregister(None, self._collector)

    # Lifecycle

    @property
    def state(self) -> ServiceState:
        with self._lock:
            return self._state

    @property
    def configuration(self) -> SQSServiceConfiguration:
        with self._lock:
            return self._configuration

    @property
    def collector(self) -> MetricsCollector:
        with self._lock:
            return self._collector

    def is_running(self) -> bool:
        return self.state is ServiceState.RUNNING

    def load_configuration(self, env_file: str | None = ".env") -> SQSServiceConfiguration:
        """
        Load a configuration from SQS_* environment variables.

        The result is returned, not applied; pass it to apply_configuration.
        """
        return config_module.load_configuration(env_file)

    def apply_configuration(self, configuration: SQSServiceConfiguration) -> None:
        """
        Replace the stored configuration. Takes effect on the next start.

        While stopped, a new metric_prefix also renames the idle collector
        right away, so attempts against the stopped service are exported
        under the new names.

        Raises:
            InvalidConfigurationError: If configuration is not an SQSServiceConfiguration
            ValidationError: If a field holds an invalid value (e.g. a bad metric_prefix)
            ValueError: If the registry already exposes the new prefixed series
        """
        if not isinstance(configuration, SQSServiceConfiguration):
            raise InvalidConfigurationError(configuration)
        # model_copy(update=...) skips validation, so check the record again
        configuration = SQSServiceConfiguration.model_validate(configuration.model_dump())
        with self._lock:
            stopped = self._state is ServiceState.STOPPED
            previous = self._collector

        collector = None
        if stopped and normalize_prefix(configuration.metric_prefix) != previous.prefix:
            collector = MetricsCollector(configuration.metric_prefix)
            self._reregister(previous, collector)

        with self._lock:
            self._configuration = configuration
            if collector is not None:
                self._collector = collector

    def start(self) -> None:
        """
        Connect to SQS and verify the configured queue exists.

        No-op when the service is already running.

        Raises:
            QueueNotFoundError: If the queue is not listed by SQS
            ClientError: If listing queues fails
            BotoCoreError: If the client cannot be built or reach the endpoint
        """
        with self._lock:
            if self._state is not ServiceState.STOPPED:
                return
            self._state = ServiceState.STARTING
            configuration = self._configuration
            previous = self._collector

        try:
            client = self._create_client(configuration)
            self._verify_queue(client, configuration.queue_url)
            collector = MetricsCollector(configuration.metric_prefix)
            self._reregister(previous, collector)
        except Exception:
            with self._lock:
                self._state = ServiceState.STOPPED
            raise

        with self._lock:
            self._client = client
            self._state = ServiceState.RUNNING
            self._collector = collector
        logger.info(f"{self.name} started on {configuration.queue_url}")

    def stop(self) -> None:
        """Drop the SQS client and the current counters. No-op when stopped."""
        with self._lock:
            if self._state is not ServiceState.RUNNING:
                return
            previous = self._collector

        # Same prefix as the running collector, so the swap cannot clash
        collector = MetricsCollector(previous.prefix)
        self._reregister(previous, collector)
        with self._lock:
            self._client = None
            self._state = ServiceState.STOPPED
            self._collector = collector
        logger.info(f"{self.name} stopped")

    def restart(self) -> None:
        self.stop()
        self.start()

    def _create_client(self, configuration: SQSServiceConfiguration):
        session_kwargs = {"region_name": configuration.region or DEFAULT_REGION}
        if configuration.access_key or configuration.secret:
            session_kwargs["aws_access_key_id"] = configuration.access_key
            session_kwargs["aws_secret_access_key"] = configuration.secret

        session = boto3.Session(**session_kwargs)
        if configuration.endpoint:
            return session.client("sqs", endpoint_url=configuration.endpoint)
        return session.client("sqs")

    def _verify_queue(self, client, queue_url: str) -> None:
        name = queue_name(queue_url)
        kwargs = {"QueueNamePrefix": name} if name else {}
        response = client.list_queues(**kwargs)

        candidates = response.get("QueueUrls", [])
        logger.debug(f"Queues matching '{name}': {candidates}")
        if not name or not any(queue_name(candidate) == name for candidate in candidates):
            raise QueueNotFoundError(queue_url)

    def _reregister(self, previous: MetricsCollector | None, current: MetricsCollector) -> None:
        """
        Swap the collector exposed on the injected registry, if any.

        When the new collector cannot be registered the previous one stays
        registered.

        Raises:
            ValueError: If the registry already exposes one of the new series names
        """
        if self.registry is None:
            return
        if previous is None:
            current.register(self.registry)
            return
        previous.unregister(self.registry)
        try:
            current.register(self.registry)
        except ValueError:
            previous.register(self.registry)
            raise

    def _snapshot(self):
        """State, client, configuration and collector read in one critical section."""
        with self._lock:
            return self._state, self._client, self._configuration, self._collector

    # Operations

    def run_with_client(self, handler):
        """
        Call handler with the boto3 SQS client.

        Calls made by the handler are not instrumented.

        Raises:
            ServiceNotRunningError: If the service is stopped
        """
        state, client, _, _ = self._snapshot()
        if state is not ServiceState.RUNNING:
            raise ServiceNotRunningError()
        return handler(client)

    def _prepare(self, operation: str, request: dict):
        """
        Default QueueUrl, count the call and return the client to use.

        Raises:
            ServiceNotRunningError: If the service is stopped
        """
        state, client, configuration, collector = self._snapshot()
        if request.get("QueueUrl") is None:
            request["QueueUrl"] = configuration.queue_url or ""

        labels = {"queue": request["QueueUrl"], "operation": operation}
        collector.increment(MetricFamily.CALLS, labels)
        if state is not ServiceState.RUNNING:
            raise ServiceNotRunningError()
        return client, collector, labels

    @contextmanager
    def _track(self, collector: MetricsCollector, labels: dict[str, str]):
        """Record duration and success/failure of the remote call in the block."""
        start = time.monotonic()
        try:
            yield
        except Exception:
            collector.observe(MetricFamily.DURATION, labels, time.monotonic() - start)
            collector.increment(MetricFamily.FAILURES, labels)
            raise
        collector.observe(MetricFamily.DURATION, labels, time.monotonic() - start)
        collector.increment(MetricFamily.SUCCESS, labels)

    def send_message(self, **request) -> dict:
        """
        Send a single message.

        Args:
            **request: boto3 send_message arguments; QueueUrl defaults to the configured queue

        Returns:
            boto3 send_message response

        Raises:
            ServiceNotRunningError: If the service is stopped
            ClientError: If SQS rejects the call
        """
        client, collector, labels = self._prepare("send_message", request)
        with self._track(collector, labels):
            response = client.send_message(**request)
        collector.increment(MetricFamily.TRAFFIC_AMOUNT, labels)
        collector.observe(MetricFamily.TRAFFIC_SIZE, labels, body_size(request.get("MessageBody")))
        return response

    def send_message_batch(self, **request) -> dict:
        """
        Send a batch of messages (max 10 entries).

        Traffic is accounted for every entry before the batch is dispatched,
        whatever SQS answers for each entry.

        Returns:
            boto3 send_message_batch response with 'Successful' and 'Failed' entries

        Raises:
            ServiceNotRunningError: If the service is stopped
            ClientError: If SQS rejects the whole batch
        """
        client, collector, labels = self._prepare("send_message_batch", request)
        entries = request.get("Entries", [])
        collector.observe(MetricFamily.TRAFFIC_AMOUNT, labels, len(entries))
        collector.observe(
            MetricFamily.TRAFFIC_SIZE, labels, sum(body_size(entry.get("MessageBody")) for entry in entries)
        )
        with self._track(collector, labels):
            return client.send_message_batch(**request)

    def receive_message(self, **request) -> dict:
        """
        Receive messages.

        Returns:
            boto3 receive_message response; 'Messages' is absent when the queue is empty

        Raises:
            ServiceNotRunningError: If the service is stopped
            ClientError: If SQS rejects the call
        """
        client, collector, labels = self._prepare("receive_message", request)
        with self._track(collector, labels):
            response = client.receive_message(**request)
        messages = response.get("Messages", [])
        collector.observe(MetricFamily.TRAFFIC_AMOUNT, labels, len(messages))
        collector.observe(MetricFamily.TRAFFIC_SIZE, labels, sum(body_size(msg.get("Body")) for msg in messages))
        return response

    def delete_message(self, **request) -> dict:
        client, collector, labels = self._prepare("delete_message", request)
        with self._track(collector, labels):
            response = client.delete_message(**request)
        collector.increment(MetricFamily.TRAFFIC_AMOUNT, labels)
        return response

    def delete_message_batch(self, **request) -> dict:
        """Delete a batch of messages; traffic is accounted before dispatch."""
        client, collector, labels = self._prepare("delete_message_batch", request)
        collector.observe(MetricFamily.TRAFFIC_AMOUNT, labels, len(request.get("Entries", [])))
        with self._track(collector, labels):
            return client.delete_message_batch(**request)

    def purge_queue(self, **request) -> dict:
        """Purge the queue. Only the call is counted."""
        client, _, _ = self._prepare("purge_queue", request)
        return client.purge_queue(**request)
