"""Errors raised locally by SQSService.

Errors coming from boto3 (ClientError, EndpointConnectionError, ...) are never
wrapped by these classes; they reach the caller as raised by botocore.
"""


class SQSServiceError(Exception):
    """Base class for errors raised by the service itself."""


class ServiceNotRunningError(SQSServiceError):
    """An operation was attempted while the service is stopped."""

    def __init__(self, message: str = "service not running"):
        super().__init__(message)


class InvalidConfigurationError(SQSServiceError):
    """apply_configuration received something that is not an SQSServiceConfiguration."""

    def __init__(self, configuration: object):
        self.configuration = configuration
        super().__init__(f"wrong configuration informed: {type(configuration).__name__}")


class QueueNotFoundError(SQSServiceError):
    """The configured queue is not among the queues listed at start."""

    def __init__(self, queue_url: str):
        self.queue_url = queue_url
        super().__init__(f"queue {queue_url} not found")
