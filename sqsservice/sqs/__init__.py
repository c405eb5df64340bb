"""SQS operations for sqsservice."""

from sqsservice.sqs.service import ServiceState, SQSService

__all__ = ["SQSService", "ServiceState"]
