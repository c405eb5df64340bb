"""Shared pytest fixtures."""

import os

import pytest

# Fake credentials so boto3 never reaches for real ones
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-2")

QUEUE_URL = "https://sqs.us-east-2.amazonaws.com/123456789012/queue-test"


@pytest.fixture
def queue_url():
    return QUEUE_URL


@pytest.fixture
def boto3_session(mocker):
    """Patch boto3.Session as seen by the service."""
    return mocker.patch("sqsservice.sqs.service.boto3.Session")


@pytest.fixture
def sqs_client(mocker, boto3_session):
    """Mock boto3 SQS client returned by every session the service builds."""
    mock_client = mocker.MagicMock()
    mock_client.list_queues.return_value = {"QueueUrls": [QUEUE_URL]}
    boto3_session.return_value.client.return_value = mock_client
    return mock_client


@pytest.fixture(autouse=True)
def reset_env():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
