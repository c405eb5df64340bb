#!/usr/bin/env python3
"""
Message Traffic Example

Sends, receives and deletes messages in a loop while exposing the service
metrics on http://localhost:<port>/metrics.

Configuration comes from SQS_* environment variables or the project .env file.

Usage:
    python traffic_messages.py
    python traffic_messages.py --port 3000 --interval 2
"""

import argparse
import logging
import random
import sys
import time
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv
from prometheus_client import CollectorRegistry

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqsservice import SQSService, load_configuration  # noqa: E402
from sqsservice.core.metrics import serve_metrics  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("traffic_messages")

PROJECT_ROOT = Path(__file__).parent.parent


def traffic_loop(service: SQSService, interval: float, iterations: int | None = None) -> None:
    """Cycle send -> receive -> delete against the service."""
    receipt_handle = None
    done = 0

    while iterations is None or done < iterations:
        body = str(random.randint(0, 2**31))
        try:
            response = service.send_message(MessageBody=body)
            logger.info(f"Sent message {body} (id {response['MessageId']})")

            received = service.receive_message(WaitTimeSeconds=1)
            messages = received.get("Messages", [])
            logger.info(f"Received {len(messages)} message(s)")
            for i, msg in enumerate(messages):
                logger.info(f"Message #{i}: {msg['Body']} (len {len(msg['Body'])})")
                receipt_handle = msg["ReceiptHandle"]

            if receipt_handle:
                service.delete_message(ReceiptHandle=receipt_handle)
                logger.info("Deleted last received message")
                receipt_handle = None
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"SQS call failed: {e}")

        done += 1
        time.sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="Send/receive/delete messages and expose metrics")
    parser.add_argument("--port", type=int, default=3000, help="Metrics endpoint port")
    parser.add_argument("--interval", type=float, default=2.0, help="Seconds between iterations")
    parser.add_argument("--iterations", type=int, default=None, help="Stop after N iterations")
    args = parser.parse_args()

    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded environment from {env_path}")

    registry = CollectorRegistry()
    service = SQSService(registry=registry)
    service.apply_configuration(load_configuration(env_file=None))
    service.start()

    serve_metrics(registry, args.port)
    logger.info(f"Go to http://localhost:{args.port}/metrics")

    try:
        traffic_loop(service, args.interval, args.iterations)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        service.stop()


if __name__ == "__main__":
    main()
