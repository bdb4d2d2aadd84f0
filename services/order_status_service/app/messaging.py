"""Messaging clients used to hand order events to a pub/sub bus.

Every client exposes the same small contract: ``publish(pubsub_name, topic,
payload)`` and ``close()``. ``connect`` picks the transport named by the
configuration and returns a connected client, or raises
``MessagingConnectionError``.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import boto3
import pika
from dapr.clients import DaprClient
from dapr.conf import settings as dapr_settings

from .config import Config, dapr_http_endpoint_for

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    pass


class MessagingConnectionError(MessagingError):
    pass


class PublishError(MessagingError):
    pass


class MessagingClient(ABC):
    @abstractmethod
    def publish(self, pubsub_name: str, topic: str, payload: dict) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.close()
        except Exception as e:
            logger.warning("couldn't close messaging client: %r", e)
        return False


class DaprMessagingClient(MessagingClient):
    """Publishes through a Dapr sidecar over gRPC.

    ``DaprClient`` blocks until the sidecar's HTTP health check passes, and
    reads that endpoint from the SDK's process-wide settings rather than from
    ``address``. Point it at the same sidecar and bound the wait first.
    """

    def __init__(self, address: str, http_endpoint: str, health_timeout: float):
        dapr_settings.DAPR_HTTP_ENDPOINT = http_endpoint
        dapr_settings.DAPR_HEALTH_TIMEOUT = health_timeout
        try:
            self._client = DaprClient(address=address)
        except Exception as e:
            raise MessagingConnectionError(f"Unable to connect to Dapr at {address}: {e!r}") from e

    def publish(self, pubsub_name: str, topic: str, payload: dict) -> None:
        try:
            self._client.publish_event(
                pubsub_name=pubsub_name,
                topic_name=topic,
                data=json.dumps(payload),
                data_content_type="application/json",
            )
        except Exception as e:
            raise PublishError(f"Dapr publish to {pubsub_name}/{topic} failed: {e!r}") from e

    def close(self) -> None:
        self._client.close()


class RabbitMqMessagingClient(MessagingClient):
    """The pub/sub component is a topic exchange; the topic is the routing key."""

    def __init__(self, url: str):
        try:
            self._conn = pika.BlockingConnection(pika.URLParameters(url))
        except Exception as e:
            raise MessagingConnectionError(f"Unable to connect to RabbitMQ at {url}: {e!r}") from e

    def publish(self, pubsub_name: str, topic: str, payload: dict) -> None:
        try:
            ch = self._conn.channel()
            ch.exchange_declare(exchange=pubsub_name, exchange_type="topic", durable=True)
            ch.basic_publish(
                exchange=pubsub_name,
                routing_key=topic,
                body=json.dumps(payload).encode("utf-8"),
                properties=pika.BasicProperties(content_type="application/json"),
            )
        except Exception as e:
            raise PublishError(f"RabbitMQ publish to {pubsub_name}/{topic} failed: {e!r}") from e

    def close(self) -> None:
        if self._conn.is_open:
            self._conn.close()


class SnsMessagingClient(MessagingClient):
    """SNS has a single topic ARN; component and topic travel as attributes."""

    def __init__(self, topic_arn: Optional[str], region: Optional[str] = None):
        if not topic_arn:
            raise MessagingConnectionError("ORDER_EVENTS_TOPIC_ARN is required for the sns backend")
        self._topic_arn = topic_arn
        try:
            self._client = boto3.client("sns", region_name=region)
        except Exception as e:
            raise MessagingConnectionError(f"Unable to create SNS client: {e!r}") from e

    def publish(self, pubsub_name: str, topic: str, payload: dict) -> None:
        try:
            self._client.publish(
                TopicArn=self._topic_arn,
                Message=json.dumps(payload),
                MessageAttributes={
                    "pubsub": {"DataType": "String", "StringValue": pubsub_name},
                    "topic": {"DataType": "String", "StringValue": topic},
                },
            )
        except Exception as e:
            raise PublishError(f"SNS publish to {self._topic_arn} failed: {e!r}") from e

    def close(self) -> None:
        self._client.close()


def connect(config: Config) -> MessagingClient:
    if config.message_backend == "rabbitmq":
        return RabbitMqMessagingClient(config.rabbitmq_url)
    if config.message_backend == "sns":
        return SnsMessagingClient(config.sns_topic_arn, config.aws_region)
    return DaprMessagingClient(
        config.dapr_url,
        config.dapr_http_endpoint or dapr_http_endpoint_for(config.dapr_url),
        config.dapr_health_timeout,
    )
