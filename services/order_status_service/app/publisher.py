import json
import logging
from pathlib import Path

from jsonschema import validate as jsonschema_validate

from .config import load_config
from .domain import ORDERS_TARGET, Order, PublishTarget
from .messaging import MessagingConnectionError, PublishError, connect

logger = logging.getLogger(__name__)

_SCHEMA_CACHE = None


def _repo_root() -> Path:
    # publisher.py -> app -> order_status_service -> services -> repo root
    return Path(__file__).resolve().parents[3]


def _load_schema() -> dict:
    global _SCHEMA_CACHE
    if _SCHEMA_CACHE is None:
        schema_path = _repo_root() / "events" / "order-status-changed.schema.json"
        _SCHEMA_CACHE = json.loads(schema_path.read_text(encoding="utf-8"))
    return _SCHEMA_CACHE


def build_order_event(order: Order) -> dict:
    event = order.to_dict()
    jsonschema_validate(instance=event, schema=_load_schema())
    return event


def publish_order_status(order: Order, target: PublishTarget = ORDERS_TARGET) -> bool:
    """Publish ``order`` once to ``target`` on a client opened for this call only.

    Returns False when the client can't be reached or the publish fails; both
    are logged here and never retried.
    """
    event = build_order_event(order)

    try:
        client = connect(load_config())
    except MessagingConnectionError as e:
        logger.error("couldn't initialize messaging client: %s", e)
        return False

    with client:
        try:
            client.publish(target.pubsub_name, target.topic, event)
        except PublishError as e:
            logger.error("couldn't publish event: %s", e)
            return False

    logger.info("sent message to %s topic: %s", target.topic, event)
    return True
