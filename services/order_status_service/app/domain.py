from dataclasses import asdict, dataclass
from enum import Enum

ORDER_ID_PATTERN = r"order-[0-9]{4}"


class OrderStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class Order:
    id: str
    # Not checked against OrderStatus; any string is forwarded as received.
    status: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PublishTarget:
    pubsub_name: str
    topic: str


ORDERS_TARGET = PublishTarget(pubsub_name="order-pub-sub", topic="orders")
