import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, StrictStr
from starlette.concurrency import run_in_threadpool
from starlette.convertors import Convertor, register_url_convertor

from .config import load_config
from .domain import ORDER_ID_PATTERN, Order
from .publisher import publish_order_status

logger = logging.getLogger(__name__)


class OrderIdConvertor(Convertor):
    regex = ORDER_ID_PATTERN

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("order_id", OrderIdConvertor())


class StatusUpdateRequest(BaseModel):
    status: StrictStr = ""


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    logging.basicConfig(level=config.log_level)
    logger.info("Starting server: %s", config)
    yield


app = FastAPI(title="order-status-service", lifespan=lifespan)


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "ok\n"


@app.put("/orders/{order_id:order_id}")
async def put_order_status(order_id: str, request: Request):
    try:
        update = StatusUpdateRequest.model_validate_json(await request.body())
    except ValueError:
        return PlainTextResponse("Bad request", status_code=400)

    order = Order(id=order_id, status=update.status)
    if not await run_in_threadpool(publish_order_status, order):
        # Backend failures are already logged; the caller gets no body.
        return Response()

    return PlainTextResponse("Order updated")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3000)
