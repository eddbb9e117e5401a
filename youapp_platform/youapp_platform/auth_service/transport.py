"""
AMQP request/reply transport (kombu).

Wire format:
    request  body {"pattern": str, "data": any, "id": str}
             properties reply_to, correlation_id (= id)
    reply    body {"err": null | str, "response": any, "isDisposed": true, "id": str}
             published to the default exchange, routing key = reply_to
"""
from typing import Any, Optional
import asyncio
import logging
import socket
import time
import uuid

from kombu import Connection, Consumer, Producer, Queue
from kombu.exceptions import OperationalError
from kombu.mixins import ConsumerMixin

from .errors import RpcError, RpcTimeoutError, RpcUnavailableError
from .messaging import LocalMessage

logger = logging.getLogger(__name__)


def request_queue(name: str) -> Queue:
    # durable, bound to the default exchange under its own name
    return Queue(name, routing_key=name, durable=True)


class AmqpRequest:
    """RequestContext over a kombu message with manual acknowledgement."""

    def __init__(self, message, body: dict, *, requeue_on_nack: bool = False):
        self._message = message
        self._body = body
        self._requeue_on_nack = requeue_on_nack

    @property
    def data(self) -> Any:
        return self._body.get("data")

    def ack(self) -> None:
        self._message.ack()

    def nack(self) -> None:
        self._message.reject(requeue=self._requeue_on_nack)


class RpcServer(ConsumerMixin):
    """
    Consumes a request queue and hands every message to a gateway.

    The gateway's `dispatch(pattern, context)` coroutine runs on the server's
    own event loop; its return value is published back to the caller.
    """

    def __init__(
        self,
        connection: Connection,
        queue_name: str,
        gateway,
        *,
        prefetch_count: int = 1,
        requeue_on_nack: bool = False,
    ):
        self.connection = connection
        self.queue = request_queue(queue_name)
        self.gateway = gateway
        self.prefetch_count = prefetch_count
        self.requeue_on_nack = requeue_on_nack
        self._loop = asyncio.new_event_loop()

    def get_consumers(self, Consumer, channel):
        return [
            Consumer(
                queues=[self.queue],
                callbacks=[self.on_message],
                accept=["json"],
                prefetch_count=self.prefetch_count,
            )
        ]

    def on_consume_ready(self, connection, channel, consumers, **kwargs):
        logger.info("Consuming from %s with patterns %s", self.queue.name, getattr(self.gateway, "patterns", []))

    def on_message(self, body, message) -> None:
        if not isinstance(body, dict) or not isinstance(body.get("pattern"), str):
            logger.error("Discarding malformed request on %s", self.queue.name)
            message.reject(requeue=False)
            return

        request = AmqpRequest(message, body, requeue_on_nack=self.requeue_on_nack)
        response = self._loop.run_until_complete(self.gateway.dispatch(body["pattern"], request))
        self.reply(message, body.get("id"), response)

    def reply(self, message, request_id: Optional[str], response: Any) -> None:
        reply_to = message.properties.get("reply_to")
        if not reply_to:
            return
        correlation_id = message.properties.get("correlation_id") or request_id
        Producer(message.channel).publish(
            {"err": None, "response": response, "isDisposed": True, "id": request_id},
            exchange="",
            routing_key=reply_to,
            correlation_id=correlation_id,
            serializer="json",
        )

    def close(self) -> None:
        self.should_stop = True
        if not self._loop.is_closed():
            # join the worker threads started by asyncio.to_thread
            self._loop.run_until_complete(self._loop.shutdown_default_executor())
            self._loop.close()


class RpcClient:
    """
    Sends requests to a service queue and waits for the correlated reply.

    Every call runs on its own cloned connection with an exclusive reply
    queue, so calls may run concurrently from worker threads.
    """

    def __init__(self, connection: Connection, queue_name: str, *, timeout: float = 10.0):
        self._connection = connection
        self._queue = request_queue(queue_name)
        self._timeout = timeout

    def call(self, pattern: str, data: Any) -> Any:
        """
        Blocking request/reply round trip.

        Raises:
            RpcTimeoutError: If no reply arrives within the timeout
            RpcError: If the remote side replied with an error
            RpcUnavailableError: If the broker cannot be reached
        """
        request_id = uuid.uuid4().hex
        reply_queue = Queue(
            f"{self._queue.name}.reply.{request_id}",
            routing_key=f"{self._queue.name}.reply.{request_id}",
            exclusive=True,
            auto_delete=True,
        )
        replies = []

        def on_reply(body, message):
            if message.properties.get("correlation_id") == request_id:
                replies.append(body)
            message.ack()

        try:
            with self._connection.clone(connect_timeout=self._timeout) as conn:
                # bounded by the call timeout: one retry, no backoff
                conn.ensure_connection(max_retries=1, interval_start=0, interval_step=0)
                with Consumer(conn, queues=[reply_queue], callbacks=[on_reply], accept=["json"]):
                    Producer(conn).publish(
                        {"pattern": pattern, "data": data, "id": request_id},
                        exchange="",
                        routing_key=self._queue.name,
                        reply_to=reply_queue.name,
                        correlation_id=request_id,
                        serializer="json",
                        declare=[self._queue],
                    )
                    self._wait_for_reply(conn, pattern, replies)
        except (OperationalError, OSError) as e:
            raise RpcUnavailableError(f"Broker unreachable while sending {pattern!r}: {e}") from e

        reply = replies[0]
        if not isinstance(reply, dict):
            raise RpcError(f"Malformed reply to {pattern!r}")
        if reply.get("err"):
            raise RpcError(str(reply["err"]))
        return reply.get("response")

    def _wait_for_reply(self, conn: Connection, pattern: str, replies: list) -> None:
        deadline = time.monotonic() + self._timeout
        while not replies:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RpcTimeoutError(f"No reply to {pattern!r} within {self._timeout}s")
            try:
                conn.drain_events(timeout=remaining)
            except socket.timeout:
                raise RpcTimeoutError(f"No reply to {pattern!r} within {self._timeout}s")

    async def send(self, pattern: str, data: Any) -> Any:
        return await asyncio.to_thread(self.call, pattern, data)


class LocalClient:
    """Request client that dispatches to a gateway in the same process."""

    def __init__(self, gateway):
        self._gateway = gateway

    async def send(self, pattern: str, data: Any) -> Any:
        return await self._gateway.dispatch(pattern, LocalMessage(data))
