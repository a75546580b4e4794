from __future__ import annotations

import asyncio

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result, State


async def _queue_depth(amqp_uri: str, queue: str, timeout_s: float) -> int:
    import aio_pika

    connection = await aio_pika.connect(amqp_uri, timeout=timeout_s)
    async with connection:
        channel = await connection.channel()
        declared = await asyncio.wait_for(
            channel.declare_queue(queue, passive=True), timeout=timeout_s
        )
        return int(declared.declaration_result.message_count)


def queue_depth(amqp_uri: str, queue: str, timeout_s: float = 5.0) -> int:
    """Number of ready messages in ``queue``; raises when the broker or queue is unreachable."""
    return asyncio.run(_queue_depth(amqp_uri, queue, timeout_s))


class RabbitMQQueueLenChecker(Check):
    def __init__(
        self,
        host: str,
        service: str,
        amqp_uri: str,
        queue: str,
        max_messages: int,
        timeout_s: float = 5.0,
    ) -> None:
        self.host = host
        self.service = service
        self.amqp_uri = amqp_uri
        self.queue = queue
        self.max_messages = max_messages
        self.timeout_s = timeout_s

    def execute(self) -> Result:
        try:
            messages = queue_depth(self.amqp_uri, self.queue, timeout_s=self.timeout_s)
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)

        state = State.OK if messages <= self.max_messages else State.CRITICAL
        return Result(host=self.host, service=self.service, state=state, metric=messages)
