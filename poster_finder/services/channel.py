from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from poster_finder.schemas.messages import OutboundMessage, SnackbarMessage


@runtime_checkable
class UIChannel(Protocol):
    def post(self, message: OutboundMessage) -> None: ...


def snack(channel: UIChannel, message: str) -> None:
    channel.post(SnackbarMessage(message=message))


class RecordingChannel:
    """Keeps every posted message, in order."""

    def __init__(self) -> None:
        self.messages: list[OutboundMessage] = []

    def post(self, message: OutboundMessage) -> None:
        self.messages.append(message)

    def of_type(self, type_: str) -> list[OutboundMessage]:
        return [m for m in self.messages if m.type == type_]


class QueueChannel:
    """Buffers messages for a consumer task (e.g. a WebSocket writer).

    ``close`` enqueues a ``None`` marker; ``get`` returns it once every
    message posted before it has been handed out.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[OutboundMessage | None] = asyncio.Queue()

    def post(self, message: OutboundMessage) -> None:
        self.queue.put_nowait(message)

    def close(self) -> None:
        self.queue.put_nowait(None)

    async def get(self) -> OutboundMessage | None:
        return await self.queue.get()
