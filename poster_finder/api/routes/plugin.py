from __future__ import annotations

import asyncio
import logging

import httpx
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from poster_finder.api.deps import HostFactory, get_host_factory, get_settings, get_tmdb_transport
from poster_finder.core.config import Settings
from poster_finder.schemas.messages import dump_outbound
from poster_finder.services.channel import QueueChannel
from poster_finder.services.commands import CommandHandler
from poster_finder.services.tmdb import TmdbClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plugin", tags=["plugin"])


async def _pump_outbound(websocket: WebSocket, channel: QueueChannel) -> None:
    while True:
        message = await channel.get()
        if message is None:
            return
        await websocket.send_json(dump_outbound(message))


@router.websocket("/ws")
async def plugin_session(
    websocket: WebSocket,
    config: Settings = Depends(get_settings),
    host_factory: HostFactory = Depends(get_host_factory),
    transport: httpx.AsyncBaseTransport | None = Depends(get_tmdb_transport),
):
    """One panel connection: inbound frames are commands, outbound frames are replies.

    Commands run concurrently so a slow lookup does not hold up later
    keystrokes; live-search ordering is left to the handler's serial check.
    """

    origin = websocket.headers.get("origin")
    if not config.origin_allowed(origin):
        logger.warning("rejecting plugin connection origin=%s", origin)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    host = host_factory()
    channel = QueueChannel()
    in_flight: set[asyncio.Task] = set()
    disconnected = False

    async with TmdbClient(config, transport=transport) as tmdb:
        handler = CommandHandler(host, channel, tmdb=tmdb, config=config)
        writer = asyncio.create_task(_pump_outbound(websocket, channel))
        try:
            while not getattr(host, "closed", False):
                try:
                    raw = await websocket.receive_json()
                except WebSocketDisconnect:
                    disconnected = True
                    break
                except ValueError:
                    logger.warning("ignoring non-JSON frame")
                    continue

                if not isinstance(raw, dict):
                    logger.warning("ignoring frame that is not an object")
                    continue

                if raw.get("type") == "close":
                    await handler.dispatch(raw)
                    break

                task = asyncio.create_task(handler.dispatch(raw))
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)
        finally:
            for task in list(in_flight):
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)

            if disconnected or websocket.client_state != WebSocketState.CONNECTED:
                writer.cancel()
                await asyncio.gather(writer, return_exceptions=True)
            else:
                # The writer sends everything queued ahead of the marker, then exits.
                channel.close()
                await asyncio.gather(writer, return_exceptions=True)
                await websocket.close()
