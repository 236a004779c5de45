"""
Message Channels

Bidirectional text channel a ChartSession talks through. The WebSocket
adapter maps every transport failure onto ChannelClosed.
"""

from typing import Protocol
import logging

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from chartstream.errors import ChannelClosed

LOG = logging.getLogger(__name__)


class MessageChannel(Protocol):
    """What a session needs from its transport"""

    async def send(self, text: str) -> None: ...

    async def receive(self) -> str: ...

    async def close(self) -> None: ...


class WebSocketChannel:
    """MessageChannel over an accepted FastAPI/Starlette WebSocket"""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def peer(self) -> str:
        client = self.websocket.client
        if client is None:
            return "unknown"
        return f"{client.host}:{client.port}"

    async def send(self, text: str) -> None:
        if self.websocket.application_state != WebSocketState.CONNECTED:
            raise ChannelClosed("websocket is not connected")
        try:
            await self.websocket.send_text(text)
        except WebSocketDisconnect as e:
            raise ChannelClosed(f"peer disconnected (code {e.code})") from e
        except (RuntimeError, OSError) as e:
            raise ChannelClosed(str(e)) from e

    async def receive(self) -> str:
        try:
            message = await self.websocket.receive()
        except WebSocketDisconnect as e:
            raise ChannelClosed(f"peer disconnected (code {e.code})") from e
        except RuntimeError as e:
            raise ChannelClosed(str(e)) from e

        if message["type"] == "websocket.disconnect":
            raise ChannelClosed(f"peer disconnected (code {message.get('code')})")
        if message.get("text") is not None:
            return message["text"]
        data = message.get("bytes") or b""
        return data.decode("utf-8", errors="replace")

    async def close(self) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close()
        except (RuntimeError, OSError) as e:
            LOG.debug("WebSocket already closed: %s", e)
