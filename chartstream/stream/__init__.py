"""
CHARTSTREAM Stream Layer

Control protocol, per-connection sessions and the WebSocket server.

Flow:
    inbound text → parse_control_message → ChartSession → generators
                 → encode_draw_commands → outbound text
"""

from chartstream.stream.config import StreamConfig
from chartstream.stream.channel import MessageChannel, WebSocketChannel
from chartstream.stream.protocol import (
    AppendDataMessage,
    SubscribeMessage,
    UnsubscribeMessage,
    encode_draw_commands,
    encode_error,
    parse_control_message,
)
from chartstream.stream.session import ChartSession, SessionState, Subscription

__all__ = [
    'StreamConfig',
    'MessageChannel',
    'WebSocketChannel',
    'AppendDataMessage',
    'SubscribeMessage',
    'UnsubscribeMessage',
    'encode_draw_commands',
    'encode_error',
    'parse_control_message',
    'ChartSession',
    'SessionState',
    'Subscription',
]
