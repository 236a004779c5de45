"""
CHARTSTREAM

Streams normalized chart drawing instructions to WebSocket clients.

Layers:
    data_layer     → JSON record loading and immutable snapshots
    render_engine  → records → DrawCommands (line, candlestick)
    stream         → control protocol, per-connection sessions, server
"""

__version__ = '1.0.0'
