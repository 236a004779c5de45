"""
Chart stream watcher

Subscribes to a running chartstream server and prints one line per envelope.

Usage:
    python -m chartstream.scripts.watch_stream --series line candlestick --messages 3
    python -m chartstream.scripts.watch_stream --series line --append-from 450
"""

import argparse
import asyncio
import json
import logging

import websockets

LOG = logging.getLogger(__name__)


def describe_envelope(envelope: dict) -> str:
    """One-line summary of a server envelope"""
    kind = envelope.get("type")
    if kind == "error":
        return f"error: {envelope.get('message')}"
    if kind != "drawCommands":
        return f"unexpected message type {kind!r}"

    commands = envelope.get("commands") or []
    if not commands:
        return "drawCommands: (no new data)"
    parts = []
    for cmd in commands:
        vertices = cmd.get("vertices") or []
        parts.append(f"{cmd.get('seriesId')}[{cmd.get('pane')}] {len(vertices) // 2} vertices")
    return "drawCommands: " + ", ".join(parts)


async def watch(uri: str, series, messages: int, append_from=None):
    async with websockets.connect(uri) as websocket:
        await websocket.send(json.dumps({"type": "subscribe", "seriesTypes": list(series)}))
        print(f"Subscribed to: {', '.join(series)}")

        if append_from is not None:
            for series_type in series:
                await websocket.send(json.dumps({
                    "type": "appendData",
                    "seriesType": series_type,
                    "fromIndex": append_from,
                }))

        received = 0
        async for message in websocket:
            try:
                envelope = json.loads(message)
            except ValueError:
                LOG.warning("Non-JSON message from server: %s", message[:100])
                continue
            received += 1
            print(f"[{received}] {describe_envelope(envelope)}")
            if messages and received >= messages:
                break

        await websocket.send(json.dumps({"type": "unsubscribe"}))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Watch a chartstream WebSocket feed")
    parser.add_argument("--uri", type=str, default="ws://localhost:9001/ws", help="Server WebSocket URI")
    parser.add_argument("--series", nargs="+", default=["line"], help="Series types to subscribe to")
    parser.add_argument("--messages", type=int, default=0, help="Stop after N envelopes (0 = run until closed)")
    parser.add_argument("--append-from", type=int, default=None, help="Also request appendData from this index")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    try:
        asyncio.run(watch(args.uri, args.series, args.messages, args.append_from))
    except KeyboardInterrupt:
        print("Stopped")


if __name__ == "__main__":
    main()
