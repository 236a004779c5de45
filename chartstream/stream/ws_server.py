from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.responses import JSONResponse
import asyncio
import json
import logging
from typing import Dict, List, Optional

from chartstream.data_layer.loader import parse_records
from chartstream.data_layer.store import ChartDataStore
from chartstream.render_engine.registry import GeneratorRegistry
from chartstream.stream.channel import WebSocketChannel
from chartstream.stream.config import StreamConfig
from chartstream.stream.protocol import draw_commands_envelope
from chartstream.stream.session import ChartSession

LOG = logging.getLogger("chartstream.stream.ws")


class SessionBroker:
    """Tracks live sessions for status reporting and shutdown"""

    def __init__(self):
        self._sessions: Dict[str, ChartSession] = {}
        self._lock = asyncio.Lock()
        self.total_connections = 0

    async def register(self, session: ChartSession):
        async with self._lock:
            self._sessions[session.session_id] = session
            self.total_connections += 1

    async def unregister(self, session: ChartSession):
        async with self._lock:
            self._sessions.pop(session.session_id, None)

    async def sessions(self) -> List[ChartSession]:
        async with self._lock:
            return list(self._sessions.values())

    async def close_all(self):
        for session in await self.sessions():
            await session.close()
            await session.channel.close()


def create_app(
    config: Optional[StreamConfig] = None,
    store: Optional[ChartDataStore] = None,
    registry: Optional[GeneratorRegistry] = None,
) -> FastAPI:
    """
    Build the chart stream application.

    Without an explicit store the data set is loaded from the configured
    JSON files on startup (and reloaded on a cadence if configured).
    """
    config = config or StreamConfig.from_env()
    registry = registry or GeneratorRegistry.with_defaults(config.render)
    if store is None:
        store = ChartDataStore(line_source=config.line_data_path, ohlc_source=config.ohlc_data_path)
    broker = SessionBroker()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store.snapshot.generation == 0:
            await asyncio.to_thread(store.reload)

        reloader: Optional[asyncio.Task] = None
        if config.reload_interval_s > 0:
            reloader = asyncio.create_task(store.run_reloader(config.reload_interval_s), name="chart-data-reloader")
        LOG.info(f"Chart stream ready: series types {registry.series_types()}")
        try:
            yield
        finally:
            if reloader is not None:
                reloader.cancel()
                await asyncio.gather(reloader, return_exceptions=True)
            await broker.close_all()
            LOG.info("Chart stream shut down")

    app = FastAPI(
        title="Chartstream",
        description="Streams normalized chart draw commands over WebSocket",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.registry = registry
    app.state.broker = broker

    @app.get("/")
    async def index():
        return {
            "service": "Chartstream",
            "version": "1.0.0",
            "status": "online",
            "endpoints": {
                "stream": "/ws",
                "render": "/render/{series_type}",
                "status": "/status",
            },
            "series_types": registry.series_types(),
        }

    @app.get("/status")
    async def status():
        """System status endpoint"""
        sessions = await broker.sessions()
        return {
            "status": "running",
            "active_sessions": len(sessions),
            "subscribed_sessions": sum(1 for s in sessions if s.subscription is not None),
            "total_connections": broker.total_connections,
            "series_types": registry.series_types(),
            "refresh_interval_s": config.refresh_interval_s,
            "data": store.get_stats(),
            "sessions": [s.get_stats() for s in sessions],
        }

    @app.post("/render/{series_type}")
    async def render(series_type: str, request: Request):
        """One-shot render of a posted JSON array of records"""
        generator = registry.resolve(series_type)
        if generator is None:
            raise HTTPException(status_code=404, detail=f"Unknown series type: {series_type}")

        try:
            payload = json.loads(await request.body())
        except ValueError:
            raise HTTPException(status_code=400, detail="Request body is not valid JSON")
        if not isinstance(payload, list):
            raise HTTPException(status_code=400, detail="Input must be a JSON array")

        records = parse_records(generator.record_kind, payload)
        command = generator.generate(generator.default_series_id, records)
        return JSONResponse(content=draw_commands_envelope([command]))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        channel = WebSocketChannel(websocket)
        session = ChartSession(
            channel,
            store,
            registry=registry,
            refresh_interval_s=config.refresh_interval_s,
        )
        LOG.info("WebSocket accepted from %s (session %s)", channel.peer, session.session_id)
        await broker.register(session)
        try:
            await session.run()
        except Exception as e:
            LOG.exception("WebSocket session %s error from %s: %s", session.session_id, channel.peer, e)
        finally:
            await session.close()
            await broker.unregister(session)
            await channel.close()

    return app


app = create_app()
