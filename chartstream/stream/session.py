"""
Chart Stream Session

Per-connection subscription state machine with a periodic full refresh.

State transitions:
    IDLE ──subscribe──→ ACTIVE ──unsubscribe──→ IDLE
      ↑                   │ ↺ subscribe (retires previous refresh task first)
      └───────error───────┘
    any ──disconnect──→ CLOSED (terminal, no further output)

Concurrency:
    One asyncio lock per session covers message handling, refresh ticks and
    every write to the channel. Output order is generation order, and at most
    one refresh task exists per session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import asyncio
import logging
import time
import uuid

from chartstream.data_layer.store import ChartDataStore, DataSnapshot
from chartstream.errors import ChannelClosed, ProtocolError, UnknownSeriesTypeError
from chartstream.render_engine.generators import SeriesGenerator
from chartstream.render_engine.incremental import IncrementalUpdateEngine
from chartstream.render_engine.registry import GeneratorRegistry, get_generator_registry
from chartstream.render_engine.schemas import DrawCommand
from chartstream.stream.channel import MessageChannel
from chartstream.stream.protocol import (
    AppendDataMessage,
    SubscribeMessage,
    UnsubscribeMessage,
    encode_draw_commands,
    encode_error,
    parse_control_message,
)

LOG = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_S = 10.0


class SessionState(str, Enum):
    """Session lifecycle states"""
    IDLE = "IDLE"       # No subscription
    ACTIVE = "ACTIVE"   # Subscribed, refresh task running
    CLOSED = "CLOSED"   # Connection gone (terminal)


@dataclass
class Subscription:
    """
    Active subscription of one session.

    `cursors[series_type]` is how many records of that series have been
    pushed so far.
    """
    series_types: Tuple[str, ...]
    cursors: Dict[str, int] = field(default_factory=dict)
    active: bool = True
    subscribed_at: float = field(default_factory=time.time)

    def cursor(self, series_type: str) -> int:
        return self.cursors.get(series_type, 0)

    def advance(self, counts: Dict[str, int]):
        self.cursors.update(counts)

    def to_dict(self) -> dict:
        return {
            'series_types': list(self.series_types),
            'cursors': dict(self.cursors),
            'active': self.active,
            'subscribed_at': self.subscribed_at,
        }


class ChartSession:
    """
    One connection's view of the chart stream.

    Drive it with run(), or feed messages through handle_message() and call
    close() on teardown.
    """

    def __init__(
        self,
        channel: MessageChannel,
        store: ChartDataStore,
        registry: Optional[GeneratorRegistry] = None,
        refresh_interval_s: float = DEFAULT_REFRESH_INTERVAL_S,
        session_id: Optional[str] = None,
    ):
        if refresh_interval_s <= 0:
            raise ValueError(f"refresh_interval_s must be positive, got {refresh_interval_s}")

        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.channel = channel
        self.store = store
        self.registry = registry or get_generator_registry()
        self.refresh_interval_s = refresh_interval_s

        self._delta_engine = IncrementalUpdateEngine(self.registry)
        self._lock = asyncio.Lock()
        self._state = SessionState.IDLE
        self._subscription: Optional[Subscription] = None
        self._refresh_task: Optional[asyncio.Task] = None

        # Statistics
        self.messages_received = 0
        self.batches_sent = 0
        self.errors_sent = 0
        self.refresh_ticks = 0
        self.created_at = time.time()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    @property
    def refresh_task(self) -> Optional[asyncio.Task]:
        return self._refresh_task

    @property
    def is_closed(self) -> bool:
        return self._state == SessionState.CLOSED

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(self):
        """Read loop: receive, decode, dispatch until the channel closes"""
        LOG.info(f"Session {self.session_id} opened")
        try:
            while not self.is_closed:
                text = await self.channel.receive()
                await self.handle_message(text)
        except ChannelClosed as e:
            LOG.info(f"Session {self.session_id} disconnected: {e}")
        finally:
            await self.close()

    async def handle_message(self, text: str):
        """Decode one control message and apply it"""
        if self.is_closed:
            return
        self.messages_received += 1

        async with self._lock:
            if self.is_closed:
                return
            try:
                message = parse_control_message(text)
            except ProtocolError as e:
                LOG.warning(f"Session {self.session_id} rejected message: {e.message}")
                await self._send_error(e.message)
                return

            if isinstance(message, SubscribeMessage):
                await self._subscribe(message.requested_series_types)
            elif isinstance(message, UnsubscribeMessage):
                await self._unsubscribe()
            elif isinstance(message, AppendDataMessage):
                await self._append_data(message.series_type, message.from_index)

    async def subscribe(self, series_types: Sequence[str]):
        async with self._lock:
            if not self.is_closed:
                await self._subscribe(list(series_types))

    async def unsubscribe(self):
        async with self._lock:
            if not self.is_closed:
                await self._unsubscribe()

    async def append_data(self, series_type: str, from_index: int):
        async with self._lock:
            if not self.is_closed:
                await self._append_data(series_type, from_index)

    async def close(self):
        """Tear down: stop the refresh task and go terminal"""
        if self.is_closed:
            return
        self._state = SessionState.CLOSED
        await self._stop_refresh()
        self._retire_subscription()
        LOG.info(
            f"Session {self.session_id} closed "
            f"(messages={self.messages_received}, batches={self.batches_sent}, errors={self.errors_sent})"
        )

    # ------------------------------------------------------------------
    # Transitions (caller holds the lock)
    # ------------------------------------------------------------------

    async def _subscribe(self, series_types: List[str]):
        # Validate before touching state: an unknown type leaves the session as it was
        try:
            generators = [(name, self.registry.require(name)) for name in series_types]
        except UnknownSeriesTypeError as e:
            LOG.warning(f"Session {self.session_id} subscribe rejected: {e.message}")
            await self._send_error(e.message)
            return

        await self._stop_refresh()
        self._retire_subscription()

        try:
            commands, counts = self._full_batch(generators, self.store.snapshot)
            payload = encode_draw_commands(commands)
        except Exception as e:
            LOG.exception(f"Session {self.session_id} failed to build initial batch: {e}")
            await self._send_error(f"Failed to generate series: {e}")
            return

        subscription = Subscription(series_types=tuple(series_types))
        await self._send(payload)
        subscription.advance(counts)

        self._subscription = subscription
        self._state = SessionState.ACTIVE
        self._refresh_task = asyncio.create_task(
            self._refresh_loop(subscription),
            name=f"chart-refresh-{self.session_id}",
        )
        LOG.info(f"Session {self.session_id} subscribed to {list(series_types)} (cursors={counts})")

    async def _unsubscribe(self):
        if self._state != SessionState.ACTIVE:
            LOG.debug(f"Session {self.session_id} unsubscribe while {self._state.value}: no-op")
            return
        await self._stop_refresh()
        self._retire_subscription()
        LOG.info(f"Session {self.session_id} unsubscribed")

    async def _append_data(self, series_type: str, from_index: int):
        try:
            generator = self.registry.require(series_type)
        except UnknownSeriesTypeError as e:
            await self._send_error(e.message)
            return

        records = self.store.snapshot.records(generator.record_kind)
        try:
            command = self._delta_engine.delta(series_type, records, from_index)
            payload = encode_draw_commands([command] if command is not None else [])
        except Exception as e:
            LOG.exception(f"Session {self.session_id} appendData failed: {e}")
            await self._send_error(f"Failed to generate series: {e}")
            return

        await self._send(payload)
        LOG.debug(
            f"Session {self.session_id} appendData {series_type} from {from_index}: "
            f"{command.vertex_count if command is not None else 0} vertices"
        )

    # ------------------------------------------------------------------
    # Periodic refresh
    # ------------------------------------------------------------------

    async def _refresh_loop(self, subscription: Subscription):
        """Recompute and push the full series every refresh interval"""
        generators = [(name, self.registry.require(name)) for name in subscription.series_types]

        while True:
            await asyncio.sleep(self.refresh_interval_s)

            async with self._lock:
                if self._subscription is not subscription or self._state != SessionState.ACTIVE:
                    return
                try:
                    commands, counts = self._full_batch(generators, self.store.snapshot)
                    await self._send(encode_draw_commands(commands))
                except ChannelClosed as e:
                    LOG.info(f"Session {self.session_id} refresh stopped, channel closed: {e}")
                    await self._abort_from_refresh()
                    return
                except Exception as e:
                    LOG.exception(f"Session {self.session_id} refresh failed: {e}")
                    self._refresh_task = None
                    self._retire_subscription()
                    try:
                        await self._send_error(f"Refresh failed: {e}")
                    except ChannelClosed:
                        await self._abort_from_refresh()
                    return

                subscription.advance(counts)
                self.refresh_ticks += 1
                LOG.debug(f"Session {self.session_id} refresh #{self.refresh_ticks} pushed {len(commands)} command(s)")

    async def _abort_from_refresh(self):
        """Transport failure seen by the refresh task: go terminal from inside it"""
        self._refresh_task = None
        self._retire_subscription()
        self._state = SessionState.CLOSED
        await self.channel.close()

    async def _stop_refresh(self):
        """Cancel the refresh task and wait until it has finished"""
        task = self._refresh_task
        self._refresh_task = None
        if task is None or task is asyncio.current_task():
            return
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    def _retire_subscription(self):
        if self._subscription is not None:
            self._subscription.active = False
        self._subscription = None
        if self._state == SessionState.ACTIVE:
            self._state = SessionState.IDLE

    # ------------------------------------------------------------------
    # Generation and output
    # ------------------------------------------------------------------

    @staticmethod
    def _full_batch(
        generators: List[Tuple[str, SeriesGenerator]],
        snapshot: DataSnapshot,
    ) -> Tuple[List[DrawCommand], Dict[str, int]]:
        """One full-series command per series type, plus the record counts sent"""
        commands: List[DrawCommand] = []
        counts: Dict[str, int] = {}
        for name, generator in generators:
            records = snapshot.records(generator.record_kind)
            commands.append(generator.generate(generator.default_series_id, records))
            counts[name] = len(records)
        return commands, counts

    async def _send(self, text: str):
        if self.is_closed:
            LOG.debug(f"Session {self.session_id} dropped output after close")
            return
        await self.channel.send(text)
        self.batches_sent += 1

    async def _send_error(self, message: str):
        if self.is_closed:
            return
        await self.channel.send(encode_error(message))
        self.errors_sent += 1

    def get_stats(self) -> dict:
        return {
            'session_id': self.session_id,
            'state': self._state.value,
            'subscription': self._subscription.to_dict() if self._subscription else None,
            'messages_received': self.messages_received,
            'batches_sent': self.batches_sent,
            'errors_sent': self.errors_sent,
            'refresh_ticks': self.refresh_ticks,
            'uptime_seconds': time.time() - self.created_at,
        }
