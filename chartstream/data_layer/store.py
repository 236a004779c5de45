"""
Chart Data Store

Holds the loaded data set as an immutable snapshot.

Concurrency model:
    Read: take the current snapshot reference, never locked
    Write: reload() builds a complete new snapshot, then swaps the reference
    Sessions only ever see whole generations, never a half-updated set
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple
import asyncio
import logging
import time

from chartstream.data_layer.loader import (
    Source,
    load_ohlc_records,
    load_time_value_records,
)
from chartstream.render_engine.schemas import OhlcRecord, RecordKind, TimeValueRecord

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSnapshot:
    """One generation of the data set"""
    generation: int = 0
    time_value: Tuple[TimeValueRecord, ...] = ()
    ohlc: Tuple[OhlcRecord, ...] = ()
    loaded_at: float = field(default_factory=time.time)

    def records(self, kind: RecordKind) -> tuple:
        """Records of the given kind"""
        if kind == RecordKind.OHLC:
            return self.ohlc
        return self.time_value

    def to_dict(self) -> dict:
        return {
            'generation': self.generation,
            'time_value_records': len(self.time_value),
            'ohlc_records': len(self.ohlc),
            'loaded_at': self.loaded_at,
        }


class ChartDataStore:
    """
    Snapshot holder for time/value and OHLC series.

    Sessions call `snapshot` once per generation call and work from that
    reference only.
    """

    def __init__(
        self,
        line_source: Optional[Source] = None,
        ohlc_source: Optional[Source] = None,
        snapshot: Optional[DataSnapshot] = None,
    ):
        self.line_source = line_source
        self.ohlc_source = ohlc_source
        self._snapshot = snapshot or DataSnapshot()
        self._reload_count = 0

    @classmethod
    def from_records(
        cls,
        time_value: Iterable[TimeValueRecord] = (),
        ohlc: Iterable[OhlcRecord] = (),
    ) -> "ChartDataStore":
        """Store over in-memory records, no backing sources"""
        return cls(snapshot=DataSnapshot(generation=1, time_value=tuple(time_value), ohlc=tuple(ohlc)))

    @property
    def snapshot(self) -> DataSnapshot:
        return self._snapshot

    def replace(
        self,
        time_value: Optional[Iterable[TimeValueRecord]] = None,
        ohlc: Optional[Iterable[OhlcRecord]] = None,
    ) -> DataSnapshot:
        """Install a new generation; series left as None keep their records"""
        current = self._snapshot
        snapshot = DataSnapshot(
            generation=current.generation + 1,
            time_value=current.time_value if time_value is None else tuple(time_value),
            ohlc=current.ohlc if ohlc is None else tuple(ohlc),
        )
        self._snapshot = snapshot
        return snapshot

    def reload(self) -> DataSnapshot:
        """
        Re-read both sources and swap in the result.

        A source that is not configured keeps its current records. Load
        failures surface as empty series (the loader never raises).
        """
        time_value = None
        ohlc = None
        if self.line_source is not None:
            time_value = load_time_value_records(self.line_source)
        if self.ohlc_source is not None:
            ohlc = load_ohlc_records(self.ohlc_source)

        snapshot = self.replace(time_value=time_value, ohlc=ohlc)
        self._reload_count += 1
        LOG.info(
            f"Data set generation {snapshot.generation}: "
            f"{len(snapshot.time_value)} time/value, {len(snapshot.ohlc)} OHLC records"
        )
        return snapshot

    async def run_reloader(self, interval_s: float):
        """Reload on a fixed cadence until cancelled"""
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        LOG.info(f"Data reloader started (every {interval_s}s)")
        try:
            while True:
                await asyncio.sleep(interval_s)
                try:
                    await asyncio.to_thread(self.reload)
                except Exception as e:
                    LOG.exception("Data reload failed: %s", e)
        finally:
            LOG.info("Data reloader stopped")

    def get_stats(self) -> dict:
        stats = self._snapshot.to_dict()
        stats['reload_count'] = self._reload_count
        stats['line_source'] = str(self.line_source) if self.line_source is not None else None
        stats['ohlc_source'] = str(self.ohlc_source) if self.ohlc_source is not None else None
        return stats
