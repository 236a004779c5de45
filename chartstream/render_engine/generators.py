"""
Series Generators

Turn an ordered sequence of records into a single DrawCommand.

Shared shape:
    1. Empty input → command with empty vertex buffer
    2. One scan for time range and value range
    3. Linear rescale of both axes into [-1, 1]
    4. Shape-specific vertex emission

Vertex layout:
    line         [x, y]                                       2 floats/sample
    candlestick  [x, yLow, x, yHigh, xL, yFirst, xR, ySecond] 8 floats/bar

A candle body is carried by two opposite corners: (xL, yFirst) sits on one
horizontal edge, (xR, ySecond) on the other, with xL/xR = x -/+ half-width.
The close-side edge comes first on up bars (close >= open), the open-side
edge first on down bars.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging
import numpy as np

from chartstream.render_engine.config import RenderConfig, DEFAULT_RENDER_CONFIG
from chartstream.render_engine.normalization import (
    detect_range,
    interleave,
    rescale,
    timestamps_array,
)
from chartstream.render_engine.schemas import (
    CommandType,
    DrawCommand,
    OhlcRecord,
    RecordKind,
    StyleSpec,
    TimeValueRecord,
)

LOG = logging.getLogger(__name__)

LINE_STRIDE = 2
CANDLE_STRIDE = 8


class SeriesGenerator(ABC):
    """
    Base class for all chart-series generators.

    Subclasses declare which record kind they consume and build the vertex
    buffer; everything else (empty input, wrong record kind, command framing)
    is handled here.
    """

    chart_type: str = ""
    record_kind: RecordKind = RecordKind.TIME_VALUE
    record_type: type = TimeValueRecord
    stride: int = LINE_STRIDE

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or DEFAULT_RENDER_CONFIG

    @property
    @abstractmethod
    def default_series_id(self) -> str:
        """Series id used when the caller does not supply one"""

    @property
    @abstractmethod
    def style(self) -> StyleSpec:
        """Fixed style for this chart kind"""

    def generate(self, series_id: str, records: Sequence) -> DrawCommand:
        """
        Generate a DrawCommand for the given records.

        Args:
            series_id: Series identifier placed on the command
            records: Ordered records of this generator's record kind

        Returns:
            DrawCommand (empty vertex buffer for empty input or for records
            of another kind)
        """
        command = DrawCommand(
            command_type=CommandType.DRAW_SERIES,
            pane=self.config.pane,
            series_id=series_id or self.default_series_id,
            style=self.style,
        )

        records = list(records)
        if not records:
            return command

        # Wrong record kind degrades to an empty command, it does not raise
        if not all(isinstance(r, self.record_type) for r in records):
            LOG.warning(
                "%s generator received records that are not %s; returning empty command",
                self.chart_type, self.record_type.__name__,
            )
            return command

        command.vertices = self._build_vertices(records)
        return command

    @abstractmethod
    def _build_vertices(self, records: List) -> np.ndarray:
        """Build the flat float32 vertex buffer for a non-empty record list"""


class LineSeriesGenerator(SeriesGenerator):
    """One (x, y) pair per time/value sample"""

    chart_type = "line"
    record_kind = RecordKind.TIME_VALUE
    record_type = TimeValueRecord
    stride = LINE_STRIDE

    @property
    def default_series_id(self) -> str:
        return self.config.line_series_id

    @property
    def style(self) -> StyleSpec:
        return self.config.line_style

    def _build_vertices(self, records: List[TimeValueRecord]) -> np.ndarray:
        t = timestamps_array([r.timestamp for r in records])
        v = np.array([r.value for r in records], dtype=np.float64)

        x = rescale(t, detect_range(t))
        y = rescale(v, detect_range(v))
        return interleave(x, y)


class CandlestickSeriesGenerator(SeriesGenerator):
    """Wick segment plus body edges per OHLC bar"""

    chart_type = "candlestick"
    record_kind = RecordKind.OHLC
    record_type = OhlcRecord
    stride = CANDLE_STRIDE

    @property
    def default_series_id(self) -> str:
        return self.config.candlestick_series_id

    @property
    def style(self) -> StyleSpec:
        return self.config.candlestick_style

    def _build_vertices(self, records: List[OhlcRecord]) -> np.ndarray:
        t = timestamps_array([r.timestamp for r in records])
        o = np.array([r.open for r in records], dtype=np.float64)
        h = np.array([r.high for r in records], dtype=np.float64)
        lo = np.array([r.low for r in records], dtype=np.float64)
        c = np.array([r.close for r in records], dtype=np.float64)

        # Price domain is the union of lows and highs
        price = detect_range(lo, h)

        x = rescale(t, detect_range(t))
        y_open = rescale(o, price)
        y_high = rescale(h, price)
        y_low = rescale(lo, price)
        y_close = rescale(c, price)

        is_up = c >= o
        first_edge = np.where(is_up, y_close, y_open)
        second_edge = np.where(is_up, y_open, y_close)

        half_width = self.config.candle_half_width
        body_left = np.clip(x - half_width, -1.0, 1.0)
        body_right = np.clip(x + half_width, -1.0, 1.0)

        return interleave(
            x, y_low,
            x, y_high,
            body_left, first_edge,
            body_right, second_edge,
        )
