"""
Render Engine Schemas

Input records and the wire-ready DrawCommand produced from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict
import numpy as np


class RecordKind(str, Enum):
    """Kind of record a series is built from"""
    TIME_VALUE = "time_value"
    OHLC = "ohlc"


class CommandType(str, Enum):
    """DrawCommand types (wire values)"""
    AXIS = "axis"
    DRAW_SERIES = "drawSeries"


@dataclass(frozen=True)
class TimeValueRecord:
    """Single (timestamp, value) sample"""
    timestamp: int
    value: float


@dataclass(frozen=True)
class OhlcRecord:
    """
    Single OHLC bar.

    low <= min(open, close) <= max(open, close) <= high is not checked;
    inconsistent bars pass straight through to the generators.
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class StyleSpec:
    """
    Series styling. Empty color strings mean "unset" and are left off the wire.
    """
    color: str = ""
    alt_color: str = ""
    wick_color: str = ""
    thickness: int = 1

    def to_dict(self) -> dict:
        """Serialize to wire dictionary (unset colors omitted)"""
        d: Dict[str, Any] = {}
        if self.color:
            d['color'] = self.color
        if self.alt_color:
            d['altColor'] = self.alt_color
        if self.wick_color:
            d['wickColor'] = self.wick_color
        d['thickness'] = int(self.thickness)
        return d


def _empty_vertices() -> np.ndarray:
    return np.zeros(0, dtype=np.float32)


@dataclass
class DrawCommand:
    """
    One renderable shape, normalized to clip space.

    Vertices are a flat float32 buffer [x0, y0, x1, y1, ...]. Stride depends
    on the series kind: 2 floats per line sample, 8 per candle.
    """

    command_type: CommandType
    pane: str
    series_id: str
    style: StyleSpec
    vertices: np.ndarray = field(default_factory=_empty_vertices)
    label: str = ""

    @property
    def vertex_count(self) -> int:
        """Number of (x, y) pairs"""
        return int(self.vertices.size // 2)

    @property
    def is_empty(self) -> bool:
        return self.vertices.size == 0

    def to_dict(self) -> dict:
        """Serialize to wire dictionary"""
        d: Dict[str, Any] = {'type': self.command_type.value}
        if self.label:
            d['label'] = self.label
        d['pane'] = self.pane
        d['seriesId'] = self.series_id
        d['vertices'] = self.vertices.astype(np.float32).tolist()
        d['style'] = self.style.to_dict()
        return d
