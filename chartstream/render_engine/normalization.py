"""
Normalization Module

Range detection and linear rescaling into clip space.

Formula:
    x_norm = 2 * (x - min) / (max - min) - 1     when max > min
    x_norm = 0                                   otherwise

Rules:
    - Ranges come from the records passed in, nothing else
    - A zero-range axis collapses to exactly 0 (never NaN/Inf)
    - Output always lies in [-1, 1]
    - Arithmetic runs in float64 on halved endpoints, so neither int64
      timestamps nor values near the float64 limits can overflow
"""

from dataclasses import dataclass
from typing import Sequence
import numpy as np


@dataclass(frozen=True)
class AxisRange:
    """Observed domain of one axis"""
    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return float(self.maximum) - float(self.minimum)

    @property
    def half_span(self) -> float:
        """(max - min) / 2, finite for any finite endpoints"""
        return float(self.maximum) / 2.0 - float(self.minimum) / 2.0

    @property
    def is_degenerate(self) -> bool:
        return not self.half_span > 0


def timestamps_array(timestamps: Sequence[int]) -> np.ndarray:
    """Timestamps as int64 (epoch milliseconds)"""
    return np.asarray(timestamps, dtype=np.int64)


def detect_range(*columns: np.ndarray) -> AxisRange:
    """
    Single min/max scan over one or more columns.

    Several columns are treated as one domain (candlestick lows and highs).
    """
    lo = min(column.min().item() for column in columns)
    hi = max(column.max().item() for column in columns)
    return AxisRange(minimum=lo, maximum=hi)


def rescale(column: np.ndarray, axis: AxisRange) -> np.ndarray:
    """Map a column onto [-1, 1] using the given range"""
    if axis.is_degenerate:
        return np.zeros(column.shape, dtype=np.float64)
    half_offset = column.astype(np.float64) / 2.0 - float(axis.minimum) / 2.0
    scaled = 2.0 * (half_offset / axis.half_span) - 1.0
    return np.clip(scaled, -1.0, 1.0)


def interleave(*columns: np.ndarray) -> np.ndarray:
    """
    Flatten equal-length columns row by row into a float32 buffer.

    interleave([x0, x1], [y0, y1]) -> [x0, y0, x1, y1]
    """
    if not columns or columns[0].size == 0:
        return np.zeros(0, dtype=np.float32)
    return np.column_stack(columns).astype(np.float32).ravel()
