"""
CHARTSTREAM Render Engine

Converts time/value and OHLC records into normalized DrawCommands.

Philosophy:
    - Renderer-agnostic: output is flat clip-space vertices plus a style
    - Deterministic: same records → same vertices
    - Fixed styling per chart kind, never derived from data
    - Empty or unusable input yields empty commands, not exceptions

Flow:
    records → GeneratorRegistry → SeriesGenerator → DrawCommand
"""

from chartstream.render_engine.config import RenderConfig, DEFAULT_RENDER_CONFIG
from chartstream.render_engine.schemas import (
    CommandType,
    DrawCommand,
    OhlcRecord,
    RecordKind,
    StyleSpec,
    TimeValueRecord,
)
from chartstream.render_engine.generators import (
    CANDLE_STRIDE,
    LINE_STRIDE,
    CandlestickSeriesGenerator,
    LineSeriesGenerator,
    SeriesGenerator,
)
from chartstream.render_engine.registry import GeneratorRegistry, get_generator_registry
from chartstream.render_engine.incremental import IncrementalUpdateEngine, compute_delta

__all__ = [
    'RenderConfig',
    'DEFAULT_RENDER_CONFIG',
    'CommandType',
    'DrawCommand',
    'OhlcRecord',
    'RecordKind',
    'StyleSpec',
    'TimeValueRecord',
    'CANDLE_STRIDE',
    'LINE_STRIDE',
    'CandlestickSeriesGenerator',
    'LineSeriesGenerator',
    'SeriesGenerator',
    'GeneratorRegistry',
    'get_generator_registry',
    'IncrementalUpdateEngine',
    'compute_delta',
]
