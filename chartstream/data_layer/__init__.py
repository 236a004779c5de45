"""
CHARTSTREAM Data Layer

Loads JSON series data and serves it as read-only snapshots.
"""

from chartstream.data_layer.loader import (
    load_ohlc_records,
    load_time_value_records,
    parse_ohlc_records,
    parse_records,
    parse_time_value_records,
)
from chartstream.data_layer.store import ChartDataStore, DataSnapshot

__all__ = [
    'load_ohlc_records',
    'load_time_value_records',
    'parse_ohlc_records',
    'parse_records',
    'parse_time_value_records',
    'ChartDataStore',
    'DataSnapshot',
]
