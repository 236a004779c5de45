"""
JSON Record Loader

Reads time/value samples and OHLC bars from JSON arrays.

Boundary rules:
    - Never raises: unreadable or unparseable input → [] (logged)
    - Non-array payload → []
    - Elements missing fields or carrying non-numeric / non-finite values are
      skipped, the rest are kept in order
"""

from pathlib import Path
from typing import Any, List, Optional, Union
import json
import logging
import math

from chartstream.render_engine.schemas import OhlcRecord, RecordKind, TimeValueRecord

LOG = logging.getLogger(__name__)

Source = Union[str, Path]

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

OHLC_FIELDS = ("open", "high", "low", "close")


def _read_json(source: Source) -> Optional[Any]:
    """Decode a JSON document from a path or from literal JSON text"""
    try:
        if isinstance(source, str) and source.lstrip().startswith(("[", "{")):
            return json.loads(source)
        with open(source, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        LOG.warning(f"Data source not found: {source}")
    except (OSError, UnicodeDecodeError) as e:
        LOG.warning(f"Cannot read data source {source}: {e}")
    except json.JSONDecodeError as e:
        LOG.warning(f"Data source {source} is not valid JSON: {e}")
    except TypeError as e:
        LOG.warning(f"Unsupported data source {source!r}: {e}")
    return None


def _as_timestamp(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            return None
        raw = int(raw)
    if not isinstance(raw, int):
        return None
    if raw < _INT64_MIN or raw > _INT64_MAX:
        return None
    return raw


def _as_number(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    value = float(raw)
    if not math.isfinite(value):
        return None
    return value


def parse_time_value_records(payload: Any) -> List[TimeValueRecord]:
    """Build TimeValueRecords from a decoded JSON array"""
    if not isinstance(payload, list):
        LOG.warning(f"Expected a JSON array of time/value records, got {type(payload).__name__}")
        return []

    records: List[TimeValueRecord] = []
    skipped = 0
    for item in payload:
        if not isinstance(item, dict):
            skipped += 1
            continue
        timestamp = _as_timestamp(item.get("timestamp"))
        value = _as_number(item.get("value"))
        if timestamp is None or value is None:
            skipped += 1
            continue
        records.append(TimeValueRecord(timestamp=timestamp, value=value))

    if skipped:
        LOG.debug(f"Skipped {skipped} malformed time/value elements")
    return records


def parse_ohlc_records(payload: Any) -> List[OhlcRecord]:
    """Build OhlcRecords from a decoded JSON array"""
    if not isinstance(payload, list):
        LOG.warning(f"Expected a JSON array of OHLC records, got {type(payload).__name__}")
        return []

    records: List[OhlcRecord] = []
    skipped = 0
    for item in payload:
        if not isinstance(item, dict):
            skipped += 1
            continue
        timestamp = _as_timestamp(item.get("timestamp"))
        prices = [_as_number(item.get(name)) for name in OHLC_FIELDS]
        if timestamp is None or any(p is None for p in prices):
            skipped += 1
            continue
        o, h, l, c = prices
        records.append(OhlcRecord(timestamp=timestamp, open=o, high=h, low=l, close=c))

    if skipped:
        LOG.debug(f"Skipped {skipped} malformed OHLC elements")
    return records


def load_time_value_records(source: Source) -> List[TimeValueRecord]:
    """
    Load time/value samples.

    Args:
        source: File path, or a JSON array as text

    Returns:
        Records in source order ([] on any failure)
    """
    payload = _read_json(source)
    if payload is None:
        return []
    return parse_time_value_records(payload)


def load_ohlc_records(source: Source) -> List[OhlcRecord]:
    """
    Load OHLC bars.

    Args:
        source: File path, or a JSON array as text

    Returns:
        Records in source order ([] on any failure)
    """
    payload = _read_json(source)
    if payload is None:
        return []
    return parse_ohlc_records(payload)


def parse_records(kind: RecordKind, payload: Any) -> list:
    """Dispatch to the parser for the given record kind"""
    if kind == RecordKind.OHLC:
        return parse_ohlc_records(payload)
    return parse_time_value_records(payload)
