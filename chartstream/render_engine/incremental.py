"""
Incremental Update Engine

Builds a DrawCommand for only the records past a cursor.

The suffix is normalized against its own min/max, not the full series
range, so a delta render and a full render of the same data do not line up
coordinate for coordinate. Periodic refresh never goes through here.
"""

from typing import Optional, Sequence
import logging

from chartstream.render_engine.generators import SeriesGenerator
from chartstream.render_engine.registry import GeneratorRegistry, get_generator_registry
from chartstream.render_engine.schemas import DrawCommand

LOG = logging.getLogger(__name__)


def compute_delta(
    generator: SeriesGenerator,
    records: Sequence,
    from_index: int,
    series_id: str = "",
) -> Optional[DrawCommand]:
    """
    Generate a command for records[from_index:].

    Returns:
        DrawCommand, or None when from_index is at or past the end
    """
    if isinstance(from_index, bool) or not isinstance(from_index, int):
        raise TypeError(f"from_index must be an int, got {type(from_index).__name__}")
    if from_index < 0:
        raise ValueError(f"from_index must be non-negative, got {from_index}")
    if from_index >= len(records):
        return None

    suffix = records[from_index:]
    return generator.generate(series_id, suffix)


class IncrementalUpdateEngine:
    """
    Stateless delta generator keyed by series type.

    The cursor lives with the caller; every call must pass the same record
    collection the cursor was taken against.
    """

    def __init__(self, registry: Optional[GeneratorRegistry] = None):
        self.registry = registry or get_generator_registry()

    def delta(self, series_type: str, records: Sequence, from_index: int) -> Optional[DrawCommand]:
        """
        Args:
            series_type: Registered series type ("line", "candlestick", ...)
            records: Full record collection for that series
            from_index: First record not yet delivered

        Returns:
            DrawCommand for the new suffix, or None if nothing is new

        Raises:
            UnknownSeriesTypeError: series_type is not registered
            ValueError: from_index is negative
        """
        generator = self.registry.require(series_type)
        command = compute_delta(generator, records, from_index)
        if command is None:
            LOG.debug(f"No new {series_type} records past index {from_index} (have {len(records)})")
        return command
