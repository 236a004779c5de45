"""
Generator Registry

Maps a series-type name to its SeriesGenerator. Built once, read-only after.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional
import logging

from chartstream.errors import UnknownSeriesTypeError
from chartstream.render_engine.config import RenderConfig
from chartstream.render_engine.generators import (
    CandlestickSeriesGenerator,
    LineSeriesGenerator,
    SeriesGenerator,
)

LOG = logging.getLogger(__name__)

# Adding a chart kind means adding one entry here
DEFAULT_GENERATORS = {
    "line": LineSeriesGenerator,
    "candlestick": CandlestickSeriesGenerator,
}


class GeneratorRegistry:
    """
    Read-only lookup table of series generators.

    Lookups are exact, case-sensitive string matches.
    """

    def __init__(self, generators: Mapping[str, SeriesGenerator]):
        self._generators = MappingProxyType(dict(generators))

    @classmethod
    def with_defaults(cls, config: Optional[RenderConfig] = None) -> "GeneratorRegistry":
        """Registry holding every built-in chart kind"""
        generators: Dict[str, SeriesGenerator] = {
            name: generator_cls(config) for name, generator_cls in DEFAULT_GENERATORS.items()
        }
        return cls(generators)

    def resolve(self, chart_type: str) -> Optional[SeriesGenerator]:
        """Return the generator for chart_type, or None if unknown"""
        if not isinstance(chart_type, str):
            return None
        return self._generators.get(chart_type)

    def require(self, chart_type: str) -> SeriesGenerator:
        """Return the generator for chart_type or raise UnknownSeriesTypeError"""
        generator = self.resolve(chart_type)
        if generator is None:
            raise UnknownSeriesTypeError(chart_type)
        return generator

    def series_types(self) -> List[str]:
        return sorted(self._generators)

    def __contains__(self, chart_type: object) -> bool:
        return isinstance(chart_type, str) and chart_type in self._generators

    def __len__(self) -> int:
        return len(self._generators)


_global_registry: Optional[GeneratorRegistry] = None


def get_generator_registry() -> GeneratorRegistry:
    """Get global generator registry"""
    global _global_registry
    if _global_registry is None:
        _global_registry = GeneratorRegistry.with_defaults()
        LOG.info(f"Generator registry initialized: {_global_registry.series_types()}")
    return _global_registry
