"""
Tests for the generator registry and the incremental update engine
"""

import numpy as np
import pytest

from chartstream.errors import ProtocolError, UnknownSeriesTypeError
from chartstream.render_engine import (
    CandlestickSeriesGenerator,
    GeneratorRegistry,
    IncrementalUpdateEngine,
    LineSeriesGenerator,
    OhlcRecord,
    TimeValueRecord,
    compute_delta,
    get_generator_registry,
)


@pytest.fixture
def registry():
    return GeneratorRegistry.with_defaults()


@pytest.fixture
def line_records():
    return [TimeValueRecord(timestamp=i * 10, value=float(i)) for i in range(11)]


class TestGeneratorRegistry:
    """Series type lookup"""

    def test_resolves_builtin_types(self, registry):
        assert isinstance(registry.resolve("line"), LineSeriesGenerator)
        assert isinstance(registry.resolve("candlestick"), CandlestickSeriesGenerator)
        assert registry.series_types() == ["candlestick", "line"]
        assert len(registry) == 2

    def test_lookup_is_case_sensitive(self, registry):
        assert registry.resolve("Line") is None
        assert registry.resolve("CANDLESTICK") is None
        assert "Line" not in registry
        assert "line" in registry

    def test_unknown_and_non_string_names(self, registry):
        assert registry.resolve("bogus") is None
        assert registry.resolve("") is None
        assert registry.resolve(None) is None
        assert 3 not in registry

    def test_require_raises_with_message(self, registry):
        with pytest.raises(UnknownSeriesTypeError) as exc_info:
            registry.require("bogus")

        assert exc_info.value.message == "Unknown series type: bogus"
        assert exc_info.value.series_type == "bogus"
        assert isinstance(exc_info.value, ProtocolError)

    def test_custom_registry(self):
        registry = GeneratorRegistry({"spark": LineSeriesGenerator()})
        assert registry.series_types() == ["spark"]
        assert registry.resolve("line") is None

    def test_registry_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry._generators["area"] = LineSeriesGenerator()

    def test_global_registry_is_shared(self):
        assert get_generator_registry() is get_generator_registry()
        assert "line" in get_generator_registry()


class TestComputeDelta:
    """Suffix generation"""

    def test_from_end_returns_none(self, line_records):
        assert compute_delta(LineSeriesGenerator(), line_records, len(line_records)) is None
        assert compute_delta(LineSeriesGenerator(), line_records, len(line_records) + 5) is None

    def test_from_zero_matches_full_render(self, line_records):
        gen = LineSeriesGenerator()
        delta = compute_delta(gen, line_records, 0, series_id="price")
        full = gen.generate("price", line_records)
        assert delta.vertices.tolist() == full.vertices.tolist()

    def test_suffix_normalized_against_its_own_range(self, line_records):
        delta = compute_delta(LineSeriesGenerator(), line_records, 6)

        assert delta.vertex_count == 5
        # First and last suffix samples hit the corners of clip space
        assert delta.vertices[:2].tolist() == [-1.0, -1.0]
        assert delta.vertices[-2:].tolist() == [1.0, 1.0]

    def test_single_record_suffix(self, line_records):
        delta = compute_delta(LineSeriesGenerator(), line_records, len(line_records) - 1)
        assert delta.vertices.tolist() == [0.0, 0.0]

    def test_negative_index_rejected(self, line_records):
        with pytest.raises(ValueError):
            compute_delta(LineSeriesGenerator(), line_records, -1)

    def test_non_integer_index_rejected(self, line_records):
        with pytest.raises(TypeError):
            compute_delta(LineSeriesGenerator(), line_records, 1.5)
        with pytest.raises(TypeError):
            compute_delta(LineSeriesGenerator(), line_records, True)

    def test_empty_collection(self):
        assert compute_delta(LineSeriesGenerator(), [], 0) is None


class TestIncrementalUpdateEngine:
    """Engine keyed by series type"""

    def test_delta_by_series_type(self, registry):
        bars = [
            OhlcRecord(timestamp=i, open=1.0, high=2.0, low=0.5, close=1.5)
            for i in range(4)
        ]
        engine = IncrementalUpdateEngine(registry)
        cmd = engine.delta("candlestick", bars, 1)

        assert cmd.series_id == "ohlc"
        assert cmd.vertices.size == 3 * 8
        assert np.all(np.abs(cmd.vertices) <= 1.0)

    def test_nothing_new(self, registry, line_records):
        engine = IncrementalUpdateEngine(registry)
        assert engine.delta("line", line_records, len(line_records)) is None

    def test_unknown_series_type(self, registry, line_records):
        engine = IncrementalUpdateEngine(registry)
        with pytest.raises(UnknownSeriesTypeError):
            engine.delta("area", line_records, 0)

    def test_index_validation_after_lookup(self, registry, line_records):
        engine = IncrementalUpdateEngine(registry)
        with pytest.raises(ValueError):
            engine.delta("line", line_records, -3)
