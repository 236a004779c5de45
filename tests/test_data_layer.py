"""
Tests for the JSON loader, the snapshot store and server configuration
"""

import asyncio
import json

import pytest

from chartstream.data_layer import (
    ChartDataStore,
    load_ohlc_records,
    load_time_value_records,
)
from chartstream.data_layer.loader import parse_ohlc_records, parse_records, parse_time_value_records
from chartstream.render_engine import OhlcRecord, RecordKind, TimeValueRecord
from chartstream.stream.config import StreamConfig


@pytest.fixture
def line_file(tmp_path):
    path = tmp_path / "line.json"
    path.write_text(json.dumps([
        {"timestamp": 1000, "value": 1.5},
        {"timestamp": 2000, "value": 2.5},
        {"timestamp": 3000, "value": 0.5},
    ]))
    return path


@pytest.fixture
def ohlc_file(tmp_path):
    path = tmp_path / "ohlc.json"
    path.write_text(json.dumps([
        {"timestamp": 1000, "open": 1, "high": 2, "low": 0.5, "close": 1.5},
        {"timestamp": 2000, "open": 1.5, "high": 3, "low": 1, "close": 2},
    ]))
    return path


class TestLoader:
    """Loading records from files and JSON text"""

    def test_load_time_value_file(self, line_file):
        records = load_time_value_records(line_file)
        assert records == [
            TimeValueRecord(1000, 1.5),
            TimeValueRecord(2000, 2.5),
            TimeValueRecord(3000, 0.5),
        ]

    def test_load_ohlc_file(self, ohlc_file):
        records = load_ohlc_records(str(ohlc_file))
        assert len(records) == 2
        assert records[0] == OhlcRecord(timestamp=1000, open=1.0, high=2.0, low=0.5, close=1.5)

    def test_load_from_json_text(self):
        records = load_time_value_records('[{"timestamp": 5, "value": 9}]')
        assert records == [TimeValueRecord(5, 9.0)]

    def test_missing_file(self, tmp_path):
        assert load_time_value_records(tmp_path / "nope.json") == []
        assert load_ohlc_records(tmp_path / "nope.json") == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{\"timestamp\": 1,")
        assert load_time_value_records(path) == []

    def test_non_array_payload(self, tmp_path):
        path = tmp_path / "object.json"
        path.write_text(json.dumps({"timestamp": 1, "value": 2}))
        assert load_time_value_records(path) == []
        assert load_ohlc_records('{"data": []}') == []

    def test_malformed_elements_skipped(self):
        payload = [
            {"timestamp": 1, "value": 1.0},
            {"timestamp": 2},
            {"value": 3.0},
            {"timestamp": "3", "value": 3.0},
            {"timestamp": 4, "value": "4"},
            {"timestamp": 5, "value": True},
            {"timestamp": 6.5, "value": 6.0},
            "not an object",
            {"timestamp": 7.0, "value": 7},
        ]
        records = parse_time_value_records(payload)
        assert records == [TimeValueRecord(1, 1.0), TimeValueRecord(7, 7.0)]

    def test_non_finite_values_skipped(self):
        records = load_time_value_records(
            '[{"timestamp": 1, "value": NaN}, {"timestamp": 2, "value": Infinity}, {"timestamp": 3, "value": 3}]'
        )
        assert records == [TimeValueRecord(3, 3.0)]

    def test_ohlc_missing_price_skipped(self):
        payload = [
            {"timestamp": 1, "open": 1, "high": 2, "low": 0, "close": 1},
            {"timestamp": 2, "open": 1, "high": 2, "close": 1},
        ]
        assert len(parse_ohlc_records(payload)) == 1

    def test_inconsistent_bar_kept(self):
        payload = [{"timestamp": 1, "open": 5, "high": 1, "low": 9, "close": 6}]
        assert parse_ohlc_records(payload)[0].high == 1.0

    def test_order_preserved(self):
        payload = [{"timestamp": t, "value": 0} for t in (30, 10, 20)]
        assert [r.timestamp for r in parse_time_value_records(payload)] == [30, 10, 20]

    def test_parse_records_dispatch(self):
        bars = parse_records(RecordKind.OHLC, [{"timestamp": 1, "open": 1, "high": 1, "low": 1, "close": 1}])
        samples = parse_records(RecordKind.TIME_VALUE, [{"timestamp": 1, "value": 1}])
        assert isinstance(bars[0], OhlcRecord)
        assert isinstance(samples[0], TimeValueRecord)


class TestChartDataStore:
    """Snapshot swapping"""

    def test_starts_empty(self):
        store = ChartDataStore()
        assert store.snapshot.generation == 0
        assert store.snapshot.time_value == ()
        assert store.snapshot.ohlc == ()

    def test_from_records(self):
        store = ChartDataStore.from_records(time_value=[TimeValueRecord(1, 1.0)])
        assert store.snapshot.generation == 1
        assert store.snapshot.records(RecordKind.TIME_VALUE) == (TimeValueRecord(1, 1.0),)
        assert store.snapshot.records(RecordKind.OHLC) == ()

    def test_reload_swaps_generation(self, line_file, ohlc_file):
        store = ChartDataStore(line_source=line_file, ohlc_source=ohlc_file)
        first = store.reload()
        assert first.generation == 1
        assert len(first.time_value) == 3
        assert len(first.ohlc) == 2

        line_file.write_text(json.dumps([{"timestamp": 1, "value": 1}]))
        second = store.reload()

        assert second.generation == 2
        assert len(second.time_value) == 1
        # Earlier snapshot is untouched
        assert len(first.time_value) == 3
        assert store.get_stats()["reload_count"] == 2

    def test_reload_missing_source_gives_empty_series(self, tmp_path):
        store = ChartDataStore(line_source=tmp_path / "missing.json")
        snapshot = store.reload()
        assert snapshot.time_value == ()
        assert snapshot.generation == 1

    def test_replace_keeps_other_series(self):
        store = ChartDataStore.from_records(
            time_value=[TimeValueRecord(1, 1.0)],
            ohlc=[OhlcRecord(1, 1.0, 1.0, 1.0, 1.0)],
        )
        snapshot = store.replace(time_value=[TimeValueRecord(2, 2.0)])
        assert snapshot.generation == 2
        assert snapshot.time_value == (TimeValueRecord(2, 2.0),)
        assert len(snapshot.ohlc) == 1

    def test_reloader_rejects_non_positive_interval(self):
        store = ChartDataStore()
        with pytest.raises(ValueError):
            asyncio.run(store.run_reloader(0))

    def test_reloader_reloads_until_cancelled(self, line_file):
        store = ChartDataStore(line_source=line_file)

        async def scenario():
            task = asyncio.create_task(store.run_reloader(0.01))
            await asyncio.sleep(0.2)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        asyncio.run(scenario())
        assert store.snapshot.generation >= 1
        assert len(store.snapshot.time_value) == 3


class TestStreamConfig:
    """Server configuration"""

    def test_defaults(self):
        config = StreamConfig()
        assert config.port == 9001
        assert config.refresh_interval_s == 10.0
        assert config.reload_interval_s == 0.0
        assert config.render.pane == "main"

    def test_from_env(self):
        config = StreamConfig.from_env({
            "CHARTSTREAM_PORT": "9100",
            "CHARTSTREAM_LINE_DATA": "/tmp/line.json",
            "CHARTSTREAM_REFRESH_INTERVAL_S": "2.5",
            "CHARTSTREAM_LOG_LEVEL": "debug",
        })
        assert config.port == 9100
        assert str(config.line_data_path) == "/tmp/line.json"
        assert config.refresh_interval_s == 2.5
        assert config.log_level == "DEBUG"
        assert config.host == "0.0.0.0"

    def test_empty_env_values_use_defaults(self):
        config = StreamConfig.from_env({"CHARTSTREAM_PORT": ""})
        assert config.port == 9001

    @pytest.mark.parametrize("kwargs", [
        {"refresh_interval_s": 0},
        {"reload_interval_s": -1},
        {"port": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            StreamConfig(**kwargs)

    def test_config_hash_stable(self):
        assert StreamConfig().get_config_hash() == StreamConfig().get_config_hash()
        assert StreamConfig(port=9002).get_config_hash() != StreamConfig().get_config_hash()
