"""
Sample data generator

Writes random-walk series for local runs:
    data/sample_data.json  [{"timestamp", "value"}, ...]
    data/sample_ohlc.json  [{"timestamp", "open", "high", "low", "close"}, ...]
"""

import argparse
import json
import time
from pathlib import Path

import numpy as np


def random_walk(n: int, start: float, rng: np.random.Generator) -> np.ndarray:
    steps = (rng.random(n) - 0.5) * 2
    return start + np.cumsum(steps)


def time_value_series(n: int, delta_ms: int, start_ts: int, rng: np.random.Generator) -> list:
    values = random_walk(n, 100.0, rng)
    return [
        {"timestamp": start_ts + i * delta_ms, "value": round(float(v), 2)}
        for i, v in enumerate(values)
    ]


def ohlc_series(n: int, delta_ms: int, start_ts: int, rng: np.random.Generator) -> list:
    closes = random_walk(n, 100.0, rng)
    opens = np.concatenate([[100.0], closes[:-1]])
    wick_up = rng.random(n) * 0.5
    wick_down = rng.random(n) * 0.5
    bars = []
    for i in range(n):
        o, c = float(opens[i]), float(closes[i])
        bars.append({
            "timestamp": start_ts + i * delta_ms,
            "open": round(o, 2),
            "high": round(max(o, c) + float(wick_up[i]), 2),
            "low": round(min(o, c) - float(wick_down[i]), 2),
            "close": round(c, 2),
        })
    return bars


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate sample chart data")
    parser.add_argument("--points", type=int, default=500, help="Records per series")
    parser.add_argument("--delta-ms", type=int, default=60_000, help="Milliseconds between records")
    parser.add_argument("--output-dir", type=str, default="data", help="Output directory")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args(argv)

    rng = np.random.default_rng(args.seed)
    start_ts = int(time.time() * 1000) - args.points * args.delta_ms
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    line_path = out_dir / "sample_data.json"
    ohlc_path = out_dir / "sample_ohlc.json"
    with open(line_path, 'w') as f:
        json.dump(time_value_series(args.points, args.delta_ms, start_ts, rng), f, indent=2)
    with open(ohlc_path, 'w') as f:
        json.dump(ohlc_series(args.points, args.delta_ms, start_ts, rng), f, indent=2)

    print(f"Wrote {args.points} points to {line_path}")
    print(f"Wrote {args.points} bars to {ohlc_path}")


if __name__ == "__main__":
    main()
