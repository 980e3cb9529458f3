#!/usr/bin/env python3
"""
Micro-benchmark for Depth Monitor performance.

Tests:
1. Snapshot metrics throughput (compute)
2. History buffer push throughput
3. Chart frame generation speed
4. Table frame generation speed

Usage:
    python -m depth_monitor.benchmark
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timedelta, timezone
from statistics import mean, stdev

from .engine.history import HistoryBuffer
from .engine.metrics import compute
from .types import BookLevel, BookSnapshot, MetricsRecord
from .ui.frames import BookChartRenderer, BookTableRenderer


def generate_mock_snapshot(base_price: float = 600.0, levels: int = 20) -> BookSnapshot:
    """Generate a mock L2 snapshot (Hyperliquid sends 20 levels per side)."""
    tick_size = 0.01

    bids = []
    asks = []

    for i in range(levels):
        bid_price = base_price - (i + 1) * tick_size
        ask_price = base_price + (i + 1) * tick_size

        bids.append(BookLevel(f"{bid_price:.2f}", f"{random.uniform(1, 100):.3f}", random.randint(1, 20)))
        asks.append(BookLevel(f"{ask_price:.2f}", f"{random.uniform(1, 100):.3f}", random.randint(1, 20)))

    return BookSnapshot(
        coin="BNB",
        time_ms=int(time.time() * 1000),
        bids=tuple(bids),
        asks=tuple(asks),
    )


def generate_mock_history(count: int = 100, base_price: float = 600.0) -> tuple[MetricsRecord, ...]:
    """Records one second apart with a random-walk mid."""
    start = datetime.now(timezone.utc)
    records = []
    price = base_price
    for i in range(count):
        price += random.uniform(-0.05, 0.05)
        records.append(compute(
            generate_mock_snapshot(price),
            observed_at=start + timedelta(seconds=i),
        ))
    return tuple(records)


def benchmark_compute(iterations: int = 10000) -> float:
    """Benchmark snapshot metrics throughput. Returns snapshots/sec."""
    print("\n=== Snapshot Metrics Benchmark ===")

    # Pre-generate snapshots
    snapshots = [generate_mock_snapshot(600.0 + random.uniform(-1, 1)) for _ in range(iterations)]

    # Warm up
    for s in snapshots[:100]:
        compute(s)

    # Benchmark
    start = time.perf_counter()
    for s in snapshots:
        compute(s)
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Snapshots computed: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} snapshots/sec")
    print(f"  Per snapshot: {elapsed/iterations*1_000_000:.1f}µs")
    return rate


def benchmark_history_push(iterations: int = 100000, capacity: int = 100) -> float:
    """Benchmark history push + view throughput. Returns pushes/sec."""
    print("\n=== History Buffer Benchmark ===")

    history: HistoryBuffer[MetricsRecord] = HistoryBuffer(capacity)
    record = compute(generate_mock_snapshot())

    start = time.perf_counter()
    for _ in range(iterations):
        history.push(record)
    elapsed = time.perf_counter() - start

    view_start = time.perf_counter()
    history.snapshot_view()
    view_elapsed = time.perf_counter() - view_start

    rate = iterations / elapsed
    print(f"  Records pushed: {iterations:,} (capacity {capacity})")
    print(f"  Rate: {rate:,.0f} pushes/sec")
    print(f"  View copy: {view_elapsed*1_000_000:.1f}µs")
    return rate


def _benchmark_frames(renderer, title: str, iterations: int) -> float:
    print(f"\n=== {title} ===")

    view = generate_mock_history()

    # Warm up
    for _ in range(5):
        renderer.draw(view, (120, 40))

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        renderer.draw(view, (120, 40))
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max FPS possible: {1000/avg_time:,.0f}")
    return avg_time


def benchmark_chart_frame(iterations: int = 500) -> float:
    """Benchmark graph-book frame generation. Returns avg ms per frame."""
    return _benchmark_frames(BookChartRenderer("BNB"), "Chart Frame Benchmark", iterations)


def benchmark_table_frame(iterations: int = 500) -> float:
    """Benchmark watch-book frame generation. Returns avg ms per frame."""
    renderer = BookTableRenderer(sz_decimals=3, levels=5, show_extra_data=True)
    return _benchmark_frames(renderer, "Table Frame Benchmark", iterations)


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Depth Monitor Performance Benchmark")
    print("=" * 60)

    benchmark_compute()
    benchmark_history_push()
    benchmark_chart_frame()
    benchmark_table_frame()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
