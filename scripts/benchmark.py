#!/usr/bin/env python3
"""
Fluxion Dispatch Benchmarks

Measures how many actions per second travel from an action channel through a
reducer to subscribers, for a root store, nested slices, a fan-out of slice
subscribers and connected components. A reactivex BehaviorSubject fold is run
as a baseline.

Usage:
    python scripts/benchmark.py            # Run all benchmarks
    python scripts/benchmark.py --config   # Show current benchmark configuration
    python scripts/benchmark.py --quiet    # Only show the final table

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fluxion import ActionChannel, Store, connect

try:
    from reactivex.subject import BehaviorSubject, Subject

    REACTIVEX_AVAILABLE = True
except ImportError:
    REACTIVEX_AVAILABLE = False

# Configuration constants - adjust these to change benchmark behavior
TIME_LIMIT_SECONDS = 0.5  # Stop scaling once one run takes this long
STARTING_N = 100  # Starting number of dispatched actions
SCALE_FACTOR = 2.0  # How much to multiply N by each iteration
SLICE_DEPTH = 5  # Nesting depth for the nested slice benchmark
FANOUT_SIZE = 100  # Subscribers for the fan-out benchmark


@dataclass
class BenchmarkResult:
    """Largest workload finished within the time limit."""

    max_n: int
    elapsed: float

    @property
    def operations_per_second(self) -> float:
        return self.max_n / self.elapsed if self.elapsed else 0.0


class _CounterView:
    def __init__(self, count=0, on_increment=None):
        self.count = count
        self.on_increment = on_increment

    def render(self):
        return self.count


def _nested_state(depth: int) -> Dict:
    state: Dict = {"count": 0}
    for _ in range(depth):
        state = {"child": state, "sibling": "untouched"}
    return state


def bench_root_dispatch(n: int) -> None:
    store = Store.create(0)
    increment = ActionChannel()
    store.add_reducer(increment, lambda state, _: state + 1)
    store.select().subscribe(lambda value: None)
    for _ in range(n):
        increment.next()


def bench_nested_slice_dispatch(n: int) -> None:
    store = Store.create(_nested_state(SLICE_DEPTH))
    target = store
    for _ in range(SLICE_DEPTH):
        target = target.create_slice("child")
    counter = target.create_slice("count")
    increment = ActionChannel()
    counter.add_reducer(increment, lambda state, _: state + 1)
    counter.select().subscribe(lambda value: None)
    for _ in range(n):
        increment.next()


def bench_slice_fanout(n: int) -> None:
    store = Store.create({"count": 0, "other": 0})
    increment = ActionChannel()
    store.create_slice("count").add_reducer(increment, lambda state, _: state + 1)
    for _ in range(FANOUT_SIZE):
        store.create_slice("other").select().subscribe(lambda value: None)
    for _ in range(n):
        increment.next()


def bench_connected_component(n: int) -> None:
    store = Store.create({"count": 0})
    increment = ActionChannel()
    store.create_slice("count").add_reducer(increment, lambda state, _: state + 1)
    Counter = connect(
        _CounterView,
        lambda s: {
            "props": s.create_slice("count").watch(lambda count: {"count": count}),
            "action_map": {"on_increment": increment},
        },
    )
    view = Counter().mount(store=store)
    for _ in range(n):
        view.element.on_increment()
    view.unmount()


def bench_reactivex_baseline(n: int) -> None:
    state = BehaviorSubject(0)
    increment = Subject()
    increment.subscribe(lambda _: state.on_next(state.value + 1))
    state.subscribe(lambda value: None)
    for _ in range(n):
        increment.on_next(None)


def run_scaled(benchmark: Callable[[int], None]) -> BenchmarkResult:
    """Grow the workload until a single run exceeds the time limit."""
    n = STARTING_N
    result = BenchmarkResult(0, 0.0)
    while True:
        start = time.perf_counter()
        benchmark(n)
        elapsed = time.perf_counter() - start
        result = BenchmarkResult(n, elapsed)
        if elapsed >= TIME_LIMIT_SECONDS:
            return result
        n = int(n * SCALE_FACTOR)


class FluxionBenchmark:
    """Rich-formatted runner for the dispatch benchmarks."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: List[Tuple[str, BenchmarkResult]] = []

    def benchmarks(self) -> List[Tuple[str, Callable[[int], None]]]:
        suite = [
            ("Root store dispatch", bench_root_dispatch),
            (f"Nested slice dispatch (depth {SLICE_DEPTH})", bench_nested_slice_dispatch),
            (f"Slice fan-out ({FANOUT_SIZE} subscribers)", bench_slice_fanout),
            ("Connected component", bench_connected_component),
        ]
        if REACTIVEX_AVAILABLE:
            suite.append(("reactivex BehaviorSubject baseline", bench_reactivex_baseline))
        return suite

    def run_benchmarks(self) -> None:
        start_time = time.time()
        self._display_header()

        for name, benchmark in self.benchmarks():
            if not self.quiet:
                self.console.print(f"[yellow]Running {name}...[/yellow]")
            result = run_scaled(benchmark)
            self.results.append((name, result))
            if not self.quiet:
                self.console.print(
                    f"[green]✓[/green] {name}: {result.operations_per_second:,.0f} actions/sec"
                )

        if not REACTIVEX_AVAILABLE:
            self.console.print("[dim]reactivex not installed, baseline skipped[/dim]")

        self._display_final_results(start_time)

    def _display_header(self) -> None:
        header = Panel(
            Align.center("Fluxion Dispatch Benchmarks"),
            border_style="blue",
        )
        self.console.print(header)
        self.console.print()

    def _display_final_results(self, start_time: float) -> None:
        table = Table(title="Final Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Max Workload", style="magenta", justify="right")
        table.add_column("Performance", style="green", justify="right")
        table.add_column("Latency", style="yellow", justify="right")

        for name, result in self.results:
            latency_us = (result.elapsed / max(result.max_n, 1)) * 1e6
            table.add_row(
                name,
                f"{result.max_n:,} actions",
                f"{result.operations_per_second / 1000:.1f}K actions/sec",
                f"{latency_us:.2f}μs",
            )

        self.console.print()
        self.console.print(table)
        elapsed = time.time() - start_time
        self.console.print(f"[dim]Benchmark completed in {elapsed:.2f} seconds[/dim]")


def print_config() -> None:
    """Print the benchmark configuration."""
    print("Benchmark configuration:")
    print(f"  TIME_LIMIT_SECONDS = {TIME_LIMIT_SECONDS}")
    print(f"  STARTING_N         = {STARTING_N}")
    print(f"  SCALE_FACTOR       = {SCALE_FACTOR}")
    print(f"  SLICE_DEPTH        = {SLICE_DEPTH}")
    print(f"  FANOUT_SIZE        = {FANOUT_SIZE}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="Fluxion Dispatch Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )
    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    FluxionBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()
