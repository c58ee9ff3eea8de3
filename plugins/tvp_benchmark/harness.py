"""
Measurement Harness Module

Times benchmark cases and summarizes the results.

Each case gets warmup invocations (discarded) followed by measured
invocations. An invocation runs operations_per_invoke queries; the recorded
sample is the invocation time divided by that count, i.e. the mean time of
a single query.
"""

from typing import Callable, Dict, Iterable, List, Optional
import csv
import logging
import statistics
import time

from tvp_benchmark.cases import BenchmarkCase, run_operations
from tvp_benchmark.config import BenchmarkParams
from tvp_benchmark.recycling_buffer import RecyclingBuffer
from tvp_benchmark.utils import format_duration

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    'Method', 'DataRows', 'ParamRows', 'ParamCount', 'Mean', 'StdDev', 'Median', 'Op/s',
]

CSV_COLUMNS = [
    'case', 'data_row_count', 'parameter_row_count', 'parameter_count',
    'operations_per_invoke', 'iterations', 'mean_s', 'stddev_s', 'median_s',
    'min_s', 'max_s', 'ops_per_second',
]


class BenchmarkResult:
    """Per-operation timings of one case at one point of the parameter sweep."""

    def __init__(
        self,
        case: str,
        params: BenchmarkParams,
        operations_per_invoke: int,
        samples: Optional[List[float]] = None,
    ):
        self.case = case
        self.params = params
        self.operations_per_invoke = operations_per_invoke
        self.samples: List[float] = list(samples or [])

    @property
    def mean(self) -> float:
        return statistics.mean(self.samples)

    @property
    def stddev(self) -> float:
        return statistics.stdev(self.samples) if len(self.samples) > 1 else 0.0

    @property
    def median(self) -> float:
        return statistics.median(self.samples)

    @property
    def min(self) -> float:
        return min(self.samples)

    @property
    def max(self) -> float:
        return max(self.samples)

    @property
    def ops_per_second(self) -> float:
        mean = self.mean
        return 1.0 / mean if mean > 0 else 0.0

    def as_dict(self) -> Dict[str, object]:
        return {
            'case': self.case,
            'data_row_count': self.params.data_row_count,
            'parameter_row_count': self.params.parameter_row_count,
            'parameter_count': self.params.parameter_count,
            'operations_per_invoke': self.operations_per_invoke,
            'iterations': len(self.samples),
            'mean_s': self.mean,
            'stddev_s': self.stddev,
            'median_s': self.median,
            'min_s': self.min,
            'max_s': self.max,
            'ops_per_second': self.ops_per_second,
        }

    def __repr__(self) -> str:
        return f"BenchmarkResult({self.case!r}, {self.params!r}, samples={len(self.samples)})"


def time_invocations(
    invoke: Callable[[], None],
    warmup_count: int,
    iteration_count: int,
    clock: Callable[[], float] = time.perf_counter,
) -> List[float]:
    """
    Run invoke warmup_count times untimed, then iteration_count times timed.

    Returns:
        Elapsed seconds of each timed invocation
    """
    for _ in range(warmup_count):
        invoke()

    timings = []
    for _ in range(iteration_count):
        t0 = clock()
        invoke()
        timings.append(clock() - t0)
    return timings


def measure_case(
    case: BenchmarkCase,
    cursor,
    structured_buffer: RecyclingBuffer,
    string_buffer: RecyclingBuffer,
    params: BenchmarkParams,
    operations_per_invoke: int,
    warmup_count: int = 1,
    iteration_count: int = 5,
    clock: Callable[[], float] = time.perf_counter,
) -> BenchmarkResult:
    """
    Measure one case against an open cursor.

    Args:
        case: Strategy to measure
        cursor: pyodbc cursor on the scratch database
        structured_buffer: Buffer of table-valued parameter rows
        string_buffer: Buffer of delimited id strings
        params: Fixture tunables, recorded in the result
        operations_per_invoke: Queries per invocation
        warmup_count: Unmeasured invocations
        iteration_count: Measured invocations
        clock: Time source

    Returns:
        BenchmarkResult with one per-operation sample per measured invocation
    """
    logger.info(f"Running {case.name} ({warmup_count} warmup, {iteration_count} x {operations_per_invoke} ops)")

    def invoke():
        run_operations(case, cursor, structured_buffer, string_buffer, operations_per_invoke)

    timings = time_invocations(invoke, warmup_count, iteration_count, clock)
    result = BenchmarkResult(
        case.name,
        params,
        operations_per_invoke,
        [elapsed / operations_per_invoke for elapsed in timings],
    )

    logger.info(
        f"✓ {case.name}: mean {format_duration(result.mean)}, "
        f"stddev {format_duration(result.stddev)}, {result.ops_per_second:,.0f} op/s"
    )
    return result


def format_report(results: Iterable[BenchmarkResult]) -> str:
    """
    Format results as a fixed-width summary table.

    Returns:
        Table text, header and separator included
    """
    rows = [REPORT_COLUMNS]
    for result in results:
        rows.append([
            result.case,
            str(result.params.data_row_count),
            str(result.params.parameter_row_count),
            str(result.params.parameter_count),
            format_duration(result.mean),
            format_duration(result.stddev),
            format_duration(result.median),
            f"{result.ops_per_second:,.1f}",
        ])

    widths = [max(len(row[i]) for row in rows) for i in range(len(REPORT_COLUMNS))]

    def render(row: List[str]) -> str:
        # Method left-aligned, numbers right-aligned
        cells = [row[0].ljust(widths[0])] + [cell.rjust(width) for cell, width in zip(row[1:], widths[1:])]
        return '| ' + ' | '.join(cells) + ' |'

    separator = '|' + '|'.join('-' * (width + 2) for width in widths) + '|'
    lines = [render(rows[0]), separator]
    lines.extend(render(row) for row in rows[1:])
    return '\n'.join(lines)


def write_csv(results: Iterable[BenchmarkResult], path: str) -> int:
    """
    Write results to a CSV file.

    Args:
        results: Results to export
        path: Destination file, overwritten

    Returns:
        Number of data rows written
    """
    count = 0
    with open(path, 'w', newline='', encoding='utf-8') as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for result in results:
            writer.writerow(result.as_dict())
            count += 1
    logger.info(f"Wrote {count} result rows to {path}")
    return count
