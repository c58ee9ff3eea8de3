"""
Benchmark Suite Module

Runs every selected case against a fresh fixture for each point of the
parameter sweep and prints the summary table.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence
import logging
import sys

from tvp_benchmark.cases import BenchmarkCase, select_cases
from tvp_benchmark.config import BenchmarkConfig
from tvp_benchmark.fixture import Fixture, FixtureBuilder
from tvp_benchmark.harness import BenchmarkResult, format_report, measure_case, write_csv
from tvp_benchmark.validation import verify_strategies_agree

logger = logging.getLogger(__name__)


def run_sequential(
    fixture: Fixture,
    cases: Sequence[BenchmarkCase],
    config: BenchmarkConfig,
) -> List[BenchmarkResult]:
    """
    Measure cases one after another on the fixture's session connection.

    All cases share the fixture's two buffers, each continuing where the
    previous case left the cursor.
    """
    cursor = fixture.session.get_conn().cursor()
    try:
        return [
            measure_case(
                case,
                cursor,
                fixture.structured_buffer,
                fixture.string_buffer,
                fixture.params,
                config.operations_per_invoke,
                config.warmup_count,
                config.iteration_count,
            )
            for case in cases
        ]
    finally:
        cursor.close()


def _measure_isolated(
    builder: FixtureBuilder,
    fixture: Fixture,
    case: BenchmarkCase,
    config: BenchmarkConfig,
) -> BenchmarkResult:
    # Own connection and own buffers; nothing mutable is shared between threads
    structured_buffer, string_buffer = fixture.new_buffers()
    with builder.session_helper() as session:
        cursor = session.get_conn().cursor()
        return measure_case(
            case,
            cursor,
            structured_buffer,
            string_buffer,
            fixture.params,
            config.operations_per_invoke,
            config.warmup_count,
            config.iteration_count,
        )


def run_parallel(
    builder: FixtureBuilder,
    fixture: Fixture,
    cases: Sequence[BenchmarkCase],
    config: BenchmarkConfig,
) -> List[BenchmarkResult]:
    """
    Measure cases concurrently, one thread and one connection per case.

    Cases compete for the same server, so timings are only comparable with
    other parallel runs. Results are returned in case order; the first
    failure is re-raised.
    """
    logger.info(f"Running {len(cases)} cases in parallel")
    with ThreadPoolExecutor(max_workers=len(cases)) as executor:
        futures = [
            executor.submit(_measure_isolated, builder, fixture, case, config)
            for case in cases
        ]
        return [future.result() for future in futures]


def run_suite(
    config: BenchmarkConfig,
    builder: Optional[FixtureBuilder] = None,
) -> List[BenchmarkResult]:
    """
    Run the full benchmark suite.

    Args:
        config: Benchmark configuration
        builder: Fixture builder (one is created from config if omitted)

    Returns:
        One BenchmarkResult per case per sweep point
    """
    cases = select_cases(config.cases)
    builder = builder or FixtureBuilder(config)
    results: List[BenchmarkResult] = []

    for params in config.sweep():
        print(f"\n=== {params.data_row_count:,} rows, "
              f"{params.parameter_count} sets of {params.parameter_row_count} ids ===")

        fixture = builder.setup(params)
        try:
            if config.verify:
                verify_strategies_agree(fixture, cases)

            if config.parallel:
                results.extend(run_parallel(builder, fixture, cases, config))
            else:
                results.extend(run_sequential(fixture, cases, config))
        finally:
            builder.teardown(fixture)

    return results


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )

    print("=" * 60)
    print("    SQL SERVER ID-LIST BENCHMARK: STRING_SPLIT vs TVP")
    print("=" * 60)

    config = BenchmarkConfig.from_env()
    try:
        results = run_suite(config)
    except Exception as e:
        logger.error(f"✗ Benchmark failed: {e}", exc_info=True)
        return 1

    print("\n" + "=" * 60)
    print("    RESULTS SUMMARY")
    print("=" * 60 + "\n")
    print(format_report(results))

    if config.results_csv:
        write_csv(results, config.results_csv)

    return 0
