"""
Tests for Measurement Harness Module
"""

import csv
import itertools

import pytest
from unittest.mock import MagicMock
from tvp_benchmark.cases import CASES
from tvp_benchmark.config import BenchmarkParams
from tvp_benchmark.harness import (
    CSV_COLUMNS,
    BenchmarkResult,
    format_report,
    measure_case,
    time_invocations,
    write_csv,
)
from tvp_benchmark.recycling_buffer import RecyclingBuffer
from tvp_benchmark.utils import format_duration

PARAMS = BenchmarkParams(1000, 3, 100)


def fake_clock(step):
    """Clock advancing by step seconds on every call."""
    counter = itertools.count()
    return lambda: next(counter) * step


class TestBenchmarkResult:
    """Test derived statistics."""

    def test_statistics(self):
        result = BenchmarkResult('SimpleUDT', PARAMS, 1000, [0.001, 0.002, 0.003])

        assert result.mean == pytest.approx(0.002)
        assert result.median == pytest.approx(0.002)
        assert result.stddev == pytest.approx(0.001)
        assert result.min == pytest.approx(0.001)
        assert result.max == pytest.approx(0.003)
        assert result.ops_per_second == pytest.approx(500.0)

    def test_single_sample_has_zero_stddev(self):
        assert BenchmarkResult('StringSplit', PARAMS, 1, [0.5]).stddev == 0.0

    def test_as_dict_matches_csv_columns(self):
        result = BenchmarkResult('StringSplit', PARAMS, 1000, [0.001])
        row = result.as_dict()

        assert list(row) == CSV_COLUMNS
        assert row['iterations'] == 1
        assert row['data_row_count'] == 1000


class TestTimeInvocations:
    """Test warmup and timed invocations."""

    def test_warmup_not_timed(self):
        invoke = MagicMock()

        timings = time_invocations(invoke, warmup_count=2, iteration_count=3, clock=fake_clock(0.5))

        assert invoke.call_count == 5
        assert timings == [0.5, 0.5, 0.5]

    def test_no_warmup(self):
        invoke = MagicMock()
        timings = time_invocations(invoke, 0, 1, clock=fake_clock(1.0))

        assert invoke.call_count == 1
        assert timings == [1.0]

    def test_invocation_error_propagates(self):
        invoke = MagicMock(side_effect=Exception('Deadlock victim'))
        with pytest.raises(Exception, match='Deadlock victim'):
            time_invocations(invoke, 0, 3)


class TestMeasureCase:
    """Test measuring a case against a mocked cursor."""

    def test_samples_are_per_operation(self):
        cursor = MagicMock()
        structured = RecyclingBuffer([((1,),)])
        strings = RecyclingBuffer(['1'])

        result = measure_case(
            CASES['StringSplit'], cursor, structured, strings, PARAMS,
            operations_per_invoke=10, warmup_count=1, iteration_count=4,
            clock=fake_clock(2.0),
        )

        assert result.case == 'StringSplit'
        assert result.params == PARAMS
        assert result.samples == pytest.approx([0.2] * 4)
        # (1 warmup + 4 measured) x 10 operations
        assert cursor.execute.call_count == 50
        assert cursor.fetchall.call_count == 50

    def test_failure_aborts_measurement(self):
        cursor = MagicMock()
        cursor.execute.side_effect = Exception('Invalid object name')

        with pytest.raises(Exception, match='Invalid object name'):
            measure_case(
                CASES['SimplePKUDT'], cursor,
                RecyclingBuffer([((1,),)]), RecyclingBuffer(['1']),
                PARAMS, operations_per_invoke=5,
            )


class TestReport:
    """Test report formatting and CSV export."""

    @pytest.fixture
    def results(self):
        return [
            BenchmarkResult('StringSplit', PARAMS, 1000, [0.0004, 0.0006]),
            BenchmarkResult('MemoryOptHashUDT', PARAMS, 1000, [0.0002, 0.0002]),
        ]

    def test_format_report(self, results):
        lines = format_report(results).splitlines()

        assert len(lines) == 4
        assert lines[0].startswith('| Method')
        for column in ['DataRows', 'ParamRows', 'ParamCount', 'Mean', 'StdDev', 'Median', 'Op/s']:
            assert column in lines[0]
        assert set(lines[1]) <= {'|', '-'}
        assert lines[2].startswith('| StringSplit ')
        assert format_duration(0.0005) in lines[2]
        assert '5,000.0' in lines[3]

    def test_rows_have_equal_width(self, results):
        lines = format_report(results).splitlines()
        assert len({len(line) for line in lines}) == 1

    def test_empty_report_has_header(self):
        lines = format_report([]).splitlines()
        assert len(lines) == 2

    def test_write_csv(self, results, tmp_path):
        path = tmp_path / 'results.csv'

        count = write_csv(results, str(path))

        assert count == 2
        with open(path, newline='', encoding='utf-8') as handle:
            rows = list(csv.DictReader(handle))
        assert [row['case'] for row in rows] == ['StringSplit', 'MemoryOptHashUDT']
        assert float(rows[1]['ops_per_second']) == pytest.approx(5000.0)
