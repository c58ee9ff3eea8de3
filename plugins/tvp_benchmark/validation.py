"""
Result Agreement Validation Module

Measurement never checks query results. This module provides an optional
check, run before measuring, that every strategy returns the same ids for
the same parameter set.
"""

from typing import Any, Dict, List, Sequence
from datetime import datetime
import logging

from tvp_benchmark.cases import STRING_INPUT, BenchmarkCase
from tvp_benchmark.fixture import Fixture

logger = logging.getLogger(__name__)


def verify_strategies_agree(
    fixture: Fixture,
    cases: Sequence[BenchmarkCase],
) -> Dict[str, Any]:
    """
    Run every case once per parameter set and compare the returned ids.

    Queries go through the fixture's session helper, so a failing query is
    logged with its SQL and parameters. Values come straight from the
    fixture's parameter sets and the benchmark buffers are left untouched.

    Args:
        fixture: Fixture whose parameter sets are checked
        cases: Cases to compare (at least two for a meaningful check)

    Returns:
        Validation result dictionary

    Raises:
        RuntimeError: If any parameter set yields different ids across cases
    """
    mismatches: List[Dict[str, Any]] = []

    for index, parameter_set in enumerate(fixture.parameter_sets):
        results = {}
        for case in cases:
            value = parameter_set.as_string() if case.input_kind == STRING_INPUT else parameter_set.rows
            rows = fixture.session.get_records(case.sql, case.bind(value))
            results[case.name] = sorted(row[0] for row in rows)

        distinct = {tuple(ids) for ids in results.values()}
        if len(distinct) > 1:
            mismatches.append({'index': index, 'ids': list(parameter_set.ids), 'results': results})
            logger.warning(f"✗ Parameter set {index} {list(parameter_set.ids)}: cases disagree: {results}")

    if mismatches:
        raise RuntimeError(
            f"{len(mismatches)} of {len(fixture.parameter_sets)} parameter sets returned "
            f"different rows across cases"
        )

    logger.info(
        f"✓ Result agreement passed: {len(fixture.parameter_sets)} parameter sets, "
        f"{len(cases)} cases"
    )
    return {
        'sets_checked': len(fixture.parameter_sets),
        'cases': [case.name for case in cases],
        'validation_passed': True,
        'validation_time': datetime.now().isoformat(),
    }
