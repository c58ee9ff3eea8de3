"""
SQL Server ID-List Benchmark

This package measures five ways of passing a set of row ids into a SQL
Server query: STRING_SPLIT over a delimited string, and table-valued
parameters of four table types (plain, primary-keyed, memory-optimized,
memory-optimized hash).

Modules:
- config: Connection settings and benchmark parameters from the environment
- odbc_helper: pyodbc connection wrapper holding the session connection
- ddl_generator: DDL for the scratch database, table types and TestData
- recycling_buffer: Round-robin pool of pre-built parameter values
- fixture: Provision the database, seed rows, build parameter sets
- cases: The five strategies and the per-invocation query loop
- harness: Timing, statistics and result reporting
- validation: Optional check that all strategies return the same rows
- suite: Run the full sweep and print the summary

Performance Options:
- OPERATIONS_PER_INVOKE=N: Queries per measured invocation
- BENCHMARK_PARALLEL=true: Run cases concurrently, one connection each
"""

__version__ = "1.0.0"

from tvp_benchmark import config
from tvp_benchmark import recycling_buffer
from tvp_benchmark import ddl_generator
from tvp_benchmark import odbc_helper
from tvp_benchmark import fixture
from tvp_benchmark import cases
from tvp_benchmark import harness
from tvp_benchmark import validation
from tvp_benchmark import suite

__all__ = [
    "config",
    "recycling_buffer",
    "ddl_generator",
    "odbc_helper",
    "fixture",
    "cases",
    "harness",
    "validation",
    "suite",
]
