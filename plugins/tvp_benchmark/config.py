"""
Benchmark Configuration Module

This module reads connection settings and benchmark parameters from
environment variables so the suite can be pointed at any SQL Server
instance without editing code.

Set these environment variables before running:
- MSSQL_HOST, MSSQL_PORT, MSSQL_USERNAME, MSSQL_PASSWORD, MSSQL_DRIVER
- BENCHMARK_DATABASE, BENCHMARK_DATA_DIR
- TEST_DATA_ROW_COUNT, TEST_PARAMETER_ROW_COUNT, TEST_PARAMETER_COUNT
  (each accepts a comma-separated list to sweep several values)
- OPERATIONS_PER_INVOKE, BENCHMARK_WARMUP_COUNT, BENCHMARK_ITERATION_COUNT
- BENCHMARK_CASES, BENCHMARK_PARALLEL, BENCHMARK_VERIFY,
  BENCHMARK_DROP_DATABASE, BENCHMARK_RESULTS_CSV, BENCHMARK_SEED

Or use the default test values if not set.
"""

from typing import Dict, List, Mapping, Optional
import itertools
import logging
import os

from tvp_benchmark.utils import validate_sql_identifier

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = '{ODBC Driver 18 for SQL Server}'
DEFAULT_PORT = 1433


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_int(name: str, value: str, minimum: int = 1) -> int:
    """
    Parse a positive integer setting.

    Raises:
        ValueError: If the value is not an integer or is below minimum
    """
    try:
        parsed = int(value.strip())
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name}: expected an integer, got {value!r}")
    if parsed < minimum:
        raise ValueError(f"Invalid {name}: must be >= {minimum}, got {parsed}")
    return parsed


def _parse_int_list(name: str, value: str) -> List[int]:
    """Parse a comma-separated sweep such as '1000,10000' into distinct ints."""
    values: List[int] = []
    for part in value.split(','):
        if not part.strip():
            continue
        parsed = _parse_int(name, part)
        if parsed not in values:
            values.append(parsed)
    if not values:
        raise ValueError(f"Invalid {name}: no values given")
    return values


class ConnectionSettings:
    """SQL Server connection settings used to build ODBC connection strings."""

    def __init__(
        self,
        host: str = 'localhost',
        port: int = DEFAULT_PORT,
        username: Optional[str] = 'sa',
        password: Optional[str] = None,
        driver: str = DEFAULT_DRIVER,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.driver = driver

    def odbc_config(self, database: str = 'master') -> Dict[str, str]:
        """
        Build the ODBC key/value configuration for a database.

        Args:
            database: Database to connect to

        Returns:
            Dictionary with ODBC connection parameters
        """
        port = self.port or DEFAULT_PORT
        server = f"{self.host},{port}" if port != DEFAULT_PORT else self.host

        config = {
            'DRIVER': self.driver,
            'SERVER': server,
            'DATABASE': database,
            'TrustServerCertificate': 'yes',
        }

        # SQL Server Authentication when a login is configured, otherwise Windows Auth
        if self.username:
            config['UID'] = self.username
            config['PWD'] = self.password or ''
            config['Trusted_Connection'] = 'no'
        else:
            config['Trusted_Connection'] = 'yes'

        return config

    def __repr__(self) -> str:
        return f"ConnectionSettings(host={self.host!r}, port={self.port}, username={self.username!r})"


class BenchmarkParams:
    """One point of the parameter sweep: the three tunables of a fixture."""

    def __init__(self, data_row_count: int, parameter_row_count: int, parameter_count: int):
        self.data_row_count = data_row_count
        self.parameter_row_count = parameter_row_count
        self.parameter_count = parameter_count

    def as_dict(self) -> Dict[str, int]:
        return {
            'data_row_count': self.data_row_count,
            'parameter_row_count': self.parameter_row_count,
            'parameter_count': self.parameter_count,
        }

    def __eq__(self, other) -> bool:
        return isinstance(other, BenchmarkParams) and self.as_dict() == other.as_dict()

    def __repr__(self) -> str:
        return (
            f"BenchmarkParams(data_row_count={self.data_row_count}, "
            f"parameter_row_count={self.parameter_row_count}, "
            f"parameter_count={self.parameter_count})"
        )


class BenchmarkConfig:
    """
    Full configuration of a benchmark session.

    The three tunables are lists so a session can sweep several values;
    every combination is benchmarked against its own freshly built fixture.
    """

    def __init__(
        self,
        connection: Optional[ConnectionSettings] = None,
        database: str = 'MyTestDataBase',
        data_dir: str = '/var/opt/mssql/data',
        data_row_counts: Optional[List[int]] = None,
        parameter_row_counts: Optional[List[int]] = None,
        parameter_counts: Optional[List[int]] = None,
        operations_per_invoke: int = 1000,
        warmup_count: int = 1,
        iteration_count: int = 5,
        cases: Optional[List[str]] = None,
        parallel: bool = False,
        verify: bool = False,
        drop_database: bool = False,
        results_csv: Optional[str] = None,
        seed: Optional[int] = None,
    ):
        self.connection = connection or ConnectionSettings()
        self.database = validate_sql_identifier(database, "database name")
        self.data_dir = data_dir
        self.data_row_counts = data_row_counts or [1000]
        self.parameter_row_counts = parameter_row_counts or [3]
        self.parameter_counts = parameter_counts or [100]
        self.operations_per_invoke = operations_per_invoke
        self.warmup_count = warmup_count
        self.iteration_count = iteration_count
        self.cases = cases
        self.parallel = parallel
        self.verify = verify
        self.drop_database = drop_database
        self.results_csv = results_csv
        self.seed = seed

        if operations_per_invoke < 1:
            raise ValueError(f"operations_per_invoke must be >= 1, got {operations_per_invoke}")
        if warmup_count < 0:
            raise ValueError(f"warmup_count must be >= 0, got {warmup_count}")
        if iteration_count < 1:
            raise ValueError(f"iteration_count must be >= 1, got {iteration_count}")

    def sweep(self) -> List[BenchmarkParams]:
        """Return every combination of the swept tunables, in declaration order."""
        return [
            BenchmarkParams(rows, param_rows, param_count)
            for rows, param_rows, param_count in itertools.product(
                self.data_row_counts,
                self.parameter_row_counts,
                self.parameter_counts,
            )
        ]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'BenchmarkConfig':
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            BenchmarkConfig instance

        Raises:
            ValueError: If any setting is malformed
        """
        env = os.environ if environ is None else environ

        connection = ConnectionSettings(
            host=env.get('MSSQL_HOST', 'localhost'),
            port=_parse_int('MSSQL_PORT', env.get('MSSQL_PORT', str(DEFAULT_PORT))),
            username=env.get('MSSQL_USERNAME', 'sa') or None,
            password=env.get('MSSQL_PASSWORD', 'smetana2018_'),
            driver=env.get('MSSQL_DRIVER', DEFAULT_DRIVER),
        )

        cases_value = env.get('BENCHMARK_CASES', '')
        cases = [c.strip() for c in cases_value.split(',') if c.strip()] or None

        seed_value = env.get('BENCHMARK_SEED', '').strip()
        seed = _parse_int('BENCHMARK_SEED', seed_value, minimum=0) if seed_value else None

        config = cls(
            connection=connection,
            database=env.get('BENCHMARK_DATABASE', 'MyTestDataBase'),
            data_dir=env.get('BENCHMARK_DATA_DIR', '/var/opt/mssql/data'),
            data_row_counts=_parse_int_list(
                'TEST_DATA_ROW_COUNT', env.get('TEST_DATA_ROW_COUNT', '1000')),
            parameter_row_counts=_parse_int_list(
                'TEST_PARAMETER_ROW_COUNT', env.get('TEST_PARAMETER_ROW_COUNT', '3')),
            parameter_counts=_parse_int_list(
                'TEST_PARAMETER_COUNT', env.get('TEST_PARAMETER_COUNT', '100')),
            operations_per_invoke=_parse_int(
                'OPERATIONS_PER_INVOKE', env.get('OPERATIONS_PER_INVOKE', '1000')),
            warmup_count=_parse_int(
                'BENCHMARK_WARMUP_COUNT', env.get('BENCHMARK_WARMUP_COUNT', '1'), minimum=0),
            iteration_count=_parse_int(
                'BENCHMARK_ITERATION_COUNT', env.get('BENCHMARK_ITERATION_COUNT', '5')),
            cases=cases,
            parallel=_parse_bool(env.get('BENCHMARK_PARALLEL')),
            verify=_parse_bool(env.get('BENCHMARK_VERIFY')),
            drop_database=_parse_bool(env.get('BENCHMARK_DROP_DATABASE')),
            results_csv=env.get('BENCHMARK_RESULTS_CSV') or None,
            seed=seed,
        )

        logger.debug(f"Loaded benchmark configuration: {config.connection}, database={config.database}")
        return config
