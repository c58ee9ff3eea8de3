"""
Benchmark Fixture Module

This module provisions the scratch database, seeds TestData with fake
names and pre-builds the pool of id sets every benchmark case draws from.

Each id set is materialized twice, as table-valued parameter rows and as a
semicolon-delimited string, and both forms are kept at the same index so
every strategy queries exactly the same ids.
"""

from typing import List, Optional, Sequence, Tuple
import logging
import random
import time

from faker import Faker

from tvp_benchmark.config import BenchmarkConfig, BenchmarkParams
from tvp_benchmark.ddl_generator import DDLGenerator
from tvp_benchmark.odbc_helper import OdbcConnectionHelper
from tvp_benchmark.recycling_buffer import RecyclingBuffer

logger = logging.getLogger(__name__)

ID_DELIMITER = ';'
INSERT_BATCH_SIZE = 10000


class ParameterSet:
    """A set of distinct TestData ids, in the order they were drawn."""

    def __init__(self, ids: Sequence[int]):
        self.ids: Tuple[int, ...] = tuple(ids)

    @property
    def rows(self) -> Tuple[Tuple[int], ...]:
        """Table-valued parameter rows: one single-column row per id."""
        return tuple((value,) for value in self.ids)

    def as_string(self) -> str:
        """Delimited form consumed by STRING_SPLIT."""
        return ID_DELIMITER.join(str(value) for value in self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __repr__(self) -> str:
        return f"ParameterSet({list(self.ids)})"


def validate_params(params: BenchmarkParams) -> None:
    """
    Reject tunables that cannot produce a fixture.

    Raises:
        ValueError: If a count is below 1, or more distinct ids are requested
            than the sampling range [0, data_row_count] holds
    """
    for name, value in params.as_dict().items():
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if params.parameter_row_count > params.data_row_count + 1:
        raise ValueError(
            f"parameter_row_count ({params.parameter_row_count}) exceeds the number of "
            f"distinct ids available in [0, {params.data_row_count}]"
        )


def sample_distinct_ids(rng: random.Random, count: int, upper: int) -> List[int]:
    """
    Draw count distinct integers uniformly from [0, upper], keeping draw order.

    Rejection sampling: duplicates are discarded and drawing continues until
    the set reaches the requested size. The upper bound is inclusive, so an id
    one past the last seeded row can be drawn.
    """
    seen = set()
    ids: List[int] = []
    while len(ids) < count:
        value = rng.randint(0, upper)
        if value not in seen:
            seen.add(value)
            ids.append(value)
    return ids


def generate_parameter_sets(params: BenchmarkParams, rng: Optional[random.Random] = None) -> List[ParameterSet]:
    """
    Generate parameter_count id sets of parameter_row_count distinct ids each.

    Args:
        params: Fixture tunables
        rng: Random source (a fresh unseeded one if omitted)

    Returns:
        List of ParameterSet
    """
    validate_params(params)
    rng = rng or random.Random()
    return [
        ParameterSet(sample_distinct_ids(rng, params.parameter_row_count, params.data_row_count))
        for _ in range(params.parameter_count)
    ]


def generate_names(faker: Faker, count: int) -> List[str]:
    """Generate count plausible 'First Last' names."""
    return [f"{faker.first_name()} {faker.last_name()}" for _ in range(count)]


class Fixture:
    """
    A provisioned database plus the pre-built parameter pool.

    The session connection and the two shared buffers are meant for one
    sequential benchmark loop. Parallel runners call new_buffers() to get an
    independent pair per case.
    """

    def __init__(
        self,
        params: BenchmarkParams,
        parameter_sets: List[ParameterSet],
        session: Optional[OdbcConnectionHelper] = None,
    ):
        self.params = params
        self.parameter_sets = parameter_sets
        self.session = session
        self.structured_buffer, self.string_buffer = self.new_buffers()

    def structured_values(self) -> List[Tuple[Tuple[int], ...]]:
        return [parameter_set.rows for parameter_set in self.parameter_sets]

    def string_values(self) -> List[str]:
        return [parameter_set.as_string() for parameter_set in self.parameter_sets]

    def new_buffers(self) -> Tuple[RecyclingBuffer, RecyclingBuffer]:
        """Build a fresh (structured, string) buffer pair with cursors at index 0."""
        return RecyclingBuffer(self.structured_values()), RecyclingBuffer(self.string_values())

    def __repr__(self) -> str:
        return f"Fixture({self.params!r}, parameter_sets={len(self.parameter_sets)})"


class FixtureBuilder:
    """Provision, seed and tear down the benchmark fixture."""

    def __init__(
        self,
        config: BenchmarkConfig,
        rng: Optional[random.Random] = None,
        faker: Optional[Faker] = None,
    ):
        """
        Initialize the fixture builder.

        Args:
            config: Benchmark configuration (connection, database, seed)
            rng: Random source for id sampling; seeded from config.seed if omitted
            faker: Faker instance for names; seeded from config.seed if omitted
        """
        self.config = config
        self.ddl = DDLGenerator(config.database, config.data_dir)
        self.rng = rng or random.Random(config.seed)
        if faker is None:
            faker = Faker()
            if config.seed is not None:
                faker.seed_instance(config.seed)
        self.faker = faker

    def admin_helper(self) -> OdbcConnectionHelper:
        """Helper bound to master, in autocommit mode for CREATE/DROP DATABASE."""
        return OdbcConnectionHelper(self.config.connection, database='master', autocommit=True)

    def session_helper(self) -> OdbcConnectionHelper:
        """Helper bound to the scratch database."""
        return OdbcConnectionHelper(self.config.connection, database=self.config.database, autocommit=True)

    def provision_database(self) -> None:
        """Drop and recreate the scratch database with its memory-optimized filegroup."""
        logger.info(f"Preparing database {self.config.database}...")
        admin = self.admin_helper()
        with admin:
            for statement in self.ddl.generate_database_statements():
                admin.run(statement)

    def create_schema(self, session: OdbcConnectionHelper) -> None:
        for statement in self.ddl.generate_schema_statements():
            session.run(statement)
        logger.info("✓ Prepare database completed")

    def seed_test_data(self, session: OdbcConnectionHelper, row_count: int) -> None:
        """
        Insert row_count fake names into TestData.

        Args:
            session: Helper connected to the scratch database
            row_count: Number of rows to insert
        """
        logger.info(f"Preparing data: {row_count:,} TestData rows...")
        start_time = time.perf_counter()

        names = generate_names(self.faker, row_count)
        insert_sql = self.ddl.generate_insert_test_data()
        for offset in range(0, len(names), INSERT_BATCH_SIZE):
            batch = [(name,) for name in names[offset:offset + INSERT_BATCH_SIZE]]
            session.run_many(insert_sql, batch)

        elapsed = time.perf_counter() - start_time
        logger.info(f"✓ Inserted {row_count:,} rows in {elapsed:.2f}s")

    def setup(self, params: BenchmarkParams) -> Fixture:
        """
        Build a complete fixture for one point of the parameter sweep.

        Any failure here is fatal; the scoped connection is closed before the
        error propagates.

        Args:
            params: Fixture tunables

        Returns:
            Fixture with an open session connection
        """
        validate_params(params)
        self.provision_database()

        session = self.session_helper()
        session.open()
        try:
            self.create_schema(session)
            self.seed_test_data(session, params.data_row_count)
            parameter_sets = generate_parameter_sets(params, self.rng)
        except Exception:
            session.close()
            raise

        logger.info(
            f"✓ Prepare data completed: {len(parameter_sets)} parameter sets "
            f"of {params.parameter_row_count} ids"
        )
        return Fixture(params, parameter_sets, session)

    def teardown(self, fixture: Fixture) -> None:
        """Release the session connection and optionally drop the scratch database."""
        if fixture.session is not None:
            fixture.session.close()

        if self.config.drop_database:
            logger.info(f"Dropping database {self.config.database}")
            admin = self.admin_helper()
            with admin:
                admin.run(self.ddl.generate_drop_database())
