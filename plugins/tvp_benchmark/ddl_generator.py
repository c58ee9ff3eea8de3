"""
SQL Server DDL Generation Module

This module generates the DDL for the scratch benchmark database: the
database itself, its memory-optimized filegroup, the four table types used
as table-valued parameters and the TestData table they are joined against.
"""

from typing import List
import logging

from tvp_benchmark.utils import quote_identifier, quote_sql_literal, validate_sql_identifier

logger = logging.getLogger(__name__)

TEST_DATA_TABLE = 'TestData'
NAME_MAX_LENGTH = 256


class TableTypeDefinition:
    """A user-defined table type with a single BIGINT Id column."""

    def __init__(self, name: str, column_definition: str, memory_optimized: bool = False):
        """
        Args:
            name: Type name (created in the dbo schema)
            column_definition: Full definition of the Id column
            memory_optimized: Append WITH (MEMORY_OPTIMIZED = ON)
        """
        self.name = validate_sql_identifier(name, "table type name")
        self.column_definition = column_definition
        self.memory_optimized = memory_optimized

    def __repr__(self) -> str:
        return f"TableTypeDefinition({self.name!r})"


# MemoryOptUDT intentionally has no MEMORY_OPTIMIZED clause; the four types
# are kept exactly as the benchmark has always declared them.
SIMPLE_UDT = TableTypeDefinition('SimpleUDT', 'Id BIGINT')
SIMPLE_PK_UDT = TableTypeDefinition('SimplePKUDT', 'Id BIGINT PRIMARY KEY NONCLUSTERED')
MEMORY_OPT_UDT = TableTypeDefinition('MemoryOptUDT', 'Id BIGINT PRIMARY KEY NONCLUSTERED')
MEMORY_OPT_HASH_UDT = TableTypeDefinition(
    'MemoryOptHashUDT',
    'Id BIGINT PRIMARY KEY NONCLUSTERED HASH WITH (BUCKET_COUNT = 32)',
    memory_optimized=True,
)

TABLE_TYPES = [SIMPLE_UDT, SIMPLE_PK_UDT, MEMORY_OPT_UDT, MEMORY_OPT_HASH_UDT]


class DDLGenerator:
    """Generate SQL Server DDL statements for the benchmark database."""

    def __init__(self, database: str, data_dir: str = '/var/opt/mssql/data', schema: str = 'dbo'):
        """
        Initialize the DDL generator.

        Args:
            database: Scratch database name
            data_dir: Server-side directory for the memory-optimized container
            schema: Schema for the table types and TestData
        """
        self.database = validate_sql_identifier(database, "database name")
        self.data_dir = data_dir.rstrip('/')
        self.schema = validate_sql_identifier(schema, "schema name")

    @property
    def filegroup_name(self) -> str:
        return f"{self.database}_MOD"

    @property
    def file_name(self) -> str:
        return f"{self.database}_MOD1"

    def generate_drop_database(self) -> str:
        """
        Generate a DROP DATABASE statement guarded by an existence check.

        Open sessions are rolled back first so a previous run that left a
        connection behind cannot block the drop.
        """
        db = quote_identifier(self.database)
        return (
            f"IF EXISTS (SELECT * FROM sys.databases WHERE name = {quote_sql_literal(self.database)})\n"
            f"BEGIN\n"
            f"    ALTER DATABASE {db} SET SINGLE_USER WITH ROLLBACK IMMEDIATE;\n"
            f"    DROP DATABASE {db};\n"
            f"END"
        )

    def generate_create_database(self) -> str:
        return f"CREATE DATABASE {quote_identifier(self.database)}"

    def generate_memory_optimized_filegroup(self) -> List[str]:
        """
        Generate the statements adding a memory-optimized filegroup and its container.

        Returns:
            List of ALTER DATABASE statements, in execution order
        """
        db = quote_identifier(self.database)
        filegroup = quote_identifier(self.filegroup_name)
        file_path = f"{self.data_dir}/{self.file_name}"
        return [
            f"ALTER DATABASE {db} ADD FILEGROUP {filegroup} CONTAINS MEMORY_OPTIMIZED_DATA",
            f"ALTER DATABASE {db} ADD FILE ("
            f"name={quote_sql_literal(self.file_name)}, "
            f"filename={quote_sql_literal(file_path)}) "
            f"TO FILEGROUP {filegroup}",
        ]

    def generate_create_type(self, table_type: TableTypeDefinition) -> str:
        """
        Generate CREATE TYPE ... AS TABLE for a table type.

        Args:
            table_type: Table type definition

        Returns:
            CREATE TYPE DDL statement
        """
        qualified_name = f"{quote_identifier(self.schema)}.{quote_identifier(table_type.name)}"
        ddl = f"CREATE TYPE {qualified_name} AS TABLE\n({table_type.column_definition})"
        if table_type.memory_optimized:
            ddl += "\n    WITH (MEMORY_OPTIMIZED = ON)"
        return ddl

    def generate_create_test_data_table(self) -> str:
        qualified_name = f"{quote_identifier(self.schema)}.{quote_identifier(TEST_DATA_TABLE)}"
        return (
            f"CREATE TABLE {qualified_name}\n"
            f"(Id BIGINT PRIMARY KEY IDENTITY,\n"
            f" Name nvarchar({NAME_MAX_LENGTH}))"
        )

    def generate_insert_test_data(self) -> str:
        qualified_name = f"{quote_identifier(self.schema)}.{quote_identifier(TEST_DATA_TABLE)}"
        return f"INSERT INTO {qualified_name} (Name) VALUES (?)"

    def generate_database_statements(self) -> List[str]:
        """
        Statements run against master to (re)create the scratch database.

        These must run in autocommit mode.
        """
        statements = [self.generate_drop_database(), self.generate_create_database()]
        statements.extend(self.generate_memory_optimized_filegroup())
        return statements

    def generate_schema_statements(self) -> List[str]:
        """Statements run inside the scratch database to create types and tables."""
        statements = [self.generate_create_type(table_type) for table_type in TABLE_TYPES]
        statements.append(self.generate_create_test_data_table())
        logger.debug(f"Generated {len(statements)} schema statements for {self.database}")
        return statements
