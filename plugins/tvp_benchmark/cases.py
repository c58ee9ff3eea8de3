"""
Benchmark Cases Module

The five strategies for passing a set of ids into a query. Every case runs

    SELECT Id FROM dbo.TestData WHERE Id IN (<ids>)

and differs only in how <ids> is produced server-side: STRING_SPLIT over a
delimited string, or a SELECT from a table-valued parameter of one of the
four table types.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from tvp_benchmark.ddl_generator import (
    MEMORY_OPT_HASH_UDT,
    MEMORY_OPT_UDT,
    SIMPLE_PK_UDT,
    SIMPLE_UDT,
    TEST_DATA_TABLE,
    TableTypeDefinition,
)
from tvp_benchmark.fixture import ID_DELIMITER
from tvp_benchmark.recycling_buffer import RecyclingBuffer
from tvp_benchmark.utils import quote_identifier

logger = logging.getLogger(__name__)

STRING_INPUT = 'string'
STRUCTURED_INPUT = 'structured'

DEFAULT_SCHEMA = 'dbo'


def _test_data_table(schema: str = DEFAULT_SCHEMA) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(TEST_DATA_TABLE)}"


def string_split_query(schema: str = DEFAULT_SCHEMA) -> str:
    """Query whose ids come from STRING_SPLIT over one delimited string parameter."""
    return (
        f"SELECT Id FROM {_test_data_table(schema)} "
        f"WHERE Id IN (SELECT CONVERT(BIGINT, value) FROM STRING_SPLIT(?, '{ID_DELIMITER}'))"
    )


def table_parameter_query(schema: str = DEFAULT_SCHEMA) -> str:
    """Query whose ids come from one table-valued parameter."""
    return f"SELECT Id FROM {_test_data_table(schema)} WHERE Id IN (SELECT Id FROM ?)"


class BenchmarkCase:
    """
    One strategy: its query text, its input shape and how a buffered value
    becomes the statement's parameters.
    """

    def __init__(self, name: str, input_kind: str, table_type: Optional[TableTypeDefinition] = None,
                 schema: str = DEFAULT_SCHEMA):
        if input_kind not in (STRING_INPUT, STRUCTURED_INPUT):
            raise ValueError(f"Unknown input kind: {input_kind}")
        if input_kind == STRUCTURED_INPUT and table_type is None:
            raise ValueError(f"Case {name} takes structured input but has no table type")

        self.name = name
        self.input_kind = input_kind
        self.table_type = table_type
        self.schema = schema
        if input_kind == STRING_INPUT:
            self.sql = string_split_query(schema)
        else:
            self.sql = table_parameter_query(schema)

    def select_buffer(self, structured_buffer: RecyclingBuffer, string_buffer: RecyclingBuffer) -> RecyclingBuffer:
        return string_buffer if self.input_kind == STRING_INPUT else structured_buffer

    def bind(self, value: Any) -> Tuple[Any, ...]:
        """
        Turn a buffered value into the parameter tuple for cursor.execute().

        Structured values are wrapped as [type name, schema, *rows], the
        pyodbc form for a TVP whose type is not implied by a procedure
        signature. The buffered rows are never modified.
        """
        if self.input_kind == STRING_INPUT:
            return (value,)
        return ([self.table_type.name, self.schema, *value],)

    def __repr__(self) -> str:
        return f"BenchmarkCase({self.name!r})"


STRING_SPLIT = BenchmarkCase('StringSplit', STRING_INPUT)
SIMPLE_UDT_CASE = BenchmarkCase('SimpleUDT', STRUCTURED_INPUT, SIMPLE_UDT)
SIMPLE_PK_UDT_CASE = BenchmarkCase('SimplePKUDT', STRUCTURED_INPUT, SIMPLE_PK_UDT)
MEMORY_OPT_UDT_CASE = BenchmarkCase('MemoryOptUDT', STRUCTURED_INPUT, MEMORY_OPT_UDT)
MEMORY_OPT_HASH_UDT_CASE = BenchmarkCase('MemoryOptHashUDT', STRUCTURED_INPUT, MEMORY_OPT_HASH_UDT)

CASES: Dict[str, BenchmarkCase] = {
    case.name: case
    for case in (
        STRING_SPLIT,
        SIMPLE_UDT_CASE,
        SIMPLE_PK_UDT_CASE,
        MEMORY_OPT_UDT_CASE,
        MEMORY_OPT_HASH_UDT_CASE,
    )
}


def select_cases(names: Optional[Sequence[str]] = None) -> List[BenchmarkCase]:
    """
    Resolve case names (case-insensitive) in the order given.

    Args:
        names: Case names, or None for all five in declaration order

    Returns:
        List of BenchmarkCase

    Raises:
        ValueError: If a name does not match any case
    """
    if not names:
        return list(CASES.values())

    by_lower = {name.lower(): case for name, case in CASES.items()}
    selected: List[BenchmarkCase] = []
    for name in names:
        case = by_lower.get(name.strip().lower())
        if case is None:
            raise ValueError(f"Unknown benchmark case '{name}'. Available: {', '.join(CASES)}")
        if case not in selected:
            selected.append(case)
    return selected


def run_operations(
    case: BenchmarkCase,
    cursor,
    structured_buffer: RecyclingBuffer,
    string_buffer: RecyclingBuffer,
    operations: int,
) -> None:
    """
    Run one measured invocation: operations back-to-back queries.

    Each operation takes the next value from the buffer matching the case's
    input shape. Errors propagate to the caller.
    """
    buffer = case.select_buffer(structured_buffer, string_buffer)
    sql = case.sql
    bind = case.bind
    for _ in range(operations):
        cursor.execute(sql, bind(buffer.peek()))
        cursor.fetchall()
