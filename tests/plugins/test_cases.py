"""
Tests for Benchmark Cases Module

These tests validate query text, parameter binding for each strategy and
the per-invocation loop, using a mocked cursor.
"""

import pytest
from unittest.mock import MagicMock
from tvp_benchmark.cases import (
    CASES,
    STRING_INPUT,
    STRUCTURED_INPUT,
    BenchmarkCase,
    run_operations,
    select_cases,
    string_split_query,
    table_parameter_query,
)
from tvp_benchmark.ddl_generator import SIMPLE_UDT
from tvp_benchmark.recycling_buffer import RecyclingBuffer


class TestQueries:
    """Test the two statically declared query shapes."""

    def test_string_split_query(self):
        assert string_split_query() == (
            "SELECT Id FROM [dbo].[TestData] "
            "WHERE Id IN (SELECT CONVERT(BIGINT, value) FROM STRING_SPLIT(?, ';'))"
        )

    def test_table_parameter_query(self):
        assert table_parameter_query() == "SELECT Id FROM [dbo].[TestData] WHERE Id IN (SELECT Id FROM ?)"


class TestCaseRegistry:
    """Test the five declared cases."""

    def test_five_cases_in_order(self):
        assert list(CASES) == ['StringSplit', 'SimpleUDT', 'SimplePKUDT', 'MemoryOptUDT', 'MemoryOptHashUDT']

    def test_only_string_split_takes_strings(self):
        kinds = {name: case.input_kind for name, case in CASES.items()}
        assert kinds.pop('StringSplit') == STRING_INPUT
        assert set(kinds.values()) == {STRUCTURED_INPUT}

    def test_structured_cases_use_matching_table_type(self):
        for name, case in CASES.items():
            if case.input_kind == STRUCTURED_INPUT:
                assert case.table_type.name == name

    def test_select_all_by_default(self):
        assert select_cases(None) == list(CASES.values())
        assert select_cases([]) == list(CASES.values())

    def test_select_is_case_insensitive_and_ordered(self):
        selected = select_cases(['memoryopthashudt', 'StringSplit'])
        assert [c.name for c in selected] == ['MemoryOptHashUDT', 'StringSplit']

    def test_select_ignores_duplicates(self):
        assert len(select_cases(['SimpleUDT', 'simpleudt'])) == 1

    def test_unknown_case_rejected(self):
        with pytest.raises(ValueError, match="Unknown benchmark case 'InClause'"):
            select_cases(['InClause'])

    def test_invalid_case_definitions(self):
        with pytest.raises(ValueError):
            BenchmarkCase('Bad', 'xml')
        with pytest.raises(ValueError):
            BenchmarkCase('Bad', STRUCTURED_INPUT)


class TestBinding:
    """Test how buffered values become statement parameters."""

    def test_string_binding(self):
        assert CASES['StringSplit'].bind('1;2;3') == ('1;2;3',)

    @pytest.mark.parametrize("name", ['SimpleUDT', 'SimplePKUDT', 'MemoryOptUDT', 'MemoryOptHashUDT'])
    def test_structured_binding_names_type(self, name):
        rows = ((1,), (2,), (3,))
        (tvp,) = CASES[name].bind(rows)

        assert tvp == [name, 'dbo', (1,), (2,), (3,)]

    def test_binding_does_not_modify_buffered_value(self):
        rows = ((4,), (5,))
        CASES['SimpleUDT'].bind(rows)
        CASES['MemoryOptUDT'].bind(rows)
        assert rows == ((4,), (5,))

    def test_each_bind_builds_new_list(self):
        rows = ((4,),)
        first = CASES['SimpleUDT'].bind(rows)[0]
        second = CASES['SimpleUDT'].bind(rows)[0]
        assert first == second
        assert first is not second

    def test_custom_schema(self):
        case = BenchmarkCase('Other', STRUCTURED_INPUT, SIMPLE_UDT, schema='bench')
        assert case.sql == "SELECT Id FROM [bench].[TestData] WHERE Id IN (SELECT Id FROM ?)"
        assert case.bind(((1,),)) == (['SimpleUDT', 'bench', (1,)],)


class TestRunOperations:
    """Test the per-invocation query loop."""

    @pytest.fixture
    def buffers(self):
        structured = RecyclingBuffer([((1,), (2,)), ((3,), (4,))])
        strings = RecyclingBuffer(['1;2', '3;4'])
        return structured, strings

    def test_string_case_uses_string_buffer(self, buffers):
        structured, strings = buffers
        cursor = MagicMock()

        run_operations(CASES['StringSplit'], cursor, structured, strings, 3)

        params = [c.args[1] for c in cursor.execute.call_args_list]
        assert params == [('1;2',), ('3;4',), ('1;2',)]
        assert structured.cursor == 0
        assert cursor.fetchall.call_count == 3

    def test_structured_case_uses_structured_buffer(self, buffers):
        structured, strings = buffers
        cursor = MagicMock()

        run_operations(CASES['MemoryOptHashUDT'], cursor, structured, strings, 2)

        calls = cursor.execute.call_args_list
        assert calls[0].args == (CASES['MemoryOptHashUDT'].sql, (['MemoryOptHashUDT', 'dbo', (1,), (2,)],))
        assert calls[1].args[1] == (['MemoryOptHashUDT', 'dbo', (3,), (4,)],)
        assert strings.cursor == 0

    def test_consecutive_invocations_continue_cursor(self, buffers):
        structured, strings = buffers
        cursor = MagicMock()

        run_operations(CASES['StringSplit'], cursor, structured, strings, 1)
        run_operations(CASES['StringSplit'], cursor, structured, strings, 1)

        params = [c.args[1] for c in cursor.execute.call_args_list]
        assert params == [('1;2',), ('3;4',)]

    def test_errors_propagate(self, buffers):
        structured, strings = buffers
        cursor = MagicMock()
        cursor.execute.side_effect = [None, Exception('Operand type clash')]

        with pytest.raises(Exception, match='Operand type clash'):
            run_operations(CASES['SimpleUDT'], cursor, structured, strings, 5)

        assert cursor.execute.call_count == 2

