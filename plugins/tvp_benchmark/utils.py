"""
Utility functions for the benchmark harness.

This module provides common utility functions including SQL identifier
validation, T-SQL identifier quoting and human-readable formatting of
timings for progress output and reports.
"""

import re


def validate_sql_identifier(identifier: str, identifier_type: str = "identifier") -> str:
    """
    Validate SQL identifiers before they are interpolated into DDL.

    Database, filegroup and file names cannot be passed as query parameters,
    so they are restricted to a safe character set instead.

    Args:
        identifier: The identifier to validate
        identifier_type: Type description for error messages (e.g., "database name")

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        ValueError: If the identifier is invalid

    Rules:
        - Non-empty
        - Max 128 characters (SQL Server limit)
        - Must start with letter or underscore
        - Can contain only alphanumeric characters and underscores

    Examples:
        >>> validate_sql_identifier("MyTestDataBase")
        'MyTestDataBase'
        >>> validate_sql_identifier("_scratch_2024")
        '_scratch_2024'
        >>> validate_sql_identifier("master; DROP DATABASE x")  # doctest: +SKIP
        ValueError: Invalid identifier 'master; DROP DATABASE x': ...
    """
    if not identifier:
        raise ValueError(f"Invalid {identifier_type}: cannot be empty")

    if len(identifier) > 128:
        raise ValueError(
            f"Invalid {identifier_type}: exceeds maximum length of 128 characters "
            f"(got {len(identifier)} characters)"
        )

    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValueError(
            f"Invalid {identifier_type} '{identifier}': must start with letter or underscore "
            "and contain only alphanumeric characters and underscores"
        )

    return identifier


def quote_identifier(identifier: str) -> str:
    """
    Quote a T-SQL identifier with square brackets.

    Examples:
        >>> quote_identifier("TestData")
        '[TestData]'
        >>> quote_identifier("odd]name")
        '[odd]]name]'
    """
    return f"[{identifier.replace(']', ']]')}]"


def quote_sql_literal(value) -> str:
    """
    Quote a value for use as a T-SQL string literal.

    Examples:
        >>> quote_sql_literal("MyTestDataBase")
        "N'MyTestDataBase'"
        >>> quote_sql_literal("O'Brien")
        "N'O''Brien'"
    """
    escaped = str(value).replace("'", "''")
    return f"N'{escaped}'"


def format_duration(seconds: float) -> str:
    """
    Format a duration using the most readable unit.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1.234 ms")

    Examples:
        >>> format_duration(0.0000012)
        '1.200 us'
        >>> format_duration(0.0015)
        '1.500 ms'
        >>> format_duration(2.5)
        '2.500 s'
    """
    if seconds < 0.000001:
        return f"{seconds * 1_000_000_000:.1f} ns"
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.3f} us"
    if seconds < 1:
        return f"{seconds * 1000:.3f} ms"
    return f"{seconds:.3f} s"


def truncate_string(s: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate a string to a maximum length.

    Used to keep logged SQL and parameter values readable.

    Examples:
        >>> truncate_string("short")
        'short'
        >>> truncate_string("a" * 150, max_length=20)
        'aaaaaaaaaaaaaaaaa...'
    """
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix
