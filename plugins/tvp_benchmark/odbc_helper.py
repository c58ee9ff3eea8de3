"""
ODBC Connection Helper

This module wraps pyodbc with the small set of operations the benchmark
needs (get_records, run, run_many) and owns the single scoped
connection a benchmark session keeps open between setup and teardown.
"""

from typing import Any, List, Optional, Sequence, Tuple
import logging

import pyodbc

from tvp_benchmark.config import ConnectionSettings
from tvp_benchmark.utils import truncate_string

logger = logging.getLogger(__name__)


class OdbcConnectionHelper:
    """
    Helper class for ODBC connections to one SQL Server database.

    When a scoped connection has been opened (open() or the context manager),
    every call reuses it. Otherwise each call opens a transient connection and
    closes it afterwards.
    """

    def __init__(self, settings: ConnectionSettings, database: str = 'master', autocommit: bool = False):
        """
        Initialize the ODBC connection helper.

        Args:
            settings: Server location and credentials
            database: Database to connect to
            autocommit: Open connections in autocommit mode (required for CREATE/DROP DATABASE)
        """
        self.settings = settings
        self.database = database
        self.autocommit = autocommit
        self._conn_config = None
        self._conn: Optional[pyodbc.Connection] = None

    def _get_connection_config(self) -> dict:
        """
        Get connection configuration for this helper's database.

        Returns:
            Dictionary with ODBC connection parameters
        """
        if self._conn_config is None:
            self._conn_config = self.settings.odbc_config(self.database)
        return self._conn_config

    def _build_connection_string(self) -> str:
        """
        Build ODBC connection string from configuration.

        Returns:
            ODBC connection string
        """
        config = self._get_connection_config()
        return ';'.join([f"{k}={v}" for k, v in config.items() if v])

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> pyodbc.Connection:
        """
        Open the scoped connection if it is not already open.

        Returns:
            The scoped pyodbc Connection
        """
        if self._conn is None:
            logger.info(f"Opening connection to {self.settings.host} (database: {self.database})")
            self._conn = pyodbc.connect(self._build_connection_string(), autocommit=self.autocommit)
        return self._conn

    def close(self) -> None:
        """Close the scoped connection, if any."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        conn.close()
        logger.info(f"Closed connection to {self.settings.host} (database: {self.database})")

    def __enter__(self) -> 'OdbcConnectionHelper':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_conn(self) -> pyodbc.Connection:
        """
        Get a pyodbc connection to the database.

        Returns the scoped connection when open, otherwise a new connection
        the caller must hand back through release_conn().

        Returns:
            pyodbc Connection object
        """
        if self._conn is not None:
            return self._conn
        return pyodbc.connect(self._build_connection_string(), autocommit=self.autocommit)

    def release_conn(self, conn: Optional[pyodbc.Connection]) -> None:
        """
        Release a connection obtained from get_conn().

        The scoped connection stays open; transient connections are closed.

        Args:
            conn: Connection to release
        """
        if conn is None or conn is self._conn:
            return
        conn.close()

    def _log_failure(self, error: Exception, sql: str, parameters: Optional[Sequence[Any]]) -> None:
        logger.error(f"Error executing statement: {error}")
        logger.error(f"SQL: {truncate_string(sql.strip(), 500)}")
        if parameters:
            logger.error(f"Parameters: {truncate_string(repr(parameters), 500)}")

    def get_records(
        self,
        sql: str,
        parameters: Optional[Sequence[Any]] = None
    ) -> List[Tuple[Any, ...]]:
        """
        Execute a query and return all rows.

        Args:
            sql: SQL query to execute
            parameters: Optional list of parameters for the query

        Returns:
            List of rows
        """
        conn = None
        try:
            conn = self.get_conn()
            cursor = conn.cursor()

            if parameters:
                cursor.execute(sql, parameters)
            else:
                cursor.execute(sql)

            return cursor.fetchall()
        except Exception as e:
            self._log_failure(e, sql, parameters)
            raise
        finally:
            self.release_conn(conn)

    def run(
        self,
        sql: str,
        parameters: Optional[Sequence[Any]] = None
    ) -> None:
        """
        Execute a SQL statement (typically DDL or DML).

        Commits unless the helper is in autocommit mode; rolls back on failure.

        Args:
            sql: SQL statement to execute
            parameters: Optional list of parameters for the statement
        """
        conn = None
        try:
            conn = self.get_conn()
            cursor = conn.cursor()

            if parameters:
                cursor.execute(sql, parameters)
            else:
                cursor.execute(sql)

            if not self.autocommit:
                conn.commit()
        except Exception as e:
            self._log_failure(e, sql, parameters)
            if conn is not None and not self.autocommit:
                conn.rollback()
            raise
        finally:
            self.release_conn(conn)

    def run_many(
        self,
        sql: str,
        rows: Sequence[Sequence[Any]],
    ) -> None:
        """
        Execute a parameterized statement once per row using fast_executemany.

        Args:
            sql: Parameterized INSERT/UPDATE statement
            rows: One parameter sequence per execution
        """
        if not rows:
            return

        conn = None
        try:
            conn = self.get_conn()
            cursor = conn.cursor()
            cursor.fast_executemany = True
            cursor.executemany(sql, rows)

            if not self.autocommit:
                conn.commit()
        except Exception as e:
            self._log_failure(e, sql, [f"<{len(rows)} rows>"])
            if conn is not None and not self.autocommit:
                conn.rollback()
            raise
        finally:
            self.release_conn(conn)
