"""
Database connection and statement execution.

Provides the storage collaborator repositories talk to: statements built
with tablemapper.query are compiled to psycopg compositions and executed,
returning affected-row counts, generated keys and rows as dictionaries.

For testing, use set_connection_override() to inject a connection
that will be used instead of creating new ones. This enables
transaction rollback between tests.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Optional

import psycopg
import structlog
from psycopg.rows import dict_row

from tablemapper.config import config
from tablemapper.query.statements import Insert, Statement

logger = structlog.get_logger()

# =============================================================================
# Connection Override (for testing)
# =============================================================================

_connection_override: psycopg.Connection | None = None


def set_connection_override(conn: psycopg.Connection) -> None:
    """
    Set a connection to use instead of creating new ones.

    Used by test fixtures to ensure all database operations run
    within a single transaction that can be rolled back.

    Args:
        conn: The connection to use for all subsequent operations
    """
    global _connection_override
    _connection_override = conn


def clear_connection_override() -> None:
    """Clear the connection override, restoring normal behavior."""
    global _connection_override
    _connection_override = None


# =============================================================================
# Connection Management
# =============================================================================


@contextmanager
def get_connection(database_url: str = None):
    """
    Context manager for database connections.

    In normal operation:
        - Opens a new connection
        - Commits on successful exit
        - Rolls back on exception
        - Closes connection when done

    With override set (testing):
        - Returns the override connection
        - Does NOT commit, rollback, or close
        - Caller (test fixture) manages the transaction

    Usage:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT ...")
    """
    if _connection_override is not None:
        yield _connection_override
        return

    url = database_url or config.database_url
    if not url:
        raise RuntimeError("DATABASE_URL is not configured")

    conn = psycopg.connect(url)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def get_cursor(database_url: str = None):
    """
    Context manager for a cursor with dict rows.

    Usage:
        with get_cursor() as cur:
            cur.execute("SELECT * FROM posts")
            rows = cur.fetchall()  # List of dicts
    """
    with get_connection(database_url) as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            yield cur


# =============================================================================
# Statement Execution
# =============================================================================


@dataclass(frozen=True)
class ExecutionResult:
    affected_rows: int
    generated_key: Optional[Any] = None


class Database:
    """
    Executes compiled statements against PostgreSQL.

    Each call is one blocking round trip on a connection obtained from
    get_connection(), so every statement commits on its own unless a
    connection override is active.
    """

    def __init__(self, database_url: str = None):
        self.database_url = database_url

    def execute(self, statement: Statement) -> ExecutionResult:
        """
        Execute an insert, update or delete.

        Args:
            statement: The statement to execute

        Returns:
            ExecutionResult with the affected row count and, for inserts
            that request RETURNING columns, the first returned value
        """
        query, params = statement.compile()
        with get_cursor(self.database_url) as cur:
            cur.execute(query, params)
            generated_key = None
            if isinstance(statement, Insert) and statement.returning_columns and cur.description:
                row = cur.fetchone()
                if row:
                    generated_key = row[statement.returning_columns[0]]
            affected = cur.rowcount

        logger.debug(
            "statement_executed",
            statement=type(statement).__name__.lower(),
            table=str(statement.table),
            affected_rows=affected,
        )
        return ExecutionResult(affected_rows=affected, generated_key=generated_key)

    def fetch_all(self, statement: Statement) -> list[dict[str, Any]]:
        """
        Execute a select and return all rows as list of dicts.

        Returns:
            List of dicts, empty list if no rows found
        """
        query, params = statement.compile()
        with get_cursor(self.database_url) as cur:
            cur.execute(query, params)
            rows = cur.fetchall()

        logger.debug("statement_executed", statement="select", table=str(statement.table), rows=len(rows))
        return rows
