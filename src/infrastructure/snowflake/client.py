"""
Snowflake database connection management.

Provides the connection context manager for Snowflake operations.
Includes mock mode with in-memory storage for local development.

Using the repository pattern means most code never touches this module
directly - it goes through SubmissionRepository which handles the
translation between domain models and database rows.
"""

import base64
import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from .repositories.submissions import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _load_private_key(config: SnowflakeConfig) -> bytes:
    """
    Load the private key for key-pair authentication.

    The key comes from a PEM file or a base64-encoded PEM (for platforms
    where mounting files is awkward). Snowflake wants DER/PKCS8 bytes.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    if config.private_key_path:
        with open(config.private_key_path, 'rb') as key_file:
            pem_data = key_file.read()
    else:
        pem_data = base64.b64decode(config.private_key_base64)

    private_key = serialization.load_pem_private_key(
        pem_data,
        password=None,  # No password on the key
        backend=default_backend()
    )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If a private key (path or base64) is set, uses key-pair auth
    - Otherwise, uses password auth

    Only failures to connect are wrapped in SnowflakeConnectionError.
    Errors raised by the caller while the connection is open propagate
    unchanged.

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    try:
        import snowflake.connector
    except ImportError:
        raise ImportError(
            "snowflake-connector-python is required. "
            "Install with: pip install snowflake-connector-python"
        )

    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
    }

    if config.private_key_path or config.private_key_base64:
        logger.info("Using key-pair authentication for Snowflake")
        connect_params['private_key'] = _load_private_key(config)
    elif config.password:
        logger.info("Using password authentication for Snowflake")
        connect_params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or a private key must be provided"
        )

    try:
        conn = snowflake.connector.connect(**connect_params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}")

    logger.debug(
        "Established Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support
    SubmissionRepository without a real database. Queries are
    recognised by pattern matching, not parsed.
    """

    def __init__(self, storage: dict, lock: threading.Lock) -> None:
        self._storage = storage
        self._lock = lock
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query[:100], "params": params}
        )

        query_upper = " ".join(query.upper().split())

        # check-and-insert must be atomic across concurrent requests
        with self._lock:
            if query_upper.startswith('CREATE TABLE'):
                self._results = []
            elif 'MERGE INTO SUBMISSIONS' in query_upper:
                self._handle_merge(params)
            elif query_upper == 'SELECT 1':
                self._results = [(1,)]
            elif query_upper.startswith('SELECT') and 'FROM SUBMISSIONS' in query_upper:
                self._handle_select(query_upper, params)
            else:
                raise NotImplementedError(f"Mock cursor can't handle query: {query_upper[:60]}")

        return self

    def _handle_merge(self, params: Optional[tuple]) -> None:
        """Insert when the id is absent. Result row holds the inserted count."""
        if not params:
            raise ValueError("MERGE requires parameters")

        table = self._storage['submissions']
        submission_id = str(params[0])

        if submission_id in table:
            self._rowcount = 0
        else:
            table[submission_id] = tuple(params[1:])
            self._rowcount = 1

        self._results = [(self._rowcount,)]

    def _handle_select(self, query: str, params: Optional[tuple]) -> None:
        table = self._storage['submissions']

        if 'WHERE' in query:
            row = table.get(str(params[0])) if params else None
            self._results = [row] if row else []
        else:
            # dicts keep insertion order, which is creation order here
            self._results = list(table.values())

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return list(self._results)

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        """Return number of rows affected."""
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores data in memory: {table_name: {id: row_tuple}}. A single lock is
    shared by every cursor so writes from concurrent requests don't
    interleave.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        self._storage: dict[str, dict[str, tuple]] = {
            'submissions': {},
        }
        self._lock = threading.Lock()

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self._storage, self._lock)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, always auto-commits)."""
        logger.debug("Mock connection commit")
