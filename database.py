"""Statement execution against a PostgreSQL + pgvector backend."""

import psycopg2

from config import DB_CONFIG
from errors import BackendError


class PostgresBackend:
    """Executes textual SQL statements on a single psycopg2 session.

    Every call to :meth:`execute` returns a freshly built list of rows, so
    results of consecutive statements never share a buffer. Autocommit is on:
    each statement is its own transaction and a rejected statement leaves the
    session usable for the next one.
    """

    def __init__(self, conn):
        self.conn = conn
        self.conn.autocommit = True

    def execute(self, statement: str) -> list:
        """Run one statement.

        Returns:
            List of result rows as tuples (empty for statements without results)

        Raises:
            BackendError: if the server rejects the statement
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute(statement)
            if cursor.description is None:
                return []
            return [tuple(row) for row in cursor.fetchall()]
        except psycopg2.Error as e:
            raise BackendError(str(e).strip()) from e
        finally:
            cursor.close()

    def close(self):
        self.conn.close()


def ensure_connection(db_config=None) -> PostgresBackend:
    """Create a database session and wrap it as a backend."""
    try:
        conn = psycopg2.connect(**(db_config or DB_CONFIG))
    except psycopg2.Error as e:
        raise BackendError(f"could not connect to database: {str(e).strip()}") from e
    return PostgresBackend(conn)


def ensure_extension(backend):
    """Load the pgvector extension."""
    backend.execute("CREATE EXTENSION IF NOT EXISTS vector")


def print_extension_versions(backend):
    """Print versions of installed vector extensions."""
    extensions = backend.execute(
        """
        SELECT extname, extversion
        FROM pg_extension
        WHERE extname IN ('vector', 'vectorscale', 'vchord')
        ORDER BY extname
        """
    )

    if extensions:
        print("\n[Extensions] Installed versions:")
        for ext_name, ext_version in extensions:
            print(f"  - {ext_name}: {ext_version}")
    else:
        print("\n[Extensions] No vector extensions found")
