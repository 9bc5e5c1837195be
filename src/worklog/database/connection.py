import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Tuple

Connection = sqlite3.Connection

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

logger = logging.getLogger(__name__)

class DatabaseConfig:
    """Where the work log database lives. Creates the parent directory."""

    def __init__(self, db_path: Path | str = "data/worklog.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection_string(self) -> str:
        return str(self.db_path.absolute())

def configure_connection(conn: Connection) -> None:
    """
    Settings every work log connection needs.

    Attachments rely on ON DELETE CASCADE, which SQLite only enforces
    with foreign_keys switched on.
    """
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row

class DatabaseManager:
    """
    Owns the single SQLite connection shared by the repositories.

    Usage:
        with DatabaseManager(DatabaseConfig("data/worklog.db")) as db:
            db.initialize()
            with db.transaction() as conn:
                conn.execute("INSERT INTO updates ...")
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._connection: Optional[Connection] = None
        self._depth = 0

    def get_connection(self) -> Connection:
        """Open the connection on first use and reuse it afterwards"""
        if self._connection is None:
            logger.debug("Opening database at %s", self.config.connection_string)
            self._connection = sqlite3.connect(
                self.config.connection_string,
                check_same_thread=False,
            )
            configure_connection(self._connection)
        return self._connection

    def initialize(self, schema_path: Path = SCHEMA_PATH) -> None:
        """Create tables if they don't exist yet. Safe to repeat."""
        execute_schema(self.get_connection(), schema_path)

    def schema_version(self) -> Optional[Tuple[int, str]]:
        """
        Latest applied schema version.

        Returns:
            (version, description), or None before initialize() ran
        """
        try:
            row = self.get_connection().execute(
                "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
            ).fetchone()
        except sqlite3.OperationalError:
            return None
        return (row["version"], row["description"]) if row else None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Generator[Connection, None, None]:
        """
        Commit on success, roll back on any exception.

        Blocks can nest: an inner block joins the outer one and only the
        outermost block commits or rolls back. A backup import wraps many
        repository writes this way so it either lands completely or not
        at all.
        """
        conn = self.get_connection()
        if self.in_transaction:
            self._depth += 1
            try:
                yield conn
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield conn
            conn.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            conn.rollback()
            raise
        finally:
            self._depth = 0

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

def execute_schema(conn: Connection, schema_path: Path = SCHEMA_PATH) -> None:
    """Run every statement of a .sql file and commit"""
    conn.executescript(schema_path.read_text())
    conn.commit()
