"""Database manager for the Assetree SQLite file."""

import sqlite3
from contextlib import contextmanager
from config import Config, get_migrations_dir


class DatabaseManager:
    """Opens connections to the asset database and locates its files.

    Services share one manager; each operation opens and closes its own
    connection through connect().

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        """Initialize the database manager.

        Args:
            config: Config object; db_data_dir and db_filename locate the
                database file.
        """
        self.config = config

    @contextmanager
    def connect(self):
        """Open a connection to the asset database and close it afterwards.

        The data directory is created on first use. Foreign keys are
        enforced, so a valuation's transaction link is cleared when the
        transaction row goes away.

        Yields:
            sqlite3.Connection: Database connection.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def database_exists(self) -> bool:
        """Whether the database file has been created yet."""
        return self.config.db_path.exists()

    def get_migrations_dir(self):
        """Directory holding the numbered .sql schema migrations."""
        return get_migrations_dir()
