"""SQLite connection layer with sqlite-vec extension."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

IN_MEMORY = ":memory:"


class Database:
    """SQLite database with sqlite-vec vector search support.

    Defaults to a private in-memory database: the embedding index lives only
    for the duration of one run.
    """

    def __init__(self, db_path: Path | str = IN_MEMORY) -> None:
        """Store the database path. Call connect() to open the connection."""
        self.db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open a connection, load sqlite-vec, and return the connection."""
        # check_same_thread=False: the index may be built on one thread and
        # queried from another; access is never concurrent.
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.enable_load_extension(True)
        sqlite_vec.load(conn)
        conn.enable_load_extension(False)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None
