"""PostgreSQL connection handling for the metadata index."""

import logging
import threading

import psycopg2
import psycopg2.extras
from contextlib import contextmanager
from typing import Generator

from ..config.settings import Config


logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages the connection to the database holding the application documents."""

    def __init__(self, config: Config):
        self.config = config
        self._connection = None
        # the summary refresher and request threads share the connection
        self._lock = threading.RLock()

    def connect(self):
        """Establish database connection."""
        if self._connection is None or self._connection.closed:
            logger.debug("Opening database connection")
            self._connection = psycopg2.connect(
                self.config.database_uri,
                cursor_factory=psycopg2.extras.RealDictCursor
            )
        return self._connection

    @contextmanager
    def get_cursor(self) -> Generator[psycopg2.extras.RealDictCursor, None, None]:
        """Get a database cursor, committing on success and rolling back on error."""
        with self._lock:
            conn = self.connect()
            try:
                with conn.cursor() as cursor:
                    yield cursor
            except Exception:
                conn.rollback()
                raise
            else:
                conn.commit()

    def close(self):
        """Close database connection."""
        with self._lock:
            if self._connection and not self._connection.closed:
                self._connection.close()
