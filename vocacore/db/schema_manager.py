import logging

import duckdb

from . import schema
from .connection import ConnectionHandler
from ..exceptions import DatabaseConnectionError, SchemaInitializationError

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates and, on request, recreates the key-value table."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Create the schema inside a transaction. Skipped in read-only mode
        unless the database is in memory. `force_recreate_tables` drops the
        existing table first, deleting all stored values.
        """
        if self._handle_read_only_initialization(force_recreate_tables):
            return

        with self._handler.lock:
            conn = self._handler.get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.begin()
                    if force_recreate_tables:
                        self._recreate_tables(cursor)
                    cursor.execute(schema.DB_SCHEMA_SQL)
                    cursor.commit()
                logger.info(
                    f"Database schema at {self._handler.db_path_resolved} "
                    "initialized successfully (or already exists)."
                )
            except duckdb.Error as e:
                logger.error(
                    f"Error initializing database schema at "
                    f"{self._handler.db_path_resolved}: {e}"
                )
                try:
                    conn.rollback()
                    logger.info(
                        "Transaction rolled back due to schema initialization error."
                    )
                except duckdb.Error as rb_err:
                    logger.error(f"Failed to rollback transaction: {rb_err}")
                raise SchemaInitializationError(
                    f"Failed to initialize schema: {e}", original_exception=e
                ) from e

    def _handle_read_only_initialization(
        self, force_recreate_tables: bool
    ) -> bool:
        """Returns True if initialization should be skipped."""
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError(
                    "Cannot force_recreate_tables in read-only mode."
                )
            if not self._handler.is_memory:
                logger.warning(
                    "Attempting to initialize schema in read-only mode. Skipping."
                )
                return True
        return False

    def _recreate_tables(self, cursor: duckdb.DuckDBPyConnection) -> None:
        logger.warning(
            f"Forcing table recreation for {self._handler.db_path_resolved}. "
            "ALL STORED PROGRESS WILL BE LOST."
        )
        cursor.execute("DROP TABLE IF EXISTS kv_store CASCADE;")
