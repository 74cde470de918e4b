"""
DuckDB-backed key-value storage for vocacore.

Stores whole serialized values under string keys. The card state store keeps
the entire progress array under a single key and overwrites it on every write.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import duckdb

from ..exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    StorageOperationError,
)
from .connection import ConnectionHandler
from .schema_manager import SchemaManager

logger = logging.getLogger(__name__)


class KeyValueDatabase:
    """
    Facade over the connection handler and schema manager exposing a small
    get/set/remove surface. Usable as a context manager.
    """

    _UPSERT_SQL = """
        INSERT INTO kv_store (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT (key) DO UPDATE SET
            value = EXCLUDED.value,
            updated_at = EXCLUDED.updated_at;
        """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Args:
            db_path: Path to the database file. Use ':memory:' for an
                in-memory database.
            read_only: If True, open the database in read-only mode.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        logger.info(
            f"KeyValueDatabase initialized for DB at: {self._handler.db_path_resolved}"
        )

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def __enter__(self) -> "KeyValueDatabase":
        """Open the connection and create the schema for a new writable DB."""
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    def _ensure_writable(self, operation: str) -> None:
        if self.read_only:
            raise DatabaseConnectionError(
                f"Cannot {operation} in read-only mode."
            )

    def get_item(self, key: str) -> Optional[str]:
        """
        Return the value stored under `key`, or None if there is none.

        Raises:
            StorageOperationError: If the query fails.
        """
        with self._handler.lock:
            conn = self.get_connection()
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", [key]
                ).fetchone()
            except duckdb.Error as e:
                logger.error(f"Error reading key '{key}': {e}")
                raise StorageOperationError(
                    f"Failed to read key '{key}': {e}", original_exception=e
                ) from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        """
        Store `value` under `key`, replacing any previous value.

        Raises:
            DatabaseConnectionError: If the database is read-only.
            StorageOperationError: If the write fails; the transaction is
                rolled back.
        """
        self._ensure_writable("write values")
        updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        with self._handler.lock:
            conn = self.get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.begin()
                    cursor.execute(self._UPSERT_SQL, [key, value, updated_at])
                    cursor.commit()
            except duckdb.Error as e:
                self._handle_write_error(conn, key, e)
        logger.debug(f"Stored {len(value)} characters under key '{key}'")

    def remove_item(self, key: str) -> bool:
        """
        Delete `key`.

        Returns:
            True if a value was deleted, False if the key was absent.

        Raises:
            DatabaseConnectionError: If the database is read-only.
            StorageOperationError: If the delete fails.
        """
        self._ensure_writable("remove values")
        with self._handler.lock:
            conn = self.get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.begin()
                    deleted = cursor.execute(
                        "DELETE FROM kv_store WHERE key = ? RETURNING key",
                        [key],
                    ).fetchall()
                    cursor.commit()
            except duckdb.Error as e:
                self._handle_write_error(conn, key, e)
        logger.info(f"Removed key '{key}' ({len(deleted)} row(s) deleted)")
        return bool(deleted)

    def keys(self) -> List[str]:
        with self._handler.lock:
            conn = self.get_connection()
            try:
                rows = conn.execute(
                    "SELECT key FROM kv_store ORDER BY key"
                ).fetchall()
            except duckdb.Error as e:
                raise StorageOperationError(
                    f"Failed to list keys: {e}", original_exception=e
                ) from e
        return [row[0] for row in rows]

    def _handle_write_error(
        self, conn: duckdb.DuckDBPyConnection, key: str, error: Exception
    ) -> None:
        """Roll back and re-raise as a StorageOperationError."""
        logger.error(f"Error writing key '{key}': {error}")
        try:
            conn.rollback()
            logger.info("Transaction rolled back due to write error.")
        except duckdb.Error as rb_err:
            # Nothing to roll back when the failure happened before BEGIN.
            logger.debug(f"Rollback after write error failed: {rb_err}")
        if isinstance(error, DatabaseError):
            raise error
        raise StorageOperationError(
            f"Failed to write key '{key}': {error}", original_exception=error
        ) from error
