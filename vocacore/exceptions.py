from pathlib import Path
from typing import Optional, Union


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class StorageOperationError(DatabaseError):
    """Raised for errors while reading, writing or deleting a stored value."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and the stored format."""

    pass


class CatalogError(Exception):
    """Raised when a vocabulary catalog file cannot be loaded at all."""

    def __init__(self, source: Union[str, Path], message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class SessionStateError(ValueError):
    """Raised when a review session action is not allowed in its current state."""

    pass
