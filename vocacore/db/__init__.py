"""Database package for vocacore.

Only KeyValueDatabase is exported as the public API.
"""

from .database import KeyValueDatabase

__all__ = ["KeyValueDatabase"]
