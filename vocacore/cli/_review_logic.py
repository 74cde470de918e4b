import logging
import random
from pathlib import Path
from typing import List, Optional

from vocacore.catalog import load_bundled_catalog, load_catalog
from vocacore.cli.review_ui import start_review_flow
from vocacore.clock import Clock
from vocacore.db.database import KeyValueDatabase
from vocacore.exceptions import DatabaseError
from vocacore.models import CatalogEntry, SessionStats
from vocacore.session import ReviewSession
from vocacore.store import CardStateStore

logger = logging.getLogger(__name__)


def open_catalog(catalog_path: Optional[Path]) -> List[CatalogEntry]:
    """Load the catalog at `catalog_path`, or the bundled one when None."""
    if catalog_path is None:
        return load_bundled_catalog()
    return load_catalog(catalog_path)


def review_logic(
    db_path: Path,
    catalog_path: Optional[Path],
    storage_key: str,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
) -> SessionStats:
    """
    Set up and run an interactive review session.

    Loads the catalog and stored progress, wires the card state store to the
    database, runs the review loop, and flushes pending progress writes before
    closing the database.
    """
    catalog = open_catalog(catalog_path)
    db = KeyValueDatabase(db_path=db_path)
    store = CardStateStore(db, catalog_size=len(catalog), storage_key=storage_key)
    try:
        try:
            db.initialize_schema()
        except DatabaseError as e:
            # The store treats an unusable database as empty and drops writes.
            logger.error(
                f"Could not open progress database at {db_path}; "
                f"progress will not be saved: {e}"
            )
        store.load()
        session = ReviewSession(catalog, store, clock=clock, rng=rng)
        return start_review_flow(session)
    finally:
        store.close()
        db.close_connection()
