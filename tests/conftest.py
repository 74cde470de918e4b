import logging
import random
import sys
from pathlib import Path
from typing import Generator, List

import pytest

from vocacore.constants import DAY_MS
from vocacore.db import KeyValueDatabase
from vocacore.models import CatalogEntry
from vocacore.store import CardStateStore

# 2023-11-14T22:13:20Z
NOW_MS = 1_700_000_000_000


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """
    Run each test with the working directory set to its tmpdir, so that a
    stray .env file or database never leaks between tests.
    """
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


class FakeClock:
    """Injectable clock whose time only moves when a test moves it."""

    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance_days(self, days: float) -> None:
        self.now += int(days * DAY_MS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def catalog() -> List[CatalogEntry]:
    """Five entries with distinct meanings."""
    return [
        CatalogEntry(word="apple", meaning="a round fruit"),
        CatalogEntry(word="bridge", meaning="a structure over water"),
        CatalogEntry(word="candle", meaning="a wax light source"),
        CatalogEntry(word="desert", meaning="a dry sandy region"),
        CatalogEntry(word="engine", meaning="a machine that makes motion"),
    ]


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_vocacore.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[KeyValueDatabase, None, None]:
    """
    A KeyValueDatabase that is either in-memory or file-backed, closed (and
    its file removed) on teardown.
    """
    if request.param == "memory":
        db_man = KeyValueDatabase(db_path_memory)
    else:
        db_man = KeyValueDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()
        if request.param == "file" and db_path_file.exists():
            try:
                db_path_file.unlink()
            except OSError as e:
                logging.warning(
                    f"Error removing temporary DB file in test fixture teardown: {e}"
                )


@pytest.fixture
def initialized_db_manager(db_manager: KeyValueDatabase) -> KeyValueDatabase:
    db_manager.initialize_schema()
    return db_manager


@pytest.fixture
def memory_db() -> Generator[KeyValueDatabase, None, None]:
    db = KeyValueDatabase(":memory:")
    db.initialize_schema()
    try:
        yield db
    finally:
        db.close_connection()


@pytest.fixture
def store(
    memory_db: KeyValueDatabase, catalog: List[CatalogEntry]
) -> Generator[CardStateStore, None, None]:
    """A loaded CardStateStore for `catalog`, backed by `memory_db`."""
    card_store = CardStateStore(memory_db, catalog_size=len(catalog))
    card_store.load()
    try:
        yield card_store
    finally:
        card_store.close()
