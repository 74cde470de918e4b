import json
import logging
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from vocacore.constants import DEFAULT_STORAGE_KEY
from vocacore.db import KeyValueDatabase
from vocacore.exceptions import StorageOperationError
from vocacore.models import CardMemoryState
from vocacore.store import CardStateStore

T = 1_700_000_000_000


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock(spec=KeyValueDatabase)
    storage.get_item.return_value = None
    return storage


def _stored(db: KeyValueDatabase, key: str = DEFAULT_STORAGE_KEY):
    payload = db.get_item(key)
    return None if payload is None else json.loads(payload)


def test_load_without_stored_progress_gives_defaults(store: CardStateStore):
    assert len(store) == 5
    assert store.snapshot() == tuple(CardMemoryState() for _ in range(5))


def test_load_returns_a_copy(store: CardStateStore):
    states = store.load()
    states[0] = CardMemoryState(repetitions=9, interval=9)
    assert store[0] == CardMemoryState()


def test_apply_updates_memory_and_persists_full_array(
    store: CardStateStore, memory_db: KeyValueDatabase
):
    new_state = CardMemoryState(repetitions=1, easiness=2.5, interval=1, last_reviewed=T)

    future = store.apply(2, new_state)

    assert store[2] == new_state
    assert future.result(timeout=5) is True
    stored = _stored(memory_db)
    assert len(stored) == 5
    assert stored[2] == {"N": 1, "EF": 2.5, "I": 1, "lastReviewed": T}
    assert stored[0] == {"N": 0, "EF": 2.5, "I": 0, "lastReviewed": None}


def test_progress_survives_a_new_store(store: CardStateStore, memory_db: KeyValueDatabase):
    store.apply(0, CardMemoryState(repetitions=2, easiness=2.36, interval=6, last_reviewed=T))
    store.apply(4, CardMemoryState(repetitions=0, easiness=1.8, interval=0, last_reviewed=T))
    assert store.flush(timeout=5)

    reloaded = CardStateStore(memory_db, catalog_size=5)
    try:
        states = reloaded.load()
    finally:
        reloaded.close()

    assert states[0].easiness == 2.36
    assert states[0].interval == 6
    assert states[4].easiness == 1.8
    assert states[1] == CardMemoryState()


def test_writes_land_in_issue_order(store: CardStateStore, memory_db: KeyValueDatabase):
    for day in range(20):
        store.apply(1, CardMemoryState(repetitions=day, interval=day, last_reviewed=T + day))
    assert store.flush(timeout=5)
    assert _stored(memory_db)[1]["N"] == 19


def test_length_mismatch_resets_to_defaults(memory_db: KeyValueDatabase, caplog):
    memory_db.set_item(
        DEFAULT_STORAGE_KEY,
        json.dumps([{"N": 3, "EF": 2.0, "I": 9, "lastReviewed": T}] * 3),
    )
    store = CardStateStore(memory_db, catalog_size=5)
    try:
        with caplog.at_level(logging.INFO, logger="vocacore.store"):
            states = store.load()
    finally:
        store.close()

    assert states == [CardMemoryState()] * 5
    assert "resetting all cards to defaults" in caplog.text


@pytest.mark.parametrize(
    "payload", ["{not json", '{"N": 1}', '[{"N": 1, "EF": 0.2, "I": 0, "lastReviewed": null}]']
)
def test_corrupt_progress_resets_to_defaults(memory_db: KeyValueDatabase, payload):
    memory_db.set_item(DEFAULT_STORAGE_KEY, payload)
    store = CardStateStore(memory_db, catalog_size=1)
    try:
        assert store.load() == [CardMemoryState()]
    finally:
        store.close()


def test_read_failure_resets_to_defaults(mock_storage: MagicMock):
    mock_storage.get_item.side_effect = StorageOperationError("disk gone")
    store = CardStateStore(mock_storage, catalog_size=2)
    try:
        assert store.load() == [CardMemoryState(), CardMemoryState()]
    finally:
        store.close()


def test_write_failure_is_logged_and_dropped(mock_storage: MagicMock, caplog):
    mock_storage.set_item.side_effect = StorageOperationError("disk full")
    store = CardStateStore(mock_storage, catalog_size=2)
    store.load()
    new_state = CardMemoryState(repetitions=1, interval=1, last_reviewed=T)
    try:
        with caplog.at_level(logging.ERROR, logger="vocacore.store"):
            future = store.apply(0, new_state)
            assert future.result(timeout=5) is False
    finally:
        store.close()

    assert store[0] == new_state
    assert "update dropped" in caplog.text


def test_unexpected_write_failure_is_contained(mock_storage: MagicMock):
    mock_storage.set_item.side_effect = RuntimeError("boom")
    store = CardStateStore(mock_storage, catalog_size=1)
    try:
        assert store.apply(0, CardMemoryState()).result(timeout=5) is False
    finally:
        store.close()


def test_custom_storage_key(memory_db: KeyValueDatabase):
    store = CardStateStore(memory_db, catalog_size=1, storage_key="OTHER")
    try:
        store.load()
        store.apply(0, CardMemoryState(repetitions=1, interval=1, last_reviewed=T))
        store.flush(timeout=5)
    finally:
        store.close()
    assert memory_db.keys() == ["OTHER"]


def test_reset_removes_stored_progress(store: CardStateStore, memory_db: KeyValueDatabase):
    store.apply(0, CardMemoryState(repetitions=1, interval=1, last_reviewed=T))

    assert store.reset() is True
    assert memory_db.get_item(DEFAULT_STORAGE_KEY) is None
    assert store.load() == [CardMemoryState()] * 5


def test_reset_failure_returns_false(mock_storage: MagicMock):
    mock_storage.remove_item.side_effect = StorageOperationError("locked")
    store = CardStateStore(mock_storage, catalog_size=1)
    try:
        assert store.reset() is False
    finally:
        store.close()


def test_shared_executor_is_not_shut_down(memory_db: KeyValueDatabase):
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        store = CardStateStore(memory_db, catalog_size=1, executor=executor)
        store.load()
        store.close()
        assert executor.submit(lambda: 7).result(timeout=5) == 7
    finally:
        executor.shutdown(wait=True)
