"""
The card state store: the authoritative in-memory memory states for a session,
loaded once from storage and written back after every grading event.

Writes are fire-and-forget. They run in issue order on a single background
worker, each one serializing the entire state array, and a failed write is
logged and dropped. Storage problems never reach scheduling or grading.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional, Set, Tuple

from .constants import DEFAULT_STORAGE_KEY
from .db.database import KeyValueDatabase
from .db.db_utils import json_to_states, states_to_json
from .exceptions import DatabaseError
from .models import CardMemoryState

logger = logging.getLogger(__name__)


class CardStateStore:
    """
    Holds one CardMemoryState per catalog index.

    Typical use:
        store = CardStateStore(db, catalog_size=len(catalog))
        store.load()
        store.apply(index, new_state)   # returns immediately
        store.close()                   # waits for pending writes
    """

    def __init__(
        self,
        storage: KeyValueDatabase,
        catalog_size: int,
        storage_key: str = DEFAULT_STORAGE_KEY,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.storage = storage
        self.catalog_size = catalog_size
        self.storage_key = storage_key
        self._states: List[CardMemoryState] = self._default_states()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="vocacore-writer"
        )
        self._owns_executor = executor is None
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

    def _default_states(self) -> List[CardMemoryState]:
        return [CardMemoryState() for _ in range(self.catalog_size)]

    def _read_stored_states(self) -> Optional[List[CardMemoryState]]:
        try:
            payload = self.storage.get_item(self.storage_key)
        except DatabaseError as e:
            logger.error(
                f"Could not read stored progress, starting fresh: {e}"
            )
            return None
        if payload is None:
            logger.info("No stored progress found, starting fresh.")
            return None
        try:
            return json_to_states(payload)
        except DatabaseError as e:
            logger.error(f"Stored progress is unreadable, starting fresh: {e}")
            return None

    def load(self) -> List[CardMemoryState]:
        """
        Replace the in-memory states with the stored ones.

        Falls back to default states when nothing is stored, the stored value
        cannot be read, or its length does not match the catalog (the catalog
        changed since the progress was saved).

        Returns:
            A copy of the loaded states.
        """
        stored = self._read_stored_states()
        if stored is not None and len(stored) != self.catalog_size:
            logger.info(
                f"Stored progress has {len(stored)} cards but the catalog has "
                f"{self.catalog_size}; resetting all cards to defaults."
            )
            stored = None
        self._states = stored if stored is not None else self._default_states()
        return list(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __getitem__(self, index: int) -> CardMemoryState:
        return self._states[index]

    def snapshot(self) -> Tuple[CardMemoryState, ...]:
        return tuple(self._states)

    def apply(self, index: int, state: CardMemoryState) -> Future:
        """
        Replace the state at `index` and issue a write of the full array.

        The in-memory update is immediate; the returned future completes when
        the write has been attempted. It never raises.
        """
        self._states[index] = state
        return self._issue_write(states_to_json(self._states))

    def _issue_write(self, payload: str) -> Future:
        future = self._executor.submit(self._write, payload)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._discard_pending)
        return future

    def _discard_pending(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _write(self, payload: str) -> bool:
        try:
            self.storage.set_item(self.storage_key, payload)
            return True
        except DatabaseError as e:
            logger.error(f"Failed to persist card states, update dropped: {e}")
        except Exception:
            logger.exception("Unexpected error while persisting card states")
        return False

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every issued write to finish.

        Returns:
            True if nothing is left pending.
        """
        with self._pending_lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def reset(self) -> bool:
        """
        Delete the stored progress.

        Pending writes are flushed first so none of them recreates the key.
        In-memory states are left as they are until the next load().

        Returns:
            True on success, False if the storage reported an error.
        """
        self.flush()
        try:
            self.storage.remove_item(self.storage_key)
        except DatabaseError as e:
            logger.error(f"Failed to reset stored progress: {e}")
            return False
        logger.info(f"Stored progress under '{self.storage_key}' was reset.")
        return True

    def close(self) -> None:
        """Flush pending writes and stop the writer if this store owns it."""
        self.flush()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
