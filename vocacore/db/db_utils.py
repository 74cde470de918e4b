"""
Marshalling between CardMemoryState models and the stored JSON array, plus
file-level backup helpers for the database.
"""

import json
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from ..exceptions import MarshallingError
from ..models import CardMemoryState


def states_to_json(states: Sequence[CardMemoryState]) -> str:
    """
    Serialize states as a JSON array of {"N", "EF", "I", "lastReviewed"}
    objects, positionally aligned with the catalog.
    """
    return json.dumps([state.to_storage() for state in states])


def json_to_states(payload: str) -> List[CardMemoryState]:
    """
    Parse a stored JSON array back into CardMemoryState models.

    Raises:
        MarshallingError: If the payload is not valid JSON, not a list, or any
            element fails validation.
    """
    try:
        raw = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise MarshallingError(
            f"Stored card states are not valid JSON: {e}", original_exception=e
        ) from e

    if not isinstance(raw, list):
        raise MarshallingError(
            f"Stored card states must be a JSON array, got {type(raw).__name__}."
        )

    try:
        return [CardMemoryState.model_validate(item) for item in raw]
    except ValidationError as e:
        raise MarshallingError(
            f"Data validation failed for stored card state: {e}",
            original_exception=e,
        ) from e


def find_latest_backup(db_path: Path) -> Optional[Path]:
    """
    Locate the most recent backup of `db_path` in its "backups" sibling
    directory, or None if there is none.
    """
    backup_dir = db_path.parent / "backups"
    if not backup_dir.exists():
        return None

    backup_files = list(backup_dir.glob(f"{db_path.stem}-backup-*{db_path.suffix}"))
    if not backup_files:
        return None

    # Names embed the timestamp, so the lexically greatest is the latest.
    return max(backup_files, key=lambda p: p.name)


def backup_database(db_path: Path) -> Path:
    """
    Copy the database file into a timestamped file under "backups".

    Returns:
        The backup path, or `db_path` itself when there is nothing to back up.
    """
    if not db_path.exists():
        return db_path

    backup_dir = db_path.parent / "backups"
    backup_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    backup_path = backup_dir / f"{db_path.stem}-backup-{timestamp}{db_path.suffix}"

    shutil.copy2(db_path, backup_path)
    return backup_path
