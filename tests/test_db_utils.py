import json
import time
from pathlib import Path

import pytest

from vocacore.db.db_utils import (
    backup_database,
    find_latest_backup,
    json_to_states,
    states_to_json,
)
from vocacore.exceptions import MarshallingError
from vocacore.models import CardMemoryState


def test_states_to_json_uses_persisted_layout():
    states = [
        CardMemoryState(),
        CardMemoryState(repetitions=2, easiness=2.36, interval=6, last_reviewed=5),
    ]
    assert json.loads(states_to_json(states)) == [
        {"N": 0, "EF": 2.5, "I": 0, "lastReviewed": None},
        {"N": 2, "EF": 2.36, "I": 6, "lastReviewed": 5},
    ]


def test_json_to_states_reads_persisted_layout():
    payload = '[{"N": 1, "EF": 2.5, "I": 1, "lastReviewed": 1000}]'
    assert json_to_states(payload) == [
        CardMemoryState(repetitions=1, easiness=2.5, interval=1, last_reviewed=1000)
    ]


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"N": 1}',
        '[{"N": "many", "EF": 2.5, "I": 0, "lastReviewed": null}]',
        '[{"EF": 0.5}]',
    ],
)
def test_json_to_states_rejects_bad_payloads(payload):
    with pytest.raises(MarshallingError):
        json_to_states(payload)


def test_backup_of_missing_database_returns_path(tmp_path: Path):
    db_path = tmp_path / "progress.db"
    assert backup_database(db_path) == db_path
    assert not (tmp_path / "backups").exists()


def test_backup_and_find_latest(tmp_path: Path):
    db_path = tmp_path / "progress.db"
    db_path.write_bytes(b"first")
    first = backup_database(db_path)
    time.sleep(0.01)
    db_path.write_bytes(b"second")
    second = backup_database(db_path)

    assert first.parent == tmp_path / "backups"
    assert first.name.startswith("progress-backup-")
    assert first.suffix == ".db"
    assert first.read_bytes() == b"first"
    assert find_latest_backup(db_path) == second


def test_find_latest_backup_without_backups(tmp_path: Path):
    db_path = tmp_path / "progress.db"
    assert find_latest_backup(db_path) is None
    (tmp_path / "backups").mkdir()
    (tmp_path / "backups" / "other-backup-1.db").write_bytes(b"")
    assert find_latest_backup(db_path) is None
