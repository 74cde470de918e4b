"""
Unit tests for the vocacore.cli._review_logic module.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

from vocacore.cli._review_logic import review_logic
from vocacore.constants import DEFAULT_STORAGE_KEY
from vocacore.exceptions import SchemaInitializationError


def test_schema_failure_still_runs_session_and_closes_database(
    tmp_path: Path, clock, rng, capsys
):
    mock_db = MagicMock()
    mock_db.initialize_schema.side_effect = SchemaInitializationError("no table")
    mock_db.get_item.return_value = None

    with patch(
        "vocacore.cli._review_logic.KeyValueDatabase", return_value=mock_db
    ), patch("rich.console.Console.input", side_effect=["", "", "q"]):
        stats = review_logic(
            db_path=tmp_path / "progress.db",
            catalog_path=None,
            storage_key=DEFAULT_STORAGE_KEY,
            clock=clock,
            rng=rng,
        )

    assert stats.skipped == 1
    assert stats.cards_reviewed == 1
    mock_db.get_item.assert_called_once_with(DEFAULT_STORAGE_KEY)
    mock_db.set_item.assert_called_once()
    mock_db.close_connection.assert_called_once()
    assert "Review session finished." in capsys.readouterr().out
