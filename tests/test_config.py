from pathlib import Path

from vocacore.config import Settings, get_default_db_path, get_settings
from vocacore.constants import DEFAULT_STORAGE_KEY


def test_defaults(monkeypatch):
    for name in ("DB_PATH", "CATALOG_PATH", "STORAGE_KEY", "LOG_LEVEL"):
        monkeypatch.delenv(f"VOCACORE_{name}", raising=False)

    settings = get_settings()

    assert settings.db_path == get_default_db_path()
    assert settings.db_path.name == "vocacore.db"
    assert settings.catalog_path is None
    assert settings.storage_key == DEFAULT_STORAGE_KEY
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("VOCACORE_DB_PATH", str(tmp_path / "p.db"))
    monkeypatch.setenv("VOCACORE_CATALOG_PATH", str(tmp_path / "w.yaml"))
    monkeypatch.setenv("VOCACORE_STORAGE_KEY", "OTHER_KEY")
    monkeypatch.setenv("VOCACORE_LOG_LEVEL", "DEBUG")

    settings = Settings()

    assert settings.db_path == tmp_path / "p.db"
    assert settings.catalog_path == tmp_path / "w.yaml"
    assert settings.storage_key == "OTHER_KEY"
    assert settings.log_level == "DEBUG"


def test_dotenv_file_in_working_directory(monkeypatch):
    monkeypatch.delenv("VOCACORE_STORAGE_KEY", raising=False)
    Path(".env").write_text("VOCACORE_STORAGE_KEY=FROM_DOTENV\n", encoding="utf-8")

    assert Settings().storage_key == "FROM_DOTENV"
