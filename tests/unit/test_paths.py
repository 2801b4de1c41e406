"""
Unit tests for platform paths.
"""

from pathlib import Path

from clipvault.paths import (
    APP_NAME,
    CONFIG_FILE,
    SQLITE_FILE,
    config_dir,
    data_dir,
    default_config_path,
    default_db_path,
)


class TestPaths:
    """Tests for default file locations."""

    def test_db_in_data_dir(self) -> None:
        assert default_db_path() == data_dir() / SQLITE_FILE
        assert SQLITE_FILE == "data.sqlite"

    def test_config_in_config_dir(self) -> None:
        assert default_config_path() == config_dir() / CONFIG_FILE

    def test_dirs_named_after_app(self) -> None:
        assert APP_NAME in data_dir().parts[-1]
        assert APP_NAME in config_dir().parts[-1]

    def test_dirs_not_created(self, monkeypatch, temp_dir: Path) -> None:
        """Resolving a location has no side effects."""
        monkeypatch.setenv("XDG_DATA_HOME", str(temp_dir / "xdg"))
        data_dir()
        assert not (temp_dir / "xdg").exists()
