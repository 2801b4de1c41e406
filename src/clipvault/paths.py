"""
Platform locations for clipvault files.

The history database lives in the per-user data directory under the
same file name the desktop app has always used.
"""

from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "clipvault"
SQLITE_FILE = "data.sqlite"
CONFIG_FILE = "config.yaml"


def data_dir() -> Path:
    """Per-user data directory (not created)."""
    return Path(user_data_dir(APP_NAME, appauthor=False))


def config_dir() -> Path:
    """Per-user config directory (not created)."""
    return Path(user_config_dir(APP_NAME, appauthor=False))


def default_db_path() -> Path:
    return data_dir() / SQLITE_FILE


def default_config_path() -> Path:
    return config_dir() / CONFIG_FILE
