"""
Unit tests for schema definitions.

Tests cover:
- Record model behavior
- EvictionResult arithmetic
- HistoryConfig defaults and validation
- YAML config loading
"""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from clipvault.errors import ConfigError
from clipvault.paths import SQLITE_FILE
from clipvault.schema import (
    DEFAULT_CAPACITY,
    DEFAULT_EVICTION_MARGIN,
    DEFAULT_SEARCH_LIMIT,
    EvictionResult,
    HistoryConfig,
    Record,
    load_config,
    load_config_from_string,
)


# =============================================================================
# Record Tests
# =============================================================================


class TestRecord:
    """Tests for Record model."""

    def test_defaults(self) -> None:
        record = Record(id=1, content="x", created_at=0)
        assert record.is_favorite is False
        assert record.fingerprint == ""
        assert record.content_highlight is None

    def test_frozen(self) -> None:
        """Records are immutable snapshots."""
        record = Record(id=1, content="x", created_at=0)
        with pytest.raises(ValidationError):
            record.content = "y"  # type: ignore[misc]

    def test_id_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Record(id=0, content="x", created_at=0)

    def test_with_highlight_copies(self) -> None:
        record = Record(id=1, content="abc", created_at=0)
        highlighted = record.with_highlight("a<mark>b</mark>c")

        assert highlighted.content_highlight == "a<mark>b</mark>c"
        assert highlighted.content == "abc"
        assert record.content_highlight is None

    def test_created_datetime(self) -> None:
        record = Record(id=1, content="x", created_at=1_700_000_000_123)
        assert record.created_datetime == datetime(
            2023, 11, 14, 22, 13, 20, 123000, tzinfo=UTC
        )

    def test_json_roundtrip_fields(self) -> None:
        data = Record(id=3, content="x", created_at=5, is_favorite=True).model_dump()
        assert data == {
            "id": 3,
            "content": "x",
            "fingerprint": "",
            "created_at": 5,
            "is_favorite": True,
            "content_highlight": None,
        }


class TestEvictionResult:
    """Tests for EvictionResult."""

    def test_not_triggered(self) -> None:
        result = EvictionResult(count_before=10)
        assert result.triggered is False
        assert result.count_after == 10

    def test_triggered(self) -> None:
        result = EvictionResult(count_before=151, deleted=51, triggered=True)
        assert result.count_after == 100


# =============================================================================
# Config Tests
# =============================================================================


class TestHistoryConfig:
    """Tests for HistoryConfig."""

    def test_defaults(self) -> None:
        config = HistoryConfig()
        assert config.capacity == DEFAULT_CAPACITY
        assert config.eviction_margin == DEFAULT_EVICTION_MARGIN == 50
        assert config.search_limit == DEFAULT_SEARCH_LIMIT
        assert config.highlight_open == "<mark>"
        assert config.highlight_close == "</mark>"
        assert config.evict_on_capture is True

    def test_default_db_path(self) -> None:
        """Without db_path the platform data dir is used."""
        path = HistoryConfig().resolved_db_path()
        assert path.name == SQLITE_FILE

    def test_explicit_db_path(self, temp_dir: Path) -> None:
        config = HistoryConfig(db_path=temp_dir / "h.sqlite")
        assert config.resolved_db_path() == temp_dir / "h.sqlite"

    def test_rejects_negative_capacity(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig(capacity=-1)

    def test_rejects_zero_search_limit(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig(search_limit=0)

    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig.model_validate({"capacityy": 10})


class TestLoadConfig:
    """Tests for YAML config loading."""

    def test_load_from_string(self, sample_config_yaml: str) -> None:
        config = load_config_from_string(sample_config_yaml)
        assert config.capacity == 100
        assert config.eviction_margin == 10
        assert config.search_limit == 5
        assert config.highlight_open == "[["
        assert config.highlight_close == "]]"

    def test_empty_yaml_gives_defaults(self) -> None:
        assert load_config_from_string("") == HistoryConfig()

    def test_load_from_file(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text(f"db_path: {temp_dir / 'x.sqlite'}\ncapacity: 7\n")

        config = load_config(path)
        assert config.capacity == 7
        assert config.db_path == temp_dir / "x.sqlite"

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(temp_dir / "missing.yaml")
        assert "missing.yaml" in exc_info.value.path

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ConfigError):
            load_config_from_string("capacity: [unclosed")

    def test_non_mapping(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config_from_string("- a\n- b\n")
        assert "mapping" in exc_info.value.reason

    def test_invalid_values(self) -> None:
        with pytest.raises(ConfigError):
            load_config_from_string("capacity: -5\n")

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError):
            load_config_from_string("colour: blue\n")
