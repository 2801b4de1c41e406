"""
Schema definitions for clipvault.

This module defines the Pydantic models used throughout clipvault:
- Record: One stored clipboard entry (plus its transient search highlight)
- EvictionResult: Outcome of a retention pass
- HistoryConfig: User configuration loaded from YAML

Design Decisions:
    - Records are immutable snapshots (frozen=True); the store is the only
      place where a record changes
    - Timestamps are integer milliseconds since the Unix epoch, matching the
      persisted created_time column
    - Config rejects unknown keys so typos surface immediately
"""

from datetime import UTC, datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clipvault.content import DEFAULT_HIGHLIGHT_CLOSE, DEFAULT_HIGHLIGHT_OPEN
from clipvault.errors import ConfigError
from clipvault.paths import default_db_path

DEFAULT_CAPACITY = 1000
DEFAULT_EVICTION_MARGIN = 50
DEFAULT_SEARCH_LIMIT = 50


# =============================================================================
# Record Models
# =============================================================================


class Record(BaseModel):
    """
    A single clipboard history entry.

    Attributes:
        id: Store-assigned identifier, never reused
        content: The captured text
        fingerprint: Digest of content, used as the dedup key
        created_at: Last time this content was seen (ms since epoch)
        is_favorite: Whether the user pinned this entry
        content_highlight: Annotated content, only set on search results
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Store-assigned identifier")
    content: str = Field(..., description="Captured text")
    fingerprint: str = Field(default="", description="Dedup digest of content")
    created_at: int = Field(..., description="Last seen, ms since epoch")
    is_favorite: bool = Field(default=False, description="Pinned by the user")
    content_highlight: str | None = Field(
        default=None,
        description="Content with search matches marked (search results only)",
    )

    @property
    def created_datetime(self) -> datetime:
        """created_at as an aware UTC datetime."""
        return datetime.fromtimestamp(self.created_at / 1000, tz=UTC)

    def with_highlight(self, annotated: str) -> "Record":
        """Return a copy carrying the given highlight text."""
        return self.model_copy(update={"content_highlight": annotated})


class EvictionResult(BaseModel):
    """
    Outcome of HistoryStore.evict_overflow.

    Attributes:
        count_before: Rows present when the pass started
        deleted: Rows removed by the pass
        triggered: Whether the overflow exceeded the margin
    """

    model_config = ConfigDict(frozen=True)

    count_before: int = Field(..., ge=0)
    deleted: int = Field(default=0, ge=0)
    triggered: bool = False

    @property
    def count_after(self) -> int:
        """Rows left after the pass."""
        return self.count_before - self.deleted


# =============================================================================
# Configuration
# =============================================================================


class HistoryConfig(BaseModel):
    """
    User configuration for the clipboard history.

    Attributes:
        db_path: Location of the SQLite file (platform data dir by default)
        capacity: Number of entries kept after a retention pass
        eviction_margin: Overflow tolerated above capacity before trimming
        search_limit: Default maximum number of search results
        highlight_open: Marker inserted before each search match
        highlight_close: Marker inserted after each search match
        evict_on_capture: Run the retention pass after every capture
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    db_path: Path | None = Field(
        default=None,
        description="SQLite file path; defaults to the platform data directory",
    )
    capacity: int = Field(default=DEFAULT_CAPACITY, ge=0)
    eviction_margin: int = Field(default=DEFAULT_EVICTION_MARGIN, ge=0)
    search_limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1)
    highlight_open: str = Field(default=DEFAULT_HIGHLIGHT_OPEN)
    highlight_close: str = Field(default=DEFAULT_HIGHLIGHT_CLOSE)
    evict_on_capture: bool = True

    def resolved_db_path(self) -> Path:
        """Return db_path, falling back to the platform default."""
        if self.db_path is not None:
            return self.db_path.expanduser()
        return default_db_path()


def load_config(path: Path | str) -> HistoryConfig:
    """
    Load a configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated HistoryConfig (defaults for an empty file)

    Raises:
        ConfigError: If the file can't be read or doesn't match the schema
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(path=str(path), reason=str(e)) from e

    return load_config_from_string(content, source=str(path))


def load_config_from_string(content: str, source: str = "<string>") -> HistoryConfig:
    """Load a configuration from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(path=source, reason=str(e)) from e

    if data is None:
        return HistoryConfig()
    if not isinstance(data, dict):
        raise ConfigError(path=source, reason="top level must be a mapping")

    try:
        return HistoryConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(path=source, reason=str(e)) from e
