"""
Clipboard history service.

ClipboardHistory is the layer the capture pipeline and the UI talk to. It
owns one HistoryStore and applies the user's HistoryConfig:
- capture() records text and then runs the retention pass
- search()/recent() use the configured limits and highlight markers

Capture Flow:
    1. Reject non-text input, skip empty or whitespace-only text
    2. insert_or_touch the text
    3. evict_overflow(capacity, margin) when evict_on_capture is set
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from clipvault.errors import InvalidQueryError
from clipvault.schema import EvictionResult, HistoryConfig, Record
from clipvault.store import HistoryStore


@dataclass
class HistoryStats:
    """
    Snapshot of the history size.

    Attributes:
        db_path: Location of the database
        total: Number of stored records
        favorites: Number of favorite records
        capacity: Configured capacity
        eviction_margin: Configured overflow margin
    """

    db_path: str
    total: int
    favorites: int
    capacity: int
    eviction_margin: int

    @property
    def overflow(self) -> int:
        """Records above capacity (0 when under)."""
        return max(0, self.total - self.capacity)


class ClipboardHistory:
    """
    Configured access to the clipboard history.

    Usage:
        with ClipboardHistory(HistoryConfig(db_path=Path("data.sqlite"))) as history:
            history.capture("hello")
            hits = history.search("hell")

    Attributes:
        config: The active configuration
        store: The underlying HistoryStore
    """

    def __init__(
        self,
        config: HistoryConfig | None = None,
        store: HistoryStore | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Configuration (defaults used if None)
            store: Store to use; opened from config.db_path if None
        """
        self.config = config or HistoryConfig()
        self._owns_store = store is None
        self.store = store or HistoryStore(self.config.resolved_db_path())

    def close(self) -> None:
        """Close the store if this service opened it."""
        if self._owns_store:
            self.store.close()

    def __enter__(self) -> "ClipboardHistory":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    def capture(self, content: str) -> int | None:
        """
        Record captured text and apply the retention policy.

        Args:
            content: Text coming from the clipboard

        Returns:
            Id of the stored record, or None if the text was skipped
        """
        if not isinstance(content, str):
            raise InvalidQueryError(argument="content", value=repr(type(content)))
        if not content.strip():
            logger.warning("Ignoring empty clipboard capture")
            return None

        record_id = self.store.insert_or_touch(content)
        if self.config.evict_on_capture:
            self.trim()
        return record_id

    def trim(self) -> EvictionResult:
        """Run the retention pass with the configured capacity and margin."""
        return self.store.evict_overflow(
            self.config.capacity,
            self.config.eviction_margin,
        )

    def search(self, query: str, limit: int | None = None) -> list[Record]:
        """Search with the configured limit and highlight markers."""
        return self.store.search(
            query,
            self.config.search_limit if limit is None else limit,
            open_marker=self.config.highlight_open,
            close_marker=self.config.highlight_close,
        )

    def recent(self, limit: int | None = None) -> list[Record]:
        """Newest records first, optionally truncated."""
        records = self.store.list_all()
        return records if limit is None else records[:limit]

    def favorites(self) -> list[Record]:
        return self.store.list_favorites()

    def favorite(self, record_id: int) -> bool:
        """Flag a record as favorite; False if the id is unknown."""
        return self.store.mark_favorite(record_id)

    def get(self, record_id: int) -> Record | None:
        return self.store.get(record_id)

    def clear(self) -> int:
        return self.store.clear_all()

    def stats(self) -> HistoryStats:
        """Current size of the history."""
        db_path = self.store.db_path
        return HistoryStats(
            db_path=str(db_path.resolve() if isinstance(db_path, Path) else db_path),
            total=self.store.count(),
            favorites=self.store.count_favorites(),
            capacity=self.config.capacity,
            eviction_margin=self.config.eviction_margin,
        )
