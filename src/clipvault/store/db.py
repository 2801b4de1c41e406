"""
SQLite storage for clipvault.

This module provides the persistent clipboard history. All entries live in
a single `record` table inside one SQLite file.

Design Principles:
    - Dedup: one row per content fingerprint; re-captured text is touched
      (its created_time refreshed) instead of inserted again
    - Recency: every listing is newest first by created_time
    - Atomic: check-then-write sequences run in one BEGIN IMMEDIATE scope
    - Bounded: evict_overflow trims back to capacity once the overflow
      exceeds a margin, so deletes are batched across many captures

Table:
    record(id, content, fingerprint, created_time, is_favorite)
"""

import sqlite3
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generator

from loguru import logger

from clipvault.content import (
    DEFAULT_HIGHLIGHT_CLOSE,
    DEFAULT_HIGHLIGHT_OPEN,
    fingerprint,
    highlight,
)
from clipvault.errors import (
    InvalidQueryError,
    StorageConnectionError,
    StorageReadError,
    StorageWriteError,
)
from clipvault.schema import DEFAULT_EVICTION_MARGIN, EvictionResult, Record

# Overflow above capacity tolerated before a retention pass deletes anything
EVICTION_MARGIN = DEFAULT_EVICTION_MARGIN

# Stay well below SQLITE_MAX_VARIABLE_NUMBER (999 on older builds)
ID_BATCH_SIZE = 500

MEMORY_DB = ":memory:"

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS record (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    content      TEXT,
    fingerprint  VARCHAR(200) DEFAULT '',
    created_time INTEGER,
    is_favorite  INTEGER DEFAULT 0
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_record_fingerprint ON record(fingerprint);
CREATE INDEX IF NOT EXISTS idx_record_created_time ON record(created_time);
"""

RECORD_COLUMNS = "id, content, fingerprint, created_time, is_favorite"


def now_ms() -> int:
    """Get current UTC time in milliseconds since the epoch."""
    return int(datetime.now(UTC).timestamp() * 1000)


def _row_to_record(row: sqlite3.Row) -> Record:
    return Record(
        id=row["id"],
        content=row["content"] or "",
        fingerprint=row["fingerprint"] or "",
        created_at=row["created_time"] or 0,
        is_favorite=bool(row["is_favorite"]),
    )


class HistoryStore:
    """
    SQLite-backed clipboard history.

    Construct one store at startup and pass it to whoever needs it; the
    connection stays open until close(). The store does no locking of its
    own, callers serialize access.

    Usage:
        store = HistoryStore("data.sqlite")
        store.insert_or_touch("hello")
        store.search("ell", limit=10)
        store.close()

    Or use as context manager:
        with HistoryStore("data.sqlite") as store:
            ...
    """

    def __init__(
        self,
        db_path: str | Path,
        clock: Callable[[], int] | None = None,
        timeout: float = 5.0,
    ) -> None:
        """
        Open (creating if needed) the history database.

        Args:
            db_path: Path to the SQLite file, or ":memory:".
                     Missing parent directories are created.
            clock: Returns the current time in ms; defaults to now_ms
            timeout: Seconds to wait for another writer to release its lock

        Raises:
            StorageConnectionError: If the file or schema can't be set up
        """
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self._clock = clock or now_ms
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._connect()
        self.init()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit; transaction() issues BEGIN/COMMIT explicitly
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=self._timeout,
                check_same_thread=False,
                isolation_level=None,
            )
            self._conn.row_factory = sqlite3.Row
        except (OSError, sqlite3.Error) as e:
            raise StorageConnectionError(
                db_path=str(self.db_path),
                operation="connect",
                message=f"Failed to open history database {self.db_path}: {e}",
            ) from e

    def init(self) -> None:
        """
        Create the record table and its indexes if they are absent.

        Safe to call any number of times.

        Raises:
            StorageConnectionError: If the schema can't be created
        """
        try:
            self.conn.executescript(CREATE_TABLES_SQL)
        except sqlite3.Error as e:
            self.close()
            raise StorageConnectionError(
                db_path=str(self.db_path),
                operation="init_schema",
                message=f"Failed to initialize history schema in {self.db_path}: {e}",
            ) from e
        logger.debug("History store ready at {}", self.db_path)

    @property
    def conn(self) -> sqlite3.Connection:
        """The open connection."""
        if self._conn is None:
            raise StorageConnectionError(
                db_path=str(self.db_path),
                operation="use",
                message="History store is closed",
            )
        return self._conn

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Run the enclosed statements in one write transaction."""
        conn = self.conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            # SQLite may already have rolled back (e.g. after SQLITE_FULL)
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "HistoryStore":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    # =========================================================================
    # Write Operations
    # =========================================================================

    def insert_or_touch(self, content: str) -> int:
        """
        Record a piece of captured text.

        If text with the same fingerprint is already stored, only its
        created_time is refreshed, so it moves to the top of the history
        while keeping its id. Otherwise a new record is inserted.

        Args:
            content: The captured text

        Returns:
            Id of the touched or inserted record
        """
        if not isinstance(content, str):
            raise InvalidQueryError(argument="content", value=repr(type(content)))

        digest = fingerprint(content)
        now = self._clock()
        try:
            with self.transaction():
                row = self.conn.execute(
                    "SELECT id FROM record WHERE fingerprint = ?",
                    (digest,),
                ).fetchone()
                if row is not None:
                    self.conn.execute(
                        "UPDATE record SET created_time = ? WHERE id = ?",
                        (now, row["id"]),
                    )
                    logger.debug("Touched record {}", row["id"])
                    return row["id"]

                cursor = self.conn.execute(
                    """
                    INSERT INTO record (content, fingerprint, created_time, is_favorite)
                    VALUES (?, ?, ?, 0)
                    """,
                    (content, digest, now),
                )
                logger.debug("Inserted record {}", cursor.lastrowid)
                return cursor.lastrowid
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="insert_or_touch",
                underlying_error=str(e),
            ) from e

    def mark_favorite(self, record_id: int) -> bool:
        """
        Flag a record as favorite.

        Favorites are one-way: there is no operation that clears the flag.

        Args:
            record_id: Id of the record to flag

        Returns:
            True if the record exists, False if no record has that id
        """
        try:
            cursor = self.conn.execute(
                "UPDATE record SET is_favorite = 1 WHERE id = ?",
                (record_id,),
            )
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="mark_favorite",
                underlying_error=str(e),
            ) from e

        if cursor.rowcount == 0:
            logger.debug("mark_favorite: no record with id {}", record_id)
            return False
        return True

    def clear_all(self) -> int:
        """
        Delete every record. Irreversible.

        Returns:
            Number of records removed
        """
        try:
            with self.transaction():
                count = self.conn.execute("SELECT COUNT(*) FROM record").fetchone()[0]
                self.conn.execute("DELETE FROM record")
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="clear_all",
                underlying_error=str(e),
            ) from e
        logger.debug("Cleared {} records", count)
        return count

    def evict_overflow(
        self,
        capacity: int,
        margin: int = EVICTION_MARGIN,
    ) -> EvictionResult:
        """
        Trim the history back to capacity once it overflows by more than margin.

        When triggered, every record outside the `capacity` most recent ones
        is deleted, leaving exactly `capacity` rows. Recency is created_time
        (ties by id), so an old record that was touched recently is kept.

        Args:
            capacity: Number of records to keep
            margin: Overflow tolerated before a pass deletes anything

        Returns:
            EvictionResult describing the pass
        """
        if capacity < 0:
            raise InvalidQueryError(argument="capacity", value=repr(capacity))
        if margin < 0:
            raise InvalidQueryError(argument="margin", value=repr(margin))

        try:
            with self.transaction():
                count = self.conn.execute("SELECT COUNT(*) FROM record").fetchone()[0]
                if count <= capacity + margin:
                    return EvictionResult(count_before=count)

                cursor = self.conn.execute(
                    """
                    DELETE FROM record WHERE id NOT IN (
                        SELECT id FROM record
                        ORDER BY created_time DESC, id DESC
                        LIMIT ?
                    )
                    """,
                    (capacity,),
                )
                deleted = cursor.rowcount
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="evict_overflow",
                underlying_error=str(e),
            ) from e

        logger.debug("Evicted {} of {} records (capacity {})", deleted, count, capacity)
        return EvictionResult(count_before=count, deleted=deleted, triggered=True)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def list_all(self) -> list[Record]:
        """
        List every record.

        Returns:
            Records ordered newest first
        """
        try:
            cursor = self.conn.execute(
                f"""
                SELECT {RECORD_COLUMNS} FROM record
                ORDER BY created_time DESC, id DESC
                """
            )
            return [_row_to_record(row) for row in cursor]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="list_all",
                underlying_error=str(e),
            ) from e

    def list_favorites(self) -> list[Record]:
        """List records flagged as favorite, newest first."""
        try:
            cursor = self.conn.execute(
                f"""
                SELECT {RECORD_COLUMNS} FROM record
                WHERE is_favorite = 1
                ORDER BY created_time DESC, id DESC
                """
            )
            return [_row_to_record(row) for row in cursor]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="list_favorites",
                underlying_error=str(e),
            ) from e

    def search(
        self,
        query: str,
        limit: int,
        open_marker: str = DEFAULT_HIGHLIGHT_OPEN,
        close_marker: str = DEFAULT_HIGHLIGHT_CLOSE,
    ) -> list[Record]:
        """
        Find records containing query as a literal substring.

        Matching is case-sensitive and treats % and _ as ordinary
        characters. An empty query matches every record.

        Args:
            query: Substring to look for
            limit: Maximum number of results
            open_marker: Inserted before each match in content_highlight
            close_marker: Inserted after each match in content_highlight

        Returns:
            Matching records newest first, each with content_highlight set
        """
        if limit < 0:
            raise InvalidQueryError(argument="limit", value=repr(limit))

        if query:
            sql = f"""
                SELECT {RECORD_COLUMNS} FROM record
                WHERE instr(content, ?) > 0
                ORDER BY created_time DESC, id DESC
                LIMIT ?
            """
            params: tuple[Any, ...] = (query, limit)
        else:
            sql = f"""
                SELECT {RECORD_COLUMNS} FROM record
                ORDER BY created_time DESC, id DESC
                LIMIT ?
            """
            params = (limit,)

        try:
            rows = self.conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="search",
                underlying_error=str(e),
            ) from e

        results = []
        for row in rows:
            record = _row_to_record(row)
            results.append(
                record.with_highlight(
                    highlight(query, record.content, open_marker, close_marker)
                )
            )
        return results

    def get(self, record_id: int) -> Record | None:
        """
        Get a record by id.

        Returns:
            Record or None if not found
        """
        try:
            row = self.conn.execute(
                f"SELECT {RECORD_COLUMNS} FROM record WHERE id = ?",
                (record_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="get",
                underlying_error=str(e),
            ) from e
        return _row_to_record(row) if row is not None else None

    def find_by_ids(self, record_ids: Iterable[int]) -> list[Record]:
        """
        Fetch several records by id.

        Ids are always bound as parameters, in batches of ID_BATCH_SIZE.
        Unknown ids are skipped.

        Args:
            record_ids: Ids to look up

        Returns:
            Found records ordered newest first
        """
        requested = list(record_ids)
        for record_id in requested:
            if isinstance(record_id, bool) or not isinstance(record_id, int):
                raise InvalidQueryError(argument="record_ids", value=repr(record_id))
        ids = list(dict.fromkeys(requested))

        records: list[Record] = []
        try:
            for start in range(0, len(ids), ID_BATCH_SIZE):
                batch = ids[start:start + ID_BATCH_SIZE]
                placeholders = ", ".join("?" for _ in batch)
                cursor = self.conn.execute(
                    f"SELECT {RECORD_COLUMNS} FROM record WHERE id IN ({placeholders})",
                    batch,
                )
                records.extend(_row_to_record(row) for row in cursor)
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="find_by_ids",
                underlying_error=str(e),
            ) from e

        records.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return records

    def count(self) -> int:
        """Number of stored records."""
        try:
            return self.conn.execute("SELECT COUNT(*) FROM record").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="count",
                underlying_error=str(e),
            ) from e

    def count_favorites(self) -> int:
        """Number of records flagged as favorite."""
        try:
            return self.conn.execute(
                "SELECT COUNT(*) FROM record WHERE is_favorite = 1"
            ).fetchone()[0]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="count_favorites",
                underlying_error=str(e),
            ) from e
