"""SQLite metadata store for per-film sync state."""
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from filmsync.exceptions import MetadataNotFoundError, MetadataStoreError

# Record types stored per film
DRIVE_FILES = "drive_files"
WORDPRESS_RECORD = "wordpress"
MEDIA_MAP = "wp_images"
MEDIA_LEDGER = "wordpress_media"


def format_timestamp(utc_str: str, tz_name: str = 'Europe/Madrid') -> str:
    """Convert UTC timestamp string to local timezone for display.

    Args:
        utc_str: UTC timestamp as string from SQLite
        tz_name: Target timezone (default: Europe/Madrid)

    Returns:
        Formatted string in local time: 'YYYY-MM-DD HH:MM:SS'
    """
    if not utc_str:
        return 'N/A'

    # SQLite CURRENT_TIMESTAMP returns UTC string
    utc_dt = datetime.fromisoformat(utc_str.replace(' ', 'T'))

    local_tz = ZoneInfo(tz_name)
    local_dt = utc_dt.replace(tzinfo=ZoneInfo('UTC')).astimezone(local_tz)

    return local_dt.strftime('%Y-%m-%d %H:%M:%S')


class MetadataStore:
    """SQLite key-value ledger addressed by (entity_id, record_type).

    Values are stored as JSON text. The connection is shared for the whole
    run and is not safe for concurrent callers.
    """

    SCHEMA = """
    -- Per-film state blobs (snapshot, media map, ledger, post record)
    CREATE TABLE IF NOT EXISTS metadata (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entity_id TEXT NOT NULL,
        record_type TEXT NOT NULL,
        data TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    -- Sync run history (for the end-of-run tally and `status`)
    CREATE TABLE IF NOT EXISTS sync_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        started_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        completed_at TIMESTAMP,
        year TEXT,
        items_fetched INTEGER DEFAULT 0,
        items_processed INTEGER DEFAULT 0,
        items_failed INTEGER DEFAULT 0,
        status TEXT CHECK (status IN ('running', 'completed', 'failed'))
    );

    -- Outcome of each film within a run
    CREATE TABLE IF NOT EXISTS run_entities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL,
        entity_id TEXT NOT NULL,
        title TEXT,
        succeeded BOOLEAN NOT NULL,
        post_id INTEGER,
        error TEXT,
        finished_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (run_id) REFERENCES sync_runs(id)
    );

    CREATE UNIQUE INDEX IF NOT EXISTS idx_entity_type ON metadata(entity_id, record_type);
    CREATE INDEX IF NOT EXISTS idx_entity_id ON metadata(entity_id);
    CREATE INDEX IF NOT EXISTS idx_run_entities_run ON run_entities(run_id);
    """

    def __init__(self, db_path: Path):
        """Initialize database, creating tables if needed."""
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        self.conn.executescript(self.SCHEMA)
        self.conn.commit()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL and return cursor."""
        return self.conn.execute(sql, params)

    def commit(self) -> None:
        """Commit current transaction."""
        self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        self.conn.close()

    # === Key-value ledger ===

    def save(self, entity_id: str, record_type: str, data: Any) -> None:
        """Insert or replace the record stored under (entity_id, record_type)."""
        try:
            payload = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise MetadataStoreError(f"Failed to serialize {record_type} for '{entity_id}': {e}") from e

        try:
            self.execute(
                """INSERT INTO metadata (entity_id, record_type, data, created_at, updated_at)
                   VALUES (?, ?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                   ON CONFLICT(entity_id, record_type) DO UPDATE SET
                       data = excluded.data,
                       updated_at = CURRENT_TIMESTAMP""",
                (entity_id, record_type, payload),
            )
            self.commit()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Failed to save {record_type} for '{entity_id}': {e}") from e

    def get(self, entity_id: str, record_type: str) -> Any:
        """Return the decoded record.

        Raises:
            MetadataNotFoundError: no record exists for the key (first run).
            MetadataStoreError: the record exists but cannot be read.
        """
        try:
            row = self.execute(
                "SELECT data FROM metadata WHERE entity_id = ? AND record_type = ?",
                (entity_id, record_type),
            ).fetchone()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Failed to read {record_type} for '{entity_id}': {e}") from e

        if row is None:
            raise MetadataNotFoundError(entity_id, record_type)

        try:
            return json.loads(row["data"])
        except ValueError as e:
            raise MetadataStoreError(f"Corrupt {record_type} record for '{entity_id}': {e}") from e

    def list_entities(self) -> list[str]:
        """Return all entity ids that have stored state."""
        cursor = self.execute("SELECT DISTINCT entity_id FROM metadata ORDER BY entity_id")
        return [row["entity_id"] for row in cursor.fetchall()]

    # === Run history ===

    def record_run_start(self, year: str | None = None, items_fetched: int = 0) -> int:
        """Start a new sync run, return run_id.

        Also cleans up any stale 'running' runs from previous interrupted executions.
        """
        self.execute(
            """UPDATE sync_runs
               SET status = 'failed',
                   completed_at = CURRENT_TIMESTAMP
               WHERE status = 'running'"""
        )

        cursor = self.execute(
            "INSERT INTO sync_runs (status, year, items_fetched) VALUES (?, ?, ?)",
            ("running", year, items_fetched),
        )
        self.commit()
        return cursor.lastrowid

    def record_entity_result(
        self,
        run_id: int,
        entity_id: str,
        title: str | None,
        succeeded: bool,
        post_id: int | None = None,
        error: str | None = None,
    ) -> None:
        """Record the outcome of one film within a run."""
        self.execute(
            """INSERT INTO run_entities (run_id, entity_id, title, succeeded, post_id, error)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (run_id, entity_id, title, succeeded, post_id, error),
        )
        self.commit()

    def record_run_complete(self, run_id: int, processed: int, failed: int) -> None:
        """Mark sync run as complete with stats."""
        self.execute(
            """UPDATE sync_runs
               SET completed_at = CURRENT_TIMESTAMP,
                   items_processed = ?,
                   items_failed = ?,
                   status = ?
               WHERE id = ?""",
            (processed, failed, "completed", run_id),
        )
        self.commit()

    def get_last_successful_run(self) -> datetime | None:
        """Get timestamp of last completed sync run."""
        cursor = self.execute(
            """SELECT completed_at FROM sync_runs
               WHERE status = 'completed'
               ORDER BY completed_at DESC LIMIT 1"""
        )
        row = cursor.fetchone()
        if row and row["completed_at"]:
            return datetime.fromisoformat(row["completed_at"])
        return None

    def get_run_details(self, run_id: int | None = None) -> dict | None:
        """Get sync run information with per-film outcomes.

        Args:
            run_id: Specific run ID, or None for most recent run

        Returns:
            Dict with run metadata and film outcomes, or None if no runs found
        """
        if run_id is None:
            run_cursor = self.execute(
                "SELECT * FROM sync_runs ORDER BY id DESC LIMIT 1"
            )
        else:
            run_cursor = self.execute(
                "SELECT * FROM sync_runs WHERE id = ?", (run_id,)
            )

        run_row = run_cursor.fetchone()
        if not run_row:
            return None

        entities_cursor = self.execute(
            """SELECT entity_id, title, succeeded, post_id, error, finished_at
               FROM run_entities
               WHERE run_id = ?
               ORDER BY id ASC""",
            (run_row['id'],),
        )
        rows = [dict(row) for row in entities_cursor.fetchall()]

        return {
            'id': run_row['id'],
            'started_at': run_row['started_at'],
            'completed_at': run_row['completed_at'],
            'status': run_row['status'],
            'year': run_row['year'],
            'items_fetched': run_row['items_fetched'],
            'items_processed': run_row['items_processed'],
            'items_failed': run_row['items_failed'],
            'entities': [r for r in rows if r['succeeded']],
            'failed': [r for r in rows if not r['succeeded']],
        }
