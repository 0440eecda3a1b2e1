"""Tests for database module."""
import tempfile
from pathlib import Path

import pytest


def test_store_creates_tables():
    """MetadataStore should create all required tables on init."""
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        tables = store.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        table_names = {row[0] for row in tables}

        assert "metadata" in table_names
        assert "sync_runs" in table_names
        assert "run_entities" in table_names
        store.close()


def test_store_creates_parent_directory():
    """Database path parents should be created on demand."""
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "nested" / "data" / "test.db"
        store = MetadataStore(db_path)

        assert db_path.exists()
        store.close()


def test_get_missing_record_raises_not_found():
    """get should raise MetadataNotFoundError for an unknown key."""
    from filmsync.database import MetadataStore, WORDPRESS_RECORD
    from filmsync.exceptions import MetadataNotFoundError

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        with pytest.raises(MetadataNotFoundError) as exc_info:
            store.get("La Película", WORDPRESS_RECORD)

        assert exc_info.value.entity_id == "La Película"
        assert exc_info.value.record_type == WORDPRESS_RECORD
        store.close()


def test_save_and_get_round_trip_keeps_unicode():
    """Saved records should come back decoded and intact."""
    from filmsync.database import MetadataStore, MEDIA_MAP

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        store.save("Árbol", MEDIA_MAP, {"póster_web.jpg": 12, "still 1_web.jpg": 13})

        assert store.get("Árbol", MEDIA_MAP) == {"póster_web.jpg": 12, "still 1_web.jpg": 13}
        store.close()


def test_save_replaces_existing_record():
    """save is an upsert: the second write replaces the first."""
    from filmsync.database import MetadataStore, DRIVE_FILES

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        store.save("film", DRIVE_FILES, [{"id": "a"}, {"id": "b"}])
        store.save("film", DRIVE_FILES, [{"id": "b"}, {"id": "c"}])

        assert store.get("film", DRIVE_FILES) == [{"id": "b"}, {"id": "c"}]
        count = store.execute(
            "SELECT COUNT(*) FROM metadata WHERE entity_id = ? AND record_type = ?",
            ("film", DRIVE_FILES),
        ).fetchone()[0]
        assert count == 1
        store.close()


def test_records_are_keyed_by_type():
    """Different record types for the same film are stored independently."""
    from filmsync.database import MetadataStore, MEDIA_LEDGER, WORDPRESS_RECORD

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        store.save("film", WORDPRESS_RECORD, {"post_id": 7})
        store.save("film", MEDIA_LEDGER, [])

        assert store.get("film", WORDPRESS_RECORD) == {"post_id": 7}
        assert store.get("film", MEDIA_LEDGER) == []
        assert store.list_entities() == ["film"]
        store.close()


def test_save_unserializable_raises_store_error():
    """Values json cannot encode should raise MetadataStoreError."""
    from filmsync.database import MetadataStore, WORDPRESS_RECORD
    from filmsync.exceptions import MetadataStoreError

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        with pytest.raises(MetadataStoreError):
            store.save("film", WORDPRESS_RECORD, {"when": object()})
        store.close()


def test_corrupt_record_raises_store_error():
    """A row that is not valid JSON is a store error, not a first run."""
    from filmsync.database import MetadataStore, WORDPRESS_RECORD
    from filmsync.exceptions import MetadataStoreError

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")
        store.execute(
            "INSERT INTO metadata (entity_id, record_type, data) VALUES (?, ?, ?)",
            ("film", WORDPRESS_RECORD, "{not json"),
        )
        store.commit()

        with pytest.raises(MetadataStoreError):
            store.get("film", WORDPRESS_RECORD)
        store.close()


def test_record_run_start_and_complete():
    """Sync run should be trackable from start to completion."""
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        run_id = store.record_run_start(year="2025", items_fetched=6)
        assert run_id == 1

        store.record_run_complete(run_id, processed=6, failed=1)

        row = store.execute("SELECT * FROM sync_runs WHERE id = ?", (run_id,)).fetchone()
        assert row["status"] == "completed"
        assert row["items_processed"] == 6
        assert row["items_failed"] == 1
        assert row["year"] == "2025"
        assert row["completed_at"] is not None
        store.close()


def test_record_run_start_marks_stale_runs_failed():
    """An interrupted 'running' run is closed as failed when a new run starts."""
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        stale_id = store.record_run_start()
        store.record_run_start()

        row = store.execute("SELECT status FROM sync_runs WHERE id = ?", (stale_id,)).fetchone()
        assert row["status"] == "failed"
        store.close()


def test_get_last_successful_run():
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        assert store.get_last_successful_run() is None

        run_id = store.record_run_start()
        store.record_run_complete(run_id, processed=1, failed=0)

        assert store.get_last_successful_run() is not None
        store.close()


def test_get_run_details_splits_outcomes():
    """get_run_details should separate published films from failures."""
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        run_id = store.record_run_start(year="2025", items_fetched=2)
        store.record_entity_result(run_id, "Film A", "Film A", True, post_id=101)
        store.record_entity_result(run_id, "Film B", "Film B", False, error="POST project returned 500")
        store.record_run_complete(run_id, processed=2, failed=1)

        details = store.get_run_details()

        assert details["id"] == run_id
        assert details["status"] == "completed"
        assert [e["title"] for e in details["entities"]] == ["Film A"]
        assert details["entities"][0]["post_id"] == 101
        assert [f["title"] for f in details["failed"]] == ["Film B"]
        assert "500" in details["failed"][0]["error"]
        store.close()


def test_get_run_details_without_runs_returns_none():
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")

        assert store.get_run_details() is None
        assert store.get_run_details(run_id=42) is None
        store.close()


def test_format_timestamp_converts_to_local_time():
    """format_timestamp renders UTC sqlite timestamps in Madrid time."""
    from filmsync.database import format_timestamp

    # 2025-01-15 is CET (UTC+1)
    assert format_timestamp("2025-01-15 10:00:00") == "2025-01-15 11:00:00"
    assert format_timestamp("") == "N/A"
