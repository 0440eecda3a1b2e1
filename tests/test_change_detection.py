"""Tests for snapshot reconciliation and the per-film asset sync."""
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

FOLDER = "application/vnd.google-apps.folder"


def _file(file_id, name="img.jpg", folder="Stills", mime="image/jpeg"):
    from filmsync.models import RemoteFile

    return RemoteFile(id=file_id, name=name, mime_type=mime, folder_path=folder, folder_name=folder)


def test_first_run_marks_everything_new():
    from filmsync.change_detection import reconcile

    scan = [_file("a"), _file("b", folder="Featured Image")]

    result = reconcile(scan, None, lambda f: True)

    assert result.new_count == 2
    assert [f.id for f in result.to_download] == ["a", "b"]
    assert result.unchanged_count == 0


def test_filter_drops_other_folders_and_non_images():
    from filmsync.change_detection import reconcile

    scan = [
        _file("keep", folder="Stills"),
        _file("random", folder="Random Folder"),
        _file("video", name="trailer.mp4", mime="video/mp4"),
        _file("root", folder=""),
    ]

    result = reconcile(scan, None, lambda f: True)

    assert [f.id for f in result.filtered] == ["keep"]
    assert [f.id for f in result.to_download] == ["keep"]


def test_known_and_present_files_are_unchanged():
    from filmsync.change_detection import reconcile

    scan = [_file("a"), _file("b"), _file("c")]
    previous = [_file("a"), _file("b")]
    present = {"a"}

    result = reconcile(scan, previous, lambda f: f.id in present)

    assert result.unchanged_count == 1
    assert result.missing_count == 1
    assert result.new_count == 1
    assert sorted(f.id for f in result.to_download) == ["b", "c"]


def test_duplicate_scan_entries_download_once():
    from filmsync.change_detection import reconcile

    scan = [_file("a"), _file("a")]

    result = reconcile(scan, [], lambda f: False)

    assert [f.id for f in result.to_download] == ["a"]


def test_destination_path():
    from filmsync.change_detection import destination_path

    ws = Path("/films/Film")

    assert destination_path(ws, _file("a", name="x.jpg", folder="Stills")) == ws / "Stills" / "x.jpg"
    assert destination_path(ws, _file("a", name="x.jpg", folder="")) == ws / "x.jpg"


def _entity():
    from filmsync.models import Entity

    return Entity({
        "TÍTULO ORIGINAL": "Film",
        "ENLACES": "https://drive.google.com/drive/folders/root",
    })


def _drive_for(items: list[dict]):
    """Mock drive with a root folder holding one Stills subfolder."""
    drive = MagicMock()
    drive.list_children.side_effect = lambda folder_id: (
        [{"id": "stills", "name": "Stills", "mimeType": FOLDER}] if folder_id == "root" else items
    )
    drive.download.side_effect = lambda file_id, dest: (
        dest.parent.mkdir(parents=True, exist_ok=True), dest.write_bytes(b"img")
    )
    return drive


def test_sync_replaces_snapshot_with_current_scan():
    """Snapshot {a, b} becomes {b, c} after a scan containing only b and c."""
    from filmsync.change_detection import sync_remote_files
    from filmsync.database import DRIVE_FILES, MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")
        store.save("Film", DRIVE_FILES, [_file("a").to_dict(), _file("b", name="b.jpg").to_dict()])
        drive = _drive_for([
            {"id": "b", "name": "b.jpg", "mimeType": "image/jpeg"},
            {"id": "c", "name": "c.jpg", "mimeType": "image/jpeg"},
        ])
        optimizer = MagicMock()

        sync_remote_files(_entity(), Path(tmpdir) / "Film", drive, store, optimizer)

        assert sorted(f["id"] for f in store.get("Film", DRIVE_FILES)) == ["b", "c"]
        store.close()


def test_sync_downloads_only_what_is_needed():
    from filmsync.change_detection import sync_remote_files
    from filmsync.database import DRIVE_FILES, MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        workspace = Path(tmpdir) / "Film"
        (workspace / "Stills").mkdir(parents=True)
        (workspace / "Stills" / "b.jpg").write_bytes(b"already here")
        store = MetadataStore(Path(tmpdir) / "test.db")
        store.save("Film", DRIVE_FILES, [_file("b", name="b.jpg").to_dict()])
        drive = _drive_for([
            {"id": "b", "name": "b.jpg", "mimeType": "image/jpeg"},
            {"id": "c", "name": "c.jpg", "mimeType": "image/jpeg"},
        ])

        outcome = sync_remote_files(_entity(), workspace, drive, store, MagicMock())

        downloaded_ids = [c.args[0] for c in drive.download.call_args_list]
        assert downloaded_ids == ["c"]
        assert outcome.reconciliation.unchanged_count == 1
        assert outcome.reconciliation.new_count == 1
        store.close()


def test_sync_continues_after_download_failure():
    """A failed download is logged and skipped; the snapshot still lists it."""
    from filmsync.change_detection import sync_remote_files
    from filmsync.database import DRIVE_FILES, MetadataStore
    from filmsync.exceptions import RemoteStoreError

    with tempfile.TemporaryDirectory() as tmpdir:
        store = MetadataStore(Path(tmpdir) / "test.db")
        drive = _drive_for([
            {"id": "bad", "name": "bad.jpg", "mimeType": "image/jpeg"},
            {"id": "good", "name": "good.jpg", "mimeType": "image/jpeg"},
        ])

        def download(file_id, dest):
            if file_id == "bad":
                raise RemoteStoreError("403")
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(b"img")

        drive.download.side_effect = download

        outcome = sync_remote_files(_entity(), Path(tmpdir) / "Film", drive, store, MagicMock())

        assert outcome.download_failures == 1
        assert [p.name for p in outcome.downloaded] == ["good.jpg"]
        assert sorted(f["id"] for f in store.get("Film", DRIVE_FILES)) == ["bad", "good"]
        store.close()


def test_sync_optimizes_local_originals_once():
    from filmsync.change_detection import sync_remote_files
    from filmsync.database import MetadataStore

    with tempfile.TemporaryDirectory() as tmpdir:
        workspace = Path(tmpdir) / "Film"
        store = MetadataStore(Path(tmpdir) / "test.db")
        drive = _drive_for([{"id": "a", "name": "a.png", "mimeType": "image/png"}])
        optimizer = MagicMock()
        optimizer.optimize.side_effect = lambda src, dst: dst.write_bytes(b"web")

        sync_remote_files(_entity(), workspace, drive, store, optimizer)
        sync_remote_files(_entity(), workspace, drive, store, optimizer)

        optimizer.optimize.assert_called_once_with(
            workspace / "Stills" / "a.png", workspace / "Stills" / "a_web.jpg"
        )
        store.close()


def test_unreadable_snapshot_is_treated_as_first_run():
    from filmsync.change_detection import load_snapshot
    from filmsync.exceptions import MetadataStoreError

    store = MagicMock()
    store.get.side_effect = MetadataStoreError("disk I/O error")

    assert load_snapshot(store, "Film", MagicMock()) is None
