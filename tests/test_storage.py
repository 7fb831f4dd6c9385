"""Tests for content-addressed storage."""

import hashlib
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import pytest

from photo_library.domain.errors import StorageError
from photo_library.services.storage import ContentStore, sha256_file
from tests.conftest import FIXED_NOW


def test_path_for_uses_capture_time(store: ContentStore) -> None:
    capture_time = datetime(2019, 3, 4, 12, 0, tzinfo=UTC)

    first = store.path_for("abc123", ".JPG", capture_time)
    second = store.path_for("abc123", ".JPG", capture_time)

    assert first == "originals/2019/03/abc123.jpg"
    assert first == second


def test_path_for_falls_back_to_clock(store: ContentStore) -> None:
    path = store.path_for("abc123", ".png", None)

    assert path == f"originals/{FIXED_NOW.year}/{FIXED_NOW.month:02d}/abc123.png"


def test_thumbnail_path_layout(store: ContentStore) -> None:
    photo_id = uuid4()

    assert store.thumbnail_path("256", photo_id) == f"thumbnails/256/{photo_id}.jpg"


def test_sha256_file_matches_hashlib(tmp_path: Path) -> None:
    source = tmp_path / "data.bin"
    payload = b"x" * 3_000_000
    source.write_bytes(payload)

    assert sha256_file(source, chunk_size=4096) == hashlib.sha256(payload).hexdigest()


def test_store_file_copies_and_keeps_source(
    store: ContentStore, tmp_path: Path
) -> None:
    source = tmp_path / "source.jpg"
    source.write_bytes(b"original bytes")

    destination = store.store_file("originals/2024/05/hash.jpg", source)

    assert destination.read_bytes() == b"original bytes"
    assert source.exists()
    assert not list(destination.parent.glob("*.part"))


def test_store_file_leaves_existing_content(
    store: ContentStore, tmp_path: Path
) -> None:
    first = tmp_path / "first.jpg"
    first.write_bytes(b"first")
    second = tmp_path / "second.jpg"
    second.write_bytes(b"second")

    store.store_file("originals/2024/05/hash.jpg", first)
    destination = store.store_file("originals/2024/05/hash.jpg", second)

    assert destination.read_bytes() == b"first"


def test_replace_bytes_overwrites(store: ContentStore) -> None:
    store.store_bytes("thumbnails/256/a.jpg", b"old")
    destination = store.replace_bytes("thumbnails/256/a.jpg", b"new")

    assert destination.read_bytes() == b"new"


def test_store_file_missing_source_raises_storage_error(
    store: ContentStore, tmp_path: Path
) -> None:
    with pytest.raises(StorageError):
        store.store_file("originals/2024/05/hash.jpg", tmp_path / "missing.jpg")

    assert not store.resolve("originals/2024/05/hash.jpg").exists()
    assert not list(store.resolve("originals/2024/05").glob("*.part"))


def test_scratch_path_creates_directory(store: ContentStore) -> None:
    path = store.scratch_path("upload.tmp")

    assert path.parent.is_dir()
    assert path.parent == store.root / "tmp" / "uploads"


def test_discard_is_idempotent(store: ContentStore) -> None:
    path = store.scratch_path("upload.tmp")
    path.write_bytes(b"data")

    store.discard(path)
    store.discard(path)

    assert not path.exists()
