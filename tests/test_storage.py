from __future__ import annotations

import io
from pathlib import Path

import pytest

from reportdesk.core.errors import StorageFailure
from reportdesk.services import storage


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert storage.format_file_size(size) == expected


def test_file_type_helpers():
    assert storage.file_extension("Thesis.Final.DOCX") == "docx"
    assert storage.mime_type_for("scan.png") == "image/png"
    assert storage.mime_type_for("archive.7z") == "application/octet-stream"
    assert storage.is_editable("notes.md")
    assert not storage.is_editable("report.pdf")
    assert storage.is_previewable("report.pdf")
    assert storage.is_previewable("photo.JPEG")
    assert not storage.is_previewable("notes.txt")
    assert storage.detect_language("main.py") == "python"
    assert storage.detect_language("unknown.xyz") == "plaintext"


def test_store_upload_moves_temp_file(uploads_dir):
    temp_path = storage.save_temp_upload(io.BytesIO(b"hello"), "notes.txt")
    assert temp_path.parent == uploads_dir.resolve() / "tmp"

    stored = storage.store_upload(temp_path, "notes.txt")

    assert not temp_path.exists()
    assert stored.size == 5
    assert stored.file_url.startswith("/uploads/reports/")
    assert stored.file_url.endswith(".txt")
    assert storage.resolve_path(stored.file_url) == stored.path
    assert stored.path.read_bytes() == b"hello"


def test_store_upload_copies_when_rename_fails(uploads_dir, monkeypatch):
    temp_path = storage.save_temp_upload(io.BytesIO(b"cross-device body"), "Chapter One.docx")

    def _refuse_rename(self, target):
        raise OSError(18, "Invalid cross-device link")

    monkeypatch.setattr(Path, "replace", _refuse_rename)
    stored = storage.store_upload(temp_path, "Chapter One.docx")

    assert not temp_path.exists()
    assert stored.path.parent == storage.reports_dir()
    assert stored.path.read_bytes() == b"cross-device body"
    assert stored.size == len(b"cross-device body")


def test_store_upload_missing_temp_file_raises(uploads_dir):
    with pytest.raises(StorageFailure):
        storage.store_upload(uploads_dir / "missing.pdf", "missing.pdf")
    assert list(storage.reports_dir().iterdir()) == []


def test_resolve_path_ignores_directories(uploads_dir):
    resolved = storage.resolve_path("/uploads/reports/../../etc/passwd")
    assert resolved == storage.reports_dir() / "passwd"


def test_backup_and_write_text(uploads_dir):
    path = storage.reports_dir() / "draft.txt"
    path.write_text("first", encoding="utf-8")

    backup_path = storage.backup(path)
    size = storage.write_text(path, "second draft")

    assert backup_path.read_text(encoding="utf-8") == "first"
    assert backup_path.name.startswith("draft.txt.backup_")
    assert size == len("second draft")
