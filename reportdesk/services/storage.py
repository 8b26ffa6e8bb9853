"""Filesystem storage for uploaded report files.

Uploads land in ``<uploads_dir>/tmp`` first and are moved into
``<uploads_dir>/reports`` once the request has been validated. Stored files
are addressed publicly as ``/uploads/reports/<name>``.
"""
from __future__ import annotations

import logging
import random
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from reportdesk.core.errors import StorageFailure
from reportdesk.core.settings import settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/reports/"

REPORT_EXTENSIONS = frozenset({"pdf", "doc", "docx", "txt"})
EDITABLE_EXTENSIONS = frozenset({"txt", "js", "html", "css", "md", "json", "xml", "py", "java", "cpp", "c", "php"})
CODE_EXTENSIONS = frozenset({"js", "html", "css", "py", "java", "cpp", "c", "php", "xml", "json"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif"})

MIME_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "js": "application/javascript",
    "html": "text/html",
    "css": "text/css",
    "md": "text/markdown",
    "json": "application/json",
    "xml": "application/xml",
    "py": "text/x-python",
    "java": "text/x-java",
    "cpp": "text/x-c++src",
    "c": "text/x-csrc",
    "php": "application/x-php",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "zip": "application/zip",
    "rar": "application/x-rar-compressed",
}

LANGUAGES = {
    "js": "javascript",
    "html": "html",
    "css": "css",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "php": "php",
    "xml": "xml",
    "json": "json",
    "md": "markdown",
    "txt": "plaintext",
}


@dataclass
class StoredFile:
    file_url: str
    path: Path
    size: int


def file_extension(filename: str) -> str:
    return Path(filename).suffix.lstrip(".").lower()


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(file_extension(filename), "application/octet-stream")


def is_editable(filename: str) -> bool:
    return file_extension(filename) in EDITABLE_EXTENSIONS


def is_previewable(filename: str) -> bool:
    ext = file_extension(filename)
    return ext == "pdf" or ext in IMAGE_EXTENSIONS


def detect_language(filename: str) -> str:
    return LANGUAGES.get(file_extension(filename), "plaintext")


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def reports_dir() -> Path:
    path = settings.ensure_uploads_dir() / "reports"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _temp_dir() -> Path:
    path = settings.ensure_uploads_dir() / "tmp"
    path.mkdir(parents=True, exist_ok=True)
    return path


def generate_filename(original_name: str) -> str:
    suffix = Path(original_name).suffix
    return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{suffix}"


def discard(path: Path | None) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove file %s", path, exc_info=True)


def save_temp_upload(source: BinaryIO, original_name: str) -> Path:
    """Spool an incoming upload to the temp area and return its path."""
    temp_path = _temp_dir() / f"upload-{generate_filename(original_name)}"
    try:
        with temp_path.open("wb") as handle:
            shutil.copyfileobj(source, handle)
    except OSError as exc:
        logger.exception("Failed to spool upload %s", original_name)
        discard(temp_path)
        raise StorageFailure() from exc
    return temp_path


def store_upload(temp_path: Path, original_name: str) -> StoredFile:
    """Move a temp upload to its permanent location.

    Tries a rename first and falls back to copy plus delete when the rename
    fails (e.g. across devices). Raises StorageFailure after cleaning up any
    partial files if both strategies fail.
    """
    target = reports_dir() / generate_filename(original_name)
    try:
        temp_path.replace(target)
    except OSError:
        logger.warning("Rename of %s failed, falling back to copy", temp_path, exc_info=True)
        try:
            shutil.copyfile(temp_path, target)
        except OSError as exc:
            logger.exception("Copy fallback failed for %s", temp_path)
            discard(target)
            discard(temp_path)
            raise StorageFailure() from exc
        discard(temp_path)

    return StoredFile(
        file_url=f"{PUBLIC_PREFIX}{target.name}",
        path=target,
        size=target.stat().st_size,
    )


def resolve_path(file_url: str) -> Path:
    """Map a public ``/uploads/reports/<name>`` path to the filesystem."""
    if file_url.startswith(PUBLIC_PREFIX):
        # Only the basename is honoured so a crafted URL cannot escape the directory.
        return reports_dir() / Path(file_url).name
    return Path(file_url)


def backup(path: Path) -> Path:
    backup_path = path.with_name(f"{path.name}.backup_{int(time.time() * 1000)}")
    try:
        shutil.copy2(path, backup_path)
    except OSError as exc:
        logger.exception("Failed to back up %s", path)
        raise StorageFailure("Could not back up file before editing") from exc
    return backup_path


def write_text(path: Path, content: str) -> int:
    try:
        path.write_text(content, encoding="utf-8")
        return path.stat().st_size
    except OSError as exc:
        logger.exception("Failed to write %s", path)
        raise StorageFailure("Failed to update file") from exc
