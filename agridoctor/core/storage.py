"""Disk storage for disease images.

Uploads are written to ``config.UPLOAD_DIR`` and referenced from records as
``/uploads/<filename>``. A request stages its file work in an
:class:`ImageStaging`: new files are written up front and deleted again if the
request fails, while removals of existing files are held back until the
database commit went through.
"""
import logging
import os
import re
import shutil
import threading
import uuid
from typing import Iterable, List

from fastapi import HTTPException, UploadFile

from agridoctor.core import config

logger = logging.getLogger(__name__)

IMAGE_PATH_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)

# Filenames written by a staging that has neither committed nor rolled back yet
_in_flight = set()
_in_flight_lock = threading.Lock()


def is_image_path(path: str) -> bool:
    return bool(IMAGE_PATH_PATTERN.search(path or ""))


def image_url(filename: str) -> str:
    return f"{config.UPLOAD_URL_PREFIX}/{filename}"


def disk_path(url_path: str) -> str:
    # Only the basename is trusted, stored paths never leave the upload dir
    return os.path.join(config.UPLOAD_DIR, os.path.basename(url_path))


def remove_image_file(url_path: str) -> bool:
    """Delete the file behind ``url_path``. Failures are logged, never raised."""
    full_path = disk_path(url_path)
    if not os.path.exists(full_path):
        return False
    try:
        os.remove(full_path)
    except OSError as e:
        logger.warning("Failed to delete image %s: %s", full_path, e)
        return False
    return True


def remove_image_files(url_paths: Iterable[str]) -> int:
    return sum(1 for path in url_paths if remove_image_file(path))


def find_orphaned_images(referenced: Iterable[str]) -> List[str]:
    """Upload paths present on disk but referenced by no record."""
    if not os.path.isdir(config.UPLOAD_DIR):
        return []
    known = {os.path.basename(path) for path in referenced}
    with _in_flight_lock:
        known |= _in_flight
    return [
        image_url(name)
        for name in sorted(os.listdir(config.UPLOAD_DIR))
        if name not in known and os.path.isfile(os.path.join(config.UPLOAD_DIR, name))
    ]


class ImageStaging:
    """Compensating file actions around a single record mutation.

    Use as a context manager; an exception escaping the block discards every
    staged upload. Call :meth:`commit` once the database write succeeded.
    """

    def __init__(self):
        self.staged: List[str] = []
        self.pending_removals: List[str] = []
        self.committed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
        return False

    def save_uploads(self, files: Iterable[UploadFile]) -> List[str]:
        uploads = [upload for upload in files if upload and upload.filename]
        if len(uploads) > config.MAX_IMAGES:
            raise HTTPException(status_code=400, detail=f"Number of images must be between 1 and {config.MAX_IMAGES}")
        os.makedirs(config.UPLOAD_DIR, exist_ok=True)
        paths = []
        for upload in uploads:
            if not is_image_path(upload.filename):
                raise HTTPException(status_code=400, detail=f"{upload.filename} is not a valid image format")
            extension = upload.filename.rsplit(".", 1)[1].lower()
            filename = f"{uuid.uuid4().hex}.{extension}"
            url_path = image_url(filename)
            with _in_flight_lock:
                _in_flight.add(filename)
            self.staged.append(url_path)
            with open(os.path.join(config.UPLOAD_DIR, filename), "wb") as buffer:
                shutil.copyfileobj(upload.file, buffer)
            paths.append(url_path)
        return paths

    def remove_after_commit(self, url_paths: Iterable[str]):
        self.pending_removals.extend(url_paths)

    def commit(self):
        self.committed = True
        self._release()
        self.staged = []
        removed = remove_image_files(self.pending_removals)
        if removed:
            logger.info("Removed %d image file(s) after commit", removed)
        self.pending_removals = []

    def rollback(self):
        if self.committed:
            return
        if self.staged:
            logger.info("Discarding %d staged upload(s)", len(self.staged))
        remove_image_files(self.staged)
        self._release()
        self.staged = []
        self.pending_removals = []

    def _release(self):
        with _in_flight_lock:
            _in_flight.difference_update(os.path.basename(path) for path in self.staged)
