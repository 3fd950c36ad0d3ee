# modules/common/storage.py
"""
Object storage for uploaded media.

Buckets are directories under STORAGE_ROOT and are served read-only by the
portfolio blueprint at STORAGE_PUBLIC_URL/<bucket>/<path>. `upload_file`
is the only way admin forms put files here: it checks the bucket's MIME
allow-list before touching storage, picks a key and hands back the public URL.
"""

from __future__ import annotations

import logging
import os
import random
import string
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import quote

from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

BUCKETS = ("avatars", "projects", "certificates", "skills")

IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png"]

ALLOWED_TYPES = {
    "avatars": IMAGE_TYPES,
    "projects": IMAGE_TYPES,
    "skills": IMAGE_TYPES,
    "certificates": IMAGE_TYPES + ["application/pdf"],
}


class StorageError(Exception):
    """Object storage refused or failed an operation."""


class ObjectStorage:
    def __init__(self, root: str, public_url: str = "/storage"):
        self.root = os.path.abspath(root)
        self.public_url = (public_url or "/storage").rstrip("/")

    def bucket_dir(self, bucket: str) -> str:
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")
        return os.path.join(self.root, bucket)

    def _resolve(self, bucket: str, path: str) -> str:
        full = safe_join(self.bucket_dir(bucket), path or "")
        if not full or not path:
            raise StorageError(f"Invalid object path: {path!r}")
        return full

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        """Write (or overwrite) an object; returns the stored path."""
        full = self._resolve(bucket, path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as fh:
                fh.write(data)
        except OSError as e:
            raise StorageError(f"Failed to store {bucket}/{path}: {e}") from e
        logger.info("Stored object %s/%s (%d bytes)", bucket, path, len(data))
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        self.bucket_dir(bucket)
        return f"{self.public_url}/{bucket}/{quote(path)}"

    def remove(self, bucket: str, paths: Iterable[str]) -> List[str]:
        """Delete objects; returns the paths that existed and were removed."""
        removed = []
        for path in paths:
            full = self._resolve(bucket, path)
            try:
                os.remove(full)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageError(f"Failed to remove {bucket}/{path}: {e}") from e
            removed.append(path)
        return removed


@dataclass
class UploadResult:
    url: str = ""
    path: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def generate_object_key(filename: str) -> str:
    """`<epoch-ms>-<random base36>.<ext>`, keeping the original extension."""
    ext = ""
    if filename and "." in filename:
        ext = secure_filename(filename.rsplit(".", 1)[-1]).lower()
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=11))
    key = f"{int(time.time() * 1000)}-{suffix}"
    return f"{key}.{ext}" if ext else key


def upload_file(storage: ObjectStorage, file, bucket: str, path: Optional[str] = None) -> UploadResult:
    mimetype = (getattr(file, "mimetype", None) or "").lower()
    allowed = ALLOWED_TYPES.get(bucket)
    if allowed is None:
        return UploadResult(error=f"Unknown bucket {bucket}")
    if mimetype not in allowed:
        return UploadResult(error=f"File type {mimetype or 'unknown'} not allowed for {bucket}")

    key = path or generate_object_key(getattr(file, "filename", "") or "")
    try:
        stored = storage.upload(bucket, key, file.read())
        url = storage.get_public_url(bucket, stored)
    except StorageError as e:
        logger.exception("Upload to %s failed", bucket)
        return UploadResult(error=str(e))
    return UploadResult(url=url, path=stored)


def delete_file(storage: ObjectStorage, bucket: str, path: str) -> bool:
    try:
        return bool(storage.remove(bucket, [path]))
    except StorageError:
        logger.exception("Delete of %s/%s failed", bucket, path)
        return False
