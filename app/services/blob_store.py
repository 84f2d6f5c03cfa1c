# app/services/blob_store.py
from __future__ import annotations

import hashlib
import logging
import os
import posixpath
from typing import Optional

from app.documents.errors import BlobNotFound

log = logging.getLogger(__name__)


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class LocalBlobStore:
    """
    Path-keyed file store on local disk (swap for S3/Spaces without changing
    callers).

    Keys are relative POSIX paths such as
      signed-documents/invoice/<doc_id>.pdf
      admin/signature/default.png
    Uploading to an existing key overwrites it; there is no versioning.
    """

    def __init__(self, base_dir: str, public_prefix: str = "/admin/files"):
        self.base_dir = os.path.abspath(base_dir)
        self.public_prefix = "/" + public_prefix.strip("/")

    # -----------------------------
    # Keys / URLs
    # -----------------------------
    @staticmethod
    def normalize_key(path: str) -> str:
        raw = (path or "").replace("\\", "/").strip()
        if not raw or raw.startswith("/"):
            raise ValueError(f"Invalid storage key: {path!r}")
        parts = raw.split("/")
        if any(p in ("", ".", "..") for p in parts):
            raise ValueError(f"Invalid storage key: {path!r}")
        return posixpath.join(*parts)

    def absolute_path(self, path: str) -> str:
        return os.path.join(self.base_dir, *self.normalize_key(path).split("/"))

    def url(self, path: str) -> str:
        return f"{self.public_prefix}/{self.normalize_key(path)}"

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = self.public_prefix + "/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None

    # -----------------------------
    # Operations
    # -----------------------------
    def upload(self, path: str, data: bytes) -> str:
        abs_path = self.absolute_path(path)
        os.makedirs(os.path.dirname(abs_path), exist_ok=True)

        tmp_path = abs_path + ".part"
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, abs_path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        log.info("Stored blob %s (%d bytes, sha256=%s)", path, len(data), sha256_hex(data)[:12])
        return self.url(path)

    def exists(self, path: str) -> bool:
        try:
            return os.path.isfile(self.absolute_path(path))
        except ValueError:
            return False

    def download(self, path: str) -> str:
        if not self.exists(path):
            raise BlobNotFound(path)
        return self.url(path)

    def read(self, path: str) -> bytes:
        if not self.exists(path):
            raise BlobNotFound(path)
        with open(self.absolute_path(path), "rb") as f:
            return f.read()

    def delete(self, path: str) -> None:
        """Remove an object; a missing key is a no-op."""
        if self.exists(path):
            os.remove(self.absolute_path(path))
            log.info("Deleted blob %s", path)
