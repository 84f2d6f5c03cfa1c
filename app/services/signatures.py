# app/services/signatures.py
"""
Provider signature handling.

A document's `signature_data` is either an inline data URL (freshly drawn
in the editor) or the URL of the saved default signature. The loader turns
either into image bytes for the PDF; anything else renders a blank line.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Optional

from app.documents.errors import BlobNotFound, DocumentValidationError

log = logging.getLogger(__name__)

DEFAULT_SIGNATURE_PATH = "admin/signature/default.png"

SIGNATURE_MIME_TYPES = {"image/png": "png", "image/jpeg": "jpg"}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.S)


def decode_data_url(data_url: str, allowed: dict = SIGNATURE_MIME_TYPES) -> tuple[str, bytes]:
    m = _DATA_URL_RE.match((data_url or "").strip())
    if not m:
        raise DocumentValidationError("Expected a base64 data URL.")

    mime = m.group("mime").lower()
    if mime == "image/jpg":
        mime = "image/jpeg"
    if mime not in allowed:
        raise DocumentValidationError(f"Unsupported image type: {mime}")

    try:
        data = base64.b64decode("".join(m.group("data").split()), validate=True)
    except (binascii.Error, ValueError):
        raise DocumentValidationError("Image data is not valid base64.") from None
    if not data:
        raise DocumentValidationError("Image data is empty.")
    return mime, data


def promote_default(store, data_url: str) -> str:
    """Overwrite the saved default signature; returns its URL."""
    _, data = decode_data_url(data_url)
    url = store.upload(DEFAULT_SIGNATURE_PATH, data)
    log.info("Default signature updated")
    return url


def default_signature_url(store) -> Optional[str]:
    if store.exists(DEFAULT_SIGNATURE_PATH):
        return store.url(DEFAULT_SIGNATURE_PATH)
    return None


class SignatureLoader:
    def __init__(self, store):
        self.store = store

    def __call__(self, signature_data: Optional[str]) -> Optional[bytes]:
        value = (signature_data or "").strip()
        if not value:
            return None
        if value.startswith("data:"):
            return decode_data_url(value)[1]

        key = self.store.key_from_url(value)
        if key is None:
            return None
        try:
            return self.store.read(key)
        except (BlobNotFound, ValueError):
            log.warning("Signature image missing at %s; rendering blank line", value)
            return None
