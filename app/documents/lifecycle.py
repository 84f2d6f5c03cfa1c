# app/documents/lifecycle.py
"""
Document lifecycle: save / send / signed upload / PDF / correction / delete.

Collaborators are injected (see create_app):

  gateway      upsert(record) -> id, get_by_id(id), delete(id)
  blob_store   upload(path, data) -> url
  renderer     DocumentRenderer (pdf(record), company)
  composer     MailtoComposer (compose(to, subject, body))

Rules kept here, not in the routes:
- a save never moves status backwards; the persisted status wins over a
  stale in-memory one
- a save only targets draft or sent; signed comes from upload_signed and
  a record with no stored row always starts at draft
- the caller's record is only updated after the gateway accepted the write
- a failed email composition never undoes the "sent" status
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .email import EmailComposition
from .errors import (
    DeliveryError,
    DocumentValidationError,
    InvalidTransition,
    PersistenceError,
    ValidationGap,
)
from .records import DocumentRecord, DocumentStatus, advance_status, make_correction
from .scaffold import default_email
from .totals import apply_totals, compute_totals

log = logging.getLogger(__name__)

SIGNED_PREFIX = "signed-documents"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_EXT_RE = re.compile(r"^[a-z0-9]{1,8}$")
SAVE_TARGETS = frozenset({DocumentStatus.DRAFT, DocumentStatus.SENT})


@dataclass(frozen=True)
class SendOutcome:
    document_id: Optional[str]
    status: DocumentStatus
    delivery: Optional[EmailComposition] = None
    blocked: tuple[ValidationGap, ...] = ()

    @property
    def sent(self) -> bool:
        return not self.blocked


def send_readiness(record: DocumentRecord) -> list[ValidationGap]:
    gaps: list[ValidationGap] = []
    email = (record.client_email or "").strip()
    if not email:
        gaps.append(ValidationGap("clientEmail", "Please enter client email."))
    elif not _EMAIL_RE.match(email):
        gaps.append(ValidationGap("clientEmail", "Client email does not look like an email address."))
    return gaps


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _signed_extension(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    return ext if _EXT_RE.match(ext) else "pdf"


def _copy_back(src: DocumentRecord, dst: DocumentRecord) -> None:
    dst.id = src.id
    dst.status = src.status
    dst.subtotal = src.subtotal
    dst.tax = src.tax
    dst.total = src.total
    dst.created_at = src.created_at
    dst.updated_at = src.updated_at


class LifecycleController:
    def __init__(self, gateway, blob_store, renderer, composer,
                 logger: Optional[logging.Logger] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.gateway = gateway
        self.blob_store = blob_store
        self.renderer = renderer
        self.composer = composer
        self.log = logger or log
        self.clock = clock or _utcnow

    # -----------------------------
    # Save
    # -----------------------------
    def save(self, record: DocumentRecord, target_status=DocumentStatus.DRAFT) -> str:
        target = DocumentStatus.parse(target_status)
        if target not in SAVE_TARGETS:
            # signed comes from upload_signed only; paid has no trigger
            raise InvalidTransition(record.status.value, target.value)

        working = apply_totals(record.copy())

        persisted = self.gateway.get_by_id(working.id) if working.id else None
        # A status carried in by the payload is never trusted.
        current = persisted.status if persisted is not None else DocumentStatus.DRAFT
        working.status = advance_status(current, target)

        now = self.clock()
        if persisted is not None and persisted.created_at:
            working.created_at = persisted.created_at
        else:
            working.created_at = working.created_at or now
        working.updated_at = now

        working.id = self.gateway.upsert(working)
        _copy_back(working, record)

        self.log.info("Saved %s %s (%s) as %s", record.type.value, record.number, record.id, record.status.value)
        return record.id

    # -----------------------------
    # Send
    # -----------------------------
    def send(self, record: DocumentRecord, subject: Optional[str] = None,
             body: Optional[str] = None) -> SendOutcome:
        gaps = send_readiness(record)
        if gaps:
            self.log.info("Send blocked for %s %s: %s", record.type.value, record.number,
                          ", ".join(g.field for g in gaps))
            return SendOutcome(document_id=record.id, status=record.status, blocked=tuple(gaps))

        default_subject, default_body = default_email(record, compute_totals(record), self.renderer.company)
        subject = (subject or record.email_subject or default_subject).strip()
        body = body or record.email_body or default_body

        working = record.copy()
        working.email_subject = subject
        working.email_body = body
        self.save(working, DocumentStatus.SENT)

        _copy_back(working, record)
        record.email_subject = subject
        record.email_body = body

        try:
            delivery = self.composer.compose(record.client_email, subject, body)
        except DeliveryError as exc:
            # Status stays "sent": delivery is the operator's step, not ours.
            self.log.warning("Email composition failed for %s: %s", record.id, exc)
            delivery = None

        return SendOutcome(document_id=record.id, status=record.status, delivery=delivery)

    # -----------------------------
    # Signed copy
    # -----------------------------
    def upload_signed(self, document_id: str, filename: str, data: bytes) -> DocumentRecord:
        if not data:
            raise DocumentValidationError("Uploaded file is empty.")

        record = self.gateway.get_by_id(document_id)
        if record is None:
            raise PersistenceError(f"Document {document_id} not found.")

        path = f"{SIGNED_PREFIX}/{record.type.value}/{record.id}.{_signed_extension(filename)}"
        url = self.blob_store.upload(path, data)

        record.signed_file_url = url
        record.signed_file_name = (filename or "").strip() or os.path.basename(path)
        # Allowed from draft too: a paper copy can come back signed without a send.
        record.status = advance_status(record.status, DocumentStatus.SIGNED)
        record.updated_at = self.clock()
        self.gateway.upsert(record)

        self.log.info("Signed copy stored for %s at %s", record.id, path)
        return record

    # -----------------------------
    # Render / correction / delete
    # -----------------------------
    def generate_pdf(self, record: DocumentRecord) -> bytes:
        return self.renderer.pdf(record)

    def create_correction(self, document_id: str) -> str:
        original = self.gateway.get_by_id(document_id)
        if original is None:
            raise PersistenceError(f"Document {document_id} not found.")
        fixed = make_correction(original)
        new_id = self.save(fixed)
        self.log.info("Correction %s created from %s", new_id, document_id)
        return new_id

    def delete(self, document_id: str) -> None:
        self.gateway.delete(document_id)
        self.log.info("Deleted document %s", document_id)
