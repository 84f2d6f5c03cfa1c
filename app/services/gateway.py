# app/services/gateway.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.documents.errors import DocumentValidationError, PersistenceError
from app.documents.records import DocumentRecord, DocumentStatus, DocumentType
from app.models import AdminDocument, utcnow_naive

log = logging.getLogger(__name__)


def _naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


class SqlDocumentGateway:
    """
    Document store over the admin_document table.

    Last write wins: upsert replaces the stored payload wholesale. There is
    no version check (single operator).
    """

    def __init__(self, db):
        self.db = db

    # -----------------------------
    # Writes
    # -----------------------------
    def upsert(self, record: DocumentRecord) -> str:
        doc_id = record.id or str(uuid.uuid4())
        session = self.db.session
        try:
            row = session.get(AdminDocument, doc_id)
            if row is None:
                row = AdminDocument(id=doc_id, created_at=_naive_utc(record.created_at) or utcnow_naive())
                session.add(row)

            row.doc_type = record.type.value
            row.number = record.number
            row.status = record.status.value
            row.updated_at = _naive_utc(record.updated_at) or utcnow_naive()

            payload = record.to_payload()
            payload["id"] = doc_id
            payload["createdAt"] = _aware_utc(row.created_at).isoformat()
            payload["updatedAt"] = _aware_utc(row.updated_at).isoformat()
            row.payload = payload

            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            log.exception("Document upsert failed (%s)", doc_id)
            raise PersistenceError(f"Could not save document {doc_id}.") from exc
        return doc_id

    def delete(self, document_id: str) -> None:
        session = self.db.session
        try:
            row = session.get(AdminDocument, document_id)
            if row is None:
                return
            session.delete(row)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            log.exception("Document delete failed (%s)", document_id)
            raise PersistenceError(f"Could not delete document {document_id}.") from exc

    # -----------------------------
    # Reads
    # -----------------------------
    def get_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        if not document_id:
            return None
        try:
            row = self.db.session.get(AdminDocument, document_id)
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise PersistenceError(f"Could not load document {document_id}.") from exc
        return self._to_record(row) if row is not None else None

    def list_by_type(self, doc_type) -> list[DocumentRecord]:
        kind = DocumentType.parse(doc_type)
        return self._list(AdminDocument.query.filter_by(doc_type=kind.value))

    def list_all(self) -> list[DocumentRecord]:
        return self._list(AdminDocument.query)

    def count_by_status(self) -> dict[str, int]:
        try:
            rows = (
                self.db.session.query(AdminDocument.status, self.db.func.count(AdminDocument.id))
                .group_by(AdminDocument.status)
                .all()
            )
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise PersistenceError("Could not count documents.") from exc
        counts = {s.value: 0 for s in DocumentStatus}
        counts.update({status: n for status, n in rows})
        return counts

    def _list(self, query) -> list[DocumentRecord]:
        try:
            rows = query.order_by(AdminDocument.created_at.desc(), AdminDocument.id.desc()).all()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            raise PersistenceError("Could not list documents.") from exc

        records = []
        for row in rows:
            try:
                records.append(self._to_record(row))
            except DocumentValidationError:
                log.warning("Skipping unreadable document %s", row.id, exc_info=True)
        return records

    @staticmethod
    def _to_record(row: AdminDocument) -> DocumentRecord:
        record = DocumentRecord.from_payload(dict(row.payload or {}), doc_type=row.doc_type)
        record.id = row.id
        record.status = DocumentStatus.parse(row.status)
        record.created_at = _aware_utc(row.created_at)
        record.updated_at = _aware_utc(row.updated_at)
        return record
