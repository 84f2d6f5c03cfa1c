"""LifecycleController against in-memory collaborators."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.documents.email import MailtoComposer
from app.documents.errors import (
    DeliveryError,
    DocumentValidationError,
    InvalidTransition,
    PersistenceError,
)
from app.documents.lifecycle import LifecycleController, send_readiness
from app.documents.records import DocumentRecord, DocumentStatus
from app.documents.renderer import DocumentRenderer

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


class MemoryGateway:
    def __init__(self):
        self.rows = {}
        self.writes = 0

    def upsert(self, record):
        self.writes += 1
        record.id = record.id or f"doc-{len(self.rows) + 1}"
        self.rows[record.id] = record.copy()
        return record.id

    def get_by_id(self, document_id):
        row = self.rows.get(document_id)
        return row.copy() if row is not None else None

    def delete(self, document_id):
        self.rows.pop(document_id, None)


class FailingGateway(MemoryGateway):
    def upsert(self, record):
        raise PersistenceError("database unavailable")


class MemoryStore:
    def __init__(self):
        self.blobs = {}

    def upload(self, path, data):
        self.blobs[path] = data
        return f"/admin/files/{path}"


class BrokenComposer:
    def compose(self, to, subject, body):
        raise DeliveryError("mail client unavailable")


def make_controller(gateway=None, composer=None):
    return LifecycleController(
        gateway=gateway or MemoryGateway(),
        blob_store=MemoryStore(),
        renderer=DocumentRenderer(),
        composer=composer or MailtoComposer(),
        clock=lambda: NOW,
    )


def invoice(**extra):
    data = {
        "type": "invoice",
        "number": "INV-2026-0001",
        "clientName": "Jane Doe",
        "clientEmail": "jane@example.com",
        "taxRate": 8,
        "items": [
            {"description": "Paint", "quantity": 2, "unitPrice": "100"},
            {"description": "Trim", "quantity": 1, "unitPrice": "50"},
        ],
    }
    data.update(extra)
    return DocumentRecord.from_payload(data)


class TestSave:
    def test_assigns_id_and_recomputes_totals(self):
        controller = make_controller()
        record = invoice(total="1")

        doc_id = controller.save(record)

        assert doc_id == record.id
        assert record.subtotal == Decimal("250")
        assert record.tax == Decimal("20")
        assert record.total == Decimal("270")
        assert record.created_at == NOW
        assert record.updated_at == NOW

    def test_second_save_updates_same_row(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()
        controller.save(record)
        record.notes = "updated"
        controller.save(record)

        assert len(gateway.rows) == 1
        assert gateway.rows[record.id].notes == "updated"

    def test_saving_draft_does_not_regress_sent(self):
        controller = make_controller()
        record = invoice()
        controller.save(record, DocumentStatus.SENT)

        stale = invoice(id=record.id, status="draft")
        controller.save(stale)

        assert stale.status is DocumentStatus.SENT

    @pytest.mark.parametrize("claimed", ["sent", "signed", "paid"])
    def test_new_record_starts_at_draft_whatever_payload_says(self, claimed):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice(status=claimed)

        controller.save(record)

        assert record.status is DocumentStatus.DRAFT
        assert gateway.rows[record.id].status is DocumentStatus.DRAFT

    @pytest.mark.parametrize("target", [DocumentStatus.SIGNED, DocumentStatus.PAID])
    def test_signed_and_paid_are_not_save_targets(self, target):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()

        with pytest.raises(InvalidTransition):
            controller.save(record, target)

        assert gateway.writes == 0
        assert record.id is None

    def test_failed_write_leaves_record_untouched(self):
        controller = make_controller(FailingGateway())
        record = invoice()

        with pytest.raises(PersistenceError):
            controller.save(record)

        assert record.id is None
        assert record.status is DocumentStatus.DRAFT
        assert record.total == Decimal("0")


class TestSend:
    def test_missing_email_blocks_without_writing(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice(clientEmail="")

        outcome = controller.send(record)

        assert not outcome.sent
        assert [g.field for g in outcome.blocked] == ["clientEmail"]
        assert outcome.blocked[0].message == "Please enter client email."
        assert gateway.writes == 0
        assert record.status is DocumentStatus.DRAFT

    def test_marks_sent_and_builds_mailto(self):
        controller = make_controller()
        record = invoice()

        outcome = controller.send(record)

        assert outcome.sent
        assert outcome.status is DocumentStatus.SENT
        assert record.status is DocumentStatus.SENT
        assert outcome.delivery.mailto_url.startswith("mailto:jane@example.com?subject=")
        assert "INV-2026-0001" in record.email_subject

    def test_operator_text_wins_over_default(self):
        controller = make_controller()
        record = invoice()

        outcome = controller.send(record, subject="Your invoice", body="See attached.")

        assert outcome.delivery.subject == "Your invoice"
        assert outcome.delivery.body == "See attached."

    def test_delivery_failure_keeps_sent_status(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway, composer=BrokenComposer())
        record = invoice()

        outcome = controller.send(record)

        assert outcome.sent
        assert outcome.delivery is None
        assert gateway.rows[record.id].status is DocumentStatus.SENT

    def test_readiness_rejects_malformed_address(self):
        gaps = send_readiness(invoice(clientEmail="not-an-email"))
        assert [g.field for g in gaps] == ["clientEmail"]


class TestSignedUpload:
    def test_draft_can_become_signed(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()
        controller.save(record)

        signed = controller.upload_signed(record.id, "Signed Copy.PDF", b"%PDF-1.4 signed")

        assert signed.status is DocumentStatus.SIGNED
        assert signed.signed_file_url == f"/admin/files/signed-documents/invoice/{record.id}.pdf"
        assert signed.signed_file_name == "Signed Copy.PDF"
        assert controller.blob_store.blobs[f"signed-documents/invoice/{record.id}.pdf"] == b"%PDF-1.4 signed"
        assert gateway.rows[record.id].status is DocumentStatus.SIGNED

    def test_unknown_extension_falls_back_to_pdf(self):
        controller = make_controller()
        record = invoice()
        controller.save(record)

        signed = controller.upload_signed(record.id, "scan", b"data")

        assert signed.signed_file_url.endswith(f"/{record.id}.pdf")

    def test_empty_file_rejected(self):
        controller = make_controller()
        with pytest.raises(DocumentValidationError):
            controller.upload_signed("doc-1", "signed.pdf", b"")

    def test_unknown_document(self):
        controller = make_controller()
        with pytest.raises(PersistenceError):
            controller.upload_signed("missing", "signed.pdf", b"data")


class TestCorrection:
    def test_creates_new_draft_with_suffix(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()
        controller.send(record)

        new_id = controller.create_correction(record.id)

        assert new_id != record.id
        fixed = gateway.rows[new_id]
        assert fixed.number == "INV-2026-0001-CORRECTED"
        assert fixed.status is DocumentStatus.DRAFT
        assert fixed.is_correction
        assert gateway.rows[record.id].status is DocumentStatus.SENT

    def test_delete_then_missing(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()
        controller.save(record)

        controller.delete(record.id)
        controller.delete(record.id)

        assert gateway.get_by_id(record.id) is None
        with pytest.raises(PersistenceError):
            controller.create_correction(record.id)


class TestGeneratePdf:
    def test_rendering_does_not_touch_status_or_store(self):
        gateway = MemoryGateway()
        controller = make_controller(gateway)
        record = invoice()
        controller.send(record)
        writes = gateway.writes
        updated_at = record.updated_at

        pdf = controller.generate_pdf(record)

        assert pdf.startswith(b"%PDF")
        assert record.status is DocumentStatus.SENT
        assert record.updated_at == updated_at
        assert gateway.writes == writes
        assert gateway.rows[record.id].status is DocumentStatus.SENT
