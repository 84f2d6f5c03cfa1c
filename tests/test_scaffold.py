"""Tests for new-document scaffolds, numbering and default email text."""

from datetime import date, datetime, timezone

from app.config.company import DEFAULT_COMPANY
from app.documents.records import ContractDetails, DocumentRecord, DocumentType, InvoiceDetails
from app.documents.scaffold import (
    DEFAULT_CONTRACT_TERMS,
    default_email,
    make_scaffold,
    new_document_number,
)
from app.documents.totals import compute_totals

NOW = datetime(2026, 10, 19, 14, 30, 5, 123000, tzinfo=timezone.utc)


class TestNumbering:
    def test_prefix_year_and_suffix(self):
        millis = str(int(NOW.timestamp() * 1000))
        assert new_document_number("invoice", NOW) == f"INV-2026-{millis[-4:]}"
        assert new_document_number("change-order", NOW).startswith("CO-2026-")
        assert new_document_number(DocumentType.CONTRACT, NOW).startswith("CTR-2026-")


class TestScaffold:
    def test_invoice_due_in_30_days(self):
        record = make_scaffold("invoice", date(2026, 10, 19), NOW)
        assert isinstance(record.details, InvoiceDetails)
        assert record.date == "2026-10-19"
        assert record.details.due_date == "2026-11-18"
        assert len(record.items) == 1
        assert record.id is None

    def test_contract_defaults(self):
        record = make_scaffold("contract", date(2026, 10, 19), NOW)
        assert isinstance(record.details, ContractDetails)
        assert record.details.contract_terms == DEFAULT_CONTRACT_TERMS
        assert record.details.freeform_description
        assert record.notes


class TestDefaultEmail:
    def test_invoice_email(self):
        record = DocumentRecord.from_payload({
            "type": "invoice",
            "number": "INV-2026-0042",
            "clientName": "Maria Lopez",
            "projectName": "Basement finish",
            "dueDate": "2026-11-18",
            "items": [{"quantity": 1, "unitPrice": "1500"}],
        })
        subject, body = default_email(record, compute_totals(record), DEFAULT_COMPANY)
        assert subject == "Invoice INV-2026-0042 - Basement finish"
        assert body.startswith("Hi Maria,")
        assert "$1,500.00" in body
        assert "November 18, 2026" in body
        assert DEFAULT_COMPANY.signer_name in body

    def test_greeting_without_client_name(self):
        record = DocumentRecord.from_payload({"type": "change-order", "number": "CO-1"})
        subject, body = default_email(record, compute_totals(record), DEFAULT_COMPANY)
        assert body.startswith("Hi there,")
        assert subject == f"Change Order CO-1 - {DEFAULT_COMPANY.name}"
