import pytest

from app.documents.errors import RenderError
from app.documents.records import DocumentRecord
from app.documents.renderer import DocumentRenderer
from app.services.signatures import SignatureLoader

# 1x1 transparent PNG
PNG_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def make(doc_type="invoice", **extra):
    data = {"type": doc_type, "number": "INV-1", "clientName": "Jane Doe", "items": []}
    data.update(extra)
    return DocumentRecord.from_payload(data)


class TestRenderPdf:
    def test_zero_item_invoice_renders(self, blob_store):
        renderer = DocumentRenderer(signature_loader=SignatureLoader(blob_store))
        record = make()

        pdf = renderer.pdf(record)

        assert pdf.startswith(b"%PDF")
        assert renderer.view(record).totals[-1].value == "$0.00"

    @pytest.mark.parametrize("doc_type", ["invoice", "change-order", "contract"])
    def test_every_type_renders_with_signature(self, blob_store, doc_type):
        renderer = DocumentRenderer(signature_loader=SignatureLoader(blob_store))
        record = make(
            doc_type,
            items=[{"description": "Patch drywall", "quantity": 2, "unitPrice": "125"}],
            signatureData=PNG_DATA_URL,
        )
        assert renderer.pdf(record).startswith(b"%PDF")

    def test_render_does_not_touch_record(self):
        record = make(items=[{"description": "Paint", "quantity": 1, "unitPrice": "100"}], total="999")
        DocumentRenderer().pdf(record)
        assert str(record.total) == "999"

    def test_missing_default_signature_renders_blank_line(self, blob_store):
        renderer = DocumentRenderer(signature_loader=SignatureLoader(blob_store))
        record = make(signatureData=blob_store.url("admin/signature/default.png"))
        assert renderer.pdf(record).startswith(b"%PDF")


class TestRenderFailures:
    def test_undecodable_signature(self, blob_store):
        renderer = DocumentRenderer(signature_loader=SignatureLoader(blob_store))
        with pytest.raises(RenderError):
            renderer.pdf(make(signatureData="data:image/png;base64,@@@"))

    def test_signature_that_is_not_an_image(self, blob_store):
        renderer = DocumentRenderer(signature_loader=SignatureLoader(blob_store))
        with pytest.raises(RenderError):
            renderer.pdf(make(signatureData="data:image/png;base64,aGVsbG8gd29ybGQ="))


class TestFilename:
    def test_unsafe_characters_replaced(self):
        record = make(number="INV 2026/07")
        assert DocumentRenderer.filename(record) == "invoice-INV_2026_07.pdf"

    def test_blank_number(self):
        assert DocumentRenderer.filename(make("contract", number="")) == "contract-document.pdf"
