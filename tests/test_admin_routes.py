import base64
import io
from decimal import Decimal

import pytest

from app.extensions import db
from app.models import FieldNote, Lead, Review

PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def invoice_payload(**extra):
    data = {
        "type": "invoice",
        "number": "INV-2026-0042",
        "clientName": "Jane Doe",
        "clientEmail": "jane@example.com",
        "taxRate": "8",
        "items": [{"description": "Paint", "quantity": 2, "unitPrice": "100"},
                  {"description": "Trim", "quantity": 1, "unitPrice": "50"}],
    }
    data.update(extra)
    return data


def save(client, **extra):
    resp = client.post("/admin/api/documents", json={"record": invoice_payload(**extra)})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["id"]


class TestAuth:
    def test_dashboard_requires_login(self, client):
        resp = client.get("/admin/")
        assert resp.status_code == 302
        assert "/admin/login" in resp.headers["Location"]

    def test_bad_password(self, client, admin_user):
        resp = client.post("/admin/login", data={"email": "admin@example.com", "password": "wrong"})
        assert resp.status_code == 401

    def test_missing_fields(self, client):
        assert client.post("/admin/login", data={}).status_code == 400

    def test_non_admin_role_forbidden(self, client, admin_user):
        admin_user.role = "staff"
        db.session.commit()
        client.post("/admin/login", data={"email": "admin@example.com", "password": "Sup3rSecret!"})
        assert client.get("/admin/").status_code == 403

    def test_offsite_next_ignored(self, client, admin_user):
        resp = client.post(
            "/admin/login?next=https://evil.example.com/",
            data={"email": "admin@example.com", "password": "Sup3rSecret!"},
        )
        assert resp.headers["Location"].endswith("/admin/")

    def test_dashboard_renders(self, admin_client):
        save(admin_client)
        resp = admin_client.get("/admin/")
        assert resp.status_code == 200
        assert b"INV-2026-0042" in resp.data


class TestDocumentApi:
    def test_scaffold(self, admin_client):
        resp = admin_client.get("/admin/api/documents/scaffold/contract")
        record = resp.get_json()["record"]
        assert record["type"] == "contract"
        assert record["number"].startswith("CTR-")
        assert record["status"] == "draft"

    def test_scaffold_unknown_type(self, admin_client):
        resp = admin_client.get("/admin/api/documents/scaffold/estimate")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_compute(self, admin_client):
        resp = admin_client.post("/admin/api/documents/compute", json={"record": invoice_payload()})
        totals = resp.get_json()["totals"]
        assert totals["subtotal"] == "250.00"
        assert totals["tax"] == "20.00"
        assert totals["formatted"]["total"] == "$270.00"

    def test_compute_suggests_contract_payments(self, admin_client):
        resp = admin_client.post("/admin/api/documents/compute",
                                 json={"record": {"type": "contract", "totalAmount": "9000"}})
        assert "$3,000.00" in resp.get_json()["paymentStructure"]

    def test_save_and_get(self, admin_client):
        doc_id = save(admin_client)

        record = admin_client.get(f"/admin/api/documents/{doc_id}").get_json()["record"]

        assert record["id"] == doc_id
        assert Decimal(record["total"]) == Decimal("270")
        assert record["status"] == "draft"

    @pytest.mark.parametrize("claimed", ["sent", "signed", "paid"])
    def test_save_always_stores_draft(self, admin_client, gateway, claimed):
        resp = admin_client.post("/admin/api/documents", json={
            "record": invoice_payload(status=claimed, clientEmail=""),
            "status": claimed,
        })
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["status"] == "draft"
        record = gateway.get_by_id(body["id"])
        assert record.status.value == "draft"
        assert record.signed_file_url is None

    def test_save_keeps_sent_status_of_stored_record(self, admin_client, gateway):
        sent = admin_client.post("/admin/api/documents/send", json={"record": invoice_payload()}).get_json()

        resp = admin_client.post("/admin/api/documents",
                                 json={"record": invoice_payload(id=sent["id"], notes="edited")})

        assert resp.get_json()["status"] == "sent"
        assert gateway.get_by_id(sent["id"]).notes == "edited"

    def test_get_missing(self, admin_client):
        assert admin_client.get("/admin/api/documents/nope").status_code == 404

    def test_negative_price_rejected(self, admin_client):
        resp = admin_client.post("/admin/api/documents", json={
            "record": invoice_payload(items=[{"description": "x", "quantity": 1, "unitPrice": "-5"}])
        })
        assert resp.status_code == 400

    def test_missing_record_object(self, admin_client):
        resp = admin_client.post("/admin/api/documents", json={"type": "invoice"})
        assert resp.status_code == 400

    def test_send_blocked_without_email(self, admin_client, gateway):
        resp = admin_client.post("/admin/api/documents/send",
                                 json={"record": invoice_payload(clientEmail="")})
        body = resp.get_json()
        assert resp.status_code == 422
        assert body["error"] == "Please enter client email."
        assert gateway.list_all() == []

    def test_send_marks_sent(self, admin_client, gateway):
        resp = admin_client.post("/admin/api/documents/send", json={"record": invoice_payload()})
        body = resp.get_json()

        assert body["success"] is True
        assert body["status"] == "sent"
        assert body["mailto"].startswith("mailto:jane@example.com")
        assert gateway.get_by_id(body["id"]).status.value == "sent"

    def test_generate_pdf(self, admin_client):
        resp = admin_client.post("/admin/api/generate-pdf",
                                 json={"type": "invoice", "data": invoice_payload(items=[])})
        assert resp.status_code == 200
        assert resp.headers["Content-Type"] == "application/pdf"
        assert resp.data.startswith(b"%PDF")

    def test_default_signature(self, admin_client):
        assert admin_client.get("/admin/api/signature/default").get_json()["url"] is None

        data_url = "data:image/png;base64," + base64.b64encode(PNG).decode()
        resp = admin_client.post("/admin/api/signature/default", json={"signatureData": data_url})
        url = resp.get_json()["url"]

        assert url == "/admin/files/admin/signature/default.png"
        assert admin_client.get(url).data == PNG
        scaffold = admin_client.get("/admin/api/documents/scaffold/invoice").get_json()["record"]
        assert scaffold["signatureData"] == url


class TestDocumentPages:
    def test_list_preview_and_pdf(self, admin_client):
        doc_id = save(admin_client)

        assert b"INV-2026-0042" in admin_client.get("/admin/documents?type=invoice").data
        preview = admin_client.get(f"/admin/documents/{doc_id}/preview")
        assert preview.status_code == 200
        assert b"$270.00" in preview.data

        pdf = admin_client.get(f"/admin/documents/{doc_id}/pdf?download=1")
        assert pdf.data.startswith(b"%PDF")
        assert pdf.headers["Content-Disposition"].startswith("attachment;")

    def test_preview_missing_document(self, admin_client):
        assert admin_client.get("/admin/documents/missing/preview").status_code == 404

    def test_correction_and_delete(self, admin_client, gateway):
        doc_id = save(admin_client)

        resp = admin_client.post(f"/admin/documents/{doc_id}/correction")
        assert resp.status_code == 302
        numbers = sorted(r.number for r in gateway.list_all())
        assert numbers == ["INV-2026-0042", "INV-2026-0042-CORRECTED"]

        admin_client.post(f"/admin/documents/{doc_id}/delete")
        assert gateway.get_by_id(doc_id) is None

    def test_signed_upload(self, admin_client, gateway, blob_store):
        doc_id = save(admin_client)

        resp = admin_client.post(
            f"/admin/documents/{doc_id}/signed-upload",
            data={"file": (io.BytesIO(b"%PDF-1.4 signed"), "signed copy.pdf")},
            content_type="multipart/form-data",
        )

        assert resp.status_code == 302
        record = gateway.get_by_id(doc_id)
        assert record.status.value == "signed"
        assert record.signed_file_name == "signed_copy.pdf"
        assert blob_store.read(f"signed-documents/invoice/{doc_id}.pdf") == b"%PDF-1.4 signed"
        assert b"INV-2026-0042" in admin_client.get("/admin/signed-documents").data

    def test_signed_upload_without_file(self, admin_client):
        doc_id = save(admin_client)
        resp = admin_client.post(f"/admin/documents/{doc_id}/signed-upload", data={})
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/admin/signed-documents")

    @pytest.mark.parametrize("key", ["../secret.txt", "nothing/here.pdf"])
    def test_files_not_found(self, admin_client, key):
        assert admin_client.get(f"/admin/files/{key}").status_code == 404


class TestLeadsAndReviews:
    def test_lead_status_update(self, admin_client):
        lead = Lead(source="contact", name="Sam", email="sam@example.com", phone="555", services=[])
        db.session.add(lead)
        db.session.commit()

        admin_client.post(f"/admin/leads/{lead.id}/status", data={"status": "quoted"})

        assert db.session.get(Lead, lead.id).status == "quoted"
        assert b"Sam" in admin_client.get("/admin/leads").data

    def test_review_approve_and_delete(self, admin_client, client):
        review = Review(name="Pat", rating=5, text="Great job", approved=False)
        db.session.add(review)
        db.session.commit()

        admin_client.post(f"/admin/reviews/{review.id}/approve")
        assert db.session.get(Review, review.id).approved is True

        admin_client.post(f"/admin/reviews/{review.id}/delete")
        assert db.session.get(Review, review.id) is None


class TestFieldNotes:
    def test_create_update_delete(self, admin_client):
        resp = admin_client.post("/admin/api/field-notes",
                                 json={"projectName": "Deck", "measurements": "12x16"})
        note_id = resp.get_json()["id"]

        resp = admin_client.post("/admin/api/field-notes", json={"id": note_id, "status": "complete"})
        assert resp.get_json()["note"]["status"] == "complete"
        assert resp.get_json()["note"]["measurements"] == "12x16"

        admin_client.post(f"/admin/field-notes/{note_id}/delete")
        assert db.session.get(FieldNote, note_id) is None

    def test_invalid_status(self, admin_client):
        resp = admin_client.post("/admin/api/field-notes", json={"projectName": "Deck", "status": "archived"})
        assert resp.status_code == 400
        assert FieldNote.query.count() == 0
