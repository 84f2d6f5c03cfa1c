# app/admin.py
from __future__ import annotations

import re
from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)
from sqlalchemy import desc
from werkzeug.utils import secure_filename

from app.documents.errors import (
    BlobNotFound,
    DocumentError,
    DocumentValidationError,
    InvalidTransition,
    PersistenceError,
    RenderError,
)
from app.documents.money import decimal_str, format_currency, round_cents
from app.documents.records import ContractDetails, DocumentRecord, DocumentStatus, DocumentType
from app.documents.scaffold import DOC_TYPE_LABELS, DOC_TYPE_OPTIONS, make_scaffold
from app.documents.totals import Totals, apply_totals, compute_totals, suggest_payment_structure
from app.extensions import db
from app.models import FIELD_NOTE_STATUSES, LEAD_SOURCES, LEAD_STATUSES, FieldNote, Lead, Review
from app.services.documents import document_services
from app.services.signatures import default_signature_url, promote_default
from .utils.guards import admin_required

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

# -------------------------------------------------------------------
# Helpers / Constants
# -------------------------------------------------------------------
_ERROR_STATUS = (
    (DocumentValidationError, 400),
    (BlobNotFound, 404),
    (InvalidTransition, 409),
    (PersistenceError, 500),
    (RenderError, 500),
)


def _clean_str(value: str | None) -> str:
    return (value or "").strip()


def _commit_or_rollback(action: str) -> bool:
    """Commit session; rollback + flash on failure. Returns True on success."""
    try:
        db.session.commit()
        return True
    except Exception:
        db.session.rollback()
        current_app.logger.exception("%s failed", action)
        flash(f"{action} failed. Please try again.", "danger")
        return False


def _safe_filename(s: str) -> str:
    s = (s or "").strip()
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", s)
    return s[:120] or "document"


def _today() -> date:
    tz = ZoneInfo(current_app.config.get("DOCUMENT_TIMEZONE") or "America/New_York")
    return datetime.now(tz).date()


def _wants_json() -> bool:
    return request.path.startswith("/admin/api/") or request.is_json


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise DocumentValidationError("Expected a JSON object body.")
    return data


def _record_from_body(data: dict) -> DocumentRecord:
    payload = data.get("record")
    if not isinstance(payload, dict):
        raise DocumentValidationError("Missing 'record' object.")
    return DocumentRecord.from_payload(payload)


def _totals_json(totals: Totals) -> dict:
    out = {
        "subtotal": decimal_str(round_cents(totals.subtotal)),
        "tax": decimal_str(round_cents(totals.tax)),
        "total": decimal_str(round_cents(totals.total)),
        "formatted": {
            "subtotal": format_currency(totals.subtotal),
            "tax": format_currency(totals.tax),
            "total": format_currency(totals.total),
        },
    }
    if totals.change_total is not None:
        out["changeTotal"] = decimal_str(round_cents(totals.change_total))
        out["totalAfterChange"] = decimal_str(round_cents(totals.total_after_change))
        out["formatted"]["changeTotal"] = format_currency(totals.change_total)
        out["formatted"]["totalAfterChange"] = format_currency(totals.total_after_change)
    return out


def _pdf_response(pdf_bytes: bytes, filename: str, inline: bool = True):
    resp = make_response(pdf_bytes)
    resp.headers["Content-Type"] = "application/pdf"
    disposition = "inline" if inline else "attachment"
    resp.headers["Content-Disposition"] = f'{disposition}; filename="{_safe_filename(filename)}"'
    return resp


def _load_or_404(document_id: str) -> DocumentRecord:
    record = document_services().gateway.get_by_id(document_id)
    if record is None:
        abort(404)
    return record


@admin_bp.errorhandler(DocumentError)
def document_error(exc: DocumentError):
    status = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    if status >= 500:
        current_app.logger.error("Document action failed: %s", exc, exc_info=exc)
    else:
        current_app.logger.warning("Document request rejected: %s", exc)

    if _wants_json():
        return jsonify({"success": False, "error": str(exc)}), status
    if request.method == "GET":
        return render_template("admin/error.html", message=str(exc)), status
    flash(str(exc), "danger")
    return redirect(request.referrer or url_for("admin.dashboard"))


# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------
@admin_bp.route("/", methods=["GET"])
@admin_required
def dashboard():
    gateway = document_services().gateway
    return render_template(
        "admin/dashboard.html",
        status_counts=gateway.count_by_status(),
        recent=gateway.list_all()[:8],
        new_leads=Lead.query.filter_by(status="new").count(),
        pending_reviews=Review.query.filter_by(approved=False).count(),
        doc_types=DOC_TYPE_OPTIONS,
    )


# -------------------------------------------------------------------
# Documents
# -------------------------------------------------------------------
@admin_bp.route("/documents", methods=["GET"])
@admin_required
def documents_list():
    doc_type = DocumentType.parse(request.args.get("type") or DocumentType.INVOICE.value)
    records = document_services().gateway.list_by_type(doc_type)
    rows = [(r, compute_totals(r)) for r in records]
    return render_template(
        "admin/documents_list.html",
        rows=rows,
        doc_type=doc_type,
        doc_label=DOC_TYPE_LABELS[doc_type],
        doc_types=DOC_TYPE_OPTIONS,
        format_currency=format_currency,
    )


@admin_bp.route("/documents/<document_id>/delete", methods=["POST"])
@admin_required
def documents_delete(document_id: str):
    record = _load_or_404(document_id)
    document_services().controller.delete(document_id)
    flash(f"{DOC_TYPE_LABELS[record.type]} {record.number} deleted.", "success")
    return redirect(url_for("admin.documents_list", type=record.type.value))


@admin_bp.route("/documents/<document_id>/preview", methods=["GET"])
@admin_required
def documents_preview(document_id: str):
    record = _load_or_404(document_id)
    view = document_services().renderer.view(record)
    return render_template("admin/document_preview.html", view=view, record=record)


@admin_bp.route("/documents/<document_id>/pdf", methods=["GET"])
@admin_required
def documents_pdf(document_id: str):
    services = document_services()
    record = _load_or_404(document_id)
    pdf_bytes = services.controller.generate_pdf(record)
    inline = request.args.get("download") not in ("1", "true", "yes")
    return _pdf_response(pdf_bytes, services.renderer.filename(record), inline=inline)


@admin_bp.route("/documents/<document_id>/correction", methods=["POST"])
@admin_required
def documents_correction(document_id: str):
    _load_or_404(document_id)
    new_id = document_services().controller.create_correction(document_id)
    flash("Correction draft created.", "success")
    return redirect(url_for("admin.documents_preview", document_id=new_id))


# -------------------------------------------------------------------
# Documents JSON API (editor)
# -------------------------------------------------------------------
@admin_bp.route("/api/documents/scaffold/<doc_type>", methods=["GET"])
@admin_required
def api_documents_scaffold(doc_type: str):
    record = apply_totals(make_scaffold(doc_type, _today()))
    signature = default_signature_url(document_services().blob_store)
    if signature:
        record.signature_data = signature
    return jsonify({"success": True, "record": record.to_payload()})


@admin_bp.route("/api/documents/compute", methods=["POST"])
@admin_required
def api_documents_compute():
    record = _record_from_body(_json_body())
    out = {"success": True, "totals": _totals_json(compute_totals(record))}
    if isinstance(record.details, ContractDetails):
        out["paymentStructure"] = suggest_payment_structure(
            record.details.total_amount, record.details.payment_structure
        )
    return jsonify(out)


@admin_bp.route("/api/documents", methods=["POST"])
@admin_required
def api_documents_save():
    record = _record_from_body(_json_body())
    # Editor saves are drafts; sent and signed come from their own actions.
    doc_id = document_services().controller.save(record, DocumentStatus.DRAFT)
    return jsonify({
        "success": True,
        "id": doc_id,
        "status": record.status.value,
        "totals": _totals_json(compute_totals(record)),
    })


@admin_bp.route("/api/documents/<document_id>", methods=["GET"])
@admin_required
def api_documents_get(document_id: str):
    record = document_services().gateway.get_by_id(document_id)
    if record is None:
        return jsonify({"success": False, "error": "Document not found."}), 404
    return jsonify({"success": True, "record": record.to_payload()})


@admin_bp.route("/api/documents/send", methods=["POST"])
@admin_required
def api_documents_send():
    data = _json_body()
    record = _record_from_body(data)
    outcome = document_services().controller.send(
        record,
        subject=_clean_str(data.get("subject")) or None,
        body=data.get("body") or None,
    )
    if outcome.blocked:
        return jsonify({
            "success": False,
            "error": outcome.blocked[0].message,
            "gaps": [{"field": g.field, "message": g.message} for g in outcome.blocked],
        }), 422

    delivery = outcome.delivery
    return jsonify({
        "success": True,
        "id": outcome.document_id,
        "status": outcome.status.value,
        "mailto": delivery.mailto_url if delivery else None,
        "subject": record.email_subject,
        "body": record.email_body,
    })


@admin_bp.route("/api/generate-pdf", methods=["POST"])
@admin_required
def api_generate_pdf():
    data = _json_body()
    payload = data.get("data")
    if not isinstance(payload, dict):
        raise DocumentValidationError("Missing 'data' object.")
    record = DocumentRecord.from_payload(payload, doc_type=data.get("type"))

    services = document_services()
    pdf_bytes = services.controller.generate_pdf(record)
    return _pdf_response(pdf_bytes, services.renderer.filename(record))


# -------------------------------------------------------------------
# Signed documents + stored files
# -------------------------------------------------------------------
@admin_bp.route("/signed-documents", methods=["GET"])
@admin_required
def signed_documents():
    gateway = document_services().gateway
    raw_type = _clean_str(request.args.get("type"))
    doc_type = DocumentType.parse(raw_type) if raw_type else None
    records = gateway.list_by_type(doc_type) if doc_type else gateway.list_all()
    return render_template(
        "admin/signed_documents.html",
        signed=[r for r in records if r.status is DocumentStatus.SIGNED],
        awaiting=[r for r in records if r.status is DocumentStatus.SENT],
        doc_type=doc_type,
        doc_types=DOC_TYPE_OPTIONS,
        labels=DOC_TYPE_LABELS,
    )


@admin_bp.route("/documents/<document_id>/signed-upload", methods=["POST"])
@admin_required
def documents_signed_upload(document_id: str):
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        flash("Choose a signed file to upload.", "danger")
        return redirect(url_for("admin.signed_documents"))

    filename = secure_filename(upload.filename) or "signed.pdf"
    record = document_services().controller.upload_signed(document_id, filename, upload.read())
    current_app.logger.info("Signed copy uploaded for %s %s", record.type.value, record.number)
    flash(f"Signed copy of {record.number} uploaded.", "success")
    return redirect(url_for("admin.signed_documents", type=record.type.value))


@admin_bp.route("/files/<path:key>", methods=["GET"])
@admin_required
def files(key: str):
    store = document_services().blob_store
    try:
        if not store.exists(key):
            abort(404)
        return send_file(store.absolute_path(key))
    except ValueError:
        abort(404)


@admin_bp.route("/api/signature/default", methods=["GET", "POST"])
@admin_required
def api_signature_default():
    store = document_services().blob_store
    if request.method == "GET":
        return jsonify({"success": True, "url": default_signature_url(store)})

    data = _json_body()
    url = promote_default(store, data.get("signatureData") or "")
    return jsonify({"success": True, "url": url})


# -------------------------------------------------------------------
# Leads
# -------------------------------------------------------------------
@admin_bp.route("/leads", methods=["GET"])
@admin_required
def leads_list():
    source = _clean_str(request.args.get("source"))
    query = Lead.query
    if source in LEAD_SOURCES:
        query = query.filter_by(source=source)
    leads = query.order_by(desc(Lead.created_at), desc(Lead.id)).limit(200).all()
    return render_template("admin/leads.html", leads=leads, source=source, statuses=sorted(LEAD_STATUSES))


@admin_bp.route("/leads/<int:lead_id>/status", methods=["POST"])
@admin_required
def leads_status(lead_id: int):
    lead = db.session.get(Lead, lead_id) or abort(404)
    status = _clean_str(request.form.get("status")).lower()
    if status not in LEAD_STATUSES:
        flash("Invalid lead status.", "danger")
        return redirect(url_for("admin.leads_list"))

    lead.status = status
    if _commit_or_rollback("Update lead"):
        flash("Lead updated.", "success")
    return redirect(url_for("admin.leads_list", source=lead.source))


# -------------------------------------------------------------------
# Reviews
# -------------------------------------------------------------------
@admin_bp.route("/reviews", methods=["GET"])
@admin_required
def reviews_list():
    reviews = Review.query.order_by(Review.approved.asc(), desc(Review.created_at)).all()
    return render_template("admin/reviews.html", reviews=reviews)


@admin_bp.route("/reviews/<int:review_id>/approve", methods=["POST"])
@admin_required
def reviews_approve(review_id: int):
    review = db.session.get(Review, review_id) or abort(404)
    review.approved = True
    if _commit_or_rollback("Approve review"):
        flash("Review approved.", "success")
    return redirect(url_for("admin.reviews_list"))


@admin_bp.route("/reviews/<int:review_id>/delete", methods=["POST"])
@admin_required
def reviews_delete(review_id: int):
    review = db.session.get(Review, review_id) or abort(404)
    db.session.delete(review)
    if _commit_or_rollback("Delete review"):
        flash("Review deleted.", "success")
    return redirect(url_for("admin.reviews_list"))


# -------------------------------------------------------------------
# Field notes
# -------------------------------------------------------------------
_FIELD_NOTE_FIELDS = {
    "projectName": "project_name",
    "clientName": "client_name",
    "address": "address",
    "serviceType": "service_type",
    "notes": "notes",
    "measurements": "measurements",
    "materialsNeeded": "materials_needed",
    "estimatedCost": "estimated_cost",
    "nextSteps": "next_steps",
}


@admin_bp.route("/field-notes", methods=["GET"])
@admin_required
def field_notes_list():
    notes = FieldNote.query.order_by(desc(FieldNote.updated_at)).all()
    return render_template("admin/field_notes.html", notes=notes)


@admin_bp.route("/api/field-notes", methods=["POST"])
@admin_required
def api_field_notes_save():
    data = _json_body()

    note_id = data.get("id")
    note = None
    if note_id:
        note = db.session.get(FieldNote, int(note_id)) if str(note_id).isdigit() else None
        if note is None:
            return jsonify({"success": False, "error": "Field note not found."}), 404

    status = _clean_str(data.get("status")).lower() or (note.status if note else "draft")
    if status not in FIELD_NOTE_STATUSES:
        return jsonify({"success": False, "error": "Invalid status."}), 400

    if note is None:
        note = FieldNote()
        db.session.add(note)

    for key, attr in _FIELD_NOTE_FIELDS.items():
        if key in data:
            setattr(note, attr, _clean_str(data.get(key)))

    photos = data.get("photos")
    if isinstance(photos, list):
        note.photos = [str(p) for p in photos if p]

    note.status = status

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Save field note failed")
        return jsonify({"success": False, "error": "Could not save field note."}), 500

    return jsonify({"success": True, "id": note.id, "note": note.to_dict()})


@admin_bp.route("/field-notes/<int:note_id>/delete", methods=["POST"])
@admin_required
def field_notes_delete(note_id: int):
    note = db.session.get(FieldNote, note_id) or abort(404)
    db.session.delete(note)
    if _commit_or_rollback("Delete field note"):
        flash("Field note deleted.", "success")
    return redirect(url_for("admin.field_notes_list"))
