# app/public.py
from __future__ import annotations

import os

import requests
from flask import Blueprint, current_app, jsonify, render_template, request
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from .documents.errors import DocumentValidationError
from .extensions import db, limiter
from .models import Lead, Review
from .services.documents import document_services
from .services.signatures import decode_data_url

public = Blueprint("public", __name__)

GET_STARTED_REQUIRED = ("firstName", "lastName", "email", "phone", "address")
CONTACT_REQUIRED = ("name", "email", "phone", "message")

PHOTO_MIME_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}
MAX_LEAD_PHOTOS = 10


# =========================================================
# Helpers
# =========================================================
def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def _client_ip() -> str:
    """
    Prefer X-Forwarded-For if present (when behind proxy/LB).
    """
    xff = (request.headers.get("X-Forwarded-For") or "").strip()
    if xff:
        return xff.split(",")[0].strip()
    return (request.remote_addr or "").strip()


def verify_recaptcha(response_token: str) -> bool:
    """
    Spam gate for the public forms.
    Set RECAPTCHA_SECRET_KEY in the environment; never hardcode it.
    """
    secret = current_app.config.get("RECAPTCHA_SECRET_KEY") or os.getenv("RECAPTCHA_SECRET_KEY")

    # Fail closed if not configured
    if not secret or not response_token:
        current_app.logger.warning("reCAPTCHA secret/token missing; rejecting request.")
        return False

    try:
        r = requests.post(
            "https://www.google.com/recaptcha/api/siteverify",
            data={"secret": secret, "response": response_token, "remoteip": _client_ip()},
            timeout=5,
        )
        return bool(r.json().get("success", False))
    except (requests.RequestException, ValueError):
        current_app.logger.exception("reCAPTCHA verification failed.")
        return False


def _captcha_ok(data: dict) -> bool:
    if not current_app.config.get("RECAPTCHA_REQUIRED"):
        return True
    return verify_recaptcha(_clean(data.get("recaptchaToken") or data.get("g-recaptcha-response")))


def _json_body() -> dict | None:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _photo_data_url(item) -> str:
    if isinstance(item, dict):
        return _clean(item.get("data") or item.get("dataUrl"))
    return _clean(item)


def _store_lead_photos(lead: Lead, photos) -> list[str]:
    """Decode + store base64 photos. A bad image is logged and skipped."""
    if not isinstance(photos, list):
        return []

    store = document_services().blob_store
    keys: list[str] = []
    for item in photos[:MAX_LEAD_PHOTOS]:
        try:
            mime, data = decode_data_url(_photo_data_url(item), allowed=PHOTO_MIME_TYPES)
        except DocumentValidationError as exc:
            current_app.logger.warning("Skipping lead %s photo: %s", lead.id, exc)
            continue

        key = f"leads/{lead.id}/project-photo-{len(keys) + 1}.{PHOTO_MIME_TYPES[mime]}"
        try:
            store.upload(key, data)
        except OSError:
            current_app.logger.warning("Could not store lead %s photo %s", lead.id, key, exc_info=True)
            continue
        keys.append(key)
    return keys


def _discard_lead_photos(keys: list[str]) -> None:
    store = document_services().blob_store
    for key in keys:
        try:
            store.delete(key)
        except OSError:
            current_app.logger.warning("Could not remove orphaned photo %s", key, exc_info=True)


# =========================================================
# Landing page
# =========================================================
@public.route("/")
def home():
    reviews = (
        Review.query.filter_by(approved=True)
        .order_by(desc(Review.created_at))
        .limit(6)
        .all()
    )
    return render_template("public/home.html", reviews=reviews)


# =========================================================
# Get started (quote wizard)
# =========================================================
@public.route("/api/get-started", methods=["POST"])
@limiter.limit("5 per minute")
def get_started():
    data = _json_body()
    if data is None:
        return _error("Invalid request.", 400)
    if not _captcha_ok(data):
        return _error("reCAPTCHA verification failed.", 400)

    missing = [f for f in GET_STARTED_REQUIRED if not _clean(data.get(f))]
    services = data.get("services")
    services = [_clean(s) for s in services if _clean(s)] if isinstance(services, list) else []
    if not services:
        missing.append("services")
    if missing:
        return _error(f"Missing required fields: {', '.join(missing)}", 400)

    first = _clean(data.get("firstName"))
    last = _clean(data.get("lastName"))
    lead = Lead(
        source="get-started",
        first_name=first,
        last_name=last,
        name=f"{first} {last}",
        email=_normalize_email(data.get("email")),
        phone=_clean(data.get("phone")),
        address=_clean(data.get("address")),
        city=_clean(data.get("city")) or None,
        zip_code=_clean(data.get("zip")) or None,
        services=services,
        project_details=_clean(data.get("projectDetails")) or None,
        timeline=_clean(data.get("timeline")) or None,
        budget=_clean(data.get("budget")) or None,
        hear_about=_clean(data.get("hearAbout")) or None,
        language=_clean(data.get("language")) or None,
    )

    stored: list[str] = []
    try:
        db.session.add(lead)
        db.session.flush()
        stored = _store_lead_photos(lead, data.get("photos"))
        lead.photo_keys = stored
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Saving get-started lead failed")
        _discard_lead_photos(stored)
        return _error("We could not save your request. Please call us directly.", 500)

    current_app.logger.info(
        "New get-started lead %s: %s (%d photos)", lead.id, ", ".join(services), len(lead.photo_keys)
    )
    return jsonify({"success": True, "message": "Thank you! We will contact you within 24 hours."})


# =========================================================
# Contact form
# =========================================================
@public.route("/api/contact", methods=["POST"])
@limiter.limit("5 per minute")
def contact():
    data = _json_body()
    if data is None:
        return _error("Invalid request.", 400)
    if not _captcha_ok(data):
        return _error("reCAPTCHA verification failed.", 400)

    missing = [f for f in CONTACT_REQUIRED if not _clean(data.get(f))]
    if missing:
        return _error(f"Missing required fields: {', '.join(missing)}", 400)

    service = _clean(data.get("service"))
    lead = Lead(
        source="contact",
        name=_clean(data.get("name")),
        email=_normalize_email(data.get("email")),
        phone=_clean(data.get("phone")),
        services=[service] if service else [],
        message=_clean(data.get("message")),
        language=_clean(data.get("language")) or None,
    )
    db.session.add(lead)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Saving contact lead failed")
        return _error("We could not send your message. Please call us directly.", 500)

    current_app.logger.info("New contact lead %s from %s", lead.id, lead.email)
    return jsonify({"success": True, "message": "Message received. We will get back to you shortly."})


# =========================================================
# Reviews
# =========================================================
@public.route("/api/reviews", methods=["GET"])
def reviews_list():
    reviews = Review.query.filter_by(approved=True).order_by(desc(Review.created_at)).all()
    return jsonify({"success": True, "reviews": [r.to_dict() for r in reviews]})


@public.route("/api/reviews", methods=["POST"])
@limiter.limit("3 per minute")
def reviews_submit():
    data = _json_body()
    if data is None:
        return _error("Invalid request.", 400)
    if not _captcha_ok(data):
        return _error("reCAPTCHA verification failed.", 400)

    name = _clean(data.get("name"))
    text = _clean(data.get("text"))
    try:
        rating = int(data.get("rating"))
    except (TypeError, ValueError):
        rating = 0

    if not name or not text:
        return _error("Name and review text are required.", 400)
    if not 1 <= rating <= 5:
        return _error("Rating must be between 1 and 5.", 400)

    review = Review(
        name=name,
        email=_normalize_email(data.get("email")) or None,
        location=_clean(data.get("location")) or None,
        service=_clean(data.get("service")) or None,
        rating=rating,
        text=text,
        recommend=data.get("recommend") is not False,
        project_year=_clean(data.get("projectYear")) or None,
        approved=False,
    )
    db.session.add(review)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Saving review failed")
        return _error("We could not save your review. Please try again.", 500)

    current_app.logger.info("New review %s (%d stars) awaiting approval", review.id, rating)
    return jsonify({"success": True, "message": "Thank you! Your review will appear once approved."}), 201
