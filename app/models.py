# app/models.py
from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from flask_login import UserMixin
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.mutable import MutableDict, MutableList

from .extensions import db


# Use **naive UTC** everywhere: DB columns are "timestamp without time zone".
def utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


# =========================================================
# User model (single admin back office)
# =========================================================
class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(30), nullable=False, default="admin")

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive)

    __table_args__ = (
        db.UniqueConstraint("email", name="user_email_key"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"


# =========================================================
# Business documents (invoice / change-order / contract)
# =========================================================
class AdminDocument(db.Model):
    """
    One row per document. The full record lives in `payload` (flat camelCase,
    see DocumentRecord.to_payload); type/number/status are copied out so the
    list pages can filter without reading JSON.
    """

    __tablename__ = "admin_document"

    id = db.Column(db.String(36), primary_key=True)

    doc_type = db.Column(db.String(30), nullable=False, index=True)
    number = db.Column(db.String(80), nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)

    # MutableDict so in-place JSON edits are tracked and persisted.
    payload = db.Column(MutableDict.as_mutable(JSONType), nullable=False, default=dict)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive, onupdate=utcnow_naive)

    __table_args__ = (
        db.Index("ix_admin_document_type_status", "doc_type", "status"),
    )

    def __repr__(self) -> str:
        return f"<AdminDocument {self.id} {self.doc_type} {self.number} {self.status}>"


# =========================================================
# Leads (get-started wizard + contact form)
# =========================================================
LEAD_SOURCES = {"get-started", "contact"}
LEAD_STATUSES = {"new", "contacted", "quoted", "won", "lost"}


class Lead(db.Model):
    __tablename__ = "lead"

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.String(20), nullable=False, index=True)

    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)
    name = db.Column(db.String(160), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40), nullable=False)

    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(80), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)

    services = db.Column(MutableList.as_mutable(JSONType), nullable=False, default=list)
    project_details = db.Column(db.Text, nullable=True)
    timeline = db.Column(db.String(80), nullable=True)
    budget = db.Column(db.String(80), nullable=True)
    hear_about = db.Column(db.String(120), nullable=True)
    message = db.Column(db.Text, nullable=True)
    language = db.Column(db.String(10), nullable=True)

    photo_keys = db.Column(MutableList.as_mutable(JSONType), nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default="new", index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive)

    def __repr__(self) -> str:
        return f"<Lead {self.id} {self.source} {self.email}>"


# =========================================================
# Reviews (public submission, admin approval)
# =========================================================
class Review(db.Model):
    __tablename__ = "review"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    location = db.Column(db.String(120), nullable=True)
    service = db.Column(db.String(120), nullable=True)

    rating = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False)
    recommend = db.Column(db.Boolean, nullable=False, default=True)
    project_year = db.Column(db.String(10), nullable=True)

    approved = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive)

    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "service": self.service,
            "rating": self.rating,
            "text": self.text,
            "recommend": self.recommend,
            "projectYear": self.project_year,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


# =========================================================
# Field notes (site visit notes)
# =========================================================
FIELD_NOTE_STATUSES = {"draft", "complete"}


class FieldNote(db.Model):
    __tablename__ = "field_note"

    id = db.Column(db.Integer, primary_key=True)
    project_name = db.Column(db.String(200), nullable=False, default="")
    client_name = db.Column(db.String(160), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    service_type = db.Column(db.String(120), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    measurements = db.Column(db.Text, nullable=True)
    materials_needed = db.Column(db.Text, nullable=True)
    estimated_cost = db.Column(db.String(40), nullable=True)
    next_steps = db.Column(db.Text, nullable=True)
    photos = db.Column(MutableList.as_mutable(JSONType), nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default="draft")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow_naive, onupdate=utcnow_naive)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "projectName": self.project_name,
            "clientName": self.client_name,
            "address": self.address,
            "serviceType": self.service_type,
            "notes": self.notes,
            "measurements": self.measurements,
            "materialsNeeded": self.materials_needed,
            "estimatedCost": self.estimated_cost,
            "nextSteps": self.next_steps,
            "photos": list(self.photos or []),
            "status": self.status,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
