"""initial back office schema

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f9a1c2d7b10"
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="user_email_key"),
    )

    op.create_table(
        "admin_document",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("doc_type", sa.String(length=30), nullable=False),
        sa.Column("number", sa.String(length=80), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payload", _json(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_document_doc_type", "admin_document", ["doc_type"])
    op.create_index("ix_admin_document_status", "admin_document", ["status"])
    op.create_index("ix_admin_document_type_status", "admin_document", ["doc_type", "status"])

    op.create_table(
        "lead",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=80), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("services", _json(), nullable=False),
        sa.Column("project_details", sa.Text(), nullable=True),
        sa.Column("timeline", sa.String(length=80), nullable=True),
        sa.Column("budget", sa.String(length=80), nullable=True),
        sa.Column("hear_about", sa.String(length=120), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("language", sa.String(length=10), nullable=True),
        sa.Column("photo_keys", _json(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lead_source", "lead", ["source"])
    op.create_index("ix_lead_status", "lead", ["status"])

    op.create_table(
        "review",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=True),
        sa.Column("location", sa.String(length=120), nullable=True),
        sa.Column("service", sa.String(length=120), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("recommend", sa.Boolean(), nullable=False),
        sa.Column("project_year", sa.String(length=10), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_review_approved", "review", ["approved"])

    op.create_table(
        "field_note",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_name", sa.String(length=200), nullable=False),
        sa.Column("client_name", sa.String(length=160), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("service_type", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("measurements", sa.Text(), nullable=True),
        sa.Column("materials_needed", sa.Text(), nullable=True),
        sa.Column("estimated_cost", sa.String(length=40), nullable=True),
        sa.Column("next_steps", sa.Text(), nullable=True),
        sa.Column("photos", _json(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("field_note")
    op.drop_index("ix_review_approved", table_name="review")
    op.drop_table("review")
    op.drop_index("ix_lead_status", table_name="lead")
    op.drop_index("ix_lead_source", table_name="lead")
    op.drop_table("lead")
    op.drop_index("ix_admin_document_type_status", table_name="admin_document")
    op.drop_index("ix_admin_document_status", table_name="admin_document")
    op.drop_index("ix_admin_document_doc_type", table_name="admin_document")
    op.drop_table("admin_document")
    op.drop_table("user")
