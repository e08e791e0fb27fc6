"""create_client_tables

Revision ID: 5b2e91c4a7d0
Revises:
Create Date: 2026-10-18 09:12:44.301257

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2e91c4a7d0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DOCUMENT_TYPES = (
    "IDENTITY_PROOF",
    "ADDRESS_PROOF",
    "INCOME_PROOF",
    "MEDICAL_REPORT",
    "POLICY_DOCUMENT",
    "OTHER",
)
AUDIT_ACTIONS = ("CREATE", "UPDATE", "DELETE", "VIEW")


def upgrade() -> None:
    """Create clients, detail, document and audit tables."""
    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("first_name", sa.String(length=100)),
        sa.Column("middle_name", sa.String(length=100)),
        sa.Column("last_name", sa.String(length=100)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=20)),
        sa.Column("address", sa.String(length=500)),
        sa.Column("city", sa.String(length=100)),
        sa.Column("state", sa.String(length=100)),
        sa.Column("profile_image", sa.String(length=500)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "personal_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("birth_place", sa.String(length=100)),
        sa.Column("age", sa.Integer()),
        sa.Column("gender", sa.String(length=20)),
        sa.Column("height", sa.Numeric(5, 2)),
        sa.Column("weight", sa.Numeric(6, 2)),
        sa.Column("education", sa.String(length=100)),
        sa.Column("marital_status", sa.String(length=20)),
        sa.Column("business_job", sa.String(length=100)),
        sa.Column("name_of_business", sa.String(length=100)),
        sa.Column("type_of_duty", sa.String(length=100)),
        sa.Column("annual_income", sa.Numeric(14, 2)),
        sa.Column("pan_number", sa.String(length=10)),
        sa.Column("gst_number", sa.String(length=15)),
    )

    op.create_table(
        "family_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("whatsapp_number", sa.String(length=20), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("relationship", sa.String(length=20)),
        sa.Column("age", sa.Integer()),
        sa.Column("gender", sa.String(length=20)),
        sa.Column("height", sa.Numeric(5, 2)),
        sa.Column("weight", sa.Numeric(6, 2)),
        sa.Column("pan_number", sa.String(length=10)),
    )

    op.create_table(
        "corporate_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("company_name", sa.String(length=200), nullable=False),
        sa.Column("mobile", sa.String(length=20)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(length=100)),
        sa.Column("state", sa.String(length=100)),
        sa.Column("annual_income", sa.Numeric(14, 2)),
        sa.Column("pan_number", sa.String(length=10)),
        sa.Column("gst_number", sa.String(length=15)),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "document_type",
            sa.Enum(*DOCUMENT_TYPES, name="documenttype"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("storage_ref", sa.String(length=1000), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_documents_client_id", "documents", ["client_id"])

    # No foreign key: audit rows may outlive the client.
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column(
            "action",
            sa.Enum(*AUDIT_ACTIONS, name="auditaction"),
            nullable=False,
        ),
        sa.Column("field_name", sa.String(length=100)),
        sa.Column("old_value", sa.Text()),
        sa.Column("new_value", sa.Text()),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_audit_logs_client_changed",
        "audit_logs",
        ["client_id", "changed_at"],
    )


def downgrade() -> None:
    """Drop client tables."""
    op.drop_index("ix_audit_logs_client_changed", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_documents_client_id", table_name="documents")
    op.drop_table("documents")
    op.drop_table("corporate_details")
    op.drop_table("family_details")
    op.drop_table("personal_details")
    op.drop_table("clients")
    sa.Enum(name="auditaction").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="documenttype").drop(op.get_bind(), checkfirst=True)
