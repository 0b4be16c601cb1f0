"""initial schema: admins, technicians, technician_applications

Revision ID: b7c1e2d3f4a5
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the three tables of the technician recruitment flow:
1. admins - back-office accounts
2. technicians - accounts provisioned on approval, with temporary password
   and reset columns
3. technician_applications - submitted candidacies, linked to the
   technician account once approved

technicians.status is a plain string so that unknown values can be read
and refused at login instead of failing the row load.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b7c1e2d3f4a5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create admins, technicians and technician_applications."""
    op.create_table(
        "admins",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("surname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("password_hash", sa.Text(), nullable=False),
        # Reset pair: SHA-256 digest and deadline, set and cleared together
        sa.Column("password_reset_token", sa.String(length=64), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_email"), "admins", ["email"], unique=True)

    op.create_table(
        "technicians",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("surname", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("specialization", sa.String(length=200), nullable=True),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default="pending_approval",
        ),
        # Credentials
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column(
            "is_temporary_password", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("temporary_password_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "must_change_password", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("password_reset_token", sa.String(length=64), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_technicians_email"), "technicians", ["email"], unique=True)

    application_status_enum = postgresql.ENUM(
        "pending",
        "reviewing",
        "approved",
        "rejected",
        name="technician_application_status",
        create_type=False,
    )
    application_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "technician_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("applicant_id", sa.String(length=255), nullable=False),
        # Form sections and document handles
        sa.Column("personal_info", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("professional_info", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("background", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("additional_info", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("documents", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        # Review
        sa.Column(
            "status",
            application_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("technician_id", postgresql.UUID(as_uuid=True), nullable=True),
        # Timestamps
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["technician_id"],
            ["technicians.id"],
            name="fk_technician_applications_technician_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index(
        "ix_technician_applications_status",
        "technician_applications",
        ["status"],
        unique=False,
    )
    op.create_index(
        "ix_technician_applications_submitted_at",
        "technician_applications",
        ["submitted_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop all tables and the application status enum."""
    op.drop_index("ix_technician_applications_submitted_at", table_name="technician_applications")
    op.drop_index("ix_technician_applications_status", table_name="technician_applications")
    op.drop_table("technician_applications")

    postgresql.ENUM(name="technician_application_status").drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f("ix_technicians_email"), table_name="technicians")
    op.drop_table("technicians")

    op.drop_index(op.f("ix_admins_email"), table_name="admins")
    op.drop_table("admins")
