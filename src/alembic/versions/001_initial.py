"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Organizations
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("slug", sqlmodel.sql.sqltypes.AutoString(length=56), nullable=False),
        sa.Column("setup_completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_organizations_slug", "organizations", ["slug"], unique=True, schema="public"
    )

    # 2. Accounts (id shared with the identity provider for current provenance)
    op.create_table(
        "accounts",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("first_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("last_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("display_name", sqlmodel.sql.sqltypes.AutoString(length=201), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("phone", sqlmodel.sql.sqltypes.AutoString(length=40), nullable=True),
        sa.Column(
            "role",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="team_member",
        ),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "provenance",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="legacy",
        ),
        sa.Column("permissions", postgresql.JSONB(), nullable=True),
        sa.Column("invited_by", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("invited_at", sa.DateTime(), nullable=True),
        sa.Column(
            "temporary_credential", sqlmodel.sql.sqltypes.AutoString(length=128), nullable=True
        ),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["public.organizations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "email", name="uq_accounts_organization_email"),
        schema="public",
    )
    op.create_index(
        "ix_public_accounts_organization_id", "accounts", ["organization_id"], schema="public"
    )
    op.create_index("ix_public_accounts_email", "accounts", ["email"], schema="public")
    # Admin floor lookups lock these rows
    op.create_index(
        "ix_accounts_org_role_status",
        "accounts",
        ["organization_id", "role", "status"],
        schema="public",
    )

    # 3. Client assignments
    op.create_table(
        "client_assignments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["public.accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_client_assignments_account_id",
        "client_assignments",
        ["account_id"],
        schema="public",
    )
    op.create_index(
        "ix_public_client_assignments_client_id",
        "client_assignments",
        ["client_id"],
        schema="public",
    )

    # 4. Deliverables
    op.create_table(
        "deliverables",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("title", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "assigned_user_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["public.organizations.id"]),
        sa.ForeignKeyConstraint(
            ["assigned_user_id"], ["public.accounts.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_deliverables_organization_id",
        "deliverables",
        ["organization_id"],
        schema="public",
    )
    op.create_index(
        "ix_public_deliverables_client_id", "deliverables", ["client_id"], schema="public"
    )
    op.create_index(
        "ix_public_deliverables_assigned_user_id",
        "deliverables",
        ["assigned_user_id"],
        schema="public",
    )

    # 5. Deliverable notes
    op.create_table(
        "deliverable_notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("deliverable_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("content", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=False),
        sa.Column(
            "note_type",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="comment",
        ),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["deliverable_id"], ["public.deliverables.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["author_id"], ["public.accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_deliverable_notes_deliverable_id",
        "deliverable_notes",
        ["deliverable_id"],
        schema="public",
    )

    # 6. Activity logs (no foreign keys: entries outlive the accounts they mention)
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("action", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("resource_type", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("resource_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("resource_name", sqlmodel.sql.sqltypes.AutoString(length=300), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("ip_address", sqlmodel.sql.sqltypes.AutoString(length=45), nullable=True),
        sa.Column("user_agent", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("request_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        schema="public",
    )
    op.create_index(
        "ix_public_activity_logs_organization_id",
        "activity_logs",
        ["organization_id"],
        schema="public",
    )
    op.create_index(
        "ix_activity_logs_org_created",
        "activity_logs",
        ["organization_id", "created_at"],
        schema="public",
    )
    op.create_index(
        "ix_activity_logs_resource",
        "activity_logs",
        ["resource_type", "resource_id"],
        schema="public",
    )


def downgrade() -> None:
    op.drop_table("activity_logs", schema="public")
    op.drop_table("deliverable_notes", schema="public")
    op.drop_table("deliverables", schema="public")
    op.drop_table("client_assignments", schema="public")
    op.drop_table("accounts", schema="public")
    op.drop_table("organizations", schema="public")
