"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

CATALOG_TABLES = (
    # table, code length, extra columns
    ("banks", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False), sa.Column("swift_bic", sa.String(length=11), nullable=True)]),
    ("concessionaire_types", 30, lambda: [sa.Column("name", sa.String(length=120), nullable=False)]),
    ("document_types", 30, lambda: [sa.Column("name", sa.String(length=120), nullable=False), sa.Column("mask", sa.String(length=50), nullable=True)]),
    ("expense_types", 30, lambda: [sa.Column("name", sa.String(length=120), nullable=False), sa.Column("description", sa.Text(), nullable=True)]),
    ("payment_statuses", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False)]),
    ("payment_types", 30, lambda: [sa.Column("name", sa.String(length=120), nullable=False)]),
    ("phone_area_codes", 4, lambda: []),
    ("trade_categories", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False), sa.Column("description", sa.Text(), nullable=True)]),
    ("markets", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False), sa.Column("address", sa.String(length=255), nullable=True)]),
    ("local_locations", 10, lambda: [sa.Column("name", sa.String(length=100), nullable=False)]),
    ("local_statuses", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False), sa.Column("description", sa.Text(), nullable=True)]),
    ("local_types", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False), sa.Column("description", sa.Text(), nullable=True)]),
    ("contract_modalities", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False)]),
    ("contract_statuses", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False)]),
    ("contract_types", 30, lambda: [sa.Column("name", sa.String(length=160), nullable=False)]),
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("name", sa.String(length=150), nullable=False, unique=True),
        sa.Column("guard_name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
    )

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("name", sa.String(length=150), nullable=False, unique=True),
        sa.Column("guard_name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_roles_uuid", "roles", ["uuid"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_users_uuid", "users", ["uuid"], unique=True)
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permission_id", sa.Integer(), sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "audits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        *_timestamps(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("event", sa.String(length=50), nullable=False),
        sa.Column("auditable_type", sa.String(length=120), nullable=False),
        sa.Column("auditable_id", sa.Integer(), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=1023), nullable=True),
        sa.Column("tags", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_audits_user_id", "audits", ["user_id"])
    op.create_index("ix_audits_event", "audits", ["event"])

    for table, code_length, extra in CATALOG_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("uuid", sa.Uuid(), nullable=False),
            *_timestamps(),
            sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("code", sa.String(length=code_length), nullable=False, unique=True),
            *extra(),
        )
        op.create_index(f"ix_{table}_uuid", table, ["uuid"], unique=True)
        op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])

    op.create_table(
        "concessionaires",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("concessionaire_type_id", sa.Integer(), sa.ForeignKey("concessionaire_types.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("full_name", sa.String(length=160), nullable=False),
        sa.Column("document_type_id", sa.Integer(), sa.ForeignKey("document_types.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("document_number", sa.String(length=20), nullable=False),
        sa.Column("fiscal_address", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=160), nullable=False, unique=True),
        sa.Column("phone_area_code_id", sa.Integer(), sa.ForeignKey("phone_area_codes.id", ondelete="RESTRICT"), nullable=True),
        sa.Column("phone_number", sa.String(length=7), nullable=True),
        sa.Column("photo_path", sa.String(length=255), nullable=True),
        sa.Column("id_document_path", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_concessionaires_uuid", "concessionaires", ["uuid"], unique=True)
    op.create_index("ix_concessionaires_deleted_at", "concessionaires", ["deleted_at"])
    op.create_index("ix_concessionaires_concessionaire_type_id", "concessionaires", ["concessionaire_type_id"])
    op.create_index("ix_concessionaires_document_type_id", "concessionaires", ["document_type_id"])
    op.create_index("ix_concessionaires_phone_area_code_id", "concessionaires", ["phone_area_code_id"])

    op.create_table(
        "locals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("code", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("market_id", sa.Integer(), sa.ForeignKey("markets.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("local_type_id", sa.Integer(), sa.ForeignKey("local_types.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("local_status_id", sa.Integer(), sa.ForeignKey("local_statuses.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("local_location_id", sa.Integer(), sa.ForeignKey("local_locations.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("area_m2", sa.Numeric(precision=8, scale=2), nullable=False),
    )
    op.create_index("ix_locals_uuid", "locals", ["uuid"], unique=True)
    op.create_index("ix_locals_deleted_at", "locals", ["deleted_at"])
    for column in ("market_id", "local_type_id", "local_status_id", "local_location_id"):
        op.create_index(f"ix_locals_{column}", "locals", [column])
    op.create_index(
        "uq_locals_code_live",
        "locals",
        ["code"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )


def downgrade():
    op.drop_table("locals")
    op.drop_table("concessionaires")
    for table, _, _ in reversed(CATALOG_TABLES):
        op.drop_table(table)
    op.drop_table("audits")
    op.drop_table("user_roles")
    op.drop_table("role_permissions")
    op.drop_table("users")
    op.drop_table("roles")
    op.drop_table("permissions")
