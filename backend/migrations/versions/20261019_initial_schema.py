"""Initial schema: users, auth tokens, product RFIDs, boxes, shipments, system logs

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("uuid", sa.String(length=36), primary_key=True),
        sa.Column("account", sa.String(length=64), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=3), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("user_type", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_account", "users", ["account"], unique=True)
    op.create_index("ix_users_code", "users", ["code"], unique=True)

    op.create_table(
        "auth_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_uuid", sa.String(length=36), sa.ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False),
        sa.Column("token_type", sa.String(length=16), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(length=255), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_auth_tokens_user_uuid", "auth_tokens", ["user_uuid"])
    op.create_index("ix_auth_tokens_token_hash", "auth_tokens", ["token_hash"], unique=True)
    op.create_index("ix_auth_tokens_expires_at", "auth_tokens", ["expires_at"])
    op.create_index("ix_auth_tokens_is_revoked", "auth_tokens", ["is_revoked"])
    op.create_index("ix_auth_tokens_user_active", "auth_tokens", ["user_uuid", "is_revoked"])

    op.create_table(
        "shipments",
        sa.Column("shipment_no", sa.String(length=16), primary_key=True),
        sa.Column("user_code", sa.String(length=3), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_shipments_user_code", "shipments", ["user_code"])
    op.create_index("ix_shipments_status", "shipments", ["status"])

    op.create_table(
        "boxes",
        sa.Column("box_no", sa.String(length=13), primary_key=True),
        sa.Column("code", sa.String(length=3), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("shipment_no", sa.String(length=16), sa.ForeignKey("shipments.shipment_no"), nullable=True),
        sa.Column("shipment_position", sa.Integer(), nullable=True),
    )
    op.create_index("ix_boxes_code", "boxes", ["code"])
    op.create_index("ix_boxes_shipment_no", "boxes", ["shipment_no"])

    op.create_table(
        "product_rfids",
        sa.Column("rfid", sa.String(length=17), primary_key=True),
        sa.Column("sku", sa.String(length=13), nullable=False),
        sa.Column("product_no", sa.String(length=8), nullable=False),
        sa.Column("serial_no", sa.String(length=4), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("box_no", sa.String(length=13), sa.ForeignKey("boxes.box_no"), nullable=True),
        sa.Column("box_position", sa.Integer(), nullable=True),
        sa.UniqueConstraint("sku", "serial_no", name="uq_product_rfids_sku_serial"),
    )
    op.create_index("ix_product_rfids_sku", "product_rfids", ["sku"])
    op.create_index("ix_product_rfids_product_no", "product_rfids", ["product_no"])
    op.create_index("ix_product_rfids_box_no", "product_rfids", ["box_no"])

    op.create_table(
        "system_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_uuid", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=True),
        sa.Column("target_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_system_logs_user_uuid", "system_logs", ["user_uuid"])
    op.create_index("ix_system_logs_action", "system_logs", ["action"])
    op.create_index("ix_system_logs_created_at", "system_logs", ["created_at"])
    op.create_index("ix_system_logs_user_action", "system_logs", ["user_uuid", "action"])
    op.create_index("ix_system_logs_target", "system_logs", ["target_type", "target_id"])


def downgrade():
    op.drop_table("system_logs")
    op.drop_table("product_rfids")
    op.drop_table("boxes")
    op.drop_table("shipments")
    op.drop_table("auth_tokens")
    op.drop_table("users")
