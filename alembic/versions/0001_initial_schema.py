"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates all tables for the FarmConnect contact request service:
users, products, contact_requests, contact_request_activity, notifications.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- products ---
    op.create_table(
        "products",
        sa.Column("product_id", sa.String(36), primary_key=True),
        sa.Column("farmer_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("minimum_order_quantity", sa.Float, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_products_farmer_id", "products", ["farmer_id"])

    # --- contact_requests ---
    op.create_table(
        "contact_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("product_id", sa.String(36), sa.ForeignKey("products.product_id"), nullable=False),
        sa.Column("farmer_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("requester_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("requester_role", sa.String(20), nullable=False),
        sa.Column("requested_quantity", sa.Float, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("confirmation_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_quantity", sa.Float, nullable=True),
        sa.Column("final_price", sa.Float, nullable=True),
        sa.Column("user_did_buy", sa.Boolean, nullable=True),
        sa.Column("user_feedback", sa.Text, nullable=True),
        sa.Column("user_confirmed", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("user_confirmation_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("farmer_final_quantity", sa.Float, nullable=True),
        sa.Column("farmer_final_price", sa.Float, nullable=True),
        sa.Column("farmer_did_sell", sa.Boolean, nullable=True),
        sa.Column("farmer_feedback", sa.Text, nullable=True),
        sa.Column("farmer_confirmed", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("farmer_confirmation_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_note", sa.Text, nullable=True),
    )
    op.create_index("ix_contact_requests_status_farmer", "contact_requests", ["status", "farmer_id"])
    op.create_index("ix_contact_requests_requester_status", "contact_requests", ["requester_id", "status"])
    op.create_index("ix_contact_requests_requested_at", "contact_requests", ["requested_at"])

    # --- contact_request_activity ---
    op.create_table(
        "contact_request_activity",
        sa.Column("activity_id", sa.String(36), primary_key=True),
        sa.Column("request_id", sa.String(36), sa.ForeignKey("contact_requests.request_id"), nullable=False),
        sa.Column("actor_user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=True),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("meta", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_contact_request_activity_request_id", "contact_request_activity", ["request_id"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("request_id", sa.String(36), sa.ForeignKey("contact_requests.request_id"), nullable=True),
        sa.Column("event", sa.String(50), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("contact_request_activity")
    op.drop_table("contact_requests")
    op.drop_table("products")
    op.drop_table("users")
