"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates all tables for LAN Linkup:
users, parties, party_attendees, friendships.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

party_visibility = sa.Enum("public", "friends", "private", name="partyvisibility")
friendship_status = sa.Enum("pending", "accepted", "declined", name="friendshipstatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("bio", sa.Text, nullable=False, server_default=""),
        sa.Column("location", sa.String(100), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])

    # --- parties ---
    op.create_table(
        "parties",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("game", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("location", sa.String(100), nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("visibility", party_visibility, nullable=False, server_default="public"),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("host_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 2", name="ck_parties_capacity_min"),
    )
    op.create_index("ix_parties_id", "parties", ["id"])
    op.create_index("ix_parties_host_id", "parties", ["host_id"])

    # --- party_attendees ---
    op.create_table(
        "party_attendees",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("party_id", sa.Integer, sa.ForeignKey("parties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("party_id", "user_id", name="uq_party_attendees_party_user"),
    )
    op.create_index("ix_party_attendees_id", "party_attendees", ["id"])
    op.create_index("ix_party_attendees_party_id", "party_attendees", ["party_id"])
    op.create_index("ix_party_attendees_user_id", "party_attendees", ["user_id"])

    # --- friendships ---
    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("requester_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("addressee_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("pair_key", sa.String(41), nullable=False),
        sa.Column("status", friendship_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_friendships_id", "friendships", ["id"])
    op.create_index("ix_friendships_requester_id", "friendships", ["requester_id"])
    op.create_index("ix_friendships_addressee_id", "friendships", ["addressee_id"])
    op.create_index(
        "uq_friendships_active_pair",
        "friendships",
        ["pair_key"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'accepted')"),
        sqlite_where=sa.text("status IN ('pending', 'accepted')"),
    )


def downgrade() -> None:
    op.drop_table("friendships")
    op.drop_table("party_attendees")
    op.drop_table("parties")
    op.drop_table("users")
    friendship_status.drop(op.get_bind(), checkfirst=True)
    party_visibility.drop(op.get_bind(), checkfirst=True)
