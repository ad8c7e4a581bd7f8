"""create_directory_and_behavior_tables

Revision ID: 6f1c2a9d4e7b
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "6f1c2a9d4e7b"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at(comment: str = "생성 일시") -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
        comment=comment,
    )


def upgrade() -> None:
    """업체 디렉터리 + 행동 데이터 테이블 생성"""
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=100), nullable=True),
        sa.Column(
            "business_count",
            sa.Integer(),
            server_default="0",
            nullable=False,
            comment="소속 업체 수",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rating", sa.Float(), server_default="0", nullable=False),
        sa.Column(
            "review_count", sa.Integer(), server_default="0", nullable=False
        ),
        sa.Column("primary_image", sa.String(length=2048), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("website", sa.String(length=2048), nullable=True),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default="published",
            nullable=False,
            comment="draft, published, suspended",
        ),
        sa.Column(
            "featured", sa.Boolean(), server_default="false", nullable=False
        ),
        _created_at("등록 일시"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_businesses_status_rating", "businesses", ["status", "rating"]
    )
    op.create_index("idx_businesses_created_at", "businesses", ["created_at"])

    op.create_table(
        "business_categories",
        sa.Column("business_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["business_id"], ["businesses.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["category_id"], ["categories.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("business_id", "category_id"),
    )

    op.create_table(
        "user_interactions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(length=100), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("interaction_type", sa.String(length=50), nullable=False),
        sa.Column(
            "interaction_data",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_interactions_session_id", "user_interactions", ["session_id"]
    )
    op.create_index(
        "ix_user_interactions_user_id", "user_interactions", ["user_id"]
    )

    op.create_table(
        "user_behavior_patterns",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(length=100), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column(
            "patterns",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "interaction_count",
            sa.Integer(),
            server_default="0",
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id"),
    )

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("preference_type", sa.String(length=50), nullable=False),
        sa.Column("preference_value", sa.String(length=255), nullable=False),
        sa.Column("weight", sa.Float(), server_default="1", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_preferences_user_id", "user_preferences", ["user_id"]
    )


def downgrade() -> None:
    """다운그레이드: 생성 역순으로 삭제"""
    op.drop_index("ix_user_preferences_user_id", table_name="user_preferences")
    op.drop_table("user_preferences")
    op.drop_table("user_behavior_patterns")
    op.drop_index(
        "ix_user_interactions_user_id", table_name="user_interactions"
    )
    op.drop_index(
        "ix_user_interactions_session_id", table_name="user_interactions"
    )
    op.drop_table("user_interactions")
    op.drop_table("business_categories")
    op.drop_index("idx_businesses_created_at", table_name="businesses")
    op.drop_index("idx_businesses_status_rating", table_name="businesses")
    op.drop_table("businesses")
    op.drop_table("categories")
