"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-09-28

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=128), unique=True),
        sa.Column("full_name", sa.String(length=256), nullable=True),
        sa.Column("age_group", sa.String(length=32), nullable=True),
        sa.Column("gender", sa.String(length=32), nullable=True),
        sa.Column("book_interests", sa.JSON(), nullable=True),
        sa.Column("movie_interests", sa.JSON(), nullable=True),
        sa.Column("podcast_interests", sa.JSON(), nullable=True),
        sa.Column("tv_show_interests", sa.JSON(), nullable=True),
        sa.Column("brand_interests", sa.JSON(), nullable=True),
        sa.Column("favorite_books", sa.JSON(), nullable=True),
        sa.Column("favorite_movies", sa.JSON(), nullable=True),
        sa.Column("favorite_podcasts", sa.JSON(), nullable=True),
        sa.Column("favorite_tv_shows", sa.JSON(), nullable=True),
        sa.Column("favorite_brands", sa.JSON(), nullable=True),
        sa.Column("content_rating_preference", sa.String(length=32), nullable=True),
        sa.Column("min_popularity_threshold", sa.Float(), nullable=True),
        sa.Column("recommendation_preferences", sa.JSON(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")
        ),
    )
    op.create_index("ix_users_user_id", "users", ["user_id"])

    op.create_table(
        "recommendation_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=256), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_title", sa.String(length=512), nullable=True),
        sa.Column(
            "recommendation_type",
            sa.String(length=32),
            server_default="user_based",
        ),
        sa.Column("relevance_score", sa.Float(), server_default="0"),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()")
        ),
    )
    op.create_index(
        "ix_recommendation_history_user_id", "recommendation_history", ["user_id"]
    )
    op.create_index(
        "ix_recommendation_history_entity_id", "recommendation_history", ["entity_id"]
    )
    op.create_index(
        "ix_recommendation_history_entity_type",
        "recommendation_history",
        ["entity_type"],
    )


def downgrade():
    op.drop_table("recommendation_history")
    op.drop_table("users")
