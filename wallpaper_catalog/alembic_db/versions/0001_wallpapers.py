"""
Initial wallpaper catalog schema: wallpapers, owners, tags and their reference sets

Revision ID: 0001_wallpapers
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_wallpapers"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wallpapers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("image_path", sa.String(length=512), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("posted_at", sa.DateTime(timezone=False), nullable=False),
        sa.CheckConstraint("width > 0", name="ck_wallpapers_width_pos"),
        sa.CheckConstraint("height > 0", name="ck_wallpapers_height_pos"),
        sa.CheckConstraint("download_count >= 0", name="ck_wallpapers_download_count_nonneg"),
    )
    op.create_index("ix_wallpapers_owner_id", "wallpapers", ["owner_id"])
    op.create_index("ix_wallpapers_posted_at", "wallpapers", ["posted_at"])
    op.create_index("ix_wallpapers_download_count", "wallpapers", ["download_count"])

    op.create_table(
        "wallpaper_tags",
        sa.Column("wallpaper_id", sa.String(length=36), primary_key=True),
        sa.Column("tag_id", sa.String(length=36), primary_key=True),
    )
    op.create_index("ix_wallpaper_tags_tag_id", "wallpaper_tags", ["tag_id"])

    op.create_table(
        "owners",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("external_id", sa.String(length=128), nullable=False, unique=True),
        sa.Column("username", sa.String(length=128), nullable=False),
        sa.Column("discriminator", sa.String(length=16), nullable=False),
        sa.Column("permission_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
    )

    op.create_table(
        "owner_posted_wallpapers",
        sa.Column("owner_id", sa.String(length=36), primary_key=True),
        sa.Column("wallpaper_id", sa.String(length=36), primary_key=True),
    )
    op.create_index(
        "ix_owner_posted_wallpapers_wallpaper_id", "owner_posted_wallpapers", ["wallpaper_id"]
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=64), nullable=False, unique=True),
        sa.CheckConstraint("title = lower(title)", name="ck_tags_title_lower"),
    )

    op.create_table(
        "tag_wallpapers",
        sa.Column("tag_id", sa.String(length=36), primary_key=True),
        sa.Column("wallpaper_id", sa.String(length=36), primary_key=True),
    )
    op.create_index("ix_tag_wallpapers_wallpaper_id", "tag_wallpapers", ["wallpaper_id"])


def downgrade() -> None:
    op.drop_index("ix_tag_wallpapers_wallpaper_id", table_name="tag_wallpapers")
    op.drop_table("tag_wallpapers")

    op.drop_table("tags")

    op.drop_index("ix_owner_posted_wallpapers_wallpaper_id", table_name="owner_posted_wallpapers")
    op.drop_table("owner_posted_wallpapers")

    op.drop_table("owners")

    op.drop_index("ix_wallpaper_tags_tag_id", table_name="wallpaper_tags")
    op.drop_table("wallpaper_tags")

    op.drop_index("ix_wallpapers_download_count", table_name="wallpapers")
    op.drop_index("ix_wallpapers_posted_at", table_name="wallpapers")
    op.drop_index("ix_wallpapers_owner_id", table_name="wallpapers")
    op.drop_table("wallpapers")
