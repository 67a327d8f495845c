from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from wallpaper_catalog.catalog.helpers import PermissionLevel, get_utc_now
from wallpaper_catalog.database.models import Base

# The three collections carry no foreign keys between each other. Wallpaper rows
# (and their wallpaper_tags rows) are authoritative; owner_posted_wallpapers and
# tag_wallpapers are denormalized back-references kept in step by
# services.references.


class Wallpaper(Base):
    __tablename__ = "wallpapers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    image_path: Mapped[str] = mapped_column(String(512), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=get_utc_now
    )

    __table_args__ = (
        Index("ix_wallpapers_owner_id", "owner_id"),
        Index("ix_wallpapers_posted_at", "posted_at"),
        Index("ix_wallpapers_download_count", "download_count"),
        CheckConstraint("width > 0", name="ck_wallpapers_width_pos"),
        CheckConstraint("height > 0", name="ck_wallpapers_height_pos"),
        CheckConstraint("download_count >= 0", name="ck_wallpapers_download_count_nonneg"),
    )

    def __repr__(self) -> str:
        return f"<Wallpaper id={self.id} title={self.title!r} owner={self.owner_id}>"


class WallpaperTag(Base):
    __tablename__ = "wallpaper_tags"

    wallpaper_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tag_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    __table_args__ = (
        Index("ix_wallpaper_tags_tag_id", "tag_id"),
    )

    def __repr__(self) -> str:
        return f"<WallpaperTag wallpaper={self.wallpaper_id} tag={self.tag_id}>"


class Owner(Base):
    __tablename__ = "owners"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    external_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    discriminator: Mapped[str] = mapped_column(String(16), nullable=False)
    permission_level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(PermissionLevel.USER)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=get_utc_now
    )

    def __repr__(self) -> str:
        return f"<Owner id={self.id} username={self.username!r}#{self.discriminator}>"


class OwnerPostedWallpaper(Base):
    __tablename__ = "owner_posted_wallpapers"

    owner_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallpaper_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    __table_args__ = (
        Index("ix_owner_posted_wallpapers_wallpaper_id", "wallpaper_id"),
    )


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    __table_args__ = (
        CheckConstraint("title = lower(title)", name="ck_tags_title_lower"),
    )

    def __repr__(self) -> str:
        return f"<Tag id={self.id} title={self.title!r}>"


class TagWallpaper(Base):
    __tablename__ = "tag_wallpapers"

    tag_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallpaper_id: Mapped[str] = mapped_column(String(36), primary_key=True)

    __table_args__ = (
        Index("ix_tag_wallpapers_wallpaper_id", "wallpaper_id"),
    )
