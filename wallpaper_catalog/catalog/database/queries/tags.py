import uuid
from typing import Iterable

from sqlalchemy import delete, exists, select
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session

from wallpaper_catalog.catalog.database.models import Tag, TagWallpaper
from wallpaper_catalog.catalog.helpers import normalize_tag_title


def tag_exists_by_title(session: Session, title: str) -> bool:
    q = select(exists().where(Tag.title == normalize_tag_title(title)))
    return bool(session.execute(q).scalar())


def get_tag_by_title(session: Session, title: str) -> Tag | None:
    return session.execute(
        select(Tag).where(Tag.title == normalize_tag_title(title)).limit(1)
    ).scalar_one_or_none()


def get_tag_ids_by_titles(session: Session, titles: Iterable[str]) -> dict[str, str]:
    wanted = [normalize_tag_title(t) for t in titles]
    if not wanted:
        return {}
    rows = session.execute(select(Tag.title, Tag.id).where(Tag.title.in_(wanted))).all()
    return {title: tag_id for (title, tag_id) in rows}


def insert_tag(session: Session, title: str) -> Tag | None:
    """Insert a new Tag. Returns None if the title is already taken."""
    norm = normalize_tag_title(title)
    res = session.execute(
        sqlite.insert(Tag)
        .values(id=str(uuid.uuid4()), title=norm)
        .on_conflict_do_nothing(index_elements=[Tag.title])
    )
    if not int(res.rowcount or 0):
        return None
    return get_tag_by_title(session, norm)


def list_tag_titles(session: Session) -> list[str]:
    return [title for (title,) in session.execute(select(Tag.title).order_by(Tag.title.asc())).all()]


def get_tag_wallpaper_ids(session: Session, tag_id: str) -> list[str]:
    return [
        wid for (wid,) in session.execute(
            select(TagWallpaper.wallpaper_id).where(TagWallpaper.tag_id == tag_id)
        ).all()
    ]


def add_wallpaper_to_tags(
    session: Session,
    *,
    wallpaper_id: str,
    tag_ids: Iterable[str],
) -> int:
    """Set-add the wallpaper into each tag's back-reference set. Idempotent."""
    rows = [{"tag_id": tid, "wallpaper_id": wallpaper_id} for tid in dict.fromkeys(tag_ids)]
    if not rows:
        return 0
    ins = (
        sqlite.insert(TagWallpaper)
        .values(rows)
        .on_conflict_do_nothing(index_elements=[TagWallpaper.tag_id, TagWallpaper.wallpaper_id])
    )
    res = session.execute(ins)
    return int(res.rowcount or 0)


def remove_wallpaper_from_tags(session: Session, *, wallpaper_id: str) -> int:
    """Set-remove the wallpaper from every tag set that lists it."""
    res = session.execute(
        delete(TagWallpaper).where(TagWallpaper.wallpaper_id == wallpaper_id)
    )
    return int(res.rowcount or 0)
