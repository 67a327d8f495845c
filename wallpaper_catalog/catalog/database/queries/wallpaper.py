from collections import defaultdict
from typing import Sequence

import sqlalchemy as sa
from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from wallpaper_catalog.catalog.database.models import Tag, Wallpaper, WallpaperTag
from wallpaper_catalog.catalog.helpers import escape_sql_like_string, get_utc_now

SORT_COLUMNS = {
    "most-recent": Wallpaper.posted_at,
    "most-downloaded": Wallpaper.download_count,
}


def _apply_search_filter(stmt: sa.sql.Select, search: str | None) -> sa.sql.Select:
    """Case-insensitive substring match on the title OR on any linked tag title."""
    if not search:
        return stmt
    escaped, esc = escape_sql_like_string(search)
    pattern = f"%{escaped}%"
    tag_match = exists().where(
        WallpaperTag.wallpaper_id == Wallpaper.id,
        Tag.id == WallpaperTag.tag_id,
        Tag.title.ilike(pattern, escape=esc),
    )
    return stmt.where(sa.or_(Wallpaper.title.ilike(pattern, escape=esc), tag_match))


def _apply_owner_filter(stmt: sa.sql.Select, owner_id: str | None) -> sa.sql.Select:
    if not owner_id:
        return stmt
    return stmt.where(Wallpaper.owner_id == owner_id)


def insert_wallpaper(
    session: Session,
    *,
    owner_id: str,
    title: str,
    image_path: str,
    mime_type: str,
    width: int,
    height: int,
    tag_ids: Sequence[str] = (),
) -> Wallpaper:
    """Insert a wallpaper row together with its own tag set. Flushes, does not commit."""
    wallpaper = Wallpaper(
        owner_id=owner_id,
        title=title,
        image_path=image_path,
        mime_type=mime_type,
        width=width,
        height=height,
        download_count=0,
        posted_at=get_utc_now(),
    )
    session.add(wallpaper)
    session.flush()
    if tag_ids:
        session.add_all(
            [
                WallpaperTag(wallpaper_id=wallpaper.id, tag_id=tid)
                for tid in dict.fromkeys(tag_ids)
            ]
        )
        session.flush()
    return wallpaper


def get_wallpaper_by_id(session: Session, wallpaper_id: str) -> Wallpaper | None:
    return session.get(Wallpaper, wallpaper_id)


def get_wallpaper_tag_ids(session: Session, wallpaper_id: str) -> list[str]:
    return [
        tag_id for (tag_id,) in session.execute(
            select(WallpaperTag.tag_id).where(WallpaperTag.wallpaper_id == wallpaper_id)
        ).all()
    ]


def delete_wallpaper_by_id(session: Session, wallpaper_id: str) -> bool:
    """Delete the wallpaper row and its own tag set. Returns False if nothing was deleted."""
    res = session.execute(sa.delete(Wallpaper).where(Wallpaper.id == wallpaper_id))
    deleted = int(res.rowcount or 0) > 0
    if deleted:
        session.execute(delete(WallpaperTag).where(WallpaperTag.wallpaper_id == wallpaper_id))
    return deleted


def increment_download_count(session: Session, wallpaper_id: str) -> bool:
    res = session.execute(
        sa.update(Wallpaper)
        .where(Wallpaper.id == wallpaper_id)
        .values(download_count=Wallpaper.download_count + 1)
    )
    return int(res.rowcount or 0) > 0


def list_wallpapers_page(
    session: Session,
    *,
    search: str | None = None,
    owner_id: str | None = None,
    sort: str = "most-recent",
    order: str = "desc",
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Wallpaper], dict[str, list[str]], int]:
    base = select(Wallpaper)
    base = _apply_owner_filter(base, owner_id)
    base = _apply_search_filter(base, search)

    sort_col = SORT_COLUMNS.get(sort, Wallpaper.posted_at)
    if order == "asc":
        base = base.order_by(sort_col.asc(), Wallpaper.id.asc())
    else:
        base = base.order_by(sort_col.desc(), Wallpaper.id.desc())
    base = base.limit(limit).offset(offset)

    count_stmt = select(sa.func.count()).select_from(Wallpaper)
    count_stmt = _apply_owner_filter(count_stmt, owner_id)
    count_stmt = _apply_search_filter(count_stmt, search)

    total = int(session.execute(count_stmt).scalar_one() or 0)
    wallpapers = list(session.execute(base).scalars().all())

    id_list = [w.id for w in wallpapers]
    tag_map: dict[str, list[str]] = defaultdict(list)
    if id_list:
        rows = session.execute(
            select(WallpaperTag.wallpaper_id, Tag.title)
            .join(Tag, Tag.id == WallpaperTag.tag_id)
            .where(WallpaperTag.wallpaper_id.in_(id_list))
            .order_by(Tag.title.asc())
        )
        for wid, title in rows.all():
            tag_map[wid].append(title)

    return wallpapers, tag_map, total
