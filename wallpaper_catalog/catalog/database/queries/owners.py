import uuid

from sqlalchemy import delete, select
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session

from wallpaper_catalog.catalog.database.models import Owner, OwnerPostedWallpaper
from wallpaper_catalog.catalog.helpers import PermissionLevel, get_utc_now


def get_owner_by_id(session: Session, owner_id: str) -> Owner | None:
    return session.get(Owner, owner_id)


def get_owner_by_external_id(session: Session, external_id: str) -> Owner | None:
    return session.execute(
        select(Owner).where(Owner.external_id == external_id).limit(1)
    ).scalar_one_or_none()


def upsert_owner(
    session: Session,
    *,
    external_id: str,
    username: str,
    discriminator: str,
) -> tuple[Owner, bool]:
    """Create or refresh an owner keyed by identity-provider id. Returns (owner, created).

    An existing owner's permission level is never touched here.
    """
    ins = (
        sqlite.insert(Owner)
        .values(
            id=str(uuid.uuid4()),
            external_id=external_id,
            username=username,
            discriminator=discriminator,
            permission_level=int(PermissionLevel.USER),
            created_at=get_utc_now(),
        )
        .on_conflict_do_nothing(index_elements=[Owner.external_id])
    )
    res = session.execute(ins)
    created = int(res.rowcount or 0) > 0

    owner = get_owner_by_external_id(session, external_id)
    if owner is None:
        raise RuntimeError("Failed to find Owner after upsert.")
    if not created and (owner.username != username or owner.discriminator != discriminator):
        owner.username = username
        owner.discriminator = discriminator
        session.flush()
    return owner, created


def get_owner_posted_wallpaper_ids(session: Session, owner_id: str) -> list[str]:
    return [
        wid for (wid,) in session.execute(
            select(OwnerPostedWallpaper.wallpaper_id).where(
                OwnerPostedWallpaper.owner_id == owner_id
            )
        ).all()
    ]


def add_wallpaper_to_owner(session: Session, *, owner_id: str, wallpaper_id: str) -> bool:
    """Set-add into the owner's posted set. Returns True if the pair was new."""
    res = session.execute(
        sqlite.insert(OwnerPostedWallpaper)
        .values(owner_id=owner_id, wallpaper_id=wallpaper_id)
        .on_conflict_do_nothing(
            index_elements=[OwnerPostedWallpaper.owner_id, OwnerPostedWallpaper.wallpaper_id]
        )
    )
    return int(res.rowcount or 0) > 0


def remove_wallpaper_from_owner(session: Session, *, owner_id: str, wallpaper_id: str) -> bool:
    res = session.execute(
        delete(OwnerPostedWallpaper).where(
            OwnerPostedWallpaper.owner_id == owner_id,
            OwnerPostedWallpaper.wallpaper_id == wallpaper_id,
        )
    )
    return int(res.rowcount or 0) > 0
