"""
Back-reference maintenance for the owner and tag collections.

A wallpaper row is the source of truth for its owner and tags. The owner's
posted set and each tag's wallpaper set are denormalized copies kept in step
here with set-add / set-remove statements, so replays and interleavings with
other requests converge on the same state. Each collection is committed on its
own; failures are logged and reported, never rolled back onto the wallpaper.
"""
import logging
from typing import Sequence

from wallpaper_catalog.catalog.database.queries import (
    add_wallpaper_to_owner,
    add_wallpaper_to_tags,
    remove_wallpaper_from_owner,
    remove_wallpaper_from_tags,
)
from wallpaper_catalog.database.db import create_session


def attach_on_create(wallpaper_id: str, owner_id: str, tag_ids: Sequence[str]) -> bool:
    """Link a freshly recorded wallpaper into its owner's and tags' sets.

    Returns False if either update failed; the wallpaper stays regardless.
    """
    ok = True
    try:
        with create_session() as session:
            add_wallpaper_to_owner(session, owner_id=owner_id, wallpaper_id=wallpaper_id)
            session.commit()
    except Exception:
        logging.exception(
            "Failed to add wallpaper %s to posted set of owner %s", wallpaper_id, owner_id
        )
        ok = False

    if tag_ids:
        try:
            with create_session() as session:
                add_wallpaper_to_tags(session, wallpaper_id=wallpaper_id, tag_ids=tag_ids)
                session.commit()
        except Exception:
            logging.exception(
                "Failed to add wallpaper %s to tags %s", wallpaper_id, list(tag_ids)
            )
            ok = False
    return ok


def detach_on_delete(
    wallpaper_id: str,
    owner_id: str,
    tag_ids: Sequence[str] | None = None,
) -> bool:
    """Pull a deleted wallpaper out of its former owner's set and every tag set listing it.

    `tag_ids` is the wallpaper's own tag set as it was before the delete; when
    given, a mismatch with the sets actually cleared is logged.
    """
    ok = True
    try:
        with create_session() as session:
            remove_wallpaper_from_owner(session, owner_id=owner_id, wallpaper_id=wallpaper_id)
            session.commit()
    except Exception:
        logging.exception(
            "Failed to remove wallpaper %s from posted set of owner %s", wallpaper_id, owner_id
        )
        ok = False

    try:
        with create_session() as session:
            removed = remove_wallpaper_from_tags(session, wallpaper_id=wallpaper_id)
            session.commit()
        if tag_ids is not None and removed != len(set(tag_ids)):
            logging.warning(
                "Wallpaper %s was listed by %d tag sets but tagged with %d tags",
                wallpaper_id,
                removed,
                len(set(tag_ids)),
            )
    except Exception:
        logging.exception("Failed to remove wallpaper %s from its tags", wallpaper_id)
        ok = False
    return ok
