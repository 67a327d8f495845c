from wallpaper_catalog.catalog.database.queries import (
    get_tag_by_title,
    get_tag_wallpaper_ids,
    insert_tag,
    list_tag_titles,
)
from wallpaper_catalog.catalog.helpers import normalize_tag_title
from wallpaper_catalog.catalog.services.errors import (
    ConflictError,
    NotFoundError,
    WallpaperValidationError,
)
from wallpaper_catalog.catalog.services.permissions import ensure_can_create_tag
from wallpaper_catalog.catalog.services.schemas import Principal, TagData, extract_tag_data
from wallpaper_catalog.database.db import create_session

MAX_TAG_TITLE_LENGTH = 64


def list_tags() -> list[str]:
    """All tag titles, alphabetically."""
    with create_session() as session:
        return list_tag_titles(session)


def get_tag(title: str) -> TagData:
    with create_session() as session:
        tag = get_tag_by_title(session, title)
        if tag is None:
            raise NotFoundError("Tag not found.", code="TAG_NOT_FOUND")
        return extract_tag_data(tag, get_tag_wallpaper_ids(session, tag.id))


def create_tag(title: str | None, principal: Principal | None) -> TagData:
    """
    Create a tag. Titles are stored lower-cased with whitespace collapsed,
    so "Nature " and "nature" are the same tag.
    """
    ensure_can_create_tag(principal)

    norm = normalize_tag_title(title or "")
    if not norm:
        raise WallpaperValidationError("A tag title is required.")
    if len(norm) > MAX_TAG_TITLE_LENGTH:
        raise WallpaperValidationError(
            f"Tag titles can be at most {MAX_TAG_TITLE_LENGTH} characters long."
        )

    with create_session() as session:
        if get_tag_by_title(session, norm) is not None:
            raise ConflictError("A tag with that title already exists.", code="TAG_EXISTS")
        tag = insert_tag(session, norm)
        if tag is None:
            raise ConflictError("A tag with that title already exists.", code="TAG_EXISTS")
        data = extract_tag_data(tag, [])
        session.commit()
    return data
