from wallpaper_catalog.catalog.database.queries import (
    get_owner_by_id,
    get_owner_posted_wallpaper_ids,
    upsert_owner,
)
from wallpaper_catalog.catalog.helpers import PermissionLevel
from wallpaper_catalog.catalog.services.errors import NotFoundError
from wallpaper_catalog.catalog.services.schemas import OwnerData, Principal, extract_owner_data
from wallpaper_catalog.database.db import create_session


def get_owner(owner_id: str) -> OwnerData:
    with create_session() as session:
        owner = get_owner_by_id(session, owner_id)
        if owner is None:
            raise NotFoundError("User not found.", code="USER_NOT_FOUND")
        return extract_owner_data(owner, get_owner_posted_wallpaper_ids(session, owner.id))


def get_principal_for_owner(owner_id: str) -> Principal | None:
    """Principal for an owner id established by the identity provider, or None."""
    with create_session() as session:
        owner = get_owner_by_id(session, owner_id)
        if owner is None:
            return None
        return Principal(id=owner.id, permission_level=PermissionLevel(owner.permission_level))


def upsert_owner_from_identity(external_id: str, username: str, discriminator: str) -> OwnerData:
    """Called by the identity provider on login; new owners start at PermissionLevel.USER."""
    with create_session() as session:
        owner, _created = upsert_owner(
            session,
            external_id=external_id,
            username=username,
            discriminator=discriminator,
        )
        data = extract_owner_data(owner, get_owner_posted_wallpaper_ids(session, owner.id))
        session.commit()
    return data
