import logging

from wallpaper_catalog.catalog.database.queries import get_wallpaper_by_id
from wallpaper_catalog.catalog.helpers import PermissionLevel
from wallpaper_catalog.catalog.services.errors import PermissionDeniedError, UnauthenticatedError
from wallpaper_catalog.catalog.services.schemas import Principal
from wallpaper_catalog.database.db import create_session


def confirm_ownership(wallpaper_id: str, owner_id: str) -> bool:
    """True iff the wallpaper exists and belongs to owner_id.

    Fails closed: a missing wallpaper or any lookup error means "not owner".
    """
    if not wallpaper_id or not owner_id:
        return False
    try:
        with create_session() as session:
            wallpaper = get_wallpaper_by_id(session, wallpaper_id)
            actual_owner = wallpaper.owner_id if wallpaper is not None else None
    except Exception:
        logging.exception(
            "confirm_ownership lookup failed for wallpaper_id=%s, owner_id=%s",
            wallpaper_id,
            owner_id,
        )
        return False
    return actual_owner is not None and actual_owner == owner_id


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise UnauthenticatedError("Login to perform this action!")
    return principal


def require_permission(
    principal: Principal | None,
    level: PermissionLevel,
    message: str = "You are not authorized to perform this action.",
) -> Principal:
    principal = require_principal(principal)
    if principal.permission_level < level:
        raise PermissionDeniedError(message)
    return principal


def ensure_can_upload(principal: Principal | None) -> Principal:
    return require_permission(
        principal,
        PermissionLevel.CREATOR,
        "You do not have the permission to upload a wallpaper.",
    )


def ensure_can_create_tag(principal: Principal | None) -> Principal:
    return require_permission(principal, PermissionLevel.DEVELOPER)


def ensure_can_delete(wallpaper_id: str, principal: Principal | None) -> Principal:
    """Owners may delete their own wallpapers; admins and above may delete any."""
    principal = require_principal(principal)
    if principal.permission_level >= PermissionLevel.ADMIN:
        return principal
    if confirm_ownership(wallpaper_id, principal.id):
        return principal
    raise PermissionDeniedError("You do not have the permission to delete this wallpaper.")
