# Wallpaper services layer
# Business logic that orchestrates database queries and filesystem operations
# Services own session lifecycle via create_session()

from wallpaper_catalog.catalog.services.errors import (
    CatalogError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    UnauthenticatedError,
    WallpaperValidationError,
)
from wallpaper_catalog.catalog.services.ingest import upload_wallpaper
from wallpaper_catalog.catalog.services.management import (
    delete_wallpaper,
    record_download,
    resolve_wallpaper_for_download,
    resolve_wallpaper_for_thumbnail,
)
from wallpaper_catalog.catalog.services.owners import (
    get_owner,
    get_principal_for_owner,
    upsert_owner_from_identity,
)
from wallpaper_catalog.catalog.services.permissions import confirm_ownership
from wallpaper_catalog.catalog.services.retrieval import list_wallpapers, search_wallpapers
from wallpaper_catalog.catalog.services.schemas import Principal
from wallpaper_catalog.catalog.services.tagging import create_tag, get_tag, list_tags

__all__ = [
    # errors.py
    "CatalogError",
    "ConflictError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "UnauthenticatedError",
    "WallpaperValidationError",
    # ingest.py
    "upload_wallpaper",
    # management.py
    "delete_wallpaper",
    "record_download",
    "resolve_wallpaper_for_download",
    "resolve_wallpaper_for_thumbnail",
    # owners.py
    "get_owner",
    "get_principal_for_owner",
    "upsert_owner_from_identity",
    # permissions.py
    "confirm_ownership",
    # retrieval.py
    "list_wallpapers",
    "search_wallpapers",
    # schemas.py
    "Principal",
    # tagging.py
    "create_tag",
    "get_tag",
    "list_tags",
]
