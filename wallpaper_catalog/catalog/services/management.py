"""
Wallpaper management services - read, download and delete single wallpapers.

Business logic for:
- resolve_wallpaper_for_download: Locate the original and bump its download counter
- resolve_wallpaper_for_thumbnail: Locate the original for preview rendering
- delete_wallpaper: Gate, delete the row, then clean up the binary and back-references
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from wallpaper_catalog.catalog.database.queries import (
    delete_wallpaper_by_id,
    get_wallpaper_by_id,
    get_wallpaper_tag_ids,
    increment_download_count,
)
from wallpaper_catalog.catalog.services.errors import NotFoundError, StorageError
from wallpaper_catalog.catalog.services.permissions import ensure_can_delete
from wallpaper_catalog.catalog.services.references import detach_on_delete
from wallpaper_catalog.catalog.services.schemas import (
    DeleteResult,
    DownloadResolutionResult,
    Principal,
    WallpaperData,
    extract_wallpaper_data,
)
from wallpaper_catalog.catalog.services.storage import BinaryStore, get_store
from wallpaper_catalog.database.db import create_session


def _not_found(wallpaper_id: str) -> NotFoundError:
    return NotFoundError(f"Wallpaper {wallpaper_id} not found.", code="WALLPAPER_NOT_FOUND")


def _load_wallpaper(wallpaper_id: str) -> WallpaperData:
    with create_session() as session:
        wallpaper = get_wallpaper_by_id(session, wallpaper_id)
        if wallpaper is None:
            raise _not_found(wallpaper_id)
        return extract_wallpaper_data(wallpaper)


def _resolve_existing_binary(store: BinaryStore, data: WallpaperData) -> str:
    try:
        abs_path = store.resolve(data.image_path)
    except ValueError:
        logging.error("Wallpaper %s has an invalid stored path %r", data.id, data.image_path)
        raise StorageError("Something went wrong while fetching the wallpaper.")
    if not store.exists(data.image_path):
        logging.error("Binary for wallpaper %s is missing at %s", data.id, abs_path)
        raise NotFoundError("Underlying file not found on disk.", code="FILE_NOT_FOUND")
    return abs_path


def download_name_for(data: WallpaperData) -> str:
    """Title plus an extension taken from the MIME subtype (image/png -> .png)."""
    subtype = data.mime_type.split("/", 1)[-1].split(";", 1)[0].strip()
    if subtype == "jpeg":
        subtype = "jpg"
    return f"{data.title}.{subtype}" if subtype else data.title


def record_download(wallpaper_id: str) -> bool:
    """Best-effort download counter bump. Never raises."""
    try:
        with create_session() as session:
            updated = increment_download_count(session, wallpaper_id)
            session.commit()
    except Exception:
        logging.exception("Failed to increment download count for wallpaper %s", wallpaper_id)
        return False
    if not updated:
        logging.warning("Wallpaper %s vanished before its download was counted", wallpaper_id)
    return updated


def resolve_wallpaper_for_download(
    wallpaper_id: str,
    store: BinaryStore | None = None,
) -> DownloadResolutionResult:
    store = store or get_store()
    data = _load_wallpaper(wallpaper_id)
    abs_path = _resolve_existing_binary(store, data)
    record_download(wallpaper_id)
    return DownloadResolutionResult(
        abs_path=abs_path,
        content_type=data.mime_type,
        download_name=download_name_for(data),
    )


def resolve_wallpaper_for_thumbnail(
    wallpaper_id: str,
    store: BinaryStore | None = None,
) -> tuple[WallpaperData, str]:
    store = store or get_store()
    data = _load_wallpaper(wallpaper_id)
    return data, _resolve_existing_binary(store, data)


def delete_wallpaper(
    wallpaper_id: str,
    principal: Principal | None,
    store: BinaryStore | None = None,
) -> DeleteResult:
    """
    Delete a wallpaper and everything hanging off it.

    Deleting the row is the pivot: if it does not happen (already gone, or a
    concurrent delete won), nothing else is touched. After it, the binary and
    back-references are cleaned up best-effort.
    """
    store = store or get_store()
    _load_wallpaper(wallpaper_id)
    ensure_can_delete(wallpaper_id, principal)

    try:
        with create_session() as session:
            wallpaper = get_wallpaper_by_id(session, wallpaper_id)
            if wallpaper is None:
                raise _not_found(wallpaper_id)
            owner_id = wallpaper.owner_id
            image_path = wallpaper.image_path
            tag_ids = get_wallpaper_tag_ids(session, wallpaper_id)
            if not delete_wallpaper_by_id(session, wallpaper_id):
                raise _not_found(wallpaper_id)
            session.commit()
    except SQLAlchemyError:
        logging.exception("Failed to delete wallpaper row %s", wallpaper_id)
        raise StorageError("Something went wrong while deleting the wallpaper.")

    binary_deleted = store.delete(image_path)
    if not binary_deleted:
        logging.error("Wallpaper %s deleted but its binary %s remains", wallpaper_id, image_path)

    detached = detach_on_delete(wallpaper_id, owner_id, tag_ids)

    logging.info("Deleted wallpaper %s of owner %s", wallpaper_id, owner_id)
    return DeleteResult(
        wallpaper_id=wallpaper_id,
        binary_deleted=binary_deleted,
        references_detached=detached,
    )
