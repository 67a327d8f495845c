import logging
import os
from typing import Any

from wallpaper_catalog.catalog.database.queries import get_owner_by_id, insert_wallpaper
from wallpaper_catalog.catalog.services.errors import NotFoundError, StorageError
from wallpaper_catalog.catalog.services.permissions import ensure_can_upload
from wallpaper_catalog.catalog.services.references import attach_on_create
from wallpaper_catalog.catalog.services.schemas import (
    Principal,
    UploadResult,
    extract_wallpaper_data,
)
from wallpaper_catalog.catalog.services.storage import BinaryStore, get_store
from wallpaper_catalog.catalog.services.validation import (
    DEFAULT_MAX_UPLOAD_BYTES,
    ensure_tags_exist,
    read_image_dimensions,
    validate_upload,
)
from wallpaper_catalog.database.db import create_session


def upload_wallpaper(
    principal: Principal | None,
    temp_path: str,
    mime_type: str | None,
    title: str | None,
    tags_raw: Any,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    store: BinaryStore | None = None,
) -> UploadResult:
    """
    Turn a buffered upload into a catalogued wallpaper.

    Order: validate -> store binary -> record row -> link back-references.
    The temp file belongs to the caller until the binary is stored; once stored,
    any failure to record the row removes the stored binary again. A failure
    while linking back-references is logged and the upload still succeeds.
    """
    principal = ensure_can_upload(principal)
    store = store or get_store()

    fields = validate_upload(
        mime_type=mime_type,
        size_bytes=os.path.getsize(temp_path),
        title=title,
        tags_raw=tags_raw,
        max_bytes=max_bytes,
    )

    with create_session() as session:
        if get_owner_by_id(session, principal.id) is None:
            raise NotFoundError(
                f"Owner {principal.id} not found.", code="OWNER_NOT_FOUND"
            )
        tag_ids_by_title = ensure_tags_exist(session, fields.tags)
    tag_ids = [tag_ids_by_title[t] for t in fields.tags]

    width, height = read_image_dimensions(temp_path)

    try:
        rel_path = store.put(temp_path, mime_type)
    except OSError:
        logging.exception("Failed to move upload %s into the binary store", temp_path)
        raise StorageError("Something went wrong while storing the wallpaper.")

    try:
        with create_session() as session:
            wallpaper = insert_wallpaper(
                session,
                owner_id=principal.id,
                title=fields.title,
                image_path=rel_path,
                mime_type=mime_type,
                width=width,
                height=height,
                tag_ids=tag_ids,
            )
            data = extract_wallpaper_data(wallpaper)
            session.commit()
    except Exception:
        logging.exception(
            "Failed to record wallpaper for owner_id=%s; removing stored binary %s",
            principal.id,
            rel_path,
        )
        if not store.delete(rel_path):
            logging.error("Stored binary %s could not be removed after failed upload", rel_path)
        raise StorageError("Something went wrong while saving the wallpaper.")

    linked = attach_on_create(data.id, data.owner_id, tag_ids)
    if not linked:
        logging.warning(
            "Wallpaper %s was recorded but its back-references are incomplete", data.id
        )

    logging.info(
        "Uploaded wallpaper %s (%dx%d, %s) for owner %s",
        data.id,
        width,
        height,
        mime_type,
        principal.id,
    )
    return UploadResult(wallpaper=data, tags=list(fields.tags), references_linked=linked)
