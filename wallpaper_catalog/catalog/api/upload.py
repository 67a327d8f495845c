import logging
import os
import uuid
from dataclasses import dataclass

from aiohttp import web

from wallpaper_catalog.catalog.services.errors import WallpaperValidationError
from wallpaper_catalog.catalog.services.validation import check_mime_type, check_size

FILE_FIELD = "wallpaper"
CHUNK_SIZE = 64 * 1024


@dataclass
class ParsedUpload:
    tmp_path: str | None
    mime_type: str | None
    size_bytes: int
    title: str | None
    tags_raw: str | None


def delete_temp_file_if_exists(path: str | None) -> None:
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError:
            logging.exception("Failed to remove temporary upload %s", path)


async def _stream_to_temp(field, dest_dir: str, max_bytes: int) -> tuple[str, int]:
    """Write one file part to a scratch file, aborting once it exceeds max_bytes."""
    tmp_path = os.path.join(dest_dir, f"{uuid.uuid4().hex}.part")
    total = 0
    try:
        with open(tmp_path, "wb") as f:
            while True:
                chunk = await field.read_chunk(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                check_size(total, max_bytes)
                f.write(chunk)
    except BaseException:
        delete_temp_file_if_exists(tmp_path)
        raise
    return tmp_path, total


async def parse_multipart_upload(
    request: web.Request,
    dest_dir: str,
    max_bytes: int,
) -> ParsedUpload:
    """
    Read a multipart/form-data wallpaper upload.

    Expects one file part named "wallpaper" plus "title" and "tags" text parts.
    The file is buffered to `dest_dir`; the caller owns the returned temp path.
    Type and size are checked while streaming, so rejected bodies never reach disk
    in full.
    """
    if not (request.content_type or "").startswith("multipart/"):
        raise WallpaperValidationError(
            "Expected a multipart/form-data body.", code="INVALID_BODY"
        )

    parsed = ParsedUpload(
        tmp_path=None,
        mime_type=None,
        size_bytes=0,
        title=None,
        tags_raw=None,
    )
    try:
        reader = await request.multipart()
        while True:
            field = await reader.next()
            if field is None:
                break
            if field.name == FILE_FIELD:
                if parsed.tmp_path is not None:
                    raise WallpaperValidationError("Only one wallpaper file may be uploaded.")
                mime_type = (field.headers.get("Content-Type") or "").split(";", 1)[0].strip()
                check_mime_type(mime_type)
                parsed.mime_type = mime_type
                parsed.tmp_path, parsed.size_bytes = await _stream_to_temp(
                    field, dest_dir, max_bytes
                )
            elif field.name == "title":
                parsed.title = await field.text()
            elif field.name == "tags":
                parsed.tags_raw = await field.text()
    except BaseException:
        delete_temp_file_if_exists(parsed.tmp_path)
        raise

    if parsed.tmp_path is None:
        raise WallpaperValidationError("The file is missing from the request.")
    return parsed
