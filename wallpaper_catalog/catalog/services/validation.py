"""
Upload validation. Every check here is side-effect free and runs before the
binary store is touched.
"""
import json
import re
import warnings
from typing import Any

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.orm import Session

from wallpaper_catalog.catalog.database.queries import get_tag_ids_by_titles, tag_exists_by_title
from wallpaper_catalog.catalog.helpers import normalize_tags
from wallpaper_catalog.catalog.services.errors import ConflictError, WallpaperValidationError

IMAGE_MIME_RE = re.compile(r"^image/", re.IGNORECASE)
DEFAULT_MAX_UPLOAD_BYTES = 30 * 1024 * 1024
MAX_TITLE_LENGTH = 256
MAX_TAGS_PER_WALLPAPER = 32
# Upper bound on width * height. 8K UHD (~33M pixels) fits.
MAX_IMAGE_PIXELS = 40_000_000


class UploadSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    tags: list[str] = Field(min_length=1, max_length=MAX_TAGS_PER_WALLPAPER)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError("tags must be a JSON array of tag titles") from e
        if not isinstance(v, list):
            raise ValueError("tags must be an array of tag titles")
        return v

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: list[str]) -> list[str]:
        out = normalize_tags(v)
        if not out:
            raise ValueError("at least one tag is required")
        return out


def check_mime_type(mime_type: str | None) -> None:
    if not mime_type or not IMAGE_MIME_RE.match(mime_type):
        raise WallpaperValidationError(
            "Uploaded file was not an image.",
            status=415,
            code="UNSUPPORTED_MEDIA_TYPE",
        )


def check_size(size_bytes: int, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    if size_bytes > max_bytes:
        raise WallpaperValidationError(
            f"Image size should not be bigger than {max_bytes // (1024 * 1024)} MB.",
            status=413,
            code="PAYLOAD_TOO_LARGE",
        )


def parse_upload_fields(title: str | None, tags_raw: Any) -> UploadSpec:
    if title is None or not str(title).strip():
        raise WallpaperValidationError("A title is required.")
    if tags_raw is None or tags_raw == "":
        raise WallpaperValidationError("Tags should contain a valid array.")
    try:
        return UploadSpec.model_validate({"title": title, "tags": tags_raw})
    except ValidationError as ve:
        first = ve.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise WallpaperValidationError(f"{loc}: {first.get('msg', 'invalid value')}")


def validate_upload(
    *,
    mime_type: str | None,
    size_bytes: int,
    title: str | None,
    tags_raw: Any,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> UploadSpec:
    """Type, size and field checks, in that order. Returns the parsed fields."""
    check_mime_type(mime_type)
    check_size(size_bytes, max_bytes)
    return parse_upload_fields(title, tags_raw)


def ensure_tags_exist(session: Session, titles: list[str]) -> dict[str, str]:
    """Check each tag title in order and fail on the first one that is missing.

    Returns a title -> tag id mapping for the (all existing) titles.
    """
    for title in titles:
        if not tag_exists_by_title(session, title):
            raise ConflictError(
                f"Tag '{title}' does not exist.",
                code="TAG_NOT_FOUND",
            )
    return get_tag_ids_by_titles(session, titles)


def _image_too_large(max_pixels: int) -> WallpaperValidationError:
    return WallpaperValidationError(
        f"Image resolution should not exceed {max_pixels:,} pixels.",
        status=413,
        code="IMAGE_TOO_LARGE",
    )


def read_image_dimensions(path: str, max_pixels: int = MAX_IMAGE_PIXELS) -> tuple[int, int]:
    """Width and height of a stored image.

    415 if the payload is not decodable, 413 if it has more than `max_pixels`
    pixels. Only the header is read, so decompression bombs are refused cheaply.
    """
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(path) as img:
                width, height = img.size
    except (Image.DecompressionBombError, Image.DecompressionBombWarning):
        raise _image_too_large(max_pixels)
    except (UnidentifiedImageError, OSError):
        raise WallpaperValidationError(
            "Uploaded file is not a readable image.",
            status=415,
            code="UNSUPPORTED_MEDIA_TYPE",
        )
    if width <= 0 or height <= 0:
        raise WallpaperValidationError(
            "Uploaded image has no pixels.",
            status=415,
            code="UNSUPPORTED_MEDIA_TYPE",
        )
    if width * height > max_pixels:
        raise _image_too_large(max_pixels)
    return int(width), int(height)
