import logging
import os
import urllib.parse
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from wallpaper_catalog.catalog.api import schemas_in, schemas_out
from wallpaper_catalog.catalog.api.identity import IdentityProvider
from wallpaper_catalog.catalog.api.upload import (
    delete_temp_file_if_exists,
    parse_multipart_upload,
)
from wallpaper_catalog.catalog.services import (
    CatalogError,
    create_tag,
    delete_wallpaper,
    get_owner,
    get_tag,
    list_tags,
    list_wallpapers,
    resolve_wallpaper_for_download,
    resolve_wallpaper_for_thumbnail,
    search_wallpapers,
    upload_wallpaper,
)
from wallpaper_catalog.catalog.services.permissions import ensure_can_upload
from wallpaper_catalog.catalog.services.schemas import ListWallpapersResult, WallpaperDetailResult
from wallpaper_catalog.catalog.services.storage import get_store
from wallpaper_catalog.catalog.services.thumbnails import (
    THUMBNAIL_CONTENT_TYPE,
    render_thumbnail_async,
)
from wallpaper_catalog.catalog.services.validation import DEFAULT_MAX_UPLOAD_BYTES

ROUTES = web.RouteTableDef()
IDENTITY: IdentityProvider | None = None
MAX_UPLOAD_BYTES = DEFAULT_MAX_UPLOAD_BYTES


def get_query_dict(request: web.Request) -> dict[str, Any]:
    """
    Gets a dictionary of query parameters from the request.

    'request.query' is a MultiMapping[str], needs to be converted to a dictionary to be validated by Pydantic.
    """
    query_dict = {
        key: request.query.getall(key)
        if len(request.query.getall(key)) > 1
        else request.query.get(key)
        for key in request.query.keys()
    }
    return query_dict


def register_wallpaper_system(
    app: web.Application,
    identity: IdentityProvider,
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    global IDENTITY, MAX_UPLOAD_BYTES
    IDENTITY = identity
    MAX_UPLOAD_BYTES = max_upload_bytes
    app.add_routes(ROUTES)


def _request_principal(request: web.Request):
    return IDENTITY.get_request_principal(request) if IDENTITY else None


def _build_error_response(
    status: int, code: str, message: str, details: dict | None = None
) -> web.Response:
    return web.json_response(
        {"error": {"code": code, "message": message, "details": details or {}}},
        status=status,
    )


def _build_catalog_error_response(e: CatalogError) -> web.Response:
    return _build_error_response(e.status, e.code, e.message)


def _build_validation_error_response(code: str, ve: ValidationError) -> web.Response:
    return _build_error_response(400, code, "Validation failed.", {"errors": ve.json()})


def _build_internal_error_response() -> web.Response:
    return _build_error_response(500, "INTERNAL", "Something went wrong.")


def _summary(item: WallpaperDetailResult) -> schemas_out.WallpaperSummary:
    w = item.wallpaper
    return schemas_out.WallpaperSummary(
        id=w.id,
        owner=w.owner_id,
        title=w.title,
        mime_type=w.mime_type,
        width=w.width,
        height=w.height,
        tags=item.tags,
        download_count=w.download_count,
        posted_at=w.posted_at,
    )


def _list_payload(result: ListWallpapersResult) -> dict:
    payload = schemas_out.WallpapersList(
        wallpapers=[_summary(item) for item in result.items],
        page_count=result.page_count,
        total=result.total,
    )
    return payload.model_dump(mode="json", by_alias=True)


@ROUTES.get("/wallpapers")
async def list_wallpapers_route(request: web.Request) -> web.Response:
    try:
        q = schemas_in.ListWallpapersQuery.model_validate(get_query_dict(request))
    except ValidationError as ve:
        return _build_validation_error_response("INVALID_QUERY", ve)

    try:
        result = list_wallpapers(
            sort_by=q.sort_by,
            sort_direction=q.sort_direction,
            page=q.page,
            limit=q.limit,
            owner_id=q.owner,
        )
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("list_wallpapers failed for query=%s", dict(request.query))
        return _build_internal_error_response()
    return web.json_response(_list_payload(result), status=200)


@ROUTES.get("/wallpapers/search")
async def search_wallpapers_route(request: web.Request) -> web.Response:
    try:
        q = schemas_in.SearchWallpapersQuery.model_validate(get_query_dict(request))
    except ValidationError as ve:
        return _build_validation_error_response("INVALID_QUERY", ve)

    try:
        result = search_wallpapers(
            q.query,
            sort_by=q.sort_by,
            sort_direction=q.sort_direction,
            page=q.page,
            limit=q.limit,
            owner_id=q.owner,
        )
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("search_wallpapers failed for query=%s", dict(request.query))
        return _build_internal_error_response()
    return web.json_response(_list_payload(result), status=200)


@ROUTES.get("/wallpapers/thumbnail/{id}")
async def get_thumbnail_route(request: web.Request) -> web.Response:
    wallpaper_id = request.match_info["id"]
    try:
        data, abs_path = resolve_wallpaper_for_thumbnail(wallpaper_id)
        content = await render_thumbnail_async(abs_path, data.width, data.height)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("thumbnail rendering failed for wallpaper_id=%s", wallpaper_id)
        return _build_internal_error_response()
    return web.Response(body=content, content_type=THUMBNAIL_CONTENT_TYPE, status=200)


@ROUTES.get("/wallpapers/{id}")
async def download_wallpaper_route(request: web.Request) -> web.Response:
    wallpaper_id = request.match_info["id"]
    try:
        result = resolve_wallpaper_for_download(wallpaper_id)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("download failed for wallpaper_id=%s", wallpaper_id)
        return _build_internal_error_response()

    abs_path = result.abs_path
    filename = result.download_name
    quoted = (filename or "").replace("\r", "").replace("\n", "").replace('"', "'")
    cd = f"attachment; filename=\"{quoted}\"; filename*=UTF-8''{urllib.parse.quote(filename)}"

    file_size = os.path.getsize(abs_path)
    logging.info(
        "download_wallpaper: path=%s, size=%d bytes (%.2f MB), content_type=%s, filename=%s",
        abs_path,
        file_size,
        file_size / (1024 * 1024),
        result.content_type,
        filename,
    )

    async def stream_file_chunks():
        chunk_size = 64 * 1024
        with open(abs_path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    return web.Response(
        body=stream_file_chunks(),
        content_type=result.content_type,
        headers={
            "Content-Disposition": cd,
            "Content-Length": str(file_size),
        },
    )


@ROUTES.post("/wallpapers")
async def upload_wallpaper_route(request: web.Request) -> web.Response:
    """Multipart/form-data endpoint for wallpaper uploads."""
    try:
        principal = _request_principal(request)
        # Reject callers who may not upload before reading the body.
        ensure_can_upload(principal)
        parsed = await parse_multipart_upload(
            request, dest_dir=get_store().incoming_dir, max_bytes=MAX_UPLOAD_BYTES
        )
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("upload_wallpaper failed before the body was stored")
        return _build_internal_error_response()

    try:
        result = upload_wallpaper(
            principal,
            temp_path=parsed.tmp_path,
            mime_type=parsed.mime_type,
            title=parsed.title,
            tags_raw=parsed.tags_raw,
            max_bytes=MAX_UPLOAD_BYTES,
        )
    except CatalogError as e:
        delete_temp_file_if_exists(parsed.tmp_path)
        return _build_catalog_error_response(e)
    except Exception:
        delete_temp_file_if_exists(parsed.tmp_path)
        logging.exception("upload_wallpaper failed for owner_id=%s", principal.id)
        return _build_internal_error_response()

    payload = schemas_out.WallpaperCreated(
        message="Wallpaper uploaded successfully.",
        wallpaper=_summary(WallpaperDetailResult(wallpaper=result.wallpaper, tags=result.tags)),
    )
    return web.json_response(payload.model_dump(mode="json", by_alias=True), status=201)


@ROUTES.delete("/wallpapers/{id}")
async def delete_wallpaper_route(request: web.Request) -> web.Response:
    wallpaper_id = request.match_info["id"]
    principal = None
    try:
        principal = _request_principal(request)
        delete_wallpaper(wallpaper_id, principal)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception(
            "delete_wallpaper failed for wallpaper_id=%s, owner_id=%s",
            wallpaper_id,
            principal.id if principal else None,
        )
        return _build_internal_error_response()
    payload = schemas_out.Message(message="Wallpaper deleted successfully.")
    return web.json_response(payload.model_dump(mode="json"), status=200)


@ROUTES.get("/tags")
async def list_tags_route(request: web.Request) -> web.Response:
    try:
        titles = list_tags()
    except Exception:
        logging.exception("list_tags failed")
        return _build_internal_error_response()
    return web.json_response(titles, status=200)


@ROUTES.get("/tags/{title}")
async def get_tag_route(request: web.Request) -> web.Response:
    title = request.match_info["title"]
    try:
        tag = get_tag(title)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("get_tag failed for title=%s", title)
        return _build_internal_error_response()
    payload = schemas_out.TagDetail(id=tag.id, title=tag.title, wallpapers=tag.wallpapers)
    return web.json_response(payload.model_dump(mode="json", by_alias=True), status=200)


@ROUTES.post("/tags")
async def create_tag_route(request: web.Request) -> web.Response:
    try:
        body = schemas_in.CreateTagBody.model_validate(await request.json())
    except ValidationError as ve:
        return _build_validation_error_response("INVALID_BODY", ve)
    except Exception:
        return _build_error_response(
            400, "INVALID_JSON", "Request body must be valid JSON."
        )

    try:
        principal = _request_principal(request)
        tag = create_tag(body.title, principal)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("create_tag failed for title=%s", body.title)
        return _build_internal_error_response()
    payload = schemas_out.TagDetail(id=tag.id, title=tag.title, wallpapers=tag.wallpapers)
    return web.json_response(payload.model_dump(mode="json", by_alias=True), status=201)


@ROUTES.get("/users/{id}")
async def get_user_route(request: web.Request) -> web.Response:
    owner_id = request.match_info["id"]
    try:
        owner = get_owner(owner_id)
    except CatalogError as e:
        return _build_catalog_error_response(e)
    except Exception:
        logging.exception("get_user failed for owner_id=%s", owner_id)
        return _build_internal_error_response()
    payload = schemas_out.OwnerProfile(
        username=owner.username,
        discriminator=owner.discriminator,
        posted_wallpapers=owner.posted_wallpapers,
    )
    return web.json_response(payload.model_dump(mode="json", by_alias=True), status=200)
