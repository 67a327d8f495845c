"""HTTP-level tests for the wallpaper catalog routes."""
import os
from unittest.mock import patch

import aiohttp
import pytest
from aiohttp import web

from wallpaper_catalog.catalog.api.identity import TrustedHeaderIdentity
from wallpaper_catalog.catalog.api.routes import register_wallpaper_system
from wallpaper_catalog.catalog.helpers import PermissionLevel
from wallpaper_catalog.catalog.services.validation import DEFAULT_MAX_UPLOAD_BYTES

OWNER_HEADER = "X-Owner-Id"
MAX_UPLOAD = 256 * 1024


@pytest.fixture
def app(mock_create_session, store):
    app = web.Application()
    register_wallpaper_system(app, TrustedHeaderIdentity(OWNER_HEADER), max_upload_bytes=MAX_UPLOAD)
    return app


@pytest.fixture
async def client(aiohttp_client, app):
    return await aiohttp_client(app)


@pytest.fixture
def creator(make_owner):
    return make_owner("creator", permission_level=PermissionLevel.CREATOR)


def _as(principal) -> dict:
    return {OWNER_HEADER: principal.id}


def _upload_form(
    content: bytes,
    title: str = "Sunset",
    tags: str = '["nature"]',
    content_type: str = "image/png",
    filename: str = "sunset.png",
) -> aiohttp.FormData:
    form = aiohttp.FormData()
    form.add_field("title", title)
    form.add_field("tags", tags)
    form.add_field("wallpaper", content, filename=filename, content_type=content_type)
    return form


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _stored_files(store) -> list[str]:
    out = []
    for dirpath, dirnames, filenames in os.walk(store.root):
        dirnames[:] = [d for d in dirnames if d != ".incoming"]
        out.extend(filenames)
    return out


async def _upload(client, principal, content: bytes, **kwargs) -> dict:
    resp = await client.post("/wallpapers", data=_upload_form(content, **kwargs), headers=_as(principal))
    assert resp.status == 201, await resp.text()
    return (await resp.json())["wallpaper"]


class TestListAndSearch:
    async def test_empty_list(self, client):
        resp = await client.get("/wallpapers")
        assert resp.status == 200
        assert await resp.json() == {"wallpapers": [], "pageCount": 0, "total": 0}

    async def test_empty_search_is_404(self, client):
        resp = await client.get("/wallpapers/search", params={"query": "anything"})
        assert resp.status == 404
        body = await resp.json()
        assert body["error"]["code"] == "NO_RESULTS"

    async def test_bad_page(self, client):
        resp = await client.get("/wallpapers", params={"page": "-1"})
        assert resp.status == 400
        resp = await client.get("/wallpapers", params={"limit": "lots"})
        assert resp.status == 400

    async def test_page_out_of_range(self, client):
        resp = await client.get("/wallpapers", params={"page": "10000000000000000000"})
        assert resp.status == 400
        assert (await resp.json())["error"]["code"] == "INVALID_QUERY"
        resp = await client.get("/wallpapers/search", params={"query": "x", "limit": "5000"})
        assert resp.status == 400

    async def test_search_by_tag(self, client, creator, make_tag, make_image):
        make_tag("nature")
        make_tag("space")
        await _upload(client, creator, _read(make_image()), title="Forest", tags='["nature"]')
        await _upload(client, creator, _read(make_image()), title="Orion", tags='["space"]')

        resp = await client.get("/wallpapers/search", params={"query": "SPACE"})
        assert resp.status == 200
        body = await resp.json()
        assert body["total"] == 1
        assert body["wallpapers"][0]["title"] == "Orion"
        assert body["wallpapers"][0]["tags"] == ["space"]

    async def test_sorting_and_paging(self, client, creator, make_tag, make_image):
        make_tag("nature")
        ids = [
            (await _upload(client, creator, _read(make_image()), title=f"W{i}"))["id"]
            for i in range(3)
        ]
        first = await client.get(f"/wallpapers/{ids[0]}")
        await first.read()

        resp = await client.get(
            "/wallpapers",
            params={"sortBy": "most-downloaded", "sortDirection": "descending", "limit": "2"},
        )
        body = await resp.json()
        assert body["total"] == 3
        assert body["pageCount"] == 2
        assert body["wallpapers"][0]["id"] == ids[0]
        assert body["wallpapers"][0]["downloadCount"] == 1


class TestUpload:
    async def test_upload_download_roundtrip(self, client, creator, make_tag, make_image):
        make_tag("nature")
        content = _read(make_image(size=(50, 20)))

        wallpaper = await _upload(client, creator, content)
        assert wallpaper["owner"] == creator.id
        assert wallpaper["tags"] == ["nature"]
        assert (wallpaper["width"], wallpaper["height"]) == (50, 20)
        assert wallpaper["downloadCount"] == 0

        resp = await client.get(f"/wallpapers/{wallpaper['id']}")
        assert resp.status == 200
        assert resp.headers["Content-Type"] == "image/png"
        assert "Sunset.png" in resp.headers["Content-Disposition"]
        assert await resp.read() == content

        listing = await (await client.get("/wallpapers")).json()
        assert listing["wallpapers"][0]["downloadCount"] == 1

        profile = await (await client.get(f"/users/{creator.id}")).json()
        assert profile["postedWallpapers"] == [wallpaper["id"]]

    async def test_requires_login(self, client, make_image):
        resp = await client.post("/wallpapers", data=_upload_form(_read(make_image())))
        assert resp.status == 401
        assert (await resp.json())["error"]["message"] == "Login to perform this action!"

    async def test_requires_creator(self, client, make_owner, make_image):
        user = make_owner("user", permission_level=PermissionLevel.USER)
        resp = await client.post("/wallpapers", data=_upload_form(_read(make_image())), headers=_as(user))
        assert resp.status == 403

    async def test_unknown_tag_is_conflict(self, client, creator, make_tag, make_image, store):
        make_tag("nature")
        resp = await client.post(
            "/wallpapers",
            data=_upload_form(_read(make_image()), tags='["nature", "ghost"]'),
            headers=_as(creator),
        )
        assert resp.status == 409
        assert _stored_files(store) == []
        assert os.listdir(store.incoming_dir) == []

    async def test_not_an_image(self, client, creator, make_tag):
        make_tag("nature")
        resp = await client.post(
            "/wallpapers",
            data=_upload_form(b"hello", content_type="text/plain", filename="a.txt"),
            headers=_as(creator),
        )
        assert resp.status == 415

    async def test_too_large(self, client, creator, make_tag, store):
        make_tag("nature")
        resp = await client.post(
            "/wallpapers",
            data=_upload_form(b"\0" * (MAX_UPLOAD + 1)),
            headers=_as(creator),
        )
        assert resp.status == 413
        assert os.listdir(store.incoming_dir) == []

    async def test_default_ceiling(self, aiohttp_client, mock_create_session, store, creator, make_tag):
        app = web.Application()
        register_wallpaper_system(app, TrustedHeaderIdentity(OWNER_HEADER))
        client = await aiohttp_client(app)
        make_tag("nature")

        resp = await client.post(
            "/wallpapers",
            data=_upload_form(b"\0" * (31 * 1024 * 1024)),
            headers=_as(creator),
        )
        assert DEFAULT_MAX_UPLOAD_BYTES == 30 * 1024 * 1024
        assert resp.status == 413
        assert os.listdir(store.incoming_dir) == []
        assert _stored_files(store) == []

    async def test_decompression_bomb(self, client, creator, make_tag, make_image, store):
        make_tag("nature")
        bomb = _read(make_image(size=(20000, 10000), mode="1", color=0))
        assert len(bomb) < MAX_UPLOAD

        resp = await client.post("/wallpapers", data=_upload_form(bomb), headers=_as(creator))
        assert resp.status == 413
        assert (await resp.json())["error"]["code"] == "IMAGE_TOO_LARGE"
        assert os.listdir(store.incoming_dir) == []
        assert _stored_files(store) == []

    async def test_missing_file(self, client, creator):
        form = aiohttp.FormData()
        form.add_field("title", "Sunset")
        form.add_field("tags", '["nature"]')
        form.add_field("other", b"x", filename="x.bin", content_type="image/png")
        resp = await client.post("/wallpapers", data=form, headers=_as(creator))
        assert resp.status == 400

    async def test_json_body_rejected(self, client, creator):
        resp = await client.post("/wallpapers", json={"title": "x"}, headers=_as(creator))
        assert resp.status == 400


class TestDownloadAndThumbnail:
    async def test_missing_wallpaper(self, client):
        resp = await client.get("/wallpapers/nope")
        assert resp.status == 404
        resp = await client.get("/wallpapers/thumbnail/nope")
        assert resp.status == 404

    async def test_thumbnail(self, client, creator, make_tag, make_image):
        make_tag("nature")
        wallpaper = await _upload(client, creator, _read(make_image(size=(200, 400))))

        resp = await client.get(f"/wallpapers/thumbnail/{wallpaper['id']}")
        assert resp.status == 200
        assert resp.headers["Content-Type"] == "image/jpeg"
        assert (await resp.read())[:2] == b"\xff\xd8"

        listing = await (await client.get("/wallpapers")).json()
        assert listing["wallpapers"][0]["downloadCount"] == 0


class TestDelete:
    async def test_owner_deletes_twice(self, client, creator, make_tag, make_image, store):
        make_tag("nature")
        wallpaper = await _upload(client, creator, _read(make_image()))

        resp = await client.delete(f"/wallpapers/{wallpaper['id']}", headers=_as(creator))
        assert resp.status == 200
        assert (await resp.json())["message"] == "Wallpaper deleted successfully."
        assert _stored_files(store) == []

        resp = await client.delete(f"/wallpapers/{wallpaper['id']}", headers=_as(creator))
        assert resp.status == 404

        resp = await client.get(f"/wallpapers/{wallpaper['id']}")
        assert resp.status == 404

    async def test_stranger_is_forbidden(self, client, creator, make_owner, make_tag, make_image):
        make_tag("nature")
        wallpaper = await _upload(client, creator, _read(make_image()))
        stranger = make_owner("stranger", permission_level=PermissionLevel.MODERATOR)

        resp = await client.delete(f"/wallpapers/{wallpaper['id']}", headers=_as(stranger))
        assert resp.status == 403
        resp = await client.get(f"/wallpapers/{wallpaper['id']}")
        assert resp.status == 200
        await resp.read()


class TestTagsAndUsers:
    async def test_create_and_fetch_tag(self, client, make_owner):
        dev = make_owner("dev", permission_level=PermissionLevel.DEVELOPER)

        resp = await client.post("/tags", json={"title": " Night Sky "}, headers=_as(dev))
        assert resp.status == 201
        created = await resp.json()
        assert created["title"] == "night sky"

        resp = await client.post("/tags", json={"title": "night sky"}, headers=_as(dev))
        assert resp.status == 409

        assert await (await client.get("/tags")).json() == ["night sky"]

        resp = await client.get("/tags/night sky")
        assert resp.status == 200
        assert (await resp.json())["wallpapers"] == []

    async def test_tag_creation_needs_developer(self, client, make_owner):
        admin = make_owner("admin", permission_level=PermissionLevel.ADMIN)
        resp = await client.post("/tags", json={"title": "x"}, headers=_as(admin))
        assert resp.status == 403

    async def test_invalid_tag_body(self, client, make_owner):
        dev = make_owner("dev", permission_level=PermissionLevel.DEVELOPER)
        resp = await client.post("/tags", data=b"{not json", headers=_as(dev))
        assert resp.status == 400
        resp = await client.post("/tags", json={"title": ""}, headers=_as(dev))
        assert resp.status == 400

    async def test_missing_tag_and_user(self, client):
        assert (await client.get("/tags/ghost")).status == 404
        assert (await client.get("/users/ghost")).status == 404


class TestIdentityFailures:
    @pytest.fixture
    def broken_identity(self):
        with patch(
            "wallpaper_catalog.catalog.api.identity.get_principal_for_owner",
            side_effect=RuntimeError("database is locked"),
        ):
            yield

    async def _assert_internal(self, resp):
        assert resp.status == 500
        assert resp.content_type == "application/json"
        assert (await resp.json())["error"]["code"] == "INTERNAL"

    async def test_upload(self, client, broken_identity, make_image, store):
        resp = await client.post(
            "/wallpapers", data=_upload_form(_read(make_image())), headers={OWNER_HEADER: "someone"}
        )
        await self._assert_internal(resp)
        assert os.listdir(store.incoming_dir) == []

    async def test_delete(self, client, broken_identity):
        resp = await client.delete("/wallpapers/anything", headers={OWNER_HEADER: "someone"})
        await self._assert_internal(resp)

    async def test_create_tag(self, client, broken_identity):
        resp = await client.post("/tags", json={"title": "x"}, headers={OWNER_HEADER: "someone"})
        await self._assert_internal(resp)
