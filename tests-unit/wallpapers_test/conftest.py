import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from wallpaper_catalog.catalog.database.models import (
    Owner,
    OwnerPostedWallpaper,
    Tag,
    TagWallpaper,
    Wallpaper,
    WallpaperTag,
)
from wallpaper_catalog.catalog.helpers import PermissionLevel, get_utc_now
from wallpaper_catalog.catalog.services import storage
from wallpaper_catalog.catalog.services.schemas import Principal
from wallpaper_catalog.database.models import Base

SERVICE_MODULES = (
    "ingest",
    "management",
    "owners",
    "permissions",
    "references",
    "retrieval",
    "tagging",
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for fast unit tests."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(db_engine):
    """Session fixture for tests that need direct DB access."""
    with Session(db_engine) as sess:
        yield sess


@contextmanager
def _patched_create_session(engine):
    @contextmanager
    def _create_session():
        with Session(engine) as sess:
            yield sess

    patches = [
        patch(f"wallpaper_catalog.catalog.services.{name}.create_session", _create_session)
        for name in SERVICE_MODULES
    ]
    for p in patches:
        p.start()
    try:
        yield _create_session
    finally:
        for p in reversed(patches):
            p.stop()


@pytest.fixture
def mock_create_session(db_engine):
    """Patch create_session in every service module to use our in-memory database."""
    with _patched_create_session(db_engine) as _create_session:
        yield _create_session


@pytest.fixture
def patch_sessions():
    """Point the service modules at an engine of the test's choosing."""
    return _patched_create_session


@pytest.fixture
def temp_dir():
    """Temporary directory for file operations."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_dir: Path):
    """A binary store rooted in the temp dir, installed as the process-wide store."""
    previous = storage._STORE
    yield storage.init_storage(str(temp_dir / "store"))
    storage._STORE = previous


def write_image(path, size=(40, 30), fmt="PNG", mode="RGB", color=(200, 40, 90)) -> str:
    path = str(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


@pytest.fixture
def make_image(temp_dir: Path):
    counter = {"n": 0}

    def _make(size=(40, 30), fmt="PNG", mode="RGB", color=(200, 40, 90)) -> str:
        counter["n"] += 1
        ext = "jpg" if fmt == "JPEG" else fmt.lower()
        return write_image(temp_dir / "uploads" / f"img{counter['n']}.{ext}", size, fmt, mode, color)

    return _make


@pytest.fixture
def make_owner(session: Session):
    def _make(
        username: str = "alice",
        permission_level: PermissionLevel = PermissionLevel.CREATOR,
        discriminator: str = "0001",
    ) -> Principal:
        owner = Owner(
            external_id=f"ext-{username}",
            username=username,
            discriminator=discriminator,
            permission_level=int(permission_level),
            created_at=get_utc_now(),
        )
        session.add(owner)
        session.commit()
        return Principal(id=owner.id, permission_level=permission_level)

    return _make


@pytest.fixture
def make_tag(session: Session):
    def _make(title: str) -> str:
        tag = Tag(title=title)
        session.add(tag)
        session.commit()
        return tag.id

    return _make


@pytest.fixture
def make_wallpaper(session: Session):
    """Insert a wallpaper row directly, with consistent back-references."""

    def _make(
        owner_id: str,
        title: str = "Sunset",
        tag_ids: tuple[str, ...] = (),
        image_path: str = "wallpapers/00/missing.png",
        mime_type: str = "image/png",
        width: int = 1920,
        height: int = 1080,
        download_count: int = 0,
        posted_at=None,
    ) -> str:
        wallpaper = Wallpaper(
            owner_id=owner_id,
            title=title,
            image_path=image_path,
            mime_type=mime_type,
            width=width,
            height=height,
            download_count=download_count,
            posted_at=posted_at or get_utc_now(),
        )
        session.add(wallpaper)
        session.flush()
        session.add(OwnerPostedWallpaper(owner_id=owner_id, wallpaper_id=wallpaper.id))
        for tid in tag_ids:
            session.add(WallpaperTag(wallpaper_id=wallpaper.id, tag_id=tid))
            session.add(TagWallpaper(tag_id=tid, wallpaper_id=wallpaper.id))
        session.commit()
        return wallpaper.id

    return _make
