from dataclasses import dataclass
from datetime import datetime

from wallpaper_catalog.catalog.database.models import Owner, Tag, Wallpaper
from wallpaper_catalog.catalog.helpers import PermissionLevel


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as handed over by the identity collaborator."""

    id: str
    permission_level: PermissionLevel


@dataclass(frozen=True)
class WallpaperData:
    id: str
    owner_id: str
    title: str
    image_path: str
    mime_type: str
    width: int
    height: int
    download_count: int
    posted_at: datetime


@dataclass(frozen=True)
class WallpaperDetailResult:
    wallpaper: WallpaperData
    tags: list[str]


@dataclass(frozen=True)
class UploadResult:
    wallpaper: WallpaperData
    tags: list[str]
    references_linked: bool


@dataclass(frozen=True)
class DeleteResult:
    wallpaper_id: str
    binary_deleted: bool
    references_detached: bool


@dataclass(frozen=True)
class ListWallpapersResult:
    items: list[WallpaperDetailResult]
    total: int
    page_count: int


@dataclass(frozen=True)
class DownloadResolutionResult:
    abs_path: str
    content_type: str
    download_name: str


@dataclass(frozen=True)
class TagData:
    id: str
    title: str
    wallpapers: list[str]


@dataclass(frozen=True)
class OwnerData:
    id: str
    username: str
    discriminator: str
    permission_level: PermissionLevel
    posted_wallpapers: list[str]


def extract_wallpaper_data(wallpaper: Wallpaper) -> WallpaperData:
    return WallpaperData(
        id=wallpaper.id,
        owner_id=wallpaper.owner_id,
        title=wallpaper.title,
        image_path=wallpaper.image_path,
        mime_type=wallpaper.mime_type,
        width=wallpaper.width,
        height=wallpaper.height,
        download_count=wallpaper.download_count,
        posted_at=wallpaper.posted_at,
    )


def extract_tag_data(tag: Tag, wallpapers: list[str]) -> TagData:
    return TagData(id=tag.id, title=tag.title, wallpapers=wallpapers)


def extract_owner_data(owner: Owner, posted_wallpapers: list[str]) -> OwnerData:
    return OwnerData(
        id=owner.id,
        username=owner.username,
        discriminator=owner.discriminator,
        permission_level=PermissionLevel(owner.permission_level),
        posted_wallpapers=posted_wallpapers,
    )
