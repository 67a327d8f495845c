from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WallpaperSummary(_CamelModel):
    id: str
    owner: str
    title: str
    mime_type: str
    width: int
    height: int
    tags: list[str]
    download_count: int
    posted_at: datetime


class WallpapersList(_CamelModel):
    wallpapers: list[WallpaperSummary]
    page_count: int
    total: int


class WallpaperCreated(_CamelModel):
    message: str
    wallpaper: WallpaperSummary


class TagDetail(_CamelModel):
    id: str
    title: str
    wallpapers: list[str]


class OwnerProfile(_CamelModel):
    username: str
    discriminator: str
    posted_wallpapers: list[str]


class Message(_CamelModel):
    message: str
