from wallpaper_catalog.catalog.database.queries import SORT_COLUMNS, list_wallpapers_page
from wallpaper_catalog.catalog.helpers import count_pages
from wallpaper_catalog.catalog.services.errors import NotFoundError, WallpaperValidationError
from wallpaper_catalog.catalog.services.schemas import (
    ListWallpapersResult,
    WallpaperDetailResult,
    extract_wallpaper_data,
)
from wallpaper_catalog.database.db import create_session

DEFAULT_SORT_BY = "most-recent"
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps page * limit inside SQLite's 64-bit OFFSET.
MAX_PAGE = 1_000_000
SORT_DIRECTIONS = {"ascending": "asc", "descending": "desc"}


def normalize_sort(sort_by: str | None, sort_direction: str | None) -> tuple[str, str]:
    """Unknown values fall back to most-recent / descending."""
    sort = (sort_by or "").strip().lower()
    if sort not in SORT_COLUMNS:
        sort = DEFAULT_SORT_BY
    order = SORT_DIRECTIONS.get((sort_direction or "").strip().lower(), "desc")
    return sort, order


def check_pagination(page: int, limit: int) -> None:
    if limit <= 0 or page < 0:
        raise WallpaperValidationError(
            "Page number and limit must be positive numbers.",
            code="INVALID_QUERY",
        )
    if limit > MAX_LIMIT or page > MAX_PAGE:
        raise WallpaperValidationError(
            f"Limit should not exceed {MAX_LIMIT} and page should not exceed {MAX_PAGE:,}.",
            code="INVALID_QUERY",
        )


def list_wallpapers(
    sort_by: str | None = None,
    sort_direction: str | None = None,
    page: int = 0,
    limit: int = DEFAULT_LIMIT,
    query: str | None = None,
    owner_id: str | None = None,
) -> ListWallpapersResult:
    """
    One page of wallpapers, filtered and sorted.
    `query` matches case-insensitively as a substring of the title or of any tag title.
    """
    check_pagination(page, limit)
    sort, order = normalize_sort(sort_by, sort_direction)

    with create_session() as session:
        wallpapers, tag_map, total = list_wallpapers_page(
            session,
            search=query,
            owner_id=owner_id,
            sort=sort,
            order=order,
            limit=limit,
            offset=page * limit,
        )
        items = [
            WallpaperDetailResult(
                wallpaper=extract_wallpaper_data(w),
                tags=tag_map.get(w.id, []),
            )
            for w in wallpapers
        ]

    return ListWallpapersResult(items=items, total=total, page_count=count_pages(total, limit))


def search_wallpapers(
    query: str | None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
    page: int = 0,
    limit: int = DEFAULT_LIMIT,
    owner_id: str | None = None,
) -> ListWallpapersResult:
    """Like list_wallpapers, but an empty page is reported as NotFoundError."""
    result = list_wallpapers(
        sort_by=sort_by,
        sort_direction=sort_direction,
        page=page,
        limit=limit,
        query=query or "",
        owner_id=owner_id,
    )
    if not result.items:
        raise NotFoundError("No wallpapers found.", code="NO_RESULTS")
    return result
